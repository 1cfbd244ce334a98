"""
API v1 router setup
"""
from fastapi import APIRouter

from marketplace.api.v1 import appointments, professionals

api_v1_router = APIRouter()

# ============================================================================
# PUBLIC ROUTES (No authentication required)
# ============================================================================
api_v1_router.include_router(professionals.router)

# ============================================================================
# APPOINTMENT ROUTES (JWT authentication required)
# ============================================================================
api_v1_router.include_router(appointments.router)


@api_v1_router.get("/", tags=["Info"])
async def api_info():
    """API information"""
    return {
        "version": "1.0",
        "authentication": {
            "public": "No authentication required (available slots)",
            "appointments": "JWT Bearer token required"
        }
    }
