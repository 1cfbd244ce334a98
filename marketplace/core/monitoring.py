"""Health checks"""
import logging

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.orm import Session

from marketplace.config.database import get_db

logger = logging.getLogger(__name__)

health_router = APIRouter()


@health_router.get("")
async def health_check(db: Session = Depends(get_db)):
    """API and database status"""
    checks = {
        "api": "healthy",
        "database": "unknown",
        "overall": "unknown"
    }

    try:
        db.execute(text("SELECT 1"))
        checks["database"] = "healthy"
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        checks["database"] = f"unhealthy: {str(e)}"

    checks["overall"] = "healthy" if checks["database"] == "healthy" else "degraded"
    return checks
