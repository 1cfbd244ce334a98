# ============================================================================
# FILE: marketplace/api/v1/professionals.py
# Public professional endpoints
# ============================================================================
from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session
from uuid import UUID

from marketplace.config.database import get_db
from marketplace.schemas.appointment import AvailableSlotsResponse
from marketplace.services.availability.availability_service import AvailabilityService

router = APIRouter(prefix="/professionals", tags=["professionals"])


@router.get("/{professional_id}/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
        professional_id: UUID = Path(..., description="The professional's user ID"),
        date: str = Query(..., description="Target date, YYYY-MM-DD"),
        service_duration: int = Query(..., alias="serviceDuration", description="Service length in minutes"),
        db: Session = Depends(get_db)
):
    """
    UTC start times (HH:MM) on the given date where the service fits in the
    professional's weekly availability and does not overlap an active booking.
    """
    result = await AvailabilityService.get_available_slots(
        db=db,
        professional_id=professional_id,
        date_iso=date,
        service_duration=service_duration
    )
    return AvailableSlotsResponse(**result)
