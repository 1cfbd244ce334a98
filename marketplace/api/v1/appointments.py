# ============================================================================
# FILE: marketplace/api/v1/appointments.py
# JWT authenticated appointment endpoints - thin HTTP layer
# ============================================================================
from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.orm import Session
from uuid import UUID

from marketplace.config.database import get_db
from marketplace.models.user import User
from marketplace.api.dependencies import get_current_user
from marketplace.schemas.appointment import (
    AppointmentActionRequest,
    AppointmentCreate,
    AppointmentListResponse,
    AppointmentOut,
    AppointmentResponse,
    AppointmentWithParties,
)
from marketplace.services.appointment.appointment_service import AppointmentService
from marketplace.services.appointment.appointment_action_service import AppointmentActionService

router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def request_appointment(
        payload: AppointmentCreate,
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Request an appointment with a professional.
    startTime is wall-clock time in professionalTimezone; it is stored as UTC.
    """
    appointment = await AppointmentService.create_appointment(db, current_user, payload)
    return AppointmentResponse(
        message="Appointment requested successfully",
        appointment=AppointmentOut.model_validate(appointment)
    )


@router.get("/mine", response_model=AppointmentListResponse)
async def list_my_appointments(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """Appointments where you are the customer or the professional"""
    appointments = await AppointmentService.list_for_user(db, current_user)
    return AppointmentListResponse(
        appointments=[AppointmentWithParties.from_appointment(a) for a in appointments]
    )


@router.get("/{appointment_id}", response_model=AppointmentWithParties)
async def get_appointment(
        appointment_id: UUID = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    appointment = await AppointmentService.get_for_party(db, current_user, appointment_id)
    return AppointmentWithParties.from_appointment(appointment)


@router.put("/{appointment_id}/action", response_model=AppointmentResponse)
async def perform_appointment_action(
        payload: AppointmentActionRequest,
        appointment_id: UUID = Path(..., description="The appointment ID"),
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db)
):
    """
    Confirm, reject, counter, accept/reject a counter-offer, cancel or complete.
    Body: {"action", "finalPrice"?, "reason"?}
    """
    _, appointment, message = await AppointmentActionService.perform_action(
        db=db,
        appointment_id=appointment_id,
        actor=current_user,
        request=payload
    )
    return AppointmentResponse(message=message, appointment=AppointmentOut.model_validate(appointment))
