# ============================================================================
# marketplace/services/appointment/appointment_service.py
# Booking requests and party-scoped reads
# ============================================================================
"""Service for creating and reading appointments"""
import logging
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from marketplace.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    NotFoundError,
    ValidationError,
)
from marketplace.models.appointment import Appointment, AppointmentHistory, AppointmentStatus
from marketplace.models.user import User, UserRole
from marketplace.schemas.appointment import AppointmentCreate
from marketplace.services.appointment.appointment_store import AppointmentStore, utcnow
from marketplace.services.notification.notification_service import NotificationService
from marketplace.utils.time_utils import (
    add_minutes_utc_with_date,
    is_valid_hhmm,
    local_to_utc,
    parse_date,
)

logger = logging.getLogger(__name__)


class AppointmentService:
    """Handles appointment creation and lookups"""

    @staticmethod
    async def create_appointment(
            db: Session,
            actor: Optional[User],
            data: AppointmentCreate
    ) -> Appointment:
        """
        Create a booking request from the authenticated customer.

        ``data.start_time`` is local to ``data.professional_timezone``; the
        stored date and times are UTC. The first history entry records the
        request, and both parties are notified once it is committed.
        """
        if actor is None:
            raise AuthenticationError("Authentication required")
        if not actor.is_customer():
            raise AuthorizationError("Only customers can request appointments")

        customer_id = data.customer_id or actor.id
        if customer_id != actor.id:
            raise AuthorizationError("Appointments can only be requested for yourself", field="customerId")

        AppointmentService._validate_request(data)

        professional = db.query(User).filter(User.id == data.professional_id).first()
        if not professional or not professional.is_active:
            raise NotFoundError("Professional not found", field="professionalId")
        if not professional.is_professional():
            raise ValidationError("Referenced user is not a professional", field="professionalId")

        start_date, start_time = local_to_utc(
            data.appointment_date,
            data.start_time,
            data.professional_timezone
        )
        end_date, end_time = add_minutes_utc_with_date(start_date, start_time, data.total_duration)

        services = [item.model_dump() for item in data.services]
        now = utcnow()

        appointment = Appointment(
            customer_id=customer_id,
            professional_id=professional.id,
            services=services,
            total_duration=data.total_duration,
            appointment_date=parse_date(start_date),
            start_time=start_time,
            end_date=parse_date(end_date),
            end_time=end_time,
            professional_timezone=data.professional_timezone,
            quoted_price=data.quoted_price,
            final_price=data.quoted_price,
            customer_notes=data.customer_notes or "",
            status=AppointmentStatus.PENDING_PROFESSIONAL_APPROVAL,
            version=1,
            created_at=now,
            updated_at=now,
        )
        first_entry = AppointmentHistory(
            timestamp=now,
            action_by=UserRole.CUSTOMER.value,
            user_id=actor.id,
            action_type="created_appointment_request",
            details={
                "services": services,
                "quotedPrice": data.quoted_price,
                "appointmentDate": start_date,
                "startTime": start_time,
            },
        )

        appointment = AppointmentStore.insert(db, appointment, first_entry)
        logger.info(
            f"Appointment {appointment.id} requested by customer {actor.id} with professional "
            f"{professional.id} on {start_date} {start_time} UTC"
        )

        await NotificationService.notify_created(appointment)
        return appointment

    @staticmethod
    def _validate_request(data: AppointmentCreate) -> None:
        if not data.services:
            raise ValidationError("At least one service is required", field="services")

        for index, item in enumerate(data.services):
            if not item.name.strip():
                raise ValidationError("Each service needs a name", field=f"services.{index}.name")

        if data.total_duration <= 0:
            raise ValidationError("Valid total duration (positive minutes) is required", field="totalDuration")

        if sum(item.duration for item in data.services) != data.total_duration:
            raise ValidationError(
                "Total duration must equal the sum of the service durations",
                field="totalDuration"
            )

        try:
            parse_date(data.appointment_date)
        except ValidationError as e:
            raise ValidationError(e.message, field="appointmentDate") from e

        if not is_valid_hhmm(data.start_time):
            raise ValidationError("Valid start time (HH:MM, 24-hour) is required", field="startTime")

        if not data.professional_timezone or not data.professional_timezone.strip():
            raise ValidationError("Professional timezone is required", field="professionalTimezone")

        if data.quoted_price < 0:
            raise ValidationError("Valid quoted price (non-negative) is required", field="quotedPrice")

    @staticmethod
    async def list_for_user(db: Session, actor: Optional[User]) -> List[Appointment]:
        """Appointments where the actor is the customer or the professional, per their role"""
        if actor is None:
            raise AuthenticationError("Authentication required")
        return AppointmentStore.list_for_party(db, actor.id, as_professional=actor.is_professional())

    @staticmethod
    async def get_for_party(db: Session, actor: Optional[User], appointment_id: UUID) -> Appointment:
        """Single appointment, hidden from anyone who is not one of its parties"""
        if actor is None:
            raise AuthenticationError("Authentication required")

        appointment = AppointmentStore.get(db, appointment_id)
        if appointment is None or actor.id not in (appointment.customer_id, appointment.professional_id):
            raise NotFoundError("Appointment not found")
        return appointment
