# ============================================================================
# marketplace/services/appointment/appointment_action_service.py
# Applies a party's action to an appointment and notifies afterwards
# ============================================================================
import logging
from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.orm import Session

from marketplace.core.exceptions import AuthenticationError
from marketplace.models.appointment import Appointment, AppointmentHistory
from marketplace.models.user import User
from marketplace.schemas.appointment import AppointmentActionRequest
from marketplace.services.appointment.appointment_store import (
    AppointmentStore,
    TransitionOutcome,
    utcnow,
)
from marketplace.services.appointment.state_machine import plan_transition
from marketplace.services.notification.notification_service import NotificationService

logger = logging.getLogger(__name__)


class AppointmentActionService:
    """Runs one requested action through the negotiation rules"""

    @staticmethod
    async def perform_action(
            db: Session,
            appointment_id: UUID,
            actor: Optional[User],
            request: AppointmentActionRequest
    ) -> Tuple[TransitionOutcome, Appointment, str]:
        """
        Validate and apply ``request.action`` by ``actor``.

        Returns (outcome, refreshed appointment, message). Notifications go out
        only when the transition was actually applied by this call.
        """
        if actor is None:
            raise AuthenticationError("Authentication required")

        appointment = AppointmentStore.get_or_404(db, appointment_id)

        plan = plan_transition(
            actor,
            appointment,
            request.action,
            final_price=request.final_price,
            reason=request.reason,
        )

        entry = AppointmentHistory(
            timestamp=utcnow(),
            action_by=plan.actor_role.value,
            user_id=actor.id,
            action_type=plan.action_type,
            details=plan.details,
        )

        outcome = AppointmentStore.apply_transition(
            db,
            appointment,
            plan.new_status,
            entry,
            changes=plan.changes
        )
        updated = AppointmentStore.reload(db, appointment_id)

        if outcome == TransitionOutcome.UNCHANGED:
            return outcome, updated, "Appointment not updated, status or data may be unchanged."

        logger.info(f"Action '{plan.action.value}' by {plan.actor_role.value} {actor.id} applied to {appointment_id}")
        await NotificationService.notify_action(plan.action, updated, reason=(request.reason or "").strip() or None)
        return outcome, updated, f"Appointment {plan.action.value} applied successfully."
