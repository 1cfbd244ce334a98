# ============================================================================
# marketplace/services/notification/notification_service.py
# Best-effort appointment notifications, queued to the Celery email worker
# ============================================================================
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from starlette.concurrency import run_in_threadpool

from marketplace.config.settings import get_settings
from marketplace.core.exceptions import NotificationError
from marketplace.models.appointment import Appointment, AppointmentAction
from marketplace.tasks.email_tasks import send_appointment_email
from marketplace.utils.time_utils import utc_to_local

logger = logging.getLogger(__name__)
settings = get_settings()

CUSTOMER = "customer"
PROFESSIONAL = "professional"
BOTH = (CUSTOMER, PROFESSIONAL)

# action -> (template kind, recipient roles)
ACTION_NOTIFICATIONS: Dict[AppointmentAction, Tuple[str, Tuple[str, ...]]] = {
    AppointmentAction.CONFIRM: ("accepted", BOTH),
    AppointmentAction.ACCEPT_COUNTER: ("accepted", BOTH),
    AppointmentAction.REJECT: ("rejected", (CUSTOMER,)),
    AppointmentAction.REJECT_COUNTER: ("rejected", (PROFESSIONAL,)),
    AppointmentAction.COUNTER: ("counter_offered", BOTH),
    AppointmentAction.CANCEL_BY_CUSTOMER: ("cancelled", BOTH),
    AppointmentAction.CANCEL_BY_PROFESSIONAL: ("cancelled", BOTH),
    AppointmentAction.COMPLETE: ("completed", BOTH),
}


class NotificationService:
    """Queues notification emails. Never raises."""

    @staticmethod
    async def notify_created(appointment: Appointment) -> bool:
        return await run_in_threadpool(NotificationService.dispatch, "created", appointment, BOTH)

    @staticmethod
    async def notify_action(
            action: AppointmentAction,
            appointment: Appointment,
            reason: Optional[str] = None
    ) -> bool:
        template_kind, recipients = ACTION_NOTIFICATIONS[action]
        return await run_in_threadpool(
            NotificationService.dispatch, template_kind, appointment, recipients, reason=reason
        )

    @staticmethod
    def dispatch(
            template_kind: str,
            appointment: Appointment,
            recipients: Sequence[str],
            reason: Optional[str] = None
    ) -> bool:
        """
        Queue one email per recipient role. Blocking (broker round trip), so
        request handlers go through notify_created / notify_action, which run
        it in the threadpool. Returns True if every email was queued. Failures
        are logged and reported as False; the caller's transaction is already
        committed and stays that way.
        """
        if not settings.NOTIFICATIONS_ENABLED:
            logger.debug(f"Notifications disabled, skipping '{template_kind}' for {appointment.id}")
            return False

        try:
            details = NotificationService.build_details(appointment, reason)
            for role in recipients:
                user = appointment.customer if role == CUSTOMER else appointment.professional
                if user is None or not user.email:
                    raise NotificationError(f"No email address for {role} of appointment {appointment.id}")
                try:
                    send_appointment_email.delay(user.email, template_kind, role, details)
                except Exception as e:
                    raise NotificationError(f"Could not queue '{template_kind}' email to {role}: {e}") from e
        except NotificationError as e:
            logger.error(f"Notification failed for appointment {appointment.id}: {e.message}")
            return False
        except Exception as e:
            logger.error(f"Notification failed for appointment {appointment.id}: {e}")
            return False

        logger.info(f"Queued '{template_kind}' notification for appointment {appointment.id} to {', '.join(recipients)}")
        return True

    @staticmethod
    def build_details(appointment: Appointment, reason: Optional[str] = None) -> Dict[str, Any]:
        """Template parameters, with the start time shown in the professional's zone"""
        local_date, local_time = utc_to_local(
            appointment.appointment_date.isoformat(),
            appointment.start_time,
            appointment.professional_timezone
        )
        return {
            "professional_name": appointment.professional.display_name if appointment.professional else "",
            "customer_name": appointment.customer.display_name if appointment.customer else "",
            "service_name": ", ".join(s.get("name", "") for s in appointment.services or []),
            "appointment_date": local_date,
            "appointment_time": local_time,
            "timezone": appointment.professional_timezone,
            "quote": appointment.quoted_price,
            "final_quote": appointment.final_price,
            "original_quote": appointment.quoted_price,
            "counter_quote": appointment.final_price,
            "reason": reason,
            "appointment_id": str(appointment.id),
        }
