# ===== marketplace/tasks/email_tasks.py =====
from typing import Any, Dict
import logging

from marketplace.config.celery_config import celery_app
from marketplace.services.email.email_service import EmailService

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def send_appointment_email(
        self,
        to_email: str,
        template_kind: str,
        recipient_role: str,
        details: Dict[str, Any]
):
    """
    Send one appointment notification email

    Args:
        to_email: Recipient's email address
        template_kind: created, accepted, rejected, counter_offered, cancelled or completed
        recipient_role: customer or professional
        details: Template parameters (names, service, date, local time, prices)
    """
    try:
        logger.info(f"Sending '{template_kind}' email to {recipient_role} {to_email}")

        EmailService.send_appointment_email(
            to_email=to_email,
            template_kind=template_kind,
            recipient_role=recipient_role,
            details=details
        )

        logger.info(f"'{template_kind}' email sent successfully to {to_email}")
        return {"status": "success", "email": to_email, "template": template_kind}

    except Exception as exc:
        logger.error(f"Failed to send '{template_kind}' email to {to_email}: {exc}")

        # Retry with exponential backoff: 1min, 2min, 4min
        raise self.retry(
            exc=exc,
            countdown=60 * (2 ** self.request.retries)
        )
