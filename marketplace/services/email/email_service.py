# ===== marketplace/services/email/email_service.py =====
import smtplib
from email.mime.text import MIMEText
from email.mime.multipart import MIMEMultipart
from typing import Any, Dict, List, Optional, Tuple
import logging

from marketplace.config.settings import settings

logger = logging.getLogger(__name__)

TEMPLATE_KINDS = ("created", "accepted", "rejected", "counter_offered", "cancelled", "completed")
RECIPIENT_ROLES = ("customer", "professional")


class EmailService:
    """Service for sending emails via SMTP"""

    @staticmethod
    def _get_smtp_connection():
        """Create and return SMTP connection"""
        try:
            if settings.EMAIL_USE_TLS:
                server = smtplib.SMTP(settings.EMAIL_HOST, settings.EMAIL_PORT)
                server.starttls()
            else:
                server = smtplib.SMTP_SSL(settings.EMAIL_HOST, settings.EMAIL_PORT)

            if settings.EMAIL_USERNAME and settings.EMAIL_PASSWORD:
                server.login(settings.EMAIL_USERNAME, settings.EMAIL_PASSWORD)

            return server
        except Exception as e:
            logger.error(f"Failed to connect to SMTP server: {e}")
            raise

    @staticmethod
    def send_email(
            to_email: str,
            subject: str,
            html_content: str,
            plain_text: Optional[str] = None,
            cc: Optional[List[str]] = None
    ) -> bool:
        """
        Send an email using SMTP

        Args:
            to_email: Recipient email address
            subject: Email subject
            html_content: HTML content of the email
            plain_text: Plain text version (fallback for non-HTML clients)
            cc: List of CC email addresses

        Returns:
            bool: True if email sent successfully
        """
        try:
            msg = MIMEMultipart('alternative')
            msg['Subject'] = subject
            msg['From'] = f"{settings.EMAIL_FROM_NAME} <{settings.EMAIL_FROM_ADDRESS}>"
            msg['To'] = to_email

            if cc:
                msg['Cc'] = ', '.join(cc)

            if plain_text:
                msg.attach(MIMEText(plain_text, 'plain'))
            msg.attach(MIMEText(html_content, 'html'))

            recipients = [to_email] + list(cc or [])

            server = EmailService._get_smtp_connection()
            server.sendmail(settings.EMAIL_FROM_ADDRESS, recipients, msg.as_string())
            server.quit()

            logger.info(f"Email sent successfully to {to_email}")
            return True

        except Exception as e:
            logger.error(f"Failed to send email to {to_email}: {e}")
            raise

    @staticmethod
    def render_appointment_email(
            template_kind: str,
            recipient_role: str,
            details: Dict[str, Any]
    ) -> Tuple[str, str, str]:
        """
        Build (subject, plain_text, html) for an appointment notification.

        details carries professional_name, customer_name, service_name,
        appointment_date, appointment_time, timezone and, depending on the
        kind, quote / final_quote / original_quote / counter_quote / reason.
        """
        if template_kind not in TEMPLATE_KINDS:
            raise ValueError(f"Unknown template kind: {template_kind}")
        if recipient_role not in RECIPIENT_ROLES:
            raise ValueError(f"Unknown recipient role: {recipient_role}")

        d = dict(details)
        d.setdefault("reason", None)
        when = f"{d['appointment_date']} at {d['appointment_time']} ({d['timezone']})"
        service = d["service_name"]
        pro = d["professional_name"]
        customer = d["customer_name"]
        to_customer = recipient_role == "customer"
        greeting = customer if to_customer else pro

        if template_kind == "created":
            if to_customer:
                subject = f"Your Appointment Request with {pro} has been Sent!"
                lines = [
                    f'Your appointment request for "{service}" with {pro} on {when} has been successfully submitted.',
                    f"The initial quote is ${d['quote']}.",
                    f"{pro} will review your request and get back to you shortly.",
                ]
            else:
                subject = f'New Appointment Request from {customer} for "{service}"'
                lines = [
                    f'You have a new appointment request from {customer} for "{service}" on {when}.',
                    f"The initial proposed quote is ${d['quote']}.",
                    "Please review this request in your dashboard and respond (accept, reject, or counter-offer).",
                ]

        elif template_kind == "accepted":
            if to_customer:
                subject = f"Great News! Your Appointment with {pro} is Confirmed!"
                lines = [
                    f'Your appointment for "{service}" with {pro} on {when} has been confirmed.',
                    f"The final agreed quote is ${d['final_quote']}.",
                ]
            else:
                subject = f"Appointment Confirmed: {service} with {customer}"
                lines = [
                    f'The appointment for "{service}" with {customer} on {when} is confirmed.',
                    f"The final agreed quote is ${d['final_quote']}.",
                    "This appointment is now booked in your schedule.",
                ]

        elif template_kind == "rejected":
            reason_line = f"Reason for rejection: {d['reason']}" if d["reason"] else "No specific reason was provided."
            if to_customer:
                subject = f"Update on Your Appointment Request with {pro}"
                lines = [
                    f'Unfortunately, {pro} is unable to accept your request for "{service}" on {when}.',
                    reason_line,
                    "You are welcome to request a different time or professional.",
                ]
            else:
                subject = f'Appointment Request from {customer} for "{service}" was Rejected'
                lines = [
                    f'{customer} declined the counter-offer for "{service}" on {when}.',
                    reason_line,
                ]

        elif template_kind == "counter_offered":
            if to_customer:
                subject = f"Counter-Offer for Your Appointment with {pro}"
                lines = [
                    f'{pro} has proposed a new price for "{service}" on {when}.',
                    f"Original quote: ${d['original_quote']}. New quote: ${d['counter_quote']}.",
                    "Please accept or decline the counter-offer from your dashboard.",
                ]
            else:
                subject = f"You Sent a Counter-Offer to {customer}"
                lines = [
                    f'Your counter-offer for "{service}" on {when} was sent to {customer}.',
                    f"Original quote: ${d['original_quote']}. New quote: ${d['counter_quote']}.",
                ]

        elif template_kind == "cancelled":
            subject = f"Appointment Cancelled: {service} on {d['appointment_date']}"
            other = pro if to_customer else customer
            lines = [
                f'The appointment for "{service}" with {other} on {when} has been cancelled.',
                f"Reason for cancellation: {d['reason']}" if d["reason"] else "No specific reason was provided.",
            ]

        else:  # completed
            subject = f'Your Appointment for "{service}" is Complete!'
            if to_customer:
                lines = [
                    f'Your appointment for "{service}" with {pro} on {when} has been marked as completed.',
                    "We'd love to hear how it went. Please leave a review from your dashboard.",
                ]
            else:
                lines = [
                    f'You marked the appointment for "{service}" with {customer} on {when} as completed.',
                ]

        footer = [
            f"Thank you for using {settings.EMAIL_FROM_NAME}.",
            f"Manage your appointments at {settings.FRONTEND_URL}/dashboard",
        ]

        plain_text = "\n\n".join([f"Hello {greeting},"] + lines + footer)
        html_content = (
            '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px;">'
            + f"<p>Hello {greeting},</p>"
            + "".join(f"<p>{line}</p>" for line in lines)
            + '<hr style="border: none; border-top: 1px solid #e0e0e0;">'
            + "".join(f'<p style="font-size: 12px; color: #999;">{line}</p>' for line in footer)
            + "</div>"
        )
        return subject, plain_text, html_content

    @staticmethod
    def send_appointment_email(
            to_email: str,
            template_kind: str,
            recipient_role: str,
            details: Dict[str, Any]
    ) -> bool:
        subject, plain_text, html_content = EmailService.render_appointment_email(
            template_kind, recipient_role, details
        )
        return EmailService.send_email(
            to_email=to_email,
            subject=subject,
            html_content=html_content,
            plain_text=plain_text
        )
