# ============================================================================
# marketplace/services/appointment/appointment_store.py
# Persistence for appointments and their append-only history
# ============================================================================
"""
Every write here is one database transaction: the appointment row and its
history entry are committed together or not at all.
"""
import enum
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from marketplace.core.exceptions import ConflictError, NotFoundError
from marketplace.models.appointment import Appointment, AppointmentHistory, AppointmentStatus

logger = logging.getLogger(__name__)


class TransitionOutcome(str, enum.Enum):
    APPLIED = "applied"
    UNCHANGED = "unchanged"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentStore:
    """Reads and atomic writes of Appointment rows"""

    @staticmethod
    def get(db: Session, appointment_id: UUID) -> Optional[Appointment]:
        return db.query(Appointment).filter(Appointment.id == appointment_id).first()

    @staticmethod
    def get_or_404(db: Session, appointment_id: UUID) -> Appointment:
        appointment = AppointmentStore.get(db, appointment_id)
        if appointment is None:
            raise NotFoundError("Appointment not found")
        return appointment

    @staticmethod
    def list_for_party(db: Session, user_id: UUID, as_professional: bool) -> List[Appointment]:
        column = Appointment.professional_id if as_professional else Appointment.customer_id
        return (
            db.query(Appointment)
            .filter(column == user_id)
            .order_by(Appointment.appointment_date.asc(), Appointment.start_time.asc())
            .all()
        )

    @staticmethod
    def insert(db: Session, appointment: Appointment, first_entry: AppointmentHistory) -> Appointment:
        """Persist a new appointment together with its first history entry"""
        appointment.history = [first_entry]
        db.add(appointment)
        try:
            db.commit()
        except Exception:
            db.rollback()
            raise
        db.refresh(appointment)
        return appointment

    @staticmethod
    def apply_transition(
            db: Session,
            appointment: Appointment,
            new_status: AppointmentStatus,
            history_entry: AppointmentHistory,
            changes: Optional[Dict[str, Any]] = None
    ) -> TransitionOutcome:
        """
        Move appointment from the status/version it was read with to new_status.

        The UPDATE only matches if nobody else changed the row since it was read.
        If it matches nothing because exactly this transition, with the same
        changes, was already applied by one other request, UNCHANGED is
        returned; any other mismatch raises ConflictError.
        """
        appointment_id = appointment.id
        expected_status = appointment.status
        expected_version = appointment.version
        now = history_entry.timestamp or utcnow()

        values = dict(changes or {})
        values.update(status=new_status, updated_at=now, version=expected_version + 1)

        try:
            result = db.execute(
                update(Appointment)
                .where(
                    Appointment.id == appointment_id,
                    Appointment.status == expected_status,
                    Appointment.version == expected_version,
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )

            if result.rowcount == 1:
                history_entry.appointment_id = appointment_id
                history_entry.timestamp = now
                db.add(history_entry)
                db.commit()
                logger.info(
                    f"Appointment {appointment_id}: {expected_status.value} -> {new_status.value} "
                    f"(v{expected_version + 1})"
                )
                return TransitionOutcome.APPLIED

            db.rollback()
        except Exception:
            db.rollback()
            raise

        db.expire_all()
        current = AppointmentStore.get(db, appointment_id)
        if current is None:
            raise NotFoundError("Appointment not found during update")
        if AppointmentStore._already_applied(current, expected_version, new_status, history_entry, changes):
            logger.info(f"Appointment {appointment_id} already {new_status.value}, nothing modified")
            return TransitionOutcome.UNCHANGED

        logger.warning(
            f"Concurrent modification of appointment {appointment_id}: expected "
            f"{expected_status.value} v{expected_version}, found {current.status.value} v{current.version}"
        )
        raise ConflictError(
            f"Appointment was modified by another request (now {current.status.value}). Reload and retry."
        )

    @staticmethod
    def _already_applied(
            current: Appointment,
            expected_version: int,
            new_status: AppointmentStatus,
            history_entry: AppointmentHistory,
            changes: Optional[Dict[str, Any]]
    ) -> bool:
        """
        The one write since our read was this same transition with the same
        values. Anything else (another action landing on the same status,
        a different counter price, several writes) is a lost race.
        """
        if current.status != new_status or current.version != expected_version + 1:
            return False
        if not current.history or current.history[-1].action_type != history_entry.action_type:
            return False
        return all(getattr(current, column) == value for column, value in (changes or {}).items())

    @staticmethod
    def reload(db: Session, appointment_id: UUID) -> Appointment:
        """Fetch the freshly committed state"""
        db.expire_all()
        return AppointmentStore.get_or_404(db, appointment_id)
