# ===== marketplace/services/availability/availability_service.py =====
from typing import Dict, List, Optional, Tuple
from datetime import date, timedelta
from uuid import UUID
from sqlalchemy.orm import Session
from marketplace.config.settings import get_settings
from marketplace.core.exceptions import NotFoundError, ValidationError
from marketplace.models.appointment import Appointment, ACTIVE_STATUSES
from marketplace.models.availability import AvailabilityWindow
from marketplace.models.user import User, UserRole
from marketplace.utils.time_utils import (
    DAY_NAMES,
    MINUTES_PER_DAY,
    day_of_week_name,
    is_valid_hhmm,
    is_valid_timezone,
    parse_date,
    to_hhmm,
    to_minutes_since_midnight,
)
import logging

logger = logging.getLogger(__name__)
settings = get_settings()


class AvailabilityService:
    """Turns a professional's weekly UTC windows into bookable start times"""

    @staticmethod
    async def get_available_slots(
            db: Session,
            professional_id: UUID,
            date_iso: str,
            service_duration: int,
            exclude_booked: bool = True
    ) -> Dict:
        """
        Enumerate UTC "HH:MM" start times on date_iso where a service of
        service_duration minutes fits inside the professional's window.

        Returns {"available_slots": [...], "professional_timezone": tz}.
        An unavailable or missing window yields an empty list, not an error.
        """
        try:
            target = parse_date(date_iso)
        except ValidationError as e:
            raise ValidationError(e.message, field="date") from e

        if isinstance(service_duration, bool) or not isinstance(service_duration, int) or service_duration <= 0:
            raise ValidationError(
                "Valid service duration (positive number in minutes) is required",
                field="serviceDuration"
            )

        professional = db.query(User).filter(
            User.id == professional_id,
            User.role == UserRole.PROFESSIONAL
        ).first()

        if not professional:
            raise NotFoundError("Professional not found")

        timezone_name = professional.timezone or settings.DEFAULT_TIMEZONE
        day_name = day_of_week_name(date_iso)
        window = next((w for w in professional.availability_windows if w.day == day_name), None)

        if not window or not window.is_available or not window.start_time or not window.end_time:
            logger.info(f"No active schedule for professional {professional_id} on {day_name}")
            return {"available_slots": [], "professional_timezone": timezone_name}

        candidates = AvailabilityService.generate_slot_starts(
            window.start_time,
            window.end_time,
            service_duration,
            settings.SLOT_INTERVAL_MINUTES
        )

        if exclude_booked:
            busy = AvailabilityService._booked_intervals(db, professional_id, target)
            candidates = [
                start for start in candidates
                if not any(start < busy_end and start + service_duration > busy_start
                           for busy_start, busy_end in busy)
            ]

        slots = sorted({to_hhmm(start) for start in candidates})
        logger.info(
            f"Generated {len(slots)} slots for professional {professional_id} on {date_iso} "
            f"({service_duration} min)"
        )
        return {"available_slots": slots, "professional_timezone": timezone_name}

    @staticmethod
    def generate_slot_starts(
            window_start: str,
            window_end: str,
            duration: int,
            step: int = 15
    ) -> List[int]:
        """
        Candidate starts, in minutes from the window's midnight, stepping by
        `step` while start + duration still fits. An end earlier than the start
        means the window runs past midnight. Values may exceed 1439 for such
        windows; format them with to_hhmm to wrap.
        """
        start_minutes = to_minutes_since_midnight(window_start)
        end_minutes = to_minutes_since_midnight(window_end)

        if end_minutes < start_minutes:
            end_minutes += MINUTES_PER_DAY

        return [
            candidate
            for candidate in range(start_minutes, end_minutes, step)
            if candidate + duration <= end_minutes
        ]

    @staticmethod
    def _booked_intervals(db: Session, professional_id: UUID, target: date) -> List[Tuple[int, int]]:
        """Active appointments as [start, end) minutes relative to target's midnight"""
        day_before = target - timedelta(days=1) if target > date.min else target
        day_after = target + timedelta(days=1) if target < date.max else target
        appointments = db.query(Appointment).filter(
            Appointment.professional_id == professional_id,
            Appointment.appointment_date.between(day_before, day_after),
            Appointment.status.in_(list(ACTIVE_STATUSES))
        ).all()

        intervals = []
        for appointment in appointments:
            offset = (appointment.appointment_date - target).days * MINUTES_PER_DAY
            start = offset + to_minutes_since_midnight(appointment.start_time)
            intervals.append((start, start + appointment.total_duration))
        return intervals

    @staticmethod
    def replace_weekly_windows(
            db: Session,
            professional: User,
            windows: List[Dict],
            timezone_name: Optional[str] = None
    ) -> List[AvailabilityWindow]:
        """
        Replace a professional's weekly schedule. Expects exactly one entry per
        day name: {"day", "is_available", "start_time", "end_time"} in UTC.
        """
        if not professional.is_professional():
            raise ValidationError("Only professionals have availability", field="role")

        days = [w.get("day") for w in windows]
        if sorted(days, key=str) != sorted(DAY_NAMES, key=str):
            raise ValidationError("Availability must contain exactly one entry per weekday", field="availability")

        for entry in windows:
            if entry.get("is_available"):
                for key in ("start_time", "end_time"):
                    if not is_valid_hhmm(entry.get(key)):
                        raise ValidationError(f"Invalid {key} for {entry['day']}", field=key)

        if timezone_name and not is_valid_timezone(timezone_name):
            raise ValidationError(f"Unknown time zone '{timezone_name}'", field="timezone")

        # Old rows must be gone before new ones hit the (professional, day) constraint
        professional.availability_windows.clear()
        db.flush()

        professional.availability_windows = [
            AvailabilityWindow(
                day=entry["day"],
                is_available=bool(entry.get("is_available")),
                start_time=entry.get("start_time"),
                end_time=entry.get("end_time"),
            )
            for entry in windows
        ]
        if timezone_name:
            professional.timezone = timezone_name

        db.commit()
        db.refresh(professional)
        return professional.availability_windows
