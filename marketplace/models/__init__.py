# marketplace/models/__init__.py
from .base import Base
from .user import User, UserRole
from .availability import AvailabilityWindow
from .appointment import (
    Appointment,
    AppointmentAction,
    AppointmentHistory,
    AppointmentStatus,
    ACTIVE_STATUSES,
    TERMINAL_STATUSES,
)

__all__ = [
    "Base",
    "User",
    "UserRole",
    "AvailabilityWindow",
    "Appointment",
    "AppointmentAction",
    "AppointmentHistory",
    "AppointmentStatus",
    "ACTIVE_STATUSES",
    "TERMINAL_STATUSES",
]
