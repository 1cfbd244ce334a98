# ===== seed_availability.py =====
"""
Give a professional a Monday-Friday 09:00-17:00 UTC schedule.

    python -m marketplace.seed_availability <professional-email> [IANA timezone]
"""
import logging
import sys

from marketplace.config.database import SessionLocal
from marketplace.models.user import User
from marketplace.services.availability.availability_service import AvailabilityService
from marketplace.utils.my_logging import setup_logging
from marketplace.utils.time_utils import DAY_NAMES

logger = logging.getLogger(__name__)

WEEKDAYS = DAY_NAMES[:5]


def default_week():
    return [
        {
            "day": day,
            "is_available": day in WEEKDAYS,
            "start_time": "09:00" if day in WEEKDAYS else None,
            "end_time": "17:00" if day in WEEKDAYS else None,
        }
        for day in DAY_NAMES
    ]


def seed_availability(email: str, timezone_name: str = None) -> int:
    db = SessionLocal()

    try:
        professional = db.query(User).filter(User.email == email).first()
        if not professional:
            logger.error(f"No user with email {email}")
            return 1

        windows = AvailabilityService.replace_weekly_windows(
            db, professional, default_week(), timezone_name=timezone_name
        )
        logger.info(f"Seeded {len(windows)} availability windows for {email}")
        return 0

    except Exception as e:
        db.rollback()
        logger.error(f"Error seeding availability: {e}")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    setup_logging()
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(2)
    sys.exit(seed_availability(sys.argv[1], sys.argv[2] if len(sys.argv) > 2 else None))
