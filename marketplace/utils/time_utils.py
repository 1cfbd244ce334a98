# marketplace/utils/time_utils.py
"""
Wall-clock helpers for HH:MM strings, calendar dates and IANA time zones.

All functions are pure: they take explicit arguments and never read the
server's local time zone. Dates are "YYYY-MM-DD" strings, times are 24-hour
"HH:MM" strings.
"""
import re
from datetime import date, datetime, time, timedelta, timezone
from typing import Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from marketplace.core.exceptions import FormatError, TimeConversionError

MINUTES_PER_DAY = 24 * 60

DAY_NAMES = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)

_HHMM_RE = re.compile(r"^([01]?[0-9]|2[0-3]):([0-5][0-9])$")
_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")


def to_minutes_since_midnight(hhmm: str) -> int:
    """Convert "HH:MM" to minutes since midnight, in [0, 1439]."""
    match = _HHMM_RE.match(hhmm) if isinstance(hhmm, str) else None
    if not match:
        raise FormatError(f"Invalid time '{hhmm}', expected HH:MM (24-hour)")
    return int(match.group(1)) * 60 + int(match.group(2))


def to_hhmm(minutes_since_midnight: int) -> str:
    """Format minutes as zero-padded "HH:MM", wrapping modulo 24 hours."""
    hours, minutes = divmod(minutes_since_midnight % MINUTES_PER_DAY, 60)
    return f"{hours:02d}:{minutes:02d}"


def is_valid_hhmm(value) -> bool:
    return isinstance(value, str) and bool(_HHMM_RE.match(value))


def parse_date(date_iso: str) -> date:
    """Parse "YYYY-MM-DD" as a civil calendar date (no time zone involved)."""
    match = _DATE_RE.match(date_iso) if isinstance(date_iso, str) else None
    if not match:
        raise FormatError(f"Invalid date '{date_iso}', expected YYYY-MM-DD")
    try:
        return date(int(match.group(1)), int(match.group(2)), int(match.group(3)))
    except ValueError as e:
        raise FormatError(f"Invalid date '{date_iso}': {e}") from e


def day_of_week_name(date_iso: str) -> str:
    """Capitalized English weekday name for a calendar date."""
    return DAY_NAMES[parse_date(date_iso).weekday()]


def add_minutes_utc_with_date(date_iso: str, hhmm_utc: str, minutes: int) -> Tuple[str, str]:
    """Add minutes to a UTC wall time on a date, carrying into the date.

    Returns the resulting ("YYYY-MM-DD", "HH:MM") pair.
    """
    start = datetime.combine(parse_date(date_iso), _to_time(hhmm_utc))
    try:
        end = start + timedelta(minutes=minutes)
    except (OverflowError, ValueError) as e:
        raise TimeConversionError(f"{date_iso} {hhmm_utc} plus {minutes} minutes is out of range") from e
    return end.date().isoformat(), end.strftime("%H:%M")


def add_minutes_utc(date_iso: str, hhmm_utc: str, minutes: int) -> str:
    """Add minutes to a UTC wall time. Only the HH:MM part is returned, so a
    result past midnight wraps without advancing the date."""
    return add_minutes_utc_with_date(date_iso, hhmm_utc, minutes)[1]


def resolve_zone(tz_name: str) -> ZoneInfo:
    if not tz_name or not isinstance(tz_name, str):
        raise TimeConversionError("Time zone is required")
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise TimeConversionError(f"Unknown time zone '{tz_name}'") from e


def is_valid_timezone(tz_name: str) -> bool:
    try:
        resolve_zone(tz_name)
    except TimeConversionError:
        return False
    return True


def local_to_utc(date_iso: str, hhmm_local: str, tz_name: str) -> Tuple[str, str]:
    """Convert a wall time on a date in tz_name to the UTC (date, HH:MM).

    The offset is resolved for that exact date, so daylight saving changes are
    honoured. Local times skipped by a DST gap cannot be converted.
    """
    zone = resolve_zone(tz_name)
    naive = datetime.combine(parse_date(date_iso), _to_time(hhmm_local))
    try:
        as_utc = naive.replace(tzinfo=zone).astimezone(timezone.utc)
        round_trip = as_utc.astimezone(zone).replace(tzinfo=None)
    except (OverflowError, ValueError) as e:
        raise TimeConversionError(f"{date_iso} {hhmm_local} in {tz_name} is out of range") from e

    if round_trip != naive:
        raise TimeConversionError(
            f"{date_iso} {hhmm_local} does not exist in {tz_name} (daylight saving gap)"
        )
    return as_utc.date().isoformat(), as_utc.strftime("%H:%M")


def utc_to_local(date_iso: str, hhmm_utc: str, tz_name: str) -> Tuple[str, str]:
    """Convert a UTC (date, HH:MM) to the wall time in tz_name."""
    zone = resolve_zone(tz_name)
    aware = datetime.combine(parse_date(date_iso), _to_time(hhmm_utc), tzinfo=timezone.utc)
    try:
        local = aware.astimezone(zone)
    except (OverflowError, ValueError) as e:
        raise TimeConversionError(f"{date_iso} {hhmm_utc} UTC is out of range in {tz_name}") from e
    return local.date().isoformat(), local.strftime("%H:%M")


def _to_time(hhmm: str) -> time:
    hours, minutes = divmod(to_minutes_since_midnight(hhmm), 60)
    return time(hours, minutes)
