# intellibook/utils/time_utils.py
"""
Wall-clock helpers. Minutes from midnight are the common currency for all
interval math in the scheduler.
"""
import re
from datetime import date, datetime
from typing import Optional

from intellibook.core.exceptions import FormatError

_STRICT_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::[0-5]\d)?$")
_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

DEFAULT_TIME = "09:00"


def parse_time_strict(time_value) -> int:
    """
    Parse "HH:MM" or "HH:MM:SS" into minutes from midnight.

    Raises:
        FormatError: hour outside 00-23, minute outside 00-59, or any other shape
    """
    match = _STRICT_TIME_RE.match(str(time_value or ""))
    if not match:
        raise FormatError("time must be in HH:MM format")
    return int(match.group(1)) * 60 + int(match.group(2))


def parse_time_lenient(time_value, default: str = DEFAULT_TIME) -> int:
    """Read-path parser: bad stored values fall back to the default instead of failing"""
    try:
        hours, minutes = str(time_value).split(":")[:2]
        return int(hours) * 60 + int(minutes)
    except (TypeError, ValueError):
        hours, minutes = default.split(":")[:2]
        return int(hours) * 60 + int(minutes)


def format_minutes(minutes_from_midnight) -> str:
    safe_minutes = max(0, int(minutes_from_midnight or 0))
    return f"{safe_minutes // 60:02d}:{safe_minutes % 60:02d}"


def format_human(minutes_from_midnight) -> str:
    """570 -> '9:30 AM'"""
    safe_minutes = max(0, int(minutes_from_midnight or 0))
    hours = (safe_minutes // 60) % 24
    minutes = safe_minutes % 60
    suffix = "PM" if hours >= 12 else "AM"
    hour_12 = (hours + 11) % 12 + 1
    return f"{hour_12}:{minutes:02d} {suffix}"


def parse_date_strict(date_value) -> date:
    """Accept a date object or a 'YYYY-MM-DD' string"""
    if isinstance(date_value, datetime):
        return date_value.date()
    if isinstance(date_value, date):
        return date_value
    value = str(date_value or "")
    if not _DATE_RE.match(value):
        raise FormatError("date must be in YYYY-MM-DD format")
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise FormatError("date must be in YYYY-MM-DD format")


def normalize_time(time_value) -> str:
    """Strictly parse then re-format, dropping any seconds component"""
    return format_minutes(parse_time_strict(time_value))


def safe_time(time_value: Optional[str]) -> str:
    return format_minutes(parse_time_lenient(time_value))
