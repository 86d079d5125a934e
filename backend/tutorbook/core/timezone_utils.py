# backend/tutorbook/core/timezone_utils.py
"""
Date and time normalization for the reservation engine.

Every calendar day in the system is identified by a ``YYYY-MM-DD`` key built
from the LOCAL year, month and day components. Keys are never derived by
shifting an instant to UTC first, because that moves late-evening dates onto
the following day for users west of Greenwich.
"""

from datetime import date, datetime, time, timedelta
import re
from typing import Iterator, Optional, Union

import pytz

from .config import settings
from .enums import Weekday
from .exceptions import ValidationException

DateLike = Union[date, datetime, str]

_DATE_KEY_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::(\d{2}))?$")


def get_local_timezone(tz_name: Optional[str] = None) -> pytz.BaseTzInfo:
    """Return the configured local timezone (or ``tz_name`` when given)."""
    return pytz.timezone(tz_name or settings.local_timezone)


def local_today(tz_name: Optional[str] = None) -> date:
    """
    Get 'today' in the local timezone.

    Callers compute this once per evaluation and pass it down so that a single
    availability pass never straddles midnight.
    """
    return datetime.now(get_local_timezone(tz_name)).date()


def _to_local_date(value: datetime, tz_name: Optional[str] = None) -> date:
    if value.tzinfo is None:
        # Naive datetimes are already wall-clock local
        return value.date()
    return value.astimezone(get_local_timezone(tz_name)).date()


def parse_date_key(value: str) -> date:
    """
    Parse a strict ``YYYY-MM-DD`` string.

    Raises:
        ValidationException: If the value is not a real calendar date
    """
    if not isinstance(value, str) or not _DATE_KEY_RE.match(value.strip()):
        raise ValidationException(
            f"Invalid date '{value}'; expected YYYY-MM-DD",
            code="INVALID_DATE",
            details={"value": str(value)},
        )
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValidationException(
            f"Invalid date '{value}'",
            code="INVALID_DATE",
            details={"value": value},
        ) from exc


def to_local_date(value: DateLike, tz_name: Optional[str] = None) -> date:
    """Normalize a date, datetime or date/datetime string to a local ``date``."""
    if isinstance(value, datetime):
        return _to_local_date(value, tz_name)
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        candidate = value.strip()
        if _DATE_KEY_RE.match(candidate):
            return parse_date_key(candidate)
        try:
            parsed = datetime.fromisoformat(candidate.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ValidationException(
                f"Invalid date '{value}'",
                code="INVALID_DATE",
                details={"value": value},
            ) from exc
        return _to_local_date(parsed, tz_name)
    raise ValidationException(
        f"Unsupported date value of type {type(value).__name__}",
        code="INVALID_DATE",
    )


def to_date_key(value: DateLike, tz_name: Optional[str] = None) -> str:
    """
    Canonical ``YYYY-MM-DD`` key for any date-like input.

    Args:
        value: ``date``, ``datetime`` (naive = local) or string
        tz_name: Optional override of the configured local timezone

    Returns:
        Zero-padded local date key
    """
    local = to_local_date(value, tz_name)
    return f"{local.year:04d}-{local.month:02d}-{local.day:02d}"


def same_day(a: DateLike, b: DateLike, tz_name: Optional[str] = None) -> bool:
    return to_date_key(a, tz_name) == to_date_key(b, tz_name)


def parse_time_of_day(value: Union[str, time]) -> time:
    """
    Parse a 24-hour ``HH:MM`` time. ``HH:MM:SS`` is accepted and the seconds
    are dropped.
    """
    if isinstance(value, time):
        return value.replace(second=0, microsecond=0)
    match = _TIME_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValidationException(
            f"Invalid time '{value}'; expected HH:MM",
            code="INVALID_TIME",
            details={"value": str(value)},
        )
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 23 or minute > 59:
        raise ValidationException(
            f"Invalid time '{value}'; expected HH:MM",
            code="INVALID_TIME",
            details={"value": value},
        )
    return time(hour, minute)


def format_time_of_day(value: Union[str, time]) -> str:
    parsed = parse_time_of_day(value)
    return f"{parsed.hour:02d}:{parsed.minute:02d}"


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield each calendar day from ``start`` to ``end`` inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def weekday_name(value: date) -> Weekday:
    return Weekday.from_index(value.weekday())
