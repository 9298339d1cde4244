"""Lenient parsing of the date and datetime strings the HR backend sends."""

from __future__ import annotations

from datetime import UTC, date, datetime, time, timedelta
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import tzinfo

# Lock and delegation days close on the last whole second.
_END_OF_DAY = time(23, 59, 59)


def parse_date(value: object) -> date | None:
    """Return the calendar date in ``value``, or None when it has none."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value:
        return None
    try:
        return date.fromisoformat(value[:10])
    except ValueError:
        return None


def parse_datetime(value: object, tz: tzinfo = UTC) -> datetime | None:
    """Parse an ISO timestamp. Naive values and bare dates are read in ``tz``."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed


def is_date_only(value: object) -> bool:
    """True for a bare date, either as an object or as a ``YYYY-MM-DD`` string."""
    if isinstance(value, datetime):
        return False
    if isinstance(value, date):
        return True
    return isinstance(value, str) and len(value) == 10 and parse_date(value) is not None


def start_of_day(day: date, tz: tzinfo = UTC) -> datetime:
    return datetime.combine(day, time.min, tzinfo=tz)


def end_of_day(day: date, tz: tzinfo = UTC) -> datetime:
    return datetime.combine(day, _END_OF_DAY, tzinfo=tz)


def add_days(day: date, days: int) -> date:
    return day + timedelta(days=days)
