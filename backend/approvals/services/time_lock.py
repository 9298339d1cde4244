"""Fiscal-close time lock.

A request's decisions become immutable at the end of its lock day. The lock
day is the backend's ``lock_date``/``immutable_date`` (fiscal-period based)
when present, otherwise the event date plus ``lock_fallback_days``. The
result depends on ``now``, so it is recomputed on every call.
"""

from __future__ import annotations

import math
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from approvals.config import get_settings
from approvals.models.enums import LockSource
from approvals.schemas.decision import TimeLockInfo
from approvals.timeutils import add_days, end_of_day

if TYPE_CHECKING:
    from datetime import tzinfo

    from approvals.schemas.request import IncomingRequest

_ONE_DAY = timedelta(days=1)


def evaluate_time_lock(
    request: IncomingRequest,
    now: datetime | None = None,
    *,
    fallback_days: int | None = None,
    tz: tzinfo | None = None,
) -> TimeLockInfo:
    """Compute ``is_locked``, the lock date and the whole days left before it."""
    settings = get_settings()
    now = now or datetime.now(UTC)
    tz = tz or ZoneInfo(settings.lock_timezone)
    fallback_days = settings.lock_fallback_days if fallback_days is None else fallback_days

    event_date = request.event_date
    if request.lock_date is not None:
        lock_date, source = request.lock_date, LockSource.EXPLICIT
    elif event_date is not None:
        lock_date, source = add_days(event_date, fallback_days), LockSource.FALLBACK
    else:
        return TimeLockInfo(
            is_locked=request.is_immutable,
            lock_date=None,
            days_until_lock=None,
            event_date=None,
            source=LockSource.NONE,
        )

    lock_at = end_of_day(lock_date, tz)
    is_locked = request.is_immutable or now >= lock_at
    days_until_lock = 0 if is_locked else max(math.ceil((lock_at - now) / _ONE_DAY), 0)

    return TimeLockInfo(
        is_locked=is_locked,
        lock_date=lock_date,
        days_until_lock=days_until_lock,
        event_date=event_date,
        source=source,
    )
