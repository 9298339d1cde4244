# ruff: noqa: TC003
from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel, field_validator

from approvals.config import get_settings
from approvals.timeutils import end_of_day, is_date_only, parse_date, parse_datetime


def _bound(value: object, *, closing: bool) -> object:
    """Expand a bare date to the first or last instant of that day."""
    tz = ZoneInfo(get_settings().lock_timezone)
    if is_date_only(value):
        day = parse_date(value)
        if day is not None:
            return end_of_day(day, tz) if closing else parse_datetime(day, tz)
    parsed = parse_datetime(value, tz)
    return parsed if parsed is not None else value


class SubstituteAuthority(BaseModel):
    """A time-bounded grant letting ``agent`` act on ``principal``'s approvals."""

    id: int
    principal: int
    principal_name: str = ""
    agent: int | None = None
    agent_name: str = ""
    valid_from: datetime
    valid_to: datetime
    is_active: bool = True

    @field_validator("valid_from", mode="before")
    @classmethod
    def _open_bound(cls, value: object) -> object:
        return _bound(value, closing=False)

    @field_validator("valid_to", mode="before")
    @classmethod
    def _close_bound(cls, value: object) -> object:
        return _bound(value, closing=True)

    def is_valid_at(self, now: datetime) -> bool:
        """Valid iff active and ``valid_from <= now <= valid_to``."""
        return self.is_active and self.valid_from <= now <= self.valid_to


class SubstitutePending(BaseModel):
    """Payload of ``GET /substitute-authority/pending_requests/``."""

    authorities: list[SubstituteAuthority] = []
    leave_requests: list[dict] = []
    overtime_requests: list[dict] = []
