# ruff: noqa: TC003
from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel

from approvals.models.enums import DecisionAction, LockSource


class DecisionEntry(BaseModel):
    """One entry of the backend's append-only decision log."""

    id: int
    action: DecisionAction | str
    decision_maker_name: str = ""
    hierarchy_level: int | None = None
    acting_as_substitute_for_name: str | None = None
    reason: str = ""
    is_override: bool = False
    overridden_decision_id: int | None = None
    decision_date: datetime
    is_immutable: bool = False


class SupersededDecision(BaseModel):
    """The earlier decision an override replaced, as it was recorded."""

    id: int
    action: DecisionAction | str
    decision_maker_name: str
    decision_date: datetime


class TimelineEntry(DecisionEntry):
    """A decision entry with the decision it superseded resolved, if any."""

    supersedes: SupersededDecision | None = None


class DecisionTimeline(BaseModel):
    """Read-only projection of the decision log for one request."""

    content_type: int
    object_id: int
    entries: list[TimelineEntry] = []
    override_count: int = 0
    error: str | None = None


class TimeLockInfo(BaseModel):
    """Whether decisions on a request can still change."""

    is_locked: bool
    lock_date: date | None
    days_until_lock: int | None
    event_date: date | None
    source: LockSource
