# ruff: noqa: TC001, TC003
from __future__ import annotations

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, Field

from approvals.models.enums import (
    ManagerAction,
    OverrideOutcome,
    Provenance,
    RequestStatus,
    RequestType,
    SourceStream,
)
from approvals.schemas.decision import DecisionTimeline, TimeLockInfo
from approvals.schemas.substitute import SubstituteAuthority

# ---------------------------------------------------------------------------
# Read model
# ---------------------------------------------------------------------------


class IncomingRequest(BaseModel):
    """Canonical read model for leave, overtime, meal and cardless-entry requests."""

    type: RequestType
    id: int
    status: RequestStatus = RequestStatus.PENDING
    raw_status: str | None = None

    employee_id: int | None = None
    employee_name: str = ""
    employee_department: str = ""
    employee_position: str = ""

    target_approver_id: int | None = None
    target_approver_name: str = ""
    owner_manager_id: int | None = None

    approved_by_name: str = ""
    approved_at: datetime | None = None
    rejection_reason: str = ""
    reason: str = ""
    leave_type_name: str = ""

    is_immutable: bool = False
    lock_date: date | None = None

    start_date: date | None = None
    end_date: date | None = None
    request_date: date | None = None
    start_time: str | None = None
    end_time: str | None = None
    check_in_time: str | None = None
    check_out_time: str | None = None
    created_at: datetime | None = None
    sort_date: datetime | None = None

    provenance: Provenance | None = None
    principal_name: str = ""
    level: str | None = None

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @property
    def key(self) -> tuple[RequestType, int]:
        """Identity key, unique across the system."""
        return (self.type, self.id)

    @property
    def event_date(self) -> date | None:
        """The day the request is about, used by the time-lock fallback."""
        return self.start_date or self.request_date


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ActionPayload(BaseModel):
    """Request body for approve/reject/override/cancel actions."""

    reason: str | None = Field(default=None, max_length=1000)
    notes: str | None = Field(default=None, max_length=1000)
    decision: OverrideOutcome | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class IncomingCounts(BaseModel):
    """Badge counts for the source filter bar."""

    all: int = 0
    direct: int = 0
    indirect: int = 0
    substitute: int = 0
    pending: int = 0


class IncomingListResponse(BaseModel):
    """Filtered incoming requests plus the context the console shows around them."""

    items: list[IncomingRequest]
    total: int
    counts: IncomingCounts
    authorities: list[SubstituteAuthority]
    failed_sources: list[SourceStream]


class RequestDetailResponse(BaseModel):
    """A single incoming request with its lock state, offered actions and history."""

    request: IncomingRequest
    time_lock: TimeLockInfo
    available_actions: list[ManagerAction]
    history: DecisionTimeline | None


class ActionResult(BaseModel):
    """Outcome of a routed action. Clients refetch the aggregate afterwards."""

    request_type: RequestType
    request_id: int
    action: ManagerAction
    provenance: Provenance | None
    endpoint: str
    response: dict[str, Any]
    refetch_required: bool = True
