# ruff: noqa: TC003
from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING
from zoneinfo import ZoneInfo

from approvals.config import get_settings
from approvals.exceptions import AppError, ValidationFailure
from approvals.models.enums import ManagerAction, RequestType
from approvals.schemas.request import (
    ActionResult,
    IncomingListResponse,
    IncomingRequest,
    RequestDetailResponse,
)
from approvals.services.action_router import dispatch_action, require_reason
from approvals.services.aggregator import IncomingAggregate, IncomingStore, count_incoming, find_request
from approvals.services.filters import IncomingFilter, filter_incoming
from approvals.services.history import content_type_for, load_timeline
from approvals.services.state_machine import available_actions, check_transition
from approvals.services.time_lock import evaluate_time_lock

if TYPE_CHECKING:
    from approvals.schemas.auth import ViewerContext
    from approvals.schemas.decision import DecisionTimeline
    from approvals.schemas.request import ActionPayload
    from approvals.services.hr_backend import HRBackend

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _can_override(viewer: ViewerContext) -> bool:
    return viewer.has_permission(get_settings().override_permission)


async def _load_aggregate(backend: HRBackend, viewer: ViewerContext, now: datetime) -> IncomingAggregate:
    store = IncomingStore()
    await store.refresh(backend)
    return store.aggregate(viewer, now, ZoneInfo(get_settings().lock_timezone))


async def _get_incoming_or_404(
    backend: HRBackend,
    viewer: ViewerContext,
    request_type: RequestType,
    request_id: int,
    now: datetime,
) -> IncomingRequest:
    """Find a request in the viewer's queue. Raises 404 if it is not visible to them."""
    aggregate = await _load_aggregate(backend, viewer, now)
    request = find_request(aggregate.items, request_type, request_id)
    if request is None:
        raise AppError("Request not found in your incoming queue", status_code=404)
    return request


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


async def list_incoming(
    backend: HRBackend,
    viewer: ViewerContext,
    criteria: IncomingFilter,
    now: datetime | None = None,
) -> IncomingListResponse:
    """Aggregate all three streams, then filter. Counts describe the unfiltered aggregate."""
    aggregate = await _load_aggregate(backend, viewer, now or datetime.now(UTC))
    items = filter_incoming(aggregate.items, criteria)
    return IncomingListResponse(
        items=items,
        total=len(items),
        counts=count_incoming(aggregate.items),
        authorities=aggregate.authorities,
        failed_sources=aggregate.failed_sources,
    )


async def get_request_detail(
    backend: HRBackend,
    viewer: ViewerContext,
    request_type: RequestType,
    request_id: int,
    now: datetime | None = None,
) -> RequestDetailResponse:
    """One request with a freshly evaluated time lock, its offered actions and its history."""
    now = now or datetime.now(UTC)
    request = await _get_incoming_or_404(backend, viewer, request_type, request_id, now)
    lock = evaluate_time_lock(request, now)

    content_type = content_type_for(request_type)
    history = await load_timeline(backend, content_type, request_id) if content_type is not None else None

    return RequestDetailResponse(
        request=request,
        time_lock=lock,
        available_actions=available_actions(request, can_override=_can_override(viewer), lock=lock),
        history=history,
    )


async def get_request_history(
    backend: HRBackend,
    viewer: ViewerContext,
    request_type: RequestType,
    request_id: int,
    now: datetime | None = None,
) -> DecisionTimeline:
    """Decision timeline keyed by ``(content_type, object_id)``, for a request in the viewer's queue."""
    content_type = content_type_for(request_type)
    if content_type is None:
        raise AppError(f"{request_type.value} requests have no decision history", status_code=404)
    await _get_incoming_or_404(backend, viewer, request_type, request_id, now or datetime.now(UTC))
    return await load_timeline(backend, content_type, request_id)


async def perform_action(
    backend: HRBackend,
    viewer: ViewerContext,
    request_type: RequestType,
    request_id: int,
    action: ManagerAction,
    payload: ActionPayload,
    now: datetime | None = None,
) -> ActionResult:
    """Validate and route one manager action.

    1. Validate the payload locally (reason, override outcome). No network yet.
    2. Re-read the request from the backend; local state is never trusted.
    3. Evaluate the time lock for ``now``.
    4. Check the transition against status, authority and lock.
    5. Send exactly one POST to the routed endpoint.

    The caller refetches afterwards instead of patching its copy.
    """
    reason = require_reason(action, payload.reason)
    if action == ManagerAction.OVERRIDE and payload.decision is None:
        raise ValidationFailure("An override must say whether it approves or rejects")

    now = now or datetime.now(UTC)
    request = await _get_incoming_or_404(backend, viewer, request_type, request_id, now)
    lock = evaluate_time_lock(request, now)
    check_transition(request, action, can_override=_can_override(viewer), lock=lock)

    call, response = await dispatch_action(
        backend,
        request,
        action,
        reason=reason,
        notes=payload.notes,
        outcome=payload.decision,
    )
    logger.info("Employee %d %s %s %d", viewer.employee_id, action.value, request_type.value, request_id)

    return ActionResult(
        request_type=request_type,
        request_id=request_id,
        action=action,
        provenance=request.provenance,
        endpoint=call.path,
        response=response,
    )
