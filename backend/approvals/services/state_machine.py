"""Legal manager actions per request status.

    PENDING   -> APPROVED | REJECTED
    REJECTED  -> APPROVED              (re-approval, recorded as a new decision)
    APPROVED  -> OVERRIDDEN | CANCELLED (manager-cancel, leave only)
    REJECTED  -> OVERRIDDEN
    ORDERED   -> OVERRIDDEN

Overrides need system-wide authority. Nothing that moves a resolved request
is allowed once its time lock has passed. Every check runs before any
network call.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from approvals.exceptions import ActionNotPermitted, ConflictError
from approvals.models.enums import ManagerAction, Provenance, RequestStatus, RequestType
from approvals.services.action_router import has_route

if TYPE_CHECKING:
    from approvals.schemas.decision import TimeLockInfo
    from approvals.schemas.request import IncomingRequest

_ALLOWED: dict[RequestStatus, frozenset[ManagerAction]] = {
    RequestStatus.PENDING: frozenset({ManagerAction.APPROVE, ManagerAction.REJECT}),
    RequestStatus.APPROVED: frozenset({ManagerAction.OVERRIDE, ManagerAction.CANCEL}),
    RequestStatus.ORDERED: frozenset({ManagerAction.OVERRIDE}),
    RequestStatus.REJECTED: frozenset({ManagerAction.APPROVE, ManagerAction.OVERRIDE}),
    RequestStatus.CANCELLED: frozenset(),
    RequestStatus.POTENTIAL: frozenset(),
}

_RESOLVED = frozenset(
    {RequestStatus.APPROVED, RequestStatus.ORDERED, RequestStatus.REJECTED, RequestStatus.CANCELLED}
)


def _conflict_message(request: IncomingRequest, action: ManagerAction) -> str:
    if request.status == RequestStatus.POTENTIAL:
        return "Potential overtime is not an actionable request"
    if action == ManagerAction.OVERRIDE and request.status == RequestStatus.PENDING:
        return "Cannot override a decision that was never made"
    return f"Cannot {action.value} a request that is {request.status.value.lower()}"


def check_transition(
    request: IncomingRequest,
    action: ManagerAction,
    *,
    can_override: bool,
    lock: TimeLockInfo,
) -> None:
    """Raise unless ``action`` is legal for ``request`` right now.

    Status is checked first, so an override of a PENDING request is refused
    whatever the caller's authority.
    """
    if action not in _ALLOWED[request.status]:
        raise ConflictError(_conflict_message(request, action))

    if action == ManagerAction.CANCEL and request.type != RequestType.LEAVE:
        raise ActionNotPermitted("Only approved leave can be cancelled by a manager")

    if action in (ManagerAction.OVERRIDE, ManagerAction.CANCEL) and request.provenance == Provenance.SUBSTITUTE:
        raise ActionNotPermitted(f"Substitute authority does not allow you to {action.value} decisions")

    if action == ManagerAction.OVERRIDE and not can_override:
        raise ActionNotPermitted("Overriding a decision requires system-wide authority")

    if request.status in _RESOLVED and lock.is_locked:
        raise ActionNotPermitted("The decision is locked by fiscal close and can no longer change")


def available_actions(
    request: IncomingRequest,
    *,
    can_override: bool,
    lock: TimeLockInfo,
) -> list[ManagerAction]:
    """Actions to offer for ``request``; anything not listed would be refused."""
    offered: list[ManagerAction] = []
    for action in ManagerAction:
        if not has_route(request, action):
            continue
        try:
            check_transition(request, action, can_override=can_override, lock=lock)
        except (ConflictError, ActionNotPermitted):
            continue
        offered.append(action)
    return offered
