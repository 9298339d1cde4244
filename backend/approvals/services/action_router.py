"""Route a manager action on an incoming request to the right backend endpoint.

| Action         | DIRECT / INDIRECT              | SUBSTITUTE                         |
|----------------|--------------------------------|------------------------------------|
| approve/reject | type approval endpoint, as self | same endpoint, acting as delegate |
| override       | type ``override_decision``      | not permitted                      |
| cancel (leave) | ``manager-cancel``              | not permitted                      |
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from approvals.exceptions import ActionNotPermitted, AppError, ValidationFailure
from approvals.models.enums import ManagerAction, Provenance, RequestType

if TYPE_CHECKING:
    from approvals.models.enums import OverrideOutcome
    from approvals.schemas.request import IncomingRequest
    from approvals.services.hr_backend import HRBackend

logger = logging.getLogger(__name__)

_APPROVE_PATHS: dict[RequestType, str] = {
    RequestType.LEAVE: "/leave/requests/{id}/approve_reject/",
    RequestType.OVERTIME: "/overtime-requests/{id}/approve_reject/",
    RequestType.CARDLESS_ENTRY: "/cardless-entry-requests/{id}/approve/",
    RequestType.MEAL: "/meal-requests/{id}/toggle_order/",
}

_REJECT_PATHS: dict[RequestType, str] = {
    RequestType.LEAVE: "/leave/requests/{id}/approve_reject/",
    RequestType.OVERTIME: "/overtime-requests/{id}/approve_reject/",
    RequestType.CARDLESS_ENTRY: "/cardless-entry-requests/{id}/reject/",
    RequestType.MEAL: "/meal-requests/{id}/reject/",
}

_OVERRIDE_PATHS: dict[RequestType, str] = {
    RequestType.LEAVE: "/leave/requests/{id}/override_decision/",
    RequestType.OVERTIME: "/overtime-requests/{id}/override_decision/",
    RequestType.CARDLESS_ENTRY: "/cardless-entry-requests/{id}/override_decision/",
}

_CANCEL_PATHS: dict[RequestType, str] = {
    RequestType.LEAVE: "/leave/requests/{id}/manager-cancel/",
}

_PATHS: dict[ManagerAction, dict[RequestType, str]] = {
    ManagerAction.APPROVE: _APPROVE_PATHS,
    ManagerAction.REJECT: _REJECT_PATHS,
    ManagerAction.OVERRIDE: _OVERRIDE_PATHS,
    ManagerAction.CANCEL: _CANCEL_PATHS,
}

# Delegated approvals exist for the types a substitute authority can cover.
_SUBSTITUTE_TYPES = frozenset({RequestType.LEAVE, RequestType.OVERTIME, RequestType.CARDLESS_ENTRY})
_SUBSTITUTE_ACTIONS = frozenset({ManagerAction.APPROVE, ManagerAction.REJECT})

_REASON_REQUIRED = frozenset({ManagerAction.REJECT, ManagerAction.OVERRIDE, ManagerAction.CANCEL})

DEFAULT_APPROVAL_NOTE = "Approved"
DEFAULT_SUBSTITUTE_NOTE = "Approved as substitute"


@dataclass(frozen=True)
class RoutedCall:
    """A single backend POST: where it goes and what it carries."""

    path: str
    payload: dict[str, Any]


def require_reason(action: ManagerAction, reason: str | None) -> str | None:
    """Reject, override and cancel need a non-blank reason. Returns it stripped."""
    cleaned = reason.strip() if reason else ""
    if action in _REASON_REQUIRED and not cleaned:
        raise ValidationFailure(f"A reason is required to {action.value} a request")
    return cleaned or None


def has_route(request: IncomingRequest, action: ManagerAction) -> bool:
    """Whether some endpoint accepts ``action`` for this request's type and provenance."""
    if request.type not in _PATHS[action]:
        return False
    if request.provenance == Provenance.SUBSTITUTE:
        return action in _SUBSTITUTE_ACTIONS and request.type in _SUBSTITUTE_TYPES
    return True


def plan_action(
    request: IncomingRequest,
    action: ManagerAction,
    *,
    reason: str | None = None,
    notes: str | None = None,
    outcome: OverrideOutcome | None = None,
) -> RoutedCall:
    """Resolve the endpoint and body for ``action``. No I/O.

    Raises ``ValidationFailure`` for a missing reason or override outcome,
    and ``ActionNotPermitted`` when the provenance has no such capability.
    """
    reason = require_reason(action, reason)

    if not has_route(request, action):
        if request.provenance == Provenance.SUBSTITUTE:
            raise ActionNotPermitted(f"Substitute authority does not allow you to {action.value} this request")
        raise AppError(f"{request.type.value} requests do not support {action.value}", status_code=400)

    path = _PATHS[action][request.type].format(id=request.id)
    payload: dict[str, Any]

    if action == ManagerAction.APPROVE:
        default_note = DEFAULT_SUBSTITUTE_NOTE if request.provenance == Provenance.SUBSTITUTE else DEFAULT_APPROVAL_NOTE
        payload = {"action": "approve", "notes": notes or default_note}
    elif action == ManagerAction.REJECT:
        payload = {"action": "reject", "reason": reason}
    elif action == ManagerAction.OVERRIDE:
        if outcome is None:
            raise ValidationFailure("An override must say whether it approves or rejects")
        payload = {"action": outcome.value, "reason": reason}
    else:
        payload = {"reason": reason}

    if request.provenance == Provenance.SUBSTITUTE:
        payload["acting_as_substitute_for"] = request.owner_manager_id

    return RoutedCall(path=path, payload=payload)


async def dispatch_action(
    backend: HRBackend,
    request: IncomingRequest,
    action: ManagerAction,
    *,
    reason: str | None = None,
    notes: str | None = None,
    outcome: OverrideOutcome | None = None,
) -> tuple[RoutedCall, dict[str, Any]]:
    """Plan and send exactly one POST. Never retried; backend errors propagate."""
    call = plan_action(request, action, reason=reason, notes=notes, outcome=outcome)
    logger.info(
        "Routing %s on %s %d (%s) to %s",
        action.value,
        request.type.value,
        request.id,
        request.provenance,
        call.path,
    )
    response = await backend.post(call.path, call.payload)
    return call, response
