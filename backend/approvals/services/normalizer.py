"""Map the four backend request shapes onto ``IncomingRequest``.

Leave, overtime, meal and cardless-entry serializers disagree on where they
put the employee, approver and date fields, and nested ``*_detail`` objects
are often missing. Each canonical field is read from an ordered list of
paths; the first non-empty value wins and strings default to ``""``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import UTC
from typing import TYPE_CHECKING, Any

from approvals.models.enums import RequestStatus, RequestType
from approvals.schemas.request import IncomingRequest
from approvals.timeutils import parse_date, parse_datetime, start_of_day

if TYPE_CHECKING:
    from datetime import tzinfo

logger = logging.getLogger(__name__)

Path = tuple[str, ...]

_TYPE_ALIASES: dict[str, RequestType] = {
    "CARDLESS": RequestType.CARDLESS_ENTRY,
}

_TEXT_PATHS: dict[str, tuple[Path, ...]] = {
    "employee_name": (("employee_name",), ("employee_detail", "full_name"), ("employee", "name")),
    "employee_department": (
        ("employee_department",),
        ("employee_detail", "department_name"),
        ("employee", "department"),
    ),
    "employee_position": (("employee_position",), ("employee_detail", "position_name")),
    "target_approver_name": (
        ("target_approver_name",),
        ("target_approver_detail", "full_name"),
        ("approver_target", "name"),
    ),
    "approved_by_name": (("approved_by_name",), ("approved_by_detail", "full_name")),
    "leave_type_name": (("leave_type_name",), ("request_type_detail", "name")),
    "rejection_reason": (("rejection_reason",),),
    "reason": (("reason",), ("description",)),
}

_ID_PATHS: dict[str, tuple[Path, ...]] = {
    "employee_id": (("employee_id",), ("employee", "id"), ("employee",), ("employee_detail", "id")),
    "target_approver_id": (
        ("target_approver_id",),
        ("target_approver",),
        ("target_approver_detail", "id"),
        ("approver_target", "id"),
    ),
}

# The manager whose queue owns the request. Delegated records carry it as principal_id.
_OWNER_PATHS: tuple[Path, ...] = (("principal_id",), *_ID_PATHS["target_approver_id"])

_TIME_FIELDS = ("start_time", "end_time", "check_in_time", "check_out_time")


def _lookup(raw: Mapping[str, Any], path: Path) -> Any:
    current: Any = raw
    for part in path:
        if not isinstance(current, Mapping):
            return None
        current = current.get(part)
    return current


def _first_text(raw: Mapping[str, Any], paths: tuple[Path, ...]) -> str:
    for path in paths:
        value = _lookup(raw, path)
        if isinstance(value, str) and value:
            return value
    return ""


def _as_int(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdecimal():
        return int(value)
    return None


def _first_id(raw: Mapping[str, Any], paths: tuple[Path, ...]) -> int | None:
    for path in paths:
        value = _as_int(_lookup(raw, path))
        if value is not None:
            return value
    return None


def normalize_type(value: Any, default: RequestType | None = None) -> RequestType | None:
    """Map a backend type code to ``RequestType``; ``CARDLESS`` becomes ``CARDLESS_ENTRY``."""
    if not isinstance(value, str) or not value:
        return default
    code = value.upper()
    if code in _TYPE_ALIASES:
        return _TYPE_ALIASES[code]
    try:
        return RequestType(code)
    except ValueError:
        return default


def normalize_status(value: Any) -> RequestStatus:
    """Unknown or missing statuses read as PENDING."""
    if isinstance(value, str):
        try:
            return RequestStatus(value.upper())
        except ValueError:
            pass
    return RequestStatus.PENDING


def normalize_request(
    raw: Mapping[str, Any],
    *,
    default_type: RequestType | None = None,
    tz: tzinfo = UTC,
) -> IncomingRequest | None:
    """Build the canonical read model from one backend record.

    Returns None, with a warning, only when the record has no usable
    ``(type, id)`` identity. Every other gap is filled with a default.
    """
    request_type = normalize_type(raw.get("type"), default_type)
    request_id = _as_int(raw.get("id"))
    if request_type is None or request_id is None:
        logger.warning("Skipping request without identity: type=%r id=%r", raw.get("type"), raw.get("id"))
        return None

    start_date = parse_date(raw.get("start_date"))
    request_date = parse_date(raw.get("date"))
    created_at = parse_datetime(raw.get("created_at"), tz)

    if start_date is not None:
        sort_date = start_of_day(start_date, tz)
    elif request_date is not None:
        sort_date = start_of_day(request_date, tz)
    else:
        sort_date = created_at

    raw_status = raw.get("status")
    times = {name: raw.get(name) if isinstance(raw.get(name), str) else None for name in _TIME_FIELDS}
    texts = {name: _first_text(raw, paths) for name, paths in _TEXT_PATHS.items()}
    level = raw.get("level")

    return IncomingRequest(
        type=request_type,
        id=request_id,
        status=normalize_status(raw_status),
        raw_status=raw_status if isinstance(raw_status, str) else None,
        employee_id=_first_id(raw, _ID_PATHS["employee_id"]),
        target_approver_id=_first_id(raw, _ID_PATHS["target_approver_id"]),
        owner_manager_id=_first_id(raw, _OWNER_PATHS),
        approved_at=parse_datetime(raw.get("approved_at"), tz),
        is_immutable=bool(raw.get("is_immutable")),
        lock_date=parse_date(raw.get("lock_date") or raw.get("immutable_date")),
        start_date=start_date,
        end_date=parse_date(raw.get("end_date")),
        request_date=request_date,
        created_at=created_at,
        sort_date=sort_date,
        level=level if isinstance(level, str) else None,
        raw=dict(raw),
        **texts,
        **times,
    )
