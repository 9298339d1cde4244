from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from approvals.exceptions import AppError, BackendError
from approvals.schemas.auth import ViewerContext

if TYPE_CHECKING:
    from approvals.services.hr_backend import HRBackend

logger = logging.getLogger(__name__)


def _is_direct(subordinate: dict[str, Any], viewer_id: int) -> bool:
    """Direct when the viewer is the line manager or one of the primary managers."""
    if subordinate.get("reports_to") == viewer_id:
        return True
    managers = subordinate.get("primary_managers") or []
    return any(isinstance(m, dict) and m.get("id") == viewer_id for m in managers)


def build_viewer(me: dict[str, Any], subordinates: list[dict[str, Any]]) -> ViewerContext:
    """Assemble the viewer from ``/employees/me/`` and ``/employees/subordinates/``."""
    viewer_id = me.get("id")
    if not isinstance(viewer_id, int):
        raise AppError("Could not identify the current employee", status_code=401)

    full_name = me.get("full_name") or f"{me.get('first_name') or ''} {me.get('last_name') or ''}".strip()
    department = me.get("department_name") or ""
    if not department and isinstance(me.get("department"), dict):
        department = me["department"].get("name") or ""

    ids = [s["id"] for s in subordinates if isinstance(s.get("id"), int)]
    direct = [s["id"] for s in subordinates if isinstance(s.get("id"), int) and _is_direct(s, viewer_id)]

    return ViewerContext(
        employee_id=viewer_id,
        full_name=full_name,
        department=department,
        permissions=frozenset(me.get("all_permissions") or ()),
        direct_ids=frozenset(direct),
        extended_ids=frozenset(ids),
    )


async def resolve_viewer(backend: HRBackend) -> ViewerContext:
    """Load the viewer. Without subordinates the team streams fall back to the backend's level hints."""
    me = await backend.get_me()
    try:
        subordinates = await backend.list_subordinates()
    except BackendError:
        logger.warning("Subordinate list unavailable for employee %s", me.get("id"), exc_info=True)
        subordinates = []
    return build_viewer(me, subordinates)
