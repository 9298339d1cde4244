from __future__ import annotations

from typing import TYPE_CHECKING

from approvals.models.enums import Provenance

if TYPE_CHECKING:
    from collections.abc import Iterable, Set
    from datetime import datetime

    from approvals.schemas.request import IncomingRequest
    from approvals.schemas.substitute import SubstituteAuthority


def classify_provenance(
    request: IncomingRequest,
    direct_ids: Set[int],
    extended_ids: Set[int],
    authorities: Iterable[SubstituteAuthority],
    now: datetime,
) -> Provenance | None:
    """Say why ``request`` is visible to the viewer, or None if it is not.

    The viewer's own hierarchy outranks a delegated one: an employee who is
    both a subordinate and covered by a substitute authority is DIRECT or
    INDIRECT, never SUBSTITUTE.
    """
    if request.employee_id is not None:
        if request.employee_id in direct_ids:
            return Provenance.DIRECT
        if request.employee_id in extended_ids:
            return Provenance.INDIRECT

    if request.owner_manager_id is not None and find_authority(request, authorities, now) is not None:
        return Provenance.SUBSTITUTE

    return None


def provenance_from_level(level: str | None) -> Provenance:
    """Fallback for backend-scoped streams: ``level == 'direct'`` is DIRECT, anything else INDIRECT."""
    return Provenance.DIRECT if level == "direct" else Provenance.INDIRECT


def find_authority(
    request: IncomingRequest,
    authorities: Iterable[SubstituteAuthority],
    now: datetime,
) -> SubstituteAuthority | None:
    """The currently valid authority that covers ``request``'s owning manager."""
    for authority in authorities:
        if authority.principal == request.owner_manager_id and authority.is_valid_at(now):
            return authority
    return None
