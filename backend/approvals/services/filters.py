from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from approvals.models.enums import RequestStatus

if TYPE_CHECKING:
    from collections.abc import Iterable

    from approvals.schemas.request import IncomingRequest

ALL = "ALL"

# Type-specific statuses grouped with the generic outcome they stand for.
_STATUS_GROUPS: dict[RequestStatus, RequestStatus] = {
    RequestStatus.ORDERED: RequestStatus.APPROVED,
    RequestStatus.CANCELLED: RequestStatus.REJECTED,
}


def effective_status(status: RequestStatus) -> RequestStatus:
    """Fold ORDERED into APPROVED and CANCELLED into REJECTED."""
    return _STATUS_GROUPS.get(status, status)


@dataclass(frozen=True)
class IncomingFilter:
    """Console filter selection. ``ALL`` disables a dimension."""

    source: str = ALL
    type: str = ALL
    status: str = ALL
    text: str = ""


def _matches(item: IncomingRequest, criteria: IncomingFilter) -> bool:
    if criteria.source != ALL and item.provenance != criteria.source:
        return False
    if criteria.type != ALL and item.type != criteria.type:
        return False
    if criteria.status == ALL:
        # POTENTIAL overtime is system-inferred, not something to act on.
        if item.status == RequestStatus.POTENTIAL:
            return False
    elif effective_status(item.status) != criteria.status:
        return False
    if criteria.text:
        return criteria.text.casefold() in item.employee_name.casefold()
    return True


def filter_incoming(items: Iterable[IncomingRequest], criteria: IncomingFilter) -> list[IncomingRequest]:
    """Apply source, type, status and name filters, keeping order."""
    return [item for item in items if _matches(item, criteria)]
