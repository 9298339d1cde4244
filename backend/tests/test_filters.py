"""Tests for console filtering of the incoming aggregate."""

from __future__ import annotations

from approvals.models.enums import Provenance, RequestStatus, RequestType
from approvals.schemas.request import IncomingRequest
from approvals.services.filters import IncomingFilter, effective_status, filter_incoming

ITEMS = [
    IncomingRequest(type=RequestType.LEAVE, id=1, employee_name="Deniz Direct", provenance=Provenance.DIRECT),
    IncomingRequest(
        type=RequestType.MEAL,
        id=2,
        employee_name="Ece Primary",
        status=RequestStatus.ORDERED,
        provenance=Provenance.DIRECT,
    ),
    IncomingRequest(
        type=RequestType.LEAVE,
        id=3,
        employee_name="Mert Indirect",
        status=RequestStatus.CANCELLED,
        provenance=Provenance.INDIRECT,
    ),
    IncomingRequest(
        type=RequestType.OVERTIME,
        id=4,
        employee_name="Deniz Direct",
        status=RequestStatus.POTENTIAL,
        provenance=Provenance.DIRECT,
    ),
    IncomingRequest(
        type=RequestType.OVERTIME,
        id=5,
        employee_name="Selin Covered",
        status=RequestStatus.APPROVED,
        provenance=Provenance.SUBSTITUTE,
    ),
]


def _ids(criteria: IncomingFilter) -> list[int]:
    return [item.id for item in filter_incoming(ITEMS, criteria)]


def test_default_view_hides_potential() -> None:
    assert _ids(IncomingFilter()) == [1, 2, 3, 5]


def test_potential_only_when_asked_for() -> None:
    assert _ids(IncomingFilter(status="POTENTIAL")) == [4]


def test_status_groups() -> None:
    assert effective_status(RequestStatus.ORDERED) == RequestStatus.APPROVED
    assert effective_status(RequestStatus.CANCELLED) == RequestStatus.REJECTED
    assert _ids(IncomingFilter(status="APPROVED")) == [2, 5]
    assert _ids(IncomingFilter(status="REJECTED")) == [3]
    assert _ids(IncomingFilter(status="PENDING")) == [1]


def test_source_and_type() -> None:
    assert _ids(IncomingFilter(source="SUBSTITUTE")) == [5]
    assert _ids(IncomingFilter(source="DIRECT", type="LEAVE")) == [1]
    assert _ids(IncomingFilter(type="OVERTIME")) == [5]


def test_name_search_ignores_case() -> None:
    assert _ids(IncomingFilter(text="deniz")) == [1]
    assert _ids(IncomingFilter(text="DENIZ", status="POTENTIAL")) == [4]
    assert _ids(IncomingFilter(text="nobody")) == []
