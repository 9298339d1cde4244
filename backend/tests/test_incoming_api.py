"""End-to-end tests for the /incoming endpoints against an in-memory HR backend."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import httpx
import pytest
from httpx import ASGITransport, AsyncClient

from approvals.api.deps import get_http_client
from approvals.main import app

if TYPE_CHECKING:
    from approvals.services.hr_backend import InMemoryHRBackend

FAR_FUTURE = "2099-02-01"
LONG_AGO = "2000-01-01"

HISTORY: list[dict[str, Any]] = [
    {"id": 21, "action": "APPROVED", "decision_maker_name": "Ayse Manager", "decision_date": "2099-01-02T09:00:00Z"},
]


@pytest.fixture(autouse=True)
def _seed(hr_backend: InMemoryHRBackend) -> None:
    hr_backend.team_requests = [
        {"type": "LEAVE", "id": 1, "employee_id": 1, "employee_name": "Deniz Direct", "start_date": "2099-01-10"},
        {
            "type": "LEAVE",
            "id": 2,
            "employee_id": 3,
            "employee_name": "Mert Indirect",
            "status": "APPROVED",
            "start_date": FAR_FUTURE,
        },
        {
            "type": "LEAVE",
            "id": 6,
            "employee_id": 1,
            "employee_name": "Deniz Direct",
            "status": "APPROVED",
            "start_date": LONG_AGO,
        },
        {"type": "OVERTIME", "id": 7, "employee_id": 2, "status": "POTENTIAL", "date": "2099-01-01"},
    ]
    hr_backend.substitute_pending = {
        "authorities": [
            {
                "id": 1,
                "principal": 200,
                "principal_name": "Peer Manager",
                "valid_from": LONG_AGO,
                "valid_to": "2100-12-31",
            }
        ],
        "leave_requests": [
            {
                "id": 4,
                "employee_id": 9,
                "employee_name": "Selin Covered",
                "principal_id": 200,
                "start_date": "2099-01-05",
            }
        ],
        "overtime_requests": [],
    }
    hr_backend.decision_history[(31, 2)] = HISTORY


def _grant_override(hr_backend: InMemoryHRBackend) -> None:
    hr_backend.me["all_permissions"] = ["SYSTEM_FULL_ACCESS"]


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------


async def test_list_merges_and_orders(async_client: AsyncClient) -> None:
    response = await async_client.get("/incoming")
    assert response.status_code == 200
    data = response.json()

    assert [(item["type"], item["id"]) for item in data["items"]] == [
        ("LEAVE", 2),
        ("LEAVE", 1),
        ("LEAVE", 4),
        ("LEAVE", 6),
    ]
    assert [item["provenance"] for item in data["items"]] == ["INDIRECT", "DIRECT", "SUBSTITUTE", "DIRECT"]
    assert data["items"][2]["principal_name"] == "Peer Manager"
    assert data["total"] == 4
    assert data["counts"] == {"all": 4, "direct": 3, "indirect": 1, "substitute": 1, "pending": 2}
    assert [a["principal_name"] for a in data["authorities"]] == ["Peer Manager"]
    assert data["failed_sources"] == []
    assert "raw" not in data["items"][0]


async def test_list_filters(async_client: AsyncClient) -> None:
    substitute = (await async_client.get("/incoming", params={"source": "SUBSTITUTE"})).json()
    assert [item["id"] for item in substitute["items"]] == [4]
    # Counts describe the whole queue, not the filtered view.
    assert substitute["counts"]["all"] == 4

    potential = (await async_client.get("/incoming", params={"status": "POTENTIAL"})).json()
    assert [item["id"] for item in potential["items"]] == [7]

    search = (await async_client.get("/incoming", params={"q": "  deniz "})).json()
    assert [item["id"] for item in search["items"]] == [1, 6]


async def test_list_rejects_unknown_filter(async_client: AsyncClient) -> None:
    response = await async_client.get("/incoming", params={"source": "EVERYONE"})
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"


async def test_list_reports_failed_source(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    hr_backend.fail("get_substitute_pending")
    response = await async_client.get("/incoming")
    assert response.status_code == 200
    data = response.json()
    assert data["failed_sources"] == ["SUBSTITUTE"]
    assert [item["id"] for item in data["items"]] == [2, 1, 6]


async def test_missing_bearer_token_is_unauthorized() -> None:
    async with httpx.AsyncClient(base_url="http://hr.test") as hr_client:
        app.dependency_overrides[get_http_client] = lambda: hr_client
        try:
            async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
                response = await client.get("/incoming")
        finally:
            app.dependency_overrides.clear()
    assert response.status_code == 401
    assert response.json()["detail"] == "Bearer token required"


# ---------------------------------------------------------------------------
# Detail and history
# ---------------------------------------------------------------------------


async def test_detail_of_open_approved_leave(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    _grant_override(hr_backend)
    response = await async_client.get("/incoming/LEAVE/2")
    assert response.status_code == 200
    data = response.json()

    assert data["request"]["employee_name"] == "Mert Indirect"
    assert data["time_lock"]["is_locked"] is False
    assert data["time_lock"]["source"] == "FALLBACK"
    assert data["available_actions"] == ["override", "cancel"]
    assert [entry["id"] for entry in data["history"]["entries"]] == [21]
    assert data["history"]["error"] is None


async def test_detail_of_locked_leave(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    _grant_override(hr_backend)
    data = (await async_client.get("/incoming/LEAVE/6")).json()
    assert data["time_lock"]["is_locked"] is True
    assert data["time_lock"]["days_until_lock"] == 0
    assert data["available_actions"] == []


async def test_detail_with_history_failure(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    hr_backend.fail("get_decision_history")
    response = await async_client.get("/incoming/LEAVE/2")
    assert response.status_code == 200
    assert response.json()["history"]["error"] == "Decision history could not be loaded"


async def test_detail_of_meal_has_no_history(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    hr_backend.team_requests.append({"type": "MEAL", "id": 8, "employee_id": 2, "date": "2099-01-03"})
    data = (await async_client.get("/incoming/MEAL/8")).json()
    assert data["history"] is None
    assert data["available_actions"] == ["approve", "reject"]


async def test_detail_not_in_queue(async_client: AsyncClient) -> None:
    response = await async_client.get("/incoming/LEAVE/999")
    assert response.status_code == 404


async def test_history_endpoint(async_client: AsyncClient) -> None:
    data = (await async_client.get("/incoming/LEAVE/2/history")).json()
    assert data["content_type"] == 31
    assert data["object_id"] == 2
    assert data["override_count"] == 0

    response = await async_client.get("/incoming/MEAL/8/history")
    assert response.status_code == 404


async def test_history_outside_queue_is_not_found(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    hr_backend.decision_history[(31, 999)] = HISTORY
    response = await async_client.get("/incoming/LEAVE/999/history")
    assert response.status_code == 404


# ---------------------------------------------------------------------------
# Actions
# ---------------------------------------------------------------------------


async def test_approve_pending(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    response = await async_client.post("/incoming/LEAVE/1/approve")
    assert response.status_code == 200
    data = response.json()
    assert data["endpoint"] == "/leave/requests/1/approve_reject/"
    assert data["provenance"] == "DIRECT"
    assert data["refetch_required"] is True
    assert hr_backend.posted == [("/leave/requests/1/approve_reject/", {"action": "approve", "notes": "Approved"})]


async def test_reject_without_reason_makes_no_call(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    response = await async_client.post("/incoming/LEAVE/1/reject", json={"reason": ""})
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationFailure"
    assert hr_backend.posted == []


async def test_override_approved_leave(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    _grant_override(hr_backend)
    response = await async_client.post(
        "/incoming/LEAVE/2/override",
        json={"reason": "Policy breach", "decision": "reject"},
    )
    assert response.status_code == 200
    assert hr_backend.posted == [
        ("/leave/requests/2/override_decision/", {"action": "reject", "reason": "Policy breach"}),
    ]


async def test_override_without_authority(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    response = await async_client.post(
        "/incoming/LEAVE/2/override",
        json={"reason": "Policy breach", "decision": "reject"},
    )
    assert response.status_code == 403
    assert hr_backend.posted == []


async def test_override_of_pending_conflicts(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    _grant_override(hr_backend)
    response = await async_client.post(
        "/incoming/LEAVE/1/override",
        json={"reason": "Policy breach", "decision": "approve"},
    )
    assert response.status_code == 409
    assert response.json()["refetch_required"] is True
    assert hr_backend.posted == []


async def test_override_of_locked_leave(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    _grant_override(hr_backend)
    response = await async_client.post(
        "/incoming/LEAVE/6/override",
        json={"reason": "Policy breach", "decision": "reject"},
    )
    assert response.status_code == 403
    assert hr_backend.posted == []


async def test_cancel_approved_leave(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    response = await async_client.post("/incoming/LEAVE/2/cancel", json={"reason": "Project deadline"})
    assert response.status_code == 200
    assert response.json()["endpoint"] == "/leave/requests/2/manager-cancel/"
    assert hr_backend.posted == [("/leave/requests/2/manager-cancel/", {"reason": "Project deadline"})]


async def test_cancel_of_locked_leave(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    response = await async_client.post("/incoming/LEAVE/6/cancel", json={"reason": "Project deadline"})
    assert response.status_code == 403
    assert hr_backend.posted == []


async def test_substitute_approval_acts_for_principal(
    async_client: AsyncClient, hr_backend: InMemoryHRBackend
) -> None:
    response = await async_client.post("/incoming/LEAVE/4/approve", json={"notes": "Covered"})
    assert response.status_code == 200
    assert response.json()["provenance"] == "SUBSTITUTE"
    assert hr_backend.posted == [
        (
            "/leave/requests/4/approve_reject/",
            {"action": "approve", "notes": "Covered", "acting_as_substitute_for": 200},
        ),
    ]


async def test_backend_conflict_is_passed_through(async_client: AsyncClient, hr_backend: InMemoryHRBackend) -> None:
    hr_backend.post_errors["/leave/requests/1/approve_reject/"] = (409, "Request already processed by another manager")
    response = await async_client.post("/incoming/LEAVE/1/approve")
    assert response.status_code == 409
    data = response.json()
    assert data["detail"] == "Request already processed by another manager"
    assert data["refetch_required"] is True
    assert len(hr_backend.posted) == 1


async def test_unknown_action(async_client: AsyncClient) -> None:
    response = await async_client.post("/incoming/LEAVE/1/delete")
    assert response.status_code == 422
