from __future__ import annotations

from typing import TYPE_CHECKING, Any

import pytest
from httpx import ASGITransport, AsyncClient

from approvals.api.deps import get_hr_backend
from approvals.main import app
from approvals.services.hr_backend import InMemoryHRBackend
from approvals.services.viewer import build_viewer

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from approvals.schemas.auth import ViewerContext

VIEWER_ID = 100
PEER_MANAGER_ID = 200

# Employees 1 and 2 report to the viewer, 3 reports to 1, 9 belongs to a peer manager.
ME: dict[str, Any] = {
    "id": VIEWER_ID,
    "first_name": "Ayse",
    "last_name": "Manager",
    "department_name": "Operations",
    "all_permissions": ["APPROVAL_MANAGE"],
}
SUBORDINATES: list[dict[str, Any]] = [
    {"id": 1, "full_name": "Deniz Direct", "reports_to": VIEWER_ID},
    {"id": 2, "full_name": "Ece Primary", "reports_to": 50, "primary_managers": [{"id": VIEWER_ID}]},
    {"id": 3, "full_name": "Mert Indirect", "reports_to": 1},
]


@pytest.fixture
def viewer() -> ViewerContext:
    """The default manager: two direct reports, one indirect, no override authority."""
    return build_viewer(ME, SUBORDINATES)


@pytest.fixture
def hr_backend() -> InMemoryHRBackend:
    """In-memory HR backend seeded with the default viewer."""
    backend = InMemoryHRBackend()
    backend.me = dict(ME)
    backend.subordinates = [dict(s) for s in SUBORDINATES]
    return backend


@pytest.fixture
async def async_client(hr_backend: InMemoryHRBackend) -> AsyncIterator[AsyncClient]:
    """Async HTTP client with the HR backend dependency overridden."""
    app.dependency_overrides[get_hr_backend] = lambda: hr_backend
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers={"Authorization": "Bearer test-token"},
    ) as client:
        yield client
    app.dependency_overrides.clear()
