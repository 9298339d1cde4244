"""Client for the remote HR REST backend.

The backend owns requests, approvals and the decision log. This service only
reads its collections and forwards decision calls to it.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import httpx

from approvals.exceptions import BackendError

logger = logging.getLogger(__name__)

GENERIC_FAILURE = "The HR backend could not complete the request"


def error_message(payload: Any, fallback: str = GENERIC_FAILURE) -> str:
    """Surface ``error``, then ``detail``, then a generic fallback."""
    if isinstance(payload, dict):
        for key in ("error", "detail"):
            value = payload.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return fallback


def unwrap_list(payload: Any) -> list[dict[str, Any]]:
    """Accept both plain lists and paginated ``{"results": [...]}`` bodies."""
    if isinstance(payload, dict):
        payload = payload.get("results", [])
    if not isinstance(payload, list):
        return []
    return [item for item in payload if isinstance(item, dict)]


@runtime_checkable
class HRBackend(Protocol):
    """Interface for the HR backend."""

    async def get_me(self) -> dict[str, Any]:
        """``GET /employees/me/``."""
        ...

    async def list_subordinates(self) -> list[dict[str, Any]]:
        """``GET /employees/subordinates/``."""
        ...

    async def list_team_requests(self) -> list[dict[str, Any]]:
        """``GET /team-requests/``: direct and indirect requests."""
        ...

    async def list_team_history(self) -> list[dict[str, Any]]:
        """``GET /leave/requests/team_history/``: resolved leave in the viewer's hierarchy."""
        ...

    async def get_substitute_pending(self) -> dict[str, Any]:
        """``GET /substitute-authority/pending_requests/``."""
        ...

    async def get_decision_history(self, content_type: int, object_id: int) -> list[dict[str, Any]]:
        """``GET /decision-history/for_request/``."""
        ...

    async def post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        """POST a decision call. Raises ``BackendError`` carrying the backend's message."""
        ...


class HttpHRBackend:
    """HR backend over HTTP, authenticated with the caller's bearer token."""

    def __init__(self, client: httpx.AsyncClient, token: str | None = None) -> None:
        self._client = client
        self._headers = {"Authorization": f"Bearer {token}"} if token else {}

    async def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            logger.warning("HR backend %s %s failed: %s", method, path, exc)
            raise BackendError(GENERIC_FAILURE) from exc

        try:
            body = response.json() if response.content else {}
        except ValueError:
            body = {}

        if response.is_error:
            status_code = response.status_code if response.status_code < 500 else 502
            raise BackendError(error_message(body), status_code=status_code)
        return body

    async def get_me(self) -> dict[str, Any]:
        body = await self._send("GET", "/employees/me/")
        return body if isinstance(body, dict) else {}

    async def list_subordinates(self) -> list[dict[str, Any]]:
        return unwrap_list(await self._send("GET", "/employees/subordinates/"))

    async def list_team_requests(self) -> list[dict[str, Any]]:
        return unwrap_list(await self._send("GET", "/team-requests/"))

    async def list_team_history(self) -> list[dict[str, Any]]:
        return unwrap_list(await self._send("GET", "/leave/requests/team_history/"))

    async def get_substitute_pending(self) -> dict[str, Any]:
        body = await self._send("GET", "/substitute-authority/pending_requests/")
        return body if isinstance(body, dict) else {}

    async def get_decision_history(self, content_type: int, object_id: int) -> list[dict[str, Any]]:
        body = await self._send(
            "GET",
            "/decision-history/for_request/",
            params={"content_type": content_type, "object_id": object_id},
        )
        return unwrap_list(body)

    async def post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        body = await self._send("POST", path, json=payload)
        return body if isinstance(body, dict) else {"result": body}


class InMemoryHRBackend:
    """In-memory stub implementation for development."""

    def __init__(self) -> None:
        self.me: dict[str, Any] = {}
        self.subordinates: list[dict[str, Any]] = []
        self.team_requests: list[dict[str, Any]] = []
        self.team_history: list[dict[str, Any]] = []
        self.substitute_pending: dict[str, Any] = {}
        self.decision_history: dict[tuple[int, int], list[dict[str, Any]]] = {}
        self.posted: list[tuple[str, dict[str, Any]]] = []
        self.post_errors: dict[str, tuple[int, str]] = {}
        self.failing: set[str] = set()

    def fail(self, method: str) -> None:
        """Make ``method`` raise ``BackendError`` as if the backend were down."""
        self.failing.add(method)

    def _check(self, method: str) -> None:
        if method in self.failing:
            raise BackendError(GENERIC_FAILURE)

    async def get_me(self) -> dict[str, Any]:
        self._check("get_me")
        return self.me

    async def list_subordinates(self) -> list[dict[str, Any]]:
        self._check("list_subordinates")
        return list(self.subordinates)

    async def list_team_requests(self) -> list[dict[str, Any]]:
        self._check("list_team_requests")
        return list(self.team_requests)

    async def list_team_history(self) -> list[dict[str, Any]]:
        self._check("list_team_history")
        return list(self.team_history)

    async def get_substitute_pending(self) -> dict[str, Any]:
        self._check("get_substitute_pending")
        return self.substitute_pending

    async def get_decision_history(self, content_type: int, object_id: int) -> list[dict[str, Any]]:
        self._check("get_decision_history")
        return list(self.decision_history.get((content_type, object_id), []))

    async def post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        self._check("post")
        self.posted.append((path, payload))
        if path in self.post_errors:
            status_code, message = self.post_errors[path]
            raise BackendError(message, status_code=status_code)
        return {"status": "ok"}
