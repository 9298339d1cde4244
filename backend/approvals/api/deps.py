from __future__ import annotations

from typing import Annotated

import httpx
from fastapi import Depends, Header, Request, status

from approvals.exceptions import AppError
from approvals.schemas.auth import ViewerContext
from approvals.services.hr_backend import HRBackend, HttpHRBackend
from approvals.services.viewer import resolve_viewer


async def get_http_client(request: Request) -> httpx.AsyncClient:
    """The shared HR backend client opened in the application lifespan."""
    client: httpx.AsyncClient = request.app.state.http_client
    return client


HttpClientDep = Annotated[httpx.AsyncClient, Depends(get_http_client)]


async def get_hr_backend(
    client: HttpClientDep,
    authorization: str | None = Header(default=None),
) -> HRBackend:
    """HR backend acting with the caller's own bearer token."""
    if not authorization or not authorization.lower().startswith("bearer "):
        raise AppError("Bearer token required", status_code=status.HTTP_401_UNAUTHORIZED)
    return HttpHRBackend(client, authorization[len("bearer ") :].strip())


BackendDep = Annotated[HRBackend, Depends(get_hr_backend)]


async def get_viewer(backend: BackendDep) -> ViewerContext:
    """Resolve who is asking, with their subordinate sets and permissions."""
    return await resolve_viewer(backend)


ViewerDep = Annotated[ViewerContext, Depends(get_viewer)]
