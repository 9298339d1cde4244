import logging
from typing import Literal

import httpx
from fastapi import APIRouter
from pydantic import BaseModel

from approvals.api.deps import HttpClientDep
from approvals.config import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded", "error"]
    version: str
    environment: str


@router.get("/health", response_model=HealthResponse)
async def health(client: HttpClientDep) -> HealthResponse:
    """Return the health status of the service. Any HTTP answer from the HR backend counts as reachable."""
    settings = get_settings()
    status: Literal["ok", "degraded", "error"] = "ok"

    try:
        await client.head("/")
    except httpx.HTTPError:
        logger.exception("Health check: HR backend unreachable")
        status = "degraded"

    return HealthResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
    )
