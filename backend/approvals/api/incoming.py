# ruff: noqa: B008
from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Query

from approvals.api.deps import BackendDep, ViewerDep
from approvals.models.enums import ManagerAction, RequestType
from approvals.schemas.decision import DecisionTimeline
from approvals.schemas.request import (
    ActionPayload,
    ActionResult,
    IncomingListResponse,
    RequestDetailResponse,
)
from approvals.services import incoming as incoming_service
from approvals.services.filters import IncomingFilter

SourceFilter = Literal["ALL", "DIRECT", "INDIRECT", "SUBSTITUTE"]
TypeFilter = Literal["ALL", "LEAVE", "OVERTIME", "MEAL", "CARDLESS_ENTRY"]
StatusFilter = Literal["ALL", "PENDING", "APPROVED", "REJECTED", "POTENTIAL"]

incoming_router = APIRouter(prefix="/incoming", tags=["incoming"])


@incoming_router.get("", response_model=IncomingListResponse)
async def list_incoming(
    backend: BackendDep,
    viewer: ViewerDep,
    source: SourceFilter = Query(default="ALL"),
    type_filter: TypeFilter = Query(default="ALL", alias="type"),
    status_filter: StatusFilter = Query(default="ALL", alias="status"),
    q: str = Query(default="", max_length=200),
) -> IncomingListResponse:
    """List requests awaiting, or recently given, the viewer's decision."""
    criteria = IncomingFilter(source=source, type=type_filter, status=status_filter, text=q.strip())
    return await incoming_service.list_incoming(backend, viewer, criteria)


@incoming_router.get("/{request_type}/{request_id}", response_model=RequestDetailResponse)
async def get_request_detail(
    request_type: RequestType,
    request_id: int,
    backend: BackendDep,
    viewer: ViewerDep,
) -> RequestDetailResponse:
    """Get one incoming request with its time lock, offered actions and decision history."""
    return await incoming_service.get_request_detail(backend, viewer, request_type, request_id)


@incoming_router.get("/{request_type}/{request_id}/history", response_model=DecisionTimeline)
async def get_request_history(
    request_type: RequestType,
    request_id: int,
    backend: BackendDep,
    viewer: ViewerDep,
) -> DecisionTimeline:
    """Get the append-only decision history of a request."""
    return await incoming_service.get_request_history(backend, viewer, request_type, request_id)


@incoming_router.post("/{request_type}/{request_id}/{action}", response_model=ActionResult)
async def perform_action(
    request_type: RequestType,
    request_id: int,
    action: ManagerAction,
    backend: BackendDep,
    viewer: ViewerDep,
    payload: ActionPayload | None = None,
) -> ActionResult:
    """Approve, reject, override or cancel an incoming request."""
    return await incoming_service.perform_action(
        backend, viewer, request_type, request_id, action, payload or ActionPayload()
    )
