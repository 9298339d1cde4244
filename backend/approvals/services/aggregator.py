"""Merge the three incoming-request streams into one ordered, deduplicated list.

Streams, in fold order:

1. ``TEAM`` (``/team-requests/``): direct and indirect requests. Its identity
   keys are authoritative for what the viewer currently sees.
2. ``HISTORY`` (``/leave/requests/team_history/``): resolved leave. Records
   whose key the team stream already produced are skipped.
3. ``SUBSTITUTE`` (``/substitute-authority/pending_requests/``): leave and
   overtime of managers the viewer is covering. Never deduplicated against
   the other two streams, only against itself.

Each stream is fetched on its own. A failed fetch contributes an empty slice
and is listed in ``failed_sources``; it never aborts the aggregate.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime
from itertools import chain
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from approvals.exceptions import AppError
from approvals.models.enums import Provenance, RequestStatus, RequestType, SourceStream
from approvals.schemas.request import IncomingCounts
from approvals.schemas.substitute import SubstitutePending
from approvals.services.freshness import StreamGuard
from approvals.services.normalizer import normalize_request
from approvals.services.provenance import classify_provenance, find_authority, provenance_from_level

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable
    from datetime import tzinfo

    from approvals.schemas.auth import ViewerContext
    from approvals.schemas.request import IncomingRequest
    from approvals.schemas.substitute import SubstituteAuthority
    from approvals.services.hr_backend import HRBackend

logger = logging.getLogger(__name__)

_OLDEST = datetime.min.replace(tzinfo=UTC)


@dataclass
class IncomingAggregate:
    """Provenance-tagged incoming requests plus what the console shows around them."""

    items: list[IncomingRequest] = field(default_factory=list)
    authorities: list[SubstituteAuthority] = field(default_factory=list)
    failed_sources: list[SourceStream] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Pure merge
# ---------------------------------------------------------------------------


def sort_incoming(items: Iterable[IncomingRequest]) -> list[IncomingRequest]:
    """Newest first by ``sort_date``; equal dates keep their insertion order."""
    indexed = list(enumerate(items))
    indexed.sort(key=lambda pair: (pair[1].sort_date or _OLDEST, -pair[0]), reverse=True)
    return [item for _, item in indexed]


def merge_sources(
    team: Iterable[dict[str, Any]],
    history: Iterable[dict[str, Any]],
    substitute: SubstitutePending | None,
    viewer: ViewerContext,
    now: datetime,
    tz: tzinfo = UTC,
) -> list[IncomingRequest]:
    """Fold the three streams into one list. Pure: no I/O, inputs untouched."""
    items: list[IncomingRequest] = []
    seen: set[tuple[RequestType, int]] = set()

    # Team and history are scoped to the viewer's hierarchy by the backend, so
    # delegated authority never applies to them.
    for raw, default_type in chain(
        ((raw, None) for raw in team),
        ((raw, RequestType.LEAVE) for raw in history),
    ):
        request = normalize_request(raw, default_type=default_type, tz=tz)
        if request is None or request.key in seen:
            continue
        seen.add(request.key)
        provenance = classify_provenance(
            request, viewer.direct_ids, viewer.extended_ids, (), now
        ) or provenance_from_level(request.level)
        items.append(request.model_copy(update={"provenance": provenance}))

    if substitute is not None:
        delegated_seen: set[tuple[RequestType, int]] = set()
        delegated = chain(
            ((raw, RequestType.LEAVE) for raw in substitute.leave_requests),
            ((raw, RequestType.OVERTIME) for raw in substitute.overtime_requests),
        )
        for raw, request_type in delegated:
            request = normalize_request({**raw, "type": request_type.value}, tz=tz)
            if request is None or request.key in delegated_seen:
                continue
            delegated_seen.add(request.key)
            provenance = classify_provenance(
                request, viewer.direct_ids, viewer.extended_ids, substitute.authorities, now
            )
            if provenance is None:
                logger.debug("Dropping delegated %s %d: no valid authority covers it", request.type, request.id)
                continue
            update: dict[str, Any] = {"provenance": provenance}
            if provenance == Provenance.SUBSTITUTE:
                authority = find_authority(request, substitute.authorities, now)
                update["principal_name"] = authority.principal_name if authority else ""
            items.append(request.model_copy(update=update))

    return sort_incoming(items)


def count_incoming(items: Iterable[IncomingRequest]) -> IncomingCounts:
    """Badge counts. ``all`` leaves out POTENTIAL items, like the default view."""
    counts = IncomingCounts()
    for item in items:
        if item.status != RequestStatus.POTENTIAL:
            counts.all += 1
        if item.status == RequestStatus.PENDING:
            counts.pending += 1
        if item.provenance == Provenance.DIRECT:
            counts.direct += 1
        elif item.provenance == Provenance.INDIRECT:
            counts.indirect += 1
        elif item.provenance == Provenance.SUBSTITUTE:
            counts.substitute += 1
    return counts


def find_request(
    items: Iterable[IncomingRequest],
    request_type: RequestType,
    request_id: int,
) -> IncomingRequest | None:
    """Look up an item by identity, preferring the viewer's own authority over a delegated one."""
    matches = [item for item in items if item.key == (request_type, request_id)]
    for item in matches:
        if item.provenance != Provenance.SUBSTITUTE:
            return item
    return matches[0] if matches else None


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


async def _fetch_team(backend: HRBackend) -> list[dict[str, Any]]:
    return await backend.list_team_requests()


async def _fetch_history(backend: HRBackend) -> list[dict[str, Any]]:
    return await backend.list_team_history()


async def _fetch_substitute(backend: HRBackend) -> SubstitutePending:
    return SubstitutePending.model_validate(await backend.get_substitute_pending())


_FETCHERS = {
    SourceStream.TEAM: _fetch_team,
    SourceStream.HISTORY: _fetch_history,
    SourceStream.SUBSTITUTE: _fetch_substitute,
}


class IncomingStore:
    """Latest successfully fetched slice of each stream.

    Streams refresh concurrently and independently. A response is applied
    only if no newer fetch of the same stream started meanwhile and the
    ``inputs`` it was requested for are still the current ones.
    """

    def __init__(self) -> None:
        self._guard = StreamGuard()
        self._slices: dict[SourceStream, Any] = {}
        self._failed: set[SourceStream] = set()

    async def refresh(self, backend: HRBackend, inputs: Hashable = None) -> None:
        await asyncio.gather(*(self.refresh_stream(backend, stream, inputs) for stream in SourceStream))

    async def refresh_stream(self, backend: HRBackend, stream: SourceStream, inputs: Hashable = None) -> bool:
        """Fetch one stream. Returns False when the response arrived stale and was discarded."""
        token = self._guard.begin(stream, inputs)
        failed = False
        try:
            value = await _FETCHERS[stream](backend)
        except (AppError, ValidationError):
            logger.warning("Incoming source %s failed; rendering it empty", stream, exc_info=True)
            value, failed = None, True

        if not self._guard.is_current(token):
            logger.debug("Discarding stale %s response (generation %d)", stream, token.generation)
            return False

        if failed:
            self._slices.pop(stream, None)
            self._failed.add(stream)
        else:
            self._slices[stream] = value
            self._failed.discard(stream)
        return True

    def aggregate(self, viewer: ViewerContext, now: datetime | None = None, tz: tzinfo = UTC) -> IncomingAggregate:
        now = now or datetime.now(UTC)
        substitute: SubstitutePending | None = self._slices.get(SourceStream.SUBSTITUTE)
        items = merge_sources(
            self._slices.get(SourceStream.TEAM, []),
            self._slices.get(SourceStream.HISTORY, []),
            substitute,
            viewer,
            now,
            tz,
        )
        authorities = [a for a in substitute.authorities if a.is_valid_at(now)] if substitute else []
        return IncomingAggregate(
            items=items,
            authorities=authorities,
            failed_sources=[stream for stream in SourceStream if stream in self._failed],
        )
