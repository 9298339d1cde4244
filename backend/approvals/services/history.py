"""Read-only decision history for one request.

Entries are shown exactly as the backend returns them, already in
chronological order: never sorted, edited or merged. An override keeps a
reference to the decision it superseded, which stays in the list verbatim.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError

from approvals.config import get_settings
from approvals.exceptions import AppError
from approvals.models.enums import RequestType
from approvals.schemas.decision import DecisionEntry, DecisionTimeline, SupersededDecision, TimelineEntry

if TYPE_CHECKING:
    from approvals.services.hr_backend import HRBackend

logger = logging.getLogger(__name__)

HISTORY_UNAVAILABLE = "Decision history could not be loaded"

_entries_adapter: TypeAdapter[list[DecisionEntry]] = TypeAdapter(list[DecisionEntry])


def content_type_for(request_type: RequestType) -> int | None:
    """Decision-log content type id for a request type. Meal requests keep no history."""
    settings = get_settings()
    return {
        RequestType.LEAVE: settings.leave_content_type_id,
        RequestType.OVERTIME: settings.overtime_content_type_id,
        RequestType.CARDLESS_ENTRY: settings.cardless_entry_content_type_id,
    }.get(request_type)


def build_timeline(content_type: int, object_id: int, raw_entries: list[dict[str, Any]]) -> DecisionTimeline:
    """Project backend entries into timeline entries, resolving what each override superseded."""
    entries = _entries_adapter.validate_python(raw_entries)
    by_id = {entry.id: entry for entry in entries}

    timeline: list[TimelineEntry] = []
    for entry in entries:
        supersedes = None
        previous = by_id.get(entry.overridden_decision_id) if entry.overridden_decision_id is not None else None
        if previous is not None:
            supersedes = SupersededDecision(
                id=previous.id,
                action=previous.action,
                decision_maker_name=previous.decision_maker_name,
                decision_date=previous.decision_date,
            )
        timeline.append(TimelineEntry(**entry.model_dump(), supersedes=supersedes))

    return DecisionTimeline(
        content_type=content_type,
        object_id=object_id,
        entries=timeline,
        override_count=sum(1 for entry in entries if entry.is_override),
    )


async def load_timeline(backend: HRBackend, content_type: int, object_id: int) -> DecisionTimeline:
    """Fetch once and build the timeline. A failure is reported in ``error``, never raised."""
    try:
        raw_entries = await backend.get_decision_history(content_type, object_id)
        return build_timeline(content_type, object_id, raw_entries)
    except (AppError, ValidationError):
        logger.warning("Decision history failed for content_type=%d object_id=%d", content_type, object_id, exc_info=True)
        return DecisionTimeline(content_type=content_type, object_id=object_id, error=HISTORY_UNAVAILABLE)
