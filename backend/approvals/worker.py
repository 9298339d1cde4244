"""Worker process that keeps a manager's incoming queue fresh.

Polls the three incoming streams with ``SmartPoller`` and logs the pending
counts, acting as the employee behind ``HR_API_TOKEN``.
"""

from __future__ import annotations

import asyncio
import logging
from zoneinfo import ZoneInfo

import httpx

from approvals.config import get_settings
from approvals.services.aggregator import IncomingStore, count_incoming
from approvals.services.hr_backend import HRBackend, HttpHRBackend
from approvals.services.polling import SmartPoller
from approvals.services.viewer import resolve_viewer

logger = logging.getLogger(__name__)


class InboxWatcher:
    """Refreshes one viewer's aggregate and reports what changed."""

    def __init__(self, backend: HRBackend) -> None:
        self._backend = backend
        self._store = IncomingStore()
        self._last_pending: int | None = None

    async def refresh(self) -> None:
        viewer = await resolve_viewer(self._backend)
        await self._store.refresh(self._backend, inputs=viewer.employee_id)
        aggregate = self._store.aggregate(viewer, tz=ZoneInfo(get_settings().lock_timezone))
        counts = count_incoming(aggregate.items)

        if aggregate.failed_sources:
            logger.warning("Sources unavailable this round: %s", ", ".join(aggregate.failed_sources))
        if counts.pending != self._last_pending:
            logger.info(
                "Incoming for %s: pending=%d direct=%d indirect=%d substitute=%d",
                viewer.full_name or viewer.employee_id,
                counts.pending,
                counts.direct,
                counts.indirect,
                counts.substitute,
            )
            self._last_pending = counts.pending


async def watch_inbox(backend: HRBackend, interval_seconds: float) -> None:
    """Refresh once, then keep polling until cancelled. A failed round never stops the loop."""
    watcher = InboxWatcher(backend)
    poller = SmartPoller(watcher.refresh, interval_seconds)
    logger.info("Inbox worker started, polling every %.0fs", interval_seconds)
    try:
        await watcher.refresh()
    except Exception:
        logger.exception("Initial inbox refresh failed")
    poller.start()
    try:
        await asyncio.Event().wait()
    finally:
        await poller.stop()


async def run_watch_loop() -> None:
    """Main worker loop. Runs until cancelled."""
    settings = get_settings()
    if not settings.hr_api_token:
        logger.error("HR_API_TOKEN is not set; nothing to watch")
        return

    async with httpx.AsyncClient(
        base_url=settings.hr_api_base_url,
        timeout=settings.hr_api_timeout_seconds,
    ) as client:
        await watch_inbox(HttpHRBackend(client, settings.hr_api_token), settings.poll_interval_seconds)


def main() -> None:
    """Entry point for the worker process."""
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")
    asyncio.run(run_watch_loop())


if __name__ == "__main__":
    main()
