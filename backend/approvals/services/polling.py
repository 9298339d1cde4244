"""Visibility-aware refresh scheduler.

States:

* ``IDLE``: not started, or stopped.
* ``POLLING``: refreshes every ``interval_seconds``.
* ``SUSPENDED``: the consumer is hidden; the timer keeps running but ticks do nothing.

Becoming visible again refreshes immediately and restarts the interval.
``stop()`` cancels the loop task, so no refresh starts after it returns.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class PollerState(enum.StrEnum):
    """Lifecycle of a ``SmartPoller``."""

    IDLE = "IDLE"
    POLLING = "POLLING"
    SUSPENDED = "SUSPENDED"


class SmartPoller:
    """Calls ``refresh`` on an interval while visible, and at once when visibility returns."""

    def __init__(self, refresh: Callable[[], Awaitable[None]], interval_seconds: float) -> None:
        self._refresh = refresh
        self._interval = interval_seconds
        self._state = PollerState.IDLE
        self._wake = asyncio.Event()
        self._task: asyncio.Task[None] | None = None

    @property
    def state(self) -> PollerState:
        return self._state

    def start(self, *, visible: bool = True) -> None:
        """Start the loop. Calling it while running does nothing."""
        if self._task is not None:
            return
        self._state = PollerState.POLLING if visible else PollerState.SUSPENDED
        self._wake.clear()
        self._task = asyncio.get_running_loop().create_task(self._run())

    def set_visible(self, visible: bool) -> None:
        """Feed the visibility signal."""
        if self._state == PollerState.IDLE:
            return
        if visible and self._state == PollerState.SUSPENDED:
            self._state = PollerState.POLLING
            self._wake.set()
        elif not visible:
            self._state = PollerState.SUSPENDED

    async def stop(self) -> None:
        task, self._task = self._task, None
        self._state = PollerState.IDLE
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _tick(self) -> None:
        try:
            await self._refresh()
        except Exception:
            logger.exception("Scheduled refresh failed")

    async def _run(self) -> None:
        while True:
            woken = False
            try:
                async with asyncio.timeout(self._interval):
                    await self._wake.wait()
                woken = True
            except TimeoutError:
                pass
            self._wake.clear()
            if woken or self._state == PollerState.POLLING:
                await self._tick()
