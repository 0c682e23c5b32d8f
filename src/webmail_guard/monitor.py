"""Debounced change monitoring that turns document churn into scan passes."""

from __future__ import annotations

import asyncio
import logging

from .constants import QUIET_PERIOD_SECONDS, WATCH_INTERVAL_SECONDS
from .document import LiveDocument
from .scanner import ScanOrchestrator

logger = logging.getLogger(__name__)


class ChangeMonitor:
    """Coalesces bursts of document changes into one scan.

    Every ``notify`` call restarts the quiet-period timer. When the timer
    runs out uninterrupted, a full scan is started if the burst added
    elements and no scan is in flight, and the opened-message check runs
    either way.
    """

    def __init__(
        self,
        orchestrator: ScanOrchestrator,
        quiet_period: float = QUIET_PERIOD_SECONDS,
    ) -> None:
        self.orchestrator = orchestrator
        self.quiet_period = quiet_period
        self._timer: asyncio.TimerHandle | None = None
        self._pending_additions = False
        self._tasks: set[asyncio.Task] = set()

    @property
    def pending(self) -> bool:
        return self._timer is not None

    def notify(self, added_nodes: int = 1) -> None:
        """Record a batch of document changes. Must be called from the event loop."""
        if added_nodes > 0:
            self._pending_additions = True
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.quiet_period, self._on_quiet_period)

    def _on_quiet_period(self) -> None:
        self._timer = None
        had_additions = self._pending_additions
        self._pending_additions = False

        if had_additions and not self.orchestrator.scanning:
            self._spawn(self.orchestrator.run_full_scan())
        self._spawn(self.orchestrator.on_opened_message_detected())

    def _spawn(self, coro) -> None:
        task = asyncio.ensure_future(coro)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Triggered scan failed", exc_info=task.exception())

    def stop(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        self._pending_additions = False

    async def drain(self) -> None:
        """Wait until every triggered pass has finished."""
        while self._tasks:
            tasks = list(self._tasks)
            await asyncio.gather(*tasks, return_exceptions=True)
            self._tasks.difference_update(tasks)


async def watch(
    document: LiveDocument,
    monitor: ChangeMonitor,
    interval: float = WATCH_INTERVAL_SECONDS,
    max_polls: int | None = None,
) -> None:
    """Poll a snapshot file and feed its changes to the monitor.

    Runs until cancelled, or for ``max_polls`` polls when given.
    """
    polls = 0
    try:
        while max_polls is None or polls < max_polls:
            try:
                added = document.refresh()
            except OSError as exc:
                logger.warning("Could not read %s: %s", document.path, exc)
                added = 0
            if added:
                logger.debug("%d element(s) added to %s", added, document.path)
                monitor.notify(added)
            polls += 1
            await asyncio.sleep(interval)
    finally:
        monitor.stop()
