"""Scan orchestration - extracts messages, skips known ones, classifies the rest."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, Iterable

from bs4 import BeautifulSoup

from .classifier import ClassifierClient
from .errors import ConcurrentScanRejected
from .extractor import extract, extract_opened
from .models import ScanResult, ScanState, ScanStatistics
from .providers import OPENED_VIEW, Descriptor, OpenedDescriptor

logger = logging.getLogger(__name__)


class ScanListener:
    """Receives engine events. Override the hooks you need."""

    def on_scan_started(self) -> None:
        pass

    def on_result_added(self, result: ScanResult) -> None:
        pass

    def on_scan_completed(self, stats: ScanStatistics) -> None:
        pass


class ScanOrchestrator:
    """Owns the scan state for one document and funnels every change to it.

    ``run_full_scan``, ``rescan_all`` and ``on_opened_message_detected`` are
    the only entry points that modify ``state.results``.
    """

    def __init__(
        self,
        document_source: Callable[[], BeautifulSoup],
        descriptor: Descriptor,
        classifier: ClassifierClient,
        state: ScanState | None = None,
        listeners: Iterable[ScanListener] = (),
        opened_descriptor: OpenedDescriptor = OPENED_VIEW,
    ) -> None:
        self.document_source = document_source
        self.descriptor = descriptor
        self.opened_descriptor = opened_descriptor
        self.classifier = classifier
        self.state = state if state is not None else ScanState()
        self.listeners: list[ScanListener] = list(listeners)

    @property
    def scanning(self) -> bool:
        return self.state.scanning

    def add_listener(self, listener: ScanListener) -> None:
        self.listeners.append(listener)

    def _emit(self, hook: str, *args) -> None:
        for listener in self.listeners:
            try:
                getattr(listener, hook)(*args)
            except Exception:  # noqa: BLE001
                logger.exception("Listener %r failed in %s", listener, hook)

    def _store(self, result: ScanResult) -> bool:
        """Insert a new result. Existing ids are never overwritten."""
        if result.id in self.state.results:
            return False
        self.state.results[result.id] = result
        return True

    async def run_full_scan(self) -> bool:
        """Classify every message in the document not yet scored.

        Returns False without doing anything if a pass is already running.
        """
        if self.state.scanning:
            logger.debug("Full scan requested while scanning, ignoring")
            return False
        self.state.scanning = True

        try:
            self._emit("on_scan_started")
            candidates = list(extract(self.document_source(), self.descriptor))
            logger.info("Found %d message(s) in document", len(candidates))

            for record in candidates:
                if record.id in self.state.results:
                    continue
                result = await self.classifier.classify(record)
                if self._store(result):
                    self._emit("on_result_added", result)
                    await asyncio.sleep(0)
        finally:
            self.state.scanning = False

        self._emit("on_scan_completed", self.statistics())
        return True

    async def rescan_all(self) -> bool:
        """Forget every result and scan the document again."""
        if self.state.scanning:
            raise ConcurrentScanRejected("a scan is already in progress")
        self.state.results.clear()
        logger.info("Scan state cleared for rescan")
        return await self.run_full_scan()

    async def on_opened_message_detected(self) -> ScanResult | None:
        """Classify the message open for reading, if there is a new one.

        Runs regardless of the ``scanning`` flag so an open message gets a
        verdict even during a listing scan.
        """
        record = extract_opened(self.document_source(), self.opened_descriptor)
        if record is None or record.id in self.state.results:
            return None

        logger.info("Opened message detected: %s", record.id)
        result = await self.classifier.classify(record)
        if not self._store(result):
            return None
        self._emit("on_result_added", result)
        return result

    def results(self) -> list[ScanResult]:
        return list(self.state.results.values())

    def statistics(self) -> ScanStatistics:
        return ScanStatistics.from_results(self.results())
