"""Control surface for external UIs and message relays."""

from __future__ import annotations

import logging
from typing import Any

from .errors import ConcurrentScanRejected
from .models import ScanResult, ScanStatistics
from .scanner import ScanOrchestrator

logger = logging.getLogger(__name__)


class ScanController:
    """Operations an outside caller may invoke on a running scanner."""

    def __init__(self, orchestrator: ScanOrchestrator) -> None:
        self.orchestrator = orchestrator

    async def trigger_rescan(self) -> bool:
        """Clear all results and scan again.

        Raises ConcurrentScanRejected while a pass is in flight; callers
        should retry once it has finished.
        """
        return await self.orchestrator.rescan_all()

    def get_all_results(self) -> list[ScanResult]:
        return self.orchestrator.results()

    def get_statistics(self) -> ScanStatistics:
        return self.orchestrator.statistics()

    async def handle_message(self, request: dict[str, Any]) -> dict[str, Any]:
        """Dispatch a relay message of the form ``{"action": ...}``."""
        action = request.get("action")

        if action == "getScannedEmails":
            return {
                "success": True,
                "emails": [r.to_dict() for r in self.get_all_results()],
            }

        if action == "rescanEmails":
            try:
                await self.trigger_rescan()
            except ConcurrentScanRejected as exc:
                logger.info("Rescan rejected: %s", exc)
                return {"success": False, "error": str(exc)}
            return {"success": True, "message": "Rescan completed"}

        if action == "getStats":
            return {"success": True, "stats": self.get_statistics().to_dict()}

        return {"success": False, "error": "Unknown action"}
