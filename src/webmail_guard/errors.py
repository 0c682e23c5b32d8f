"""Exception types raised by the scanning engine."""

from __future__ import annotations


class WebmailGuardError(Exception):
    """Base class for engine errors."""


class ExtractionError(WebmailGuardError):
    """A message container matched but its sender could not be resolved."""


class ClassificationTransportError(WebmailGuardError):
    """The remote classifier was unreachable or returned an unusable reply."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ConcurrentScanRejected(WebmailGuardError):
    """A rescan was requested while a scan pass was still in flight."""
