"""Data models for Webmail Guard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from .constants import SCORE_SAFE, SCORE_SUSPECTED


def utc_now_iso() -> str:
    """Current time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ScanSource(str, Enum):
    """Where a message was seen. Values are the wire names sent to the classifier."""

    LIST_VIEW = "INBOX_LIST"
    OPENED_VIEW = "EMAIL_OPEN"


class RiskStatus(str, Enum):
    SAFE = "safe"
    SUSPECTED = "suspected"
    DANGEROUS = "dangerous"

    @classmethod
    def from_score(cls, score: int) -> RiskStatus:
        if score >= SCORE_SAFE:
            return cls.SAFE
        if score >= SCORE_SUSPECTED:
            return cls.SUSPECTED
        return cls.DANGEROUS


@dataclass
class MessageRecord:
    """A single message observed in the document."""

    id: str
    sender: str
    subject: str
    body: str
    timestamp: str
    source: ScanSource = ScanSource.LIST_VIEW
    # Transient anchor into the parsed document; never an identity key.
    element: Any = field(default=None, repr=False, compare=False)

    @property
    def full_content(self) -> str:
        return f"{self.subject} {self.body}"

    def to_payload(self) -> dict[str, str]:
        """Request body for the remote classifier."""
        return {
            "id": self.id,
            "sender": self.sender,
            "subject": self.subject,
            "body": self.body,
            "timestamp": self.timestamp,
            "fullContent": self.full_content,
            "scanSource": self.source.value,
        }


@dataclass
class ScanResult:
    """A classified message. Status is always derived from score."""

    record: MessageRecord
    score: int
    threats: list[str] = field(default_factory=list)
    scanned_at: str = field(default_factory=utc_now_iso)
    degraded: bool = False

    def __post_init__(self) -> None:
        self.score = max(0, min(100, int(self.score)))
        self.threats = list(dict.fromkeys(self.threats))

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def status(self) -> RiskStatus:
        return RiskStatus.from_score(self.score)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = dict(self.record.to_payload())
        data.update(
            {
                "score": self.score,
                "status": self.status.value,
                "threats": list(self.threats),
                "scannedAt": self.scanned_at,
                "degraded": self.degraded,
            }
        )
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ScanResult:
        record = MessageRecord(
            id=data["id"],
            sender=data["sender"],
            subject=data["subject"],
            body=data.get("body", ""),
            timestamp=data["timestamp"],
            source=ScanSource(data.get("scanSource", ScanSource.LIST_VIEW.value)),
        )
        return cls(
            record=record,
            score=data["score"],
            threats=list(data.get("threats", [])),
            scanned_at=data.get("scannedAt", ""),
            degraded=bool(data.get("degraded", False)),
        )


@dataclass
class ScanStatistics:
    """Aggregate view over a set of results."""

    total: int = 0
    safe: int = 0
    suspected: int = 0
    dangerous: int = 0
    average_score: int = 0

    @classmethod
    def from_results(cls, results: list[ScanResult]) -> ScanStatistics:
        if not results:
            return cls()
        counts = {status: 0 for status in RiskStatus}
        for result in results:
            counts[result.status] += 1
        total_score = sum(r.score for r in results)
        # Round half up, scores are never negative
        average = (2 * total_score + len(results)) // (2 * len(results))
        return cls(
            total=len(results),
            safe=counts[RiskStatus.SAFE],
            suspected=counts[RiskStatus.SUSPECTED],
            dangerous=counts[RiskStatus.DANGEROUS],
            average_score=average,
        )

    def to_dict(self) -> dict[str, int]:
        return {
            "total": self.total,
            "safe": self.safe,
            "suspected": self.suspected,
            "dangerous": self.dangerous,
            "averageScore": self.average_score,
        }


@dataclass
class ScanState:
    """Scan state for one document context."""

    results: dict[str, ScanResult] = field(default_factory=dict)
    scanning: bool = False
