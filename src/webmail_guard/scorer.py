"""Local heuristic scoring, used when the remote classifier is unavailable."""

from __future__ import annotations

import re
from typing import NamedTuple

from .constants import HEURISTIC_BASE_SCORE
from .models import MessageRecord


class HeuristicPattern(NamedTuple):
    pattern: re.Pattern[str]
    penalty: int
    threat: str


HEURISTIC_PATTERNS = [
    HeuristicPattern(re.compile(r"urgent|immediate|action required"), 15, "urgency"),
    HeuristicPattern(re.compile(r"verify.*account|confirm.*identity"), 20, "phishing"),
    HeuristicPattern(re.compile(r"click here|click below"), 10, "suspicious_link"),
    HeuristicPattern(re.compile(r"winner|lottery|million"), 25, "scam"),
    HeuristicPattern(re.compile(r"password|credential|login"), 10, "credential_request"),
]


def heuristic_score(record: MessageRecord) -> tuple[int, list[str]]:
    """Score a message from its subject and body alone.

    Starts from HEURISTIC_BASE_SCORE and subtracts each matching pattern's
    penalty. Returns the clamped score and the matched threat tags.
    """
    content = f"{record.subject} {record.body}".lower()
    score = HEURISTIC_BASE_SCORE
    threats: list[str] = []

    for entry in HEURISTIC_PATTERNS:
        if entry.pattern.search(content):
            score -= entry.penalty
            threats.append(entry.threat)

    return max(0, min(100, score)), threats
