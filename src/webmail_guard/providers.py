"""Per-provider selector descriptors for locating messages in a webmail page."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .constants import SUPPORTED_HOSTS


class Provider(str, Enum):
    GMAIL = "gmail"
    OUTLOOK = "outlook"
    GENERIC = "generic"


@dataclass(frozen=True)
class Descriptor:
    """Selectors for one message-list layout.

    ``container`` matches one element per message; the remaining selectors
    are evaluated inside each container. When ``sender_attr`` is set the
    sender address is read from that attribute instead of the element text.
    """

    provider: Provider
    container: str
    sender: str
    subject: str
    snippet: str
    timestamp: str
    sender_attr: str | None = None


@dataclass(frozen=True)
class OpenedDescriptor:
    """Selectors for the single message currently open for reading.

    ``subject`` selectors are tried in order; the first match wins.
    """

    subject: tuple[str, ...]
    sender: str
    body: str
    timestamp: str
    sender_attr: str = "email"
    timestamp_attr: str = "title"


GMAIL = Descriptor(
    provider=Provider.GMAIL,
    container="tr.zA",
    sender=".yW span[email], .yW .bA4 span",
    sender_attr="email",
    subject=".y6 span:first-child, .bog",
    snippet=".y2, .Zt",
    timestamp=".xW span, .Bq span",
)

OUTLOOK = Descriptor(
    provider=Provider.OUTLOOK,
    container='[data-convid], .customScrollBar div[role="option"]',
    sender='[data-testid="MessageListItem-FromName"], ._3-Fx_',
    subject='[data-testid="MessageListItem-Subject"], ._1U4vB',
    snippet='[data-testid="MessageListItem-Preview"], ._2l9wS',
    timestamp='[data-testid="MessageListItem-Timestamp"], ._3qI6O',
)

GENERIC = Descriptor(
    provider=Provider.GENERIC,
    container=".email-row, .message-item, [data-email-id], .mail-item",
    sender=".sender, .from, [data-sender], .mail-from",
    subject=".subject, [data-subject], .mail-subject",
    snippet=".snippet, .preview, .body-preview, .mail-snippet",
    timestamp=".timestamp, .date, [data-timestamp], .mail-date",
)

OPENED_VIEW = OpenedDescriptor(
    subject=("h2.hP", "h2"),
    sender="span.gD",
    body="div.a3s",
    timestamp="span.g3",
)


def selectors_for(hostname: str) -> Descriptor:
    """Return the descriptor for a webmail hostname, falling back to GENERIC."""
    host = (hostname or "").lower()
    if "mail.google.com" in host:
        return GMAIL
    if "outlook" in host:
        return OUTLOOK
    return GENERIC


def is_supported_host(hostname: str) -> bool:
    host = (hostname or "").lower()
    return any(domain in host for domain in SUPPORTED_HOSTS)
