"""Extract normalized message records from a parsed webmail page."""

from __future__ import annotations

import logging
import re
from typing import Iterator

from bs4 import BeautifulSoup, Tag

from .constants import DEFAULT_SUBJECT, PLACEHOLDER_SENDER
from .errors import ExtractionError
from .models import MessageRecord, ScanSource, utc_now_iso
from .providers import OPENED_VIEW, Descriptor, OpenedDescriptor

logger = logging.getLogger(__name__)

# Deliberately loose; matches anything address-shaped in raw markup.
_EMAIL_RE = re.compile(r"[\w.-]+@[\w.-]+\.\w+")


def message_id_for(sender: str, subject: str, timestamp: str) -> str:
    """Derive a stable identifier from the sender, subject and timestamp.

    Uses a 32-bit ``h * 31 + c`` rolling hash over ``sender|subject|timestamp``,
    so the same triple always yields the same id.
    """
    h = 0
    for ch in f"{sender}|{subject}|{timestamp}":
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return f"email_{abs(h)}"


def _text(element: Tag | None) -> str:
    if element is None:
        return ""
    return element.get_text().strip()


def _attr(element: Tag, name: str) -> str:
    value = element.get(name)
    if isinstance(value, list):
        value = " ".join(value)
    return (value or "").strip()


def resolve_sender(container: Tag, descriptor: Descriptor) -> str:
    """Resolve the sender address of one message container.

    Tries the descriptor's attribute, then the element text, then the first
    address-shaped string in the container markup. Raises ExtractionError
    when none of these produce anything.
    """
    sender_el = container.select_one(descriptor.sender)
    sender = ""
    if sender_el is not None:
        if descriptor.sender_attr:
            sender = _attr(sender_el, descriptor.sender_attr)
        if not sender:
            sender = _text(sender_el)

    if "@" not in sender:
        match = _EMAIL_RE.search(container.decode_contents())
        if match:
            sender = match.group(0)
        elif sender_el is not None:
            sender = sender or PLACEHOLDER_SENDER

    if not sender:
        raise ExtractionError(f"no sender found in <{container.name}> container")
    return sender


def parse_container(container: Tag, descriptor: Descriptor, extracted_at: str) -> MessageRecord:
    sender = resolve_sender(container, descriptor)
    subject = _text(container.select_one(descriptor.subject)) or DEFAULT_SUBJECT
    snippet = _text(container.select_one(descriptor.snippet))
    timestamp = _text(container.select_one(descriptor.timestamp))

    # A missing timestamp hashes as empty so the id survives re-extraction.
    return MessageRecord(
        id=message_id_for(sender, subject, timestamp),
        sender=sender,
        subject=subject,
        body=snippet,
        timestamp=timestamp or extracted_at,
        source=ScanSource.LIST_VIEW,
        element=container,
    )


def extract(document: BeautifulSoup | Tag, descriptor: Descriptor) -> Iterator[MessageRecord]:
    """Yield a record for every message container in ``document``.

    Each call walks the document afresh. Containers whose sender cannot be
    resolved are skipped.
    """
    extracted_at = utc_now_iso()
    for container in document.select(descriptor.container):
        try:
            record = parse_container(container, descriptor, extracted_at)
        except ExtractionError as exc:
            logger.debug("Skipping container: %s", exc)
            continue
        yield record


def extract_opened(
    document: BeautifulSoup | Tag,
    descriptor: OpenedDescriptor = OPENED_VIEW,
) -> MessageRecord | None:
    """Return the message currently open for reading, or None."""
    subject_el = None
    for selector in descriptor.subject:
        subject_el = document.select_one(selector)
        if subject_el is not None:
            break
    sender_el = document.select_one(descriptor.sender)
    body_el = document.select_one(descriptor.body)

    if subject_el is None or sender_el is None or body_el is None:
        return None

    subject = _text(subject_el)
    sender = _attr(sender_el, descriptor.sender_attr) or _text(sender_el)
    body = body_el.get_text("\n").strip()

    timestamp = ""
    timestamp_el = document.select_one(descriptor.timestamp)
    if timestamp_el is not None:
        timestamp = _attr(timestamp_el, descriptor.timestamp_attr) or _text(timestamp_el)

    return MessageRecord(
        id=message_id_for(sender, subject, timestamp),
        sender=sender,
        subject=subject,
        body=body,
        timestamp=timestamp or utc_now_iso(),
        source=ScanSource.OPENED_VIEW,
        element=subject_el,
    )
