"""Shared fixtures for tests."""

from __future__ import annotations

import asyncio

import httpx
import pytest
from bs4 import BeautifulSoup

from webmail_guard.classifier import ClassifierClient
from webmail_guard.models import MessageRecord, ScanResult, ScanSource
from webmail_guard.scorer import heuristic_score

GMAIL_INBOX_HTML = """
<html><body>
<table>
  <tr class="zA">
    <td class="yW"><span class="bA4"><span email="alice@example.com" name="Alice">Alice</span></span></td>
    <td><div class="y6"><span>Lunch tomorrow?</span><span>extra</span></div><span class="y2">See you at noon</span></td>
    <td class="xW"><span title="Oct 18, 2026">Oct 18</span></td>
  </tr>
  <tr class="zA">
    <td class="yW"><span email="security@paypa1.example">PayPal Security</span></td>
    <td><div class="y6"><span>URGENT: verify your account now</span></div></td>
    <td class="xW"><span>Oct 17</span></td>
  </tr>
  <tr class="zA">
    <td class="yW"><span email="lotto@prizes.example">Lotto</span></td>
    <td><div class="y6"><span>You are a lottery winner</span></div>
        <span class="y2">Click here to claim your million. Login with your password.</span></td>
    <td class="xW"><span>Oct 16</span></td>
  </tr>
</table>
</body></html>
"""

OPENED_MESSAGE_HTML = """
<div class="nH">
  <h2 class="hP">Invoice overdue</h2>
  <span class="gD" email="billing@vendor.example">Vendor Billing</span>
  <span class="g3" title="Oct 15, 2026, 9:00 AM">9:00 AM</span>
  <div class="a3s"><p>Please find the invoice attached.</p><p>Thanks</p></div>
</div>
"""

GENERIC_INBOX_HTML = """
<html><body>
  <div class="email-row">
    <span class="sender">bob@example.com</span>
    <span class="subject">Quarterly report</span>
    <span class="snippet">Numbers attached</span>
    <span class="timestamp">10:00</span>
  </div>
  <div class="email-row">
    <span class="sender">Carol Smith</span>
    <a href="mailto:carol@example.com">reply</a>
    <span class="subject">Re: plans</span>
    <span class="timestamp">11:00</span>
  </div>
  <div class="email-row">
    <span class="sender">Dave</span>
    <span class="timestamp">12:00</span>
  </div>
  <div class="email-row">
    <span class="sender"></span>
    <span class="subject">Blank sender</span>
    <span class="timestamp">13:00</span>
  </div>
  <div class="email-row">
    <span class="subject">Orphan row</span>
  </div>
</body></html>
"""

OUTLOOK_INBOX_HTML = """
<html><body>
  <div data-convid="AAQk1">
    <span data-testid="MessageListItem-FromName">frank@example.com</span>
    <span data-testid="MessageListItem-Subject">Team offsite</span>
    <span data-testid="MessageListItem-Preview">Agenda inside</span>
    <span data-testid="MessageListItem-Timestamp">Mon 9:15</span>
  </div>
  <div class="customScrollBar">
    <div role="option">
      <span class="_3-Fx_">grace@example.com</span>
      <span class="_1U4vB">Password expires today</span>
      <span class="_2l9wS">Click here to keep it</span>
      <span class="_3qI6O">Tue 8:00</span>
    </div>
  </div>
</body></html>
"""


def make_record(
    subject: str = "Hello",
    body: str = "",
    sender: str = "someone@example.com",
    timestamp: str = "2026-10-19T08:00:00.000Z",
    source: ScanSource = ScanSource.LIST_VIEW,
) -> MessageRecord:
    return MessageRecord(
        id=f"email_{abs(hash((sender, subject, timestamp)))}",
        sender=sender,
        subject=subject,
        body=body,
        timestamp=timestamp,
        source=source,
    )


class FakeClassifier:
    """Deterministic stand-in for ClassifierClient that records every call."""

    def __init__(self, scores: dict[str, int] | None = None) -> None:
        self.scores = scores or {}
        self.calls: list[str] = []

    async def classify(self, record: MessageRecord) -> ScanResult:
        self.calls.append(record.id)
        await asyncio.sleep(0)
        if record.subject in self.scores:
            return ScanResult(record=record, score=self.scores[record.subject])
        score, threats = heuristic_score(record)
        return ScanResult(record=record, score=score, threats=threats, degraded=True)


class RecordingListener:
    def __init__(self) -> None:
        self.events: list[tuple] = []

    def on_scan_started(self) -> None:
        self.events.append(("started",))

    def on_result_added(self, result: ScanResult) -> None:
        self.events.append(("result", result.id))

    def on_scan_completed(self, stats) -> None:
        self.events.append(("completed", stats.total))


def mock_client(handler) -> ClassifierClient:
    """A ClassifierClient whose HTTP traffic goes to ``handler``."""
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return ClassifierClient(endpoint="http://classifier.test/api/scan-email", http_client=http_client, max_attempts=1)


@pytest.fixture
def gmail_soup() -> BeautifulSoup:
    return BeautifulSoup(GMAIL_INBOX_HTML, "html.parser")


@pytest.fixture
def gmail_with_opened_soup() -> BeautifulSoup:
    return BeautifulSoup(GMAIL_INBOX_HTML + OPENED_MESSAGE_HTML, "html.parser")


@pytest.fixture
def generic_soup() -> BeautifulSoup:
    return BeautifulSoup(GENERIC_INBOX_HTML, "html.parser")


@pytest.fixture
def outlook_soup() -> BeautifulSoup:
    return BeautifulSoup(OUTLOOK_INBOX_HTML, "html.parser")


@pytest.fixture
def fake_classifier() -> FakeClassifier:
    return FakeClassifier()


@pytest.fixture
def recording_listener() -> RecordingListener:
    return RecordingListener()
