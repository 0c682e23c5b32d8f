"""Remote risk classifier client with a local heuristic fallback."""

from __future__ import annotations

import logging
import math
from typing import Any

import httpx
from tenacity import AsyncRetrying, retry_if_exception, stop_after_attempt, wait_exponential

from .constants import API_ENDPOINT, RETRY_ATTEMPTS, RETRYABLE_STATUS_CODES
from .errors import ClassificationTransportError
from .models import MessageRecord, ScanResult
from .scorer import heuristic_score

logger = logging.getLogger(__name__)


def _is_retryable_error(exc: BaseException) -> bool:
    return (
        isinstance(exc, ClassificationTransportError)
        and exc.status_code in RETRYABLE_STATUS_CODES
    )


def _parse_verdict(response: httpx.Response) -> tuple[int, str | None, list[str]]:
    """Pull (score, status, threats) out of a classifier reply."""
    try:
        data: Any = response.json()
    except ValueError as exc:
        raise ClassificationTransportError("classifier returned invalid JSON") from exc

    if not isinstance(data, dict):
        raise ClassificationTransportError("classifier reply is not a JSON object")

    score = data.get("score")
    if isinstance(score, bool) or not isinstance(score, (int, float)):
        raise ClassificationTransportError(f"classifier reply has no numeric score: {score!r}")
    if not math.isfinite(score):
        raise ClassificationTransportError(f"classifier reply has a non-finite score: {score!r}")

    status = data.get("status")
    threats = data.get("threats") or []
    if not isinstance(threats, list):
        threats = [threats]
    return int(round(score)), status, [str(t) for t in threats]


class ClassifierClient:
    """Scores message records against the remote endpoint.

    A verdict is always produced: when the endpoint cannot be reached or
    replies with anything unusable, the local heuristic is used instead and
    the result is marked ``degraded``.
    """

    def __init__(
        self,
        endpoint: str = API_ENDPOINT,
        http_client: httpx.AsyncClient | None = None,
        max_attempts: int = RETRY_ATTEMPTS,
        wait=None,
    ) -> None:
        self.endpoint = endpoint
        self.max_attempts = max(1, max_attempts)
        self._wait = wait if wait is not None else wait_exponential(multiplier=0.5, min=0.5, max=4)
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=None)

    async def _send(self, payload: dict[str, str]) -> httpx.Response:
        try:
            response = await self._client.post(self.endpoint, json=payload)
        except httpx.HTTPError as exc:
            raise ClassificationTransportError(f"request failed: {exc}") from exc
        if not response.is_success:
            raise ClassificationTransportError(
                f"HTTP error {response.status_code}", status_code=response.status_code
            )
        return response

    async def _post(self, payload: dict[str, str]) -> httpx.Response:
        async for attempt in AsyncRetrying(
            retry=retry_if_exception(_is_retryable_error),
            wait=self._wait,
            stop=stop_after_attempt(self.max_attempts),
            reraise=True,
        ):
            with attempt:
                return await self._send(payload)
        raise ClassificationTransportError("no attempt was made")  # pragma: no cover

    async def classify_remote(self, record: MessageRecord) -> ScanResult:
        """Classify via the endpoint only. Raises ClassificationTransportError."""
        response = await self._post(record.to_payload())
        score, remote_status, threats = _parse_verdict(response)

        result = ScanResult(record=record, score=score, threats=threats, degraded=False)
        if remote_status is not None and remote_status != result.status.value:
            logger.warning(
                "Classifier status %r disagrees with score %d for %s; using %s",
                remote_status,
                result.score,
                record.id,
                result.status.value,
            )
        return result

    def classify_local(self, record: MessageRecord) -> ScanResult:
        score, threats = heuristic_score(record)
        return ScanResult(record=record, score=score, threats=threats, degraded=True)

    async def classify(self, record: MessageRecord) -> ScanResult:
        try:
            result = await self.classify_remote(record)
        except ClassificationTransportError as exc:
            logger.warning("Classifier unavailable for %s (%s), using local heuristic", record.id, exc)
            result = self.classify_local(record)
        logger.info(
            "Scanned %s from %s: %d (%s)%s",
            record.id,
            record.sender,
            result.score,
            result.status.value,
            " [offline]" if result.degraded else "",
        )
        return result

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> ClassifierClient:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        await self.aclose()
