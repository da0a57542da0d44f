"""
Performance report assembly and dispatch.

Packages snapshots, scores, recommendations and operation history into the
report wire format and posts it to the configured sink. Dispatch is a
single attempt; there is no retry or batching.
"""

import json
import logging
import random
import string
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import httpx
from opentelemetry import trace

from src.domain.entities.operation_metric import OperationMetric
from src.domain.value_objects.performance import MetricSnapshot, Recommendation, ScoreSet

from ...exceptions_infrastructure import ReportDispatchException

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

SESSION_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
SESSION_SUFFIX_LENGTH = 9


def generate_session_id(
    wall_clock: Callable[[], float] = time.time, rng: random.Random | None = None
) -> str:
    """Session id of the form ``<epoch-ms>-<9 base36 chars>``."""
    chooser = rng or random.Random()
    suffix = "".join(
        chooser.choice(SESSION_SUFFIX_ALPHABET) for _ in range(SESSION_SUFFIX_LENGTH)
    )
    return f"{int(wall_clock() * 1000)}-{suffix}"


@dataclass(frozen=True)
class PerformanceReport:
    """A complete performance report for one session."""

    timestamp: int  # epoch milliseconds
    session_id: str
    page_url: str
    user_agent: str
    metrics: MetricSnapshot
    operations: tuple[OperationMetric, ...]
    score: ScoreSet
    recommendations: tuple[Recommendation, ...]

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON wire format."""
        return {
            "timestamp": self.timestamp,
            "sessionId": self.session_id,
            "pageUrl": self.page_url,
            "userAgent": self.user_agent,
            "metrics": self.metrics.to_dict(),
            "operations": [operation.to_dict() for operation in self.operations],
            "score": self.score.to_dict(),
            "recommendations": [
                recommendation.to_dict() for recommendation in self.recommendations
            ],
        }

    def to_json(self) -> str:
        # Operation metadata arrives JSON-safe; other values fall back to str
        return json.dumps(self.to_dict(), default=str)


class PerformanceReporter:
    """Sample-rate gating and HTTP delivery of performance reports."""

    def __init__(
        self,
        http_client: httpx.AsyncClient | None = None,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        self.http_client = http_client
        self.random_source = random_source
        self._sent_count = 0
        self._error_count = 0
        self._last_sent_at: float | None = None

    def should_sample(self, sample_rate: float) -> bool:
        """Uniform draw against the sample rate; a rate of 0 never samples."""
        if sample_rate <= 0:
            return False
        return self.random_source() < sample_rate

    async def send(self, report: PerformanceReport, endpoint: str, timeout: float = 10.0) -> None:
        """
        POST the report to ``endpoint``.

        Raises:
            ReportDispatchException: On serialization failures, invalid endpoints,
                transport errors or a non-2xx response
        """
        with tracer.start_as_current_span("telemetry.report.dispatch") as span:
            span.set_attribute("telemetry.session_id", report.session_id)
            span.set_attribute("telemetry.operations", len(report.operations))

            try:
                content = report.to_json()
            except (TypeError, ValueError) as e:
                self._error_count += 1
                raise ReportDispatchException(endpoint, f"report not serializable: {e}") from e

            try:
                if self.http_client is not None:
                    response = await self._post(self.http_client, content, endpoint, timeout)
                else:
                    async with httpx.AsyncClient(timeout=timeout) as client:
                        response = await self._post(client, content, endpoint, timeout)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                self._error_count += 1
                raise ReportDispatchException(
                    endpoint, "sink rejected report", e.response.status_code
                ) from e
            except (httpx.HTTPError, httpx.InvalidURL) as e:
                self._error_count += 1
                raise ReportDispatchException(endpoint, str(e) or type(e).__name__) from e

            span.set_attribute("http.status_code", response.status_code)

        self._sent_count += 1
        self._last_sent_at = time.time()
        logger.debug(f"Performance report sent to {endpoint} ({len(report.operations)} operations)")

    async def _post(
        self,
        client: httpx.AsyncClient,
        content: str,
        endpoint: str,
        timeout: float,
    ) -> httpx.Response:
        return await client.post(
            endpoint,
            content=content,
            headers={"Content-Type": "application/json"},
            timeout=timeout,
        )

    def get_stats(self) -> dict[str, Any]:
        """Get reporter statistics."""
        return {
            "sent_count": self._sent_count,
            "error_count": self._error_count,
            "last_sent_at": self._last_sent_at,
        }
