"""
Unit tests for report assembly and dispatch.
"""

import json
import random
import re
from unittest.mock import patch

import httpx
import pytest

from src.domain.entities.operation_metric import OperationCategory, OperationMetric
from src.domain.value_objects.performance import MetricSnapshot, ScoreSet
from src.infrastructure.exceptions_infrastructure import ReportDispatchException
from src.infrastructure.monitoring.performance.reporting import (
    PerformanceReport,
    PerformanceReporter,
    generate_session_id,
)

ENDPOINT = "https://telemetry.example.com/reports"


def _report(**overrides):
    values = {
        "timestamp": 1_700_000_000_000,
        "session_id": "1700000000000-abcdefghi",
        "page_url": "https://app.example.com",
        "user_agent": "pytest-agent",
        "metrics": MetricSnapshot(page_load_time=1200.0),
        "operations": (
            OperationMetric.completed(
                "fmt", OperationCategory.FORMAT, 0.0, 4.0, {"doc": object()}
            ),
        ),
        "score": ScoreSet(overall=90, loading=40, interactivity=100, runtime=100, memory=100),
        "recommendations": (),
    }
    values.update(overrides)
    return PerformanceReport(**values)


@pytest.mark.unit
class TestSessionId:
    """Test session id generation."""

    def test_format(self):
        session_id = generate_session_id(wall_clock=lambda: 1_700_000_000.5)

        assert re.fullmatch(r"1700000000500-[0-9a-z]{9}", session_id)

    def test_seeded_is_deterministic(self):
        first = generate_session_id(lambda: 1.0, random.Random(7))
        second = generate_session_id(lambda: 1.0, random.Random(7))

        assert first == second


@pytest.mark.unit
class TestPerformanceReport:
    """Test the report wire format."""

    def test_to_dict_keys(self):
        data = _report().to_dict()

        assert set(data) == {
            "timestamp",
            "sessionId",
            "pageUrl",
            "userAgent",
            "metrics",
            "operations",
            "score",
            "recommendations",
        }
        assert data["metrics"]["pageLoadTime"] == 1200.0
        assert data["operations"][0]["type"] == "format"
        assert data["score"]["overall"] == 90

    def test_to_json_stringifies_opaque_metadata(self):
        """Test metadata JSON cannot encode does not break serialization."""
        data = json.loads(_report().to_json())

        assert isinstance(data["operations"][0]["metadata"]["doc"], str)

    def test_to_json_handles_non_string_keys_and_cycles(self):
        loop = []
        loop.append(loop)
        metadata = {(1, 2): "tuple key", 3: ["a", ("b", "c")], "loop": loop}
        report = _report(
            operations=(
                OperationMetric.completed("fmt", OperationCategory.FORMAT, 0.0, 1.0, metadata),
            )
        )

        data = json.loads(report.to_json())

        assert data["operations"][0]["metadata"] == {
            "(1, 2)": "tuple key",
            "3": ["a", ["b", "c"]],
            "loop": ["<circular>"],
        }


@pytest.mark.unit
class TestPerformanceReporter:
    """Test sampling and HTTP delivery."""

    def test_sample_rate_zero_never_samples(self):
        reporter = PerformanceReporter(random_source=lambda: 0.0)

        assert reporter.should_sample(0.0) is False

    def test_sample_rate_one_always_samples(self):
        reporter = PerformanceReporter(random_source=lambda: 0.999999)

        assert reporter.should_sample(1.0) is True

    def test_partial_sample_rate(self):
        draws = iter([0.1, 0.6])
        reporter = PerformanceReporter(random_source=lambda: next(draws))

        assert reporter.should_sample(0.5) is True
        assert reporter.should_sample(0.5) is False

    @pytest.mark.asyncio
    async def test_send_posts_json(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(204)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            reporter = PerformanceReporter(http_client=client)
            await reporter.send(_report(), ENDPOINT, timeout=1.0)

        assert len(requests) == 1
        assert requests[0].method == "POST"
        assert str(requests[0].url) == ENDPOINT
        assert requests[0].headers["content-type"] == "application/json"
        assert json.loads(requests[0].content)["sessionId"] == "1700000000000-abcdefghi"
        assert reporter.get_stats()["sent_count"] == 1

    @pytest.mark.asyncio
    async def test_non_2xx_raises(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(503))

        async with httpx.AsyncClient(transport=transport) as client:
            reporter = PerformanceReporter(http_client=client)
            with pytest.raises(ReportDispatchException) as exc_info:
                await reporter.send(_report(), ENDPOINT)

        assert exc_info.value.status_code == 503
        assert exc_info.value.endpoint == ENDPOINT
        assert reporter.get_stats()["error_count"] == 1

    @pytest.mark.asyncio
    async def test_invalid_endpoint_raises_dispatch_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200))

        async with httpx.AsyncClient(transport=transport) as client:
            reporter = PerformanceReporter(http_client=client)
            with pytest.raises(ReportDispatchException) as exc_info:
                await reporter.send(_report(), "http://[::1")

        assert exc_info.value.endpoint == "http://[::1"
        assert reporter.get_stats()["error_count"] == 1

    @pytest.mark.asyncio
    async def test_serialization_error_raises_dispatch_error(self):
        requests = []

        def handler(request):
            requests.append(request)
            return httpx.Response(200)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            reporter = PerformanceReporter(http_client=client)
            with patch.object(
                PerformanceReport, "to_json", side_effect=ValueError("Circular reference detected")
            ):
                with pytest.raises(ReportDispatchException) as exc_info:
                    await reporter.send(_report(), ENDPOINT)

        assert "not serializable" in str(exc_info.value)
        assert requests == []

    @pytest.mark.asyncio
    async def test_transport_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            reporter = PerformanceReporter(http_client=client)
            with pytest.raises(ReportDispatchException) as exc_info:
                await reporter.send(_report(), ENDPOINT)

        assert exc_info.value.status_code is None
        assert "connection refused" in str(exc_info.value)
