"""Global pytest configuration and fixtures."""

# Standard library imports
import asyncio
from typing import Any

# Third-party imports
import pytest

# Local imports
from src.domain.interfaces.signal_source import NavigationTiming, PaintEntry, SignalSource
from src.domain.value_objects.performance import MemoryUsage
from src.infrastructure.config import TelemetryConfig


class FakeClock:
    """Deterministic millisecond clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class FakeSignalSource(SignalSource):
    """
    Signal source returning canned values.

    An async signal set to a number resolves instantly, ``None`` never
    resolves and an exception instance is raised.
    """

    def __init__(
        self,
        navigation: NavigationTiming | None = None,
        paints: list[PaintEntry] | None = None,
        memory: MemoryUsage | None = None,
        lcp: Any = 0.0,
        fid: Any = 0.0,
        cls: Any = 0.0,
    ) -> None:
        self.navigation = navigation
        self.paints = paints or []
        self.memory = memory
        self.lcp = lcp
        self.fid = fid
        self.cls = cls

    def now(self) -> float:
        return 0.0

    def navigation_timing(self) -> NavigationTiming | None:
        return self.navigation

    def paint_entries(self) -> list[PaintEntry]:
        return list(self.paints)

    def memory_usage(self) -> MemoryUsage | None:
        return self.memory

    async def _resolve(self, value: Any) -> float:
        if value is None:
            await asyncio.Event().wait()
        if isinstance(value, Exception):
            raise value
        return value

    async def largest_contentful_paint(self) -> float:
        return await self._resolve(self.lcp)

    async def first_input_delay(self) -> float:
        return await self._resolve(self.fid)

    async def cumulative_layout_shift(self) -> float:
        return await self._resolve(self.cls)


@pytest.fixture
def fake_clock() -> FakeClock:
    """Provides a deterministic clock starting at 1000ms."""
    return FakeClock()


@pytest.fixture
def fake_signal_source() -> FakeSignalSource:
    """Provides a signal source with a slow page load and no memory data."""
    return FakeSignalSource(
        navigation=NavigationTiming(load_start=0.0, response_start=200.0, load_end=3000.0),
        paints=[PaintEntry("first-paint", 400.0), PaintEntry("first-contentful-paint", 500.0)],
        lcp=1800.0,
        fid=40.0,
        cls=0.05,
    )


@pytest.fixture
def reporting_config() -> TelemetryConfig:
    """Provides a config with reporting switched on."""
    return TelemetryConfig(
        enable_reporting=True,
        report_endpoint="https://telemetry.example.com/reports",
        page_url="https://app.example.com/editor",
        user_agent="pytest-agent",
    )


@pytest.fixture
def make_signal_source() -> type[FakeSignalSource]:
    """Provides the fake signal source class for tests that need custom values."""
    return FakeSignalSource
