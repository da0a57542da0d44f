"""
Unit tests for signal collection and signal sources.
"""

import asyncio
import logging
from unittest.mock import Mock

import pytest

from src.domain.entities.operation_metric import OperationCategory, OperationMetric
from src.domain.interfaces.signal_source import NavigationTiming, PaintEntry
from src.domain.value_objects.performance import MemoryUsage
from src.infrastructure.monitoring.performance.ring_buffer import MetricRingBuffer
from src.infrastructure.monitoring.performance.signal_collector import (
    CLS_TIMEOUT,
    FID_TIMEOUT,
    LCP_TIMEOUT,
    SignalCollector,
)
from src.infrastructure.monitoring.performance.signal_sources import (
    FIRST_INPUT,
    LARGEST_CONTENTFUL_PAINT,
    LAYOUT_SHIFT,
    BeaconSignalSource,
    TimingEntry,
)


def _collector(source, buffer=None, timeout=0.05):
    return SignalCollector(
        source,
        buffer or MetricRingBuffer(capacity=10),
        lcp_timeout=timeout,
        fid_timeout=timeout,
        cls_timeout=timeout,
    )


@pytest.mark.unit
class TestSignalCollector:
    """Test snapshot assembly."""

    def test_default_race_bounds(self):
        assert (LCP_TIMEOUT, FID_TIMEOUT, CLS_TIMEOUT) == (5.0, 10.0, 10.0)

    @pytest.mark.asyncio
    async def test_snapshot(self, fake_signal_source):
        snapshot = await _collector(fake_signal_source).snapshot()

        assert snapshot.page_load_time == 3000.0
        assert snapshot.first_byte_time == 200.0
        assert snapshot.first_contentful_paint == 500.0
        assert snapshot.largest_contentful_paint == 1800.0
        assert snapshot.first_input_delay == 40.0
        assert snapshot.cumulative_layout_shift == 0.05
        assert snapshot.memory_usage is None

    @pytest.mark.asyncio
    async def test_unresolved_signals_default_to_zero(self, make_signal_source):
        """Test signals that never arrive are reported as 0 after their race."""
        source = make_signal_source(lcp=None, fid=None, cls=None)

        snapshot = await _collector(source, timeout=0.01).snapshot()

        assert snapshot.largest_contentful_paint == 0.0
        assert snapshot.first_input_delay == 0.0
        assert snapshot.cumulative_layout_shift == 0.0

    @pytest.mark.asyncio
    async def test_failing_signals_default_to_zero(self, make_signal_source):
        source = make_signal_source(lcp=RuntimeError("unsupported"), fid=12.0, cls=0.2)

        snapshot = await _collector(source).snapshot()

        assert snapshot.largest_contentful_paint == 0.0
        assert snapshot.first_input_delay == 12.0
        assert snapshot.cumulative_layout_shift == 0.2

    @pytest.mark.asyncio
    async def test_missing_timing_defaults_to_zero(self, make_signal_source):
        source = make_signal_source(navigation=None, paints=[PaintEntry("first-paint", 10.0)])

        snapshot = await _collector(source).snapshot()

        assert snapshot.page_load_time == 0.0
        assert snapshot.first_byte_time == 0.0
        assert snapshot.first_contentful_paint == 0.0

    @pytest.mark.asyncio
    async def test_broken_platform_calls_default(self, make_signal_source):
        """Test synchronous reads that raise are treated as unavailable."""
        source = make_signal_source()
        source.navigation_timing = Mock(side_effect=RuntimeError("no navigation api"))
        source.paint_entries = Mock(side_effect=RuntimeError("no paint api"))
        source.memory_usage = Mock(side_effect=RuntimeError("no memory api"))

        snapshot = await _collector(source).snapshot()

        assert snapshot.page_load_time == 0.0
        assert snapshot.first_contentful_paint == 0.0
        assert snapshot.memory_usage is None

    @pytest.mark.asyncio
    async def test_negative_values_clamped(self, make_signal_source):
        source = make_signal_source(
            navigation=NavigationTiming(load_start=500.0, response_start=100.0, load_end=200.0),
            lcp=-3.0,
        )

        snapshot = await _collector(source).snapshot()

        assert snapshot.page_load_time == 0.0
        assert snapshot.first_byte_time == 0.0
        assert snapshot.largest_contentful_paint == 0.0

    @pytest.mark.asyncio
    async def test_memory_and_latest_operations(self, make_signal_source):
        """Test memory passes through and the latest operation per category is included."""
        memory = MemoryUsage(used=10, total=20, limit=40)
        buffer = MetricRingBuffer(capacity=10)
        older = OperationMetric.completed("a", OperationCategory.FORMAT, 0.0, 5.0)
        render = OperationMetric.completed("b", OperationCategory.RENDER, 0.0, 5.0)
        failure = OperationMetric.failed("c", OperationCategory.FORMAT, "boom")
        for metric in (older, render, failure):
            buffer.append(metric)

        snapshot = await _collector(make_signal_source(memory=memory), buffer).snapshot()

        assert snapshot.memory_usage == memory
        assert snapshot.latest_operation_by_category == {
            OperationCategory.FORMAT: failure,
            OperationCategory.RENDER: render,
        }


@pytest.fixture
def beacon():
    return BeaconSignalSource(
        clock=lambda: 5.0, memory_provider=lambda: None, layout_shift_window=0.01
    )


@pytest.mark.unit
class TestBeaconSignalSource:
    """Test the push-fed observer source."""

    def test_synchronous_reads(self, beacon):
        beacon.record_navigation(load_start=0.0, response_start=120.0, load_end=900.0)
        beacon.record_paint("first-contentful-paint", 300.0)

        assert beacon.now() == 5.0
        assert beacon.navigation_timing() == NavigationTiming(0.0, 120.0, 900.0)
        assert beacon.paint_entries() == [PaintEntry("first-contentful-paint", 300.0)]
        assert beacon.memory_usage() is None

    @pytest.mark.asyncio
    async def test_lcp_from_buffered_entries(self, beacon):
        """Test entries published before observing are replayed."""
        beacon.publish(
            LARGEST_CONTENTFUL_PAINT,
            [
                TimingEntry(LARGEST_CONTENTFUL_PAINT, 800.0),
                TimingEntry(LARGEST_CONTENTFUL_PAINT, 1400.0),
            ],
        )

        assert await beacon.largest_contentful_paint() == 1400.0
        assert beacon.observer_count == 0

    @pytest.mark.asyncio
    async def test_fid_published_later(self, beacon):
        task = asyncio.ensure_future(beacon.first_input_delay())
        await asyncio.sleep(0)
        assert beacon.observer_count == 1

        beacon.publish(FIRST_INPUT, [TimingEntry(FIRST_INPUT, 1000.0, processing_start=1035.0)])

        assert await task == 35.0
        assert beacon.observer_count == 0

    @pytest.mark.asyncio
    async def test_fid_without_processing_start(self, beacon):
        beacon.publish(FIRST_INPUT, [TimingEntry(FIRST_INPUT, 1000.0)])

        assert await beacon.first_input_delay() == 0.0

    @pytest.mark.asyncio
    async def test_cls_ignores_recent_input(self, beacon):
        beacon.publish(
            LAYOUT_SHIFT,
            [
                TimingEntry(LAYOUT_SHIFT, 10.0, value=0.05),
                TimingEntry(LAYOUT_SHIFT, 20.0, value=0.5, had_recent_input=True),
                TimingEntry(LAYOUT_SHIFT, 30.0, value=0.02),
            ],
        )

        assert await beacon.cumulative_layout_shift() == pytest.approx(0.07)
        assert beacon.observer_count == 0

    @pytest.mark.asyncio
    async def test_observers_disconnected_after_timeout(self, beacon):
        """Test a snapshot whose signals never arrive leaves no observers behind."""
        snapshot = await _collector(beacon, timeout=0.02).snapshot()

        assert snapshot.largest_contentful_paint == 0.0
        assert snapshot.first_input_delay == 0.0
        assert beacon.observer_count == 0

    def test_callback_errors_are_logged(self, beacon, caplog):
        calls = []

        def broken(entries):
            raise RuntimeError("observer bug")

        beacon.observe(LAYOUT_SHIFT, broken)
        beacon.observe(LAYOUT_SHIFT, calls.append)

        with caplog.at_level(logging.WARNING):
            beacon.publish(LAYOUT_SHIFT, [TimingEntry(LAYOUT_SHIFT, 1.0, value=0.1)])

        assert len(calls) == 1
        assert "observer bug" in caplog.text

    def test_disconnect(self, beacon):
        disconnect = beacon.observe(FIRST_INPUT, lambda entries: None)
        assert beacon.observer_count == 1

        disconnect()
        disconnect()

        assert beacon.observer_count == 0
