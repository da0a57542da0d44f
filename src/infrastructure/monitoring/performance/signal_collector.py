"""
Platform signal collection.

Combines synchronous navigation/paint timing, timeout-bounded observer
signals and the latest instrumented operation per category into a single
``MetricSnapshot``.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable

from src.domain.entities.operation_metric import OperationMetric
from src.domain.interfaces.signal_source import SignalSource
from src.domain.value_objects.performance import MemoryUsage, MetricSnapshot

from .ring_buffer import MetricRingBuffer
from .signal_sources import FIRST_CONTENTFUL_PAINT

logger = logging.getLogger(__name__)

# Race bounds in seconds
LCP_TIMEOUT = 5.0
FID_TIMEOUT = 10.0
CLS_TIMEOUT = 10.0


class SignalCollector:
    """
    Builds metric snapshots from a signal source and the operation buffer.

    ``snapshot`` never raises: unavailable, failing or late signals are
    reported as 0.
    """

    def __init__(
        self,
        source: SignalSource,
        operations: MetricRingBuffer[OperationMetric],
        lcp_timeout: float = LCP_TIMEOUT,
        fid_timeout: float = FID_TIMEOUT,
        cls_timeout: float = CLS_TIMEOUT,
    ) -> None:
        self.source = source
        self.operations = operations
        self.lcp_timeout = lcp_timeout
        self.fid_timeout = fid_timeout
        self.cls_timeout = cls_timeout

    async def snapshot(self) -> MetricSnapshot:
        """Collect a fresh snapshot."""
        page_load_time, first_byte_time = self._read_navigation()
        first_contentful_paint = self._read_first_contentful_paint()

        lcp, fid, cls = await asyncio.gather(
            self._race(
                "largest_contentful_paint",
                self.source.largest_contentful_paint,
                self.lcp_timeout,
            ),
            self._race("first_input_delay", self.source.first_input_delay, self.fid_timeout),
            self._race(
                "cumulative_layout_shift",
                self.source.cumulative_layout_shift,
                self.cls_timeout,
            ),
        )

        return MetricSnapshot(
            page_load_time=page_load_time,
            first_byte_time=first_byte_time,
            first_contentful_paint=first_contentful_paint,
            largest_contentful_paint=lcp,
            first_input_delay=fid,
            cumulative_layout_shift=cls,
            memory_usage=self._read_memory(),
            latest_operation_by_category=self.operations.latest_by(lambda m: m.category),
        )

    def _read_navigation(self) -> tuple[float, float]:
        try:
            navigation = self.source.navigation_timing()
        except Exception as e:
            logger.debug(f"Navigation timing unavailable: {e}")
            return 0.0, 0.0

        if navigation is None:
            return 0.0, 0.0

        page_load_time = max(0.0, navigation.load_end - navigation.load_start)
        first_byte_time = max(0.0, navigation.response_start - navigation.load_start)
        return page_load_time, first_byte_time

    def _read_first_contentful_paint(self) -> float:
        try:
            entries = self.source.paint_entries()
        except Exception as e:
            logger.debug(f"Paint timing unavailable: {e}")
            return 0.0

        for entry in entries:
            if entry.name == FIRST_CONTENTFUL_PAINT:
                return max(0.0, entry.start_time)
        return 0.0

    def _read_memory(self) -> MemoryUsage | None:
        try:
            return self.source.memory_usage()
        except Exception as e:
            logger.debug(f"Memory usage unavailable: {e}")
            return None

    async def _race(
        self, signal: str, observe: Callable[[], Awaitable[float]], timeout: float
    ) -> float:
        """Await an observer-backed signal, defaulting to 0 after ``timeout`` seconds."""
        try:
            value = await asyncio.wait_for(observe(), timeout)
        except asyncio.TimeoutError:
            logger.debug(f"Signal {signal} not delivered within {timeout}s, defaulting to 0")
            return 0.0
        except Exception as e:
            logger.debug(f"Signal {signal} failed, defaulting to 0: {e}")
            return 0.0

        return max(0.0, float(value))
