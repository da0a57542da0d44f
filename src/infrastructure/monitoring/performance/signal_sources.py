"""
Signal source implementations.

Adapts callback-style timing observers to the awaitable ``SignalSource``
interface. Every observer registered by a signal method is disconnected
when that method returns or is cancelled.
"""

import asyncio
import logging
from abc import abstractmethod
from collections import defaultdict, deque
from collections.abc import Callable
from dataclasses import dataclass

from src.domain.interfaces.signal_source import NavigationTiming, PaintEntry, SignalSource
from src.domain.value_objects.performance import MemoryUsage

from .instrumentation import monotonic_ms
from .system_monitor import SystemMonitor

logger = logging.getLogger(__name__)

LARGEST_CONTENTFUL_PAINT = "largest-contentful-paint"
FIRST_INPUT = "first-input"
LAYOUT_SHIFT = "layout-shift"
FIRST_CONTENTFUL_PAINT = "first-contentful-paint"


@dataclass(frozen=True)
class TimingEntry:
    """An observed performance entry."""

    entry_type: str
    start_time: float
    processing_start: float | None = None
    value: float = 0.0
    had_recent_input: bool = False


EntryCallback = Callable[[list[TimingEntry]], None]
Disconnect = Callable[[], None]


class ObserverSignalSource(SignalSource):
    """
    Base class for platforms that deliver timing entries through observers.

    Subclasses provide ``observe``; the async signal methods are built on it.
    """

    def __init__(self, layout_shift_window: float = 8.0) -> None:
        # Seconds spent accumulating layout shifts; kept under the collector's
        # 10s race so the accumulated value is reported instead of the default
        self.layout_shift_window = layout_shift_window

    @abstractmethod
    def observe(self, entry_type: str, callback: EntryCallback) -> Disconnect:
        """Register ``callback`` for entries of ``entry_type`` and return its disconnect."""

    async def largest_contentful_paint(self) -> float:
        loop = asyncio.get_running_loop()
        result: asyncio.Future[float] = loop.create_future()

        def on_entries(entries: list[TimingEntry]) -> None:
            if entries and not result.done():
                result.set_result(entries[-1].start_time)

        disconnect = self.observe(LARGEST_CONTENTFUL_PAINT, on_entries)
        try:
            return await result
        finally:
            disconnect()

    async def first_input_delay(self) -> float:
        loop = asyncio.get_running_loop()
        result: asyncio.Future[float] = loop.create_future()

        def on_entries(entries: list[TimingEntry]) -> None:
            if not entries or result.done():
                return
            first = entries[0]
            if first.processing_start is None:
                result.set_result(0.0)
            else:
                result.set_result(max(0.0, first.processing_start - first.start_time))

        disconnect = self.observe(FIRST_INPUT, on_entries)
        try:
            return await result
        finally:
            disconnect()

    async def cumulative_layout_shift(self) -> float:
        total = 0.0

        def on_entries(entries: list[TimingEntry]) -> None:
            nonlocal total
            for entry in entries:
                if not entry.had_recent_input:
                    total += entry.value

        disconnect = self.observe(LAYOUT_SHIFT, on_entries)
        try:
            await asyncio.sleep(self.layout_shift_window)
            return total
        finally:
            disconnect()


class BeaconSignalSource(ObserverSignalSource):
    """
    Push-fed signal source.

    For hosts that receive timing data from elsewhere, such as browser
    beacons posted to a backend or a GUI toolkit's paint events. Published
    entries are buffered per type and replayed to observers registered
    later, like a buffered performance observer.
    """

    def __init__(
        self,
        clock: Callable[[], float] = monotonic_ms,
        memory_provider: Callable[[], MemoryUsage | None] = SystemMonitor.get_memory_usage,
        layout_shift_window: float = 8.0,
        max_buffered_entries: int = 150,
    ) -> None:
        super().__init__(layout_shift_window=layout_shift_window)
        self._clock = clock
        self._memory_provider = memory_provider
        self._navigation: NavigationTiming | None = None
        self._paints: list[PaintEntry] = []
        self._entries: defaultdict[str, deque[TimingEntry]] = defaultdict(
            lambda: deque(maxlen=max_buffered_entries)
        )
        self._observers: defaultdict[str, list[EntryCallback]] = defaultdict(list)

    @property
    def observer_count(self) -> int:
        return sum(len(callbacks) for callbacks in self._observers.values())

    def record_navigation(self, load_start: float, response_start: float, load_end: float) -> None:
        self._navigation = NavigationTiming(load_start, response_start, load_end)

    def record_paint(self, name: str, start_time: float) -> None:
        self._paints.append(PaintEntry(name, start_time))

    def publish(self, entry_type: str, entries: list[TimingEntry]) -> None:
        """Buffer entries and deliver them to current observers."""
        if not entries:
            return
        self._entries[entry_type].extend(entries)
        for callback in list(self._observers[entry_type]):
            self._deliver(callback, entries)

    def observe(self, entry_type: str, callback: EntryCallback) -> Disconnect:
        self._observers[entry_type].append(callback)

        buffered = list(self._entries.get(entry_type, ()))
        if buffered:
            self._deliver(callback, buffered)

        def disconnect() -> None:
            callbacks = self._observers.get(entry_type, [])
            if callback in callbacks:
                callbacks.remove(callback)

        return disconnect

    def _deliver(self, callback: EntryCallback, entries: list[TimingEntry]) -> None:
        try:
            callback(list(entries))
        except Exception as e:
            logger.warning(f"Timing observer callback failed: {e}")

    def now(self) -> float:
        return self._clock()

    def navigation_timing(self) -> NavigationTiming | None:
        return self._navigation

    def paint_entries(self) -> list[PaintEntry]:
        return list(self._paints)

    def memory_usage(self) -> MemoryUsage | None:
        return self._memory_provider()
