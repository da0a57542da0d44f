"""
Domain signal source interface for platform timing signals.

The domain layer defines which timing signals it needs; infrastructure
provides implementations backed by a real platform, and tests provide fakes
that answer instantly.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from ..value_objects.performance import MemoryUsage


@dataclass(frozen=True)
class NavigationTiming:
    """Navigation timing marks in monotonic milliseconds."""

    load_start: float
    response_start: float
    load_end: float


@dataclass(frozen=True)
class PaintEntry:
    """A paint timing entry such as ``first-contentful-paint``."""

    name: str
    start_time: float


class SignalSource(ABC):
    """
    Capability interface over the platform timing source.

    Synchronous methods must be cheap and must not block. The asynchronous
    observer-backed methods may wait indefinitely for their signal; callers
    bound them with a timeout and cancel them when it expires, so
    implementations must release any observer they registered when the
    coroutine finishes or is cancelled.
    """

    @abstractmethod
    def now(self) -> float:
        """Current monotonic clock reading in milliseconds."""

    @abstractmethod
    def navigation_timing(self) -> NavigationTiming | None:
        """Navigation marks, or None when the page has not finished loading."""

    @abstractmethod
    def paint_entries(self) -> list[PaintEntry]:
        """Paint timing entries recorded so far."""

    @abstractmethod
    def memory_usage(self) -> MemoryUsage | None:
        """Memory snapshot, or None when the platform does not expose one."""

    @abstractmethod
    async def largest_contentful_paint(self) -> float:
        """Start time of the largest contentful paint."""

    @abstractmethod
    async def first_input_delay(self) -> float:
        """Delay between the first user input and its processing."""

    @abstractmethod
    async def cumulative_layout_shift(self) -> float:
        """Accumulated layout shift not caused by recent input."""
