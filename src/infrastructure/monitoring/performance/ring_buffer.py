"""
Bounded metric storage.

Append-only FIFO buffer that evicts the oldest entries once capacity is
exceeded.
"""

import threading
from collections import deque
from collections.abc import Callable, Iterator
from typing import Generic, TypeVar

T = TypeVar("T")
K = TypeVar("K")


class MetricRingBuffer(Generic[T]):
    """Fixed-capacity, FIFO-evicting append log."""

    def __init__(self, capacity: int = 100) -> None:
        if capacity < 1:
            raise ValueError(f"Ring buffer capacity must be at least 1, got {capacity}")
        self._entries: deque[T] = deque(maxlen=capacity)
        self._lock = threading.Lock()

    @property
    def capacity(self) -> int:
        return self._entries.maxlen or 0

    def append(self, entry: T) -> None:
        """Append an entry, evicting the oldest one when full."""
        with self._lock:
            self._entries.append(entry)

    def resize(self, capacity: int) -> None:
        """Change capacity, keeping the most recent entries."""
        if capacity < 1:
            raise ValueError(f"Ring buffer capacity must be at least 1, got {capacity}")
        with self._lock:
            if capacity != self._entries.maxlen:
                self._entries = deque(self._entries, maxlen=capacity)

    def snapshot(self) -> list[T]:
        """Copy of the entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def latest_by(self, key: Callable[[T], K]) -> dict[K, T]:
        """Most recently appended entry for each key."""
        latest: dict[K, T] = {}
        with self._lock:
            for entry in self._entries:
                latest[key(entry)] = entry
        return latest

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[T]:
        return iter(self.snapshot())
