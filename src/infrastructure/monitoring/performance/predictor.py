"""
Adaptive duration predictor.

Keeps per-key duration history, estimates the progress of in-flight work
from the historical average, and coalesces concurrent requests for the same
key onto one shared execution.
"""

import asyncio
import logging
import time
from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from ...exceptions_infrastructure import OperationCancelledException
from .instrumentation import monotonic_ms

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Progress never reaches 100% before the work actually completes
MAX_PROGRESS = 95.0
DEFAULT_HISTORY_LIMIT = 100
DEFAULT_RETENTION_SECONDS = 7 * 24 * 60 * 60


@dataclass(frozen=True)
class LoadingRecord:
    """Finalized monitoring record for one execution of a key."""

    key: str
    start_time: float
    end_time: float
    duration: float
    success: bool
    error: str | None = None
    recorded_at: float = 0.0  # wall-clock seconds, used for age-based cleanup


class AdaptivePredictor:
    """
    Predicts operation durations from per-key history.

    Provides:
    - In-flight monitoring with FIFO-bounded history per key
    - Average duration of successful executions
    - Progress estimation capped at 95%
    - At-most-one concurrent execution per key via shared futures
    """

    def __init__(
        self,
        clock: Callable[[], float] = monotonic_ms,
        history_limit: int = DEFAULT_HISTORY_LIMIT,
        wall_clock: Callable[[], float] = time.time,
    ) -> None:
        self.clock = clock
        self.wall_clock = wall_clock
        self.history_limit = history_limit
        self._history: dict[str, deque[LoadingRecord]] = {}
        self._active: dict[str, float] = {}
        self._pending: dict[str, asyncio.Future[Any]] = {}
        self._drivers: set[asyncio.Task[None]] = set()

    def start_monitoring(self, key: str) -> None:
        """Mark ``key`` as in flight; a no-op when it already is."""
        if key in self._active:
            return
        self._active[key] = self.clock()
        self._history.setdefault(key, deque(maxlen=self.history_limit))

    def end_monitoring(self, key: str, success: bool = True, error: str | None = None) -> None:
        """
        Finalize the in-flight entry for ``key`` into its history.

        Ending a coalesced execution as failed releases every waiter with
        ``OperationCancelledException``.
        """
        start_time = self._active.pop(key, None)
        if start_time is None:
            return

        end_time = self.clock()
        record = LoadingRecord(
            key=key,
            start_time=start_time,
            end_time=end_time,
            duration=max(0.0, end_time - start_time),
            success=success,
            error=error,
            recorded_at=self.wall_clock(),
        )
        self._history.setdefault(key, deque(maxlen=self.history_limit)).append(record)

        # A successful end leaves the slot to the running execution
        if not success:
            pending = self._pending.pop(key, None)
            if pending is not None and not pending.done():
                pending.set_exception(OperationCancelledException(key, error))

        logger.debug(f"Finished monitoring '{key}' in {record.duration:.2f}ms (success: {success})")

    def get_history(self, key: str | None = None) -> list[LoadingRecord]:
        """History for one key, or for every key when ``key`` is None."""
        if key is not None:
            return list(self._history.get(key, ()))
        return [record for records in self._history.values() for record in records]

    def average_duration(self, key: str | None = None) -> float:
        """Mean duration of successful executions, 0 when there are none."""
        durations = [record.duration for record in self.get_history(key) if record.success]
        if not durations:
            return 0.0
        return sum(durations) / len(durations)

    def predict_duration(self, key: str) -> float:
        return self.average_duration(key)

    def progress(self, key: str) -> float:
        """Estimated completion percentage of the in-flight execution of ``key``."""
        start_time = self._active.get(key)
        if start_time is None:
            return 0.0

        average = self.average_duration(key)
        if average <= 0:
            return 0.0

        elapsed = max(0.0, self.clock() - start_time)
        return min(MAX_PROGRESS, elapsed / average * 100)

    def active_keys(self) -> list[str]:
        return list(self._active)

    def is_loading(self, key: str | None = None) -> bool:
        if key is not None:
            return key in self._active
        return bool(self._active)

    def cancel_loading(self, key: str) -> None:
        """Approximate cancellation by ending ``key`` as failed."""
        self.end_monitoring(key, success=False, error="Cancelled")

    async def create_controlled_promise(
        self, key: str, factory: Callable[[], Awaitable[T]]
    ) -> T:
        """
        Run ``factory`` at most once at a time per key.

        Concurrent callers for the same key share the first caller's outcome.
        Each caller awaits through ``asyncio.shield`` so cancelling one caller
        does not cancel the shared execution.
        """
        pending = self._pending.get(key)
        if pending is None:
            pending = asyncio.get_running_loop().create_future()
            self._pending[key] = pending
            self.start_monitoring(key)

            driver = asyncio.ensure_future(self._drive(key, factory, pending))
            self._drivers.add(driver)
            driver.add_done_callback(self._drivers.discard)
        else:
            logger.debug(f"Joining in-flight execution for '{key}'")

        return await asyncio.shield(pending)

    async def _drive(
        self, key: str, factory: Callable[[], Awaitable[Any]], pending: asyncio.Future[Any]
    ) -> None:
        try:
            result = await factory()
        except asyncio.CancelledError:
            self._settle(key, pending, success=False, error="Cancelled")
            if not pending.done():
                pending.cancel()
            raise
        except Exception as e:
            self._settle(key, pending, success=False, error=str(e))
            if not pending.done():
                pending.set_exception(e)
            return

        self._settle(key, pending, success=True)
        if not pending.done():
            pending.set_result(result)

    def _settle(
        self, key: str, pending: asyncio.Future[Any], success: bool, error: str | None = None
    ) -> None:
        # Release the slot first so waiters see the factory's own outcome
        if self._pending.get(key) is not pending:
            return
        del self._pending[key]
        self.end_monitoring(key, success=success, error=error)

    def cleanup(self, older_than: float = DEFAULT_RETENTION_SECONDS) -> None:
        """Drop history recorded more than ``older_than`` seconds ago."""
        cutoff = self.wall_clock() - older_than

        for key in list(self._history):
            kept = [record for record in self._history[key] if record.recorded_at > cutoff]
            if kept:
                self._history[key] = deque(kept, maxlen=self.history_limit)
            elif key not in self._active:
                del self._history[key]
            else:
                self._history[key].clear()

    def get_performance_stats(self) -> dict[str, dict[str, Any]]:
        """Per-key execution statistics for keys with at least one success."""
        stats: dict[str, dict[str, Any]] = {}

        for key, records in self._history.items():
            successful = [record for record in records if record.success]
            if not successful:
                continue

            durations = [record.duration for record in successful]
            stats[key] = {
                "count": len(records),
                "success_count": len(successful),
                "failure_count": len(records) - len(successful),
                "success_rate": len(successful) / len(records) * 100,
                "average_time": sum(durations) / len(durations),
                "min_time": min(durations),
                "max_time": max(durations),
                "last_load": successful[-1].start_time,
            }

        return stats
