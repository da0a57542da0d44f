"""
Operation instrumentation.

Start/stop timer pairs around arbitrary host work, explicit failure
recording, and context manager / decorator wrappers that classify the
wrapped work as passed or failed.
"""

import inspect
import logging
import time
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from contextlib import asynccontextmanager, contextmanager
from functools import wraps
from typing import Any, TypeVar

from src.domain.entities.operation_metric import OperationCategory, OperationMetric
from src.domain.services.operation_budget_policy import OperationBudgetPolicy

from .ring_buffer import MetricRingBuffer

logger = logging.getLogger(__name__)

T = TypeVar("T")


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds."""
    return time.perf_counter() * 1000


def to_category(category: OperationCategory | str) -> OperationCategory:
    return category if isinstance(category, OperationCategory) else OperationCategory(category)


class FinishHandle:
    """
    Completion handle returned by ``OperationInstrumentation.begin``.

    The first call (or ``fail``) finalizes and stores the metric; later
    calls return that same metric without recording anything.
    """

    def __init__(
        self,
        instrumentation: "OperationInstrumentation",
        name: str,
        category: OperationCategory,
        start_time: float,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        self._instrumentation = instrumentation
        self.name = name
        self.category = category
        self.start_time = start_time
        self.metadata = metadata or {}
        self._metric: OperationMetric | None = None

    @property
    def finished(self) -> bool:
        return self._metric is not None

    def __call__(self) -> OperationMetric:
        if self._metric is None:
            end_time = self._instrumentation.clock()
            self._metric = OperationMetric.completed(
                self.name, self.category, self.start_time, end_time, self.metadata
            )
            self._instrumentation.record(self._metric)
        return self._metric

    def fail(self, error: str) -> OperationMetric:
        """Finalize as failed, keeping the measured start and end times."""
        if self._metric is None:
            end_time = self._instrumentation.clock()
            self._metric = OperationMetric(
                name=self.name,
                category=self.category,
                start_time=self.start_time,
                end_time=end_time,
                duration=max(0.0, end_time - self.start_time),
                success=False,
                error=error,
                metadata=dict(self.metadata),
            )
            self._instrumentation.record(self._metric)
        return self._metric


class _DisabledHandle(FinishHandle):
    """Handle handed out while instrumentation is disabled; records nothing."""

    def __call__(self) -> OperationMetric:
        if self._metric is None:
            self._metric = OperationMetric(
                name=self.name,
                category=self.category,
                start_time=0.0,
                end_time=0.0,
                duration=0.0,
                success=False,
            )
        return self._metric

    def fail(self, error: str) -> OperationMetric:
        return self()


class OperationInstrumentation:
    """
    Records operation outcomes into the shared metric ring buffer.

    Every recorded metric is checked against its category budget; a breach
    is logged as a warning and never raised.
    """

    def __init__(
        self,
        buffer: MetricRingBuffer[OperationMetric],
        budget_policy: OperationBudgetPolicy | None = None,
        clock: Callable[[], float] = monotonic_ms,
        is_enabled: Callable[[], bool] = lambda: True,
    ) -> None:
        self.buffer = buffer
        self.budget_policy = budget_policy or OperationBudgetPolicy()
        self.clock = clock
        self.is_enabled = is_enabled

    def begin(
        self,
        name: str,
        category: OperationCategory | str,
        metadata: dict[str, Any] | None = None,
    ) -> FinishHandle:
        """Start timing an operation and return its finish handle."""
        operation_category = to_category(category)
        if not self.is_enabled():
            return _DisabledHandle(self, name, operation_category, 0.0, metadata)
        return FinishHandle(self, name, operation_category, self.clock(), metadata)

    def record_failure(
        self,
        name: str,
        category: OperationCategory | str,
        error: str,
        duration: float | None = None,
    ) -> OperationMetric:
        """
        Record a failed operation that was never started with ``begin``.

        The metric's start time is 0 and its duration defaults to 0.
        """
        metric = OperationMetric.failed(name, to_category(category), error, duration)
        if self.is_enabled():
            self.record(metric)
        return metric

    def record(self, metric: OperationMetric) -> None:
        """Store a finalized metric and run the budget check."""
        self.buffer.append(metric)
        logger.debug(
            f"Operation '{metric.name}' took {metric.duration:.2f}ms (success: {metric.success})"
        )
        self._check_budget(metric)

    def _check_budget(self, metric: OperationMetric) -> None:
        try:
            breach = self.budget_policy.evaluate(metric)
        except Exception as e:
            logger.warning(f"Budget check failed for operation '{metric.name}': {e}")
            return

        if breach:
            logger.warning(
                f"Performance budget exceeded: {breach.message}",
                extra={
                    "operation_name": breach.operation_name,
                    "operation_category": breach.category.value,
                    "duration_ms": breach.duration,
                    "budget_ms": breach.budget,
                },
            )

    @contextmanager
    def measure(
        self,
        name: str,
        category: OperationCategory | str,
        metadata: dict[str, Any] | None = None,
    ) -> Generator[FinishHandle, None, None]:
        """Context manager timing the enclosed block."""
        handle = self.begin(name, category, metadata)
        try:
            yield handle
        except BaseException as e:
            handle.fail(str(e) or type(e).__name__)
            raise
        else:
            handle()

    @asynccontextmanager
    async def measure_async(
        self,
        name: str,
        category: OperationCategory | str,
        metadata: dict[str, Any] | None = None,
    ) -> AsyncGenerator[FinishHandle, None]:
        """Async context manager timing the enclosed block."""
        handle = self.begin(name, category, metadata)
        try:
            yield handle
        except BaseException as e:
            handle.fail(str(e) or type(e).__name__)
            raise
        else:
            handle()

    async def measure_async_function(
        self,
        fn: Callable[[], Awaitable[T]],
        name: str,
        category: OperationCategory | str,
    ) -> tuple[T, OperationMetric]:
        """Await ``fn`` and return its result together with the recorded metric."""
        async with self.measure_async(name, category) as handle:
            result = await fn()
        return result, handle()

    def measure_performance(
        self, category: OperationCategory | str, name: str | None = None
    ) -> Callable[[Any], Any]:
        """Decorator timing every call of the wrapped function."""

        def decorator(func: Any) -> Any:
            operation_name = name or func.__qualname__

            @wraps(func)
            def sync_wrapper(*args: Any, **kwargs: Any) -> Any:
                with self.measure(operation_name, category):
                    return func(*args, **kwargs)

            @wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                async with self.measure_async(operation_name, category):
                    return await func(*args, **kwargs)

            return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper

        return decorator
