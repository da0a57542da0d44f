"""
Telemetry engine.

Composition root that wires the operation buffer, instrumentation, signal
collection, scoring, recommendations, prediction, reporting and loading
state together. Hosts create one engine per application and pass it to
whatever needs to measure work.
"""

import asyncio
import logging
import random
import time
from collections.abc import AsyncGenerator, Awaitable, Callable, Generator
from contextlib import asynccontextmanager, contextmanager
from typing import Any, TypeVar

import httpx

from src.domain.entities.operation_metric import OperationCategory, OperationMetric
from src.domain.interfaces.signal_source import SignalSource
from src.domain.services.operation_budget_policy import OperationBudgetPolicy
from src.domain.services.performance_scoring_service import PerformanceScoringService
from src.domain.services.recommendation_service import RecommendationService
from src.domain.value_objects.performance import (
    MetricSnapshot,
    Recommendation,
    ScoreSet,
    ThresholdConfig,
)

from ...config import TelemetryConfig
from ...exceptions_infrastructure import ReportDispatchException
from ..logging import session_context
from .instrumentation import FinishHandle, OperationInstrumentation, monotonic_ms
from .loading_state import LoadingStateManager
from .predictor import AdaptivePredictor
from .reporting import PerformanceReport, PerformanceReporter, generate_session_id
from .ring_buffer import MetricRingBuffer
from .signal_collector import SignalCollector
from .signal_sources import BeaconSignalSource
from .system_monitor import SystemMonitor

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TelemetryEngine:
    """
    Performance telemetry for one host application.

    Provides:
    - Operation timing via finish handles, context managers and decorators
    - Metric snapshots combining platform signals and recent operations
    - 0-100 health scores and recommendations
    - Sampled or manual report delivery to an HTTP sink
    - Duration prediction and request coalescing (``predictor``)
    - Loading indicator state (``loading_state``)
    """

    def __init__(
        self,
        config: TelemetryConfig | None = None,
        signal_source: SignalSource | None = None,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] | None = None,
        random_source: Callable[[], float] | None = None,
    ) -> None:
        self.config = config or TelemetryConfig()
        self.clock = clock or monotonic_ms

        self._operations: MetricRingBuffer[OperationMetric] = MetricRingBuffer(
            self.config.max_operations
        )
        self.instrumentation = OperationInstrumentation(
            self._operations,
            budget_policy=OperationBudgetPolicy(self.config.operation_budgets),
            clock=self.clock,
            is_enabled=lambda: self.config.enabled,
        )
        self.signal_source = signal_source or BeaconSignalSource(clock=self.clock)
        self.collector = SignalCollector(self.signal_source, self._operations)
        self.recommendation_service = RecommendationService()
        self.predictor = AdaptivePredictor(clock=self.clock)
        self.reporter = PerformanceReporter(http_client, random_source or random.random)
        self.loading_state = LoadingStateManager()
        self.session_id = generate_session_id()

        logger.info(
            f"Telemetry engine initialized (session: {self.session_id}, "
            f"enabled: {self.config.enabled}, reporting: {self.config.reporting_active})"
        )

    # Instrumentation

    def begin(
        self,
        name: str,
        category: OperationCategory | str,
        metadata: dict[str, Any] | None = None,
    ) -> FinishHandle:
        """Start timing an operation; call the returned handle to finish it."""
        return self.instrumentation.begin(name, category, metadata)

    def record_failure(
        self,
        name: str,
        category: OperationCategory | str,
        error: str,
        duration: float | None = None,
    ) -> OperationMetric:
        return self.instrumentation.record_failure(name, category, error, duration)

    @contextmanager
    def measure(
        self,
        name: str,
        category: OperationCategory | str,
        metadata: dict[str, Any] | None = None,
    ) -> Generator[FinishHandle, None, None]:
        with self.instrumentation.measure(name, category, metadata) as handle:
            yield handle

    @asynccontextmanager
    async def measure_async(
        self,
        name: str,
        category: OperationCategory | str,
        metadata: dict[str, Any] | None = None,
    ) -> AsyncGenerator[FinishHandle, None]:
        async with self.instrumentation.measure_async(name, category, metadata) as handle:
            yield handle

    async def measure_async_function(
        self,
        fn: Callable[[], Awaitable[T]],
        name: str,
        category: OperationCategory | str,
    ) -> tuple[T, OperationMetric]:
        return await self.instrumentation.measure_async_function(fn, name, category)

    def measure_performance(
        self, category: OperationCategory | str, name: str | None = None
    ) -> Callable[[Any], Any]:
        """Decorator form of ``measure`` for sync and async functions."""
        return self.instrumentation.measure_performance(category, name)

    def get_operations(self) -> list[OperationMetric]:
        """Recorded operations, oldest first."""
        return self._operations.snapshot()

    def clear_operations(self) -> None:
        self._operations.clear()

    # Metrics, scores and recommendations

    async def snapshot(self) -> MetricSnapshot:
        return await self.collector.snapshot()

    def score(
        self, snapshot: MetricSnapshot, thresholds: ThresholdConfig | None = None
    ) -> ScoreSet:
        return PerformanceScoringService.score(snapshot, thresholds or self.config.thresholds)

    def recommend(
        self,
        snapshot: MetricSnapshot,
        scores: ScoreSet | None = None,
        thresholds: ThresholdConfig | None = None,
    ) -> list[Recommendation]:
        active_thresholds = thresholds or self.config.thresholds
        if scores is None:
            scores = self.score(snapshot, active_thresholds)
        return self.recommendation_service.recommend(snapshot, scores, active_thresholds)

    async def generate_report(self) -> PerformanceReport:
        """Collect a snapshot and package it with scores, advice and operations."""
        snapshot = await self.snapshot()
        scores = self.score(snapshot)
        recommendations = self.recommend(snapshot, scores)

        return PerformanceReport(
            timestamp=int(time.time() * 1000),
            session_id=self.session_id,
            page_url=self.config.page_url,
            user_agent=self.config.user_agent or SystemMonitor.get_user_agent(),
            metrics=snapshot,
            operations=tuple(self.get_operations()),
            score=scores,
            recommendations=tuple(recommendations),
        )

    # Reporting

    async def maybe_report(self) -> bool:
        """
        Send a report if reporting is active and this call is sampled.

        Returns:
            True when a report was delivered
        """
        if not self.config.reporting_active:
            return False
        if not self.reporter.should_sample(self.config.sample_rate):
            logger.debug("Performance report skipped by sampling")
            return False
        return await self._dispatch()

    async def report_metrics(self) -> bool:
        """Send a report now, ignoring the sample rate."""
        if not self.config.reporting_active:
            logger.debug("Performance reporting is disabled or has no endpoint")
            return False
        return await self._dispatch()

    async def _dispatch(self) -> bool:
        endpoint = self.config.report_endpoint or ""

        with session_context(self.session_id):
            report = await self.generate_report()
            try:
                await self.reporter.send(report, endpoint, timeout=self.config.report_timeout)
            except ReportDispatchException as e:
                logger.warning(f"Performance report dropped: {e}", extra={"details": e.details})
                return False
            except Exception as e:
                logger.error(f"Performance report dropped by unexpected error: {e}", exc_info=True)
                return False

            if self.config.prune_after_report:
                self.clear_operations()
            logger.info(f"Performance report delivered ({len(report.operations)} operations)")

        return True

    async def run_reporting_loop(self, stop_event: asyncio.Event) -> None:
        """
        Call ``maybe_report`` every ``report_interval`` ms until ``stop_event`` is set.

        The host owns the task running this coroutine.
        """
        logger.info("Performance reporting loop started")
        while not stop_event.is_set():
            interval = self.config.report_interval / 1000
            try:
                await asyncio.wait_for(stop_event.wait(), interval)
            except asyncio.TimeoutError:
                await self.maybe_report()
        logger.info("Performance reporting loop stopped")

    # Configuration and lifecycle

    def update_config(self, updates: dict[str, Any]) -> TelemetryConfig:
        """
        Apply a partial configuration update.

        Raises:
            InvalidConfigurationException: If the merged configuration is invalid
        """
        config = self.config.merge(updates)

        self._operations.resize(config.max_operations)
        self.instrumentation.budget_policy = OperationBudgetPolicy(config.operation_budgets)
        self.config = config
        return config

    def close(self) -> None:
        self.loading_state.close()
        logger.info(f"Telemetry engine closed (session: {self.session_id})")
