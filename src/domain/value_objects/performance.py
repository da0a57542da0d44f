"""
Performance value objects.

Immutable snapshots, scores, thresholds and recommendations derived from
platform timing signals and instrumented operations.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields, replace
from enum import Enum
from typing import Any

from ..entities.operation_metric import OperationCategory, OperationMetric
from ..exceptions import InvalidThresholdException


class ScoreCategory(Enum):
    """Score categories a recommendation can impact."""

    LOADING = "loading"
    INTERACTIVITY = "interactivity"
    RUNTIME = "runtime"
    MEMORY = "memory"


class RecommendationSeverity(Enum):
    """Recommendation severity levels."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class MemoryUsage:
    """Heap or process memory reading in bytes."""

    used: int
    total: int
    limit: int

    @property
    def utilization(self) -> float:
        """Fraction of the limit currently used (0 when the limit is unknown)."""
        if self.limit <= 0:
            return 0.0
        return self.used / self.limit

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class MetricSnapshot:
    """
    Point-in-time platform reading.

    Signals the platform could not deliver are 0, not absent.
    """

    page_load_time: float = 0.0
    first_byte_time: float = 0.0
    first_contentful_paint: float = 0.0
    largest_contentful_paint: float = 0.0
    first_input_delay: float = 0.0
    cumulative_layout_shift: float = 0.0
    memory_usage: MemoryUsage | None = None
    latest_operation_by_category: dict[OperationCategory, OperationMetric] = field(
        default_factory=dict
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire representation."""
        return {
            "pageLoadTime": self.page_load_time,
            "firstByteTime": self.first_byte_time,
            "firstContentfulPaint": self.first_contentful_paint,
            "largestContentfulPaint": self.largest_contentful_paint,
            "firstInputDelay": self.first_input_delay,
            "cumulativeLayoutShift": self.cumulative_layout_shift,
            "memoryUsage": self.memory_usage.to_dict() if self.memory_usage else None,
            "operationMetrics": {
                category.value: metric.to_dict()
                for category, metric in self.latest_operation_by_category.items()
            },
        }


@dataclass(frozen=True)
class ScoreSet:
    """Normalized 0-100 health scores."""

    overall: int
    loading: int
    interactivity: int
    runtime: int
    memory: int

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass(frozen=True)
class ThresholdConfig:
    """
    Scoring budgets.

    Durations are milliseconds, ``cumulative_layout_shift`` is a unitless
    ratio. Every value divides a measurement, so all must be positive.
    """

    page_load_time: float = 2000.0
    first_byte_time: float = 800.0
    first_contentful_paint: float = 1500.0
    largest_contentful_paint: float = 2500.0
    first_input_delay: float = 100.0
    cumulative_layout_shift: float = 0.1

    def __post_init__(self) -> None:
        for threshold in fields(self):
            value = getattr(self, threshold.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise InvalidThresholdException(threshold.name, value)

    def merge(self, updates: dict[str, Any]) -> ThresholdConfig:
        """Return a copy with ``updates`` applied over the current values."""
        known = {threshold.name for threshold in fields(self)}
        unknown = set(updates) - known
        if unknown:
            raise InvalidThresholdException(", ".join(sorted(unknown)), "unknown threshold")
        return replace(self, **updates)

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class Recommendation:
    """Actionable advice for a category that exceeded its budget."""

    severity: RecommendationSeverity
    title: str
    description: str
    impacted_categories: frozenset[ScoreCategory]
    impacted_metrics: tuple[str, ...] = ()
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        return {
            "type": self.severity.value,
            "title": self.title,
            "description": self.description,
            "impactedCategories": sorted(c.value for c in self.impacted_categories),
            "impactedMetrics": list(self.impacted_metrics),
            "suggestions": list(self.suggestions),
        }
