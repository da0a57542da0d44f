"""Immutable value objects for type safety."""

from .performance import (
    MemoryUsage,
    MetricSnapshot,
    Recommendation,
    RecommendationSeverity,
    ScoreCategory,
    ScoreSet,
    ThresholdConfig,
)

__all__ = [
    "MemoryUsage",
    "MetricSnapshot",
    "Recommendation",
    "RecommendationSeverity",
    "ScoreCategory",
    "ScoreSet",
    "ThresholdConfig",
]
