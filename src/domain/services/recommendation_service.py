"""
Performance recommendation domain service.

Analyzes a snapshot against its thresholds and generates ordered,
rule-based recommendations. Earlier rules are more severe and come first.
"""

from ..value_objects.performance import (
    MetricSnapshot,
    Recommendation,
    RecommendationSeverity,
    ScoreCategory,
    ScoreSet,
    ThresholdConfig,
)

# Fraction of the memory limit above which memory usage is flagged
MEMORY_PRESSURE_RATIO = 0.8


class RecommendationService:
    """Generates performance recommendations from threshold breaches."""

    def recommend(
        self,
        snapshot: MetricSnapshot,
        scores: ScoreSet,
        thresholds: ThresholdConfig,
    ) -> list[Recommendation]:
        """
        Generate recommendations for a snapshot.

        ``scores`` is accepted so rules can be extended to score-driven
        advice; the current rules only compare raw values to thresholds.
        An empty list means the snapshot is healthy.
        """
        recommendations: list[Recommendation] = []

        page_load = self._check_page_load(snapshot, thresholds)
        if page_load:
            recommendations.append(page_load)

        layout_shift = self._check_layout_shift(snapshot, thresholds)
        if layout_shift:
            recommendations.append(layout_shift)

        memory = self._check_memory(snapshot)
        if memory:
            recommendations.append(memory)

        return recommendations

    def _check_page_load(
        self, snapshot: MetricSnapshot, thresholds: ThresholdConfig
    ) -> Recommendation | None:
        if snapshot.page_load_time <= thresholds.page_load_time:
            return None

        return Recommendation(
            severity=RecommendationSeverity.CRITICAL,
            title="Page load time is too long",
            description=(
                f"Current page load time is {snapshot.page_load_time:.0f}ms, "
                f"above the recommended {thresholds.page_load_time:.0f}ms"
            ),
            impacted_categories=frozenset({ScoreCategory.LOADING}),
            impacted_metrics=("pageLoadTime", "firstContentfulPaint"),
            suggestions=(
                "Optimize image and asset loading",
                "Use code splitting to shrink the initial bundle",
                "Enable a caching strategy",
            ),
        )

    def _check_layout_shift(
        self, snapshot: MetricSnapshot, thresholds: ThresholdConfig
    ) -> Recommendation | None:
        if snapshot.cumulative_layout_shift <= thresholds.cumulative_layout_shift:
            return None

        return Recommendation(
            severity=RecommendationSeverity.WARNING,
            title="Layout stability needs improvement",
            description=(
                f"Current CLS is {snapshot.cumulative_layout_shift:.3f}, "
                f"above the recommended {thresholds.cumulative_layout_shift}"
            ),
            impacted_categories=frozenset({ScoreCategory.RUNTIME}),
            impacted_metrics=("cumulativeLayoutShift",),
            suggestions=(
                "Set explicit dimensions on images and videos",
                "Avoid inserting content above existing content",
                "Animate with transforms instead of layout properties",
            ),
        )

    def _check_memory(self, snapshot: MetricSnapshot) -> Recommendation | None:
        memory = snapshot.memory_usage
        if memory is None or memory.limit <= 0:
            return None
        if memory.used <= memory.limit * MEMORY_PRESSURE_RATIO:
            return None

        return Recommendation(
            severity=RecommendationSeverity.WARNING,
            title="Memory usage is high",
            description=(
                f"Memory usage is {memory.utilization:.0%} of the limit, "
                f"above the recommended {MEMORY_PRESSURE_RATIO:.0%}"
            ),
            impacted_categories=frozenset({ScoreCategory.MEMORY}),
            impacted_metrics=("memoryUsage",),
            suggestions=(
                "Remove listeners and callbacks that are no longer needed",
                "Reduce the footprint of large in-memory data structures",
                "Pool short-lived objects to lower garbage collection pressure",
            ),
        )
