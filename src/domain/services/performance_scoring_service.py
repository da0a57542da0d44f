"""
Performance scoring domain service.

Maps raw snapshot values onto 0-100 category scores. Each category score is
a linear inverse of the measurement/threshold ratio: a value at exactly the
threshold scores 0 and half the threshold scores 50.
"""

import math

from ..value_objects.performance import MetricSnapshot, ScoreSet, ThresholdConfig


def clamp_score(value: float) -> float:
    """Clamp a raw score into the [0, 100] range."""
    return max(0.0, min(100.0, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up."""
    return int(math.floor(value + 0.5))


class PerformanceScoringService:
    """
    Domain service for performance score calculation.

    All methods are pure: identical inputs always produce identical scores.
    """

    @staticmethod
    def ratio_score(measured: float, threshold: float) -> float:
        """Score a measurement against its budget, clamped to [0, 100]."""
        return clamp_score(100 - (measured / threshold) * 100)

    @classmethod
    def calculate_loading_score(cls, snapshot: MetricSnapshot, thresholds: ThresholdConfig) -> int:
        return round_half_up(cls.ratio_score(snapshot.page_load_time, thresholds.page_load_time))

    @classmethod
    def calculate_interactivity_score(
        cls, snapshot: MetricSnapshot, thresholds: ThresholdConfig
    ) -> int:
        return round_half_up(
            cls.ratio_score(snapshot.first_input_delay, thresholds.first_input_delay)
        )

    @classmethod
    def calculate_runtime_score(cls, snapshot: MetricSnapshot, thresholds: ThresholdConfig) -> int:
        return round_half_up(
            cls.ratio_score(snapshot.cumulative_layout_shift, thresholds.cumulative_layout_shift)
        )

    @staticmethod
    def calculate_memory_score(snapshot: MetricSnapshot) -> int:
        """
        Score memory pressure.

        Missing memory data (or an unknown limit) is a perfect score.
        """
        memory = snapshot.memory_usage
        if memory is None or memory.limit <= 0:
            return 100
        return round_half_up(clamp_score(100 - memory.utilization * 100))

    @classmethod
    def score(cls, snapshot: MetricSnapshot, thresholds: ThresholdConfig) -> ScoreSet:
        """
        Calculate the full score set for a snapshot.

        Args:
            snapshot: Platform and operation readings
            thresholds: Scoring budgets

        Returns:
            ScoreSet whose ``overall`` is the rounded mean of the four category scores
        """
        loading = cls.calculate_loading_score(snapshot, thresholds)
        interactivity = cls.calculate_interactivity_score(snapshot, thresholds)
        runtime = cls.calculate_runtime_score(snapshot, thresholds)
        memory = cls.calculate_memory_score(snapshot)

        overall = round_half_up((loading + interactivity + runtime + memory) / 4)

        return ScoreSet(
            overall=overall,
            loading=loading,
            interactivity=interactivity,
            runtime=runtime,
            memory=memory,
        )
