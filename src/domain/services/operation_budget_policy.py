"""
Operation budget policy domain service.

Per-category duration budgets for single operations. These budgets drive
advisory warnings during live instrumentation and are independent from the
aggregate scoring thresholds.
"""

from dataclasses import dataclass
from typing import Any

from ..entities.operation_metric import OperationCategory, OperationMetric
from ..exceptions import InvalidThresholdException

# Default budgets in milliseconds; categories without an entry are never flagged
DEFAULT_OPERATION_BUDGETS: dict[OperationCategory, float] = {
    OperationCategory.FORMAT: 1000.0,
    OperationCategory.RENDER: 3000.0,
    OperationCategory.CONVERT: 2000.0,
}


@dataclass(frozen=True)
class BudgetBreach:
    """An operation that took longer than its category budget."""

    operation_name: str
    category: OperationCategory
    duration: float
    budget: float

    @property
    def message(self) -> str:
        return (
            f"{self.category.value} operation '{self.operation_name}' took "
            f"{self.duration:.2f}ms (budget: {self.budget:.0f}ms)"
        )


class OperationBudgetPolicy:
    """
    Domain service evaluating completed operations against category budgets.
    """

    def __init__(self, budgets: dict[OperationCategory, float] | None = None) -> None:
        """
        Initialize the budget policy.

        Args:
            budgets: Optional per-category budgets in milliseconds
        """
        self.budgets = self.validate_budgets(
            DEFAULT_OPERATION_BUDGETS if budgets is None else budgets
        )

    @staticmethod
    def validate_budgets(budgets: dict[Any, Any]) -> dict[OperationCategory, float]:
        """Normalize category keys and reject non-positive budgets."""
        validated: dict[OperationCategory, float] = {}
        for key, value in budgets.items():
            category = key if isinstance(key, OperationCategory) else OperationCategory(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
                raise InvalidThresholdException(f"{category.value}_budget", value)
            validated[category] = float(value)
        return validated

    def budget_for(self, category: OperationCategory) -> float | None:
        return self.budgets.get(category)

    def evaluate(self, metric: OperationMetric) -> BudgetBreach | None:
        """
        Check a completed operation against its category budget.

        Returns:
            BudgetBreach when the operation exceeded its budget, None otherwise
        """
        budget = self.budgets.get(metric.category)
        if budget is None or metric.duration <= budget:
            return None

        return BudgetBreach(
            operation_name=metric.name,
            category=metric.category,
            duration=metric.duration,
            budget=budget,
        )
