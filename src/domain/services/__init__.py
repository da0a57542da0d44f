"""Domain services for telemetry logic that spans entities and value objects."""

from .operation_budget_policy import DEFAULT_OPERATION_BUDGETS, BudgetBreach, OperationBudgetPolicy
from .performance_scoring_service import PerformanceScoringService
from .recommendation_service import RecommendationService

__all__ = [
    "BudgetBreach",
    "DEFAULT_OPERATION_BUDGETS",
    "OperationBudgetPolicy",
    "PerformanceScoringService",
    "RecommendationService",
]
