"""Domain entities with business logic."""

from .operation_metric import OperationCategory, OperationMetric

__all__ = ["OperationCategory", "OperationMetric"]
