"""
Domain-level exceptions for the performance telemetry engine.

This module defines exceptions that are specific to domain logic and business rules.
These exceptions are raised within domain value objects and services.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class InvalidThresholdException(DomainException):
    """
    Raised when a scoring threshold or operation budget is not usable.

    Thresholds are divisors in the scoring formulas, so they must be positive.
    """

    def __init__(self, threshold_name: str, value: Any) -> None:
        message = f"Threshold '{threshold_name}' must be a positive number, got {value!r}"
        super().__init__(message, details={"threshold": threshold_name, "value": value})
        self.threshold_name = threshold_name
        self.value = value
