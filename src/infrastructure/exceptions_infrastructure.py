"""
Infrastructure-specific exception hierarchy for the performance telemetry engine.

This module provides exceptions for infrastructure-level errors including
configuration, report delivery and coalesced operation handling.
"""

from typing import Any


class InfrastructureException(Exception):
    """Base exception for all infrastructure-level errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.details = details or {}


class TelemetryException(InfrastructureException):
    """Base exception for telemetry engine errors."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class ConfigurationException(TelemetryException):
    """Base exception for configuration errors."""

    pass


class InvalidConfigurationException(ConfigurationException):
    """Raised when configuration is invalid."""

    def __init__(
        self, config_key: str, value: Any, reason: str, config_section: str | None = None
    ) -> None:
        message = f"Invalid configuration {config_key}={value}: {reason}"
        if config_section:
            message = f"Invalid configuration in {config_section}: {config_key}={value} - {reason}"

        details = {
            "config_key": config_key,
            "value": str(value),
            "reason": reason,
            "config_section": config_section,
        }
        super().__init__(message, details)
        self.config_key = config_key
        self.value = value
        self.reason = reason
        self.config_section = config_section


# ============================================================================
# Reporting Exceptions
# ============================================================================


class ReportDispatchException(TelemetryException):
    """Raised when a performance report could not be delivered to the sink."""

    def __init__(
        self, endpoint: str, reason: str, status_code: int | None = None
    ) -> None:
        message = f"Failed to dispatch performance report to {endpoint}: {reason}"
        if status_code is not None:
            message += f" (status {status_code})"

        details = {"endpoint": endpoint, "reason": reason, "status_code": status_code}
        super().__init__(message, details)
        self.endpoint = endpoint
        self.reason = reason
        self.status_code = status_code


# ============================================================================
# Operation Exceptions
# ============================================================================


class OperationCancelledException(TelemetryException):
    """Raised to every waiter of a coalesced operation that was ended as failed."""

    def __init__(self, key: str, reason: str | None = None) -> None:
        message = f"Operation '{key}' was cancelled"
        if reason:
            message += f": {reason}"

        super().__init__(message, {"key": key, "reason": reason})
        self.key = key
        self.reason = reason
