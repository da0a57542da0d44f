"""
Configuration Management - Telemetry engine settings from code or environment
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from typing import Any

import httpx
from dotenv import load_dotenv

from src.domain.entities.operation_metric import OperationCategory
from src.domain.exceptions import InvalidThresholdException
from src.domain.services.operation_budget_policy import (
    DEFAULT_OPERATION_BUDGETS,
    OperationBudgetPolicy,
)
from src.domain.value_objects.performance import ThresholdConfig

from .exceptions_infrastructure import InvalidConfigurationException

logger = logging.getLogger(__name__)

# Load environment variables from .env file
load_dotenv()

ENV_PREFIX = "PERF_TELEMETRY_"


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class TelemetryConfig:
    """
    Host configuration for the telemetry engine.

    Instances are never mutated after construction; ``merge`` returns a
    validated copy so readers always see a complete configuration.
    """

    enabled: bool = True
    sample_rate: float = 1.0
    max_operations: int = 100
    report_interval: int = 30000  # milliseconds
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    operation_budgets: dict[OperationCategory, float] = field(
        default_factory=lambda: dict(DEFAULT_OPERATION_BUDGETS)
    )
    enable_reporting: bool = False
    report_endpoint: str | None = None
    prune_after_report: bool = False
    report_timeout: float = 10.0  # seconds
    page_url: str = ""
    user_agent: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.sample_rate <= 1.0:
            raise InvalidConfigurationException(
                "sample_rate", self.sample_rate, "must be between 0 and 1"
            )
        if self.max_operations < 1:
            raise InvalidConfigurationException(
                "max_operations", self.max_operations, "must be at least 1"
            )
        if self.report_interval <= 0:
            raise InvalidConfigurationException(
                "report_interval", self.report_interval, "must be positive"
            )
        if self.report_timeout <= 0:
            raise InvalidConfigurationException(
                "report_timeout", self.report_timeout, "must be positive"
            )
        if self.report_endpoint:
            self._validate_endpoint(self.report_endpoint)
        try:
            self.operation_budgets = OperationBudgetPolicy.validate_budgets(
                self.operation_budgets
            )
        except (InvalidThresholdException, ValueError) as e:
            raise InvalidConfigurationException(
                "operation_budgets", self.operation_budgets, str(e)
            ) from e

    @staticmethod
    def _validate_endpoint(endpoint: str) -> None:
        try:
            url = httpx.URL(endpoint)
        except httpx.InvalidURL as e:
            raise InvalidConfigurationException("report_endpoint", endpoint, str(e)) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidConfigurationException(
                "report_endpoint", endpoint, "must be an absolute http(s) URL"
            )

    @property
    def reporting_active(self) -> bool:
        """Whether reports can be sent at all."""
        return self.enable_reporting and bool(self.report_endpoint)

    def merge(self, updates: dict[str, Any]) -> "TelemetryConfig":
        """
        Return a copy with ``updates`` applied.

        ``thresholds`` and ``operation_budgets`` given as dicts are merged
        into the current values rather than replacing them.
        """
        known = {config_field.name for config_field in fields(self)}
        unknown = set(updates) - known
        if unknown:
            raise InvalidConfigurationException(
                ", ".join(sorted(unknown)), None, "unknown configuration key"
            )

        changes = dict(updates)

        thresholds = changes.get("thresholds")
        if isinstance(thresholds, dict):
            try:
                changes["thresholds"] = self.thresholds.merge(thresholds)
            except InvalidThresholdException as e:
                raise InvalidConfigurationException(
                    "thresholds", thresholds, str(e), config_section="thresholds"
                ) from e

        budgets = changes.get("operation_budgets")
        if isinstance(budgets, dict):
            changes["operation_budgets"] = {**self.operation_budgets, **budgets}

        merged = replace(self, **changes)
        logger.debug(f"Telemetry configuration updated: {sorted(updates)}")
        return merged

    @classmethod
    def from_env(cls) -> "TelemetryConfig":
        """Load telemetry config from environment variables"""
        threshold_updates: dict[str, float] = {}
        for threshold in fields(ThresholdConfig):
            value = os.getenv(f"{ENV_PREFIX}THRESHOLD_{threshold.name.upper()}")
            if value is not None:
                threshold_updates[threshold.name] = float(value)

        try:
            thresholds = ThresholdConfig().merge(threshold_updates)
        except InvalidThresholdException as e:
            raise InvalidConfigurationException(
                "thresholds", threshold_updates, str(e), config_section="environment"
            ) from e

        return cls(
            enabled=_env_bool(f"{ENV_PREFIX}ENABLED", True),
            sample_rate=float(os.getenv(f"{ENV_PREFIX}SAMPLE_RATE", "1.0")),
            max_operations=int(os.getenv(f"{ENV_PREFIX}MAX_OPERATIONS", "100")),
            report_interval=int(os.getenv(f"{ENV_PREFIX}REPORT_INTERVAL_MS", "30000")),
            thresholds=thresholds,
            enable_reporting=_env_bool(f"{ENV_PREFIX}ENABLE_REPORTING", False),
            report_endpoint=os.getenv(f"{ENV_PREFIX}REPORT_ENDPOINT") or None,
            prune_after_report=_env_bool(f"{ENV_PREFIX}PRUNE_AFTER_REPORT", False),
            report_timeout=float(os.getenv(f"{ENV_PREFIX}REPORT_TIMEOUT", "10.0")),
            page_url=os.getenv(f"{ENV_PREFIX}PAGE_URL", ""),
            user_agent=os.getenv(f"{ENV_PREFIX}USER_AGENT") or None,
        )
