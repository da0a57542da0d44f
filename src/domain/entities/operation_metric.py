"""
Operation Metric Entity - One measured unit of work
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class OperationCategory(Enum):
    """Operation category enumeration"""

    FORMAT = "format"
    RENDER = "render"
    CONVERT = "convert"
    NAVIGATION = "navigation"


def _json_safe(value: Any, seen: frozenset[int] = frozenset()) -> Any:
    """
    Copy opaque metadata into a JSON-encodable shape.

    Keys become strings, sequences become lists and anything else that is
    not a JSON scalar is stringified. A container that contains itself is
    replaced by a marker instead of recursing forever.
    """
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if id(value) in seen:
        return "<circular>"
    if isinstance(value, dict):
        inner = seen | {id(value)}
        return {
            key if isinstance(key, str) else str(key): _json_safe(item, inner)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        inner = seen | {id(value)}
        return [_json_safe(item, inner) for item in value]
    return str(value)


@dataclass(frozen=True)
class OperationMetric:
    """
    A finalized measurement of a single operation.

    Times are monotonic-clock milliseconds. Instances are immutable; the
    instrumentation layer builds them once the operation has finished.
    """

    name: str
    category: OperationCategory
    start_time: float
    end_time: float
    duration: float
    success: bool
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def completed(
        cls,
        name: str,
        category: OperationCategory,
        start_time: float,
        end_time: float,
        metadata: dict[str, Any] | None = None,
    ) -> OperationMetric:
        """Build a successful metric from a start/end clock pair."""
        return cls(
            name=name,
            category=category,
            start_time=start_time,
            end_time=end_time,
            duration=max(0.0, end_time - start_time),
            success=True,
            metadata=dict(metadata or {}),
        )

    @classmethod
    def failed(
        cls,
        name: str,
        category: OperationCategory,
        error: str,
        duration: float | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> OperationMetric:
        """
        Build a failed metric without a start handle.

        The start time is pinned to 0 so ``end_time`` equals the reported
        duration.
        """
        elapsed = max(0.0, duration or 0.0)
        return cls(
            name=name,
            category=category,
            start_time=0.0,
            end_time=elapsed,
            duration=elapsed,
            success=False,
            error=error,
            metadata=dict(metadata or {}),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the camelCase wire representation."""
        return {
            "name": self.name,
            "type": self.category.value,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
            "success": self.success,
            "error": self.error,
            "metadata": _json_safe(self.metadata),
        }
