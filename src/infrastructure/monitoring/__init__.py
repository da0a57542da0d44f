"""
Infrastructure Monitoring Module

Monitoring infrastructure for the performance telemetry engine including:
- Structured JSON logging with session and trace correlation
- Operation instrumentation and budget warnings
- Platform signal collection, scoring and report delivery

Use ``TelemetryEngine`` as the single entry point from host code.
"""

from .logging import TelemetryJSONFormatter, get_session_id, session_context, setup_structured_logging
from .performance import TelemetryEngine

__all__ = [
    "TelemetryEngine",
    "TelemetryJSONFormatter",
    "setup_structured_logging",
    "session_context",
    "get_session_id",
]
