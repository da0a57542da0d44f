"""Infrastructure Layer for the performance telemetry engine.

This module provides concrete implementations behind the domain interfaces:
configuration loading, the exception hierarchy, structured logging, and the
performance monitoring package (instrumentation, signal collection,
prediction and reporting).

Example usage:
    from src.infrastructure.config import TelemetryConfig
    from src.infrastructure.monitoring.performance import TelemetryEngine

    engine = TelemetryEngine(TelemetryConfig.from_env())
    finish = engine.begin("format document", "format")
    ...
    finish()
"""
