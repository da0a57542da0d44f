"""
Performance telemetry components.

This module splits the telemetry engine into focused components: bounded
operation storage, instrumentation, signal collection, prediction,
reporting and loading state, composed by ``TelemetryEngine``.
"""

from .engine import TelemetryEngine
from .instrumentation import FinishHandle, OperationInstrumentation, monotonic_ms
from .loading_state import LoadingPhase, LoadingState, LoadingStateManager
from .predictor import AdaptivePredictor, LoadingRecord
from .reporting import PerformanceReport, PerformanceReporter, generate_session_id
from .ring_buffer import MetricRingBuffer
from .signal_collector import SignalCollector
from .signal_sources import BeaconSignalSource, ObserverSignalSource, TimingEntry
from .system_monitor import SystemMonitor

__all__ = [
    "TelemetryEngine",
    "MetricRingBuffer",
    "OperationInstrumentation",
    "FinishHandle",
    "monotonic_ms",
    "SignalCollector",
    "ObserverSignalSource",
    "BeaconSignalSource",
    "TimingEntry",
    "SystemMonitor",
    "AdaptivePredictor",
    "LoadingRecord",
    "PerformanceReport",
    "PerformanceReporter",
    "generate_session_id",
    "LoadingStateManager",
    "LoadingState",
    "LoadingPhase",
]
