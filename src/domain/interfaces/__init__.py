"""
Domain interfaces for dependency inversion.

This module contains abstract interfaces that define contracts for external services
that the domain layer needs. These interfaces allow the domain layer to remain pure
by inverting dependencies and letting infrastructure implement the contracts.
"""

from .signal_source import NavigationTiming, PaintEntry, SignalSource

__all__ = ["NavigationTiming", "PaintEntry", "SignalSource"]
