"""
System monitoring utilities.

Process memory readings and host identification used by signal sources
and performance reports.
"""

import logging
import platform
import sys

import psutil

from src.domain.value_objects.performance import MemoryUsage

logger = logging.getLogger(__name__)


class SystemMonitor:
    """System resource monitoring utilities."""

    @staticmethod
    def get_memory_usage() -> MemoryUsage | None:
        """
        Get process memory usage.

        ``used`` is the resident set size, ``total`` the virtual size of the
        process and ``limit`` the physical memory of the host.
        """
        try:
            process = psutil.Process()
            memory_info = process.memory_info()
            return MemoryUsage(
                used=int(memory_info.rss),
                total=int(memory_info.vms),
                limit=int(psutil.virtual_memory().total),
            )
        except Exception as e:
            logger.debug(f"Memory usage unavailable: {e}")
            return None

    @staticmethod
    def get_user_agent() -> str:
        """Identify the host runtime for performance reports."""
        version = ".".join(str(part) for part in sys.version_info[:3])
        return f"{platform.python_implementation()}/{version} ({platform.platform()})"
