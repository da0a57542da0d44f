"""
Structured Logging for the Performance Telemetry Engine

JSON structured logs with session correlation, operation fields and
OpenTelemetry trace context, so diagnostics emitted by the engine can be
joined with the reports it sends.
"""

import json
import logging
import sys
from collections.abc import Generator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from enum import Enum
from typing import Any

from opentelemetry import trace

# Context variable for session correlation
session_id_var: ContextVar[str | None] = ContextVar("session_id", default=None)

# Record attributes the formatter promotes to first-class fields
TELEMETRY_FIELDS = ("operation_name", "operation_category", "duration_ms", "budget_ms")

STANDARD_FIELDS = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "exc_info",
    "exc_text",
    "stack_info",
    "lineno",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
    "message",
    "session_id",
    "trace_id",
    "span_id",
    *TELEMETRY_FIELDS,
}


class TelemetryLogRecord(logging.LogRecord):
    """Log record carrying session and trace correlation."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)

        self.session_id = session_id_var.get()

        span = trace.get_current_span()
        if span.is_recording():
            span_context = span.get_span_context()
            self.trace_id = format(span_context.trace_id, "032x") if span_context.trace_id else None
            self.span_id = format(span_context.span_id, "016x") if span_context.span_id else None
        else:
            self.trace_id = None
            self.span_id = None


class TelemetryJSONFormatter(logging.Formatter):
    """JSON formatter for structured telemetry logs."""

    def __init__(self, include_extra: bool = True, sort_keys: bool = True) -> None:
        super().__init__()
        self.include_extra = include_extra
        self.sort_keys = sort_keys

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        session_id = getattr(record, "session_id", None) or session_id_var.get()
        if session_id:
            log_entry["session_id"] = session_id

        if getattr(record, "trace_id", None):
            log_entry["trace_id"] = record.trace_id
        if getattr(record, "span_id", None):
            log_entry["span_id"] = record.span_id

        operation = {
            key: self._serialize_value(getattr(record, key))
            for key in TELEMETRY_FIELDS
            if getattr(record, key, None) is not None
        }
        if operation:
            log_entry["operation"] = operation

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        if self.include_extra:
            extra = {
                key: self._serialize_value(value)
                for key, value in record.__dict__.items()
                if key not in STANDARD_FIELDS and not key.startswith("_")
            }
            if extra:
                log_entry["extra"] = extra

        return json.dumps(log_entry, sort_keys=self.sort_keys, default=self._serialize_value)

    def _serialize_value(self, value: Any) -> Any:
        """Serialize complex values for JSON output."""
        if isinstance(value, Enum):
            return value.value
        elif isinstance(value, (set, frozenset)):
            return sorted(str(item) for item in value)
        elif hasattr(value, "to_dict"):
            return value.to_dict()
        elif hasattr(value, "__dict__"):
            return str(value)
        return value


def get_session_id() -> str | None:
    """Get the session id bound to the current context."""
    return session_id_var.get()


@contextmanager
def session_context(session_id: str) -> Generator[str, None, None]:
    """Context manager binding a telemetry session id for log correlation."""
    token = session_id_var.set(session_id)
    try:
        yield session_id
    finally:
        session_id_var.reset(token)


def setup_structured_logging(
    level: str = "INFO",
    format_type: str = "json",
    log_file: str | None = None,
) -> None:
    """
    Setup structured logging for the telemetry engine.

    Args:
        level: Logging level
        format_type: Formatter type ('json' or 'text')
        log_file: Optional log file path
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter: TelemetryJSONFormatter | logging.Formatter
    if format_type == "json":
        formatter = TelemetryJSONFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.setLevel(getattr(logging, level.upper()))

    logging.setLogRecordFactory(TelemetryLogRecord)

    logging.info("Structured logging configured successfully")
