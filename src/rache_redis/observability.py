"""Structured logging, timing and metric hooks for the driver.

Log records are rendered as one JSON object per line. While a batch
operation runs, the driver name and operation are kept in context
variables and added to every record and metric emitted from inside it.
"""

import json
import logging
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable

driver_name_var: ContextVar[str | None] = ContextVar("driver_name", default=None)
operation_var: ContextVar[str | None] = ContextVar("operation", default=None)


class LogLevel(str, Enum):
    """Log levels matching Python's logging module."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def current_context() -> dict[str, str]:
    """Driver and operation in scope, omitting unset ones."""
    context = {}
    driver = driver_name_var.get()
    if driver:
        context["driver"] = driver
    operation = operation_var.get()
    if operation:
        context["operation"] = operation
    return context


class StructuredFormatter(logging.Formatter):
    """Formats log records as structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "logger": record.name,
        }

        context = current_context()
        extra = getattr(record, "context", None)
        if isinstance(extra, dict):
            context.update(extra)
        if context:
            data["context"] = context

        if record.exc_info and record.exc_info[0] is not None:
            data["error"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
            }

        duration_ms = getattr(record, "duration_ms", None)
        if duration_ms is not None:
            data["duration_ms"] = duration_ms

        return json.dumps(data)


class StructuredLogger:
    """Logger taking a context dict and a duration alongside the message.

    Example:
        logger = get_logger(__name__)
        logger.debug("Batch written", context={"keys": 10}, duration_ms=1.2)
        logger.warning("Redis connection failed", error=exc)
    """

    def __init__(self, name: str, level: LogLevel | None = None) -> None:
        """Initialize structured logger.

        Args:
            name: Logger name (typically module name)
            level: Minimum log level, inherited from the parent when omitted
        """
        self.logger = logging.getLogger(name)
        if level is not None:
            self.logger.setLevel(level.value)

        # Fall back to a JSON stdout handler until configure_logging() runs
        if not self.logger.hasHandlers():
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(StructuredFormatter())
            self.logger.addHandler(handler)

    def _log(
        self,
        level: int,
        message: str,
        context: dict[str, Any] | None,
        error: Exception | None = None,
        duration_ms: float | None = None,
    ) -> None:
        extra: dict[str, Any] = {}
        if context:
            extra["context"] = context
        if duration_ms is not None:
            extra["duration_ms"] = duration_ms

        exc_info = (type(error), error, error.__traceback__) if error else None
        self.logger.log(level, message, exc_info=exc_info, extra=extra)

    def debug(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        self._log(logging.DEBUG, message, context, duration_ms=duration_ms)

    def info(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        duration_ms: float | None = None,
    ) -> None:
        self._log(logging.INFO, message, context, duration_ms=duration_ms)

    def warning(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        self._log(logging.WARNING, message, context, error)


class OperationContext:
    """Tags logs and metrics with the driver and operation in flight."""

    def __init__(self, driver: str | None = None, operation: str | None = None) -> None:
        self.driver = driver
        self.operation = operation
        self._tokens: list[tuple[ContextVar, Any]] = []

    def __enter__(self) -> "OperationContext":
        if self.driver:
            self._tokens.append((driver_name_var, driver_name_var.set(self.driver)))
        if self.operation:
            self._tokens.append((operation_var, operation_var.set(self.operation)))
        return self

    def __exit__(self, *args: Any) -> None:
        while self._tokens:
            var, token = self._tokens.pop()
            var.reset(token)


class Timer:
    """Measures wall time of a block in milliseconds."""

    def __init__(self) -> None:
        self.start_time: float = 0
        self.end_time: float = 0

    @property
    def duration_ms(self) -> float:
        return (self.end_time - self.start_time) * 1000

    def __enter__(self) -> "Timer":
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, *args: Any) -> None:
        self.end_time = time.perf_counter()


# Metric hook: callback(name, value, labels)
MetricCallback = Callable[[str, float, dict[str, Any]], None]

_metric_callbacks: list[MetricCallback] = []


def register_metric_callback(callback: MetricCallback) -> None:
    """Register a callback to receive metric events."""
    _metric_callbacks.append(callback)


def unregister_metric_callback(callback: MetricCallback) -> None:
    """Remove a previously registered metric callback."""
    if callback in _metric_callbacks:
        _metric_callbacks.remove(callback)


def emit_timer(name: str, duration_ms: float, labels: dict[str, Any] | None = None) -> None:
    """Send a duration to every registered callback.

    The driver in scope is added as a ``driver`` label. A failing callback
    never affects the caller.
    """
    labels = dict(labels or {})
    driver = driver_name_var.get()
    if driver:
        labels.setdefault("driver", driver)

    for callback in _metric_callbacks:
        try:
            callback(name, duration_ms, labels)
        except Exception:
            pass  # Don't let metric errors affect main flow


def configure_logging(
    level: LogLevel = LogLevel.INFO,
    format: str = "json",
) -> None:
    """Configure the rache_redis logger tree.

    Args:
        level: Minimum log level
        format: Output format ("json" or "text")
    """
    root_logger = logging.getLogger("rache_redis")
    root_logger.setLevel(level.value)

    # One handler on the package logger replaces per-module fallbacks
    root_logger.handlers.clear()
    for name, existing in logging.root.manager.loggerDict.items():
        if name.startswith("rache_redis.") and isinstance(existing, logging.Logger):
            existing.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    if format == "json":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ))
    root_logger.addHandler(handler)


def get_logger(name: str) -> StructuredLogger:
    """Get a structured logger for a module."""
    return StructuredLogger(name)
