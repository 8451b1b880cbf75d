"""
Structured Logging: JSON-Formatted with Request Correlation

Provides:
- JSON-formatted log output, one object per line
- Request/session id injection from a context variable
- Log level filtering
- Context propagation across awaits within one request

Designed for centralized log aggregation (ELK, Loki).
"""

from __future__ import annotations

import json
import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Any, Optional, TextIO


class LogLevel(IntEnum):
    """Log level enumeration."""
    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @classmethod
    def parse(cls, name: str) -> LogLevel:
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown log level {name!r}") from None


# Context variable for request-scoped fields (request_id, session_id, ...)
_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})

# Attributes every stdlib LogRecord carries; anything else is a caller extra.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename",
    "funcName", "levelname", "levelno", "lineno",
    "module", "msecs", "pathname", "process",
    "processName", "relativeCreated", "stack_info",
    "exc_info", "exc_text", "thread", "threadName",
    "taskName", "message", "asctime",
})


def current_log_context() -> dict[str, Any]:
    """Fields currently bound by StructuredLogger.context()."""
    return dict(_log_context.get())


@dataclass
class LogRecord:
    """Structured log record."""
    timestamp: str
    level: str
    message: str
    logger_name: str
    request_id: Optional[str] = None
    session_id: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)

    def to_json(self) -> str:
        """Serialize to JSON."""
        data: dict[str, Any] = {
            "@timestamp": self.timestamp,
            "level": self.level,
            "message": self.message,
            "logger": self.logger_name,
        }

        if self.request_id:
            data["request_id"] = self.request_id
        if self.session_id:
            data["session_id"] = self.session_id

        data.update(self.extra)

        return json.dumps(data, default=str)


class JsonFormatter(logging.Formatter):
    """
    JSON log formatter with request correlation.
    """

    def format(self, record: logging.LogRecord) -> str:
        extra = dict(_log_context.get())
        request_id = extra.pop("request_id", None)
        session_id = extra.pop("session_id", None)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                extra[key] = value

        if record.exc_info:
            extra["exception"] = self.formatException(record.exc_info)

        log_record = LogRecord(
            timestamp=datetime.now(timezone.utc).isoformat(),
            level=record.levelname,
            message=record.getMessage(),
            logger_name=record.name,
            request_id=request_id,
            session_id=session_id,
            extra=extra,
        )

        return log_record.to_json()


class StructuredLogger:
    """
    Structured logger with context propagation.

    Keyword arguments become fields of the JSON record. Names that clash
    with stdlib LogRecord attributes are prefixed with ``field_``.

    Usage:
        logger = StructuredLogger("agentcore.agent")

        with logger.context(request_id="abc", session_id="s-1"):
            logger.info("Handling request", input_chars=42)
    """

    __slots__ = ("_logger", "_default_extra")

    def __init__(self, name: str) -> None:
        self._logger = logging.getLogger(name)
        self._default_extra: dict[str, Any] = {}

    @property
    def name(self) -> str:
        return self._logger.name

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: Any = None, **kwargs: Any) -> None:
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **kwargs)

    def critical(self, message: str, exc_info: Any = None, **kwargs: Any) -> None:
        self._log(LogLevel.CRITICAL, message, exc_info=exc_info, **kwargs)

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: Any = None,
        **kwargs: Any,
    ) -> None:
        if not self._logger.isEnabledFor(level.value):
            return
        extra = {
            (f"field_{k}" if k in _RESERVED_ATTRS else k): v
            for k, v in {**self._default_extra, **kwargs}.items()
        }
        self._logger.log(level.value, message, exc_info=exc_info, extra=extra)

    def with_extra(self, **kwargs: Any) -> StructuredLogger:
        """Create child logger with additional default fields."""
        new_logger = StructuredLogger(self._logger.name)
        new_logger._default_extra = {**self._default_extra, **kwargs}
        return new_logger

    @staticmethod
    def context(**kwargs: Any) -> _LogContext:
        """Context manager for request-scoped fields."""
        return _LogContext(kwargs)


class _LogContext:
    """Context manager for adding fields to all logs."""

    __slots__ = ("_fields", "_token")

    def __init__(self, fields: dict[str, Any]) -> None:
        self._fields = fields
        self._token = None

    def __enter__(self) -> _LogContext:
        new_context = {**_log_context.get(), **self._fields}
        self._token = _log_context.set(new_context)
        return self

    def __exit__(self, *args: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def setup_logging(
    level: LogLevel = LogLevel.INFO,
    json_output: bool = True,
    stream: Optional[TextIO] = None,
) -> None:
    """
    Configure root logger for structured logging.

    Args:
        level: Minimum log level
        json_output: Use JSON formatting
        stream: Output stream (default: stderr)
    """
    root = logging.getLogger()
    root.setLevel(level.value)

    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level.value)

    if json_output:
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        ))

    root.addHandler(handler)

    # Suppress noisy loggers
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)
