"""Structured logging configuration for connectai.

Library modules log through the standard library with ``extra`` fields;
the service layer (assistant, CLI) uses structlog bound to the same
handlers. All output goes to stderr so answers on stdout stay clean.
"""

import logging
import json
import sys
import time
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Dict, Any, Optional
from contextlib import contextmanager

import structlog


# Per-task context, so concurrent asks do not share fields
_log_fields: ContextVar[Dict[str, Any]] = ContextVar("connectai_log_fields", default={})

_RECORD_ATTRS = set(vars(logging.LogRecord("", 0, "", 0, "", (), None))) | {"message", "asctime"}

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class StructuredFormatter(logging.Formatter):
    """Render log records as single-line JSON."""

    # Credentials for CRM and AI backends end up in provider options
    SENSITIVE_FIELDS = ("api_key", "password", "token", "secret", "authorization", "private_key")

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        payload.update(_log_fields.get())

        for key, value in record.__dict__.items():
            if key in _RECORD_ATTRS:
                continue
            payload[key] = "[REDACTED]" if self.is_sensitive(key) else value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, ensure_ascii=False)

    @classmethod
    def is_sensitive(cls, field_name: str) -> bool:
        lowered = field_name.lower()
        return any(marker in lowered for marker in cls.SENSITIVE_FIELDS)


def setup_logging(
    format: str = "json",
    level: str = "INFO",
    log_file: Optional[str] = None
) -> None:
    """Configure root logging and structlog.

    Args:
        format: "json" for StructuredFormatter output, anything else for plain text
        level: Logging level name; unknown names fall back to INFO
        log_file: Optional file that receives the same records
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    formatter = StructuredFormatter() if format == "json" else logging.Formatter(TEXT_FORMAT)

    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if format == "json"
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def log_error(logger_name: str, event: str, error: Exception, level: int = logging.ERROR, **kwargs) -> None:
    """Log an exception with its type and any error code it carries."""
    kwargs["error_type"] = type(error).__name__
    error_code = getattr(error, "error_code", None)
    if error_code:
        kwargs["error_code"] = error_code
    get_logger(logger_name).log(level, f"{event}: {error}", exc_info=error, extra=kwargs)


def log_performance(
    logger_name: str,
    operation: str,
    duration_ms: float,
    **kwargs
) -> None:
    """Log how long an operation took.

    Args:
        logger_name: Name of the logger to use
        operation: Operation name, e.g. "build_index"
        duration_ms: Duration in milliseconds
        **kwargs: Additional fields such as record counts
    """
    kwargs["duration_ms"] = duration_ms
    get_logger(logger_name).info(f"{operation} completed in {duration_ms:.2f}ms", extra=kwargs)


@contextmanager
def log_context(**fields):
    """Attach fields to every structured record logged inside the block.

    Example:
        with log_context(query="Kolik firem?"):
            processor.process(query)
    """
    token = _log_fields.set({**_log_fields.get(), **fields})
    try:
        yield
    finally:
        _log_fields.reset(token)


class Timer:
    """Measure wall time of a block in milliseconds."""

    def __init__(self):
        self.duration_ms: Optional[float] = None
        self._start = 0.0

    def __enter__(self):
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self._start) * 1000
