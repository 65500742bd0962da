"""Error types and handling helpers for connectai."""

import logging
from typing import Any, Dict, Optional, Type
from contextlib import contextmanager

from .logging_config import log_error


class ConnectAIError(Exception):
    """Base exception for all connectai-specific errors."""

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.error_code = error_code
        self.context = context or {}


class ConfigurationError(ConnectAIError):
    """Invalid configuration file, value or environment override."""

    def __init__(self, message: str, config_key: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INVALID_CONFIG", context)
        self.config_key = config_key


class ProviderError(ConnectAIError):
    """Error raised by a CRM or AI provider."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message, error_code, context)
        self.provider = provider


class IndexingError(ConnectAIError):
    def __init__(self, message: str, table_id: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, "INDEXING_FAILED", context)
        self.table_id = table_id


class QueryProcessingError(ConnectAIError):
    def __init__(self, message: str, query_type: Optional[str] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, "QUERY_FAILED", context)
        self.query_type = query_type


class ErrorHandler:
    """Attach component context to errors and log them in one place.

    Non-critical errors are logged as warnings and returned to the caller,
    which is how the query processor turns failures into error answers.
    Critical errors are logged as errors and re-raised unless
    ``raise_on_critical`` is off.
    """

    def __init__(
        self,
        context: Optional[Dict[str, Any]] = None,
        log_errors: bool = True,
        raise_on_critical: bool = True
    ):
        self.context = context or {}
        self.log_errors = log_errors
        self.raise_on_critical = raise_on_critical

    def handle_error(
        self,
        error: Exception,
        critical: bool = False,
        additional_context: Optional[Dict[str, Any]] = None
    ) -> Exception:
        extra = {**self.context, **(additional_context or {})}

        if isinstance(error, ConnectAIError):
            error.context.update(extra)

        if self.log_errors:
            log_error(
                __name__,
                "critical_error" if critical else "error_handled",
                error,
                level=logging.ERROR if critical else logging.WARNING,
                critical=critical,
                **extra
            )

        if critical and self.raise_on_critical:
            raise error

        return error

    @contextmanager
    def with_context(self, **context_updates):
        """Temporarily extend the handler context inside a block."""
        saved = self.context
        self.context = {**saved, **context_updates}
        try:
            yield self
        finally:
            self.context = saved


@contextmanager
def error_context(
    operation: str,
    convert_to: Type[ConnectAIError] = QueryProcessingError,
    **context
):
    """Tag errors raised inside the block with the operation name.

    connectai errors are re-raised with the extra context; anything else is
    wrapped in ``convert_to`` and chained to the original exception.
    """
    full_context = {"operation": operation, **context}

    try:
        yield
    except ConnectAIError as e:
        e.context.update(full_context)
        raise
    except Exception as e:
        raise convert_to(
            f"Error during {operation}: {e}",
            context={**full_context, "original_error": type(e).__name__}
        ) from e
