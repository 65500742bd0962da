"""Test structured logging and error handling helpers."""

import json
import logging

import pytest
import structlog

from connectai.error_handling import (
    ConnectAIError,
    ErrorHandler,
    IndexingError,
    ProviderError,
    QueryProcessingError,
    error_context,
)
from connectai.logging_config import (
    StructuredFormatter,
    Timer,
    log_context,
    log_performance,
    setup_logging,
)


@pytest.fixture(autouse=True)
def restore_logging():
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    structlog.reset_defaults()


def make_record(msg="Test message", **extra):
    record = logging.LogRecord(
        name="test.logger",
        level=logging.INFO,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestStructuredLogging:
    """Test suite for structured logging."""

    def test_setup_logging_configures_handlers(self):
        setup_logging(format="json", level="DEBUG")

        root_logger = logging.getLogger()
        assert len(root_logger.handlers) == 1
        assert isinstance(root_logger.handlers[0].formatter, StructuredFormatter)
        assert root_logger.level == logging.DEBUG

    def test_setup_logging_with_file(self, tmp_path):
        log_file = tmp_path / "connectai.log"
        setup_logging(format="text", level="INFO", log_file=str(log_file))

        logging.getLogger("connectai.test").info("written to file")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert "written to file" in log_file.read_text()

    def test_formatter_outputs_json(self):
        parsed = json.loads(StructuredFormatter().format(make_record(table_id="companies")))

        assert parsed["message"] == "Test message"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test.logger"
        assert parsed["table_id"] == "companies"

    def test_sensitive_fields_redacted(self):
        parsed = json.loads(StructuredFormatter().format(make_record(api_key="sk-123", user="eva")))

        assert parsed["api_key"] == "[REDACTED]"
        assert parsed["user"] == "eva"

    def test_log_context(self):
        with log_context(request_id="abc"):
            parsed = json.loads(StructuredFormatter().format(make_record()))
        assert parsed["request_id"] == "abc"

        parsed = json.loads(StructuredFormatter().format(make_record()))
        assert "request_id" not in parsed

    def test_log_context_nests(self):
        with log_context(query="Kolik firem?"):
            with log_context(table_id="companies"):
                inner = json.loads(StructuredFormatter().format(make_record()))
            outer = json.loads(StructuredFormatter().format(make_record()))

        assert inner["query"] == "Kolik firem?"
        assert inner["table_id"] == "companies"
        assert "table_id" not in outer

    def test_log_performance(self, caplog):
        with caplog.at_level(logging.INFO):
            log_performance("connectai.test", "build_index", 12.5, total=3)

        record = caplog.records[-1]
        assert record.duration_ms == 12.5
        assert record.total == 3
        assert "build_index completed in 12.50ms" in record.getMessage()

    def test_timer(self):
        with Timer() as timer:
            sum(range(1000))
        assert timer.duration_ms >= 0


class TestErrorHandling:
    """Test error types and handlers."""

    def test_error_hierarchy(self):
        for error in (
            ProviderError("x", provider="json"),
            IndexingError("x", table_id="companies"),
            QueryProcessingError("x", query_type="search"),
        ):
            assert isinstance(error, ConnectAIError)

    def test_handler_adds_context(self):
        handler = ErrorHandler(context={"component": "processor"})
        error = QueryProcessingError("failed")

        returned = handler.handle_error(error, additional_context={"query": "alza"})

        assert returned is error
        assert error.context == {"component": "processor", "query": "alza"}

    def test_handler_raises_critical(self):
        with pytest.raises(ValueError):
            ErrorHandler().handle_error(ValueError("bad"), critical=True)

    def test_handler_swallows_critical_when_configured(self):
        error = ValueError("bad")
        assert ErrorHandler(raise_on_critical=False).handle_error(error, critical=True) is error

    def test_non_critical_logged_as_warning(self, caplog):
        with caplog.at_level(logging.WARNING):
            ErrorHandler().handle_error(ProviderError("down", error_code="DATA_DIR_MISSING"))

        record = caplog.records[-1]
        assert record.levelno == logging.WARNING
        assert record.error_code == "DATA_DIR_MISSING"
        assert record.error_type == "ProviderError"

    def test_with_context_is_temporary(self):
        handler = ErrorHandler(context={"a": 1})
        with handler.with_context(b=2):
            assert handler.context == {"a": 1, "b": 2}
        assert handler.context == {"a": 1}

    def test_error_context_converts(self):
        with pytest.raises(ProviderError) as exc_info:
            with error_context("read_table", convert_to=ProviderError, table_id="companies"):
                raise OSError("disk gone")

        assert exc_info.value.context["table_id"] == "companies"
        assert exc_info.value.context["original_error"] == "OSError"
        assert isinstance(exc_info.value.__cause__, OSError)

    def test_error_context_keeps_own_errors(self):
        with pytest.raises(IndexingError) as exc_info:
            with error_context("build_index"):
                raise IndexingError("bad table", table_id="x")

        assert exc_info.value.context["operation"] == "build_index"
