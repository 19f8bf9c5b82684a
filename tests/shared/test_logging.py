"""Tests for structured logging helpers."""

from __future__ import annotations

import json
import logging

from tunevault.shared.errors import ErrorCode, ErrorContext, UpstreamError
from tunevault.shared.logging import (
    StructuredFormatter,
    log_api_call,
    log_operation_error,
    setup_structured_logger,
)


class TestStructuredFormatter:
    def test_renders_json_with_extras(self) -> None:
        """Test that the JSON formatter includes extra fields."""
        record = logging.LogRecord("tunevault", logging.WARNING, __file__, 1, "hello %s", ("world",), None)
        record.operation = "search"
        record.error_code = "UPSTREAM_TIMEOUT"

        entry = json.loads(StructuredFormatter().format(record))

        assert entry["message"] == "hello world"
        assert entry["level"] == "WARNING"
        assert entry["operation"] == "search"
        assert entry["error_code"] == "UPSTREAM_TIMEOUT"


class TestSetup:
    def test_file_handler_writes_json(self, temp_dir) -> None:
        """Test that the file handler writes JSON lines."""
        log_file = temp_dir / "tunevault.log"
        logger = setup_structured_logger("tunevault.test", "DEBUG", str(log_file), use_rich_console=False)

        logger.info("cache warmed")
        for handler in logger.handlers:
            handler.flush()
            handler.close()

        entry = json.loads(log_file.read_text(encoding="utf-8").splitlines()[0])
        assert entry["message"] == "cache warmed"
        assert logger.propagate is False

    def test_repeated_setup_replaces_handlers(self) -> None:
        """Test that repeated setup does not stack handlers."""
        setup_structured_logger("tunevault.test2", use_rich_console=False)
        logger = setup_structured_logger("tunevault.test2", use_rich_console=False)

        assert len(logger.handlers) == 1


class TestHelpers:
    def test_log_operation_error_attaches_code(self, caplog) -> None:
        """Test that operation errors are logged with their error code."""
        logger = logging.getLogger("tunevault.helpers")
        error = UpstreamError(ErrorCode.UPSTREAM_SERVER_ERROR, "HTTP 500", ErrorContext(operation="upstream_get"))

        with caplog.at_level(logging.WARNING, logger="tunevault.helpers"):
            log_operation_error(logger, error, level=logging.WARNING)

        record = caplog.records[0]
        assert record.levelno == logging.WARNING
        assert record.error_code == "UPSTREAM_SERVER_ERROR"
        assert record.operation == "upstream_get"

    def test_failed_api_call_logged_as_warning(self, caplog) -> None:
        """Test that a failed API call is logged as a warning."""
        logger = logging.getLogger("tunevault.api")

        with caplog.at_level(logging.DEBUG, logger="tunevault.api"):
            log_api_call(logger, "/api/songs/1", status_code=200, duration_ms=12.3456)
            log_api_call(logger, "/api/songs/1", status_code=429)

        assert [record.levelno for record in caplog.records] == [logging.DEBUG, logging.WARNING]
        assert caplog.records[0].context["duration_ms"] == 12.35
