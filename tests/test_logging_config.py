"""Tests for logging configuration module."""

from __future__ import annotations

import json
import logging
import os
from io import StringIO
from unittest.mock import patch

import pytest

from photonflow.logging_config import (
    JSONFormatter,
    TextFormatter,
    configure_logging,
    get_log_format,
    get_log_level,
    get_logger,
)


def make_record(
    level: int = logging.INFO,
    name: str = "photonflow.engine.driver",
    msg: str = "Carrier dropped",
    args: tuple = (),
    **extra: object,
) -> logging.LogRecord:
    """Build a LogRecord the way Logger.makeRecord attaches ``extra=`` fields."""
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="/src/photonflow/engine/driver.py",
        lineno=77,
        msg=msg,
        args=args,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestGetLogLevel:
    """Tests for get_log_level function."""

    def test_default_is_info(self) -> None:
        """Default log level should be INFO."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_log_level() == logging.INFO

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("DEBUG", logging.DEBUG),
            ("warning", logging.WARNING),
            ("WARN", logging.WARNING),
            ("Error", logging.ERROR),
        ],
    )
    def test_named_levels(self, value: str, expected: int) -> None:
        """Level names are case insensitive and WARN aliases WARNING."""
        with patch.dict(os.environ, {"LOG_LEVEL": value}):
            assert get_log_level() == expected

    def test_invalid_level_defaults_to_info(self) -> None:
        """Invalid log level should default to INFO."""
        with patch.dict(os.environ, {"LOG_LEVEL": "LOUD"}):
            assert get_log_level() == logging.INFO


class TestGetLogFormat:
    """Tests for get_log_format function."""

    def test_default_is_text(self) -> None:
        """Default log format should be text."""
        with patch.dict(os.environ, {}, clear=True):
            assert get_log_format() == "text"

    def test_json_case_insensitive(self) -> None:
        """LOG_FORMAT=JSON selects json."""
        with patch.dict(os.environ, {"LOG_FORMAT": "JSON"}):
            assert get_log_format() == "json"

    def test_invalid_format_defaults_to_text(self) -> None:
        """Invalid log format should default to text."""
        with patch.dict(os.environ, {"LOG_FORMAT": "xml"}):
            assert get_log_format() == "text"


class TestJSONFormatter:
    """Tests for JSON log formatter."""

    def test_formats_as_valid_json(self) -> None:
        """Output should be valid JSON with the standard fields."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["message"] == "Carrier dropped"
        assert data["level"] == "INFO"
        assert data["logger"] == "photonflow.engine.driver"
        assert "timestamp" in data

    def test_formats_message_with_args(self) -> None:
        """Message arguments should be formatted."""
        record = make_record(msg="drops=%d path=%s", args=(3, "trunk"))

        data = json.loads(JSONFormatter().format(record))

        assert data["message"] == "drops=3 path=trunk"

    def test_source_only_for_debug_and_error(self) -> None:
        """Source location is attached to DEBUG and ERROR, not INFO."""
        formatter = JSONFormatter()

        debug = json.loads(formatter.format(make_record(level=logging.DEBUG)))
        error = json.loads(formatter.format(make_record(level=logging.ERROR)))
        info = json.loads(formatter.format(make_record(level=logging.INFO)))

        assert debug["source"]["line"] == 77
        assert error["source"]["file"] == "/src/photonflow/engine/driver.py"
        assert "source" not in info

    def test_extra_context(self) -> None:
        """Fields passed through extra= appear under 'extra'."""
        record = make_record(path_id="trunk", carrier=12, frame=340)

        data = json.loads(JSONFormatter().format(record))

        assert data["extra"] == {"path_id": "trunk", "carrier": 12, "frame": 340}

    def test_no_extra_block_without_context(self) -> None:
        """Records without extra fields carry no 'extra' key."""
        data = json.loads(JSONFormatter().format(make_record()))

        assert "extra" not in data


class TestTextFormatter:
    """Tests for text log formatter."""

    def test_shortens_logger_name(self) -> None:
        """Logger names under photonflow should be shortened."""
        output = TextFormatter(use_colors=False).format(make_record())

        assert "[engine.driver]" in output
        assert "photonflow.engine.driver" not in output
        assert "Carrier dropped" in output
        assert "INFO" in output

    def test_inline_context(self) -> None:
        """Context keys render inline in a fixed order."""
        record = make_record(frame=9, carrier=4, path_id="branch_upper")

        output = TextFormatter(use_colors=False).format(record)

        assert "{path_id=branch_upper carrier=4 frame=9}" in output

    def test_includes_source_for_debug(self) -> None:
        """Debug logs should include file:line."""
        output = TextFormatter(use_colors=False).format(make_record(level=logging.DEBUG))

        assert "driver.py:77" in output

    def test_no_source_for_info(self) -> None:
        """Info logs omit file:line."""
        output = TextFormatter(use_colors=False).format(make_record())

        assert "driver.py:77" not in output


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configures_photonflow_logger(self) -> None:
        """Should configure the photonflow logger."""
        configure_logging(level=logging.DEBUG, format_type="text")

        logger = logging.getLogger("photonflow")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0].formatter, TextFormatter)
        assert logger.propagate is False

    def test_configures_uvicorn_loggers(self) -> None:
        """uvicorn access and error logs share the photonflow handler."""
        configure_logging(level=logging.INFO, format_type="json")

        handler = logging.getLogger("photonflow").handlers[0]
        assert logging.getLogger("uvicorn.access").handlers == [handler]
        assert logging.getLogger("uvicorn.error").handlers == [handler]
        assert isinstance(handler.formatter, JSONFormatter)

    def test_reconfiguring_replaces_handlers(self) -> None:
        """Calling configure_logging twice does not stack handlers."""
        configure_logging(level=logging.INFO, format_type="text")
        configure_logging(level=logging.INFO, format_type="text")

        assert len(logging.getLogger("photonflow").handlers) == 1

    def test_reads_from_environment(self) -> None:
        """Should read level and format from environment."""
        with patch.dict(os.environ, {"LOG_LEVEL": "WARNING", "LOG_FORMAT": "json"}):
            configure_logging()

        logger = logging.getLogger("photonflow")
        assert logger.level == logging.WARNING
        assert isinstance(logger.handlers[0].formatter, JSONFormatter)


class TestGetLogger:
    """Tests for get_logger convenience function."""

    def test_prefixes_namespace(self) -> None:
        """Should prefix non-photonflow names with photonflow."""
        assert get_logger("my_module").name == "photonflow.my_module"

    def test_preserves_namespace(self) -> None:
        """Should not double-prefix photonflow names."""
        assert get_logger("photonflow.server").name == "photonflow.server"


class TestIntegration:
    """Integration tests for logging."""

    def test_json_logging_with_context(self) -> None:
        """A logger call with extra= produces a JSON line with context."""
        buffer = StringIO()
        handler = logging.StreamHandler(buffer)
        handler.setFormatter(JSONFormatter())

        logger = logging.getLogger("photonflow.test_json_integration")
        logger.handlers.clear()
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        logger.debug("Carrier respawned", extra={"path_id": "trunk", "carrier": 2})

        data = json.loads(buffer.getvalue().strip())
        assert data["message"] == "Carrier respawned"
        assert data["level"] == "DEBUG"
        assert data["extra"] == {"path_id": "trunk", "carrier": 2}
