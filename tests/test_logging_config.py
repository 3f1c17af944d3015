"""Tests for structured logging configuration."""

import json
import logging
import logging.handlers
import sys

import pytest

from onboarder.exceptions import ConfigurationError
from onboarder.logging_config import (
    JSONFormatter,
    LogContext,
    LogRecord,
    StructuredLogger,
    TextFormatter,
    clear_context,
    configure_logging,
    get_context,
    get_logger,
    log_function,
)

LOG_VARIABLES = (
    "ONBOARDER_LOG_LEVEL",
    "ONBOARDER_LOG_FORMAT",
    "ONBOARDER_LOG_FILE",
    "ONBOARDER_LOG_MAX_BYTES",
    "ONBOARDER_LOG_BACKUP_COUNT",
)


def _record(name="onboarder.staking", level=logging.INFO, msg="Test message", exc_info=None):
    return logging.LogRecord(
        name=name,
        level=level,
        pathname="",
        lineno=0,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )


class TestLogRecord:
    """Test LogRecord dataclass."""

    def test_record_with_fields(self):
        """Test log record with custom fields."""
        record = LogRecord(
            timestamp="2024-01-01T00:00:00Z",
            level="DEBUG",
            logger="test",
            message="Staked",
            fields={"strategy_index": 0, "amount": 10},
        )
        d = record.to_dict()
        assert d["strategy_index"] == 0
        assert d["amount"] == 10

    def test_record_with_run_context(self):
        """Test log record with run context."""
        record = LogRecord(
            timestamp="2024-01-01T00:00:00Z",
            level="INFO",
            logger="test",
            message="Loading contracts",
            run_id="abc123def456",
            network="anvil",
            operator="0xf39F",
        )
        d = record.to_dict()
        assert d["run_id"] == "abc123def456"
        assert d["network"] == "anvil"
        assert d["operator"] == "0xf39F"

    def test_empty_context_omitted(self):
        record = LogRecord(timestamp="t", level="INFO", logger="test", message="m")
        assert set(record.to_dict()) == {"ts", "level", "logger", "msg"}

    def test_to_json(self):
        """Test JSON serialization."""
        record = LogRecord(
            timestamp="2024-01-01T00:00:00Z",
            level="INFO",
            logger="test",
            message="Test",
            fields={"amount": 42},
        )
        parsed = json.loads(record.to_json())
        assert parsed["level"] == "INFO"
        assert parsed["amount"] == 42

    def test_to_text(self):
        """Test text format."""
        record = LogRecord(
            timestamp="2024-01-01 00:00:00",
            level="INFO",
            logger="test",
            message="Hello",
            run_id="abc123def456",
            network="stagenet",
        )
        text = record.to_text()
        assert "[INFO]" in text
        assert "Hello" in text
        assert "[abc123de]" in text  # Run ID truncated to 8 chars
        assert "[stagenet]" in text


class TestJSONFormatter:
    """Test JSON log formatter."""

    def test_format_basic(self):
        output = JSONFormatter().format(_record())
        parsed = json.loads(output)
        assert parsed["level"] == "INFO"
        assert parsed["msg"] == "Test message"
        assert parsed["logger"] == "onboarder.staking"
        assert parsed["ts"].endswith("Z")

    def test_format_with_structured_fields(self):
        log_record = _record(msg="Staked 10 into strategy #0")
        log_record.structured_fields = {"amount": 10, "strategy_index": 0}
        parsed = json.loads(JSONFormatter().format(log_record))
        assert parsed["amount"] == 10
        assert parsed["strategy_index"] == 0

    def test_format_includes_context(self):
        with LogContext(run_id="r1", network="anvil", operator="0xabc"):
            parsed = json.loads(JSONFormatter().format(_record()))
        assert parsed["run_id"] == "r1"
        assert parsed["network"] == "anvil"
        assert parsed["operator"] == "0xabc"

    def test_format_with_exception(self):
        try:
            raise ValueError("Test error")
        except ValueError:
            exc_info = sys.exc_info()

        parsed = json.loads(JSONFormatter().format(_record(level=logging.ERROR, exc_info=exc_info)))
        assert parsed["exception"]["type"] == "ValueError"
        assert "Test error" in parsed["exception"]["message"]


class TestTextFormatter:
    """Test text log formatter."""

    def test_format_basic(self):
        output = TextFormatter().format(_record())
        assert "[INFO]" in output
        assert "Test message" in output
        assert "[staking]" in output  # Short name

    def test_format_with_fields(self):
        log_record = _record(level=logging.DEBUG, msg="Processing")
        log_record.structured_fields = {"strategies": 2}
        assert "strategies=2" in TextFormatter().format(log_record)


class TestStructuredLogger:
    """Test StructuredLogger wrapper."""

    def test_fields_attached_to_record(self, caplog):
        logger = StructuredLogger("onboarder.test")
        logger.info("Stake committed", amount=10)

        record = caplog.records[-1]
        assert record.getMessage() == "Stake committed"
        assert record.structured_fields == {"amount": 10}

    def test_disabled_level_is_skipped(self, caplog):
        caplog.set_level(logging.WARNING, logger="onboarder")
        StructuredLogger("onboarder.test").debug("hidden")
        assert not [r for r in caplog.records if r.getMessage() == "hidden"]

    def test_exception_logging(self, caplog):
        logger = StructuredLogger("onboarder.test")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            logger.exception("Operation failed", operation="approve")

        record = caplog.records[-1]
        assert record.levelname == "ERROR"
        assert record.exc_info is not None


class TestLogContext:
    """Test LogContext context manager."""

    def test_context_sets_fields(self):
        with LogContext(run_id="r1", network="anvil"):
            ctx = get_context()
            assert ctx["run_id"] == "r1"
            assert ctx["network"] == "anvil"

    def test_context_clears_on_exit(self):
        with LogContext(temp="value"):
            assert get_context().get("temp") == "value"
        assert get_context().get("temp") is None

    def test_nested_contexts(self):
        with LogContext(outer="1"):
            with LogContext(inner="2"):
                assert get_context() == {"outer": "1", "inner": "2"}
            assert get_context() == {"outer": "1"}

    def test_context_restored_after_error(self):
        with pytest.raises(RuntimeError):
            with LogContext(run_id="r1"):
                raise RuntimeError("fail")
        assert get_context() == {}


class TestContextFunctions:
    """Test context manipulation functions."""

    def test_empty_by_default(self):
        assert get_context() == {}

    def test_clear_context(self):
        ctx = LogContext(temp="value")
        ctx.__enter__()
        clear_context()
        assert get_context() == {}
        ctx.__exit__(None, None, None)


class TestGetLogger:
    """Test get_logger factory function."""

    def test_returns_structured_logger(self):
        assert isinstance(get_logger("onboarder.x"), StructuredLogger)

    def test_caches_loggers(self):
        assert get_logger("onboarder.cached") is get_logger("onboarder.cached")


class TestConfigureLogging:
    """Test logging configuration."""

    @pytest.fixture(autouse=True)
    def clean_log_environment(self, monkeypatch, restore_logging):
        for var in LOG_VARIABLES:
            monkeypatch.delenv(var, raising=False)

    def test_configure_json(self):
        configure_logging(level="DEBUG", json_output=True)
        assert any(isinstance(h.formatter, JSONFormatter) for h in logging.getLogger().handlers)

    def test_configure_text(self):
        configure_logging(level="INFO", json_output=False)
        assert any(isinstance(h.formatter, TextFormatter) for h in logging.getLogger().handlers)

    def test_configure_level(self):
        configure_logging(level="WARNING")
        assert logging.getLogger().level == logging.WARNING
        assert logging.getLogger("onboarder").level == logging.WARNING

    def test_quiets_web3_at_debug(self):
        configure_logging(level="DEBUG")
        assert logging.getLogger("web3").level == logging.INFO

    def test_log_file(self, tmp_path):
        path = tmp_path / "onboard.log"
        configure_logging(level="INFO", json_output=True, log_file=str(path))
        assert any(
            isinstance(h, logging.handlers.RotatingFileHandler) for h in logging.getLogger().handlers
        )

    def test_environment_read_when_called(self, monkeypatch):
        monkeypatch.setenv("ONBOARDER_LOG_FORMAT", "json")
        monkeypatch.setenv("ONBOARDER_LOG_LEVEL", "WARNING")

        configure_logging()

        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert all(isinstance(h.formatter, JSONFormatter) for h in root.handlers)

    def test_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("ONBOARDER_LOG_FORMAT", "json")

        configure_logging(json_output=False)

        assert all(isinstance(h.formatter, TextFormatter) for h in logging.getLogger().handlers)

    def test_rotation_settings_ignored_without_file(self, monkeypatch):
        monkeypatch.setenv("ONBOARDER_LOG_MAX_BYTES", "lots")

        configure_logging(level="INFO")

    def test_non_integer_rotation_size(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ONBOARDER_LOG_MAX_BYTES", "5MB")

        with pytest.raises(ConfigurationError, match="ONBOARDER_LOG_MAX_BYTES"):
            configure_logging(log_file=str(tmp_path / "onboard.log"))

    def test_unopenable_log_file_keeps_handlers(self, tmp_path):
        root = logging.getLogger()
        before = root.handlers[:]

        with pytest.raises(ConfigurationError, match="cannot open log file") as exc_info:
            configure_logging(log_file=str(tmp_path / "missing" / "onboard.log"))

        assert exc_info.value.component == "logging"
        assert root.handlers == before


class TestLogFunctionDecorator:
    """Test log_function decorator."""

    @pytest.fixture(autouse=True)
    def capture_test_module(self, caplog):
        caplog.set_level(logging.DEBUG, logger=__name__)

    def test_logs_completion_with_duration(self, caplog):
        @log_function(level="DEBUG")
        def sample_function():
            return 42

        assert sample_function() == 42
        record = [r for r in caplog.records if "sample_function" in r.getMessage()][-1]
        assert record.structured_fields["function"] == "sample_function"
        assert "duration_ms" in record.structured_fields

    def test_without_duration(self, caplog):
        @log_function(level="DEBUG", log_duration=False)
        def quick():
            return "done"

        quick()
        record = [r for r in caplog.records if "quick" in r.getMessage()][-1]
        assert "duration_ms" not in record.structured_fields

    def test_logs_and_reraises_error(self, caplog):
        @log_function(level="DEBUG")
        def failing_function():
            raise ValueError("Test error")

        with pytest.raises(ValueError):
            failing_function()

        record = caplog.records[-1]
        assert record.levelname == "ERROR"
        assert record.structured_fields["error"] == "Test error"
