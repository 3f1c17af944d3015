"""
Structured logging for onboarder.

Every record can carry keyword fields, and records emitted inside a
``LogContext`` also carry the run id, network and operator of the
onboarding run they belong to. Output is human-readable text by default,
or one JSON object per line.

Usage:
    from onboarder.logging_config import LogContext, configure_logging, get_logger

    configure_logging(level="INFO", json_output=False)
    logger = get_logger(__name__)

    with LogContext(run_id="r123", network="anvil", operator="0xabc"):
        logger.info("Stake committed", strategy_index=0, amount=10)

Environment:
    ONBOARDER_LOG_LEVEL         default level (INFO)
    ONBOARDER_LOG_FORMAT        "text" or "json" (text)
    ONBOARDER_LOG_FILE          also write to this file, rotated
    ONBOARDER_LOG_MAX_BYTES     rotation size (5 MiB)
    ONBOARDER_LOG_BACKUP_COUNT  rotated files kept (3)
"""

import json
import logging
import logging.handlers
import os
import sys
import threading
import time
from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from datetime import datetime, timezone
from functools import wraps
from typing import Any, Callable, Dict, Optional

from onboarder.exceptions import ConfigurationError

_log_context: ContextVar[Dict[str, Any]] = ContextVar("onboarder_log_context", default={})

# Fallbacks for the ONBOARDER_LOG_* variables, which are read at configure time
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "text"
DEFAULT_LOG_MAX_BYTES = 5 * 1024 * 1024
DEFAULT_LOG_BACKUP_COUNT = 3

# Context keys rendered as their own columns rather than as free fields
RUN_KEYS = ("run_id", "network", "operator")

_NOISY_LOGGERS = ("web3", "urllib3")


@dataclass
class LogRecord:
    """One rendered log line before serialization."""

    timestamp: str
    level: str
    logger: str
    message: str
    fields: Dict[str, Any] = field(default_factory=dict)
    run_id: Optional[str] = None
    network: Optional[str] = None
    operator: Optional[str] = None
    exception: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "ts": self.timestamp,
            "level": self.level,
            "logger": self.logger,
            "msg": self.message,
        }
        for key in RUN_KEYS:
            value = getattr(self, key)
            if value:
                data[key] = value
        data.update(self.fields)
        if self.exception:
            data["exception"] = self.exception
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)

    def to_text(self) -> str:
        parts = [self.timestamp, f"[{self.level}]", f"[{self.logger}]"]
        if self.run_id:
            parts.append(f"[{self.run_id[:8]}]")
        if self.network:
            parts.append(f"[{self.network}]")
        parts.append(self.message)
        parts.extend(f"{key}={value}" for key, value in self.fields.items())
        text = " ".join(parts)
        if self.exception:
            text += "\n" + self.exception.get("traceback", "")
        return text


class _RunFormatter(logging.Formatter):
    """Builds a LogRecord from a stdlib record plus the active run context."""

    def _build(self, record: logging.LogRecord, timestamp: str, logger_name: str) -> LogRecord:
        ctx = _log_context.get()
        run = {key: ctx.get(key) or getattr(record, key, None) for key in RUN_KEYS}
        built = LogRecord(
            timestamp=timestamp,
            level=record.levelname,
            logger=logger_name,
            message=record.getMessage(),
            fields=dict(getattr(record, "structured_fields", {})),
            **run,
        )
        if record.exc_info:
            exc_type, exc_value, _ = record.exc_info
            built.exception = {
                "type": exc_type.__name__ if exc_type else "Unknown",
                "message": str(exc_value) if exc_value else "",
                "traceback": self.formatException(record.exc_info),
            }
        return built


class JSONFormatter(_RunFormatter):
    """One JSON object per record, UTC ISO timestamps."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        return self._build(record, now, record.name).to_json()


class TextFormatter(_RunFormatter):
    """Single-line text with the short logger name."""

    def format(self, record: logging.LogRecord) -> str:
        now = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")
        return self._build(record, now, record.name.rsplit(".", 1)[-1]).to_text()


class StructuredLogger:
    """Wraps a stdlib logger so every call can pass keyword fields."""

    def __init__(self, name: str):
        self._name = name
        self._logger = logging.getLogger(name)

    @property
    def name(self) -> str:
        return self._name

    def isEnabledFor(self, level: int) -> bool:
        return self._logger.isEnabledFor(level)

    def _log(self, level: int, message: str, exc_info: bool = False, **fields: Any) -> None:
        if self._logger.isEnabledFor(level):
            self._logger.log(level, message, exc_info=exc_info, extra={"structured_fields": fields})

    def debug(self, message: str, **fields: Any) -> None:
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields: Any) -> None:
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields: Any) -> None:
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)

    def exception(self, message: str, **fields: Any) -> None:
        """Log at ERROR with the active exception attached."""
        self._log(logging.ERROR, message, exc_info=True, **fields)


class LogContext:
    """Adds fields to every record logged inside the ``with`` block.

    Nested contexts merge, inner values winning; leaving a block restores
    the outer fields even when the block raised.
    """

    def __init__(self, **fields: Any):
        self._fields = fields
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self._fields})
        return self

    def __exit__(self, *exc: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def get_context() -> Dict[str, Any]:
    return _log_context.get()


def clear_context() -> None:
    _log_context.set({})


_loggers: Dict[str, StructuredLogger] = {}
_loggers_lock = threading.Lock()


def get_logger(name: str) -> StructuredLogger:
    """Return the cached StructuredLogger for ``name``."""
    with _loggers_lock:
        logger = _loggers.get(name)
        if logger is None:
            logger = _loggers[name] = StructuredLogger(name)
        return logger


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError("logging", f"{name} must be an integer, got {raw!r}") from e


def configure_logging(
    level: Optional[str] = None,
    json_output: Optional[bool] = None,
    log_file: Optional[str] = None,
    propagate: bool = True,
) -> None:
    """Install console (and optional file) handlers on the root logger.

    Arguments left as None fall back to the ``ONBOARDER_LOG_*`` variables
    as they are set when this is called. Existing root handlers are
    replaced, so calling this twice is safe.

    Raises:
        ConfigurationError: A rotation variable is not an integer or the
            log file cannot be opened. Existing handlers are left in place.
    """
    env_level = os.environ.get("ONBOARDER_LOG_LEVEL") or DEFAULT_LOG_LEVEL
    log_level = getattr(logging, (level or env_level).upper(), logging.INFO)
    if json_output is None:
        json_output = (os.environ.get("ONBOARDER_LOG_FORMAT") or DEFAULT_LOG_FORMAT) == "json"
    formatter: logging.Formatter = JSONFormatter() if json_output else TextFormatter()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    path = log_file or os.environ.get("ONBOARDER_LOG_FILE", "")
    if path:
        max_bytes = _env_int("ONBOARDER_LOG_MAX_BYTES", DEFAULT_LOG_MAX_BYTES)
        backup_count = _env_int("ONBOARDER_LOG_BACKUP_COUNT", DEFAULT_LOG_BACKUP_COUNT)
        try:
            handlers.append(
                logging.handlers.RotatingFileHandler(
                    path, maxBytes=max_bytes, backupCount=backup_count
                )
            )
        except OSError as e:
            raise ConfigurationError("logging", f"cannot open log file {path}: {e}") from e

    root = logging.getLogger()
    for old in root.handlers[:]:
        root.removeHandler(old)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        root.addHandler(handler)
    root.setLevel(log_level)

    # RPC request dumps at DEBUG would drown the onboarding steps
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.INFO))

    package_logger = logging.getLogger("onboarder")
    package_logger.setLevel(log_level)
    package_logger.propagate = propagate


def log_function(level: str = "DEBUG", log_duration: bool = True) -> Callable[[Callable], Callable]:
    """Log each call of the decorated function on completion.

    Completion is logged at ``level`` with the elapsed milliseconds; an
    exception is logged at ERROR and re-raised unchanged.
    """
    log_level = getattr(logging, level.upper(), logging.DEBUG)

    def decorator(func: Callable) -> Callable:
        logger = get_logger(func.__module__)

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            start = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                elapsed = round((time.monotonic() - start) * 1000, 2)
                logger.error(
                    f"Function failed: {func.__name__}",
                    function=func.__name__,
                    duration_ms=elapsed,
                    error=str(e),
                )
                raise
            fields: Dict[str, Any] = {"function": func.__name__}
            if log_duration:
                fields["duration_ms"] = round((time.monotonic() - start) * 1000, 2)
            logger._log(log_level, f"Function completed: {func.__name__}", **fields)
            return result

        return wrapper

    return decorator
