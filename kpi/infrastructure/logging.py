"""
Centralized logging configuration for the KPI evaluation engine.

Provides structured logging with appropriate levels, formatting, and
context tracking (employee, period, operation) for auditing score runs.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os
from collections.abc import Callable
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from types import TracebackType
from typing import Any, ParamSpec, TypeVar, cast

from .config import Settings, get_settings

P = ParamSpec("P")
R = TypeVar("R")

ROOT_LOGGER_NAME = "kpi"
CONTEXT_FIELDS = ("employee_id", "period", "request_id", "operation")


class StructuredFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured JSON."""
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        for field in CONTEXT_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            exc_type, exc_value, exc_tb = record.exc_info
            if exc_type is not None and exc_value is not None:
                log_entry["exception"] = {
                    "type": exc_type.__name__,
                    "message": str(exc_value),
                    "traceback": self.formatException((exc_type, exc_value, exc_tb)),
                }

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class ContextFilter(logging.Filter):
    """Filter that adds evaluation context to log records."""

    def __init__(self):
        super().__init__()
        self.context: dict[str, Any] = {}

    def set_context(self, **kwargs: Any) -> None:
        """Set context variables for logging."""
        self.context.update(kwargs)

    def clear_context(self) -> None:
        """Clear all context variables."""
        self.context.clear()

    def filter(self, record: logging.LogRecord) -> bool:
        """Add context to log record."""
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


# Global context filter instance
context_filter = ContextFilter()


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    structured: bool = True,
    enable_console: bool = True,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Set up centralized logging configuration.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional file path for log output
        structured: Whether to use structured JSON formatting
        enable_console: Whether to enable console output
        max_bytes: Size at which the log file is rotated
        backup_count: Number of rotated log files to keep

    Example:
        >>> setup_logging(level="DEBUG", log_file="./logs/kpi.log")
    """
    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    config: dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": StructuredFormatter,
            },
            "standard": {
                "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
                "datefmt": "%Y-%m-%d %H:%M:%S",
            },
        },
        "filters": {"context": {"()": lambda: context_filter}},
        "handlers": {},
        "loggers": {
            ROOT_LOGGER_NAME: {"level": level, "handlers": [], "propagate": False},
        },
        "root": {"level": level, "handlers": []},
    }

    handler_configs = cast(dict[str, dict[str, Any]], config["handlers"])
    logger_configs = cast(dict[str, dict[str, Any]], config["loggers"])
    root_config = cast(dict[str, Any], config["root"])
    handler_names: list[str] = []

    if enable_console:
        handler_configs["console"] = {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": "structured" if structured else "standard",
            "filters": ["context"],
            "stream": "ext://sys.stderr",
        }
        handler_names.append("console")

    if log_file:
        handler_configs["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": level,
            "formatter": "structured",
            "filters": ["context"],
            "filename": log_file,
            "maxBytes": max_bytes,
            "backupCount": backup_count,
            "encoding": "utf-8",
        }
        handler_names.append("file")

    if not handler_names:
        handler_configs["null"] = {"class": "logging.NullHandler"}
        handler_names.append("null")

    for logger_config in logger_configs.values():
        logger_config["handlers"] = list(handler_names)
    root_config["handlers"] = list(handler_names)

    logging.config.dictConfig(config)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance namespaced under the ``kpi`` logger.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Scoring started")
    """
    prefix = f"{ROOT_LOGGER_NAME}."
    full = name if name.startswith(prefix) or name == ROOT_LOGGER_NAME else f"{prefix}{name}"
    return logging.getLogger(full)


class LogContext:
    """Context manager for temporary logging context."""

    def __init__(self, **kwargs: Any):
        self.context: dict[str, Any] = kwargs
        self.previous_context: dict[str, Any] = {}

    def __enter__(self) -> LogContext:
        self.previous_context = context_filter.context.copy()
        context_filter.set_context(**self.context)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        context_filter.context = self.previous_context


def log_operation(
    operation: str, logger: logging.Logger | None = None
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator for logging function operations.

    Args:
        operation: Description of the operation
        logger: Optional logger instance (defaults to function's module logger)

    Example:
        >>> @log_operation("evaluate")
        ... def evaluate(ratings):
        ...     pass
    """

    def decorator(func: Callable[P, R]) -> Callable[P, R]:
        @wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
            func_logger = logger or get_logger(func.__module__)

            with LogContext(operation=operation):
                func_logger.debug(f"Starting {operation}")
                try:
                    result = func(*args, **kwargs)
                    func_logger.debug(f"Completed {operation} successfully")
                    return result
                except Exception as e:
                    func_logger.error(f"Failed {operation}: {str(e)}", exc_info=True)
                    raise

        return wrapper

    return decorator


def configure_from_settings(settings: Settings | None = None) -> None:
    """Configure logging from the ``LOG_*`` settings section."""
    log_config = (settings or get_settings()).logging
    setup_logging(
        level=log_config.level,
        log_file=log_config.file_path,
        structured=log_config.structured,
        enable_console=log_config.console_enabled,
        max_bytes=log_config.max_bytes,
        backup_count=log_config.backup_count,
    )


def configure_test_logging():
    """Configure logging for testing environment."""
    setup_logging(level="WARNING", log_file=None, structured=False, enable_console=False)


def auto_configure_logging():
    """Automatically configure logging based on environment variables."""
    env = os.getenv("ENVIRONMENT", "development").lower()

    if env == "test":
        configure_test_logging()
    else:
        configure_from_settings()

    logger = get_logger(__name__)
    logger.debug(f"Logging configured for {env} environment")


# Initialize logging when module is imported
if not logging.getLogger().handlers:
    auto_configure_logging()
