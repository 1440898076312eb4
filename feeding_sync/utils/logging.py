"""Logging configuration for Feeding Sync.

Provides consistent logging across all modules with:
- JSON or text output formats
- Timestamps in ISO format
- Configurable log levels
- Console handler plus an optional file handler
"""

import json
import logging
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union


# Default format for text output
TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName",
))


class JsonFormatter(logging.Formatter):
    """Format log records as JSON lines for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # extra={...} fields
        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data)


def _build_handlers(level: int, json_output: bool, log_file: Optional[Path]) -> list:
    formatter = JsonFormatter() if json_output else logging.Formatter(TEXT_FORMAT, DATE_FORMAT)
    handlers = [logging.StreamHandler(sys.stderr)]

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def _to_level(level: Union[int, str]) -> int:
    if isinstance(level, str):
        return getattr(logging, level.upper(), logging.INFO)
    return level


def configure_root_logger(
    level: Union[int, str] = logging.INFO,
    json_output: bool = False,
    log_file: Optional[Path] = None
) -> None:
    """Configure the root logger for the entire application.

    Call this once at application startup to set defaults for all loggers.

    Args:
        level: Default logging level
        json_output: If True, use JSON format globally
        log_file: Optional path to log file
    """
    root_logger = logging.getLogger()

    level = _to_level(level)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    for handler in _build_handlers(level, json_output, log_file):
        root_logger.addHandler(handler)
