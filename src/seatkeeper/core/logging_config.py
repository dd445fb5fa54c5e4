"""Logging setup for the seatkeeper service.

The service normally runs under a supervisor (systemd, runit, a container
init) that captures stderr, so console output goes to stderr. A JSON format
is available for log shippers, and an optional log file can be added.

Usage:
    from seatkeeper.core.logging_config import configure_logging

    configure_logging(level="DEBUG", format="json")

Environment Variables:
    SEATKEEPER_LOG_LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    SEATKEEPER_LOG_FORMAT: Output format ("text" or "json")
    SEATKEEPER_LOG_FILE: Optional log file path
"""

from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime
from typing import Any, Literal

TEXT_FORMAT = "%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# LogRecord attributes that are not "extra" fields
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}

_configured = False


class JsonFormatter(logging.Formatter):
    """One JSON object per log record.

    {
        "timestamp": "2026-10-19T14:30:00.123456",
        "level": "INFO",
        "logger": "seatkeeper.server.controller",
        "message": "Starting worker for new session ...",
        "extra": {"session": "/org/freedesktop/login1/session/_32"}
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        extra = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
        if extra:
            log_data["extra"] = extra

        return json.dumps(log_data, default=str)


def configure_logging(
    level: str | None = None,
    format: Literal["text", "json"] | None = None,
    file_path: str | None = None,
    force: bool = False,
) -> None:
    """Configure the root logger.

    Only the first call has an effect unless force=True. Arguments left as
    None fall back to the SEATKEEPER_LOG_* environment variables.

    Args:
        level: Log level name. Defaults to SEATKEEPER_LOG_LEVEL or "INFO".
        format: "text" or "json". Defaults to SEATKEEPER_LOG_FORMAT or "text".
        file_path: Extra log file. Defaults to SEATKEEPER_LOG_FILE.
        force: Reconfigure even if logging was already configured.

    Raises:
        ValueError: If the level or format is unknown.
    """
    global _configured
    if _configured and not force:
        return

    level = (level or os.environ.get("SEATKEEPER_LOG_LEVEL", "INFO")).upper()
    format = format or os.environ.get("SEATKEEPER_LOG_FORMAT", "text")  # type: ignore[assignment]
    file_path = file_path or os.environ.get("SEATKEEPER_LOG_FILE")

    numeric_level = logging.getLevelName(level)
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")
    if format not in ("text", "json"):
        raise ValueError(f"Unknown log format: {format}")

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    if format == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if file_path:
        file_handler = logging.FileHandler(file_path)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Get a logger with the given name (typically __name__)."""
    return logging.getLogger(name)
