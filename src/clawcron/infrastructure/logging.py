"""Logging setup for clawcron.

Library modules log through ``logging.getLogger(__name__)`` and never
configure handlers themselves. Applications (and the CLI) call
``configure_logging`` once to attach a handler to the ``clawcron`` logger.

Formats:
    console: 2024-01-15 10:30:00 INFO  [clawcron.cli] Loaded 4 jobs count=4
    json:    {"timestamp": "2024-01-15T10:30:00+00:00", "level": "info", ...}
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, TextIO

ROOT_LOGGER = "clawcron"

# Attributes every LogRecord has; anything else came in through ``extra``
_RESERVED = frozenset(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__.keys()
) | {"message", "asctime", "taskName"}


def _extra_fields(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RESERVED}


class JSONFormatter(logging.Formatter):
    """JSON log formatter, one object per line."""

    def __init__(self, *, sort_keys: bool = False) -> None:
        super().__init__()
        self._sort_keys = sort_keys

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        data.update(_extra_fields(record))
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, sort_keys=self._sort_keys, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter.

    Example output:
        2024-01-15 10:30:00 INFO  [clawcron.cli] Loaded jobs count=4
    """

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        *,
        color: bool = False,
        timestamp_format: str = "%Y-%m-%d %H:%M:%S",
    ) -> None:
        super().__init__()
        self._color = color
        self._timestamp_format = timestamp_format

    def format(self, record: logging.LogRecord) -> str:
        ts = datetime.fromtimestamp(record.created).strftime(self._timestamp_format)
        level = record.levelname.ljust(5)
        if self._color:
            level = f"{self.COLORS.get(record.levelno, '')}{level}{self.RESET}"

        parts = [ts, level, f"[{record.name}]", record.getMessage()]
        extra = _extra_fields(record)
        if extra:
            parts.append(" ".join(f"{k}={v}" for k, v in extra.items()))

        result = " ".join(parts)
        if record.exc_info:
            result = f"{result}\n{self.formatException(record.exc_info)}"
        return result


def configure_logging(
    level: str | int = "WARNING",
    format: str = "console",
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach a single handler to the ``clawcron`` logger.

    Calling it again replaces the previous handler.

    Args:
        level: Log level name or number.
        format: ``console`` or ``json``.
        stream: Output stream (default: stderr).

    Returns:
        The configured ``clawcron`` logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    stream = stream or sys.stderr
    if format == "json":
        formatter: logging.Formatter = JSONFormatter()
    elif format == "console":
        formatter = ConsoleFormatter(color=stream.isatty())
    else:
        raise ValueError(f"Unknown log format: {format}")

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_clawcron_handler", False):
            logger.removeHandler(handler)

    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    handler._clawcron_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``clawcron`` namespace."""
    if name == ROOT_LOGGER or name.startswith(f"{ROOT_LOGGER}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
