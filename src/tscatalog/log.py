"""Logging setup for tscatalog.

Library modules log through named stdlib loggers under ``tscatalog.*`` and
never install handlers themselves. Applications (and the CLI) call
:func:`configure_logging` once to get console or JSON output.

Example:
    configure_logging("INFO")
    configure_logging("DEBUG", fmt="json")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

ROOT_LOGGER = "tscatalog"


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Example output:
        {"timestamp":"2026-01-15T10:30:00+00:00","level":"warning","logger":"tscatalog.loader",...}
    """

    def __init__(self, *, ensure_ascii: bool = False) -> None:
        super().__init__()
        self._ensure_ascii = ensure_ascii

    def format(self, record: logging.LogRecord) -> str:
        data = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, ensure_ascii=self._ensure_ascii, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable console formatter.

    Example output:
        2026-01-15 10:30:00 WARN  [tscatalog.loader] Dropping catalog entry: ...
    """

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, *, color: bool = True, stream: TextIO | None = None) -> None:
        super().__init__(datefmt="%Y-%m-%d %H:%M:%S")
        target = stream or sys.stderr
        self._color = color and hasattr(target, "isatty") and target.isatty()

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname[:5].ljust(5)
        if self._color:
            level = f"{self.COLORS.get(record.levelno, '')}{level}{self.RESET}"
        result = f"{self.formatTime(record, self.datefmt)} {level} [{record.name}] {record.getMessage()}"
        if record.exc_info:
            result = f"{result}\n{self.formatException(record.exc_info)}"
        return result


def configure_logging(
    level: str | int = "WARNING",
    *,
    fmt: str = "console",
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach a single handler to the ``tscatalog`` logger.

    Calling it again replaces the handler installed by the previous call.

    Args:
        level: Level name or number.
        fmt: "console" or "json".
        stream: Output stream, stderr by default.

    Returns:
        The configured ``tscatalog`` logger.
    """
    if fmt not in ("console", "json"):
        raise ValueError(f"Unknown log format: {fmt!r}")

    reset_logging()
    logger = logging.getLogger(ROOT_LOGGER)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        JSONFormatter() if fmt == "json" else ConsoleFormatter(stream=stream)
    )
    handler._tscatalog_handler = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger


def reset_logging() -> None:
    """Remove the handler installed by :func:`configure_logging`."""
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if getattr(handler, "_tscatalog_handler", False):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
