"""Logging setup for the `jsonbuilder` logger hierarchy.

Library modules log through stdlib loggers (`jsonbuilder.builder`,
`jsonbuilder.cache`) and never configure handlers themselves. Applications
call `configure_logging()` once at startup.

Formats:
    - text: "HH:MM:SS.mmm [level] logger: message"
    - json: JSON Lines for log aggregation, encoded with orjson

Example:
    >>> configure_logging(LoggingSettings(level="DEBUG", format="json"))
"""

from __future__ import annotations

import logging
import sys
from datetime import UTC, datetime
from typing import TextIO

import orjson

from jsonbuilder.foundation.config import LoggingSettings

ROOT_LOGGER = "jsonbuilder"


class JsonFormatter(logging.Formatter):
    """One JSON object per record."""

    def __init__(self, include_timestamps: bool = True) -> None:
        super().__init__()
        self.include_timestamps = include_timestamps

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {}
        if self.include_timestamps:
            entry["timestamp"] = datetime.fromtimestamp(record.created, tz=UTC).isoformat()
        entry |= {"level": record.levelname.lower(), "logger": record.name, "event": record.getMessage()}
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return orjson.dumps(entry, option=orjson.OPT_NON_STR_KEYS).decode()


class TextFormatter(logging.Formatter):
    """Human-readable single-line output."""

    def __init__(self, include_timestamps: bool = True) -> None:
        fmt = "%(asctime)s.%(msecs)03d " if include_timestamps else ""
        super().__init__(f"{fmt}[%(levelname)s] %(name)s: %(message)s", datefmt="%H:%M:%S")


def configure_logging(settings: LoggingSettings | None = None, *, stream: TextIO | None = None) -> logging.Handler:
    """Install a single handler on the `jsonbuilder` logger.

    Calling again replaces the previously installed handler.
    """
    settings = settings or LoggingSettings()
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in [h for h in logger.handlers if getattr(h, "_jsonbuilder", False)]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        JsonFormatter(settings.include_timestamps) if settings.format == "json"
        else TextFormatter(settings.include_timestamps)
    )
    handler._jsonbuilder = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    logger.setLevel(settings.level)
    return handler
