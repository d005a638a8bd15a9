"""Logging helpers for racescape runs.

Library modules log through ``racescape.<module>`` loggers and attach the
realization id and tile key with :func:`log_context`. Applications call
:func:`configure_logging` once to attach console and file handlers to the
``racescape`` package logger.
"""

from __future__ import annotations

import json
import logging
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from racescape.raster.models import TileKey

PACKAGE_LOGGER = "racescape"

# Per-extent messages are emitted n x tiles times per run.
EXTENT_LOGGER = "racescape.aggregate"

_CONTEXT_FIELDS = ("realization", "tile")

_RESERVED_FIELDS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "exc_info",
        "exc_text",
        "stack_info",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "message",
        *_CONTEXT_FIELDS,
    }
)


@dataclass(frozen=True)
class LogOptions:
    """Configuration for logging output.

    ``verbose=1`` shows per-realization debug messages; ``verbose=2`` also
    shows every skipped extent.
    """

    verbose: int = 0
    quiet: bool = False
    log_file: Path | None = None
    json_console: bool = False


def log_context(realization: int | None = None, tile: TileKey | None = None) -> dict[str, Any]:
    """Return ``extra`` fields naming the realization and tile of a message."""
    context: dict[str, Any] = {}
    if realization is not None:
        context["realization"] = realization
    if tile is not None:
        context["tile"] = tile
    return context


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="seconds").replace("+00:00", "Z")


def _json_tile(tile: Any) -> Any:
    if isinstance(tile, (tuple, list)):
        return list(tile)
    return tile


class JsonFormatter(logging.Formatter):
    """One JSON object per line; realization and tile are top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "timestamp": _timestamp(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message": record.getMessage(),
        }
        if hasattr(record, "realization"):
            payload["realization"] = record.realization
        if hasattr(record, "tile"):
            payload["tile"] = _json_tile(record.tile)
        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_FIELDS
        }
        if extra:
            payload["extra"] = extra
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def _context_prefix(record: logging.LogRecord) -> str:
    """Build a ``[r3 tile 0,1]`` style prefix from realization/tile extras."""
    parts = []
    realization = getattr(record, "realization", None)
    if realization is not None:
        parts.append(f"r{realization}")
    tile = getattr(record, "tile", None)
    if tile is not None:
        if isinstance(tile, (tuple, list)):
            tile = ",".join("-" if part is None else str(part) for part in tile)
        parts.append(f"tile {tile}")
    return f"[{' '.join(parts)}] " if parts else ""


class HumanFormatter(logging.Formatter):
    """Format log records with a concise prefix naming the realization and tile."""

    def format(self, record: logging.LogRecord) -> str:
        return _context_prefix(record) + super().format(record)


class ExtentFilter(logging.Filter):
    """Drop per-extent debug messages unless extent details were requested."""

    def __init__(self, show_extents: bool) -> None:
        super().__init__()
        self.show_extents = show_extents

    def filter(self, record: logging.LogRecord) -> bool:
        if self.show_extents or record.levelno >= logging.INFO:
            return True
        return record.name != EXTENT_LOGGER


def _console_level(options: LogOptions) -> int:
    if options.quiet:
        return logging.WARNING
    if options.verbose > 0:
        return logging.DEBUG
    return logging.INFO


def configure_logging(options: LogOptions) -> logging.Logger:
    """Attach console (and optional JSON-lines file) handlers to the package logger.

    Handlers installed by an earlier call are replaced; handlers on other
    loggers are left alone. Returns the ``racescape`` logger.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.DEBUG)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_console_level(options))
    console_handler.addFilter(ExtentFilter(show_extents=options.verbose > 1))
    console_formatter: logging.Formatter
    if options.json_console:
        console_formatter = JsonFormatter()
    else:
        console_formatter = HumanFormatter("%(levelname)s: %(message)s")
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if options.log_file:
        options.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(options.log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(JsonFormatter())
        logger.addHandler(file_handler)

    return logger
