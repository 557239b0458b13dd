# src/logging/handlers.py - v2
"""File handler factory for build logs.

rotation is either a size ("10MB", "512KB") or a time interval
("midnight", "daily", "hourly"). retention is the number of rotated files
kept.
"""

from __future__ import annotations

import logging
import re
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path

_SIZE = re.compile(r"^(\d+)\s*(KB|MB|GB)$", re.IGNORECASE)
_UNITS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}
_INTERVALS = {"midnight": "midnight", "daily": "D", "hourly": "H"}


def parse_size(size_str: str) -> int:
    """Parse "10MB" into bytes."""
    match = _SIZE.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match.group(1)) * _UNITS[match.group(2).upper()]


def create_file_handler(
    log_file: str | Path,
    rotation: str = "10MB",
    retention: int = 5,
) -> logging.Handler:
    """Create a size- or time-rotating handler, creating parent directories."""
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    when = _INTERVALS.get(rotation.strip().lower())
    if when is not None:
        return TimedRotatingFileHandler(
            filename=str(path), when=when, backupCount=retention, encoding="utf-8",
        )
    return RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )
