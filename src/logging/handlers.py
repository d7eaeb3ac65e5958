# src/logging/handlers.py — v1
"""File handlers: rotating process log and append-only run logs.

The rotating handler backs the optional LOG_FILE setting. Per-run agent
and orchestrator logs are plain timestamped lines that are never rotated,
written through append_timestamped_line().
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

_SIZE_PATTERN = re.compile(r"^(\d+)\s*(KB|MB|GB)$", re.IGNORECASE)
_MULTIPLIERS = {"KB": 1024, "MB": 1024**2, "GB": 1024**3}


def parse_size(size_str: str) -> int:
    """Parse size string like '10MB' into bytes.

    Supported suffixes: KB, MB, GB (case-insensitive).
    """
    match = _SIZE_PATTERN.match(size_str.strip())
    if not match:
        raise ValueError(f"Invalid size format: {size_str!r}. Use e.g. '10MB'.")
    return int(match.group(1)) * _MULTIPLIERS[match.group(2).upper()]


def create_rotating_handler(
    log_file: str,
    rotation: str = "10MB",
    retention: int = 30,
) -> RotatingFileHandler:
    """Create a rotating file handler.

    Args:
        log_file: Path to log file.
        rotation: Max file size before rotation (e.g. "10MB").
        retention: Number of backup files to keep.

    Returns:
        Configured RotatingFileHandler.
    """
    path = Path(log_file).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)

    return RotatingFileHandler(
        filename=str(path),
        maxBytes=parse_size(rotation),
        backupCount=retention,
        encoding="utf-8",
    )


def format_log_line(message: str, timestamp: datetime | None = None) -> str:
    """Render one run-log line: ``[<iso timestamp>] <message>``."""
    ts = timestamp or datetime.now(timezone.utc)
    return f"[{ts.isoformat()}] {message}\n"


def append_timestamped_line(path: Path, message: str) -> None:
    """Append a single timestamped line to an append-only log file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("a", encoding="utf-8") as fh:
        fh.write(format_log_line(message))
