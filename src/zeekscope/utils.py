"""
ZeekScope Utilities Module
Provides logging setup and small formatting helpers shared by the CLI and analytics.
"""

import logging
import sys
from datetime import datetime, timezone
from pathlib import Path


def setup_logging(
    log_file: Path | None = None,
    level: int = logging.INFO,
    console: bool = True,
) -> logging.Logger:
    """
    Configure logging for ZeekScope.

    Args:
        log_file: Path to log file (optional)
        level: Logging level (default: INFO)
        console: Whether to also log to console (default: True)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("zeekscope")
    logger.setLevel(level)
    logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Console goes to stderr so JSON on stdout stays parseable
    if console:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger


def format_bytes(size: float, precision: int = 2) -> str:
    """Format byte size to human-readable string."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if abs(size) < 1024.0:
            return f"{size:.{precision}f} {unit}"
        size /= 1024.0
    return f"{size:.{precision}f} PB"


def format_timestamp(ts) -> str | None:
    """
    Render a Zeek epoch timestamp as an ISO 8601 UTC string.

    Returns None for missing or non-numeric timestamps.
    """
    if isinstance(ts, bool) or not isinstance(ts, (int, float)):
        return None
    try:
        return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()
    except (OverflowError, OSError, ValueError):
        return None


def print_banner():
    """Print ZeekScope ASCII banner."""
    banner = r"""
   _____         _     ____
  |__  /___  ___| | __/ ___|  ___ ___  _ __   ___
    / // _ \/ _ \ |/ /\___ \ / __/ _ \| '_ \ / _ \
   / /|  __/  __/   <  ___) | (_| (_) | |_) |  __/
  /____\___|\___|_|\_\|____/ \___\___/| .__/ \___|
                                      |_|
   Zeek log hunting and network analytics
    """
    print(banner, file=sys.stderr)
