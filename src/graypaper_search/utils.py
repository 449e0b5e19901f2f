"""Utility functions for graypaper-search."""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from loguru import logger


def setup_logging(
    env: str,
    home_dir: Path,
    log_file: Optional[str] = None,
    log_level: str = "INFO",
    console: bool = True,
) -> None:  # pragma: no cover
    """Configure loguru sinks.

    Args:
        env: The environment name (dev, test, user)
        home_dir: Directory that receives the log file
        log_file: The name of the log file to write to
        log_level: The logging level to use
        console: Whether to log to the console
    """
    # Remove default handler and any existing handlers
    logger.remove()

    # Add file handler if we are not running tests and a log file is specified
    if log_file and env != "test":
        log_path = home_dir / log_file
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_path),
            level=log_level,
            rotation="10 MB",
            retention="10 days",
            backtrace=True,
            diagnose=True,
            enqueue=True,
            colorize=False,
        )

    if env == "test" or console:
        logger.add(sys.stderr, level=log_level, backtrace=True, diagnose=True, colorize=True)

    logger.info(f"ENV: '{env}' Log level: '{log_level}' Logging to {log_file}")


def parse_date(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 date or datetime string into a naive UTC datetime.

    Returns None for empty or unparseable input so callers can keep their
    default bound.
    """
    if not value:
        return None
    candidate = value.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        logger.debug(f"Ignoring unparseable date value: {value!r}")
        return None
    return to_naive_utc(parsed)


def to_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC; convert aware datetimes to match."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)
