"""
Shared helpers for the pass tracker.

Logging setup, the default status sink, UTC time helpers, and the sample
TLE file used by the CLI and the tests.
"""

from datetime import datetime, timezone
from typing import List, Optional, Union
import logging
import os
from pathlib import Path

logger = logging.getLogger(__name__)

LOG_LEVEL_ENV_VAR = "PASS_TRACKER_LOG_LEVEL"
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

SAMPLE_TLE = """ISS (ZARYA)
1 25544U 98067A   24001.00000000  .00002182  00000-0  40864-4 0  9990
2 25544  51.6461 339.7939 0001220  92.8340 267.3124 15.49309239426382
NOAA 18
1 28654U 05018A   24001.00000000  .00000012  00000-0  28110-4 0  9997
2 28654  99.0581 161.3857 0013414  73.9446 286.3932 14.12501637967188
TERRA
1 25994U 99068A   24001.00000000  .00000023  00000-0  42979-4 0  9991
2 25994  98.2022  10.3559 0001378  83.7123 276.4313 14.57107527260649
"""


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the root logger for the tracker.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional log file path, written in addition to the console

    Environment Variables:
        PASS_TRACKER_LOG_LEVEL: Overrides ``level`` when set
    """
    level = os.environ.get(LOG_LEVEL_ENV_VAR) or level
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    for handler in handlers:
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logger.info(f"Logging configured at {level} level")


def log_status(message: str) -> None:
    """Default status sink: progress notifications go to the log at INFO."""
    logger.info(message)


def parse_datetime(date_string: str) -> datetime:
    """
    Parse an ISO-8601 style timestamp.

    Accepts a date, or a date and time separated by ``T`` or a space, with an
    optional ``Z`` or UTC offset. Times without an offset are taken as UTC.

    Args:
        date_string: Timestamp to parse

    Returns:
        UTC datetime (timezone-naive)

    Raises:
        ValueError: If the string is not a timestamp
    """
    text = date_string.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"

    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        raise ValueError(f"Could not parse datetime string: {date_string}")

    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc).replace(tzinfo=None)
    return dt


def get_current_utc() -> datetime:
    """Current UTC time as a timezone-naive datetime (the system clock)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_short_datetime(when: Optional[datetime]) -> str:
    """Compact UTC timestamp used in event strings, empty for ``None``."""
    if when is None:
        return ""
    return when.strftime("%Y-%m-%d %H:%M:%S")


def format_duration(seconds: float) -> str:
    """
    Format a pass or interval length.

    Args:
        seconds: Duration in seconds

    Returns:
        ``"45s"``, ``"12m 05s"`` or ``"2h 03m"``
    """
    total = int(round(seconds))
    if total < 60:
        return f"{total}s"
    minutes, secs = divmod(total, 60)
    if minutes < 60:
        return f"{minutes}m {secs:02d}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes:02d}m"


def create_sample_tle_file(output_file: Union[str, Path]) -> None:
    """
    Write a TLE file with a few well-known satellites (ISS, NOAA 18, TERRA).

    Args:
        output_file: Destination path; parent directories are created
    """
    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(SAMPLE_TLE)

    logger.info(f"Created sample TLE file: {output_path}")
