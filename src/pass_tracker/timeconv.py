"""
Time conventions used by the pass tracker.

All search and sampling arithmetic is done in "daynum": fractional days
elapsed since 1979-12-31 00:00:00 UTC. Conversion to and from calendar time
only happens at the boundaries, using timezone-naive UTC datetimes.
"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
import math

from .utils import get_current_utc

# Reference epoch of the daynum scale (UTC, timezone-naive)
DAYNUM_EPOCH = datetime(1979, 12, 31, 0, 0, 0)

SECONDS_PER_DAY = 86400.0

# Default search steps, in days
PASS_BACKOFF_STEP_DAYS = 0.007  # ~10 minutes
PASS_SAMPLE_STEP_DAYS = 0.00035  # ~30 seconds
ORBIT_COARSE_STEP_DAYS = 0.0035  # ~5 minutes
ORBIT_FINE_STEP_DAYS = 0.00035  # ~30 seconds

Clock = Callable[[], datetime]


def as_naive_utc(when: datetime) -> datetime:
    """Normalise ``when`` to a timezone-naive UTC datetime; naive input is taken as UTC."""
    if when.tzinfo is not None:
        return when.astimezone(timezone.utc).replace(tzinfo=None)
    return when


def datetime_to_daynum(when: datetime) -> float:
    """
    Convert a UTC datetime to daynum.

    Args:
        when: UTC datetime (naive datetimes are taken as UTC)

    Returns:
        Fractional days since the daynum epoch
    """
    delta = as_naive_utc(when) - DAYNUM_EPOCH
    return delta.total_seconds() / SECONDS_PER_DAY


def daynum_to_datetime(daynum: float) -> datetime:
    """
    Convert daynum back to a timezone-naive UTC datetime.

    Args:
        daynum: Fractional days since the daynum epoch

    Returns:
        UTC datetime, rounded to the microsecond
    """
    if math.isnan(daynum):
        raise ValueError("Cannot convert NaN daynum to a datetime")
    return DAYNUM_EPOCH + timedelta(days=daynum)


def now_daynum(clock: Optional[Clock] = None) -> float:
    """Daynum of the current instant according to ``clock``."""
    return datetime_to_daynum((clock or get_current_utc)())


def seconds_to_days(seconds: float) -> float:
    return seconds / SECONDS_PER_DAY


def start_of_day(when: datetime) -> datetime:
    """Midnight UTC of the day containing ``when``."""
    when = as_naive_utc(when)
    return when.replace(hour=0, minute=0, second=0, microsecond=0)
