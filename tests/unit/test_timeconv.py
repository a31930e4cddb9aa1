"""
Tests for the daynum time conventions.
"""

import math
from datetime import datetime, timedelta, timezone

import pytest

from pass_tracker.timeconv import (
    DAYNUM_EPOCH,
    PASS_BACKOFF_STEP_DAYS,
    PASS_SAMPLE_STEP_DAYS,
    as_naive_utc,
    datetime_to_daynum,
    daynum_to_datetime,
    now_daynum,
    seconds_to_days,
    start_of_day,
)


class TestDaynum:
    """Conversion between calendar time and daynum."""

    def test_epoch_is_zero(self) -> None:
        assert datetime_to_daynum(datetime(1979, 12, 31)) == 0.0
        assert daynum_to_datetime(0.0) == DAYNUM_EPOCH

    def test_whole_days(self) -> None:
        assert datetime_to_daynum(datetime(1980, 1, 1)) == 1.0
        assert datetime_to_daynum(datetime(1980, 1, 1, 12)) == 1.5

    def test_known_date(self) -> None:
        # 2024-01-01 is 16072 days after 1979-12-31
        assert datetime_to_daynum(datetime(2024, 1, 1)) == pytest.approx(16072.0)

    def test_aware_datetime_is_converted_to_utc(self) -> None:
        aware = datetime(2024, 1, 1, 14, 0, tzinfo=timezone(timedelta(hours=2)))
        assert datetime_to_daynum(aware) == datetime_to_daynum(datetime(2024, 1, 1, 12, 0))

    def test_conversion_preserves_seconds(self) -> None:
        when = datetime(2024, 6, 15, 8, 45, 30)
        back = daynum_to_datetime(datetime_to_daynum(when))
        assert abs((back - when).total_seconds()) < 1e-3

    def test_nan_daynum_rejected(self) -> None:
        with pytest.raises(ValueError):
            daynum_to_datetime(math.nan)

    def test_now_daynum_uses_clock(self) -> None:
        fixed = datetime(2024, 1, 1, 6, 0)
        assert now_daynum(lambda: fixed) == pytest.approx(16072.25)


class TestStepConstants:

    def test_step_sizes_in_seconds(self) -> None:
        assert PASS_BACKOFF_STEP_DAYS * 86400.0 == pytest.approx(604.8)
        assert PASS_SAMPLE_STEP_DAYS * 86400.0 == pytest.approx(30.24)

    def test_seconds_to_days(self) -> None:
        assert seconds_to_days(86400.0) == 1.0
        assert seconds_to_days(60.0) == pytest.approx(1 / 1440)


def test_start_of_day() -> None:
    assert start_of_day(datetime(2024, 3, 5, 23, 59, 59)) == datetime(2024, 3, 5)


class TestAsNaiveUtc:

    def test_naive_is_unchanged(self) -> None:
        when = datetime(2024, 1, 1, 12, 0)
        assert as_naive_utc(when) is when

    def test_aware_is_shifted_to_utc(self) -> None:
        aware = datetime(2024, 1, 1, 7, 0, tzinfo=timezone(timedelta(hours=-5)))
        result = as_naive_utc(aware)
        assert result == datetime(2024, 1, 1, 12, 0)
        assert result.tzinfo is None
