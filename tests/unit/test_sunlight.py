"""
Tests for sunlight module.
"""

import math
from datetime import datetime

import numpy as np
import pytest

from pass_tracker.sunlight import (
    DARK_SKY_SUN_ELEVATION_DEG,
    calculate_gmst,
    calculate_sun_position,
    get_sun_elevation,
    is_satellite_sunlit,
    sun_position_ecef,
)


class TestCalculateSunPosition:
    """Tests for calculate_sun_position function."""

    def test_coordinates_reasonable(self) -> None:
        x, y, z = calculate_sun_position(datetime(2024, 6, 21, 12, 0, 0))

        distance = math.sqrt(x**2 + y**2 + z**2)
        assert 140_000_000 < distance < 160_000_000

    def test_summer_solstice_declination(self) -> None:
        x, y, z = calculate_sun_position(datetime(2024, 6, 21, 12, 0, 0))
        declination = math.degrees(math.asin(z / math.sqrt(x**2 + y**2 + z**2)))
        assert declination == pytest.approx(23.44, abs=0.5)

    def test_ecef_rotation_preserves_distance(self) -> None:
        when = datetime(2024, 1, 1, 12, 0, 0)
        assert np.linalg.norm(sun_position_ecef(when)) == pytest.approx(
            np.linalg.norm(calculate_sun_position(when))
        )


class TestCalculateGmst:

    def test_range(self) -> None:
        gmst = calculate_gmst(datetime(2024, 6, 21, 12, 0, 0))
        assert 0 <= gmst < 360

    def test_j2000_value(self) -> None:
        assert calculate_gmst(datetime(2000, 1, 1, 12, 0, 0)) == pytest.approx(280.46, abs=0.01)


class TestSunElevation:
    """Tests for get_sun_elevation function."""

    def test_noon_in_london_summer(self) -> None:
        elevation = get_sun_elevation(51.5, -0.1, datetime(2024, 6, 21, 12, 0, 0))
        assert 55 < elevation < 65

    def test_midnight_in_london_winter_is_dark(self) -> None:
        elevation = get_sun_elevation(51.5, -0.1, datetime(2024, 1, 1, 0, 0, 0))
        assert elevation < DARK_SKY_SUN_ELEVATION_DEG


class TestIsSatelliteSunlit:
    """Cylindrical shadow model."""

    @pytest.fixture
    def sun_unit(self) -> np.ndarray:
        sun = sun_position_ecef(datetime(2024, 1, 1, 12, 0, 0))
        return sun / np.linalg.norm(sun)

    @pytest.fixture
    def perpendicular(self, sun_unit) -> np.ndarray:
        other = np.cross(sun_unit, np.array([0.0, 0.0, 1.0]))
        return other / np.linalg.norm(other)

    def test_sun_side(self, sun_unit) -> None:
        assert is_satellite_sunlit(sun_unit * 6800.0, datetime(2024, 1, 1, 12, 0, 0))

    def test_behind_earth(self, sun_unit) -> None:
        assert not is_satellite_sunlit(-sun_unit * 6800.0, datetime(2024, 1, 1, 12, 0, 0))

    def test_night_side_outside_shadow(self, sun_unit, perpendicular) -> None:
        position = -sun_unit * 6800.0 + perpendicular * 7000.0
        assert is_satellite_sunlit(position, datetime(2024, 1, 1, 12, 0, 0))
