"""
Satellite element sets and TLE handling.

This module loads TLE data, builds the orbit-predictor SGP4 predictor used by
the propagation engine, and derives the element-set quantities the tracker
needs directly: orbit number, orbital phase, and whether the object can ever
rise above a given observer's horizon.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Union
import logging
import math

from orbit_predictor.sources import get_predictor_from_tle_lines
from orbit_predictor.predictors import TLEPredictor

logger = logging.getLogger(__name__)

# WGS-72 equatorial radius used by SGP4 element sets (km)
XKMPER = 6378.135

# Mean motion of a geostationary object (revolutions per day)
GEOSTATIONARY_MEAN_MOTION = 1.0027
GEOSTATIONARY_TOLERANCE = 0.0002


def _parse_exponent_field(field: str) -> float:
    """Parse a TLE 'assumed decimal point' field such as ' 40864-4'."""
    field = field.strip()
    if not field:
        return 0.0
    sign = -1.0 if field[0] == "-" else 1.0
    field = field.lstrip("+-")
    mantissa, exponent = field[:-2], field[-2:]
    return sign * float(f"0.{mantissa}") * 10 ** int(exponent)


@dataclass(frozen=True)
class TLEElements:
    """Mean orbital elements read from the two data lines of a TLE."""

    catalog_number: int
    epoch: datetime
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion: float  # revolutions per day
    mean_motion_dot: float  # first derivative / 2, revolutions per day^2
    bstar: float
    rev_number: int

    @classmethod
    def from_lines(cls, line1: str, line2: str) -> "TLEElements":
        """
        Parse the fixed-column TLE data lines.

        Raises:
            ValueError: If a line is malformed
        """
        if not line1.startswith("1 ") or not line2.startswith("2 "):
            raise ValueError("TLE data lines must start with '1 ' and '2 '")
        try:
            year = int(line1[18:20])
            year += 2000 if year < 57 else 1900
            day_of_year = float(line1[20:32])
            epoch = datetime(year, 1, 1) + timedelta(days=day_of_year - 1.0)
            rev_field = line2[63:68].strip()
            return cls(
                catalog_number=int(line1[2:7]),
                epoch=epoch,
                inclination_deg=float(line2[8:16]),
                raan_deg=float(line2[17:25]),
                eccentricity=float(f"0.{line2[26:33].strip()}"),
                arg_perigee_deg=float(line2[34:42]),
                mean_anomaly_deg=float(line2[43:51]),
                mean_motion=float(line2[52:63]),
                mean_motion_dot=float(line1[33:43]),
                bstar=_parse_exponent_field(line1[53:61]),
                rev_number=int(rev_field) if rev_field else 0,
            )
        except (IndexError, ValueError) as e:
            raise ValueError(f"Malformed TLE lines: {e}")

    def age_days(self, when: datetime) -> float:
        """Days elapsed since the element epoch."""
        return (when - self.epoch).total_seconds() / 86400.0

    def revolutions_since_epoch(self, when: datetime) -> float:
        """Fractional revolutions since the epoch, counted from perigee."""
        age = self.age_days(when)
        return (
            self.mean_motion * age
            + self.mean_motion_dot * age * age
            + self.mean_anomaly_deg / 360.0
        )

    @property
    def semi_major_axis_km(self) -> float:
        if self.mean_motion <= 0:
            return 0.0
        return 331.25 * math.exp(math.log(1440.0 / self.mean_motion) * (2.0 / 3.0))

    @property
    def apogee_km(self) -> float:
        """Apogee altitude above the equatorial radius."""
        return self.semi_major_axis_km * (1.0 + self.eccentricity) - XKMPER


class SatelliteOrbit:
    """
    Represents a satellite with TLE-based propagation capabilities.

    Holds the orbit-predictor predictor used for SGP4 positions together with
    the parsed element set used for orbit bookkeeping.
    """

    def __init__(self, tle_lines: List[str], satellite_name: Optional[str] = None) -> None:
        """
        Initialize satellite orbit from TLE data.

        Args:
            tle_lines: TLE data, either [name, line1, line2] or [line1, line2]
            satellite_name: Name of the satellite (defaults to the TLE name line)

        Raises:
            ValueError: If TLE data is invalid
        """
        if len(tle_lines) == 3:
            predictor_lines = [tle_lines[1], tle_lines[2]]
            default_name = tle_lines[0].strip()
        elif len(tle_lines) == 2:
            predictor_lines = list(tle_lines)
            default_name = ""
        else:
            raise ValueError(f"Expected 2 or 3 TLE lines, got {len(tle_lines)}")

        self.tle_lines = list(tle_lines)
        self.elements = TLEElements.from_lines(*predictor_lines)
        self.satellite_name = satellite_name or default_name or str(self.elements.catalog_number)

        try:
            self.predictor: TLEPredictor = get_predictor_from_tle_lines(predictor_lines)
            logger.info(f"Successfully loaded orbit for satellite: {self.satellite_name}")
        except Exception as e:
            logger.error(f"Failed to initialize satellite orbit: {e}")
            raise ValueError(f"Invalid TLE data for satellite {self.satellite_name}: {e}")

    @classmethod
    def from_tle_file(cls, tle_file_path: Union[str, Path], satellite_name: str) -> "SatelliteOrbit":
        """
        Create SatelliteOrbit instance from TLE file.

        Args:
            tle_file_path: Path to TLE file
            satellite_name: Name of the satellite to extract from TLE file

        Returns:
            SatelliteOrbit instance

        Raises:
            FileNotFoundError: If TLE file doesn't exist
            ValueError: If satellite not found in TLE file
        """
        tle_path = Path(tle_file_path)
        if not tle_path.exists():
            raise FileNotFoundError(f"TLE file not found: {tle_file_path}")

        with open(tle_path, 'r') as f:
            lines = [line.strip() for line in f.readlines() if line.strip()]

        for i in range(0, len(lines) - 2, 3):
            name_line = lines[i]
            if satellite_name.upper() in name_line.upper():
                return cls([lines[i], lines[i + 1], lines[i + 2]], name_line)

        logger.error(f"Satellite '{satellite_name}' not found in {tle_file_path}")
        raise ValueError(f"Satellite '{satellite_name}' not found in TLE file")

    @property
    def catalog_number(self) -> int:
        return self.elements.catalog_number

    def get_orbital_period(self) -> timedelta:
        """Orbital period derived from the mean motion."""
        if self.elements.mean_motion <= 0:
            return timedelta(0)
        return timedelta(days=1.0 / self.elements.mean_motion)

    def orbit_number_at(self, when: datetime) -> int:
        """Revolution number at ``when``, incremented at each perigee passage."""
        return int(math.floor(self.elements.revolutions_since_epoch(when))) + self.elements.rev_number

    def orbital_phase_at(self, when: datetime) -> int:
        """Mean anomaly at ``when`` on a 0-255 scale."""
        fraction = self.elements.revolutions_since_epoch(when) % 1.0
        return int(256.0 * fraction) % 256

    def aos_happens(self, observer_latitude: float) -> bool:
        """
        Check whether the satellite can ever rise above the observer's horizon.

        The satellite is visible from some latitude band around its inclination;
        the half-width of that band is the Earth central angle seen from apogee.

        Args:
            observer_latitude: Observer latitude in degrees

        Returns:
            True if an AOS is geometrically possible
        """
        if self.elements.mean_motion <= 0:
            return False

        inclination = self.elements.inclination_deg
        if inclination >= 90.0:
            inclination = 180.0 - inclination

        apogee = self.elements.apogee_km
        if apogee <= 0:
            return False

        reach = math.acos(XKMPER / (apogee + XKMPER)) + math.radians(inclination)
        return reach > abs(math.radians(observer_latitude))

    def is_geostationary(self) -> bool:
        return abs(self.elements.mean_motion - GEOSTATIONARY_MEAN_MOTION) < GEOSTATIONARY_TOLERANCE

    def is_decayed(self, when: datetime) -> bool:
        """Estimate whether drag has brought the object down by ``when``."""
        drag = abs(self.elements.mean_motion_dot)
        if drag == 0:
            return False
        decay_days = (16.666666 - self.elements.mean_motion) / (10.0 * drag)
        return self.elements.age_days(when) > decay_days

    def __repr__(self) -> str:
        """String representation of the satellite orbit."""
        period = self.get_orbital_period()
        return f"SatelliteOrbit(name='{self.satellite_name}', period={period})"
