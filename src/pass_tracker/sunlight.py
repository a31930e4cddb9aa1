"""
Sun geometry for the visibility classification.

The propagation engine calls these for every evaluated instant to decide
whether the satellite is sunlit and whether the observer's sky is dark.
Low-precision solar ephemeris; good to a few hundredths of a degree, which
is plenty for a visible/daylight/eclipsed flag.
"""

import math
from datetime import datetime
from typing import Sequence

import numpy as np

EARTH_RADIUS_KM = 6371.0
AU_KM = 149597870.7

# Nautical twilight: the sky is dark enough to see a sunlit satellite
DARK_SKY_SUN_ELEVATION_DEG = -12.0

_J2000 = datetime(2000, 1, 1, 12, 0, 0)
_OBLIQUITY_RAD = math.radians(23.439291)


def _days_since_j2000(timestamp: datetime) -> float:
    return (timestamp.replace(tzinfo=None) - _J2000).total_seconds() / 86400.0


def calculate_sun_position(timestamp: datetime) -> np.ndarray:
    """
    Sun position in the Earth-centred inertial frame.

    Args:
        timestamp: UTC datetime

    Returns:
        Array (x, y, z) in kilometers
    """
    d = _days_since_j2000(timestamp)
    mean_anomaly = math.radians((357.52911 + 0.98560028 * d) % 360.0)
    centre = 1.914602 * math.sin(mean_anomaly) + 0.019993 * math.sin(2 * mean_anomaly)
    ecliptic_lon = math.radians(280.46646 + 0.98564736 * d + centre)

    direction = np.array([
        math.cos(ecliptic_lon),
        math.sin(ecliptic_lon) * math.cos(_OBLIQUITY_RAD),
        math.sin(ecliptic_lon) * math.sin(_OBLIQUITY_RAD),
    ])
    return AU_KM * direction


def calculate_gmst(timestamp: datetime) -> float:
    """Greenwich mean sidereal time in degrees, in [0, 360)."""
    d = _days_since_j2000(timestamp)
    centuries = d / 36525.0
    return (280.46061837 + 360.98564736629 * d + 0.000387933 * centuries ** 2) % 360.0


def sun_position_ecef(timestamp: datetime) -> np.ndarray:
    """Sun position rotated into the Earth-fixed frame (km)."""
    theta = math.radians(calculate_gmst(timestamp))
    c, s = math.cos(theta), math.sin(theta)
    rotation = np.array([[c, s, 0.0], [-s, c, 0.0], [0.0, 0.0, 1.0]])
    return rotation @ calculate_sun_position(timestamp)


def get_sun_elevation(latitude: float, longitude: float, timestamp: datetime) -> float:
    """
    Sun elevation above the local horizon of a ground point.

    Args:
        latitude: Geodetic latitude in degrees (treated as geocentric)
        longitude: Longitude in degrees, east positive
        timestamp: UTC datetime

    Returns:
        Elevation in degrees; negative below the horizon
    """
    lat, lon = math.radians(latitude), math.radians(longitude)
    up = np.array([math.cos(lat) * math.cos(lon), math.cos(lat) * math.sin(lon), math.sin(lat)])

    to_sun = sun_position_ecef(timestamp) - EARTH_RADIUS_KM * up
    sine = float(np.dot(to_sun, up) / np.linalg.norm(to_sun))
    return math.degrees(math.asin(np.clip(sine, -1.0, 1.0)))


def is_satellite_sunlit(position_ecef: Sequence[float], timestamp: datetime) -> bool:
    """
    Cylindrical shadow test.

    A satellite on the night side is eclipsed when it lies within one Earth
    radius of the Earth-Sun axis.

    Args:
        position_ecef: Satellite position (x, y, z) in km, Earth-fixed frame
        timestamp: UTC datetime
    """
    sat = np.asarray(position_ecef, dtype=float)
    axis = sun_position_ecef(timestamp)
    axis = axis / np.linalg.norm(axis)

    projection = float(np.dot(sat, axis))
    if projection >= 0:
        return True
    return bool(np.linalg.norm(sat - projection * axis) > EARTH_RADIUS_KM)
