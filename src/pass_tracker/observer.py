"""
Ground observer definition.

An observer is the fixed ground location from which passes are predicted.
"""

from dataclasses import dataclass
import math


def _check_range(label: str, value: float, limit: float) -> None:
    if not math.isfinite(value) or abs(value) > limit:
        raise ValueError(f"Invalid {label}: {value}. Must be between {-limit:g} and {limit:g} degrees.")


@dataclass(frozen=True)
class Observer:
    """
    A ground station watching a satellite.

    Frozen so it can be compared and hashed; the tracker uses equality to
    notice when the observer changes between ticks.
    """

    latitude: float  # degrees, north positive
    longitude: float  # degrees, east positive
    altitude: float = 0.0  # meters above sea level
    name: str = "observer"

    def __post_init__(self) -> None:
        _check_range("latitude", self.latitude, 90.0)
        _check_range("longitude", self.longitude, 180.0)
        if not math.isfinite(self.altitude):
            raise ValueError(f"Invalid altitude: {self.altitude}")

    def __str__(self) -> str:
        return f"{self.name} ({self.latitude:.4f}°, {self.longitude:.4f}°)"
