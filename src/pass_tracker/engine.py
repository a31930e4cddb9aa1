"""
Point propagation engine.

Defines the port the tracker drives (evaluate the satellite state at one
instant for one observer, find the next rise and set) and the production
adapter that implements it on top of the orbit-predictor SGP4 predictor.

The adapter is stateful in the same way a classic predict engine is: it
remembers its ground station and the last evaluated instant, and the rise/set
searches start from, and move, that instant.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Protocol, Tuple, runtime_checkable
import logging
import math

import numpy as np

from .config import EngineConfig
from .observer import Observer
from .orbit import XKMPER, SatelliteOrbit
from .sunlight import DARK_SKY_SUN_ELEVATION_DEG, get_sun_elevation, is_satellite_sunlit
from .timeconv import Clock, daynum_to_datetime, now_daynum, seconds_to_days

logger = logging.getLogger(__name__)

# WGS-84 ellipsoid, used for the ground station position
WGS84_A_KM = 6378.137
WGS84_E2 = 6.69437999014e-3

SPEED_OF_LIGHT_KM_S = 299792.458

# Diameter scale of the footprint circle (km per radian of Earth central angle)
FOOTPRINT_SCALE_KM = 12756.33


class VisibilityFlag(Enum):
    """Optical visibility of the satellite at one instant."""
    VISIBLE = "V"  # satellite sunlit, observer sky dark
    DAYLIGHT = "D"  # satellite sunlit, observer in daylight
    ECLIPSED = "N"  # satellite in the Earth's shadow


@dataclass(frozen=True)
class PropagationState:
    """Satellite state at one instant, as seen from the configured observer."""

    when: datetime
    daynum: float
    elevation: float  # degrees
    azimuth: float  # degrees, 0 = North, 90 = East
    range_km: float
    range_rate_km_s: float
    x: float  # Earth-fixed position, km
    y: float
    z: float
    latitude: float  # sub-satellite point, degrees
    longitude: float
    altitude_km: float
    velocity_km_s: float
    footprint_km: float
    visibility: VisibilityFlag
    signal_delay_ms: float
    signal_loss_db: float
    doppler_shift_hz: float
    orbit_number: int
    orbital_phase: int  # mean anomaly scaled to 0-255
    epoch: datetime
    ephemeris_type: str
    satellite_name: str
    catalog_number: int
    next_aos: Optional[datetime] = None
    next_los: Optional[datetime] = None

    @property
    def above_horizon(self) -> bool:
        return self.elevation >= 0


@runtime_checkable
class PropagationPort(Protocol):
    """Port for a single-instant propagation engine."""

    state: Optional[PropagationState]

    def configure_ground_station(
        self, latitude: float, longitude: float, altitude_m: float = 0.0
    ) -> None:
        """Set the observer all following evaluations refer to."""
        ...

    def evaluate_at(self, daynum: Optional[float] = None) -> PropagationState:
        """Evaluate the state at ``daynum`` (now when omitted) and keep it."""
        ...

    def find_next_rise(self) -> float:
        """Daynum of the next AOS from the current instant, 0.0 if none."""
        ...

    def find_next_set(self) -> float:
        """Daynum of the next LOS from the current instant, 0.0 if none."""
        ...

    def daynum_to_datetime(self, daynum: float) -> datetime:
        ...

    def has_any_rise(self) -> bool:
        """False when the object can never rise for the configured observer."""
        ...


def _ground_frame(observer: Observer) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """Earth-fixed position and local east/north/up unit vectors of an observer."""
    lat = math.radians(observer.latitude)
    lon = math.radians(observer.longitude)
    alt_km = observer.altitude / 1000.0

    sin_lat, cos_lat = math.sin(lat), math.cos(lat)
    sin_lon, cos_lon = math.sin(lon), math.cos(lon)

    n = WGS84_A_KM / math.sqrt(1.0 - WGS84_E2 * sin_lat * sin_lat)
    position = np.array([
        (n + alt_km) * cos_lat * cos_lon,
        (n + alt_km) * cos_lat * sin_lon,
        (n * (1.0 - WGS84_E2) + alt_km) * sin_lat,
    ])

    east = np.array([-sin_lon, cos_lon, 0.0])
    north = np.array([-sin_lat * cos_lon, -sin_lat * sin_lon, cos_lat])
    up = np.array([cos_lat * cos_lon, cos_lat * sin_lon, sin_lat])
    return position, east, north, up


class PredictorEngine:
    """
    Propagation engine backed by orbit-predictor.

    Each tracker responsibility gets its own instance so that searches run on
    one cannot move the instant another one is reading.
    """

    EPHEMERIS_TYPE = "SGP4"

    def __init__(
        self,
        satellite: SatelliteOrbit,
        config: Optional[EngineConfig] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Initialize the engine for one satellite.

        Args:
            satellite: Satellite element set and predictor
            config: Search and radio settings
            clock: Source of the current UTC time
        """
        self.satellite = satellite
        self.config = config or EngineConfig()
        self._clock = clock
        self.observer: Optional[Observer] = None
        self._ground: Optional[Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]] = None

        self.daynum = now_daynum(clock)
        self.state: Optional[PropagationState] = None
        self.next_aos: Optional[datetime] = None
        self.next_los: Optional[datetime] = None

    def configure_ground_station(
        self, latitude: float, longitude: float, altitude_m: float = 0.0
    ) -> None:
        """
        Set the ground station.

        Raises:
            ValueError: If the coordinates are out of range
        """
        observer = Observer(latitude, longitude, altitude_m)
        if observer == self.observer:
            return

        self.observer = observer
        self._ground = _ground_frame(observer)
        # Predicted events belong to the previous station
        self.next_aos = None
        self.next_los = None
        logger.debug(f"{self.satellite.satellite_name}: ground station set to {observer}")

    def daynum_to_datetime(self, daynum: float) -> datetime:
        return daynum_to_datetime(daynum)

    def has_any_rise(self) -> bool:
        if self.observer is None:
            raise RuntimeError("Ground station not configured")
        return self.satellite.aos_happens(self.observer.latitude)

    def evaluate_at(self, daynum: Optional[float] = None) -> PropagationState:
        """
        Propagate to ``daynum`` and compute the observer-relative state.

        Args:
            daynum: Instant to evaluate; the current time when omitted

        Returns:
            The new PropagationState, also kept as ``self.state``
        """
        if self._ground is None:
            raise RuntimeError("Ground station not configured")
        if daynum is None:
            daynum = now_daynum(self._clock)

        when = daynum_to_datetime(daynum)
        position = self.satellite.predictor.get_position(when)

        sat = np.asarray(position.position_ecef, dtype=float)
        velocity = np.asarray(position.velocity_ecef, dtype=float)
        ground, east, north, up = self._ground

        relative = sat - ground
        range_km = float(np.linalg.norm(relative))

        sin_elevation = float(np.dot(relative, up)) / range_km
        elevation = math.degrees(math.asin(max(-1.0, min(1.0, sin_elevation))))
        azimuth = math.degrees(
            math.atan2(float(np.dot(relative, east)), float(np.dot(relative, north)))
        ) % 360.0
        range_rate = float(np.dot(relative, velocity)) / range_km

        lat, lon, alt_km = position.position_llh
        if alt_km > 0:
            footprint = FOOTPRINT_SCALE_KM * math.acos(XKMPER / (XKMPER + alt_km))
        else:
            footprint = 0.0

        frequency = self.config.reference_frequency_hz
        state = PropagationState(
            when=when,
            daynum=daynum,
            elevation=elevation,
            azimuth=azimuth,
            range_km=range_km,
            range_rate_km_s=range_rate,
            x=float(sat[0]),
            y=float(sat[1]),
            z=float(sat[2]),
            latitude=lat,
            longitude=lon,
            altitude_km=alt_km,
            velocity_km_s=float(np.linalg.norm(velocity)),
            footprint_km=footprint,
            visibility=self._visibility(sat, when),
            signal_delay_ms=1000.0 * range_km / SPEED_OF_LIGHT_KM_S,
            signal_loss_db=32.4 + 20.0 * math.log10(frequency / 1e6) + 20.0 * math.log10(range_km),
            doppler_shift_hz=-frequency * range_rate / SPEED_OF_LIGHT_KM_S,
            orbit_number=self.satellite.orbit_number_at(when),
            orbital_phase=self.satellite.orbital_phase_at(when),
            epoch=self.satellite.elements.epoch,
            ephemeris_type=self.EPHEMERIS_TYPE,
            satellite_name=self.satellite.satellite_name,
            catalog_number=self.satellite.catalog_number,
            next_aos=self.next_aos,
            next_los=self.next_los,
        )

        self.daynum = daynum
        self.state = state
        return state

    def _visibility(self, sat_ecef: np.ndarray, when: datetime) -> VisibilityFlag:
        if not is_satellite_sunlit(sat_ecef, when):
            return VisibilityFlag.ECLIPSED
        sun_elevation = get_sun_elevation(self.observer.latitude, self.observer.longitude, when)
        if sun_elevation <= DARK_SKY_SUN_ELEVATION_DEG:
            return VisibilityFlag.VISIBLE
        return VisibilityFlag.DAYLIGHT

    def _elevation_at(self, daynum: float) -> float:
        return self.evaluate_at(daynum).elevation

    def _refine_crossing(self, t_left: float, t_right: float) -> float:
        """
        Refine a horizon crossing using bisection.

        The elevation sign at ``t_left`` differs from the sign at ``t_right``.

        Returns:
            The right end of the final bracket, which keeps the sign of
            ``t_right``
        """
        left_up = self._elevation_at(t_left) >= 0
        tolerance = seconds_to_days(self.config.refinement_tolerance_seconds)

        for _ in range(self.config.max_refinement_iters):
            if t_right - t_left <= tolerance:
                break
            t_mid = t_left + (t_right - t_left) / 2
            if (self._elevation_at(t_mid) >= 0) == left_up:
                t_left = t_mid
            else:
                t_right = t_mid

        return t_right

    def _rise_is_possible(self) -> bool:
        when = daynum_to_datetime(self.daynum)
        return (
            self.has_any_rise()
            and not self.satellite.is_geostationary()
            and not self.satellite.is_decayed(when)
        )

    def find_next_rise(self) -> float:
        """
        Find the AOS at or after the current instant.

        When the satellite is already above the horizon the AOS of the pass
        in progress is returned. The engine is left at the AOS instant.

        Returns:
            AOS daynum, or 0.0 when no rise happens within the search horizon
        """
        self.next_aos = None
        if not self._rise_is_possible():
            return 0.0

        step = seconds_to_days(self.config.coarse_step_seconds)
        horizon = self.config.search_horizon_days
        t = self.daynum

        if self._elevation_at(t) >= 0:
            limit = t - horizon
            while True:
                t_above = t
                t -= step
                if t < limit:
                    return 0.0
                if self._elevation_at(t) < 0:
                    break
            rise = self._refine_crossing(t, t_above)
        else:
            limit = t + horizon
            while True:
                t_below = t
                t += step
                if t > limit:
                    logger.debug(
                        f"{self.satellite.satellite_name}: no AOS within {horizon} days"
                    )
                    return 0.0
                if self._elevation_at(t) >= 0:
                    break
            rise = self._refine_crossing(t_below, t)

        self.next_aos = daynum_to_datetime(rise)
        self.evaluate_at(rise)
        return rise

    def find_next_set(self) -> float:
        """
        Find the LOS of the current pass, or of the next one when the
        satellite is below the horizon. The engine is left at the LOS instant.

        Returns:
            LOS daynum, or 0.0 when no set is found within the search horizon
        """
        self.next_los = None
        t = self.daynum

        if self._elevation_at(t) < 0:
            if self.find_next_rise() == 0.0:
                return 0.0
            t = self.daynum

        step = seconds_to_days(self.config.coarse_step_seconds)
        limit = t + self.config.search_horizon_days
        while True:
            t_above = t
            t += step
            if t > limit:
                return 0.0
            if self._elevation_at(t) < 0:
                break

        los = self._refine_crossing(t_above, t)
        self.next_los = daynum_to_datetime(los)
        self.evaluate_at(los)
        return los
