"""
One-revolution ground track sampling.

The sampler locates the start of the current revolution from the element-set
orbit number and samples positions until the orbit number rolls over.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging

from .config import TrackerSettings
from .engine import PropagationPort, PropagationState
from .observer import Observer
from .timeconv import Clock, as_naive_utc, datetime_to_daynum
from .utils import get_current_utc, log_status

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrbitPoint:
    """One sampled ground-track instant."""

    date: datetime
    x: float
    y: float
    z: float
    latitude: float
    longitude: float
    elevation: float
    azimuth: float
    orbit_number: int

    @classmethod
    def from_state(cls, state: PropagationState) -> "OrbitPoint":
        return cls(
            date=state.when,
            x=state.x,
            y=state.y,
            z=state.z,
            latitude=state.latitude,
            longitude=state.longitude,
            elevation=state.elevation,
            azimuth=state.azimuth,
            orbit_number=state.orbit_number,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "latitude": round(self.latitude, 4),
            "longitude": round(self.longitude, 4),
            "x": round(self.x, 3),
            "y": round(self.y, 3),
            "z": round(self.z, 3),
            "elevation": round(self.elevation, 2),
            "azimuth": round(self.azimuth, 2),
            "orbit_number": self.orbit_number,
        }


class OrbitSampler:
    """
    Samples the ground track of the current revolution.

    Resampling is throttled: a request within ``orbit_refresh_seconds`` of the
    last completed sampling is ignored.
    """

    def __init__(
        self,
        engine: PropagationPort,
        settings: Optional[TrackerSettings] = None,
        clock: Optional[Clock] = None,
        status: Optional[Callable[[str], None]] = None,
        satellite_name: str = "",
    ) -> None:
        self.engine = engine
        self.settings = settings or TrackerSettings()
        self._clock = clock or get_current_utc
        self._status = status or log_status
        self.satellite_name = satellite_name

        self.points: List[OrbitPoint] = []
        self.last_sampled: Optional[datetime] = None

    def is_fresh(self, now: datetime) -> bool:
        if self.last_sampled is None:
            return False
        age = (as_naive_utc(now) - self.last_sampled).total_seconds()
        return age < self.settings.orbit_refresh_seconds

    def sample(self, observer: Observer, when: Optional[datetime] = None) -> List[OrbitPoint]:
        """
        Rebuild the ground track for the revolution in progress at ``when``.

        Args:
            observer: Ground observer (elevation and azimuth refer to it)
            when: UTC time; now when omitted

        Returns:
            The stored orbit points (unchanged when the request is throttled)
        """
        now = as_naive_utc(when if when is not None else self._clock())
        self._status(f"Calculating Orbit For {self.satellite_name} Started")

        if self.is_fresh(now):
            self._status(f"Orbit request For {self.satellite_name} ignored")
            return self.points

        settings = self.settings
        engine = self.engine
        engine.configure_ground_station(observer.latitude, observer.longitude, observer.altitude)

        t = datetime_to_daynum(now)
        this_orbit = engine.evaluate_at(t).orbit_number

        # Step back into the previous revolution, then forward just past its end
        start = t
        for _ in range(settings.max_search_steps):
            if engine.evaluate_at(start).orbit_number != this_orbit:
                start += settings.orbit_coarse_step_days
                break
            start -= settings.orbit_coarse_step_days
        else:
            logger.warning(f"{self.satellite_name}: orbit start not found, sampling from {now}")
            start = t

        t = start
        state = engine.evaluate_at(t)

        points: List[OrbitPoint] = []
        while state.orbit_number == this_orbit and len(points) < settings.max_search_steps:
            points.append(OrbitPoint.from_state(state))
            t += settings.orbit_fine_step_days
            state = engine.evaluate_at(t)

        # The sampled loop does not close at the orbit boundary without these
        for _ in range(settings.orbit_closure_padding):
            points.append(OrbitPoint.from_state(state))
            t += settings.orbit_fine_step_days
            state = engine.evaluate_at(t)

        self.points = points
        self.last_sampled = now
        logger.debug(f"{self.satellite_name}: orbit {this_orbit} sampled with {len(points)} points")
        self._status(f"Calculating Orbit Complete For {self.satellite_name}")
        return self.points
