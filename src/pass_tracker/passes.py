"""
Pass discovery and caching.

This module finds the next pass of a satellite over an observer by driving a
propagation engine through repeated point evaluations, samples the full pass
geometry between AOS and LOS, and caches the results.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .config import TrackerSettings
from .engine import PropagationPort, PropagationState, VisibilityFlag
from .observer import Observer
from .timeconv import Clock, as_naive_utc, datetime_to_daynum
from .utils import get_current_utc

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PassSample:
    """Geometry at a specific moment during a pass."""

    date: datetime
    x: float
    y: float
    z: float
    elevation: float
    azimuth: float
    footprint_km: float
    visibility: VisibilityFlag
    range_km: float
    signal_delay_ms: float
    signal_loss_db: float
    doppler_shift_hz: float

    @classmethod
    def from_state(cls, state: PropagationState) -> "PassSample":
        return cls(
            date=state.when,
            x=state.x,
            y=state.y,
            z=state.z,
            elevation=state.elevation,
            azimuth=state.azimuth,
            footprint_km=state.footprint_km,
            visibility=state.visibility,
            range_km=state.range_km,
            signal_delay_ms=state.signal_delay_ms,
            signal_loss_db=state.signal_loss_db,
            doppler_shift_hz=state.doppler_shift_hz,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "x": round(self.x, 3),
            "y": round(self.y, 3),
            "z": round(self.z, 3),
            "elevation": round(self.elevation, 2),
            "azimuth": round(self.azimuth, 2),
            "footprint_km": round(self.footprint_km, 1),
            "visibility": self.visibility.value,
            "range_km": round(self.range_km, 2),
            "signal_delay_ms": round(self.signal_delay_ms, 3),
            "signal_loss_db": round(self.signal_loss_db, 2),
            "doppler_shift_hz": round(self.doppler_shift_hz, 1),
        }


@dataclass(frozen=True)
class PassGeometry:
    """
    A sampled pass from AOS to LOS.

    An empty instance (no samples, no AOS) means no pass was found.
    """

    samples: Tuple[PassSample, ...] = field(default_factory=tuple)
    aos_time: Optional[datetime] = None
    los_time: Optional[datetime] = None
    max_elevation: float = 0.0
    orbit_number: int = 0

    @property
    def is_empty(self) -> bool:
        return self.aos_time is None or not self.samples

    @property
    def duration_s(self) -> float:
        if self.aos_time is None or self.los_time is None:
            return 0.0
        return (self.los_time - self.aos_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert pass geometry to dictionary."""
        return {
            "aos_time": self.aos_time.isoformat() if self.aos_time else None,
            "los_time": self.los_time.isoformat() if self.los_time else None,
            "duration_s": round(self.duration_s, 1),
            "max_elevation": round(self.max_elevation, 2),
            "orbit_number": self.orbit_number,
            "samples": [sample.to_dict() for sample in self.samples],
        }

    def __str__(self) -> str:
        """String representation of the pass."""
        if self.is_empty:
            return "No pass"
        return (
            f"Pass (orbit {self.orbit_number}): "
            f"{self.aos_time.strftime('%Y-%m-%d %H:%M:%S')} - "
            f"{self.los_time.strftime('%H:%M:%S') if self.los_time else '?'} UTC, "
            f"Max Elev: {self.max_elevation:.1f}°"
        )


class PassFinder:
    """
    Finds and samples the next pass over an observer.

    Owns its engine exclusively; the searches move the engine's instant.
    """

    def __init__(
        self,
        engine: PropagationPort,
        settings: Optional[TrackerSettings] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        self.engine = engine
        self.settings = settings or TrackerSettings()
        self._clock = clock or get_current_utc

    def find_pass(self, observer: Observer, start: Optional[datetime] = None) -> PassGeometry:
        """
        Find the first pass that ends after ``start``.

        If the satellite is above the horizon at ``start``, the pass in
        progress is returned.

        Args:
            observer: Ground observer
            start: Search start (UTC); now when omitted

        Returns:
            The sampled pass, or an empty PassGeometry when no pass is found
        """
        settings = self.settings
        engine = self.engine
        engine.configure_ground_station(observer.latitude, observer.longitude, observer.altitude)

        t = datetime_to_daynum(start if start is not None else self._clock())

        # Back up below the horizon so the rise search finds this pass
        state = engine.evaluate_at(t)
        steps = 0
        while state.above_horizon:
            steps += 1
            if steps > settings.max_search_steps:
                logger.warning(
                    f"{state.satellite_name}: still above the horizon after "
                    f"{settings.max_search_steps} back-off steps, no pass bounds"
                )
                return PassGeometry()
            t -= settings.pass_backoff_step_days
            state = engine.evaluate_at(t)

        aos = engine.find_next_rise()
        if aos == 0.0:
            logger.debug(f"{state.satellite_name}: no AOS found from {state.when}")
            return PassGeometry()

        los = engine.find_next_set()
        if los == 0.0:
            logger.debug(f"{state.satellite_name}: AOS without a LOS from {state.when}")
            return PassGeometry()

        aos_state = engine.evaluate_at(aos)
        samples = self._sample_pass(aos_state, los)
        pass_geometry = PassGeometry(
            samples=tuple(samples),
            aos_time=engine.daynum_to_datetime(aos),
            los_time=engine.daynum_to_datetime(los),
            max_elevation=max(sample.elevation for sample in samples),
            orbit_number=aos_state.orbit_number,
        )
        logger.debug(f"{state.satellite_name}: {pass_geometry} ({len(samples)} samples)")
        return pass_geometry

    def _sample_pass(self, aos_state: PropagationState, los: float) -> List[PassSample]:
        """Walk from the AOS state in fixed steps until the satellite sets."""
        step = self.settings.pass_sample_step_days
        samples = [PassSample.from_state(aos_state)]

        t = aos_state.daynum + step
        while t <= los and len(samples) < self.settings.max_search_steps:
            state = self.engine.evaluate_at(t)
            if not state.above_horizon:
                break
            samples.append(PassSample.from_state(state))
            t += step

        return samples


class PassCache:
    """
    Memoizes computed passes.

    Holds a single "next pass" slot, refreshed once its LOS has elapsed, and
    an unbounded list of passes looked up for explicit times.
    """

    def __init__(self, finder: PassFinder, clock: Optional[Clock] = None) -> None:
        self.finder = finder
        self._clock = clock or get_current_utc
        self._next: Optional[PassGeometry] = None
        self._entries: List[Tuple[datetime, PassGeometry]] = []

    @property
    def next_pass(self) -> Optional[PassGeometry]:
        """The cached next pass, without recomputation."""
        return self._next

    def __len__(self) -> int:
        return len(self._entries) + (1 if self._next is not None else 0)

    @staticmethod
    def is_stale(pass_geometry: PassGeometry, now: datetime) -> bool:
        """A pass is stale once its LOS has passed; an empty pass is always stale."""
        if pass_geometry.los_time is None:
            return True
        return now > pass_geometry.los_time

    def get_next_pass(self, observer: Observer, now: Optional[datetime] = None) -> PassGeometry:
        """
        Return the next pass, recomputing only when the cached one has ended.

        Args:
            observer: Ground observer
            now: Current UTC time; the clock is read when omitted

        Returns:
            The cached PassGeometry (same object while it is fresh)
        """
        now = as_naive_utc(now if now is not None else self._clock())
        if self._next is None or self.is_stale(self._next, now):
            self._next = self.finder.find_pass(observer, now)
        return self._next

    def get_pass_for_time(self, observer: Observer, time: datetime) -> PassGeometry:
        """
        Return the pass for a requested time, computing it on a miss.

        An entry matches when its AOS, or the time it was requested for,
        equals ``time``.
        """
        time = as_naive_utc(time)
        if self._next is not None and self._next.aos_time == time:
            return self._next

        for requested, pass_geometry in self._entries:
            if requested == time or pass_geometry.aos_time == time:
                return pass_geometry

        pass_geometry = self.finder.find_pass(observer, time)
        self._entries.append((time, pass_geometry))
        return pass_geometry

    def clear(self) -> None:
        self._next = None
        self._entries = []
