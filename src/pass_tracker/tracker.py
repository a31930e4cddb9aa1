"""
Per-satellite tracking controller.

SatelliteTracker owns every piece of derived state for one satellite (current
state, next-pass cache, sampled ground track, daily pass list, selection and
throttle counters) and exposes the operations a live display drives on each
periodic tick.
"""

from datetime import datetime, timedelta
from typing import Any, Callable, List, Optional, Union
import logging

from .config import EngineConfig, TrackerSettings
from .engine import PredictorEngine, PropagationPort, PropagationState
from .events import EventThrottle, NextEvent, describe_next_event
from .fields import FieldKey, as_field_key
from .groundtrack import OrbitPoint, OrbitSampler
from .observer import Observer
from .orbit import SatelliteOrbit
from .passes import PassCache, PassFinder, PassGeometry
from .timeconv import Clock, as_naive_utc, datetime_to_daynum, start_of_day
from .utils import get_current_utc, log_status

logger = logging.getLogger(__name__)

EngineFactory = Callable[[], PropagationPort]


class SatelliteTracker:
    """
    Tracks one satellite for one observer at a time.

    Current-state evaluation, orbit sampling, next-pass search and the daily
    pass list each run on their own engine instance.
    """

    def __init__(
        self,
        satellite: SatelliteOrbit,
        settings: Optional[TrackerSettings] = None,
        engine_config: Optional[EngineConfig] = None,
        status: Optional[Callable[[str], None]] = None,
        clock: Optional[Clock] = None,
        engine_factory: Optional[EngineFactory] = None,
    ) -> None:
        """
        Initialize the tracker.

        Args:
            satellite: Satellite to track
            settings: Controller settings
            engine_config: Settings for the default orbit-predictor engines
            status: Receives human readable progress notifications
            clock: Source of the current UTC time
            engine_factory: Builds the propagation engines; defaults to
                PredictorEngine over ``satellite``
        """
        self.satellite = satellite
        self.settings = settings or TrackerSettings()
        self._clock = clock or get_current_utc
        self._status = status or log_status

        if engine_factory is None:
            config = engine_config or EngineConfig()

            def engine_factory() -> PropagationPort:
                return PredictorEngine(satellite, config, self._clock)

        self._engine = engine_factory()
        self._orbit_engine = engine_factory()
        self._pass_engine = engine_factory()
        self._schedule_engine = engine_factory()

        self._pass_cache = PassCache(
            PassFinder(self._pass_engine, self.settings, self._clock), self._clock
        )
        self._schedule_finder = PassFinder(self._schedule_engine, self.settings, self._clock)
        self._orbit_sampler = OrbitSampler(
            self._orbit_engine, self.settings, self._clock, self._status, self.name
        )
        self._event_throttle = EventThrottle(self.settings.event_refresh_ticks)

        self._observer: Optional[Observer] = None
        self._selected = False
        self._orbit_requested = False
        self._todays_passes: Optional[List[PassGeometry]] = None

        logger.info(f"Initialized SatelliteTracker for {self.name}")

    # Identity

    @property
    def name(self) -> str:
        return self.satellite.satellite_name

    @property
    def catalog_number(self) -> int:
        return self.satellite.catalog_number

    # Selection

    @property
    def selected(self) -> bool:
        return self._selected

    def select(self) -> None:
        self._selected = True

    def deselect(self) -> None:
        self._selected = False

    def toggle_selected(self) -> bool:
        self._selected = not self._selected
        return self._selected

    # Orbit requests

    @property
    def orbit_requested(self) -> bool:
        return self._orbit_requested

    def request_orbit(self) -> None:
        """Ask for the ground track to be resampled on the next tick."""
        self._orbit_requested = True

    # State

    @property
    def state(self) -> Optional[PropagationState]:
        return self._engine.state

    def get(self, key: Union[FieldKey, str]) -> Any:
        """
        Read a named field of the current state.

        Args:
            key: FieldKey or its external name (e.g. "elevation")

        Returns:
            The field value, or None before the first tick

        Raises:
            ValueError: If the name is not a known field
        """
        field_key = as_field_key(key)
        state = self._engine.state
        if state is None:
            return None
        return field_key.read(state)

    def _use_observer(self, observer: Observer) -> None:
        """Drop results computed for a different observer."""
        if observer == self._observer:
            return
        if self._observer is not None:
            logger.info(f"{self.name}: observer changed to {observer}, clearing cached results")
            self._pass_cache.clear()
            self._orbit_sampler.last_sampled = None
            self._event_throttle.reset()
            self._todays_passes = None
        self._observer = observer

    def tick(
        self,
        observer: Observer,
        when: Optional[datetime] = None,
        settings: Optional[TrackerSettings] = None,
    ) -> PropagationState:
        """
        Run one periodic evaluation.

        Evaluates the current state, then resamples the orbit if requested,
        refreshes rise/set events on the throttle, and refreshes the next pass
        when selected. A failure in one of those steps is logged and does not
        stop the others.

        Args:
            observer: Ground observer
            when: Evaluation time (UTC); now when omitted
            settings: Overrides the tracker settings for event gating

        Returns:
            The current PropagationState
        """
        settings = settings or self.settings
        now = as_naive_utc(when if when is not None else self._clock())
        daynum = datetime_to_daynum(now)

        self._use_observer(observer)
        self._engine.configure_ground_station(
            observer.latitude, observer.longitude, observer.altitude
        )
        state = self._engine.evaluate_at(daynum)

        if self._orbit_requested:
            try:
                self.calculate_orbit(observer, now)
            except Exception as e:
                logger.error(f"Orbit calculation for {self.name} failed: {e}")

        if settings.calculate_events:
            try:
                if self._event_throttle.step(self._engine, daynum):
                    state = self._engine.state or state
            except Exception as e:
                logger.error(f"Event calculation for {self.name} failed: {e}")
                state = self._engine.evaluate_at(daynum)

        if self._selected:
            try:
                self._pass_cache.get_next_pass(observer, now)
            except Exception as e:
                logger.error(f"Next pass calculation for {self.name} failed: {e}")

        return state

    # Events

    def aos_happens(self) -> bool:
        """Whether the satellite can ever rise for the current observer."""
        if self._observer is None:
            raise RuntimeError(f"{self.name}: no observer yet, call tick() first")
        return self._engine.has_any_rise()

    def get_next_event(self, settings: Optional[TrackerSettings] = None) -> NextEvent:
        """Structured next event (kind, description, time)."""
        settings = settings or self.settings
        aos_happens = self.aos_happens() if self._observer is not None else True
        return describe_next_event(self._engine.state, aos_happens, settings.aos_elevation_deg)

    def get_next_event_text(self, settings: Optional[TrackerSettings] = None) -> str:
        """Human readable next event, e.g. ``AOS: 2024-01-01 12:34:56``."""
        return self.get_next_event(settings).text

    # Ground track

    def get_orbit_data(self) -> List[OrbitPoint]:
        return self._orbit_sampler.points

    def calculate_orbit(self, observer: Observer, when: Optional[datetime] = None) -> List[OrbitPoint]:
        """Resample the ground track now (subject to the freshness throttle)."""
        self._orbit_requested = False
        self._use_observer(observer)
        return self._orbit_sampler.sample(observer, when)

    # Passes

    def calculate_todays_passes(
        self, observer: Observer, when: Optional[datetime] = None
    ) -> List[PassGeometry]:
        """
        Find every pass whose AOS falls on the UTC day containing ``when``.

        Args:
            observer: Ground observer
            when: Any time on the day of interest; now when omitted

        Returns:
            Passes in AOS order
        """
        self._use_observer(observer)
        day_start = start_of_day(when if when is not None else self._clock())
        day_end = day_start + timedelta(days=1)

        passes: List[PassGeometry] = []
        start = day_start
        for _ in range(self.settings.max_search_steps):
            pass_geometry = self._schedule_finder.find_pass(observer, start)
            if pass_geometry.is_empty or pass_geometry.aos_time >= day_end:
                break
            if pass_geometry.aos_time >= day_start:
                passes.append(pass_geometry)
            start = pass_geometry.los_time + timedelta(seconds=1)

        logger.info(f"{self.name}: {len(passes)} passes on {day_start.date()}")
        self._todays_passes = passes
        return passes

    def get_todays_passes(self) -> Optional[List[PassGeometry]]:
        return self._todays_passes

    def get_next_pass(
        self, observer: Optional[Observer] = None, now: Optional[datetime] = None
    ) -> Optional[PassGeometry]:
        """
        Next pass for the observer.

        Without an observer the cached pass is returned as is (None if none
        has been computed yet); with one, the cache is refreshed when stale.
        """
        if observer is None:
            return self._pass_cache.next_pass
        self._use_observer(observer)
        return self._pass_cache.get_next_pass(observer, now)

    def get_pass_for_time(self, observer: Observer, time: datetime) -> PassGeometry:
        self._use_observer(observer)
        return self._pass_cache.get_pass_for_time(observer, time)

    def __repr__(self) -> str:
        return f"SatelliteTracker(name='{self.name}', selected={self._selected})"
