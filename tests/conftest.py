"""
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest and provides:
- Custom markers for test categorization
- Shared fixtures for common test setup
- An analytic propagation engine with known rise and set times
"""

import math
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from _pytest.config import Config
from _pytest.python import Function

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pass_tracker.engine import PropagationState, VisibilityFlag  # noqa: E402
from pass_tracker.timeconv import datetime_to_daynum, daynum_to_datetime  # noqa: E402


def pytest_collection_modifyitems(config: Config, items: List[Function]) -> None:
    """Auto-mark integration tests."""
    for item in items:
        if "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)


def pytest_configure(config: Config) -> None:
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line("markers", "integration: marks integration tests")


# =============================================================================
# SYNTHETIC ENGINE - Closed-form elevation, exact rise/set times
# =============================================================================


class SyntheticEngine:
    """
    Propagation engine with a closed-form elevation profile.

    elevation(t) = amplitude * cos(2*pi*(t - center)/period) - offset

    Passes are centred on ``center + k * period``. The orbit number rolls over
    half way between passes. With ``visible=False`` the object never rises.
    """

    # Rise and set are reported just inside the pass
    EDGE_DAYS = 1e-7

    def __init__(
        self,
        center: float,
        period: float = 0.0625,
        amplitude: float = 60.0,
        offset: float = 40.0,
        base_orbit: int = 1000,
        visible: bool = True,
        fail_search: bool = False,
    ) -> None:
        self.center = center
        self.period = period
        self.amplitude = amplitude
        self.offset = offset
        self.base_orbit = base_orbit
        self.visible = visible
        self.fail_search = fail_search

        self.half_width = math.acos(offset / amplitude) / (2 * math.pi) * period
        self.daynum = center
        self.state: Optional[PropagationState] = None
        self.next_aos: Optional[datetime] = None
        self.next_los: Optional[datetime] = None
        self.observer: Optional[Tuple[float, float, float]] = None

        self.configure_calls = 0
        self.evaluate_calls = 0
        self.rise_calls = 0
        self.set_calls = 0

    def elevation_at(self, daynum: float) -> float:
        if not self.visible:
            return -30.0
        phase = 2 * math.pi * (daynum - self.center) / self.period
        return self.amplitude * math.cos(phase) - self.offset

    def orbit_number_at(self, daynum: float) -> int:
        return int(math.floor((daynum - self.center) / self.period + 0.5)) + self.base_orbit

    def pass_center(self, k: int) -> float:
        return self.center + k * self.period

    def configure_ground_station(
        self, latitude: float, longitude: float, altitude_m: float = 0.0
    ) -> None:
        self.configure_calls += 1
        observer = (latitude, longitude, altitude_m)
        if observer != self.observer:
            self.observer = observer
            self.next_aos = None
            self.next_los = None

    def daynum_to_datetime(self, daynum: float) -> datetime:
        return daynum_to_datetime(daynum)

    def has_any_rise(self) -> bool:
        return self.visible

    def evaluate_at(self, daynum: Optional[float] = None) -> PropagationState:
        if daynum is None:
            daynum = self.daynum
        self.evaluate_calls += 1

        elevation = self.elevation_at(daynum)
        state = PropagationState(
            when=daynum_to_datetime(daynum),
            daynum=daynum,
            elevation=elevation,
            azimuth=(daynum * 3600.0) % 360.0,
            range_km=2000.0 - 10.0 * elevation,
            range_rate_km_s=-1.0,
            x=6800.0,
            y=0.0,
            z=0.0,
            latitude=45.0,
            longitude=10.0,
            altitude_km=420.0,
            velocity_km_s=7.66,
            footprint_km=4500.0,
            visibility=VisibilityFlag.DAYLIGHT,
            signal_delay_ms=6.7,
            signal_loss_db=138.0,
            doppler_shift_hz=333.0,
            orbit_number=self.orbit_number_at(daynum),
            orbital_phase=0,
            epoch=datetime(2024, 1, 1),
            ephemeris_type="SYNTH",
            satellite_name="SYNTH-1",
            catalog_number=99999,
            next_aos=self.next_aos,
            next_los=self.next_los,
        )
        self.daynum = daynum
        self.state = state
        return state

    def find_next_rise(self) -> float:
        self.rise_calls += 1
        if self.fail_search:
            raise RuntimeError("synthetic search failure")
        self.next_aos = None
        if not self.visible:
            return 0.0

        t = self.daynum
        if self.elevation_at(t) >= 0:
            k = round((t - self.center) / self.period)
        else:
            k = math.ceil((t - self.center + self.half_width) / self.period)
        rise = self.pass_center(k) - self.half_width + self.EDGE_DAYS

        self.next_aos = daynum_to_datetime(rise)
        self.evaluate_at(rise)
        return rise

    def find_next_set(self) -> float:
        self.set_calls += 1
        if self.fail_search:
            raise RuntimeError("synthetic search failure")
        self.next_los = None
        if self.elevation_at(self.daynum) < 0 and self.find_next_rise() == 0.0:
            return 0.0

        k = round((self.daynum - self.center) / self.period)
        los = self.pass_center(k) + self.half_width - self.EDGE_DAYS

        self.next_los = daynum_to_datetime(los)
        self.evaluate_at(los)
        return los


# =============================================================================
# FIXTURES - Common test setup
# =============================================================================


@pytest.fixture
def sample_tle_lines() -> Tuple[str, str, str]:
    """Sample TLE data for the ISS."""
    return (
        "ISS (ZARYA)",
        "1 25544U 98067A   24001.00000000  .00002182  00000-0  40864-4 0  9990",
        "2 25544  51.6461 339.7939 0001220  92.8340 267.3124 15.49309239426382",
    )


@pytest.fixture
def sample_satellite(sample_tle_lines: Tuple[str, str, str], tmp_path: Path) -> Any:
    """Create a sample SatelliteOrbit for testing."""
    from pass_tracker.orbit import SatelliteOrbit

    tle_file = tmp_path / "test.tle"
    tle_file.write_text("\n".join(sample_tle_lines) + "\n")

    return SatelliteOrbit.from_tle_file(str(tle_file), satellite_name="ISS")


@pytest.fixture
def observer() -> Any:
    """Ground observer in London."""
    from pass_tracker.observer import Observer

    return Observer(latitude=51.5, longitude=-0.1, altitude=20.0, name="London")


@pytest.fixture
def base_datetime() -> datetime:
    """Standard base datetime for tests."""
    return datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def pass_center() -> datetime:
    """Culmination of the synthetic pass following base_datetime."""
    return datetime(2024, 1, 1, 12, 30, 0)


@pytest.fixture
def make_engine(pass_center: datetime) -> Callable[..., SyntheticEngine]:
    """Factory for synthetic engines centred on pass_center."""
    center = datetime_to_daynum(pass_center)

    def _make(**kwargs: Any) -> SyntheticEngine:
        return SyntheticEngine(center, **kwargs)

    return _make


@pytest.fixture
def engine(make_engine: Callable[..., SyntheticEngine]) -> SyntheticEngine:
    """A visible synthetic engine."""
    return make_engine()


@pytest.fixture
def make_tracker(
    sample_satellite: Any,
    make_engine: Callable[..., SyntheticEngine],
    base_datetime: datetime,
) -> Callable[..., Tuple[Any, List[SyntheticEngine]]]:
    """
    Factory for trackers running on synthetic engines.

    Returns (tracker, engines); engines are in creation order: state, orbit,
    pass, schedule. ``overrides`` maps an engine index to extra engine kwargs.
    """
    from pass_tracker.tracker import SatelliteTracker

    def _make(
        settings: Any = None,
        status: Optional[Callable[[str], None]] = None,
        overrides: Optional[Dict[int, Dict[str, Any]]] = None,
        **engine_kwargs: Any,
    ) -> Tuple[Any, List[SyntheticEngine]]:
        engines: List[SyntheticEngine] = []

        def factory() -> SyntheticEngine:
            kwargs = dict(engine_kwargs)
            kwargs.update((overrides or {}).get(len(engines), {}))
            created = make_engine(**kwargs)
            engines.append(created)
            return created

        tracker = SatelliteTracker(
            sample_satellite,
            settings=settings,
            status=status,
            clock=lambda: base_datetime,
            engine_factory=factory,
        )
        return tracker, engines

    return _make
