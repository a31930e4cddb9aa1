"""
Tracker and engine configuration.

This module separates:
- Tracker settings (event computation, throttles, search step sizes)
- Engine settings (rise/set search horizon and refinement, radio reference)

Both can be loaded from config/tracker.yaml.
"""

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union
import logging
import os

import yaml  # type: ignore[import-untyped]

from .timeconv import (
    ORBIT_COARSE_STEP_DAYS,
    ORBIT_FINE_STEP_DAYS,
    PASS_BACKOFF_STEP_DAYS,
    PASS_SAMPLE_STEP_DAYS,
)

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "PASS_TRACKER_CONFIG"


@dataclass
class TrackerSettings:
    """
    Controller settings.

    Governs what each tick computes and how coarsely the searches step.
    """
    calculate_events: bool = True  # refresh next AOS/LOS on the event throttle
    aos_elevation_deg: float = 0.0  # elevation at which a pass counts as acquired

    event_refresh_ticks: int = 50
    orbit_refresh_seconds: float = 60.0

    # Trailing samples appended after the orbit boundary to close the track
    orbit_closure_padding: int = 20

    pass_backoff_step_days: float = PASS_BACKOFF_STEP_DAYS
    pass_sample_step_days: float = PASS_SAMPLE_STEP_DAYS
    orbit_coarse_step_days: float = ORBIT_COARSE_STEP_DAYS
    orbit_fine_step_days: float = ORBIT_FINE_STEP_DAYS

    # Upper bound on iterations of any stepping loop
    max_search_steps: int = 5000

    def __post_init__(self):
        """Validate tracker settings."""
        if not -90 <= self.aos_elevation_deg <= 90:
            raise ValueError(
                f"aos_elevation_deg must be in [-90, 90], got {self.aos_elevation_deg}"
            )

        if self.event_refresh_ticks < 1:
            raise ValueError(
                f"event_refresh_ticks must be >= 1, got {self.event_refresh_ticks}"
            )

        if self.orbit_refresh_seconds < 0:
            raise ValueError(
                f"orbit_refresh_seconds must be >= 0, got {self.orbit_refresh_seconds}"
            )

        if self.orbit_closure_padding < 0:
            raise ValueError(
                f"orbit_closure_padding must be >= 0, got {self.orbit_closure_padding}"
            )

        for name in (
            "pass_backoff_step_days",
            "pass_sample_step_days",
            "orbit_coarse_step_days",
            "orbit_fine_step_days",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be > 0, got {getattr(self, name)}")

        if self.max_search_steps < 1:
            raise ValueError(
                f"max_search_steps must be >= 1, got {self.max_search_steps}"
            )


@dataclass
class EngineConfig:
    """
    Propagation engine settings.

    The rise/set search scans forward in coarse steps up to the search horizon
    and then bisects the horizon crossing.
    """
    search_horizon_days: float = 2.0
    coarse_step_seconds: float = 60.0
    refinement_tolerance_seconds: float = 0.5
    max_refinement_iters: int = 30

    # Radio reference for signal loss and Doppler shift
    reference_frequency_hz: float = 100e6

    def __post_init__(self):
        """Validate engine settings."""
        if self.search_horizon_days <= 0:
            raise ValueError(
                f"search_horizon_days must be > 0, got {self.search_horizon_days}"
            )

        if self.coarse_step_seconds <= 0:
            raise ValueError(
                f"coarse_step_seconds must be > 0, got {self.coarse_step_seconds}"
            )

        if self.refinement_tolerance_seconds <= 0:
            raise ValueError(
                f"refinement_tolerance_seconds must be > 0, got {self.refinement_tolerance_seconds}"
            )

        if self.reference_frequency_hz <= 0:
            raise ValueError(
                f"reference_frequency_hz must be > 0, got {self.reference_frequency_hz}"
            )


def _default_config_paths() -> List[Path]:
    paths = []
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        paths.append(Path(env_path))
    paths.extend([
        Path(__file__).parent.parent.parent / "config" / "tracker.yaml",
        Path("config/tracker.yaml"),
    ])
    return paths


def _build(cls: Any, data: Optional[Dict[str, Any]]) -> Any:
    data = data or {}
    known = {f.name for f in fields(cls)}
    unknown = set(data) - known
    if unknown:
        logger.warning(f"Ignoring unknown {cls.__name__} keys: {sorted(unknown)}")
    return cls(**{k: v for k, v in data.items() if k in known})


def load_settings(
    config_file: Optional[Union[str, Path]] = None,
) -> Tuple[TrackerSettings, EngineConfig]:
    """
    Load tracker and engine settings from YAML.

    Args:
        config_file: Explicit config path. When omitted, the path in
            PASS_TRACKER_CONFIG and then config/tracker.yaml are tried.

    Returns:
        Tuple of (TrackerSettings, EngineConfig); built-in defaults are used
        when no file is found.

    Raises:
        FileNotFoundError: If an explicit config_file does not exist
        ValueError: If the file contains invalid values
    """
    if config_file is not None:
        path = Path(config_file)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {config_file}")
        candidates = [path]
    else:
        candidates = [p for p in _default_config_paths() if p.exists()]

    if not candidates:
        logger.warning(
            "Tracker config file not found, using built-in defaults. "
            f"Searched: {[str(p) for p in _default_config_paths()]}"
        )
        return TrackerSettings(), EngineConfig()

    config_path = candidates[0]
    with open(config_path, "r") as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")

    settings = _build(TrackerSettings, raw.get("tracker"))
    engine = _build(EngineConfig, raw.get("engine"))
    logger.info(f"Loaded tracker configuration from {config_path}")
    return settings, engine
