"""
Satellite Pass Tracker

Drives a point propagation engine to find upcoming passes of a satellite over
a ground observer, sample full pass geometry, and sample one-revolution ground
tracks, with caching and throttling suited to a live, tick-driven display.
"""

from .config import EngineConfig, TrackerSettings, load_settings
from .engine import PredictorEngine, PropagationPort, PropagationState
from .observer import Observer
from .orbit import SatelliteOrbit
from .passes import PassGeometry
from .tracker import SatelliteTracker

__version__ = "0.1.0"
__author__ = "Pass Tracker Team"

__all__ = [
    "EngineConfig",
    "Observer",
    "PassGeometry",
    "PredictorEngine",
    "PropagationPort",
    "PropagationState",
    "SatelliteOrbit",
    "SatelliteTracker",
    "TrackerSettings",
    "load_settings",
]
