"""
Named state fields.

External callers ask for satellite values by name ("elevation", "rangerate",
"orbitnumber", ...). Each name is a FieldKey mapped to a PropagationState
attribute.
"""

from enum import Enum
from operator import attrgetter
from typing import Any, Callable, Dict, Union

from .engine import PropagationState


class FieldKey(Enum):
    """Named fields available through ``SatelliteTracker.get``."""
    ELEVATION = "elevation"
    AZIMUTH = "azimuth"
    LATITUDE = "latitude"
    LONGITUDE = "longitude"
    ALTITUDE = "altitude"
    VELOCITY = "velocity"
    RANGE = "range"
    FOOTPRINT = "footprint"
    TYPE = "type"
    VISIBILITY = "visibility"
    RANGE_RATE = "rangerate"
    ORBITAL_PHASE = "orbitalphase"
    NEXT_AOS = "next_aos"
    NEXT_LOS = "next_los"
    X = "x"
    Y = "y"
    Z = "z"
    EPOCH = "epoc"
    ORBIT_NUMBER = "orbitnumber"
    SIGNAL_DELAY = "signaldelay"
    SIGNAL_LOSS = "signalloss"
    DOPPLER_SHIFT = "dopplershift"

    @classmethod
    def from_string(cls, value: str) -> "FieldKey":
        """Look up a field by its external name."""
        try:
            return cls(value.lower())
        except ValueError:
            valid = [key.value for key in cls]
            raise ValueError(f"Unknown field: {value}. Must be one of {valid}.")

    def read(self, state: PropagationState) -> Any:
        return _ACCESSORS[self](state)


_ACCESSORS: Dict[FieldKey, Callable[[PropagationState], Any]] = {
    FieldKey.ELEVATION: attrgetter("elevation"),
    FieldKey.AZIMUTH: attrgetter("azimuth"),
    FieldKey.LATITUDE: attrgetter("latitude"),
    FieldKey.LONGITUDE: attrgetter("longitude"),
    FieldKey.ALTITUDE: attrgetter("altitude_km"),
    FieldKey.VELOCITY: attrgetter("velocity_km_s"),
    FieldKey.RANGE: attrgetter("range_km"),
    FieldKey.FOOTPRINT: attrgetter("footprint_km"),
    FieldKey.TYPE: attrgetter("ephemeris_type"),
    FieldKey.VISIBILITY: lambda state: state.visibility.value,
    FieldKey.RANGE_RATE: attrgetter("range_rate_km_s"),
    FieldKey.ORBITAL_PHASE: attrgetter("orbital_phase"),
    FieldKey.NEXT_AOS: attrgetter("next_aos"),
    FieldKey.NEXT_LOS: attrgetter("next_los"),
    FieldKey.X: attrgetter("x"),
    FieldKey.Y: attrgetter("y"),
    FieldKey.Z: attrgetter("z"),
    FieldKey.EPOCH: attrgetter("epoch"),
    FieldKey.ORBIT_NUMBER: attrgetter("orbit_number"),
    FieldKey.SIGNAL_DELAY: attrgetter("signal_delay_ms"),
    FieldKey.SIGNAL_LOSS: attrgetter("signal_loss_db"),
    FieldKey.DOPPLER_SHIFT: attrgetter("doppler_shift_hz"),
}


def as_field_key(key: Union[FieldKey, str]) -> FieldKey:
    if isinstance(key, FieldKey):
        return key
    return FieldKey.from_string(key)
