"""
Rise/set event refresh and next-event reporting.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
import logging

from .engine import PropagationPort, PropagationState
from .utils import format_short_datetime

logger = logging.getLogger(__name__)


class EventKind(Enum):
    """Kind of the next satellite event."""
    AOS = "AOS"
    LOS = "LOS"
    NOT_AVAILABLE = "N/A"
    NEVER = "Never"

    @property
    def description(self) -> str:
        return _DESCRIPTIONS[self]


_DESCRIPTIONS = {
    EventKind.AOS: "Acquisition Of Satellite",
    EventKind.LOS: "Loss Of Satellite",
    EventKind.NOT_AVAILABLE: "Not Available",
    EventKind.NEVER: "Never Visible",
}


@dataclass(frozen=True)
class NextEvent:
    """Structured form of the next event."""

    kind: EventKind
    time: Optional[datetime] = None

    @property
    def description(self) -> str:
        return self.kind.description

    @property
    def text(self) -> str:
        """Human readable form, e.g. ``AOS: 2024-01-01 12:34:56``."""
        if self.time is None:
            return self.kind.value
        return f"{self.kind.value}: {format_short_datetime(self.time)}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event": self.kind.value,
            "eventlong": self.description,
            "time": self.time.isoformat() if self.time else None,
        }

    def __str__(self) -> str:
        return self.text


def describe_next_event(
    state: Optional[PropagationState],
    aos_happens: bool,
    aos_elevation_deg: float = 0.0,
) -> NextEvent:
    """
    Work out which event comes next for the current state.

    Args:
        state: Current engine state
        aos_happens: Whether the satellite can ever rise for the observer
        aos_elevation_deg: Elevation at which a pass counts as acquired

    Returns:
        LOS while the satellite is above the acquisition elevation, AOS
        otherwise; NEVER for satellites that cannot rise
    """
    if not aos_happens:
        return NextEvent(EventKind.NEVER)

    if state is None:
        return NextEvent(EventKind.NOT_AVAILABLE)

    if state.elevation >= aos_elevation_deg:
        if state.next_los is not None:
            return NextEvent(EventKind.LOS, state.next_los)
    elif state.next_aos is not None:
        return NextEvent(EventKind.AOS, state.next_aos)

    return NextEvent(EventKind.NOT_AVAILABLE)


class EventThrottle:
    """
    Refreshes next AOS/LOS once every ``every`` ticks.

    The counter starts at the threshold, so the first tick refreshes.
    """

    def __init__(self, every: int = 50) -> None:
        if every < 1:
            raise ValueError(f"every must be >= 1, got {every}")
        self.every = every
        self.counter = every

    def step(self, engine: PropagationPort, daynum: float) -> bool:
        """
        Count one tick and refresh the events when due.

        The rise/set searches move the engine, so it is evaluated at
        ``daynum`` again afterwards.

        Returns:
            True if the events were refreshed on this tick
        """
        self.counter += 1
        if self.counter < self.every:
            return False

        engine.find_next_rise()
        engine.find_next_set()
        self.counter = 0
        engine.evaluate_at(daynum)
        return True

    def reset(self) -> None:
        """Force a refresh on the next tick."""
        self.counter = self.every
