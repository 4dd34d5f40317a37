"""
Fix state tracking

Remembers the current fix quality and when it last changed so the status
field can show how long the receiver has been in that state.
"""

import logging
import time
from enum import IntEnum
from typing import Callable, Optional

from .telemetry import FixMode

logger = logging.getLogger(__name__)


class FixState(IntEnum):
    """Receiver state shown in the status field"""
    OFFLINE = 0
    NO_FIX = 1
    FIX_2D = 2
    FIX_3D = 3


_STATE_LABELS = {
    FixState.NO_FIX: "NO FIX",
    FixState.FIX_2D: "2D FIX",
    FixState.FIX_3D: "3D FIX",
}


def state_for(online: bool, mode: FixMode) -> FixState:
    """Map an online flag and fix mode to a display state."""
    if not online:
        return FixState.OFFLINE
    if mode is FixMode.FIX_3D:
        return FixState.FIX_3D
    if mode is FixMode.FIX_2D:
        return FixState.FIX_2D
    return FixState.NO_FIX


class FixStateTracker:
    """Tracks fix state transitions and time spent in the current state."""

    def __init__(self, clock: Callable[[], float] = time.time,
                 start_time: Optional[float] = None):
        self.clock = clock
        self.state = FixState.NO_FIX
        self.last_transition = clock() if start_time is None else start_time
        self.transitions = 0

    def update(self, online: bool, mode: FixMode, now: Optional[float] = None) -> bool:
        """Record the state for one snapshot. Returns True on a transition."""
        new_state = state_for(online, mode)
        if new_state == self.state:
            return False

        if now is None:
            now = self.clock()
        logger.info(f"Fix state changed: {self.state.name} -> {new_state.name}")
        self.state = new_state
        self.last_transition = now
        self.transitions += 1
        return True

    def seconds_in_state(self, now: Optional[float] = None) -> int:
        if now is None:
            now = self.clock()
        return max(0, int(now - self.last_transition))

    def status_text(self, now: Optional[float] = None) -> str:
        """Status field text, e.g. '3D FIX (12 secs)' or 'OFFLINE'."""
        if self.state is FixState.OFFLINE:
            return "OFFLINE"
        return f"{_STATE_LABELS[self.state]} ({self.seconds_in_state(now)} secs)"
