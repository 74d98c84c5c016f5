"""
Bad posture alert hysteresis.

A single bad sample starts the timer; the alert fires only once bad posture
has persisted for ``delay`` seconds. Any good sample resets the timer, and a
firing alert is dismissed when posture is corrected.

Transition table (is_bad, t):

    Idle          --bad-->   Accumulating(started_at=t)
    Accumulating  --good-->  Idle
    Accumulating  --bad-->   Firing if t - started_at >= delay (ShowAlert)
    Firing        --good-->  Idle (DismissAlert)
    Firing        --bad-->   Firing (no repeated ShowAlert)

Usage:
    state = AlertTimerState.idle()
    state, event = advance(state, is_bad=True, t=0.0, delay=5.0)
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class AlertPhase(Enum):
    IDLE = "idle"
    ACCUMULATING = "accumulating"
    FIRING = "firing"


class AlertEvent(Enum):
    SHOW = "show"
    DISMISS = "dismiss"


@dataclass(frozen=True)
class AlertTimerState:
    phase: AlertPhase = AlertPhase.IDLE
    started_at: Optional[float] = None

    @classmethod
    def idle(cls) -> "AlertTimerState":
        return cls()

    @classmethod
    def accumulating(cls, started_at: float) -> "AlertTimerState":
        return cls(AlertPhase.ACCUMULATING, started_at)

    @classmethod
    def firing(cls, started_at: Optional[float] = None) -> "AlertTimerState":
        return cls(AlertPhase.FIRING, started_at)

    @property
    def is_firing(self) -> bool:
        return self.phase is AlertPhase.FIRING

    def elapsed(self, t: float) -> float:
        """Seconds of the current bad streak (0 when idle)."""
        if self.started_at is None:
            return 0.0
        return max(0.0, t - self.started_at)


def advance(
    state: AlertTimerState,
    is_bad: bool,
    t: float,
    delay: float,
) -> Tuple[AlertTimerState, Optional[AlertEvent]]:
    """
    Apply one classified sample to the timer.

    Returns:
        (new_state, event) where event is SHOW on entering Firing, DISMISS on
        leaving it, None otherwise
    """
    if not is_bad:
        if state.phase is AlertPhase.FIRING:
            return AlertTimerState.idle(), AlertEvent.DISMISS
        return AlertTimerState.idle(), None

    if state.phase is AlertPhase.IDLE:
        return AlertTimerState.accumulating(t), None

    if state.phase is AlertPhase.ACCUMULATING:
        if t - state.started_at >= delay:
            return AlertTimerState.firing(state.started_at), AlertEvent.SHOW
        return state, None

    return state, None


def force_reset(state: AlertTimerState) -> Tuple[AlertTimerState, Optional[AlertEvent]]:
    """Unconditionally return to Idle (recalibration, stop, signal loss)."""
    if state.is_firing:
        return AlertTimerState.idle(), AlertEvent.DISMISS
    return AlertTimerState.idle(), None
