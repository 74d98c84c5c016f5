"""
Free-movement calibration.

The user moves their head around freely while samples stream in. Every sample
whose L1 distance (|d_pitch| + |d_roll|, degrees) from the previous one exceeds
the noise floor counts towards a fixed movement budget and widens the explored
pitch/roll extents. Once the budget is reached the session is complete and the
extents are frozen; committing it derives personalized thresholds.

States:
- Idle: no session (``None`` in the owning PostureSession)
- Collecting: session exists, budget not reached
- Complete: budget reached, waiting for the user to commit the neutral pose

Usage:
    session = CalibrationSession.start(last_pitch=0.0, last_roll=0.0)
    session = session.advance(12.0, -3.0)
    if session.is_complete:
        thresholds = session.derive_thresholds()
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from airposture.core.posture.classifier import Thresholds
from airposture.utils.config_sections import CalibrationConfig

# Round-off from the radians/degrees conversion
BUDGET_TOLERANCE = 1e-9


class CalibrationState(Enum):
    IDLE = "idle"
    COLLECTING = "collecting"
    COMPLETE = "complete"


@dataclass(frozen=True)
class CalibrationSession:
    """Running calibration aggregate, angles in degrees."""
    accumulated_movement: float = 0.0
    min_pitch: float = math.inf
    max_pitch: float = -math.inf
    min_roll: float = math.inf
    max_roll: float = -math.inf
    last_pitch: Optional[float] = None
    last_roll: Optional[float] = None
    config: CalibrationConfig = field(default_factory=CalibrationConfig)

    @classmethod
    def start(
        cls,
        last_pitch: Optional[float] = None,
        last_roll: Optional[float] = None,
        config: Optional[CalibrationConfig] = None,
    ) -> "CalibrationSession":
        """
        Open a new session.

        Args:
            last_pitch: Latest live pitch in degrees, if one is known
            last_roll: Latest live roll in degrees, if one is known
            config: Calibration constants (defaults match Config)
        """
        return cls(
            last_pitch=last_pitch,
            last_roll=last_roll,
            config=config or CalibrationConfig(),
        )

    @property
    def state(self) -> CalibrationState:
        return CalibrationState.COMPLETE if self.is_complete else CalibrationState.COLLECTING

    @property
    def is_complete(self) -> bool:
        return self.accumulated_movement >= self.config.total_movement - BUDGET_TOLERANCE

    @property
    def progress_percentage(self) -> float:
        if self.is_complete:
            return 100.0
        return self.accumulated_movement / self.config.total_movement * 100.0

    def advance(self, pitch: float, roll: float) -> "CalibrationSession":
        """Feed one live sample (degrees) and return the updated session."""
        if not (math.isfinite(pitch) and math.isfinite(roll)):
            return self

        if self.last_pitch is None or self.last_roll is None:
            return replace(self, last_pitch=pitch, last_roll=roll)

        if self.is_complete:
            return replace(self, last_pitch=pitch, last_roll=roll)

        delta = abs(pitch - self.last_pitch) + abs(roll - self.last_roll)
        if delta <= self.config.noise_floor:
            return replace(self, last_pitch=pitch, last_roll=roll)

        accumulated = self.accumulated_movement + delta
        if accumulated >= self.config.total_movement - BUDGET_TOLERANCE:
            accumulated = self.config.total_movement

        return replace(
            self,
            accumulated_movement=accumulated,
            min_pitch=min(self.min_pitch, pitch),
            max_pitch=max(self.max_pitch, pitch),
            min_roll=min(self.min_roll, roll),
            max_roll=max(self.max_roll, roll),
            last_pitch=pitch,
            last_roll=roll,
        )

    def derive_thresholds(self) -> Thresholds:
        """
        Personalized limits from the explored extents.

        An axis explored over no more than ``min_range`` degrees falls back to
        the fixed limit for that axis instead of a near-zero threshold.
        """
        cfg = self.config
        pitch_range = self.max_pitch - self.min_pitch
        roll_range = self.max_roll - self.min_roll

        if pitch_range > cfg.min_range:
            forward_pitch_limit = -(pitch_range * cfg.threshold_factor)
        else:
            forward_pitch_limit = cfg.fallback_pitch_limit

        if roll_range > cfg.min_range:
            side_roll_limit = roll_range * cfg.threshold_factor
        else:
            side_roll_limit = cfg.fallback_roll_limit

        return Thresholds(forward_pitch_limit, side_roll_limit)


def calibration_state(session: Optional[CalibrationSession]) -> CalibrationState:
    return CalibrationState.IDLE if session is None else session.state
