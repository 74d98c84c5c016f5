"""
Posture session reducer.

All mutable monitoring state (active reference, thresholds, alert timer, log
gate, in-flight calibration) lives in one immutable ``PostureSession`` value.
Each input (a sensor sample or a user command) is a function

    (PostureSession, input) -> (PostureSession, [Effect, ...])

with no side effects. The shell that owns the session (see
``airposture.core.posture.coordinator``) serializes inputs and executes the
returned effects: UI updates, alert windows and posture log hand-off.

Effects:
- PublishLive: raw angles for live display (every sample)
- CalibrationProgress: percent of the movement budget (while calibrating)
- ShowAlert / DismissAlert: alert hysteresis transitions
- EmitLog: one accepted posture reading for the log sink
- SignalLost: sensor stream ended, no classification possible
"""

import math
from dataclasses import dataclass, field, replace
from typing import List, Optional, Tuple, Union

from airposture.core.calibration.calibration_session import (
    CalibrationSession,
    CalibrationState,
    calibration_state,
)
from airposture.core.imu.attitude import Orientation, relative_attitude
from airposture.core.posture import alert_timer
from airposture.core.posture.alert_timer import AlertEvent, AlertTimerState
from airposture.core.posture.classifier import DEFAULT_THRESHOLDS, Thresholds, classify
from airposture.core.posture.log_gate import LogGate
from airposture.core.telemetry.loggers.posture_logger import PostureLogEntry
from airposture.utils.config_sections import CalibrationConfig, ClassifierConfig


@dataclass(frozen=True)
class MotionSample:
    """Absolute orientation reported by the sensor (radians, epoch seconds)."""
    orientation: Orientation
    timestamp: float

    @classmethod
    def from_radians(cls, pitch: float, roll: float, timestamp: float, yaw: float = 0.0) -> "MotionSample":
        return cls(Orientation(pitch=pitch, roll=roll, yaw=yaw), timestamp)

    @classmethod
    def from_degrees(cls, pitch: float, roll: float, timestamp: float, yaw: float = 0.0) -> "MotionSample":
        return cls(Orientation.from_degrees(pitch, roll, yaw), timestamp)

    @property
    def is_finite(self) -> bool:
        o = self.orientation
        return math.isfinite(o.pitch) and math.isfinite(o.roll) and math.isfinite(self.timestamp)


@dataclass(frozen=True)
class PostureSample:
    """One classified sample, angles in degrees."""
    relative_pitch: float
    relative_roll: float
    raw_pitch: float
    raw_roll: float
    is_bad: bool
    timestamp: float


# ----------------------------------------------------------------------
# Effects
# ----------------------------------------------------------------------

@dataclass(frozen=True)
class PublishLive:
    pitch: float
    roll: float


@dataclass(frozen=True)
class CalibrationProgress:
    percent: float


@dataclass(frozen=True)
class ShowAlert:
    pitch: int


@dataclass(frozen=True)
class DismissAlert:
    pass


@dataclass(frozen=True)
class EmitLog:
    entry: PostureLogEntry


@dataclass(frozen=True)
class SignalLost:
    reason: str = ""


Effect = Union[PublishLive, CalibrationProgress, ShowAlert, DismissAlert, EmitLog, SignalLost]
Transition = Tuple["PostureSession", List[Effect]]


@dataclass(frozen=True)
class PostureSession:
    """Complete monitoring state for one wearer."""
    reference: Optional[Orientation] = None
    thresholds: Thresholds = DEFAULT_THRESHOLDS
    timer: AlertTimerState = field(default_factory=AlertTimerState.idle)
    log_gate: LogGate = field(default_factory=LogGate)
    calibration: Optional[CalibrationSession] = None
    calibration_config: CalibrationConfig = field(default_factory=CalibrationConfig)
    checking_enabled: bool = False
    alert_delay: float = 5.0
    last_sample: Optional[MotionSample] = None
    last_posture: Optional[PostureSample] = None
    has_signal: bool = False

    @property
    def is_calibrated(self) -> bool:
        return self.reference is not None

    @property
    def calibration_state(self) -> CalibrationState:
        return calibration_state(self.calibration)


def new_session(
    classifier_config: Optional[ClassifierConfig] = None,
    calibration_config: Optional[CalibrationConfig] = None,
    alert_delay: float = 5.0,
    log_interval: float = 1.0,
) -> PostureSession:
    """Uncalibrated session in absolute mode."""
    return PostureSession(
        thresholds=Thresholds.absolute(classifier_config),
        calibration_config=calibration_config or CalibrationConfig(),
        alert_delay=float(alert_delay),
        log_gate=LogGate(interval=log_interval),
    )


def _timer_effects(event: Optional[AlertEvent], pitch: float = 0.0) -> List[Effect]:
    if event is AlertEvent.SHOW:
        return [ShowAlert(pitch=int(abs(pitch)))]
    if event is AlertEvent.DISMISS:
        return [DismissAlert()]
    return []


def _reset_timer(session: PostureSession) -> Transition:
    timer, event = alert_timer.force_reset(session.timer)
    return replace(session, timer=timer), _timer_effects(event)


# ----------------------------------------------------------------------
# Sensor input
# ----------------------------------------------------------------------

def process_sample(session: PostureSession, sample: MotionSample) -> Transition:
    """
    Run one sensor sample through calibration, classification, the alert
    timer and the log gate. Non-finite samples are dropped unchanged.
    """
    if not sample.is_finite:
        return session, []

    raw = sample.orientation
    raw_pitch, raw_roll = raw.pitch_degrees, raw.roll_degrees
    effects: List[Effect] = [PublishLive(raw_pitch, raw_roll)]
    session = replace(session, last_sample=sample, has_signal=True)

    if session.calibration is not None:
        calibration = session.calibration.advance(raw_pitch, raw_roll)
        session = replace(session, calibration=calibration)
        effects.append(CalibrationProgress(calibration.progress_percentage))

    if not session.checking_enabled:
        return session, effects

    relative = relative_attitude(raw, session.reference)
    result = classify(relative.pitch_degrees, relative.roll_degrees, session.thresholds)
    posture = PostureSample(
        relative_pitch=result.pitch,
        relative_roll=result.roll,
        raw_pitch=raw_pitch,
        raw_roll=raw_roll,
        is_bad=result.is_bad,
        timestamp=sample.timestamp,
    )

    timer, event = alert_timer.advance(session.timer, result.is_bad, sample.timestamp, session.alert_delay)
    effects.extend(_timer_effects(event, result.pitch))

    log_gate, accepted = session.log_gate.offer(sample.timestamp)
    if accepted:
        effects.append(EmitLog(PostureLogEntry.from_reading(
            timestamp=sample.timestamp,
            pitch=raw_pitch,
            roll=raw_roll,
            is_good=not result.is_bad,
        )))

    return replace(session, timer=timer, log_gate=log_gate, last_posture=posture), effects


def signal_lost(session: PostureSession, reason: str = "") -> Transition:
    """Sensor stream failed: stop classifying and clear any alert."""
    session, effects = _reset_timer(replace(session, has_signal=False, last_posture=None))
    return session, effects + [SignalLost(reason)]


# ----------------------------------------------------------------------
# User commands
# ----------------------------------------------------------------------

def start_calibration(session: PostureSession) -> Transition:
    """Open a fresh calibration session seeded with the latest live sample."""
    last_pitch = last_roll = None
    if session.last_sample is not None:
        last_pitch = session.last_sample.orientation.pitch_degrees
        last_roll = session.last_sample.orientation.roll_degrees

    calibration = CalibrationSession.start(last_pitch, last_roll, session.calibration_config)
    return replace(session, calibration=calibration), [CalibrationProgress(0.0)]


def cancel_calibration(session: PostureSession) -> Transition:
    return replace(session, calibration=None), []


def commit_calibration(session: PostureSession) -> Transition:
    """
    Set the current pose as neutral.

    Rejected (session returned unchanged) unless calibration is complete and
    a live sample is available to use as the reference.
    """
    if session.calibration is None or not session.calibration.is_complete:
        return session, []
    if session.last_sample is None:
        return session, []

    thresholds = session.calibration.derive_thresholds()
    session = replace(
        session,
        reference=session.last_sample.orientation,
        thresholds=thresholds,
        calibration=None,
    )
    return _reset_timer(session)


def enable_posture_checking(session: PostureSession) -> Transition:
    return _reset_timer(replace(session, checking_enabled=True))


def disable_posture_checking(session: PostureSession) -> Transition:
    return _reset_timer(replace(session, checking_enabled=False, last_posture=None))


def set_alert_delay(session: PostureSession, seconds: float) -> Transition:
    if seconds <= 0:
        raise ValueError(f"Alert delay must be positive, got {seconds}")
    return replace(session, alert_delay=float(seconds)), []
