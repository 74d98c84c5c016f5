"""
Posture Coordinator - AirPosture monitor

Owns the PostureSession and is the single entry point for both the sensor
callback and user commands. Every input runs through the session reducer
under one lock, so a sample is always processed atomically with respect to
calibration commands. The returned effects are handed to the collaborators:

- listener: UI output (live angles, calibration progress, alert window)
- log_sink: posture log intake (``append``), expected to be non-blocking

Listener calls can be dispatched on an executor so a slow UI never stalls the
sensor stream; with a single worker the effect order is preserved.

Pipeline Flow:
    MotionSample → relative attitude → classify → alert timer → listener
                                                 ↘ log gate → log sink
"""

import logging
import threading
from concurrent.futures import Executor
from typing import Callable, List, Optional

from airposture.core.imu.attitude import Orientation
from airposture.core.posture import session as reducer
from airposture.core.posture.alert_timer import AlertPhase
from airposture.core.posture.session import (
    CalibrationProgress,
    DismissAlert,
    Effect,
    EmitLog,
    MotionSample,
    PostureSession,
    PublishLive,
    ShowAlert,
    SignalLost,
)

log = logging.getLogger("PostureCoordinator")
calibration_log = logging.getLogger("airposture.session.calibration")
checks_log = logging.getLogger("airposture.session.checks")
alerts_log = logging.getLogger("airposture.session.alerts")
sensor_log = logging.getLogger("airposture.session.sensor")


class PostureListener:
    """UI output collaborator. Override the callbacks you need."""

    def on_live_orientation(self, pitch: float, roll: float) -> None:
        pass

    def on_calibration_progress(self, percent: float) -> None:
        pass

    def on_alert_show(self, pitch: int) -> None:
        pass

    def on_alert_dismiss(self) -> None:
        pass

    def on_no_signal(self) -> None:
        pass


class PostureCoordinator:
    """
    Serializes sensor samples and user commands over one PostureSession.

    Attributes:
        listener: UI output collaborator
        log_sink: Object with ``append(entry)``, e.g. AsyncPostureLogger
        executor: Optional executor for listener calls (fire-and-forget)
        samples_processed: Number of sensor samples consumed
        samples_dropped: Non-finite samples rejected before the reducer
    """

    def __init__(
        self,
        session: Optional[PostureSession] = None,
        listener: Optional[PostureListener] = None,
        log_sink=None,
        executor: Optional[Executor] = None,
    ):
        """
        Initialize coordinator with injected dependencies.

        Args:
            session: Initial session (absolute mode with defaults if None)
            listener: UI output collaborator
            log_sink: Posture log intake
            executor: Executor for listener dispatch; listeners run inline if None
        """
        self._lock = threading.Lock()
        self._session = session or reducer.new_session()
        self.listener = listener or PostureListener()
        self.log_sink = log_sink
        self.executor = executor

        self.samples_processed = 0
        self.samples_dropped = 0
        self.alerts_shown = 0

    @property
    def session(self) -> PostureSession:
        with self._lock:
            return self._session

    # ------------------------------------------------------------------
    # Sensor intake
    # ------------------------------------------------------------------

    def process_sample(self, sample: MotionSample) -> List[Effect]:
        if not sample.is_finite:
            with self._lock:
                self.samples_dropped += 1
            sensor_log.warning("Dropped non-finite motion sample at %s", sample.timestamp)
            return []

        with self._lock:
            previous = self._session
            self._session, effects = reducer.process_sample(previous, sample)
            self.samples_processed += 1
            if not previous.has_signal:
                sensor_log.info("Motion data available")
            self._log_posture_transition(previous, self._session)
            self._dispatch(effects)
        return effects

    def on_motion_received(self, pitch: float, roll: float, timestamp: float, yaw: float = 0.0) -> List[Effect]:
        """Sensor callback: absolute attitude in radians."""
        return self.process_sample(MotionSample(Orientation(pitch=pitch, roll=roll, yaw=yaw), timestamp))

    def on_signal_lost(self, reason: str = "") -> List[Effect]:
        """Sensor callback: motion updates stopped or failed."""
        with self._lock:
            self._session, effects = reducer.signal_lost(self._session, reason)
            sensor_log.warning("Headphone motion not available: %s", reason or "unknown")
            self._dispatch(effects)
        return effects

    # ------------------------------------------------------------------
    # User commands
    # ------------------------------------------------------------------

    def start_calibration(self) -> None:
        with self._lock:
            self._session, effects = reducer.start_calibration(self._session)
            calibration_log.info("Calibration started")
            self._dispatch(effects)

    def cancel_calibration(self) -> None:
        with self._lock:
            had_session = self._session.calibration is not None
            self._session, effects = reducer.cancel_calibration(self._session)
            if had_session:
                calibration_log.info("Calibration cancelled")
            self._dispatch(effects)

    def commit_calibration(self) -> bool:
        """
        Use the current pose as neutral reference.

        Returns:
            True if a new reference was set, False if the request was rejected
        """
        with self._lock:
            previous = self._session
            self._session, effects = reducer.commit_calibration(previous)
            committed = self._session is not previous

            if committed:
                thresholds = self._session.thresholds
                calibration_log.info(
                    "New reference attitude set! limits: pitch < %.1f, |roll| > %.1f",
                    thresholds.forward_pitch_limit, thresholds.side_roll_limit,
                )
            elif previous.calibration is None:
                calibration_log.warning("Cannot calibrate, calibration not started")
            elif previous.last_sample is None:
                calibration_log.warning("Cannot calibrate, no motion data")
            else:
                calibration_log.warning(
                    "Cannot calibrate yet, movement at %.0f%%",
                    previous.calibration.progress_percentage,
                )
            self._dispatch(effects)
        return committed

    def enable_posture_checking(self) -> None:
        with self._lock:
            self._session, effects = reducer.enable_posture_checking(self._session)
            checks_log.info("Posture checking ENABLED")
            if not self._session.is_calibrated:
                checks_log.warning("Tracking started without calibration. Using absolute angles.")
            self._dispatch(effects)

    def disable_posture_checking(self) -> None:
        with self._lock:
            self._session, effects = reducer.disable_posture_checking(self._session)
            checks_log.info("Posture checking DISABLED")
            self._dispatch(effects)

    def set_alert_delay(self, seconds: float) -> None:
        with self._lock:
            self._session, effects = reducer.set_alert_delay(self._session, seconds)
            alerts_log.info("Alert delay set to %.0fs", seconds)
            self._dispatch(effects)

    # ------------------------------------------------------------------
    # Effects
    # ------------------------------------------------------------------

    def _dispatch(self, effects: List[Effect]) -> None:
        for effect in effects:
            if isinstance(effect, EmitLog):
                self._append_log(effect)
                continue

            call = self._listener_call(effect)
            if call is None:
                continue
            if self.executor is not None:
                self.executor.submit(self._safe_call, call)
            else:
                self._safe_call(call)

    def _listener_call(self, effect: Effect) -> Optional[Callable[[], None]]:
        listener = self.listener
        if isinstance(effect, PublishLive):
            return lambda: listener.on_live_orientation(effect.pitch, effect.roll)
        if isinstance(effect, CalibrationProgress):
            return lambda: listener.on_calibration_progress(effect.percent)
        if isinstance(effect, ShowAlert):
            self.alerts_shown += 1
            alerts_log.warning("Bad posture alert shown (pitch %d°)", effect.pitch)
            return lambda: listener.on_alert_show(effect.pitch)
        if isinstance(effect, DismissAlert):
            alerts_log.info("Bad posture alert dismissed")
            return listener.on_alert_dismiss
        if isinstance(effect, SignalLost):
            return listener.on_no_signal
        return None

    def _append_log(self, effect: EmitLog) -> None:
        if self.log_sink is None:
            return
        try:
            self.log_sink.append(effect.entry)
        except Exception as e:
            log.error("Posture log intake failed: %s", e)

    @staticmethod
    def _safe_call(call: Callable[[], None]) -> None:
        try:
            call()
        except Exception:
            log.exception("Listener callback failed")

    @staticmethod
    def _log_posture_transition(previous: PostureSession, current: PostureSession) -> None:
        posture = current.last_posture
        if posture is None:
            return

        before, after = previous.timer.phase, current.timer.phase
        if before is AlertPhase.IDLE and after is AlertPhase.ACCUMULATING:
            checks_log.info("Bad posture detected, starting timer...")
        elif before is not AlertPhase.IDLE and after is AlertPhase.IDLE:
            checks_log.info("Posture corrected!")
        elif after is AlertPhase.ACCUMULATING:
            checks_log.debug(
                "Bad posture (%ds) - Relative Pitch: %d°",
                int(current.timer.elapsed(posture.timestamp)), int(posture.relative_pitch),
            )
        else:
            checks_log.debug(
                "Posture %s - Relative Pitch: %d°, Relative Roll: %d°",
                "bad" if posture.is_bad else "good", int(posture.relative_pitch), int(posture.relative_roll),
            )
