#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Console Presenter - terminal UI layer

Renders what the posture coordinator publishes:
- Live pitch/roll (throttled, the sensor runs at ~50 Hz)
- Calibration progress
- Bad posture alert window (show/dismiss)
- "No signal" when the headphone stream is unavailable
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from airposture.core.posture.coordinator import PostureListener


@dataclass
class UIState:
    """Terminal UI state"""
    live_pitch: float = 0.0
    live_roll: float = 0.0
    calibration_percent: Optional[float] = None
    alert_visible: bool = False
    alert_pitch: Optional[int] = None
    has_signal: bool = False
    show_live: bool = True


class ConsolePresenter(PostureListener):
    """
    Terminal output for the posture monitor.

    Callbacks may arrive from the coordinator's dispatch worker, so state is
    guarded by a lock and every line is written in a single call.
    """

    def __init__(
        self,
        live_interval: float = 0.5,
        show_live: bool = True,
        write: Callable[[str], None] = print,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            live_interval: Minimum seconds between live angle lines
            show_live: Print live angles at all
            write: Output function (one call per line)
            clock: Time source for throttling
        """
        self.ui_state = UIState(show_live=show_live)
        self.live_interval = live_interval
        self._write = write
        self._clock = clock
        self._last_live = float("-inf")
        self._last_progress_step = -1
        self._ui_lock = threading.Lock()

    def on_live_orientation(self, pitch: float, roll: float) -> None:
        with self._ui_lock:
            self.ui_state.live_pitch = pitch
            self.ui_state.live_roll = roll
            self.ui_state.has_signal = True

            if not self.ui_state.show_live:
                return
            now = self._clock()
            if now - self._last_live < self.live_interval:
                return
            self._last_live = now
        self._write(f"Pitch: {pitch:6.1f}°  Roll: {roll:6.1f}°")

    def on_calibration_progress(self, percent: float) -> None:
        with self._ui_lock:
            self.ui_state.calibration_percent = percent
            # One line per 10% step
            step = int(percent // 10)
            if step == self._last_progress_step:
                return
            self._last_progress_step = step

        if percent >= 100.0:
            self._write("Calibration: 100% - look straight ahead and press 's' to set neutral")
        else:
            bar = "#" * step + "-" * (10 - step)
            self._write(f"Calibration: [{bar}] {percent:3.0f}% - keep moving your head")

    def on_alert_show(self, pitch: int) -> None:
        with self._ui_lock:
            self.ui_state.alert_visible = True
            self.ui_state.alert_pitch = pitch
        self._write(f"\a⚠️  Bad Posture Detected! Sit up straight! ({pitch}°)")

    def on_alert_dismiss(self) -> None:
        with self._ui_lock:
            was_visible = self.ui_state.alert_visible
            self.ui_state.alert_visible = False
            self.ui_state.alert_pitch = None
        if was_visible:
            self._write("✅ Posture corrected")

    def on_no_signal(self) -> None:
        with self._ui_lock:
            self.ui_state.has_signal = False
            self.ui_state.alert_visible = False
        self._write("Headphone motion not available - put on your AirPods")

    def reset_calibration_display(self) -> None:
        """Forget progress so a new calibration starts printing from 0%."""
        with self._ui_lock:
            self.ui_state.calibration_percent = None
            self._last_progress_step = -1
