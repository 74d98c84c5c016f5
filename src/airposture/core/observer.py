#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Handles only the headphone motion stream: receives absolute attitude samples
from a sensor source and forwards them to the posture coordinator.
"""

import logging
import threading
import time
from collections import deque
from typing import Any, Dict, Optional

import numpy as np

from airposture.core.imu.attitude import Orientation
from airposture.core.posture.session import MotionSample

log = logging.getLogger("MotionObserver")
sensor_log = logging.getLogger("airposture.session.sensor")


class MotionObserver:
    """
    Observer dedicated to the headphone motion stream.

    Sources (MockMotionObserver, MotionReceiver) call ``on_motion_received``
    for every attitude update and ``on_motion_error`` when the stream fails.
    """

    def __init__(self, coordinator=None, rate_window: int = 100):
        """
        Args:
            coordinator: Consumer with ``process_sample`` and ``on_signal_lost``
            rate_window: Number of recent timestamps used for the rate estimate
        """
        self.coordinator = coordinator

        self._lock = threading.Lock()
        self.latest_sample: Optional[MotionSample] = None
        self.sample_count = 0
        self.dropped_count = 0
        self.error_count = 0
        self.last_error: Optional[str] = None
        self._timestamps = deque(maxlen=rate_window)
        self.start_time = time.time()

        log.info("MotionObserver initialized")

    def on_motion_received(self, pitch: float, roll: float, timestamp: float, yaw: float = 0.0) -> None:
        """
        Sensor callback for a new attitude update.

        Args:
            pitch: Absolute pitch in radians (negative = head tilted down)
            roll: Absolute roll in radians
            timestamp: Sample time in epoch seconds
            yaw: Absolute yaw in radians (unused by classification)
        """
        sample = MotionSample(Orientation(pitch=pitch, roll=roll, yaw=yaw), timestamp)
        if not sample.is_finite:
            with self._lock:
                self.dropped_count += 1
            sensor_log.warning("Ignoring non-finite motion sample (pitch=%s, roll=%s)", pitch, roll)
            return

        with self._lock:
            self.latest_sample = sample
            self.sample_count += 1
            self._timestamps.append(timestamp)
            count = self.sample_count

        if count % 500 == 0:
            sensor_log.debug("Motion: %d samples (%.1f Hz)", count, self.sample_rate())

        if self.coordinator is not None:
            self.coordinator.process_sample(sample)

    def on_motion_error(self, reason: str) -> None:
        """Sensor callback for a failed or unavailable stream."""
        with self._lock:
            self.error_count += 1
            self.last_error = reason

        log.error("Motion stream failure: %s", reason)
        if self.coordinator is not None:
            self.coordinator.on_signal_lost(reason)

    def sample_rate(self) -> float:
        """Samples per second over the recent window."""
        with self._lock:
            stamps = np.asarray(self._timestamps, dtype=float)

        if stamps.size < 2:
            return 0.0
        intervals = np.diff(stamps)
        intervals = intervals[intervals > 0]
        if intervals.size == 0:
            return 0.0
        return float(1.0 / np.mean(intervals))

    # ============================================================================
    # PUBLIC API - Thread-safe access methods
    # ============================================================================

    def get_latest_orientation(self) -> Optional[Orientation]:
        with self._lock:
            return self.latest_sample.orientation if self.latest_sample else None

    def get_stats(self) -> Dict[str, Any]:
        uptime = time.time() - self.start_time
        with self._lock:
            count = self.sample_count
            dropped = self.dropped_count
            errors = self.error_count
            last_error = self.last_error

        return {
            'uptime_seconds': uptime,
            'samples': count,
            'dropped': dropped,
            'sample_rate': self.sample_rate(),
            'errors': errors,
            'last_error': last_error,
        }

    def print_stats(self) -> None:
        stats = self.get_stats()
        print(f"\n[OBSERVER STATS] Uptime: {stats['uptime_seconds'] / 60.0:.1f} min")
        print(f"  Motion samples: {stats['samples']} ({stats['sample_rate']:.1f} Hz)")
        if stats['errors']:
            print(f"  Stream errors: {stats['errors']} (last: {stats['last_error']})")
