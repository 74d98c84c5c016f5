#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Mock motion source for development without headphones.

This module provides a drop-in replacement for the real headphone motion
stream that enables development and testing without hardware by providing:
1. Synthetic head motion (upright, free movement, slouch, side tilt)
2. Replay of a recorded CSV session in loop
3. A static pose with small random jitter

Samples are pushed into a MotionObserver exactly like a real sensor source,
with absolute pitch/roll/yaw in radians.

Operating modes:
- 'synthetic': Scripted 40 s cycle of typical head poses
- 'replay': Replays ``timestamp,pitch,roll[,yaw]`` rows (degrees) in loop
- 'static': Fixed pose with jitter, useful for stability checks

Usage:
    # Synthetic mode (default)
    source = MockMotionObserver(observer, mode='synthetic', fps=50)

    # Replay mode
    source = MockMotionObserver(observer, mode='replay', replay_path='data/session.csv')

    # Static mode
    source = MockMotionObserver(observer, mode='static', static_pose=(-30.0, 0.0))
"""

import logging
import threading
import time
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import numpy as np

log = logging.getLogger("MockMotionObserver")

SYNTHETIC_CYCLE_SECONDS = 40.0


def synthetic_attitude(elapsed: float) -> Tuple[float, float]:
    """
    Scripted head pose (pitch, roll) in degrees for a point in the cycle.

    0-10 s upright with slight nodding, 10-20 s free movement, 20-30 s
    slouching forward, 30-40 s tilted to the side.
    """
    phase = elapsed % SYNTHETIC_CYCLE_SECONDS
    if phase < 10.0:
        pitch = 3.0 * np.sin(2 * np.pi * 0.2 * phase)
        roll = 2.0 * np.sin(2 * np.pi * 0.1 * phase)
    elif phase < 20.0:
        pitch = 25.0 * np.sin(2 * np.pi * 0.25 * phase)
        roll = 20.0 * np.sin(2 * np.pi * 0.15 * phase)
    elif phase < 30.0:
        pitch = -35.0 + 2.0 * np.sin(2 * np.pi * 0.3 * phase)
        roll = 1.5 * np.sin(2 * np.pi * 0.2 * phase)
    else:
        pitch = -4.0 + 1.0 * np.sin(2 * np.pi * 0.3 * phase)
        roll = 28.0 + 2.0 * np.sin(2 * np.pi * 0.2 * phase)
    return float(pitch), float(roll)


def load_replay(path) -> np.ndarray:
    """
    Load a recorded session as an (N, 4) array: timestamp, pitch, roll, yaw.

    Angles are in degrees. A header row and ``#`` comments are ignored; a
    missing yaw column is filled with zeros.
    """
    data = np.genfromtxt(path, delimiter=",", comments="#", dtype=float)
    data = np.atleast_2d(data)
    if data.size == 0 or data.shape[1] < 3:
        raise ValueError(f"Replay file needs timestamp,pitch,roll columns: {path}")

    data = data[~np.isnan(data[:, :3]).any(axis=1)]
    if len(data) == 0:
        raise ValueError(f"Replay file has no samples: {path}")

    if data.shape[1] == 3:
        data = np.column_stack([data, np.zeros(len(data))])
    data = data[:, :4]
    data[:, 3] = np.nan_to_num(data[:, 3])
    return data


class MockMotionObserver:
    """
    Mock motion source for development without physical hardware.

    Operating modes:
    - 'synthetic': Scripted head poses
    - 'replay': Replays a CSV recording in loop
    - 'static': Static pose with small random jitter

    See module docstring for usage examples.
    """

    def __init__(
        self,
        observer,
        mode: str = 'synthetic',
        fps: int = 50,
        replay_path: Optional[str] = None,
        static_pose: Tuple[float, float] = (0.0, 0.0),
        noise_deg: float = 0.2,
        seed: Optional[int] = None,
    ) -> None:
        """
        Initialize the MockMotionObserver.

        Args:
            observer: Target with ``on_motion_received(pitch, roll, timestamp, yaw)``
            mode: 'synthetic', 'replay', or 'static'
            fps: Samples per second to emit
            replay_path: CSV file for 'replay' mode
            static_pose: (pitch, roll) in degrees for 'static' mode
            noise_deg: Standard deviation of jitter added to generated poses
            seed: Random seed for reproducible jitter
        """
        if fps <= 0:
            raise ValueError(f"fps must be positive, got {fps}")

        self.observer = observer
        self.mode = mode
        self.fps = fps
        self.replay_path = replay_path
        self.static_pose = static_pose
        self.noise_deg = noise_deg
        self._rng = np.random.default_rng(seed)

        # State
        self.running = False
        self.sample_count = 0
        self.start_time = None
        self._generator_thread = None
        self._replay_index = 0
        self._replay_offset = 0.0

        self._init_mode()

        log.info("Initialized in '%s' mode @ %d Hz", mode, fps)

    def _init_mode(self) -> None:
        """Initialize resources based on selected mode."""
        if self.mode == 'replay':
            if not self.replay_path or not Path(self.replay_path).exists():
                raise ValueError(f"Replay file not found: {self.replay_path}")
            self.replay_data = load_replay(self.replay_path)
            log.info("Loaded replay: %s (%d samples)", self.replay_path, len(self.replay_data))

        elif self.mode in ('synthetic', 'static'):
            pass
        else:
            raise ValueError(f"Unknown mode: {self.mode}")

    def start(self) -> None:
        """Start sample generation."""
        if self.running:
            log.info("Already running")
            return

        self.running = True
        self.start_time = time.time()
        self.sample_count = 0

        self._generator_thread = threading.Thread(
            target=self._generate_samples,
            daemon=True,
            name="MockMotionSource",
        )
        self._generator_thread.start()

        log.info("Started motion generation")

    def stop(self) -> None:
        """Stop sample generation."""
        self.running = False
        if self._generator_thread:
            self._generator_thread.join(timeout=2.0)

        log.info("Stopped (generated %d samples)", self.sample_count)

    def _generate_samples(self) -> None:
        """Thread loop that emits samples based on mode."""
        interval = 1.0 / self.fps

        while self.running:
            loop_start = time.time()

            pitch, roll, yaw, timestamp = self.next_sample(loop_start)
            try:
                self.observer.on_motion_received(
                    float(np.radians(pitch)),
                    float(np.radians(roll)),
                    timestamp,
                    float(np.radians(yaw)),
                )
            except Exception:
                log.exception("Motion consumer failed")
            self.sample_count += 1

            elapsed = time.time() - loop_start
            sleep_time = max(0, interval - elapsed)
            if sleep_time > 0:
                time.sleep(sleep_time)

    def next_sample(self, now: float) -> Tuple[float, float, float, float]:
        """
        Produce the next (pitch, roll, yaw, timestamp), angles in degrees.

        Args:
            now: Current wall-clock time in epoch seconds
        """
        if self.mode == 'replay':
            return self._next_replay_sample()

        if self.mode == 'synthetic':
            pitch, roll = synthetic_attitude(now - (self.start_time or now))
        else:
            pitch, roll = self.static_pose

        if self.noise_deg > 0:
            jitter = self._rng.normal(0.0, self.noise_deg, size=2)
            pitch += float(jitter[0])
            roll += float(jitter[1])
        return pitch, roll, 0.0, now

    def _next_replay_sample(self) -> Tuple[float, float, float, float]:
        """Next recorded row, with timestamps shifted so the loop stays monotonic."""
        data = self.replay_data
        if self._replay_index >= len(data):
            span = data[-1, 0] - data[0, 0]
            self._replay_offset += span + 1.0 / self.fps
            self._replay_index = 0
            log.info("Replay loop restarted")

        if self.start_time is None:
            self.start_time = time.time()

        row = data[self._replay_index]
        self._replay_index += 1
        timestamp = self.start_time + self._replay_offset + (row[0] - data[0, 0])
        return float(row[1]), float(row[2]), float(row[3]), float(timestamp)

    def get_stats(self) -> Dict[str, Any]:
        """Return operation statistics."""
        elapsed = time.time() - self.start_time if self.start_time else 0
        actual_rate = self.sample_count / elapsed if elapsed > 0 else 0

        return {
            'mode': self.mode,
            'samples_generated': self.sample_count,
            'elapsed_time': elapsed,
            'target_fps': self.fps,
            'actual_rate': actual_rate,
            'running': self.running,
        }

    def __enter__(self):
        """Context manager support."""
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager cleanup."""
        self.stop()
        return False
