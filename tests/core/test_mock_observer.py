"""Tests for the mock headphone motion source."""

from __future__ import annotations

import time
from unittest.mock import Mock

import numpy as np
import pytest

from airposture.core.mock_observer import MockMotionObserver, load_replay, synthetic_attitude


def test_synthetic_profile_covers_good_and_bad_poses():
    upright = synthetic_attitude(5.0)
    slouch = synthetic_attitude(25.0)
    tilted = synthetic_attitude(35.0)

    assert abs(upright[0]) < 5.0
    assert slouch[0] < -25.0
    assert tilted[1] > 20.0
    assert synthetic_attitude(65.0) == synthetic_attitude(25.0)


def test_static_mode_jitters_around_pose():
    source = MockMotionObserver(Mock(), mode="static", static_pose=(-30.0, 5.0), noise_deg=0.1, seed=7)

    pitches = [source.next_sample(100.0 + i)[0] for i in range(200)]

    assert np.mean(pitches) == pytest.approx(-30.0, abs=0.05)
    assert np.std(pitches) > 0.0


def test_static_mode_without_noise_is_exact():
    source = MockMotionObserver(Mock(), mode="static", static_pose=(-30.0, 5.0), noise_deg=0.0)

    assert source.next_sample(42.0) == (-30.0, 5.0, 0.0, 42.0)


def test_load_replay_skips_header_and_fills_yaw(tmp_path):
    path = tmp_path / "session.csv"
    path.write_text("timestamp,pitch,roll\n0.0,-10.0,1.0\n0.02,-11.0,1.5\n")

    data = load_replay(path)

    assert data.shape == (2, 4)
    np.testing.assert_allclose(data[1], [0.02, -11.0, 1.5, 0.0])


def test_load_replay_rejects_missing_columns(tmp_path):
    path = tmp_path / "bad.csv"
    path.write_text("0.0,1.0\n0.1,2.0\n")

    with pytest.raises(ValueError):
        load_replay(path)


def test_replay_loops_with_monotonic_timestamps(tmp_path):
    path = tmp_path / "session.csv"
    path.write_text("timestamp,pitch,roll,yaw\n10.0,-10.0,1.0,5.0\n10.5,-20.0,2.0,6.0\n")
    source = MockMotionObserver(Mock(), mode="replay", replay_path=str(path), fps=10)
    source.start_time = 1000.0

    samples = [source.next_sample(0.0) for _ in range(4)]

    assert [s[0] for s in samples] == [-10.0, -20.0, -10.0, -20.0]
    assert samples[0][2] == 5.0
    timestamps = [s[3] for s in samples]
    assert timestamps == pytest.approx([1000.0, 1000.5, 1000.6, 1001.1])


def test_replay_requires_existing_file(tmp_path):
    with pytest.raises(ValueError):
        MockMotionObserver(Mock(), mode="replay", replay_path=str(tmp_path / "missing.csv"))


def test_unknown_mode_rejected():
    with pytest.raises(ValueError):
        MockMotionObserver(Mock(), mode="video")


def test_thread_pushes_radians_into_observer():
    observer = Mock()
    source = MockMotionObserver(observer, mode="static", static_pose=(-30.0, 0.0), noise_deg=0.0, fps=200)

    with source:
        deadline = time.time() + 2.0
        while observer.on_motion_received.call_count < 3 and time.time() < deadline:
            time.sleep(0.01)

    assert observer.on_motion_received.call_count >= 3
    pitch, roll, _timestamp, yaw = observer.on_motion_received.call_args.args
    assert pitch == pytest.approx(np.radians(-30.0))
    assert roll == 0.0
    assert yaw == 0.0
    assert not source.running
