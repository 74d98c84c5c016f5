"""Unit tests for the headphone MotionObserver."""

from __future__ import annotations

import math
from unittest.mock import Mock

import pytest

from airposture.core.observer import MotionObserver

T0 = 1_700_000_000.0


@pytest.fixture()
def coordinator():
    return Mock()


def test_on_motion_received_forwards_sample(coordinator):
    observer = MotionObserver(coordinator)

    observer.on_motion_received(math.radians(-20.0), math.radians(5.0), T0, yaw=0.5)

    sample = coordinator.process_sample.call_args.args[0]
    assert sample.timestamp == T0
    assert sample.orientation.pitch_degrees == pytest.approx(-20.0)
    assert sample.orientation.yaw == 0.5
    assert observer.sample_count == 1
    assert observer.get_latest_orientation() == sample.orientation


def test_non_finite_sample_is_not_forwarded(coordinator):
    observer = MotionObserver(coordinator)

    observer.on_motion_received(math.nan, 0.0, T0)
    observer.on_motion_received(0.0, math.inf, T0 + 0.02)

    coordinator.process_sample.assert_not_called()
    assert observer.sample_count == 0
    assert observer.get_stats()["dropped"] == 2
    assert observer.get_latest_orientation() is None


def test_on_motion_error_reports_signal_lost(coordinator):
    observer = MotionObserver(coordinator)

    observer.on_motion_error("motion permission denied")

    coordinator.on_signal_lost.assert_called_once_with("motion permission denied")
    assert observer.get_stats()["errors"] == 1
    assert observer.get_stats()["last_error"] == "motion permission denied"


def test_sample_rate_from_timestamps():
    observer = MotionObserver()
    for i in range(51):
        observer.on_motion_received(0.0, 0.0, T0 + i * 0.02)

    assert observer.sample_rate() == pytest.approx(50.0, rel=1e-3)


def test_sample_rate_needs_two_samples():
    observer = MotionObserver()
    assert observer.sample_rate() == 0.0

    observer.on_motion_received(0.0, 0.0, T0)
    assert observer.sample_rate() == 0.0
    assert observer.get_latest_orientation() is not None
