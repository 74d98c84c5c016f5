"""Tests for the free-movement calibration session."""

from __future__ import annotations

import math

import pytest

from airposture.core.calibration.calibration_session import (
    CalibrationSession,
    CalibrationState,
    calibration_state,
)
from airposture.utils.config_sections import CalibrationConfig


def feed(session: CalibrationSession, samples):
    for pitch, roll in samples:
        session = session.advance(pitch, roll)
    return session


def swings(count: int, amplitude: float = 10.0):
    """Alternate pitch between amplitude and 0, each step moving ``amplitude`` degrees."""
    return [(amplitude if i % 2 == 0 else 0.0, 0.0) for i in range(count)]


def test_new_session_is_collecting_with_empty_extents():
    session = CalibrationSession.start(0.0, 0.0)

    assert session.state is CalibrationState.COLLECTING
    assert session.accumulated_movement == 0.0
    assert session.min_pitch == math.inf
    assert session.max_pitch == -math.inf
    assert calibration_state(None) is CalibrationState.IDLE


def test_exactly_full_budget_completes_calibration():
    session = feed(CalibrationSession.start(0.0, 0.0), swings(15))

    assert session.accumulated_movement == pytest.approx(150.0)
    assert session.progress_percentage == 100.0
    assert session.is_complete
    assert session.state is CalibrationState.COMPLETE


def test_budget_reached_within_round_off_completes():
    session = feed(CalibrationSession.start(0.0, 0.0), swings(14) + [(10.0 - 1e-12, 0.0)])

    assert session.is_complete
    assert session.accumulated_movement == 150.0
    assert session.progress_percentage == 100.0


def test_non_finite_angles_leave_session_unchanged():
    session = feed(CalibrationSession.start(0.0, 0.0), swings(3))

    assert session.advance(math.nan, 0.0) is session
    assert session.advance(0.0, math.inf) is session


def test_just_under_budget_is_not_complete():
    samples = swings(14) + [(9.9, 0.0)]  # 14 * 10 + 9.9

    session = feed(CalibrationSession.start(0.0, 0.0), samples)

    assert session.accumulated_movement == pytest.approx(149.9)
    assert not session.is_complete
    assert session.progress_percentage < 100.0


def test_deltas_within_noise_floor_are_ignored():
    session = CalibrationSession.start(0.0, 0.0)

    session = feed(session, [(0.3, 0.2), (0.5, 0.2), (0.5, 0.0)])

    assert session.accumulated_movement == 0.0
    assert session.min_pitch == math.inf
    assert (session.last_pitch, session.last_roll) == (0.5, 0.0)


def test_movement_uses_l1_distance_of_pitch_and_roll():
    session = CalibrationSession.start(0.0, 0.0)

    session = session.advance(3.0, -4.0)

    assert session.accumulated_movement == pytest.approx(7.0)
    assert (session.min_roll, session.max_roll) == (-4.0, -4.0)


def test_progress_is_clamped_and_extents_freeze_after_completion():
    session = feed(CalibrationSession.start(0.0, 0.0), swings(14) + [(100.0, 0.0)])
    assert session.accumulated_movement == pytest.approx(150.0)
    assert session.max_pitch == 100.0

    session = feed(session, [(-50.0, 40.0), (80.0, -40.0)])

    assert session.progress_percentage == 100.0
    assert session.min_pitch == 0.0
    assert session.max_pitch == 100.0
    assert session.max_roll == 0.0


def test_first_sample_only_seeds_when_no_live_value_known():
    session = CalibrationSession.start()

    session = session.advance(20.0, 10.0)

    assert session.accumulated_movement == 0.0
    assert (session.last_pitch, session.last_roll) == (20.0, 10.0)


def test_derived_thresholds_use_explored_range():
    session = CalibrationSession(min_pitch=-5.0, max_pitch=35.0, min_roll=-15.0, max_roll=15.0)

    thresholds = session.derive_thresholds()

    assert thresholds.forward_pitch_limit == pytest.approx(-16.0)
    assert thresholds.side_roll_limit == pytest.approx(12.0)


def test_degenerate_ranges_fall_back_to_fixed_limits():
    session = CalibrationSession(min_pitch=-2.0, max_pitch=3.0, min_roll=-5.0, max_roll=5.0)

    thresholds = session.derive_thresholds()

    assert thresholds.forward_pitch_limit == -20.0
    assert thresholds.side_roll_limit == 20.0


def test_custom_config_changes_budget():
    config = CalibrationConfig(total_movement=20.0)

    session = feed(CalibrationSession.start(0.0, 0.0, config), swings(2))

    assert session.is_complete
