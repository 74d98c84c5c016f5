"""Tests for the terminal presenter."""

from __future__ import annotations

import pytest

from airposture.presentation.console_presenter import ConsolePresenter


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def output():
    return []


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def presenter(output, clock):
    return ConsolePresenter(live_interval=0.5, write=output.append, clock=clock)


def test_live_angles_are_throttled(presenter, output, clock):
    for i in range(10):
        clock.now = i * 0.1
        presenter.on_live_orientation(-10.0 - i, 2.0)

    assert len(output) == 2  # t=0.0 and t=0.5
    assert "-10.0" in output[0]
    assert presenter.ui_state.live_pitch == -19.0


def test_quiet_mode_tracks_state_without_output(output, clock):
    presenter = ConsolePresenter(show_live=False, write=output.append, clock=clock)

    presenter.on_live_orientation(-10.0, 2.0)

    assert output == []
    assert presenter.ui_state.has_signal


def test_calibration_progress_prints_per_step(presenter, output):
    for percent in (0.0, 3.0, 9.0, 12.0, 55.0, 100.0, 100.0):
        presenter.on_calibration_progress(percent)

    assert len(output) == 4  # 0%, 10%, 50%, 100%
    assert "100%" in output[-1]


def test_reset_calibration_display_prints_again(presenter, output):
    presenter.on_calibration_progress(100.0)
    presenter.reset_calibration_display()
    presenter.on_calibration_progress(100.0)

    assert len(output) == 2


def test_alert_show_and_dismiss(presenter, output):
    presenter.on_alert_show(32)
    assert presenter.ui_state.alert_visible
    assert "32°" in output[-1]

    presenter.on_alert_dismiss()
    assert not presenter.ui_state.alert_visible
    assert "corrected" in output[-1]


def test_dismiss_without_alert_is_silent(presenter, output):
    presenter.on_alert_dismiss()
    assert output == []


def test_no_signal(presenter, output):
    presenter.on_live_orientation(0.0, 0.0)
    presenter.on_no_signal()

    assert not presenter.ui_state.has_signal
    assert "not available" in output[-1]
