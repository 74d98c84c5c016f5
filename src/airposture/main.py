#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
AirPosture monitor - head posture alerts from headphone motion

Architecture:
- MotionObserver: Only headphone motion intake (mock, replay or UDP source)
- PostureCoordinator: Only posture pipeline (calibration + classification + alerts)
- ConsolePresenter: Only UI output
- AsyncPostureLogger: Only posture history (1 Hz readings, periodic upload)

MOCK MODE: supports development without headphones using MockMotionObserver
"""

import argparse
import logging
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from airposture.communication.motion_receiver import MotionReceiver
from airposture.core.mock_observer import MockMotionObserver
from airposture.core.observer import MotionObserver
from airposture.core.posture.coordinator import PostureCoordinator
from airposture.core.posture.session import new_session
from airposture.core.telemetry.loggers.posture_logger import AsyncPostureLogger, JsonFileStore
from airposture.core.telemetry.loggers.session_logger import get_session_logger
from airposture.presentation.console_presenter import ConsolePresenter
from airposture.utils.config import Config, configure_logging
from airposture.utils.config_sections import (
    load_alert_config,
    load_calibration_config,
    load_classifier_config,
    load_posture_log_config,
    load_sensor_stream_config,
)
from airposture.utils.ctrl_handler import CtrlCHandler

log = logging.getLogger("airposture.main")

HELP_TEXT = """
Controls:
  c        start calibration (move your head around freely)
  s        set current pose as neutral (after calibration reaches 100%)
  x        cancel calibration
  on/off   enable/disable posture checking
  d <sec>  alert delay, one of {choices}
  status   show current state
  q        quit (Ctrl+C also exits cleanly)
"""


@dataclass
class MonitorComponents:
    """Wired components of a running monitor."""
    coordinator: PostureCoordinator
    observer: MotionObserver
    source: Any
    presenter: ConsolePresenter
    posture_logger: AsyncPostureLogger
    executor: ThreadPoolExecutor


def parse_args(argv=None) -> argparse.Namespace:
    sensor_cfg = load_sensor_stream_config()
    alert_cfg = load_alert_config()
    log_cfg = load_posture_log_config()

    parser = argparse.ArgumentParser(
        prog="airposture",
        description="Monitor head posture from headphone motion and alert on sustained bad posture.",
    )
    parser.add_argument("--source", choices=("mock", "replay", "udp"), default=sensor_cfg.source,
                        help="Motion source (default: %(default)s)")
    parser.add_argument("--mock-mode", choices=("synthetic", "static"), default=sensor_cfg.mock_mode,
                        help="Mock source behaviour (default: %(default)s)")
    parser.add_argument("--fps", type=int, default=sensor_cfg.mock_fps,
                        help="Mock/replay sample rate in Hz (default: %(default)s)")
    parser.add_argument("--replay-file", type=Path,
                        help="CSV with timestamp,pitch,roll[,yaw] rows in degrees (--source replay)")
    parser.add_argument("--port", type=int, default=sensor_cfg.udp_port,
                        help="UDP port for motion datagrams (default: %(default)s)")
    parser.add_argument("--delay", type=int, choices=alert_cfg.delay_choices, default=int(alert_cfg.delay),
                        help="Seconds of sustained bad posture before alerting (default: %(default)s)")
    parser.add_argument("--user-id", default=log_cfg.user_id,
                        help="Owner of the posture history (default: %(default)s)")
    parser.add_argument("--data-dir", type=Path, default=log_cfg.data_dir,
                        help="Posture history directory (default: %(default)s)")
    parser.add_argument("--no-checking", action="store_true",
                        help="Start with posture checking disabled")
    parser.add_argument("--quiet", action="store_true",
                        help="Do not print live pitch/roll")
    parser.add_argument("--log-level", default=Config.LOG_LEVEL,
                        help="Logging level (default: %(default)s)")

    args = parser.parse_args(argv)
    if args.source == "replay" and args.replay_file is None:
        parser.error("--source replay requires --replay-file")
    return args


def build_monitor(args: argparse.Namespace) -> MonitorComponents:
    """Wire the components for the selected source. Nothing is started."""
    log_cfg = load_posture_log_config()
    sensor_cfg = load_sensor_stream_config()

    posture_logger = AsyncPostureLogger(
        JsonFileStore(args.data_dir),
        user_id=args.user_id,
        upload_interval=log_cfg.upload_interval,
        queue_maxsize=log_cfg.queue_maxsize,
    )
    presenter = ConsolePresenter(live_interval=Config.LIVE_DISPLAY_INTERVAL, show_live=not args.quiet)
    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="PostureUI")

    session = new_session(
        classifier_config=load_classifier_config(),
        calibration_config=load_calibration_config(),
        alert_delay=args.delay,
        log_interval=log_cfg.log_interval,
    )
    coordinator = PostureCoordinator(
        session=session,
        listener=presenter,
        log_sink=posture_logger,
        executor=executor,
    )
    observer = MotionObserver(coordinator)

    if args.source == "udp":
        source = MotionReceiver(
            observer,
            host=sensor_cfg.udp_host,
            port=args.port,
            socket_timeout=sensor_cfg.socket_timeout,
            max_datagram=sensor_cfg.max_datagram,
        )
    elif args.source == "replay":
        source = MockMotionObserver(observer, mode="replay", fps=args.fps, replay_path=str(args.replay_file))
    else:
        source = MockMotionObserver(observer, mode=args.mock_mode, fps=args.fps)

    return MonitorComponents(
        coordinator=coordinator,
        observer=observer,
        source=source,
        presenter=presenter,
        posture_logger=posture_logger,
        executor=executor,
    )


def handle_command(line: str, coordinator: PostureCoordinator, presenter: Optional[ConsolePresenter] = None) -> bool:
    """
    Execute one interactive command.

    Returns:
        False when the user asked to quit, True otherwise
    """
    parts = line.strip().lower().split()
    if not parts:
        return True
    command, rest = parts[0], parts[1:]

    if command in ("q", "quit", "exit"):
        return False
    if command == "c":
        if presenter is not None:
            presenter.reset_calibration_display()
        coordinator.start_calibration()
    elif command == "s":
        if coordinator.commit_calibration():
            print("Neutral pose set")
        else:
            print("Calibration not complete yet")
    elif command == "x":
        coordinator.cancel_calibration()
        print("Calibration cancelled")
    elif command == "on":
        coordinator.enable_posture_checking()
        print("Posture checking enabled")
    elif command == "off":
        coordinator.disable_posture_checking()
        print("Posture checking disabled")
    elif command == "d":
        choices = load_alert_config().delay_choices
        try:
            seconds = int(rest[0])
        except (IndexError, ValueError):
            print(f"Usage: d <seconds>, one of {list(choices)}")
            return True
        if seconds not in choices:
            print(f"Alert delay must be one of {list(choices)}")
            return True
        coordinator.set_alert_delay(seconds)
        print(f"Alert delay: {seconds}s")
    elif command == "status":
        print_status(coordinator)
    elif command in ("h", "help", "?"):
        print(HELP_TEXT.format(choices=list(load_alert_config().delay_choices)))
    else:
        print(f"Unknown command: {command} (h for help)")
    return True


def print_status(coordinator: PostureCoordinator) -> None:
    session = coordinator.session
    thresholds = session.thresholds
    print(f"  Signal: {'yes' if session.has_signal else 'no'}")
    print(f"  Checking: {'on' if session.checking_enabled else 'off'}")
    print(f"  Calibrated: {'yes' if session.is_calibrated else 'no (absolute angles)'}")
    print(f"  Calibration: {session.calibration_state.value}")
    print(f"  Limits: pitch < {thresholds.forward_pitch_limit:.1f}°, |roll| > {thresholds.side_roll_limit:.1f}°")
    print(f"  Alert delay: {session.alert_delay:.0f}s ({session.timer.phase.value})")


def _command_loop(coordinator: PostureCoordinator, presenter: ConsolePresenter, ctrl_handler: CtrlCHandler) -> None:
    """stdin reader thread; any exit path requests shutdown."""
    try:
        for line in sys.stdin:
            if ctrl_handler.should_stop:
                break
            try:
                if not handle_command(line, coordinator, presenter):
                    break
            except ValueError as e:
                print(f"Invalid command: {e}")
    finally:
        ctrl_handler.request_stop()


def print_summary(summary: dict) -> None:
    print("\n" + "=" * 60)
    print("Posture session summary")
    print("=" * 60)
    print(f"  User: {summary['user_id']}")
    print(f"  Duration: {summary['duration_seconds'] / 60.0:.1f} min")
    print(f"  Readings: {summary['total_readings']} (good {summary['good']}, bad {summary['bad']})")
    if summary['total_readings']:
        print(f"  Bad posture: {summary['bad_ratio'] * 100:.0f}%")
        print(f"  Average pitch/roll: {summary['avg_pitch']:.1f}° / {summary['avg_roll']:.1f}°")


def main(argv=None) -> int:
    """
    Main entry point.

    Flow:
    1. Component initialization
    2. Start posture log and motion source
    3. Interactive commands until 'q' or Ctrl+C
    4. Ordered cleanup (final upload + summary)
    """
    args = parse_args(argv)
    configure_logging(args.log_level)

    print("=" * 60)
    print("AirPosture monitor")
    print("=" * 60)

    ctrl_handler = CtrlCHandler()
    session_logger = get_session_logger()
    log.info("Session logs: %s", session_logger.log_dir)

    try:
        components = build_monitor(args)
    except (ValueError, OSError) as e:
        log.error("Cannot start monitor: %s", e)
        return 1

    coordinator = components.coordinator
    source = components.source
    started = False

    try:
        components.posture_logger.start_logging()
        source.start()
        started = True

        if not args.no_checking:
            coordinator.enable_posture_checking()

        print(HELP_TEXT.format(choices=list(load_alert_config().delay_choices)))

        command_thread = threading.Thread(
            target=_command_loop,
            args=(coordinator, components.presenter, ctrl_handler),
            daemon=True,
            name="CommandLoop",
        )
        command_thread.start()

        while not ctrl_handler.should_stop:
            ctrl_handler.stop_event.wait(0.5)

    except Exception as e:
        log.exception("Monitor stopped on error: %s", e)
        return 1

    finally:
        print("\nShutting down...")
        if started:
            source.stop()
        components.executor.shutdown(wait=True)
        summary = components.posture_logger.finalize_session()
        print_summary(summary)
        components.observer.print_stats()
        session_logger.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())
