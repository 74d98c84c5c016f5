"""
Dedicated debug logs for a monitoring session.

This module provides a singleton logger that separates posture debugging logs
into dedicated files for easier analysis and troubleshooting.

Features:
- Singleton pattern (one instance per session)
- Separate log files for calibration, posture checks, alerts and sensor input
- DEBUG level logging to files
- WARNING level console output for critical messages

Log Files:
- calibration.log: Calibration lifecycle and committed thresholds
- posture_checks.log: Checking enabled/disabled, bad posture streaks
- alerts.log: Alert show/dismiss transitions
- sensor.log: Sensor stream availability and sample rate

Usage:
    from airposture.core.telemetry.loggers.session_logger import get_session_logger

    session_logger = get_session_logger(session_dir=Path("logs/session_2025-01-15_10-30-00"))
    session_logger.calibration.info("Calibration started")
    session_logger.alerts.warning("Bad posture alert shown")
"""

import logging
from datetime import datetime
from pathlib import Path

CHANNELS = {
    "calibration": "calibration.log",
    "checks": "posture_checks.log",
    "alerts": "alerts.log",
    "sensor": "sensor.log",
}


class SessionLogger:
    """Singleton logger for posture session debugging."""

    _instance = None
    _initialized = False

    def __new__(cls, session_dir: Path = None):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self, session_dir: Path = None):
        if self._initialized:
            return

        if session_dir is None:
            from airposture.utils.config import Config

            timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
            self.log_dir = Path(Config.SESSION_LOG_DIR) / f"session_{timestamp}"
        else:
            self.log_dir = Path(session_dir)

        self.log_dir.mkdir(parents=True, exist_ok=True)

        for name, filename in CHANNELS.items():
            self._setup_logger(name, filename)

        self._initialized = True

    def _setup_logger(self, name: str, filename: str):
        """Setup individual logger with file handler."""
        logger = logging.getLogger(f"airposture.session.{name}")
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        logger.handlers.clear()

        fh = logging.FileHandler(self.log_dir / filename, mode='w')
        fh.setLevel(logging.DEBUG)

        ch = logging.StreamHandler()
        ch.setLevel(logging.WARNING)

        formatter = logging.Formatter(
            '%(asctime)s.%(msecs)03d [%(levelname)s] %(message)s',
            datefmt='%H:%M:%S'
        )
        fh.setFormatter(formatter)
        ch.setFormatter(formatter)

        logger.addHandler(fh)
        logger.addHandler(ch)

        setattr(self, name, logger)

    def close(self):
        """Close all handlers."""
        for name in CHANNELS:
            logger = getattr(self, name, None)
            if logger:
                for handler in logger.handlers[:]:
                    handler.close()
                    logger.removeHandler(handler)
                logger.propagate = True

    @classmethod
    def reset(cls):
        """Drop the singleton so the next call opens a new session directory."""
        if cls._instance is not None and cls._instance._initialized:
            cls._instance.close()
        cls._instance = None
        cls._initialized = False


# Global instance
_session_logger = None


def get_session_logger(session_dir: Path = None) -> SessionLogger:
    """Get or create session logger instance."""
    global _session_logger
    if _session_logger is None:
        _session_logger = SessionLogger(session_dir=session_dir)
    return _session_logger


def reset_session_logger() -> None:
    global _session_logger
    SessionLogger.reset()
    _session_logger = None
