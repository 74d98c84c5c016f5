"""
Centralized configuration for the AirPosture monitor.

This module provides all configuration constants and runtime settings for:
- Calibration (movement budget, noise floor, threshold derivation)
- Posture classification (absolute-mode thresholds)
- Bad posture alerts (hysteresis delay)
- Posture log sink (sampling gate, upload cadence, storage)
- Sensor streaming (mock and UDP sources)

The Config class contains all constants as class attributes, making them
accessible throughout the application without instantiation.

Usage:
    from airposture.utils.config import Config

    budget = Config.CALIBRATION_TOTAL_MOVEMENT
    if Config.MOCK_SENSOR_FPS > 50:
        ...
"""

import os
import logging
from pathlib import Path

log = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[3]


class Config:
    """System configuration constants for the AirPosture monitor."""

    # ==========================================================================
    # CALIBRATION: Free head movement procedure
    # ==========================================================================

    CALIBRATION_TOTAL_MOVEMENT = 150.0      # Degrees of cumulative L1 pitch+roll motion
    CALIBRATION_NOISE_FLOOR = 0.5           # Deltas at or below this are sensor jitter
    CALIBRATION_MIN_RANGE = 10.0            # Ranges at or below this use the fallbacks
    CALIBRATION_THRESHOLD_FACTOR = 0.4      # Fraction of the explored range
    CALIBRATION_FALLBACK_PITCH_LIMIT = -20.0
    CALIBRATION_FALLBACK_ROLL_LIMIT = 20.0

    # ==========================================================================
    # CLASSIFIER: Absolute mode (no calibration yet)
    # ==========================================================================

    FORWARD_TILT_THRESHOLD = -25.0          # Degrees, head forward is negative pitch
    SIDE_TILT_THRESHOLD = 20.0              # Degrees, absolute roll

    # ==========================================================================
    # ALERTS
    # ==========================================================================

    ALERT_DELAY_DEFAULT = 5                 # Seconds of sustained bad posture
    ALERT_DELAY_CHOICES = (5, 10, 15, 20, 25, 30)

    # ==========================================================================
    # POSTURE LOG
    # ==========================================================================

    LOG_INTERVAL = 1.0                      # Seconds between logged readings
    UPLOAD_INTERVAL = 30.0                  # Seconds between uploads of the log document
    LOG_QUEUE_MAXSIZE = 2000
    USER_ID = os.getenv("AIRPOSTURE_USER_ID", "default")
    DATA_DIR = Path(os.getenv("AIRPOSTURE_DATA_DIR", str(PROJECT_ROOT / "data")))
    SESSION_LOG_DIR = PROJECT_ROOT / "logs"
    LOG_LEVEL = os.getenv("AIRPOSTURE_LOG_LEVEL", "INFO")

    # ==========================================================================
    # SENSOR STREAMING
    # ==========================================================================

    SENSOR_SOURCE = "mock"                  # "mock", "replay" or "udp"
    MOCK_SENSOR_FPS = 50                    # Headphone motion runs at ~25-100 Hz
    MOCK_SENSOR_MODE = "synthetic"
    UDP_HOST = "0.0.0.0"
    UDP_PORT = int(os.getenv("AIRPOSTURE_UDP_PORT", "5560"))
    UDP_SOCKET_TIMEOUT = 1.0
    UDP_MAX_DATAGRAM = 4096

    # ==========================================================================
    # CONSOLE
    # ==========================================================================

    LIVE_DISPLAY_INTERVAL = 0.5             # Seconds between live angle refreshes


def configure_logging(level: str = None) -> None:
    """Configure root logging for the command line application."""
    logging.basicConfig(
        level=getattr(logging, (level or Config.LOG_LEVEL).upper(), logging.INFO),
        format='%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
        datefmt='%H:%M:%S',
    )
    log.debug("Logging configured at %s", level or Config.LOG_LEVEL)
