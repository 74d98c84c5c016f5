"""
Typed configuration sections for the AirPosture monitor.

Each dataclass groups the constants one posture component needs (calibration,
classifier, alert timer, posture log, sensor stream). The ``load_*_config()``
helpers read the current values from ``Config`` so environment overrides
applied there reach the components, and tests can pass a section directly.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Tuple


@dataclass
class CalibrationConfig:
    """Configuration for the free-movement calibration procedure."""

    total_movement: float = 150.0  # Degrees of cumulative motion required
    noise_floor: float = 0.5  # Deltas at or below are ignored
    min_range: float = 10.0  # Minimum explored range per axis
    threshold_factor: float = 0.4
    fallback_pitch_limit: float = -20.0
    fallback_roll_limit: float = 20.0


@dataclass
class ClassifierConfig:
    """Thresholds used while no calibration has been committed."""

    forward_pitch_limit: float = -25.0
    side_roll_limit: float = 20.0


@dataclass
class AlertConfig:
    """Configuration for the bad posture alert timer."""

    delay: float = 5.0  # Seconds of sustained bad posture before alerting
    delay_choices: Tuple[int, ...] = field(
        default_factory=lambda: (5, 10, 15, 20, 25, 30)
    )


@dataclass
class PostureLogConfig:
    """Configuration for the posture log sink."""

    log_interval: float = 1.0  # Seconds between accepted readings
    upload_interval: float = 30.0  # Seconds between uploads
    queue_maxsize: int = 2000
    user_id: str = "default"
    data_dir: Path = Path("data")


@dataclass
class SensorStreamConfig:
    """Configuration for motion sample sources."""

    source: str = "mock"
    mock_fps: int = 50
    mock_mode: str = "synthetic"
    udp_host: str = "0.0.0.0"
    udp_port: int = 5560
    socket_timeout: float = 1.0
    max_datagram: int = 4096


def load_calibration_config() -> CalibrationConfig:
    """
    Load calibration configuration from Config with fallback defaults.

    Returns:
        CalibrationConfig with values from Config or defaults
    """
    from airposture.utils.config import Config

    return CalibrationConfig(
        total_movement=getattr(Config, "CALIBRATION_TOTAL_MOVEMENT", 150.0),
        noise_floor=getattr(Config, "CALIBRATION_NOISE_FLOOR", 0.5),
        min_range=getattr(Config, "CALIBRATION_MIN_RANGE", 10.0),
        threshold_factor=getattr(Config, "CALIBRATION_THRESHOLD_FACTOR", 0.4),
        fallback_pitch_limit=getattr(Config, "CALIBRATION_FALLBACK_PITCH_LIMIT", -20.0),
        fallback_roll_limit=getattr(Config, "CALIBRATION_FALLBACK_ROLL_LIMIT", 20.0),
    )


def load_classifier_config() -> ClassifierConfig:
    """
    Load absolute-mode classifier thresholds from Config with fallback defaults.

    Returns:
        ClassifierConfig with values from Config or defaults
    """
    from airposture.utils.config import Config

    return ClassifierConfig(
        forward_pitch_limit=getattr(Config, "FORWARD_TILT_THRESHOLD", -25.0),
        side_roll_limit=getattr(Config, "SIDE_TILT_THRESHOLD", 20.0),
    )


def load_alert_config() -> AlertConfig:
    """
    Load alert configuration from Config with fallback defaults.

    Returns:
        AlertConfig with values from Config or defaults
    """
    from airposture.utils.config import Config

    return AlertConfig(
        delay=float(getattr(Config, "ALERT_DELAY_DEFAULT", 5)),
        delay_choices=tuple(getattr(Config, "ALERT_DELAY_CHOICES", (5, 10, 15, 20, 25, 30))),
    )


def load_posture_log_config() -> PostureLogConfig:
    """
    Load posture log configuration from Config with fallback defaults.

    Returns:
        PostureLogConfig with values from Config or defaults
    """
    from airposture.utils.config import Config

    return PostureLogConfig(
        log_interval=getattr(Config, "LOG_INTERVAL", 1.0),
        upload_interval=getattr(Config, "UPLOAD_INTERVAL", 30.0),
        queue_maxsize=getattr(Config, "LOG_QUEUE_MAXSIZE", 2000),
        user_id=getattr(Config, "USER_ID", "default"),
        data_dir=Path(getattr(Config, "DATA_DIR", "data")),
    )


def load_sensor_stream_config() -> SensorStreamConfig:
    """
    Load sensor stream configuration from Config with fallback defaults.

    Returns:
        SensorStreamConfig with values from Config or defaults
    """
    from airposture.utils.config import Config

    return SensorStreamConfig(
        source=getattr(Config, "SENSOR_SOURCE", "mock"),
        mock_fps=getattr(Config, "MOCK_SENSOR_FPS", 50),
        mock_mode=getattr(Config, "MOCK_SENSOR_MODE", "synthetic"),
        udp_host=getattr(Config, "UDP_HOST", "0.0.0.0"),
        udp_port=getattr(Config, "UDP_PORT", 5560),
        socket_timeout=getattr(Config, "UDP_SOCKET_TIMEOUT", 1.0),
        max_datagram=getattr(Config, "UDP_MAX_DATAGRAM", 4096),
    )
