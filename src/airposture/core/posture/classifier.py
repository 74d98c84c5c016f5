"""Good/bad posture classification from relative head angles."""

from dataclasses import dataclass

from airposture.utils.config_sections import ClassifierConfig


@dataclass(frozen=True)
class Thresholds:
    """Signed bounds in degrees: forward tilt is negative pitch."""
    forward_pitch_limit: float
    side_roll_limit: float

    @classmethod
    def absolute(cls, config: ClassifierConfig = None) -> "Thresholds":
        """Thresholds for absolute mode, used until a calibration is committed."""
        config = config or ClassifierConfig()
        return cls(config.forward_pitch_limit, config.side_roll_limit)


DEFAULT_THRESHOLDS = Thresholds.absolute()


@dataclass(frozen=True)
class Classification:
    is_bad: bool
    pitch: float
    roll: float

    @property
    def status(self) -> str:
        return "bad" if self.is_bad else "good"


def classify(pitch: float, roll: float, thresholds: Thresholds) -> Classification:
    """
    Classify a relative head attitude.

    Args:
        pitch: Relative pitch in degrees (negative = head forward)
        roll: Relative roll in degrees
        thresholds: Active limits (calibrated or absolute mode)

    Returns:
        Classification carrying the verdict and the angles it was based on
    """
    is_bad = pitch < thresholds.forward_pitch_limit or abs(roll) > thresholds.side_roll_limit
    return Classification(is_bad=is_bad, pitch=pitch, roll=roll)
