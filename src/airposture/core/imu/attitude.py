"""
Attitude algebra for headphone motion samples.

Orientations arrive as Euler angles (pitch, roll, yaw) in radians. Relative
attitude is computed on unit quaternions and only converted back to Euler
angles at the end, so that roll offsets couple correctly into pitch at large
tilt angles instead of being subtracted component-wise.

Convention: ZYX (yaw-pitch-roll), q = q_yaw * q_pitch * q_roll, quaternions
stored as numpy arrays [w, x, y, z].

Usage:
    from airposture.core.imu.attitude import Orientation, relative_attitude

    reference = Orientation.from_degrees(pitch=-5.0, roll=2.0)
    current = Orientation.from_degrees(pitch=-30.0, roll=4.0)
    rel = relative_attitude(current, reference)
    print(rel.pitch_degrees, rel.roll_degrees)
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np

IDENTITY_QUATERNION = np.array([1.0, 0.0, 0.0, 0.0])


@dataclass(frozen=True)
class Orientation:
    """Immutable attitude snapshot in radians."""
    pitch: float
    roll: float
    yaw: float = 0.0

    @classmethod
    def from_degrees(cls, pitch: float, roll: float, yaw: float = 0.0) -> "Orientation":
        return cls(math.radians(pitch), math.radians(roll), math.radians(yaw))

    @property
    def pitch_degrees(self) -> float:
        return to_degrees(self.pitch)

    @property
    def roll_degrees(self) -> float:
        return to_degrees(self.roll)

    @property
    def yaw_degrees(self) -> float:
        return to_degrees(self.yaw)

    def as_quaternion(self) -> np.ndarray:
        return quaternion_from_euler(self.roll, self.pitch, self.yaw)

    @classmethod
    def from_quaternion(cls, q: np.ndarray) -> "Orientation":
        roll, pitch, yaw = euler_from_quaternion(q)
        return cls(pitch=pitch, roll=roll, yaw=yaw)


def to_degrees(radians: float) -> float:
    return radians * 180.0 / math.pi


# ----------------------------------------------------------------------
# Quaternion helpers (all return new arrays)
# ----------------------------------------------------------------------

def quaternion_from_euler(roll: float, pitch: float, yaw: float) -> np.ndarray:
    """Build a unit quaternion from ZYX Euler angles in radians."""
    cr = math.cos(roll * 0.5)
    sr = math.sin(roll * 0.5)
    cp = math.cos(pitch * 0.5)
    sp = math.sin(pitch * 0.5)
    cy = math.cos(yaw * 0.5)
    sy = math.sin(yaw * 0.5)

    return np.array([
        cr * cp * cy + sr * sp * sy,
        sr * cp * cy - cr * sp * sy,
        cr * sp * cy + sr * cp * sy,
        cr * cp * sy - sr * sp * cy,
    ])


def quaternion_multiply(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Hamilton product a * b."""
    w1, x1, y1, z1 = a
    w2, x2, y2, z2 = b

    return np.array([
        w1 * w2 - x1 * x2 - y1 * y2 - z1 * z2,
        w1 * x2 + x1 * w2 + y1 * z2 - z1 * y2,
        w1 * y2 - x1 * z2 + y1 * w2 + z1 * x2,
        w1 * z2 + x1 * y2 - y1 * x2 + z1 * w2,
    ])


def quaternion_normalize(q: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(q)
    if norm < 1e-12:
        return IDENTITY_QUATERNION.copy()
    return q / norm


def quaternion_inverse(q: np.ndarray) -> np.ndarray:
    """Inverse of a unit quaternion (its conjugate)."""
    return np.array([q[0], -q[1], -q[2], -q[3]])


def euler_from_quaternion(q: np.ndarray) -> Tuple[float, float, float]:
    """Convert a quaternion to ZYX Euler angles (roll, pitch, yaw) in radians."""
    w, x, y, z = quaternion_normalize(q)

    sinr_cosp = 2.0 * (w * x + y * z)
    cosr_cosp = 1.0 - 2.0 * (x * x + y * y)
    roll = math.atan2(sinr_cosp, cosr_cosp)

    # Gimbal lock: clamp to +-90 degrees
    sinp = 2.0 * (w * y - z * x)
    if abs(sinp) >= 1.0:
        pitch = math.copysign(math.pi / 2.0, sinp)
    else:
        pitch = math.asin(sinp)

    siny_cosp = 2.0 * (w * z + x * y)
    cosy_cosp = 1.0 - 2.0 * (y * y + z * z)
    yaw = math.atan2(siny_cosp, cosy_cosp)

    return float(roll), float(pitch), float(yaw)


# ----------------------------------------------------------------------
# Orientation algebra
# ----------------------------------------------------------------------

def compose(a: Orientation, b: Orientation) -> Orientation:
    """Rotation ``a`` followed by the body-frame rotation ``b`` (q_a * q_b)."""
    q = quaternion_multiply(a.as_quaternion(), b.as_quaternion())
    return Orientation.from_quaternion(quaternion_normalize(q))


def inverse(orientation: Orientation) -> Orientation:
    return Orientation.from_quaternion(quaternion_inverse(orientation.as_quaternion()))


def relative_attitude(current: Orientation, reference: Optional[Orientation]) -> Orientation:
    """
    Express ``current`` relative to ``reference``.

    Args:
        current: Absolute orientation reported by the sensor
        reference: Neutral orientation from calibration, or None

    Returns:
        Orientation of inverse(reference) * current. With no reference the
        absolute orientation is returned unchanged.
    """
    if reference is None:
        return current
    q = quaternion_multiply(quaternion_inverse(reference.as_quaternion()), current.as_quaternion())
    return Orientation.from_quaternion(quaternion_normalize(q))
