#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Communication Protocols - AirPosture monitor
Contracts between a headphone motion bridge and the posture monitor

Architecture:
Phone/Mac (headphone motion) → MotionMessage  → Monitor (UDP, JSON datagram)
Phone/Mac (headphone motion) → StreamErrorMessage → Monitor (stream failed)

Datagram format (UTF-8 JSON, angles in radians):
    {"type": "motion", "timestamp": 1735732800.12, "pitch": -0.21,
     "roll": 0.03, "yaw": 1.4, "seq": 42}
    {"type": "error", "timestamp": 1735732801.0, "error": "headphones removed"}
"""

import json
import math
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union


# =================================================================
# ERROR HANDLING
# =================================================================

class CommunicationError(Exception):
    """Base exception for communication errors"""
    pass


class MessageSerializationError(CommunicationError):
    """Error during serialization/deserialization"""
    pass


class NetworkError(CommunicationError):
    """Network/connectivity error"""
    pass


class MessageValidationError(CommunicationError):
    """Message validation error"""
    pass


# =================================================================
# CORE MESSAGE STRUCTURES
# =================================================================

@dataclass
class MotionMessage:
    """
    Attitude update bridge → monitor

    Attributes:
        timestamp: Unix timestamp of the sensor sample
        pitch: Absolute pitch in radians
        roll: Absolute roll in radians
        yaw: Absolute yaw in radians
        sequence_id: Sequential ID for loss tracking
    """
    timestamp: float
    pitch: float
    roll: float
    yaw: float = 0.0
    sequence_id: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': 'motion',
            'timestamp': self.timestamp,
            'pitch': self.pitch,
            'roll': self.roll,
            'yaw': self.yaw,
            'seq': self.sequence_id,
        }

    def to_bytes(self) -> bytes:
        """Serialize message to a datagram payload"""
        MessageUtils.validate_motion_message(self)
        return json.dumps(self.to_dict()).encode('utf-8')

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'MotionMessage':
        try:
            msg = cls(
                timestamp=float(payload['timestamp']),
                pitch=float(payload['pitch']),
                roll=float(payload['roll']),
                yaw=float(payload.get('yaw', 0.0)),
                sequence_id=int(payload.get('seq', 0)),
            )
        except KeyError as e:
            raise MessageValidationError(f"Motion message missing field: {e}") from e
        except (TypeError, ValueError) as e:
            raise MessageValidationError(f"Motion message has invalid field: {e}") from e
        MessageUtils.validate_motion_message(msg)
        return msg


@dataclass
class StreamErrorMessage:
    """
    Stream failure bridge → monitor (headphones removed, permission denied...)

    Attributes:
        reason: Human readable failure reason
        timestamp: Unix timestamp of the failure
    """
    reason: str
    timestamp: float

    def to_bytes(self) -> bytes:
        payload = {'type': 'error', 'timestamp': self.timestamp, 'error': self.reason}
        return json.dumps(payload).encode('utf-8')

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> 'StreamErrorMessage':
        return cls(
            reason=str(payload.get('error') or 'unknown'),
            timestamp=float(payload.get('timestamp', time.time())),
        )


Message = Union[MotionMessage, StreamErrorMessage]


def decode_message(data: bytes) -> Message:
    """
    Decode one datagram.

    Raises:
        MessageSerializationError: payload is not a JSON object
        MessageValidationError: JSON object is not a valid message
    """
    try:
        payload = json.loads(data.decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise MessageSerializationError(f"Invalid datagram: {e}") from e

    if not isinstance(payload, dict):
        raise MessageSerializationError("Datagram is not a JSON object")

    if 'error' in payload or payload.get('type') == 'error':
        return StreamErrorMessage.from_dict(payload)

    msg_type = payload.get('type', 'motion')
    if msg_type != 'motion':
        raise MessageValidationError(f"Unknown message type: {msg_type}")
    return MotionMessage.from_dict(payload)


# =================================================================
# COMMUNICATION CONFIGURATION
# =================================================================

class CommunicationConfig:
    """Network configuration between motion bridge and monitor"""

    MOTION_PORT = 5560              # UDP port for motion datagrams
    MAX_DATAGRAM_SIZE = 4096        # Bytes, one JSON object per datagram
    SOCKET_TIMEOUT = 1.0            # Seconds, lets the receive loop notice stop()
    STALE_STREAM_TIMEOUT = 3.0      # Seconds without data before "no signal"


# =================================================================
# MESSAGE UTILITIES
# =================================================================

class MessageUtils:
    """Message helpers"""

    @staticmethod
    def create_motion_message(pitch: float, roll: float, yaw: float = 0.0,
                              sequence_id: int = 0, timestamp: Optional[float] = None) -> MotionMessage:
        """Factory method to create a MotionMessage"""
        return MotionMessage(
            timestamp=time.time() if timestamp is None else timestamp,
            pitch=pitch,
            roll=roll,
            yaw=yaw,
            sequence_id=sequence_id,
        )

    @staticmethod
    def validate_motion_message(msg: MotionMessage) -> None:
        """
        Check message integrity.

        Raises:
            MessageValidationError: non-finite values or out-of-range angles
        """
        values = (msg.timestamp, msg.pitch, msg.roll, msg.yaw)
        if not all(math.isfinite(v) for v in values):
            raise MessageValidationError("Motion message contains non-finite values")
        if msg.timestamp <= 0:
            raise MessageValidationError(f"Invalid timestamp: {msg.timestamp}")
        if abs(msg.pitch) > math.pi / 2 + 1e-6:
            raise MessageValidationError(f"Pitch out of range: {msg.pitch}")
        if abs(msg.roll) > math.pi + 1e-6 or abs(msg.yaw) > math.pi + 1e-6:
            raise MessageValidationError("Roll/yaw out of range")
        if msg.sequence_id < 0:
            raise MessageValidationError(f"Invalid sequence id: {msg.sequence_id}")
