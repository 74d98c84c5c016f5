"""Tests for the motion datagram protocol."""

from __future__ import annotations

import json
import math

import pytest

from airposture.communication.protocols import (
    CommunicationError,
    MessageSerializationError,
    MessageUtils,
    MessageValidationError,
    MotionMessage,
    StreamErrorMessage,
    decode_message,
)

T0 = 1_700_000_000.0


def test_motion_message_serialization():
    msg = MessageUtils.create_motion_message(-0.3, 0.1, yaw=1.2, sequence_id=7, timestamp=T0)

    decoded = decode_message(msg.to_bytes())

    assert decoded == msg


def test_decode_defaults_missing_yaw_and_sequence():
    data = json.dumps({"timestamp": T0, "pitch": -0.2, "roll": 0.05}).encode()

    msg = decode_message(data)

    assert isinstance(msg, MotionMessage)
    assert msg.yaw == 0.0
    assert msg.sequence_id == 0


def test_decode_error_message():
    data = StreamErrorMessage("headphones removed", T0).to_bytes()

    msg = decode_message(data)

    assert msg == StreamErrorMessage("headphones removed", T0)


def test_bare_error_field_is_error_message():
    msg = decode_message(b'{"error": "motion not available"}')

    assert isinstance(msg, StreamErrorMessage)
    assert msg.reason == "motion not available"


@pytest.mark.parametrize("payload", [b"not json", b"\xff\xfe", b"[1, 2, 3]"])
def test_malformed_datagrams_raise_serialization_error(payload):
    with pytest.raises(MessageSerializationError):
        decode_message(payload)


@pytest.mark.parametrize("payload", [
    {"timestamp": T0, "pitch": -0.2},
    {"timestamp": T0, "pitch": "down", "roll": 0.0},
    {"timestamp": T0, "pitch": 2.0, "roll": 0.0},
    {"timestamp": -1.0, "pitch": 0.0, "roll": 0.0},
    {"timestamp": T0, "pitch": float("nan"), "roll": 0.0},
    {"type": "heartbeat", "timestamp": T0},
])
def test_invalid_messages_raise_validation_error(payload):
    with pytest.raises(MessageValidationError):
        decode_message(json.dumps(payload).encode())


def test_to_bytes_validates():
    msg = MotionMessage(timestamp=T0, pitch=math.pi, roll=0.0)

    with pytest.raises(MessageValidationError):
        msg.to_bytes()


def test_error_hierarchy():
    assert issubclass(MessageSerializationError, CommunicationError)
    assert issubclass(MessageValidationError, CommunicationError)
