"""Tests for the UDP MotionReceiver."""

from __future__ import annotations

import json
import socket
import time
from unittest.mock import Mock

import pytest

from airposture.communication.motion_receiver import MotionReceiver
from airposture.communication.protocols import MessageUtils, NetworkError, StreamErrorMessage

T0 = 1_700_000_000.0


@pytest.fixture()
def observer():
    return Mock()


def datagram(seq: int, pitch: float = -0.2) -> bytes:
    return MessageUtils.create_motion_message(pitch, 0.05, sequence_id=seq, timestamp=T0 + seq * 0.02).to_bytes()


def test_handle_datagram_forwards_motion(observer):
    receiver = MotionReceiver(observer, port=0)

    msg = receiver.handle_datagram(datagram(1))

    observer.on_motion_received.assert_called_once_with(-0.2, 0.05, msg.timestamp, 0.0)
    assert receiver.messages_received == 1


def test_invalid_datagram_is_rejected(observer):
    receiver = MotionReceiver(observer, port=0)

    assert receiver.handle_datagram(b"garbage") is None

    observer.on_motion_received.assert_not_called()
    assert receiver.messages_rejected == 1


def test_error_message_reports_stream_failure(observer):
    receiver = MotionReceiver(observer, port=0)

    receiver.handle_datagram(StreamErrorMessage("headphones removed", T0).to_bytes())

    observer.on_motion_error.assert_called_once_with("headphones removed")


def test_sequence_gaps_are_counted(observer):
    receiver = MotionReceiver(observer, port=0)

    for seq in (1, 2, 5, 6):
        receiver.handle_datagram(datagram(seq))

    assert receiver.sequence_gaps == 2


def test_stale_stream_reported_once(observer):
    receiver = MotionReceiver(observer, port=0, stale_timeout=3.0)
    receiver.handle_datagram(datagram(1))
    last = receiver._last_data_time

    assert not receiver.check_stale(last + 1.0)
    assert receiver.check_stale(last + 3.5)
    assert not receiver.check_stale(last + 10.0)
    observer.on_motion_error.assert_called_once_with("motion stream timed out")


def test_stale_check_idle_before_first_datagram(observer):
    receiver = MotionReceiver(observer, port=0)

    assert not receiver.check_stale(time.time() + 100.0)


def test_receives_over_udp(observer):
    receiver = MotionReceiver(observer, host="127.0.0.1", port=0, socket_timeout=0.1)
    receiver.start()
    try:
        port = receiver.sock.getsockname()[1]
        sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sender.sendto(datagram(1), ("127.0.0.1", port))
            sender.sendto(json.dumps({"error": "stopped"}).encode(), ("127.0.0.1", port))
        finally:
            sender.close()

        deadline = time.time() + 2.0
        while not observer.on_motion_error.called and time.time() < deadline:
            time.sleep(0.01)
    finally:
        receiver.stop()

    observer.on_motion_received.assert_called_once()
    observer.on_motion_error.assert_called_once_with("stopped")


def test_bind_failure_raises_network_error(observer):
    receiver = MotionReceiver(observer, host="256.0.0.1", port=0)

    with pytest.raises(NetworkError):
        receiver.start()
    assert receiver.sock is None
    assert not receiver.running
