#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Motion Receiver - AirPosture monitor
Receives headphone motion datagrams over UDP and feeds the MotionObserver

Architecture:
Motion bridge → UDP → MotionReceiver → MotionObserver → PostureCoordinator
"""

import logging
import socket
import threading
import time
from typing import Optional

from airposture.communication.protocols import (
    CommunicationConfig,
    CommunicationError,
    MotionMessage,
    NetworkError,
    StreamErrorMessage,
    decode_message,
)

log = logging.getLogger("MotionReceiver")


class MotionReceiver:
    """
    UDP listener for motion datagrams.

    Responsibilities:
    - Bind the motion port and receive one JSON message per datagram
    - Forward valid attitude updates to the observer
    - Report stream failures (error messages, stale stream, socket errors)
    """

    def __init__(
        self,
        observer,
        host: str = "0.0.0.0",
        port: int = CommunicationConfig.MOTION_PORT,
        socket_timeout: float = CommunicationConfig.SOCKET_TIMEOUT,
        max_datagram: int = CommunicationConfig.MAX_DATAGRAM_SIZE,
        stale_timeout: float = CommunicationConfig.STALE_STREAM_TIMEOUT,
    ):
        self.observer = observer
        self.host = host
        self.port = port
        self.socket_timeout = socket_timeout
        self.max_datagram = max_datagram
        self.stale_timeout = stale_timeout

        self.sock: Optional[socket.socket] = None
        self.running = False
        self._thread: Optional[threading.Thread] = None

        # Stats
        self.messages_received = 0
        self.messages_rejected = 0
        self.sequence_gaps = 0
        self._last_sequence: Optional[int] = None
        self._last_data_time: Optional[float] = None
        self._stream_stale = False

    def start(self) -> None:
        """Bind the socket and start the receive thread."""
        if self.running:
            return

        try:
            self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
            self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.sock.bind((self.host, self.port))
            self.sock.settimeout(self.socket_timeout)
        except OSError as e:
            if self.sock is not None:
                self.sock.close()
                self.sock = None
            raise NetworkError(f"Cannot bind motion port {self.host}:{self.port}: {e}") from e

        self.running = True
        self._thread = threading.Thread(target=self._receive_loop, daemon=True, name="MotionReceiver")
        self._thread.start()
        log.info("Listening for motion datagrams on %s:%d", self.host, self.port)

    def stop(self) -> None:
        self.running = False
        if self._thread:
            self._thread.join(timeout=2.0)
        if self.sock is not None:
            self.sock.close()
            self.sock = None
        log.info(
            "Stopped (received %d, rejected %d, gaps %d)",
            self.messages_received, self.messages_rejected, self.sequence_gaps,
        )

    def _receive_loop(self) -> None:
        while self.running:
            try:
                data, _addr = self.sock.recvfrom(self.max_datagram)
            except socket.timeout:
                self.check_stale(time.time())
                continue
            except OSError as e:
                if self.running:
                    log.error("Motion socket error: %s", e)
                    self.observer.on_motion_error(f"socket error: {e}")
                    self.running = False
                break

            self.handle_datagram(data)

    def handle_datagram(self, data: bytes) -> Optional[MotionMessage]:
        """
        Decode one datagram and forward it.

        Returns:
            The decoded MotionMessage, or None if it was rejected or an error report
        """
        try:
            msg = decode_message(data)
        except CommunicationError as e:
            self.messages_rejected += 1
            log.warning("Rejected motion datagram: %s", e)
            return None

        if isinstance(msg, StreamErrorMessage):
            log.warning("Motion bridge reported failure: %s", msg.reason)
            self.observer.on_motion_error(msg.reason)
            self._last_data_time = None
            return None

        self._track_sequence(msg.sequence_id)
        self.messages_received += 1
        self._last_data_time = time.time()
        self._stream_stale = False
        self.observer.on_motion_received(msg.pitch, msg.roll, msg.timestamp, msg.yaw)
        return msg

    def check_stale(self, now: float) -> bool:
        """Report the stream as lost once, after ``stale_timeout`` without data."""
        if self._last_data_time is None or self._stream_stale:
            return False
        if now - self._last_data_time < self.stale_timeout:
            return False

        self._stream_stale = True
        log.warning("No motion data for %.1fs", now - self._last_data_time)
        self.observer.on_motion_error("motion stream timed out")
        return True

    def _track_sequence(self, sequence_id: int) -> None:
        if self._last_sequence is not None and sequence_id > self._last_sequence + 1:
            self.sequence_gaps += sequence_id - self._last_sequence - 1
        self._last_sequence = sequence_id
