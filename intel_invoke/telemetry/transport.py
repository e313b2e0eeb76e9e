"""The two channels a record can travel over to reach the collector.

LocalDatagramChannel   unix datagram socket at a fixed temp-dir path; send only
LoopbackStreamChannel  TCP connection to a fixed loopback port; send, then an
                       optional bounded read of whatever the collector answers

Which one is used is fixed by ShimConfig.transport. Every socket operation
carries the configured timeout, and any OSError (or host name encoding
error) is re-raised as ReportTransportError tagged with the phase that failed.
"""
from __future__ import annotations

import logging
import socket
import time
from contextlib import contextmanager
from typing import Iterator, Union

from intel_invoke.config import ShimConfig
from intel_invoke.errors import ReportTransportError
from intel_invoke.models import TransportKind

logger = logging.getLogger(__name__)


class LocalDatagramChannel:
    kind = TransportKind.DATAGRAM

    def __init__(self, sock: socket.socket, path: str):
        self._sock = sock
        self.path = path

    @classmethod
    def connect(cls, path: str, timeout: float) -> "LocalDatagramChannel":
        sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        try:
            sock.settimeout(timeout)
            sock.connect(path)
        except OSError as e:
            sock.close()
            raise ReportTransportError("connect", e) from e
        return cls(sock, path)

    def send(self, data: bytes) -> None:
        try:
            self._sock.send(data)
        except OSError as e:
            raise ReportTransportError("send", e) from e

    def try_receive(self, capacity: int) -> int:
        # Fire-and-forget: the collector never answers datagrams.
        return 0

    def close(self) -> None:
        self._sock.close()


class LoopbackStreamChannel:
    kind = TransportKind.STREAM

    def __init__(self, sock: socket.socket, timeout: float):
        self._sock = sock
        self.timeout = timeout

    @classmethod
    def connect(cls, host: str, port: int, timeout: float) -> "LoopbackStreamChannel":
        try:
            sock = socket.create_connection((host, port), timeout=timeout)
        except (OSError, UnicodeError) as e:
            # idna encoding of a malformed host name fails with UnicodeError
            raise ReportTransportError("connect", e) from e
        return cls(sock, timeout)

    def send(self, data: bytes) -> None:
        try:
            self._sock.sendall(data)
        except OSError as e:
            raise ReportTransportError("send", e) from e

    def try_receive(self, capacity: int) -> int:
        """Read until the peer closes, capacity is reached or time runs out.

        Running out of time is not an error; the byte count so far is returned.
        """
        deadline = time.monotonic() + self.timeout
        received = 0
        while received < capacity:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            self._sock.settimeout(remaining)
            try:
                chunk = self._sock.recv(capacity - received)
            except socket.timeout:
                break
            except OSError as e:
                raise ReportTransportError("receive", e) from e
            if not chunk:
                break
            received += len(chunk)
        return received

    def close(self) -> None:
        self._sock.close()


Channel = Union[LocalDatagramChannel, LoopbackStreamChannel]


@contextmanager
def open_channel(config: ShimConfig) -> Iterator[Channel]:
    """Connect the configured channel and close it on every exit path."""
    if config.transport is TransportKind.DATAGRAM:
        logger.debug("connecting datagram channel %s", config.socket_path)
        channel: Channel = LocalDatagramChannel.connect(config.socket_path, config.timeout)
    elif config.transport is TransportKind.STREAM:
        logger.debug("connecting stream channel %s:%d", config.host, config.port)
        channel = LoopbackStreamChannel.connect(config.host, config.port, config.timeout)
    else:
        raise ValueError(f"unknown transport: {config.transport!r}")
    try:
        yield channel
    finally:
        channel.close()
