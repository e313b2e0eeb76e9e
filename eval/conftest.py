"""Shared fixtures: executables on disk and fake collectors on real sockets."""
import os
import shutil
import socket
import sys
import tempfile
import threading

import pytest

from intel_invoke.config import ShimConfig
from intel_invoke.models import TransportKind
from intel_invoke.telemetry.wire import decode_record

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="needs POSIX shell scripts")


def write_executable(directory, name, body, mode=0o755):
    """Write a /bin/sh script called name into directory and return its path."""
    os.makedirs(directory, exist_ok=True)
    path = os.path.join(str(directory), name)
    with open(path, "w", encoding="utf-8") as f:
        f.write("#!/bin/sh\n" + body + "\n")
    os.chmod(path, mode)
    return path


@pytest.fixture
def short_tmp():
    """A short temp dir; AF_UNIX paths are limited to ~100 bytes."""
    path = tempfile.mkdtemp(prefix="ii-")
    yield path
    shutil.rmtree(path, ignore_errors=True)


class DatagramCollector:
    def __init__(self, path):
        self.socket_path = path
        self.sock = socket.socket(socket.AF_UNIX, socket.SOCK_DGRAM)
        self.sock.bind(path)
        self.sock.settimeout(2)

    def receive_raw(self):
        return self.sock.recv(4096)

    def receive(self):
        return decode_record(self.receive_raw())

    def pending(self):
        """True if a datagram is waiting."""
        self.sock.settimeout(0.05)
        try:
            self.sock.recv(4096, socket.MSG_PEEK)
            return True
        except socket.timeout:
            return False
        finally:
            self.sock.settimeout(2)

    def close(self):
        self.sock.close()


@pytest.fixture
def datagram_collector(short_tmp):
    if not hasattr(socket, "AF_UNIX") or sys.platform == "win32":
        pytest.skip("unix datagram sockets unavailable")
    collector = DatagramCollector(os.path.join(short_tmp, "collector.sock"))
    yield collector
    collector.close()


class StreamCollector:
    """Loopback TCP listener. Accepts one connection per expected message."""

    def __init__(self, reply=b"", close_after_read=True):
        self.reply = reply
        self.close_after_read = close_after_read
        self.received = []
        self.listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self.listener.bind(("127.0.0.1", 0))
        self.listener.listen(1)
        self.listener.settimeout(2)
        self.host, self.port = self.listener.getsockname()
        self.done = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()

    def _serve(self):
        try:
            conn, _ = self.listener.accept()
        except OSError:
            return
        with conn:
            conn.settimeout(2)
            try:
                self.received.append(conn.recv(4096))
                if self.reply:
                    conn.sendall(self.reply)
                if not self.close_after_read:
                    self.done.wait(2)
            except OSError:
                pass
        self.done.set()

    def join(self):
        self._thread.join(timeout=3)

    def close(self):
        self.done.set()
        self.listener.close()
        self._thread.join(timeout=3)


@pytest.fixture
def stream_collector():
    collectors = []

    def factory(**kwargs):
        c = StreamCollector(**kwargs)
        collectors.append(c)
        return c

    yield factory
    for c in collectors:
        c.close()


def closed_port():
    """A loopback port with nothing listening on it."""
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def datagram_config(socket_path, **kwargs):
    return ShimConfig(transport=TransportKind.DATAGRAM, socket_path=socket_path, **kwargs)


def stream_config(host, port, **kwargs):
    return ShimConfig(transport=TransportKind.STREAM, host=host, port=port, **kwargs)
