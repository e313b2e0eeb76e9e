"""Runtime configuration, read once from the environment at startup.

Logging is not configured yet while this runs, so problems found in the
environment are collected on ShimConfig.problems and logged by the caller.
"""
from __future__ import annotations

import os
import re
import socket
import sys
import tempfile
from dataclasses import dataclass, field
from typing import Mapping

from intel_invoke.models import TransportKind

DEBUG_ENV = "CODER_INTEL_INVOKE_DEBUG"
ADDRESS_ENV = "CODER_INTEL_DAEMON_ADDRESS"
TIMEOUT_ENV = "CODER_INTEL_DAEMON_TIMEOUT"

SOCKET_NAME = ".coder-intel.sock"
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 13657
DEFAULT_TIMEOUT_SECONDS = 0.1   # per phase: connect, send, receive
RECEIVE_CAPACITY = 1024

_DURATION_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*(ms|s)?\s*$")


@dataclass
class ShimConfig:
    debug: bool = False
    transport: TransportKind = TransportKind.STREAM
    socket_path: str = ""
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    receive_capacity: int = RECEIVE_CAPACITY
    search_path: list[str] = field(default_factory=list)
    problems: list[str] = field(default_factory=list)


def load_config(environ: Mapping[str, str] | None = None) -> ShimConfig:
    """Build a ShimConfig from environment variables."""
    if environ is None:
        environ = os.environ
    problems: list[str] = []

    override = environ.get(ADDRESS_ENV, "")
    host, port = DEFAULT_HOST, DEFAULT_PORT
    if override:
        try:
            host, port = parse_address(override)
        except ValueError as e:
            problems.append(f"ignoring {ADDRESS_ENV}={override!r}: {e}")
            override = ""

    timeout = DEFAULT_TIMEOUT_SECONDS
    raw_timeout = environ.get(TIMEOUT_ENV)
    if raw_timeout is not None:
        try:
            timeout = parse_duration(raw_timeout)
        except ValueError as e:
            problems.append(f"ignoring {TIMEOUT_ENV}: {e}")

    return ShimConfig(
        debug=DEBUG_ENV in environ,
        transport=select_transport(bool(override)),
        socket_path=os.path.join(tempfile.gettempdir(), SOCKET_NAME),
        host=host,
        port=port,
        timeout=timeout,
        search_path=split_path_value(environ.get("PATH", "")),
        problems=problems,
    )


def select_transport(address_override: bool) -> TransportKind:
    """Datagram where AF_UNIX exists and no TCP address was requested."""
    if address_override:
        return TransportKind.STREAM
    if sys.platform == "win32" or not hasattr(socket, "AF_UNIX"):
        return TransportKind.STREAM
    return TransportKind.DATAGRAM


def split_path_value(value: str) -> list[str]:
    """Split a PATH-style string into an ordered list of directories."""
    if not value:
        return []
    return value.split(os.pathsep)


def parse_address(value: str) -> tuple[str, int]:
    """Parse ``host:port``. An empty host means loopback."""
    host, sep, port = value.rpartition(":")
    if not sep:
        raise ValueError("expected host:port")
    host = host.strip("[]") or DEFAULT_HOST
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"invalid port {port!r}") from None
    if not 0 < port_num < 65536:
        raise ValueError(f"port out of range: {port_num}")
    return host, port_num


def parse_duration(value: str) -> float:
    """Parse ``100ms``, ``0.5s`` or a bare millisecond count into seconds."""
    m = _DURATION_RE.match(value)
    if not m:
        raise ValueError(f"invalid duration {value!r}")
    amount = float(m.group(1))
    if m.group(2) == "s":
        seconds = amount
    else:
        seconds = amount / 1000.0
    if seconds <= 0:
        raise ValueError(f"duration must be positive: {value!r}")
    return seconds
