"""Tests for environment-driven configuration."""
import os
import sys
import tempfile

import pytest

from intel_invoke.config import (
    ADDRESS_ENV, DEBUG_ENV, DEFAULT_PORT, DEFAULT_TIMEOUT_SECONDS, TIMEOUT_ENV,
    load_config, parse_address, parse_duration, select_transport,
    split_path_value,
)
from intel_invoke.models import TransportKind


def test_defaults():
    config = load_config({"PATH": ""})
    assert config.debug is False
    assert config.timeout == DEFAULT_TIMEOUT_SECONDS
    assert config.port == DEFAULT_PORT
    assert config.socket_path == os.path.join(tempfile.gettempdir(), ".coder-intel.sock")
    assert config.search_path == []
    assert config.problems == []


def test_debug_enabled_by_presence_alone():
    assert load_config({DEBUG_ENV: ""}).debug is True
    assert load_config({DEBUG_ENV: "0"}).debug is True


@pytest.mark.skipif(sys.platform == "win32", reason="datagram is not used on Windows")
def test_datagram_is_default_where_supported():
    assert load_config({}).transport is TransportKind.DATAGRAM


def test_windows_uses_stream(monkeypatch):
    monkeypatch.setattr(sys, "platform", "win32")
    assert select_transport(False) is TransportKind.STREAM


def test_address_override_forces_stream():
    config = load_config({ADDRESS_ENV: "127.0.0.1:4000"})
    assert config.transport is TransportKind.STREAM
    assert (config.host, config.port) == ("127.0.0.1", 4000)


def test_bad_address_is_ignored_and_noted():
    config = load_config({ADDRESS_ENV: "nonsense"})
    assert config.port == DEFAULT_PORT
    assert len(config.problems) == 1
    assert ADDRESS_ENV in config.problems[0]


def test_timeout_override():
    assert load_config({TIMEOUT_ENV: "250ms"}).timeout == pytest.approx(0.25)


def test_bad_timeout_falls_back_to_default():
    config = load_config({TIMEOUT_ENV: "soon"})
    assert config.timeout == DEFAULT_TIMEOUT_SECONDS
    assert TIMEOUT_ENV in config.problems[0]


@pytest.mark.parametrize("raw,seconds", [
    ("100ms", 0.1),
    ("0.5s", 0.5),
    ("2s", 2.0),
    ("150", 0.15),
])
def test_parse_duration(raw, seconds):
    assert parse_duration(raw) == pytest.approx(seconds)


@pytest.mark.parametrize("raw", ["", "fast", "-5ms", "0", "1m"])
def test_parse_duration_rejects(raw):
    with pytest.raises(ValueError):
        parse_duration(raw)


def test_parse_address():
    assert parse_address("localhost:13657") == ("localhost", 13657)
    assert parse_address(":9000") == ("127.0.0.1", 9000)
    assert parse_address("[::1]:9000") == ("::1", 9000)
    with pytest.raises(ValueError):
        parse_address("localhost:http")
    with pytest.raises(ValueError):
        parse_address("localhost:70000")


def test_split_path_value_keeps_order_and_empty_entries():
    value = os.pathsep.join(["/a", "", "/b", "/a"])
    assert split_path_value(value) == ["/a", "", "/b", "/a"]
    assert split_path_value("") == []
