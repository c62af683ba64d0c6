"""Shared test fixtures for the pipestream test suite.

Provides common fixtures used across unit and integration tests:
a recording status sink, loopback server configs, and fake sockets.
"""

from __future__ import annotations

import logging
import socket
from unittest.mock import MagicMock

import pytest

from pipestream.config.settings import ServerConfig
from pipestream.server.status import StatusSink


class RecordingStatusSink(StatusSink):
    """Keeps every status message in order."""

    def __init__(self) -> None:
        self.messages: list[str] = []

    def notify(self, message: str) -> None:
        self.messages.append(message)


# ---------------------------------------------------------------------------
# Status / Config Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def recording_sink() -> RecordingStatusSink:
    """A StatusSink that records messages for assertions."""
    return RecordingStatusSink()


@pytest.fixture
def server_config() -> ServerConfig:
    """A loopback config on an ephemeral port with a tiny command."""
    return ServerConfig(command="printf '0123456789'", host="127.0.0.1", port=0)


# ---------------------------------------------------------------------------
# Socket Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_conn():
    """Factory for mock accepted sockets that answer one recv()."""

    def _make(request: bytes = b"GET / HTTP/1.1\r\n\r\n", peer: str = "10.0.0.5") -> MagicMock:
        conn = MagicMock(spec=socket.socket)
        conn.getpeername.return_value = (peer, 54321)
        conn.recv.return_value = request
        return conn

    return _make


@pytest.fixture
def restore_pipestream_logger():
    """Undo handler/level changes made by setup_logging."""
    pkg_logger = logging.getLogger("pipestream")
    handlers = list(pkg_logger.handlers)
    level = pkg_logger.level
    yield pkg_logger
    for handler in list(pkg_logger.handlers):
        if handler not in handlers:
            pkg_logger.removeHandler(handler)
            handler.close()
    pkg_logger.setLevel(level)
