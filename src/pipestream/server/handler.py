"""Per-connection request handling.

Reads the request once, parses the request line, and answers:

    OPTIONS  -> static header block, close, keep listening
    GET      -> static header block + command output, close, stop listening
    other    -> nothing sent, close

Only the request line is looked at. Headers, bodies and keep-alive are
not part of the protocol this server speaks.
"""

from __future__ import annotations

import logging
import socket
from contextlib import closing
from typing import Callable

from pipestream.config.settings import ServerConfig
from pipestream.server.models import ConnectionContext, HandlerOutcome
from pipestream.server.runner import CommandLaunchError, CommandRunner, StreamingSession
from pipestream.server.status import StatusSink

logger = logging.getLogger(__name__)

# https://developer.chrome.com/blog/private-network-access-preflight/
# https://wicg.github.io/local-network-access/
ISOLATION_HEADERS = (
    "Cross-Origin-Opener-Policy: unsafe-none",
    "Cross-Origin-Embedder-Policy: unsafe-none",
)
CORS_HEADERS = (
    "Access-Control-Allow-Headers: cache-control",
    "Access-Control-Allow-Methods: OPTIONS,GET",
    "Cache-Control: no-store",
    "Access-Control-Allow-Origin: *",
    "Content-type: application/octet-stream",
    "Access-Control-Allow-Private-Network: true",
)

ABORTED_MESSAGE = "aborted"


def build_response_header(server_name: str = "pipestream", isolation_headers: bool = True) -> bytes:
    """Build the CRLF-terminated header block sent for OPTIONS and GET."""
    lines = ["HTTP/1.1 200 OK", f"Server: {server_name}"]
    if isolation_headers:
        lines.extend(ISOLATION_HEADERS)
    lines.extend(CORS_HEADERS)
    return ("\r\n".join(lines) + "\r\n\r\n").encode("latin-1")


def parse_request(data: bytes, peer_address: str = "") -> ConnectionContext:
    """Split the first line of ``data`` into method, URI and version.

    Never fails: fewer than three tokens leave the remaining fields empty
    and anything after the third token is ignored.
    """
    first_line = data.split(b"\n", 1)[0]
    tokens = [token.decode("latin-1") for token in first_line.split()[:3]]
    tokens.extend([""] * (3 - len(tokens)))
    method, uri, version = tokens
    return ConnectionContext(
        raw_request=data,
        method=method,
        uri=uri,
        http_version=version,
        peer_address=peer_address,
    )


class ConnectionHandler:
    """Serves exactly one accepted connection, synchronously.

    The handler owns the connection for the duration of ``handle`` and
    closes it on every path. For GET it also owns the command runner,
    which is always stopped before the connection is closed.
    """

    def __init__(
        self,
        config: ServerConfig,
        sink: StatusSink,
        runner_factory: Callable[[str, float], CommandRunner] = CommandRunner,
    ) -> None:
        self._config = config
        self._sink = sink
        self._runner_factory = runner_factory
        self._response_header = build_response_header(
            server_name=config.server_name,
            isolation_headers=config.isolation_headers,
        )

    @property
    def response_header(self) -> bytes:
        return self._response_header

    def _status(self, message: str) -> None:
        logger.debug("status: %s", message)
        self._sink.notify(message)

    def handle(self, conn: socket.socket) -> HandlerOutcome:
        """Read, classify and answer one request, then close ``conn``."""
        with closing(conn):
            try:
                peer_address = conn.getpeername()[0]
            except OSError as e:
                self._status(f"server error (getpeername): {e}")
                return HandlerOutcome.FAILED

            try:
                data = conn.recv(self._config.request_buffer_size)
            except OSError as e:
                self._status(f"server error (read): {e}")
                return HandlerOutcome.FAILED

            context = parse_request(data, peer_address=peer_address)
            self._status(context.peer_address)
            self._status(context.method)
            self._status(context.uri)
            self._status(context.http_version)

            if context.method == "OPTIONS":
                self._send_header(conn)
                return HandlerOutcome.PREFLIGHT

            if context.method == "GET":
                if self._send_header(conn):
                    self._stream(conn)
                return HandlerOutcome.STREAMED

            logger.warning(
                "Unsupported method %r from %s, closing without a response",
                context.method, context.peer_address,
            )
            return HandlerOutcome.UNSUPPORTED

    def _send_header(self, conn: socket.socket) -> bool:
        try:
            conn.sendall(self._response_header)
        except OSError as e:
            self._status(f"server error (write): {e}")
            return False
        return True

    def _stream(self, conn: socket.socket) -> None:
        runner = self._runner_factory(self._config.command, self._config.terminate_timeout)
        try:
            runner.start()
        except CommandLaunchError as e:
            logger.error("%s", e)
            self._status(str(e))
            return

        session = StreamingSession(runner, chunk_size=self._config.chunk_size)
        try:
            session.run(conn)
        finally:
            runner.stop()

        if session.aborted:
            self._status(ABORTED_MESSAGE)
