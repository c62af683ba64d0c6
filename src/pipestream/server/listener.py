"""TCP listener loop and the ``webserver`` entry call.

The listener binds one socket, accepts connections one at a time and
hands each to the ConnectionHandler inline. It is a single-shot content
provider: once a GET has been streamed it stops accepting (unless
``serve_once`` is turned off). OPTIONS preflights never stop it, so a
browser's preflight followed by the real GET are both served.
"""

from __future__ import annotations

import logging
import socket
from typing import Callable

from pydantic import ValidationError

from pipestream.config.settings import ServerConfig
from pipestream.server.handler import ConnectionHandler
from pipestream.server.models import HandlerOutcome
from pipestream.server.status import CallbackStatusSink, StatusSink

logger = logging.getLogger(__name__)


class ServerError(Exception):
    """Raised when the listening socket cannot be set up."""


class Listener:
    """Owns the listening socket and runs the serial accept loop.

    Usage::

        with Listener(config, sink) as listener:
            listener.bind()
            listener.serve()
    """

    def __init__(
        self,
        config: ServerConfig,
        sink: StatusSink,
        handler: ConnectionHandler | None = None,
    ) -> None:
        self._config = config
        self._sink = sink
        self._handler = handler if handler is not None else ConnectionHandler(config, sink)
        self._sock: socket.socket | None = None
        self._connections_served = 0

    @property
    def is_bound(self) -> bool:
        return self._sock is not None

    @property
    def address(self) -> tuple[str, int]:
        """The (host, port) actually bound; useful with port 0."""
        if self._sock is None:
            raise ServerError("listener is not bound")
        host, port = self._sock.getsockname()[:2]
        return host, port

    @property
    def connections_served(self) -> int:
        return self._connections_served

    def _status(self, message: str) -> None:
        logger.debug("status: %s", message)
        self._sink.notify(message)

    def bind(self) -> None:
        """Create, bind and listen. Any failure here is fatal."""
        if self._sock is not None:
            raise ServerError("listener is already bound")

        try:
            sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        except OSError as e:
            raise ServerError(f"server error (socket): {e}") from e

        try:
            self._status("socket created successfully")
            self._bind_and_listen(sock)
        except BaseException:
            sock.close()
            raise
        self._sock = sock
        self._status("server listening for connections")
        logger.info("Listening on %s:%d", *self.address)

    def _bind_and_listen(self, sock: socket.socket) -> None:
        try:
            if self._config.reuse_address:
                sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self._config.host, self._config.port))
        except (OSError, OverflowError) as e:
            raise ServerError(f"server error (bind): {e}") from e
        self._status("socket successfully bound to address")

        try:
            sock.listen(socket.SOMAXCONN)
        except OSError as e:
            raise ServerError(f"server error (listen): {e}") from e

    def serve(self) -> None:
        """Accept and handle connections until a GET has been served.

        With ``serve_once`` disabled this only returns if the status sink
        or the handler raises.
        """
        if self._sock is None:
            raise ServerError("listener is not bound")

        while True:
            try:
                conn, _ = self._sock.accept()
            except OSError as e:
                self._status(f"server error (accept): {e}")
                continue
            self._status("connection accepted")

            outcome = self._handler.handle(conn)
            self._connections_served += 1
            logger.info("Connection handled: %s", outcome.value)

            if outcome is HandlerOutcome.STREAMED and self._config.serve_once:
                logger.info("Content request served, no longer accepting connections")
                return

    def close(self) -> None:
        if self._sock is not None:
            self._sock.close()
            self._sock = None
            logger.info("Listener closed")

    def __enter__(self) -> Listener:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()


def serve(config: ServerConfig, sink: StatusSink) -> None:
    """Bind, serve and always release the listening socket."""
    with Listener(config, sink) as listener:
        listener.bind()
        listener.serve()


def webserver(
    command: str,
    callback: Callable[[str], object],
    config: ServerConfig | None = None,
) -> None:
    """Stream ``command``'s stdout to the next GET client on port 8080.

    ``callback`` receives every status message. Setup failures, including
    a command or config that does not validate, raise ServerError;
    everything else is only reported through ``callback``.
    """
    if not callable(callback):
        raise TypeError("callback must be callable")
    base = config or ServerConfig()
    try:
        resolved = base.with_overrides(command=command)
    except ValidationError as e:
        raise ServerError(f"server error (config): {e}") from e
    serve(resolved, CallbackStatusSink(callback))
