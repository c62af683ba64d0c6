"""Status sinks: side-channel observers for server lifecycle milestones.

The listener and connection handler report human-readable messages
("socket created successfully", "connection accepted", the parsed request
line, "aborted", ...) through a StatusSink. The sink is injected, so the
same server loop can report to a host callback, to the console, or to a
test recorder without knowing which.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

logger = logging.getLogger(__name__)


class StatusSink(ABC):
    """Abstract observer receiving server status messages.

    Example usage::

        class PrintSink(StatusSink):
            def notify(self, message: str) -> None:
                print(message)

        serve(config, PrintSink())
    """

    @abstractmethod
    def notify(self, message: str) -> None:
        """Receive one status message.

        Errors raised here are not caught by the server; they propagate
        out of the serving loop to whoever started it.
        """
        ...


class CallbackStatusSink(StatusSink):
    """Forwards every message to a plain callable, ignoring its result."""

    def __init__(self, callback: Callable[[str], object]) -> None:
        if not callable(callback):
            raise TypeError("status callback must be callable")
        self._callback = callback

    def notify(self, message: str) -> None:
        self._callback(message)


class LoggingStatusSink(StatusSink):
    """Writes status messages to the pipestream logger."""

    def __init__(self, level: int = logging.INFO) -> None:
        self._level = level

    def notify(self, message: str) -> None:
        logger.log(self._level, "%s", message)
