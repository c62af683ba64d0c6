"""Logging setup for pipestream.

The server reports its lifecycle twice: through the status sink and
through the ``pipestream`` logger configured here. Status messages go out
at DEBUG from the listener and handler, and ``LoggingStatusSink`` repeats
them at INFO for the CLI.
"""

from __future__ import annotations

import logging
import sys

from pipestream.config.settings import LoggingConfig


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Attach handlers to the 'pipestream' logger.

    Every call starts from a clean logger: handlers left by an earlier
    call are detached and closed before the new ones are added, so the
    CLI and tests can call it repeatedly without duplicated output or
    leaked log files.

    Args:
        config: Level, record format and optional log file. If None,
                INFO level to stderr. An unknown level name falls back
                to INFO.
    """
    if config is None:
        config = LoggingConfig()

    pkg_logger = logging.getLogger("pipestream")
    pkg_logger.setLevel(getattr(logging, config.level.upper(), logging.INFO))

    for handler in list(pkg_logger.handlers):
        pkg_logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    pkg_logger.addHandler(stderr_handler)

    if config.file:
        file_handler = logging.FileHandler(config.file)
        file_handler.setFormatter(formatter)
        pkg_logger.addHandler(file_handler)

    pkg_logger.info("Logging initialized at %s level", config.level)
