"""Command runner and the process-to-socket streaming session.

CommandRunner launches the configured command line through ``/bin/sh``
and exposes its standard output as an unbuffered byte stream. Standard
error is inherited from the server and the exit status is never checked:
the command's stdout is the whole contract.

StreamingSession copies that stream into a client socket chunk by chunk
until the command closes its output or the client goes away.
"""

from __future__ import annotations

import logging
import socket
import subprocess

from pipestream.config.settings import CHUNK_SIZE

logger = logging.getLogger(__name__)

DEFAULT_TERMINATE_TIMEOUT = 5.0


class CommandLaunchError(Exception):
    """Raised when the configured command cannot be spawned."""


class CommandRunner:
    """Owns one shell subprocess and its stdout pipe.

    Usage::

        with CommandRunner("cat /dev/urandom") as runner:
            chunk = runner.read(1764)

    Leaving the ``with`` block closes the pipe, terminates the process if
    it is still running and reaps it.
    """

    def __init__(
        self,
        command: str,
        terminate_timeout: float = DEFAULT_TERMINATE_TIMEOUT,
    ) -> None:
        self._command = command
        self._terminate_timeout = terminate_timeout
        self._process: subprocess.Popen[bytes] | None = None

    @property
    def command(self) -> str:
        return self._command

    @property
    def is_running(self) -> bool:
        return self._process is not None and self._process.poll() is None

    @property
    def pid(self) -> int | None:
        return self._process.pid if self._process is not None else None

    def start(self) -> None:
        """Spawn the command with stdout piped back to us."""
        if self._process is not None:
            raise CommandLaunchError("command already started")
        try:
            self._process = subprocess.Popen(
                self._command,
                shell=True,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                bufsize=0,
            )
        except (OSError, ValueError) as e:
            raise CommandLaunchError(f"server error (popen): {e}") from e
        logger.info("Started command %r (pid=%d)", self._command, self._process.pid)

    def read(self, size: int = CHUNK_SIZE) -> bytes:
        """Read up to ``size`` bytes of output; ``b""`` means end-of-stream."""
        if self._process is None or self._process.stdout is None:
            raise CommandLaunchError("command not started")
        return self._process.stdout.read(size) or b""

    def stop(self) -> None:
        """Close the pipe, terminate the process if needed and reap it.

        Safe to call more than once.
        """
        process = self._process
        if process is None:
            return
        self._process = None

        # Closing first makes a still-writing command (or its children)
        # die of SIGPIPE even if it ignores SIGTERM.
        if process.stdout is not None:
            try:
                process.stdout.close()
            except OSError:
                pass

        if process.poll() is None:
            process.terminate()
            try:
                process.wait(timeout=self._terminate_timeout)
            except subprocess.TimeoutExpired:
                logger.warning("Command pid=%d did not terminate, killing", process.pid)
                process.kill()
                process.wait()
        logger.info("Command pid=%d finished (returncode=%s)", process.pid, process.returncode)

    def __enter__(self) -> CommandRunner:
        self.start()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.stop()


class StreamingSession:
    """Relays a runner's output into a connected socket.

    Each read of at most ``chunk_size`` bytes is written to the socket in
    full before the next read, so bytes arrive in order and in chunks no
    larger than ``chunk_size``. The session ends on end-of-stream, on the
    first failed write (client gone) or on a pipe read error. A failed
    write is never retried.
    """

    def __init__(self, runner: CommandRunner, chunk_size: int = CHUNK_SIZE) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self._runner = runner
        self._chunk_size = chunk_size
        self.total_bytes_forwarded = 0
        self.aborted = False

    @property
    def chunk_size(self) -> int:
        return self._chunk_size

    def run(self, conn: socket.socket) -> int:
        """Stream until done and return the number of bytes forwarded."""
        while True:
            try:
                chunk = self._runner.read(self._chunk_size)
            except OSError as e:
                logger.warning("Reading command output failed: %s", e)
                break
            if not chunk:
                logger.debug("Command output reached end-of-stream")
                break
            try:
                conn.sendall(chunk)
            except OSError as e:
                logger.info("Client write failed, aborting stream: %s", e)
                self.aborted = True
                break
            self.total_bytes_forwarded += len(chunk)

        logger.info(
            "Streaming session ended: %d bytes forwarded%s",
            self.total_bytes_forwarded,
            " (aborted)" if self.aborted else "",
        )
        return self.total_bytes_forwarded
