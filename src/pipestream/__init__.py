"""pipestream -- Stream a shell command's output to an HTTP client.

This package implements a tiny single-process TCP server that answers
browser CORS preflights and, for GET, relays the standard output of an
operator-supplied shell command straight into the client connection.
It is a single-shot content provider: one full GET per process by default.
"""

__version__ = "0.1.0"
