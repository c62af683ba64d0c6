"""Data structures flowing through the server.

ConnectionContext is what the handler learned from one request;
HandlerOutcome tells the listener how that connection was dealt with.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field


class HandlerOutcome(str, enum.Enum):
    """How the connection handler disposed of one connection."""

    PREFLIGHT = "preflight"  # OPTIONS answered with the header block
    STREAMED = "streamed"  # GET served (body streamed, or an attempt made)
    UNSUPPORTED = "unsupported"  # Any other method; nothing sent
    FAILED = "failed"  # The request could not be read


class ConnectionContext(BaseModel):
    """The parsed request line of one accepted connection.

    Parsing is deliberately lenient: missing tokens are empty strings and
    nothing is validated.
    """

    model_config = ConfigDict(frozen=True)

    raw_request: bytes = Field(default=b"", description="Bytes received in the single request read")
    method: str = Field(default="")
    uri: str = Field(default="")
    http_version: str = Field(default="")
    peer_address: str = Field(default="", description="Client IP address")
