"""Streaming server for pipestream.

Public API:
    webserver -- Entry call: stream a command's output to one GET client
    serve -- Same lifecycle with an explicit config and status sink
    Listener -- The serial accept loop
    ConnectionHandler -- Per-connection request handling
    CommandRunner -- Shell subprocess owner
    StatusSink -- Observer interface for lifecycle messages
"""

from pipestream.server.handler import ConnectionHandler, build_response_header, parse_request
from pipestream.server.listener import Listener, ServerError, serve, webserver
from pipestream.server.models import ConnectionContext, HandlerOutcome
from pipestream.server.runner import CommandLaunchError, CommandRunner, StreamingSession
from pipestream.server.status import CallbackStatusSink, LoggingStatusSink, StatusSink

__all__ = [
    "CallbackStatusSink",
    "CommandLaunchError",
    "CommandRunner",
    "ConnectionContext",
    "ConnectionHandler",
    "HandlerOutcome",
    "Listener",
    "LoggingStatusSink",
    "ServerError",
    "StatusSink",
    "StreamingSession",
    "build_response_header",
    "parse_request",
    "serve",
    "webserver",
]
