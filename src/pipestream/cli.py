"""Command-line interface for pipestream.

Provides the main entry point for starting the streaming server and for
inspecting the response header block it sends.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pipestream",
        description="Stream a shell command's output to an HTTP client",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/pipestream.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser("serve", help="Run the streaming server")
    serve_parser.add_argument(
        "shell_command", nargs="?", default=None,
        help="Shell command whose stdout is streamed (default: server.command from config)",
    )
    serve_parser.add_argument("--host", type=str, default=None, help="Address to bind")
    serve_parser.add_argument("--port", type=int, default=None, help="Port to listen on")
    serve_parser.add_argument(
        "--forever", action="store_true",
        help="Keep accepting connections after a GET has been served",
    )
    serve_parser.add_argument(
        "--no-isolation-headers", action="store_true",
        help="Omit the Cross-Origin-Opener/Embedder-Policy headers",
    )

    subparsers.add_parser("headers", help="Print the response header block and exit")

    return parser.parse_args(argv)


def _server_overrides(args: argparse.Namespace) -> dict:
    """Collect the config values given on the command line."""
    overrides: dict = {}
    if args.shell_command is not None:
        overrides["command"] = args.shell_command
    if args.host is not None:
        overrides["host"] = args.host
    if args.port is not None:
        overrides["port"] = args.port
    if args.forever:
        overrides["serve_once"] = False
    if args.no_isolation_headers:
        overrides["isolation_headers"] = False
    return overrides


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the pipestream CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from pipestream.config.settings import load_settings
    from pipestream.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    if args.command == "headers":
        from pipestream.server.handler import build_response_header

        header = build_response_header(
            server_name=settings.server.server_name,
            isolation_headers=settings.server.isolation_headers,
        )
        sys.stdout.write(header.decode("latin-1"))

    elif args.command == "serve":
        from pydantic import ValidationError

        from pipestream.server.listener import ServerError, serve
        from pipestream.server.status import LoggingStatusSink

        try:
            config = settings.server.with_overrides(**_server_overrides(args))
        except ValidationError as e:
            logger.error("Invalid server configuration: %s", e)
            sys.exit(2)
        if not config.command:
            logger.error("No command given on the command line or in server.command")
            sys.exit(2)

        logger.info("Starting server for command: %s", config.command)
        try:
            serve(config, LoggingStatusSink())
        except ServerError as e:
            logger.error("%s", e)
            sys.exit(1)


if __name__ == "__main__":
    main()
