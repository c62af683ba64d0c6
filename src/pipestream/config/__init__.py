"""Configuration management for pipestream.

Loads and validates YAML-based configuration with Pydantic models.
Supports environment variable overrides via the PIPESTREAM_ prefix.
"""

from pipestream.config.settings import (
    LoggingConfig,
    ServerConfig,
    Settings,
    load_settings,
)

__all__ = ["LoggingConfig", "ServerConfig", "Settings", "load_settings"]
