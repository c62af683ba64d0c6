"""Configuration management for pipestream.

Loads settings from a YAML configuration file with environment variable
overrides (PIPESTREAM_ prefix, ``__`` for nested keys). Supports .env files.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/pipestream.yaml")

DEFAULT_PORT = 8080
# Bytes taken from the client in the single request read
REQUEST_BUFFER_SIZE = 1024
# 441 * 4: 441 frames of 16-bit stereo PCM (10ms at 44.1kHz)
CHUNK_SIZE = 1764


class ServerConfig(BaseModel):
    """Immutable runtime configuration of the streaming server."""

    model_config = ConfigDict(frozen=True)

    command: str = Field(default="", description="Shell command line whose stdout is streamed")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=DEFAULT_PORT, ge=0, le=65535)
    server_name: str = Field(default="pipestream", description="Value of the Server header")
    isolation_headers: bool = Field(
        default=True,
        description="Emit the Cross-Origin-Opener/Embedder-Policy headers",
    )
    serve_once: bool = Field(
        default=True,
        description="Stop accepting after the first GET has been streamed",
    )
    reuse_address: bool = Field(default=True)
    request_buffer_size: int = Field(default=REQUEST_BUFFER_SIZE, gt=0)
    chunk_size: int = Field(default=CHUNK_SIZE, gt=0)
    terminate_timeout: float = Field(default=5.0, gt=0)

    def with_overrides(self, **overrides: object) -> ServerConfig:
        """Return a copy with ``overrides`` applied and validated.

        Unlike ``model_copy(update=...)`` the field constraints are checked,
        so a bad value raises ValidationError here instead of at bind time.
        """
        return ServerConfig.model_validate({**self.model_dump(), **overrides})


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for pipestream.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "PIPESTREAM_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    server: ServerConfig = Field(default_factory=ServerConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Values present in the YAML file win; environment variables and .env
    entries fill in whatever the file leaves unset.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    return Settings(**yaml_data)
