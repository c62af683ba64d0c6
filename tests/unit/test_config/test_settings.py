"""Tests for configuration loading and validation."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from pipestream.config.settings import (
    CHUNK_SIZE,
    REQUEST_BUFFER_SIZE,
    LoggingConfig,
    ServerConfig,
    Settings,
    load_settings,
)


class TestSettings:
    """Test configuration models and loading."""

    def test_default_settings(self) -> None:
        """Default Settings should be valid."""
        settings = Settings()
        assert settings.server.port == 8080
        assert settings.server.host == "0.0.0.0"
        assert settings.logging.level == "INFO"

    def test_server_config_defaults(self) -> None:
        config = ServerConfig()
        assert config.command == ""
        assert config.request_buffer_size == REQUEST_BUFFER_SIZE == 1024
        assert config.chunk_size == CHUNK_SIZE == 1764
        assert config.isolation_headers is True
        assert config.serve_once is True
        assert config.server_name == "pipestream"

    def test_server_config_is_immutable(self) -> None:
        config = ServerConfig(command="true")
        with pytest.raises(ValidationError):
            config.port = 9000  # type: ignore[misc]

    def test_with_overrides_applies_values(self) -> None:
        config = ServerConfig(port=9000).with_overrides(command="yes", serve_once=False)
        assert config.command == "yes"
        assert config.serve_once is False
        assert config.port == 9000

    def test_with_overrides_validates(self) -> None:
        with pytest.raises(ValidationError):
            ServerConfig().with_overrides(port=70000)
        with pytest.raises(ValidationError):
            ServerConfig().with_overrides(command=123)

    @pytest.mark.parametrize("field,value", [
        ("port", -1),
        ("port", 70000),
        ("chunk_size", 0),
        ("request_buffer_size", 0),
        ("terminate_timeout", 0),
    ])
    def test_invalid_values_rejected(self, field: str, value: int) -> None:
        with pytest.raises(ValidationError):
            ServerConfig(**{field: value})

    def test_logging_config_defaults(self) -> None:
        config = LoggingConfig()
        assert config.file is None
        assert "%(message)s" in config.format

    def test_load_settings_missing_file(self, tmp_path: Path) -> None:
        """load_settings with missing file should return defaults."""
        settings = load_settings(tmp_path / "nonexistent.yaml")
        assert settings.server.port == 8080
        assert settings.server.command == ""

    def test_load_settings_from_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "pipestream.yaml"
        path.write_text(
            "server:\n"
            "  command: \"cat /dev/urandom\"\n"
            "  port: 9090\n"
            "  isolation_headers: false\n"
            "logging:\n"
            "  level: DEBUG\n"
        )
        settings = load_settings(path)
        assert settings.server.command == "cat /dev/urandom"
        assert settings.server.port == 9090
        assert settings.server.isolation_headers is False
        assert settings.server.chunk_size == 1764
        assert settings.logging.level == "DEBUG"

    def test_load_settings_empty_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_settings(path).server.port == 8080

    def test_load_settings_invalid_yaml_value(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("server:\n  port: not-a-port\n")
        with pytest.raises(ValidationError):
            load_settings(path)

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("PIPESTREAM_SERVER__PORT", "9001")
        monkeypatch.setenv("PIPESTREAM_SERVER__COMMAND", "echo hi")
        settings = Settings()
        assert settings.server.port == 9001
        assert settings.server.command == "echo hi"
