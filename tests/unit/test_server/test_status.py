"""Tests for the status sink implementations."""

from __future__ import annotations

import logging

import pytest

from pipestream.server.status import CallbackStatusSink, LoggingStatusSink, StatusSink


class TestStatusSinkInterface:
    def test_cannot_instantiate_abstract_class(self) -> None:
        with pytest.raises(TypeError):
            StatusSink()  # type: ignore[abstract]


class TestCallbackStatusSink:
    def test_forwards_messages_in_order(self) -> None:
        received: list[str] = []
        sink = CallbackStatusSink(received.append)
        sink.notify("socket created successfully")
        sink.notify("connection accepted")
        assert received == ["socket created successfully", "connection accepted"]

    def test_return_value_ignored(self) -> None:
        sink = CallbackStatusSink(lambda message: 42)
        assert sink.notify("anything") is None

    def test_rejects_non_callable(self) -> None:
        with pytest.raises(TypeError, match="callable"):
            CallbackStatusSink(None)  # type: ignore[arg-type]

    def test_callback_errors_propagate(self) -> None:
        def explode(message: str) -> None:
            raise ValueError(message)

        with pytest.raises(ValueError, match="boom"):
            CallbackStatusSink(explode).notify("boom")


class TestLoggingStatusSink:
    def test_logs_at_info(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="pipestream.server.status"):
            LoggingStatusSink().notify("server listening for connections")
        assert caplog.records[-1].getMessage() == "server listening for connections"
        assert caplog.records[-1].levelno == logging.INFO

    def test_custom_level(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="pipestream.server.status"):
            LoggingStatusSink(level=logging.WARNING).notify("aborted")
        assert caplog.records[-1].levelno == logging.WARNING
