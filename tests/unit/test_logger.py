"""Tests for the structured logger."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from docinbox.config import AppConfig
from docinbox.observability.logger import (
    HttpLogSink,
    LogEntry,
    LogLevel,
    StructuredLogger,
    format_entry,
)
from tests.conftest import FIXED_TIMESTAMP, CapturingSink


def _make_logger(**kwargs: object) -> StructuredLogger:
    defaults: dict[str, object] = {"development": False, "clock": lambda: FIXED_TIMESTAMP}
    defaults.update(kwargs)
    return StructuredLogger(**defaults)  # type: ignore[arg-type]


class TestFormatEntry:
    def test_message_only(self) -> None:
        entry = LogEntry(timestamp=FIXED_TIMESTAMP, level=LogLevel.INFO, message="hello")
        assert format_entry(entry) == f"[{FIXED_TIMESTAMP}] INFO  hello"

    def test_level_padded_to_five(self) -> None:
        entry = LogEntry(timestamp="t", level=LogLevel.WARN, message="m")
        assert format_entry(entry) == "[t] WARN  m"
        entry = LogEntry(timestamp="t", level=LogLevel.DEBUG, message="m")
        assert format_entry(entry) == "[t] DEBUG m"

    def test_context_rendered_as_compact_json(self) -> None:
        entry = LogEntry(
            timestamp="t", level=LogLevel.INFO, message="m", context={"a": 1, "b": "x"},
        )
        assert format_entry(entry) == '[t] INFO  m | {"a":1,"b":"x"}'

    def test_empty_context_omitted(self) -> None:
        entry = LogEntry(timestamp="t", level=LogLevel.INFO, message="m", context={})
        assert format_entry(entry) == "[t] INFO  m"

    def test_error_segment(self) -> None:
        entry = LogEntry(
            timestamp="t",
            level=LogLevel.ERROR,
            message="failed",
            context={"id": 7},
            error=ValueError("bad value"),
        )
        assert format_entry(entry) == '[t] ERROR failed | {"id":7} | Error: bad value'

    def test_traceback_appended_when_requested(self) -> None:
        try:
            raise ValueError("with trace")
        except ValueError as exc:
            entry = LogEntry(timestamp="t", level=LogLevel.ERROR, message="m", error=exc)
        line = format_entry(entry, include_traceback=True)
        assert line.startswith("[t] ERROR m | Error: with trace\n")
        assert "Traceback" in line


class TestRouting:
    def test_debug_suppressed_outside_development(
        self, caplog_docinbox: pytest.LogCaptureFixture,
    ) -> None:
        _make_logger().debug("hidden")
        assert caplog_docinbox.records == []

    def test_debug_emitted_in_development(
        self, caplog_docinbox: pytest.LogCaptureFixture,
    ) -> None:
        _make_logger(development=True).debug("shown")
        assert len(caplog_docinbox.records) == 1
        assert caplog_docinbox.records[0].levelno == logging.DEBUG
        assert caplog_docinbox.records[0].getMessage().endswith("DEBUG shown")

    @pytest.mark.parametrize(("method", "levelno"), [
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
    ])
    def test_other_levels_always_emitted(
        self, caplog_docinbox: pytest.LogCaptureFixture, method: str, levelno: int,
    ) -> None:
        getattr(_make_logger(), method)("message")
        assert [r.levelno for r in caplog_docinbox.records] == [levelno]

    def test_log_api_request(self, caplog_docinbox: pytest.LogCaptureFixture) -> None:
        _make_logger().log_api_request("GET", "/api/health", 200, 12.4)
        message = caplog_docinbox.records[0].getMessage()
        assert "API Request" in message
        assert '"statusCode":200' in message
        assert '"duration":"12ms"' in message


class TestExternalSink:
    def test_errors_offered_to_sink_in_production(self, capturing_sink: CapturingSink) -> None:
        err = RuntimeError("kaboom")
        _make_logger(sink=capturing_sink).error("failed", {"k": "v"}, err)
        assert len(capturing_sink.entries) == 1
        entry = capturing_sink.entries[0]
        assert entry.level == LogLevel.ERROR
        assert entry.error is err
        assert entry.context == {"k": "v"}

    def test_non_error_levels_not_sent(self, capturing_sink: CapturingSink) -> None:
        logger = _make_logger(sink=capturing_sink)
        logger.info("i")
        logger.warn("w")
        assert capturing_sink.entries == []

    def test_sink_skipped_in_development(self, capturing_sink: CapturingSink) -> None:
        _make_logger(development=True, sink=capturing_sink).error("failed")
        assert capturing_sink.entries == []

    def test_sink_failure_logged_not_raised(
        self, caplog_docinbox: pytest.LogCaptureFixture,
    ) -> None:
        sink = MagicMock()
        sink.send.side_effect = ConnectionError("collector down")
        _make_logger(sink=sink).error("original failure")

        messages = [r.getMessage() for r in caplog_docinbox.records]
        assert len(messages) == 2
        assert "original failure" in messages[0]
        assert "Failed to send log to external service" in messages[1]
        assert "collector down" in messages[1]

    def test_from_config_builds_http_sink(self) -> None:
        config = AppConfig(environment="production", log_sink_url="http://logs.local/ingest")
        logger = StructuredLogger.from_config(config)
        assert logger.development is False
        assert isinstance(logger._sink, HttpLogSink)

    def test_from_config_without_sink(self) -> None:
        logger = StructuredLogger.from_config(AppConfig())
        assert logger.development is True
        assert logger._sink is None


class TestHttpLogSink:
    def test_posts_synchronously_without_event_loop(self) -> None:
        sink = HttpLogSink("http://logs.local/ingest")
        entry = LogEntry(
            timestamp="t", level=LogLevel.ERROR, message="m", error=ValueError("v"),
        )
        with patch("docinbox.observability.logger.httpx.post") as mock_post:
            sink.send(entry)

        mock_post.assert_called_once()
        payload = mock_post.call_args[1]["json"]
        assert payload["level"] == "error"
        assert payload["error"] == {"type": "ValueError", "message": "v"}

    @pytest.mark.asyncio
    async def test_schedules_task_inside_event_loop(self) -> None:
        sink = HttpLogSink("http://logs.local/ingest")
        entry = LogEntry(timestamp="t", level=LogLevel.ERROR, message="m")
        with patch.object(sink, "_post", new_callable=AsyncMock) as mock_post:
            sink.send(entry)
            assert len(sink._pending) == 1
            await next(iter(sink._pending))

        mock_post.assert_called_once()
        assert mock_post.call_args[0][0]["message"] == "m"
