"""Shared test fixtures for docinbox."""

from __future__ import annotations

import logging
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from docinbox.config import AppConfig
from docinbox.models import InboundMessage, ProcessingResult, ProbeResult, ServiceStatus
from docinbox.observability.logger import LogEntry, StructuredLogger

FIXED_TIMESTAMP = "2026-01-01T00:00:00.000Z"


class CapturingSink:
    """LogSink that records every entry it is offered."""

    def __init__(self) -> None:
        self.entries: list[LogEntry] = []

    def send(self, entry: LogEntry) -> None:
        self.entries.append(entry)


class StaticProbe:
    def __init__(self, status: ServiceStatus, ok: bool) -> None:
        self.result = ProbeResult(status=status, ok=ok)
        self.calls = 0

    async def check(self) -> ProbeResult:
        self.calls += 1
        return self.result


class FailingProbe:
    def __init__(self, exc: Exception | None = None) -> None:
        self.exc = exc or RuntimeError("probe exploded")

    async def check(self) -> ProbeResult:
        raise self.exc


@pytest.fixture
def capturing_sink() -> CapturingSink:
    return CapturingSink()


@pytest.fixture
def mock_logger() -> MagicMock:
    return MagicMock(spec=StructuredLogger)


@pytest.fixture
def dev_logger() -> StructuredLogger:
    return StructuredLogger(development=True, clock=lambda: FIXED_TIMESTAMP)


@pytest.fixture
def caplog_docinbox(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG, logger="docinbox")
    return caplog


# --- Factory functions for test data ---


def make_config(**kwargs: Any) -> AppConfig:
    """Factory for a fully configured AppConfig."""
    defaults: dict[str, Any] = {
        "environment": "test",
        "version": "9.9.9",
        "anthropic_api_key": "sk-test",
        "twilio_account_sid": "AC123",
        "twilio_auth_token": "token",
        "twilio_phone_number": "+15550000000",
        "supabase_url": None,
        "supabase_anon_key": None,
    }
    defaults.update(kwargs)
    return AppConfig(**defaults)


def make_message(**kwargs: Any) -> InboundMessage:
    defaults: dict[str, Any] = {
        "sender": "+15551234567",
        "body": "Hello",
        "media_urls": [],
    }
    defaults.update(kwargs)
    return InboundMessage(**defaults)


def make_processor(result: ProcessingResult | None = None) -> AsyncMock:
    """Processing collaborator returning ``result`` (success by default)."""
    processor = AsyncMock()
    processor.process.return_value = result or ProcessingResult(success=True)
    return processor


def make_form(**kwargs: str) -> dict[str, str]:
    defaults = {"From": "+15551234567", "Body": "Hello", "NumMedia": "0"}
    defaults.update(kwargs)
    return defaults
