"""Structured logger: one human-readable line per entry, errors mirrored to a sink."""

from __future__ import annotations

import asyncio
import json
import logging
import traceback
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

import httpx

if TYPE_CHECKING:
    from docinbox.config import AppConfig

_module_logger = logging.getLogger(__name__)

CHANNEL_NAME = "docinbox"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"


_STDLIB_LEVELS = {
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
}


@dataclass(frozen=True)
class LogEntry:
    timestamp: str
    level: LogLevel
    message: str
    context: dict[str, Any] | None = None
    error: BaseException | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": self.timestamp,
            "level": self.level.value,
            "message": self.message,
        }
        if self.context:
            data["context"] = self.context
        if self.error is not None:
            data["error"] = {"type": type(self.error).__name__, "message": str(self.error)}
        return data


class LogSink(Protocol):
    """External destination for error-level entries."""

    def send(self, entry: LogEntry) -> None: ...


def _iso_now() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_entry(entry: LogEntry, include_traceback: bool = False) -> str:
    """Render `[timestamp] LEVEL message | context | Error: message`."""
    line = f"[{entry.timestamp}] {entry.level.value.upper():<5} {entry.message}"
    if entry.context:
        line += f" | {json.dumps(entry.context, default=str, separators=(',', ':'))}"
    if entry.error is not None:
        line += f" | Error: {entry.error}"
        if include_traceback and entry.error.__traceback__ is not None:
            line += "\n" + "".join(traceback.format_exception(entry.error)).rstrip()
    return line


class StructuredLogger:
    """Leveled logger writing to the stdlib ``docinbox`` channel.

    Holds no per-request state, so one instance is shared by every request.
    Debug output only appears in development mode; outside development,
    error entries are also offered to the external sink.
    """

    def __init__(
        self,
        development: bool = False,
        sink: LogSink | None = None,
        channel: logging.Logger | None = None,
        clock: Callable[[], str] = _iso_now,
    ) -> None:
        self.development = development
        self._sink = sink
        self._channel = channel or logging.getLogger(CHANNEL_NAME)
        self._clock = clock

    @classmethod
    def from_config(cls, config: AppConfig) -> StructuredLogger:
        sink = HttpLogSink(config.log_sink_url) if config.log_sink_url else None
        return cls(development=config.development, sink=sink)

    def debug(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log(LogLevel.DEBUG, message, context)

    def info(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log(LogLevel.INFO, message, context)

    def warn(self, message: str, context: dict[str, Any] | None = None) -> None:
        self._log(LogLevel.WARN, message, context)

    def error(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None:
        self._log(LogLevel.ERROR, message, context, error)

    def log_api_request(
        self, method: str, url: str, status_code: int, duration_ms: float,
    ) -> None:
        self.info("API Request", {
            "method": method,
            "url": url,
            "statusCode": status_code,
            "duration": f"{duration_ms:.0f}ms",
        })

    def log_error(
        self, error: BaseException, context: dict[str, Any] | None = None,
    ) -> None:
        self.error("An error occurred", context, error)

    def _log(
        self,
        level: LogLevel,
        message: str,
        context: dict[str, Any] | None = None,
        error: BaseException | None = None,
    ) -> None:
        if level == LogLevel.DEBUG and not self.development:
            return

        entry = LogEntry(
            timestamp=self._clock(),
            level=level,
            message=message,
            context=context,
            error=error,
        )
        self._channel.log(
            _STDLIB_LEVELS[level],
            format_entry(entry, include_traceback=self.development),
        )

        if level == LogLevel.ERROR and not self.development and self._sink:
            self._offer_to_sink(entry)

    def _offer_to_sink(self, entry: LogEntry) -> None:
        try:
            self._sink.send(entry)  # type: ignore[union-attr]
        except Exception as exc:
            fallback = LogEntry(
                timestamp=self._clock(),
                level=LogLevel.ERROR,
                message="Failed to send log to external service",
                error=exc,
            )
            self._channel.error(format_entry(fallback))


class HttpLogSink:
    """Posts error entries as JSON to a log collector endpoint.

    Inside a running event loop the post is scheduled as a task so the
    caller never waits on the collector.
    """

    def __init__(self, url: str, timeout: float = 5.0) -> None:
        self._url = url
        self._timeout = timeout
        self._pending: set[asyncio.Task[None]] = set()

    def send(self, entry: LogEntry) -> None:
        payload = json.loads(json.dumps(entry.to_dict(), default=str))
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            resp = httpx.post(self._url, json=payload, timeout=self._timeout)
            resp.raise_for_status()
            return

        task = loop.create_task(self._post(payload))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _post(self, payload: dict[str, Any]) -> None:
        try:
            async with httpx.AsyncClient() as client:
                resp = await client.post(self._url, json=payload, timeout=self._timeout)
                resp.raise_for_status()
        except httpx.HTTPError as exc:
            _module_logger.warning("Log sink %s rejected entry: %s", self._url, exc)
