"""Shared Pydantic data models for docinbox."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

# --- Enums ---


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class ServiceStatus(str, Enum):
    UNKNOWN = "unknown"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"
    NOT_CONFIGURED = "not_configured"
    DEMO_MODE = "demo_mode"


class IntentAction(str, Enum):
    UPLOAD_DOCUMENT = "upload_document"
    GET_INSIGHTS = "get_insights"
    HELP = "help"
    UNKNOWN = "unknown"


def _now() -> datetime:
    return datetime.now(UTC)


def _now_iso() -> str:
    return _now().isoformat()


# --- Messaging Models ---


class InboundMessage(BaseModel):
    """A validated inbound SMS ready for processing."""

    model_config = ConfigDict(frozen=True)

    sender: str = Field(min_length=1)
    body: str = Field(min_length=1)
    media_urls: list[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_now)


class ProcessingResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    message: str | None = None
    error: str | None = None


class Intent(BaseModel):
    model_config = ConfigDict(frozen=True)

    action: IntentAction
    category: str | None = None


# --- Health Models ---


class ProbeResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: ServiceStatus
    ok: bool


class HealthReport(BaseModel):
    status: HealthStatus = HealthStatus.HEALTHY
    timestamp: str = Field(default_factory=_now_iso)
    uptime: float = 0.0
    environment: str
    version: str
    services: dict[str, ServiceStatus]
    checks: dict[str, bool]

    @property
    def http_status(self) -> int:
        if self.status == HealthStatus.HEALTHY:
            return 200
        if self.status == HealthStatus.DEGRADED:
            return 503
        return 500
