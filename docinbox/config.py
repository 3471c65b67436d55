"""Environment-driven application configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from docinbox import __version__


@dataclass(frozen=True)
class AppConfig:
    environment: str = "development"
    version: str = __version__
    anthropic_api_key: str | None = None
    twilio_account_sid: str | None = None
    twilio_auth_token: str | None = None
    twilio_phone_number: str | None = None
    supabase_url: str | None = None
    supabase_anon_key: str | None = None
    log_sink_url: str | None = None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Build config from environment variables; empty values count as unset."""
        env = os.environ if environ is None else environ

        def get(name: str) -> str | None:
            return env.get(name) or None

        return cls(
            environment=get("APP_ENV") or "development",
            version=get("APP_VERSION") or __version__,
            anthropic_api_key=get("ANTHROPIC_API_KEY"),
            twilio_account_sid=get("TWILIO_ACCOUNT_SID"),
            twilio_auth_token=get("TWILIO_AUTH_TOKEN"),
            twilio_phone_number=get("TWILIO_PHONE_NUMBER"),
            supabase_url=get("SUPABASE_URL"),
            supabase_anon_key=get("SUPABASE_ANON_KEY"),
            log_sink_url=get("LOG_SINK_URL"),
        )

    @property
    def development(self) -> bool:
        return self.environment == "development"

    @property
    def ai_configured(self) -> bool:
        return bool(self.anthropic_api_key)

    @property
    def sms_configured(self) -> bool:
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_phone_number
        )

    @property
    def demo_mode(self) -> bool:
        """No database credentials: the database check is stubbed out."""
        return not (self.supabase_url and self.supabase_anon_key)
