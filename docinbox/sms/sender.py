"""Outbound SMS delivery through the Twilio Messages API.

Without a complete credential triple the sender runs in demo mode and only
logs what it would have sent.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol

import httpx

from docinbox.models import ProcessingResult

if TYPE_CHECKING:
    from docinbox.config import AppConfig
    from docinbox.observability.logger import StructuredLogger

_MAX_RETRIES = 3
_BACKOFF_CAP_SECONDS = 30
_TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


class SmsSender(Protocol):
    async def send(self, to: str, body: str) -> ProcessingResult: ...


class TwilioSmsSender:
    """Sends SMS replies via Twilio's REST API."""

    def __init__(
        self,
        account_sid: str | None,
        auth_token: str | None,
        from_number: str | None,
        logger: StructuredLogger,
    ) -> None:
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._logger = logger

    @classmethod
    def from_config(cls, config: AppConfig, logger: StructuredLogger) -> TwilioSmsSender:
        return cls(
            account_sid=config.twilio_account_sid,
            auth_token=config.twilio_auth_token,
            from_number=config.twilio_phone_number,
            logger=logger,
        )

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    async def send(self, to: str, body: str) -> ProcessingResult:
        if not self.configured:
            self._logger.info(f"Demo SMS to {to}: {body}")
            return ProcessingResult(
                success=True, message="SMS sent successfully (demo mode)",
            )

        url = f"{_TWILIO_API_BASE}/Accounts/{self._account_sid}/Messages.json"
        data = {"To": to, "From": self._from_number, "Body": body}
        auth = (self._account_sid or "", self._auth_token or "")

        try:
            async with httpx.AsyncClient(verify=True) as client:
                for attempt in range(_MAX_RETRIES + 1):
                    resp = await client.post(url, data=data, auth=auth)

                    if resp.status_code < 400:
                        return ProcessingResult(
                            success=True, message="SMS sent successfully",
                        )
                    if not self._should_retry(resp.status_code):
                        break
                    if attempt < _MAX_RETRIES:
                        delay = min(2 ** attempt, _BACKOFF_CAP_SECONDS)
                        await asyncio.sleep(delay)
        except httpx.HTTPError as exc:
            self._logger.error("SMS delivery failed", {"to": to}, exc)
            return ProcessingResult(success=False, error=str(exc) or "SMS sending failed")

        self._logger.warn(
            "SMS delivery rejected", {"to": to, "statusCode": resp.status_code},
        )
        return ProcessingResult(
            success=False,
            error=f"SMS sending failed with status {resp.status_code}",
        )

    @staticmethod
    def _should_retry(status_code: int) -> bool:
        """Only 429 (rate limit) and 5xx (server error) are retried."""
        return status_code == 429 or status_code >= 500
