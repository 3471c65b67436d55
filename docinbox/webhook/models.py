"""Data models for the SMS webhook pipeline."""

from __future__ import annotations

from dataclasses import dataclass

TWIML_CONTENT_TYPE = "text/xml"


@dataclass(frozen=True)
class WebhookResponse:
    """Rendered reply for the SMS provider."""

    text: str
    status_code: int
    body: str
    media_type: str = TWIML_CONTENT_TYPE

    @property
    def ok(self) -> bool:
        return self.status_code == 200
