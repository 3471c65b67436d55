"""Inbound SMS webhook.

Pipeline stages:
1. Receive: read From, Body, NumMedia and MediaUrl0..N-1 from the form
2. Validate: webhook schema, rejected payloads never reach the processor
3. Dispatch: hand the InboundMessage to the processing collaborator
4. Evaluate: an unsuccessful ProcessingResult becomes an AppError
5. Render: a TwiML ``<Response><Message>`` document, success or failure

Nothing raised inside the pipeline escapes ``handle``.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any
from xml.sax.saxutils import escape

from docinbox.errors import AppError, normalize_error
from docinbox.validation.validator import validate_sms_webhook
from docinbox.webhook.models import WebhookResponse

if TYPE_CHECKING:
    from docinbox.observability.logger import StructuredLogger
    from docinbox.sms.processor import MessageProcessor

DEFAULT_CONFIRMATION = "Message processed successfully"
PROCESSING_FAILED = "SMS processing failed"
GENERIC_FAILURE = "Sorry, something went wrong. Please try again later."

# Twilio delivers at most 10 attachments per message.
MAX_MEDIA = 10


def render_twiml(text: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        "<Response>\n"
        f"  <Message>{escape(text)}</Message>\n"
        "</Response>"
    )


def parse_media_count(raw: Any) -> int:
    """Non-numeric or negative counts read as zero."""
    try:
        count = int(str(raw).strip()) if raw not in (None, "") else 0
    except ValueError:
        return 0
    return max(0, min(count, MAX_MEDIA))


def extract_payload(form: Mapping[str, Any]) -> dict[str, Any]:
    """Pull the provider fields out of the form into a schema-shaped dict.

    Media indices without a value are skipped, so a gap in
    ``MediaUrl0..MediaUrl{N-1}`` drops that slot and keeps the rest in order.
    """
    media_urls: list[str] = []
    for index in range(parse_media_count(form.get("NumMedia"))):
        url = _text(form.get(f"MediaUrl{index}"))
        if url:
            media_urls.append(url)

    return {
        "sender": _text(form.get("From")),
        "body": _text(form.get("Body")),
        "media_urls": media_urls,
    }


def _text(value: Any) -> str | None:
    # Multipart file parts are not text fields.
    return value if isinstance(value, str) else None


class SmsWebhookHandler:
    """Validates inbound SMS deliveries and renders the provider reply."""

    def __init__(self, processor: MessageProcessor, logger: StructuredLogger) -> None:
        self._processor = processor
        self._logger = logger

    async def handle(self, form: Mapping[str, Any]) -> WebhookResponse:
        try:
            message = validate_sms_webhook(extract_payload(form))
            self._logger.info("Inbound SMS received", {
                "mediaCount": len(message.media_urls),
            })

            result = await self._processor.process(message)
            if not result.success:
                raise AppError.internal(result.error or PROCESSING_FAILED)

            text = result.message or DEFAULT_CONFIRMATION
            return WebhookResponse(text=text, status_code=200, body=render_twiml(text))
        except Exception as exc:
            return self.error_response(exc)

    def error_response(self, failure: BaseException) -> WebhookResponse:
        """Normalize, log and render any failure as a TwiML reply."""
        error = normalize_error(failure)
        self._logger.error("SMS webhook error", {
            "code": error.code,
            "statusCode": error.status_code,
        }, failure)
        text = error.message or GENERIC_FAILURE
        return WebhookResponse(
            text=text, status_code=error.status_code, body=render_twiml(text),
        )
