"""Default processing collaborator: turn an inbound SMS into replies."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

from docinbox.models import InboundMessage, Intent, IntentAction, ProcessingResult

if TYPE_CHECKING:
    from docinbox.observability.logger import StructuredLogger
    from docinbox.sms.sender import SmsSender

DocumentIntake = Callable[[str, str, str], Awaitable[None]]
InsightsProvider = Callable[[str], Awaitable[str]]

UPLOAD_ACK = "Document received and processing started. You'll get an update shortly!"
ATTACH_PROMPT = "Please attach a document image to upload."
ATTACHMENT_FAILED = "Sorry, there was an error processing your document. Please try again."
HELP_TEXT = (
    "Send me photos of your financial documents and I'll analyze them for you! "
    "Try: 'analyze my tax document' with an image attached."
)
FALLBACK_TEXT = (
    "I can help analyze your financial documents. Send me a photo with a "
    "description like 'analyze this tax document'."
)
DEFAULT_INSIGHTS = "Your latest insights are ready. Visit your dashboard for details!"

_UPLOAD_KEYWORDS = ("upload", "analyze", "process")
_INSIGHT_KEYWORDS = ("insight", "summary", "report")
# First match wins.
_CATEGORY_KEYWORDS = (
    ("tax", "tax"),
    ("insurance", "insurance"),
    ("bank", "banking"),
    ("investment", "investments"),
)


class MessageProcessor(Protocol):
    async def process(self, message: InboundMessage) -> ProcessingResult: ...


def parse_intent(text: str) -> Intent:
    lowered = text.lower()

    if any(word in lowered for word in _UPLOAD_KEYWORDS):
        category = next(
            (name for keyword, name in _CATEGORY_KEYWORDS if keyword in lowered),
            "other",
        )
        return Intent(action=IntentAction.UPLOAD_DOCUMENT, category=category)

    if any(word in lowered for word in _INSIGHT_KEYWORDS):
        return Intent(action=IntentAction.GET_INSIGHTS)

    if "help" in lowered or "?" in lowered:
        return Intent(action=IntentAction.HELP)

    return Intent(action=IntentAction.UNKNOWN)


class SmsDocumentProcessor:
    """Routes inbound SMS by intent and answers through the SMS sender.

    Document analysis and insight lookup belong to other services; they are
    plugged in as ``document_intake`` and ``insights_provider``.
    """

    def __init__(
        self,
        sender: SmsSender,
        logger: StructuredLogger,
        document_intake: DocumentIntake | None = None,
        insights_provider: InsightsProvider | None = None,
    ) -> None:
        self._sender = sender
        self._logger = logger
        self._document_intake = document_intake
        self._insights_provider = insights_provider

    async def process(self, message: InboundMessage) -> ProcessingResult:
        try:
            intent = parse_intent(message.body)
            self._logger.debug("Parsed SMS intent", {
                "action": intent.action.value,
                "category": intent.category,
                "mediaCount": len(message.media_urls),
            })

            if intent.action == IntentAction.UPLOAD_DOCUMENT:
                await self._handle_upload(message, intent.category or "other")
            elif intent.action == IntentAction.GET_INSIGHTS:
                await self._sender.send(message.sender, await self._insights(message.sender))
            elif intent.action == IntentAction.HELP:
                await self._sender.send(message.sender, HELP_TEXT)
            else:
                await self._sender.send(message.sender, FALLBACK_TEXT)

            return ProcessingResult(success=True)
        except Exception as exc:
            return ProcessingResult(
                success=False, error=str(exc) or "Webhook processing failed",
            )

    async def _handle_upload(self, message: InboundMessage, category: str) -> None:
        if not message.media_urls:
            await self._sender.send(message.sender, ATTACH_PROMPT)
            return

        for url in message.media_urls:
            await self._process_attachment(url, message.sender, category)
        await self._sender.send(message.sender, UPLOAD_ACK)

    async def _process_attachment(self, url: str, sender: str, category: str) -> None:
        context = {"mediaUrl": url, "category": category}
        if self._document_intake is None:
            self._logger.info("Processing media attachment", context)
            return
        try:
            await self._document_intake(url, sender, category)
        except Exception as exc:
            self._logger.error("Media attachment processing failed", context, exc)
            await self._sender.send(sender, ATTACHMENT_FAILED)

    async def _insights(self, sender: str) -> str:
        if self._insights_provider is None:
            return DEFAULT_INSIGHTS
        return await self._insights_provider(sender)
