"""Request schemas for untrusted input.

Messages attached through the helpers below are shown to end users, so
they are written as plain sentences rather than Pydantic's defaults.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from typing import Annotated, Any, Literal
from uuid import UUID

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)
from pydantic_core import PydanticCustomError

from docinbox.models import InboundMessage

MAX_UPLOAD_BYTES = 10 * 1024 * 1024
MAX_SMS_LENGTH = 1600

_URL_ADAPTER: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


def _required(message: str) -> BeforeValidator:
    def check(value: Any) -> Any:
        if value is None or value == "":
            raise PydanticCustomError("required", message)
        return value

    return BeforeValidator(check)


def _uuid(message: str) -> BeforeValidator:
    def check(value: Any) -> UUID:
        if isinstance(value, UUID):
            return value
        try:
            return UUID(str(value))
        except ValueError:
            raise PydanticCustomError("uuid", message) from None

    return BeforeValidator(check)


def _absolute_url(message: str) -> Callable[[str], str]:
    def check(value: str) -> str:
        try:
            _URL_ADAPTER.validate_python(value)
        except ValidationError:
            raise PydanticCustomError("url", message) from None
        return value

    return check


def _none_as_empty(value: Any) -> Any:
    return [] if value is None else value


def _max_file_size(value: int) -> int:
    if value > MAX_UPLOAD_BYTES:
        raise PydanticCustomError("file_size", "File size must be less than 10MB")
    return value


CUSTOM_ERROR_TYPES = frozenset({"required", "uuid", "url", "file_size"})

MediaUrl = Annotated[str, AfterValidator(_absolute_url("Invalid media URL"))]
UserId = Annotated[UUID, _uuid("Invalid user ID")]
DocumentId = Annotated[UUID, _uuid("Invalid document ID")]


class _Schema(BaseModel):
    # Unknown fields are dropped so newer provider payloads keep validating.
    model_config = ConfigDict(extra="ignore", frozen=True)


# --- SMS ---


class SmsWebhook(_Schema):
    sender: Annotated[str, _required("Phone number is required")] = Field(
        default=None, validate_default=True,
    )
    body: Annotated[str, _required("Message body is required")] = Field(
        default=None, validate_default=True,
    )
    media_urls: Annotated[list[MediaUrl], BeforeValidator(_none_as_empty)] = Field(
        default_factory=list,
    )
    timestamp: datetime | None = None

    def to_message(self) -> InboundMessage:
        return InboundMessage(
            sender=self.sender,
            body=self.body,
            media_urls=list(self.media_urls),
            timestamp=self.timestamp or datetime.now(UTC),
        )


class OutboundSms(_Schema):
    to: Annotated[str, _required("Recipient phone number is required")] = Field(
        default=None, validate_default=True,
    )
    body: Annotated[str, _required("Message body is required")] = Field(
        default=None, validate_default=True, max_length=MAX_SMS_LENGTH,
    )


# --- Documents ---


class DocumentUpload(_Schema):
    file_name: Annotated[str, _required("File name is required")] = Field(
        default=None, validate_default=True,
    )
    file_size: Annotated[int, AfterValidator(_max_file_size)] = Field(ge=0)
    category: Annotated[str, _required("Category is required")] = Field(
        default=None, validate_default=True,
    )
    subcategory: str | None = None
    tags: list[str] = Field(default_factory=list)
    user_id: UserId


class DocumentAnalysisRequest(_Schema):
    document_id: DocumentId
    user_id: UserId
    analysis_type: Literal["basic", "detailed", "compliance"] = "basic"


class DocumentSearch(_Schema):
    query: Annotated[str, _required("Search query is required")] = Field(
        default=None, validate_default=True,
    )
    category: str | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    status: Literal["uploading", "processing", "analyzed", "error"] | None = None
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


InsightType = Literal[
    "tax_optimization",
    "insurance_gap",
    "investment_opportunity",
    "compliance_check",
    "risk_assessment",
]


class InsightGeneration(_Schema):
    document_id: DocumentId
    user_id: UserId
    insight_types: list[InsightType] = Field(
        default_factory=lambda: ["tax_optimization"],
    )
    priority: Literal["low", "medium", "high"] = "medium"


# --- User preferences ---


class NotificationPreferences(_Schema):
    email: bool = True
    sms: bool = False
    push: bool = True


class PrivacyPreferences(_Schema):
    share_analytics: bool = False
    allow_marketing: bool = False


class DisplayPreferences(_Schema):
    language: Literal["en", "es", "fr"] = "en"
    timezone: str = "UTC"
    currency: Literal["USD", "EUR", "GBP"] = "USD"


class UserPreferences(_Schema):
    user_id: UserId
    notifications: NotificationPreferences
    privacy: PrivacyPreferences
    preferences: DisplayPreferences
