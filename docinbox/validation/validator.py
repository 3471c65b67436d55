"""Schema validation boundary: untyped input in, typed record or AppError out."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError
from pydantic_core import ErrorDetails

from docinbox.errors import AppError
from docinbox.models import InboundMessage
from docinbox.validation.schemas import CUSTOM_ERROR_TYPES, OutboundSms, SmsWebhook

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def validate(schema: type[SchemaT], data: Any) -> SchemaT:
    """Validate ``data`` against ``schema``.

    Every violation is collected in one pass and reported together in the
    error's details as ``{"field", "message"}`` items.
    """
    try:
        return schema.model_validate(data)
    except ValidationError as exc:
        violations = [_violation(err) for err in exc.errors()]
        summary = "; ".join(v["message"] for v in violations)
        raise AppError.validation(
            f"Validation failed: {summary}", details=violations,
        ) from exc


def validate_sms_webhook(data: Any) -> InboundMessage:
    return validate(SmsWebhook, data).to_message()


def validate_outbound_sms(data: Any) -> OutboundSms:
    return validate(OutboundSms, data)


def _violation(err: ErrorDetails) -> dict[str, str]:
    field = ".".join(str(part) for part in err["loc"]) or "(root)"
    message = err["msg"]
    if err["type"] not in CUSTOM_ERROR_TYPES:
        message = f"{field}: {message}"
    return {"field": field, "message": message}
