"""Error taxonomy: a closed set of failure kinds and their wire envelopes."""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"
    UNKNOWN = "unknown"

    @property
    def status_code(self) -> int:
        return _STATUS_CODES[self]

    @property
    def code(self) -> str:
        return _CODES[self]


_STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.AUTHENTICATION: 401,
    ErrorKind.AUTHORIZATION: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.INTERNAL: 500,
    ErrorKind.UNKNOWN: 500,
}

_CODES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "VALIDATION_ERROR",
    ErrorKind.AUTHENTICATION: "AUTHENTICATION_ERROR",
    ErrorKind.AUTHORIZATION: "AUTHORIZATION_ERROR",
    ErrorKind.NOT_FOUND: "NOT_FOUND",
    ErrorKind.CONFLICT: "CONFLICT",
    ErrorKind.INTERNAL: "INTERNAL_ERROR",
    ErrorKind.UNKNOWN: "UNKNOWN_ERROR",
}

_DEFAULT_MESSAGES: dict[ErrorKind, str] = {
    ErrorKind.VALIDATION: "Validation failed",
    ErrorKind.AUTHENTICATION: "Authentication required",
    ErrorKind.AUTHORIZATION: "Insufficient permissions",
    ErrorKind.NOT_FOUND: "Resource not found",
    ErrorKind.CONFLICT: "Resource conflict",
    ErrorKind.INTERNAL: "Internal server error",
    ErrorKind.UNKNOWN: "An unexpected error occurred",
}


class AppError(Exception):
    """A tagged application failure.

    The kind pins both the HTTP status code and the machine-readable code
    string; callers only choose the message and optional details.
    """

    def __init__(
        self,
        kind: ErrorKind,
        message: str | None = None,
        details: Any = None,
    ) -> None:
        self.kind = kind
        self.message = message if message is not None else _DEFAULT_MESSAGES[kind]
        self.details = details
        super().__init__(self.message)

    @property
    def status_code(self) -> int:
        return self.kind.status_code

    @property
    def code(self) -> str:
        return self.kind.code

    @classmethod
    def validation(cls, message: str, details: Any = None) -> AppError:
        return cls(ErrorKind.VALIDATION, message, details)

    @classmethod
    def authentication(cls, message: str | None = None) -> AppError:
        return cls(ErrorKind.AUTHENTICATION, message)

    @classmethod
    def authorization(cls, message: str | None = None) -> AppError:
        return cls(ErrorKind.AUTHORIZATION, message)

    @classmethod
    def not_found(cls, message: str | None = None) -> AppError:
        return cls(ErrorKind.NOT_FOUND, message)

    @classmethod
    def conflict(cls, message: str | None = None) -> AppError:
        return cls(ErrorKind.CONFLICT, message)

    @classmethod
    def internal(cls, message: str | None = None, details: Any = None) -> AppError:
        return cls(ErrorKind.INTERNAL, message, details)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, AppError):
            return NotImplemented
        return (
            self.kind == other.kind
            and self.message == other.message
            and self.details == other.details
        )

    def __hash__(self) -> int:
        return hash((self.kind, self.message))

    def __repr__(self) -> str:
        return f"AppError(kind={self.kind.value!r}, message={self.message!r})"


def normalize_error(error: object) -> AppError:
    """Convert any failure value into an AppError.

    AppErrors pass through untouched, other exceptions become INTERNAL with
    their message kept, and anything else (including exceptions without a
    message) becomes UNKNOWN.
    """
    if isinstance(error, AppError):
        return error
    if isinstance(error, Exception) and str(error):
        return AppError(ErrorKind.INTERNAL, str(error))
    return AppError(ErrorKind.UNKNOWN)


def format_error_response(error: AppError) -> dict[str, Any]:
    body: dict[str, Any] = {
        "message": error.message,
        "code": error.code,
        "statusCode": error.status_code,
    }
    if error.details:
        body["details"] = error.details
    return {"success": False, "error": body}


def format_success_response(data: Any, message: str | None = None) -> dict[str, Any]:
    envelope: dict[str, Any] = {"success": True, "data": data}
    if message:
        envelope["message"] = message
    return envelope
