"""Exception types raised inside the request pipeline.

Only lightweight, **data-carrying** exceptions live here.  The pipeline raises
them while classifying a response and converts them into an
:class:`~portal_client.core.models.Outcome` before returning, so no raw fault
ever crosses its boundary.  Callers that prefer exceptions can get them back
through :meth:`Outcome.unwrap`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Final


class ErrorKind(str, Enum):
    """Classification attached to every failure outcome."""

    NETWORK_ERROR = "NETWORK_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# User-facing texts, suitable for direct display.
MSG_NETWORK_ERROR: Final[str] = "Network error. Please check your connection."
MSG_UNAUTHORIZED: Final[str] = "Your session has expired. Please login again."
MSG_FORBIDDEN: Final[str] = "You do not have permission to access this resource."
MSG_NOT_FOUND: Final[str] = "The requested resource was not found."
MSG_SERVER_ERROR: Final[str] = "An error occurred on the server. Please try again later."
MSG_VALIDATION_ERROR: Final[str] = "Please check your input and try again."
MSG_DEFAULT: Final[str] = "An unexpected error occurred. Please try again."

NETWORK_ERROR_CODE: Final[str] = "NETWORK_ERROR"


class ApiError(RuntimeError):
    """Base class for every classified request failure."""

    kind: ErrorKind = ErrorKind.UNKNOWN_ERROR

    def __init__(
        self,
        message: str | None = None,
        *,
        status: int = 0,
        code: str | None = None,
        details: Any = None,
    ) -> None:
        super().__init__(message or MSG_DEFAULT)
        self.status: int = status
        self.code: str = code or (f"HTTP_{status}" if status else self.kind.value)
        self.details: Any = details

    @property
    def message(self) -> str:
        return str(self)

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serialisable payload **without secrets**."""
        payload: dict[str, Any] = {
            "message": self.message,
            "code": self.code,
            "kind": self.kind.value,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload


class NetworkError(ApiError):
    """No response reached the client (DNS, refused connection, timeout)."""

    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, message: str | None = None, *, details: Any = None) -> None:
        super().__init__(
            message or MSG_NETWORK_ERROR,
            status=0,
            code=NETWORK_ERROR_CODE,
            details=details,
        )


class AuthError(ApiError):
    """401/403: terminal, never retried, always ends the session."""

    kind = ErrorKind.AUTH_ERROR


class ValidationError(ApiError):
    """400 with a field-level message from the server."""

    kind = ErrorKind.VALIDATION_ERROR


class NotFoundError(ApiError):
    kind = ErrorKind.NOT_FOUND


class ServerError(ApiError):
    kind = ErrorKind.SERVER_ERROR


class UnknownError(ApiError):
    kind = ErrorKind.UNKNOWN_ERROR


_BY_KIND: Final[dict[ErrorKind, type[ApiError]]] = {
    ErrorKind.NETWORK_ERROR: NetworkError,
    ErrorKind.AUTH_ERROR: AuthError,
    ErrorKind.VALIDATION_ERROR: ValidationError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.SERVER_ERROR: ServerError,
    ErrorKind.UNKNOWN_ERROR: UnknownError,
}


def error_for_kind(
    kind: ErrorKind | str,
    message: str,
    *,
    status: int = 0,
    code: str | None = None,
    details: Any = None,
) -> ApiError:
    """Instantiate the :class:`ApiError` subclass registered for *kind*."""
    cls = _BY_KIND[ErrorKind(kind)]
    if cls is NetworkError:
        return NetworkError(message, details=details)
    return cls(message, status=status, code=code, details=details)
