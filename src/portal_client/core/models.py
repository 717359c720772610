"""Typed, immutable records used by the session core and request pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Generic, Mapping, TypeVar

from portal_client.core.clock import Clock, default_clock, parse_timestamp
from portal_client.core.errors import ApiError, ErrorKind, error_for_kind

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Credential:
    """Bearer token plus its optional expiry (epoch seconds)."""

    token: str
    expires_at: float | None = None

    def is_expired(self, *, clock: Clock = default_clock) -> bool:
        """Return *True* once *now* reaches *expires_at*; never without an expiry."""
        if self.expires_at is None:
            return False
        return clock() >= self.expires_at


@dataclass(frozen=True, slots=True)
class RequestSpec:
    """Everything needed to (re)issue one logical call.

    Retries reuse the same instance, so the payload can never drift between
    attempts.
    """

    method: str
    path: str
    json: Any = None
    params: Mapping[str, Any] | None = None
    headers: Mapping[str, str] | None = None
    timeout: float | None = None


@dataclass(frozen=True, slots=True)
class RequestAttempt:
    """Per-call retry bookkeeping; a fresh record is derived for every retry."""

    retry_count: int = 0
    is_retrying: bool = False

    @property
    def number(self) -> int:
        """1-based attempt number."""
        return self.retry_count + 1

    def next(self) -> "RequestAttempt":
        return replace(self, retry_count=self.retry_count + 1, is_retrying=True)


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Failure details carried by an unsuccessful :class:`Outcome`."""

    message: str
    code: str
    kind: ErrorKind
    details: Any = None

    @classmethod
    def from_exception(cls, exc: ApiError) -> "ErrorInfo":
        return cls(message=exc.message, code=exc.code, kind=exc.kind, details=exc.details)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"message": self.message, "code": self.code}
        if self.details is not None:
            data["details"] = self.details
        return data


@dataclass(frozen=True, slots=True)
class Outcome(Generic[T]):
    """Uniform result of one pipeline call: exactly one of *data* / *error*."""

    success: bool
    status: int
    data: T | None = None
    error: ErrorInfo | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("successful outcome cannot carry an error")
        if not self.success and self.error is None:
            raise ValueError("failed outcome requires an error")

    @classmethod
    def ok(cls, status: int, data: T | None = None) -> "Outcome[T]":
        return cls(success=True, status=status, data=data)

    @classmethod
    def fail(cls, exc: ApiError) -> "Outcome[T]":
        return cls(success=False, status=exc.status, error=ErrorInfo.from_exception(exc))

    @property
    def kind(self) -> ErrorKind | None:
        return self.error.kind if self.error else None

    @property
    def message(self) -> str | None:
        return self.error.message if self.error else None

    def unwrap(self) -> T | None:
        """Return *data* or raise the :class:`ApiError` matching the failure."""
        if self.success:
            return self.data
        assert self.error is not None
        raise error_for_kind(
            self.error.kind,
            self.error.message,
            status=self.status,
            code=self.error.code,
            details=self.error.details,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"success": self.success, "status": self.status}
        if self.success:
            data["data"] = self.data
        else:
            assert self.error is not None
            data["error"] = self.error.to_dict()
        return data


@dataclass(frozen=True, slots=True)
class LoginRequest:
    email: str
    password: str = field(repr=False)

    def to_payload(self) -> dict[str, str]:
        return {"email": self.email, "password": self.password}


@dataclass(frozen=True, slots=True)
class LoginResponse:
    """Parsed body of a successful login call."""

    token: str
    expires_at: float | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "LoginResponse":
        """Build from ``{"token": ..., "expires_at": <ISO-8601>}``.

        Raises
        ------
        ValueError
            If the token is missing or the timestamp cannot be parsed.
        """
        if not isinstance(payload, Mapping):
            raise ValueError("login response is not an object")
        token = payload.get("token")
        if not token or not isinstance(token, str):
            raise ValueError("login response missing token")
        raw_expiry = payload.get("expires_at")
        if raw_expiry is not None and not isinstance(raw_expiry, str):
            raise ValueError("login response expires_at must be an ISO-8601 string")
        expires_at = parse_timestamp(raw_expiry) if raw_expiry else None
        return cls(token=token, expires_at=expires_at)


@dataclass(frozen=True, slots=True)
class LoginResult:
    """What :meth:`SessionController.login` reports back to the UI."""

    success: bool
    error: str | None = None
