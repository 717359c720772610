"""Session core package.

This namespace hosts the **HTTP-agnostic** building blocks shared by the
request pipeline and the session controller.

Sub-modules
-----------
clock
    Test-friendly time abstraction and ISO-8601 helpers.
models
    Immutable dataclasses: credential, outcome, per-attempt record.
errors
    Error taxonomy and data-carrying exception types.
store
    Credential store with a best-effort session medium.
claims
    Unverified JWT payload decoding.
signals
    Single-consumer unauthorized notification channel.
timer
    Cancelable recurring expiry check.
log_utils
    Structured logging helpers (thin wrapper around :pymod:`logging`).

All public objects are re-exported here for convenience.
"""

from __future__ import annotations

from .clock import Clock, default_clock  # noqa: F401
from .claims import jwt_expiry, parse_jwt  # noqa: F401
from .errors import (  # noqa: F401
    ApiError,
    AuthError,
    ErrorKind,
    NetworkError,
    NotFoundError,
    ServerError,
    UnknownError,
    ValidationError,
)
from .log_utils import get_request_logger  # noqa: F401
from .models import Credential, ErrorInfo, Outcome, RequestAttempt  # noqa: F401
from .signals import UnauthorizedNotifier, UnauthorizedSignal  # noqa: F401
from .store import CredentialStore, DiskSessionMedium, MemoryMedium, SessionMedium  # noqa: F401
from .timer import ExpiryWatch  # noqa: F401

__all__ = [
    # clock
    "Clock",
    "default_clock",
    # claims
    "jwt_expiry",
    "parse_jwt",
    # errors
    "ApiError",
    "AuthError",
    "ErrorKind",
    "NetworkError",
    "NotFoundError",
    "ServerError",
    "UnknownError",
    "ValidationError",
    # logging helpers
    "get_request_logger",
    # models
    "Credential",
    "ErrorInfo",
    "Outcome",
    "RequestAttempt",
    # signals
    "UnauthorizedNotifier",
    "UnauthorizedSignal",
    # store
    "CredentialStore",
    "DiskSessionMedium",
    "MemoryMedium",
    "SessionMedium",
    # timer
    "ExpiryWatch",
]
