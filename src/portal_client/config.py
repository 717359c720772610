"""Client configuration loaded from ``PORTAL_*`` environment variables.

The core consumes these values; it never computes them.  Construct
:class:`ClientConfig` directly in tests and embedders, or call
:meth:`ClientConfig.from_env` at the composition root.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Mapping

from portal_client.utils.environment import (
    _bool_env,
    _float_env,
    _int_env,
    _str_env,
)

DEFAULT_BASE_URL: Final[str] = "http://localhost:8080"
DEFAULT_TIMEOUT_MS: Final[int] = 30_000
DEFAULT_MAX_RETRIES: Final[int] = 3
DEFAULT_RETRY_BASE_MS: Final[int] = 1_000
DEFAULT_RETRY_CAP_MS: Final[int] = 10_000
DEFAULT_EXPIRY_CHECK_SECONDS: Final[float] = 60.0
DEFAULT_CACHE_TTL_SECONDS: Final[float] = 300.0
DEFAULT_HEADERS: Final[Mapping[str, str]] = MappingProxyType(
    {"Content-Type": "application/json"}
)


@dataclass(frozen=True)
class ClientConfig:
    """
    Settings shared by the request pipeline, the session controller and the
    query cache.  A single instance is created per application session.
    """

    base_url: str = DEFAULT_BASE_URL
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_base_ms: int = DEFAULT_RETRY_BASE_MS
    retry_cap_ms: int = DEFAULT_RETRY_CAP_MS
    expiry_check_seconds: float = DEFAULT_EXPIRY_CHECK_SECONDS
    ssl_verify: bool = True
    session_dir: str | None = None
    cache_ttl_seconds: float = DEFAULT_CACHE_TTL_SECONDS
    default_headers: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.timeout_ms <= 0:
            raise ValueError("timeout_ms must be > 0")
        if self.retry_base_ms < 0 or self.retry_cap_ms < 0:
            raise ValueError("retry delays must be >= 0")

    @property
    def timeout_seconds(self) -> float:
        return self.timeout_ms / 1000

    @classmethod
    def from_env(cls) -> "ClientConfig":
        """Build a configuration from ``PORTAL_*`` variables, falling back to defaults."""
        return cls(
            base_url=(_str_env("PORTAL_API_URL", DEFAULT_BASE_URL) or DEFAULT_BASE_URL).rstrip("/"),
            timeout_ms=_int_env("PORTAL_API_TIMEOUT_MS", DEFAULT_TIMEOUT_MS, minimum=1),
            max_retries=_int_env("PORTAL_MAX_RETRIES", DEFAULT_MAX_RETRIES, minimum=0),
            retry_base_ms=_int_env("PORTAL_RETRY_BASE_MS", DEFAULT_RETRY_BASE_MS, minimum=0),
            retry_cap_ms=_int_env("PORTAL_RETRY_CAP_MS", DEFAULT_RETRY_CAP_MS, minimum=0),
            expiry_check_seconds=_float_env(
                "PORTAL_EXPIRY_CHECK_SECONDS", DEFAULT_EXPIRY_CHECK_SECONDS, minimum=0.001
            ),
            ssl_verify=_bool_env("PORTAL_SSL_VERIFY", True),
            session_dir=_str_env("PORTAL_SESSION_DIR"),
            cache_ttl_seconds=_float_env(
                "PORTAL_CACHE_TTL_SECONDS", DEFAULT_CACHE_TTL_SECONDS, minimum=0.001
            ),
        )
