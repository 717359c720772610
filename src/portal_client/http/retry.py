"""Exponential backoff schedule for transport failures.

Delay before retry *n* (1-based) is ``min(base_ms * 2**n, cap_ms)``.  No
jitter is applied, so concurrent calls that fail together also retry
together.
"""

from __future__ import annotations

from dataclasses import dataclass

from portal_client.config import (
    DEFAULT_MAX_RETRIES,
    DEFAULT_RETRY_BASE_MS,
    DEFAULT_RETRY_CAP_MS,
    ClientConfig,
)
from portal_client.core.models import RequestAttempt


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    max_retries: int = DEFAULT_MAX_RETRIES
    base_ms: int = DEFAULT_RETRY_BASE_MS
    cap_ms: int = DEFAULT_RETRY_CAP_MS

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")

    @classmethod
    def from_config(cls, config: ClientConfig) -> "RetryPolicy":
        return cls(
            max_retries=config.max_retries,
            base_ms=config.retry_base_ms,
            cap_ms=config.retry_cap_ms,
        )

    def should_retry(self, attempt: RequestAttempt) -> bool:
        """True while *attempt* still has retry budget left."""
        return attempt.retry_count < self.max_retries

    def delay_for(self, retry_number: int) -> float:
        """Seconds to wait before retry *retry_number* (>= 1)."""
        if retry_number < 1:
            raise ValueError("retry_number starts at 1")
        return min(self.base_ms * 2**retry_number, self.cap_ms) / 1000

    def schedule(self) -> list[float]:
        """Every delay a never-recovering call will sleep through, in order."""
        return [self.delay_for(n) for n in range(1, self.max_retries + 1)]
