"""HTTP request pipeline: auth injection, error classification, retries."""

from __future__ import annotations

from .pipeline import RequestPipeline  # noqa: F401
from .retry import RetryPolicy  # noqa: F401

__all__ = ["RequestPipeline", "RetryPolicy"]
