"""Structured logging helpers for the request pipeline.

This module purposefully restricts **which** contextual attributes are attached
to log records in order to avoid accidentally leaking secrets.  The helpers
ONLY inject the following *non-sensitive* fields:

- ``method``         – HTTP verb of the logical call
- ``path``           – Request path relative to the base URL (query dropped)
- ``correlation_id`` – Per-call identifier (first 8 chars kept)
- ``attempt``        – 1-based attempt number

Usage
-----
>>> from portal_client.core.log_utils import get_request_logger
>>> log = get_request_logger(method="GET", path="/students", correlation_id="9f2c...")
>>> log.info("Sending request")

The adapter is a thin wrapper around :class:`logging.LoggerAdapter`.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, MutableMapping


class _RequestLoggerAdapter(logging.LoggerAdapter):
    """Inject whitelisted request context into log records."""

    extra_keys = ("method", "path", "correlation_id", "attempt")

    def __init__(self, logger: logging.Logger, extra: Mapping[str, Any] | None = None):
        extra_clean: MutableMapping[str, Any] = {}
        for k in self.extra_keys:
            if not extra or extra.get(k) is None:
                continue
            if k == "correlation_id":
                extra_clean[k] = str(extra[k])[:8]
            elif k == "path":
                # query strings may carry identifiers
                extra_clean[k] = str(extra[k]).split("?", 1)[0]
            else:
                extra_clean[k] = extra[k]
        super().__init__(logger, extra_clean)

    def process(self, msg: str, kwargs: MutableMapping[str, Any]):
        if "extra" not in kwargs or kwargs["extra"] is None:
            kwargs["extra"] = {}
        # merge but do not overwrite call-site provided extras
        for k, v in self.extra.items():
            kwargs["extra"].setdefault(k, v)
        return msg, kwargs

    def bind(self, **extra: Any) -> "_RequestLoggerAdapter":
        """Return a sibling adapter with *extra* merged in."""
        merged = dict(self.extra)
        merged.update(extra)
        return _RequestLoggerAdapter(self.logger, merged)


def get_request_logger(
    *,
    base_logger_name: str = "portal-client.http.pipeline",
    method: str | None = None,
    path: str | None = None,
    correlation_id: str | None = None,
    attempt: int | None = None,
) -> _RequestLoggerAdapter:
    """Return a LoggerAdapter pre-filled with request context."""
    logger = logging.getLogger(base_logger_name)
    return _RequestLoggerAdapter(
        logger,
        {
            "method": method,
            "path": path,
            "correlation_id": correlation_id,
            "attempt": attempt,
        },
    )
