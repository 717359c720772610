"""Logging helpers shared across portal_client."""

from __future__ import annotations

import logging


def mask_sensitive(value: str | None, keep: int = 4) -> str:
    """Return *value* with everything after the first *keep* characters hidden.

    >>> mask_sensitive("eyJhbGciOiJIUzI1NiJ9", 4)
    'eyJh****'
    """
    if not value:
        return "<empty>"
    if len(value) <= keep:
        return "*" * len(value)
    return f"{value[:keep]}****"


def setup_logging(level: str | int = logging.WARNING) -> logging.Logger:
    """Configure the ``portal-client`` logger hierarchy and return its root."""
    logger = logging.getLogger("portal-client")
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logger.addHandler(handler)
    return logger
