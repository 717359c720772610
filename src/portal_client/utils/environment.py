"""Utility functions for reading client settings from the environment."""

import logging
import os
from typing import Final, Tuple

logger = logging.getLogger("portal-client.utils.environment")

_TRUTHY: Final[Tuple[str, ...]] = ("true", "1", "yes", "y", "on")
_FALSY: Final[Tuple[str, ...]] = ("false", "0", "no", "n", "off")


def _truthy(value: str | None) -> bool:
    return (value or "").strip().lower() in _TRUTHY


def _bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean flag.

    Unset or blank values fall back to *default*; unrecognised values are
    logged and also fall back to *default*.
    """
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if _truthy(value):
        return True
    if value in _FALSY:
        return False
    logger.warning("Ignoring unrecognised boolean %s=%r", name, raw)
    return default


def _int_env(name: str, default: int, *, minimum: int | None = None) -> int:
    """Read an integer setting, raising ``ValueError`` that names the variable."""
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float_env(name: str, default: float, *, minimum: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if minimum is not None and value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _str_env(name: str, default: str | None = None) -> str | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()
