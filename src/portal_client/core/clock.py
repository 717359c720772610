"""Clock abstraction for testable time handling in the session core.

This module defines a `Clock` protocol representing callables that return the
current UNIX timestamp as ``float``.  Every expiry decision inside
``portal_client`` MUST depend on an injected ``Clock`` instance rather than
calling ``time.time()`` or ``datetime.now()`` directly.

Example
-------
>>> from portal_client.core.clock import default_clock
>>> now = default_clock()
>>> isinstance(now, float)
True
"""

from __future__ import annotations

import re
import time
from datetime import datetime, timezone
from typing import Final, Protocol, runtime_checkable

# fromisoformat on 3.10 only accepts exactly 3 or 6 fractional digits
_FRACTION: Final = re.compile(r"(\d{2}:\d{2}:\d{2})\.(\d+)")


@runtime_checkable
class Clock(Protocol):
    """Callable protocol returning *seconds* since the UNIX epoch."""

    def __call__(self) -> float: ...


def default_clock() -> float:
    """Default implementation that delegates to ``time.time()``.

    Returns
    -------
    float
        Seconds since the UNIX epoch.
    """
    return time.time()


def parse_timestamp(value: str) -> float:
    """Convert an ISO-8601 string into epoch seconds.

    A trailing ``Z`` and naive values are read as UTC; fractional seconds
    of any precision are cut or padded to microseconds.

    Raises
    ------
    ValueError
        If *value* is not a valid ISO-8601 timestamp.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    text = _FRACTION.sub(lambda m: f"{m.group(1)}.{m.group(2)[:6].ljust(6, '0')}", text, count=1)
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def format_timestamp(epoch: float) -> str:
    """Render epoch seconds as a UTC ISO-8601 string."""
    return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()
