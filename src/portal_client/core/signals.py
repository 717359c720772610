"""Single-consumer channel for "the server rejected our credential".

The request pipeline is the only sender, the session controller the only
receiver.  Keeping the channel explicit lets both sides be constructed
independently at the composition root.
"""

from __future__ import annotations

import logging
from typing import Callable, Protocol, runtime_checkable

_LOG = logging.getLogger("portal-client.core.signals")


@runtime_checkable
class UnauthorizedNotifier(Protocol):
    """Capability invoked synchronously when an auth rejection occurs."""

    def notify_unauthorized(self) -> None: ...


class UnauthorizedSignal:
    """Deliver auth-rejection notifications to exactly one listener."""

    def __init__(self) -> None:
        self._listener: Callable[[], None] | None = None
        self.fired: int = 0

    @property
    def connected(self) -> bool:
        return self._listener is not None

    def connect(self, listener: Callable[[], None]) -> None:
        """Register *listener*; a second registration is a programming error."""
        if self._listener is not None and self._listener != listener:
            raise RuntimeError("UnauthorizedSignal already has a listener")
        self._listener = listener

    def disconnect(self) -> None:
        self._listener = None

    def notify_unauthorized(self) -> None:
        self.fired += 1
        if self._listener is None:
            _LOG.warning("Auth rejection received but no session listener is connected")
            return
        self._listener()
