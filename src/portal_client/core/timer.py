"""Recurring expiry check with an explicit, cancelable handle.

The watch is not a correctness mechanism (:meth:`CredentialStore.get`
already self-invalidates); it evicts stale sessions promptly so the UI can
react without waiting for the next request.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

_LOG = logging.getLogger("portal-client.core.timer")

Sleep = Callable[[float], Awaitable[None]]


class ExpiryWatch:
    """Poll *is_expired* every *interval* seconds and call *on_expired* once.

    Use :meth:`start` inside a running event loop and :meth:`cancel` on
    teardown; both are idempotent.
    """

    def __init__(
        self,
        is_expired: Callable[[], bool],
        on_expired: Callable[[], None],
        *,
        interval: float = 60.0,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self._is_expired = is_expired
        self._on_expired = on_expired
        self.interval = interval
        self._sleep = sleep
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="portal-client-expiry-watch"
        )
        _LOG.debug("Expiry watch started (interval=%ss)", self.interval)

    def cancel(self) -> None:
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            _LOG.debug("Expiry watch cancelled")

    async def wait(self) -> None:
        """Wait for the watch to finish; a cancelled watch counts as finished."""
        task = self._task
        if task is None:
            return
        try:
            await task
        except asyncio.CancelledError:
            if not task.cancelled():
                raise

    async def _run(self) -> None:
        while True:
            await self._sleep(self.interval)
            if self._is_expired():
                _LOG.info("Credential expiry detected by watch")
                try:
                    self._on_expired()
                except Exception:  # noqa: BLE001 – nobody awaits the watch task
                    _LOG.exception("Expiry callback raised")
                return
