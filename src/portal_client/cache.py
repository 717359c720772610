"""Cached query layer for server-derived state.

Successful read outcomes are kept in a :class:`cachetools.TTLCache` keyed by
tuples whose first element is the logical resource name (``("students",)``,
``("students", 42)``).  Mutations call :meth:`QueryCache.invalidate` with the
resource name *after* their Success outcome; every key of that resource is
dropped and a per-resource generation is bumped, so a read that was already
in flight cannot write stale data back.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Awaitable, Callable, Hashable, Protocol, Tuple, Union, runtime_checkable

from cachetools import TTLCache

from portal_client.core.models import Outcome

_LOG = logging.getLogger("portal-client.cache")

QueryKey = Tuple[Hashable, ...]
KeyLike = Union[str, QueryKey]


def _normalise(key: KeyLike) -> QueryKey:
    if isinstance(key, str):
        return (key,)
    if not key:
        raise ValueError("query key must not be empty")
    return tuple(key)


@runtime_checkable
class CacheInvalidator(Protocol):
    """Capability the mutation verbs depend on."""

    def invalidate(self, resource: str) -> int: ...


class QueryCache:
    def __init__(
        self,
        *,
        maxsize: int = 256,
        ttl: float = 300.0,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: TTLCache[QueryKey, Outcome] = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._generations: dict[Hashable, int] = {}
        self._epoch = 0

    def __contains__(self, key: KeyLike) -> bool:
        return _normalise(key) in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def peek(self, key: KeyLike) -> Outcome | None:
        return self._entries.get(_normalise(key))

    def _stamp(self, resource: Hashable) -> tuple[int, int]:
        return self._epoch, self._generations.get(resource, 0)

    async def fetch(self, key: KeyLike, loader: Callable[[], Awaitable[Outcome]]) -> Outcome:
        """Return the cached outcome for *key* or load, cache and return it.

        Failure outcomes are returned but never cached.
        """
        qkey = _normalise(key)
        cached = self._entries.get(qkey)
        if cached is not None:
            _LOG.debug("Cache hit for %s", qkey[0])
            return cached
        stamp = self._stamp(qkey[0])
        outcome = await loader()
        if not outcome.success:
            return outcome
        if stamp != self._stamp(qkey[0]):
            _LOG.debug("Discarding result for %s invalidated while loading", qkey[0])
            return outcome
        self._entries[qkey] = outcome
        return outcome

    def invalidate(self, resource: str) -> int:
        """Mark every key of *resource* stale; returns how many entries were dropped."""
        self._generations[resource] = self._generations.get(resource, 0) + 1
        stale = [k for k in list(self._entries.keys()) if k[0] == resource]
        for k in stale:
            self._entries.pop(k, None)
        _LOG.debug("Invalidated %d cached entr%s for %s", len(stale), "y" if len(stale) == 1 else "ies", resource)
        return len(stale)

    def clear(self) -> None:
        """Forget everything, including reads still in flight."""
        self._epoch += 1
        self._entries.clear()
