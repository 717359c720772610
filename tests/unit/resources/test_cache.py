"""Unit tests for QueryCache invalidation semantics."""

from __future__ import annotations

import asyncio

import pytest

from portal_client.cache import CacheInvalidator, QueryCache
from portal_client.core.errors import ServerError
from portal_client.core.models import Outcome


class Loader:
    def __init__(self, *outcomes: Outcome) -> None:
        self.outcomes = list(outcomes)
        self.calls = 0

    async def __call__(self) -> Outcome:
        self.calls += 1
        return self.outcomes[min(self.calls, len(self.outcomes)) - 1]


@pytest.mark.anyio
async def test_fetch_caches_success() -> None:
    cache = QueryCache()
    loader = Loader(Outcome.ok(200, [1]), Outcome.ok(200, [2]))

    first = await cache.fetch("students", loader)
    second = await cache.fetch(("students",), loader)

    assert first.data == [1]
    assert second is first
    assert loader.calls == 1


@pytest.mark.anyio
async def test_failures_are_not_cached() -> None:
    cache = QueryCache()
    loader = Loader(Outcome.fail(ServerError("boom", status=500)), Outcome.ok(200, [1]))

    failed = await cache.fetch("students", loader)
    assert failed.success is False
    assert "students" not in cache

    ok = await cache.fetch("students", loader)
    assert ok.data == [1]
    assert loader.calls == 2


@pytest.mark.anyio
async def test_invalidate_drops_every_key_of_resource() -> None:
    cache = QueryCache()
    for key in [("students",), ("students", 1), ("students", "list", (("q", "a"),)), ("courses",)]:
        await cache.fetch(key, Loader(Outcome.ok(200, key)))

    dropped = cache.invalidate("students")

    assert dropped == 3
    assert ("students", 1) not in cache
    assert "courses" in cache
    assert cache.invalidate("students") == 0


@pytest.mark.anyio
async def test_invalidation_during_load_discards_stale_result() -> None:
    cache = QueryCache()
    started = asyncio.Event()
    release = asyncio.Event()

    async def slow() -> Outcome:
        started.set()
        await release.wait()
        return Outcome.ok(200, ["stale"])

    task = asyncio.create_task(cache.fetch("students", slow))
    await started.wait()
    cache.invalidate("students")
    release.set()
    outcome = await task

    assert outcome.data == ["stale"]
    assert "students" not in cache


@pytest.mark.anyio
async def test_clear_discards_in_flight_reads_of_any_resource() -> None:
    cache = QueryCache()
    release = asyncio.Event()

    async def slow() -> Outcome:
        await release.wait()
        return Outcome.ok(200, "previous session")

    task = asyncio.create_task(cache.fetch(("courses", 1), slow))
    await asyncio.sleep(0)
    cache.clear()
    release.set()
    await task

    assert len(cache) == 0


@pytest.mark.anyio
async def test_entries_expire_after_ttl() -> None:
    now = [0.0]
    cache = QueryCache(ttl=10.0, timer=lambda: now[0])
    loader = Loader(Outcome.ok(200, "v1"), Outcome.ok(200, "v2"))

    await cache.fetch("students", loader)
    now[0] = 11.0
    refreshed = await cache.fetch("students", loader)

    assert refreshed.data == "v2"
    assert cache.peek("students") is refreshed


def test_empty_key_rejected() -> None:
    with pytest.raises(ValueError):
        QueryCache().peek(())


def test_cache_satisfies_invalidator_protocol() -> None:
    assert isinstance(QueryCache(), CacheInvalidator)
