"""Shared fixtures: fake clock, recording sleep and a scriptable HTTP transport."""

from __future__ import annotations

import asyncio
from typing import Callable, Iterable

import httpx
import pytest

from portal_client.config import ClientConfig
from portal_client.core.store import CredentialStore, MemoryMedium


@pytest.fixture
def anyio_backend() -> str:
    # asyncio only: the expiry watch is built on asyncio tasks
    return "asyncio"


class FakeClock:
    """Mutable clock returning *now* (epoch seconds)."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    """Async sleep replacement that records delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        # still yield so that polling loops let other tasks run
        await asyncio.sleep(0)


class ScriptedTransport(httpx.AsyncBaseTransport):
    """Replay scripted responses/exceptions in order and record each request.

    Each script item is either an ``httpx.Response``, an exception instance to
    raise, or a callable ``(request) -> Response``.  The last item repeats
    once the script is exhausted.
    """

    def __init__(self, script: Iterable[object]) -> None:
        self.script = list(script)
        self.requests: list[httpx.Request] = []

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        index = min(len(self.requests) - 1, len(self.script) - 1)
        item = self.script[index]
        if isinstance(item, BaseException):
            raise item
        if callable(item) and not isinstance(item, httpx.Response):
            return item(request)
        assert isinstance(item, httpx.Response)
        return httpx.Response(
            item.status_code,
            headers=item.headers,
            content=item.content,
            request=request,
        )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def config() -> ClientConfig:
    return ClientConfig(base_url="http://api.test")


@pytest.fixture
def store(clock: FakeClock) -> CredentialStore:
    return CredentialStore(MemoryMedium(), clock=clock)


@pytest.fixture
def transport_factory() -> Callable[..., ScriptedTransport]:
    return lambda *script: ScriptedTransport(script)


# --------------------------------------------------------------------------- #
# integration opt-in                                                          #
# --------------------------------------------------------------------------- #
def pytest_addoption(parser):
    parser.addoption(
        "--integration",
        action="store_true",
        default=False,
        help="run integration tests that need a real portal API",
    )


def pytest_collection_modifyitems(config, items):
    """Skip ``integration`` tests unless ``--integration`` is given.

    Tests also marked ``ci_safe`` stub every outbound call and always run.
    """
    if config.getoption("--integration"):
        return
    skip_integration = pytest.mark.skip(reason="Need --integration option to run")
    for item in items:
        if "integration" in item.keywords and "ci_safe" not in item.keywords:
            item.add_marker(skip_integration)
