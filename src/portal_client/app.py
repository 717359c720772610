"""Composition root wiring the store, pipeline, cache and session controller.

Exactly one :class:`PortalClient` is expected per application session.  It
owns every component by reference; nothing in ``portal_client`` keeps module
level mutable state.

Example
-------
>>> async def main(navigator):
...     async with PortalClient.from_env(navigator=navigator) as portal:
...         result = await portal.session.login("a@b.com", "x")
...         if result.success:
...             page = await portal.students.list()
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from portal_client.cache import QueryCache
from portal_client.config import ClientConfig
from portal_client.core.clock import Clock, default_clock
from portal_client.core.models import Outcome
from portal_client.core.signals import UnauthorizedSignal
from portal_client.core.store import CredentialStore, DiskSessionMedium, MemoryMedium, SessionMedium
from portal_client.core.timer import Sleep
from portal_client.http.pipeline import RequestPipeline
from portal_client.resources import ResourceClient
from portal_client.session.controller import SessionController
from portal_client.session.navigation import Navigator, RecordingNavigator
from portal_client.students import StudentsClient

_LOG = logging.getLogger("portal-client.app")

HEALTH_ENDPOINT = "/health"


class PortalClient:
    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        navigator: Navigator | None = None,
        medium: SessionMedium | None = None,
        clock: Clock = default_clock,
        transport: httpx.AsyncBaseTransport | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.config = config or ClientConfig()
        if medium is None:
            medium = (
                DiskSessionMedium(base_dir=self.config.session_dir)
                if self.config.session_dir
                else MemoryMedium()
            )
        self.navigator: Navigator = navigator or RecordingNavigator()
        self.store = CredentialStore(medium, clock=clock)
        self.signal = UnauthorizedSignal()
        self.cache = QueryCache(ttl=self.config.cache_ttl_seconds)
        self.pipeline = RequestPipeline(
            self.store,
            config=self.config,
            notifier=self.signal,
            transport=transport,
            sleep=sleep,
        )
        self.session = SessionController(
            self.store,
            self.pipeline,
            self.navigator,
            signal=self.signal,
            cache=self.cache,
            sleep=sleep,
        )
        self.students = StudentsClient(self.pipeline, cache=self.cache)

    @classmethod
    def from_env(cls, **kwargs: Any) -> "PortalClient":
        return cls(ClientConfig.from_env(), **kwargs)

    def resource(self, name: str, path: str | None = None) -> ResourceClient:
        """Generic CRUD facade for a resource not covered by a typed client."""
        return ResourceClient(self.pipeline, name, path or f"/{name}", cache=self.cache)

    async def health(self) -> Outcome:
        return await self.pipeline.get(HEALTH_ENDPOINT)

    async def aclose(self) -> None:
        self.session.close()
        await self.pipeline.aclose()

    async def __aenter__(self) -> "PortalClient":
        self.session.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
