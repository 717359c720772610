"""Generic CRUD facade over the request pipeline.

Reads go through the :class:`QueryCache` when one is attached; mutations
invalidate the resource *after* a Success outcome and never on Failure.
Payloads are passed through untouched.
"""

from __future__ import annotations

import logging
from typing import Any, Hashable, Mapping

from portal_client.cache import QueryCache, QueryKey
from portal_client.core.models import Outcome
from portal_client.http.pipeline import RequestPipeline

_LOG = logging.getLogger("portal-client.resources")


class ResourceClient:
    """CRUD verbs for one logical resource (``name``) mounted at ``path``."""

    def __init__(
        self,
        pipeline: RequestPipeline,
        name: str,
        path: str,
        *,
        cache: QueryCache | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.name = name
        self.path = "/" + path.strip("/")
        self.cache = cache

    def item_path(self, item_id: Hashable) -> str:
        return f"{self.path}/{item_id}"

    def list_key(self, params: Mapping[str, Any] | None = None) -> QueryKey:
        if not params:
            return (self.name,)
        return (self.name, "list", tuple(sorted((k, str(v)) for k, v in params.items())))

    # ----- reads ---------------------------------------------------------- #
    async def list(self, params: Mapping[str, Any] | None = None) -> Outcome:
        return await self._read(self.list_key(params), self.path, params)

    async def get(self, item_id: Hashable) -> Outcome:
        return await self._read((self.name, item_id), self.item_path(item_id), None)

    async def _read(self, key: QueryKey, path: str, params: Mapping[str, Any] | None) -> Outcome:
        async def load() -> Outcome:
            return await self.pipeline.get(path, params=params)

        if self.cache is None:
            return await load()
        return await self.cache.fetch(key, load)

    # ----- mutations ------------------------------------------------------ #
    async def create(self, payload: Any) -> Outcome:
        return self._after_mutation(await self.pipeline.post(self.path, payload))

    async def update(self, item_id: Hashable, payload: Any) -> Outcome:
        return self._after_mutation(await self.pipeline.put(self.item_path(item_id), payload))

    async def patch(self, item_id: Hashable, payload: Any) -> Outcome:
        return self._after_mutation(await self.pipeline.patch(self.item_path(item_id), payload))

    async def delete(self, item_id: Hashable) -> Outcome:
        return self._after_mutation(await self.pipeline.delete(self.item_path(item_id)))

    def _after_mutation(self, outcome: Outcome) -> Outcome:
        if outcome.success and self.cache is not None:
            self.cache.invalidate(self.name)
        elif not outcome.success:
            _LOG.debug("Mutation on %s failed; cache left untouched", self.name)
        return outcome
