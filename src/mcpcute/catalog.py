"""
Tool Catalog Cache — fetch-once-then-reuse catalogs per backend.

Lookup order for a backend's catalog:
    1. in-memory, if fetched under the current signature
    2. the Disk Cache Store, if the record's signature matches
    3. a live `tools/list` through the Connection Pool

A backend that fails to answer is recorded as having no tools for the
rest of the run instead of being retried on every call.
"""

from __future__ import annotations

import logging
from typing import Callable

from .cache import DiskCacheStore
from .mcp.pool import ConnectionPool
from .models import BackendCatalogCache, CatalogEntry, PersistedCacheRecord
from .signature import signature
from .spec import BackendRegistry

logger = logging.getLogger(__name__)


class ToolCatalogCache:
    """
    Per-backend catalogs layered over an optional DiskCacheStore.

    `on_change(name)` is called whenever a backend's entries are replaced
    or dropped, so derived indexes can be marked stale.
    """

    def __init__(
        self,
        registry: BackendRegistry,
        pool: ConnectionPool,
        store: DiskCacheStore | None = None,
        on_change: Callable[[str], None] | None = None,
    ):
        self.registry = registry
        self.pool = pool
        self.store = store
        self.on_change = on_change
        self._caches: dict[str, BackendCatalogCache] = {
            name: BackendCatalogCache() for name in registry.list_all()
        }

    def peek(self, name: str) -> BackendCatalogCache | None:
        """Return the cache slot for `name` without fetching."""
        return self._caches.get(name)

    async def fetch(self, name: str) -> list[CatalogEntry]:
        """Return the catalog of `name`, fetching it at most once per signature."""
        spec = self.registry.get(name)
        if spec is None:
            return []

        cache = self._caches.setdefault(name, BackendCatalogCache())
        current = signature(spec)

        if cache.fetched:
            if cache.signature == current:
                return cache.entries
            logger.info(f"Configuration of {name} changed, discarding cached tools")
            await self.invalidate(name)

        if self._adopt_persisted(name, cache, current):
            return cache.entries

        try:
            session = await self.pool.acquire(name, spec)
            tools = await session.list_tools()
            entries = [CatalogEntry.from_tool(tool, name) for tool in tools]
            logger.info(f"Fetched {len(entries)} tool(s) from {name}")
        except Exception as e:
            logger.error(f"Failed to fetch tools from {name}: {e}")
            entries = []

        self._set(name, cache, entries, current)
        self._persist(name, cache)
        return cache.entries

    async def invalidate(self, name: str) -> None:
        """Drop everything known about `name`: session, disk record, cache."""
        await self.pool.release(name)
        if self.store is not None:
            self.store.invalidate(name)

        cache = self._caches.get(name)
        if cache is not None:
            cache.reset()
        self._notify(name)

    def _adopt_persisted(self, name: str, cache: BackendCatalogCache, current: str) -> bool:
        if self.store is None:
            return False

        record = self.store.load(name)
        if record is None:
            return False

        if record.signature != current:
            logger.info(f"Persisted tools for {name} are stale, discarding")
            self.store.invalidate(name)
            return False

        logger.info(f"Loaded {len(record.entries)} cached tool(s) for {name}")
        self._set(name, cache, record.to_catalog(name), current)
        return True

    def _set(
        self,
        name: str,
        cache: BackendCatalogCache,
        entries: list[CatalogEntry],
        current: str,
    ) -> None:
        cache.entries = entries
        cache.fetched = True
        cache.signature = current
        self._notify(name)

    def _persist(self, name: str, cache: BackendCatalogCache) -> None:
        if self.store is None:
            return
        record = PersistedCacheRecord.from_entries(name, cache.signature, cache.entries)
        try:
            self.store.store(name, record)
        except OSError as e:
            logger.warning(f"Could not persist tools for {name}: {e}")

    def _notify(self, name: str) -> None:
        if self.on_change is not None:
            self.on_change(name)
