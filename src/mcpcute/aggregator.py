"""
Aggregator / Router — one namespace over many backend catalogs.

Usage:
    registry = BackendRegistry.from_file("mcpcute.config.json")
    async with Aggregator(registry) as aggregator:
        tools = await aggregator.list_all_tools()
        result = await aggregator.execute_tool("fs__read_file", {"path": "/x"})

Tools keep their native names unless two or more backends expose the same
name; then every one of them is published as `<backend>__<name>`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from .cache import DiskCacheStore
from .catalog import ToolCatalogCache
from .errors import BackendNotFoundError, ToolNotFoundError
from .mcp.pool import ConnectionPool
from .models import NAME_SEPARATOR, CatalogEntry
from .spec import BackendRegistry

logger = logging.getLogger(__name__)


class Aggregator:
    """
    Merges backend catalogs, resolves public tool names, and routes calls.

    Responsibilities:
    - Fetch catalogs from all backends concurrently
    - Resolve name collisions with the `<backend>__<name>` scheme
    - Map a public name back to (backend, native name)
    - Dispatch invocations through the Connection Pool
    """

    def __init__(
        self,
        registry: BackendRegistry,
        pool: ConnectionPool | None = None,
        store: DiskCacheStore | None = None,
    ):
        self.registry = registry
        self.pool = pool or ConnectionPool()
        self.catalog = ToolCatalogCache(
            registry, self.pool, store=store, on_change=self._on_catalog_change
        )
        # public tool name -> backend name
        self._tool_to_backend: dict[str, str] = {}
        self._index_stale = True

    async def __aenter__(self) -> Aggregator:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        await self.pool.release_all()

    # ── Index maintenance ───────────────────────────────────

    def _on_catalog_change(self, name: str) -> None:
        self._index_stale = True
        self._tool_to_backend = {
            tool: owner for tool, owner in self._tool_to_backend.items() if owner != name
        }

    @property
    def index_stale(self) -> bool:
        return self._index_stale

    def _aggregate(self, entries: list[CatalogEntry]) -> None:
        """Resolve collisions over one snapshot and rebuild the name index."""
        index: dict[str, str] = {}

        by_name: dict[str, list[CatalogEntry]] = {}
        for entry in entries:
            entry.name = entry.native_name
            by_name.setdefault(entry.name, []).append(entry)

        renamed: list[CatalogEntry] = []
        for name, group in by_name.items():
            if len(group) == 1:
                continue
            for entry in group:
                entry.name = entry.prefixed_name
                renamed.append(entry)

        # A composed name may equal some other backend's native tool name.
        # That native tool is prefixed as well so both stay addressable.
        composed = {entry.name for entry in renamed}
        for name, group in by_name.items():
            if len(group) == 1 and name in composed:
                entry = group[0]
                entry.name = entry.prefixed_name
                logger.warning(
                    f"Tool {name} from {entry.source} shadows a renamed tool, "
                    f"publishing it as {entry.name}"
                )

        for entry in entries:
            owner = index.get(entry.name)
            if owner is not None and owner != entry.source:
                logger.warning(
                    f"Tool name {entry.name} is claimed by {owner} and {entry.source}, "
                    f"routing to {entry.source}"
                )
            index[entry.name] = entry.source

        self._tool_to_backend = index
        self._index_stale = False

    # ── Tool-level operations ───────────────────────────────

    async def _fetch_many(self, names: list[str]) -> list[list[CatalogEntry]]:
        results = await asyncio.gather(
            *(self.catalog.fetch(name) for name in names), return_exceptions=True
        )
        catalogs: list[list[CatalogEntry]] = []
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(f"Failed to fetch tools from {name}: {result}")
                catalogs.append([])
            else:
                catalogs.append(result)
        return catalogs

    async def list_all_tools(self) -> list[CatalogEntry]:
        """Return every backend's tools, aggregated under public names."""
        catalogs = await self._fetch_many(self.registry.list_all())
        all_tools = [entry for catalog in catalogs for entry in catalog]

        if self._index_stale:
            self._aggregate(all_tools)

        return all_tools

    async def list_tools_for_mcp(self, name: str) -> list[CatalogEntry]:
        if name not in self.registry:
            return []
        return await self.catalog.fetch(name)

    async def search_tools(
        self, query: str | None = None, mcp_name: str | None = None
    ) -> list[CatalogEntry]:
        """Find tools by case-insensitive substring of name or description."""
        if mcp_name:
            tools = await self.list_tools_for_mcp(mcp_name)
            if not query:
                return tools
            query_lower = query.lower()
            return [t for t in tools if t.matches(query_lower)]

        if not query:
            return await self.list_all_tools()

        query_lower = query.lower()
        names = self.registry.list_all()
        # Backends whose name matches the query are the likeliest owners
        matching = [n for n in names if query_lower in n.lower()]
        others = [n for n in names if query_lower not in n.lower()]

        matches: list[CatalogEntry] = []
        for catalog in await self._fetch_many(matching + others):
            matches.extend(t for t in catalog if t.matches(query_lower))

        if self._index_stale:
            # Renames happen in place, so collected matches pick them up
            await self.list_all_tools()

        return matches

    def _guess_backend(self, tool_name: str) -> str | None:
        """Guess a backend from a `<backend>__<name>` shaped tool name."""
        prefix, sep, rest = tool_name.partition(NAME_SEPARATOR)
        if sep and prefix and rest and prefix in self.registry:
            return prefix
        return None

    async def get_tool_details(self, tool_name: str) -> CatalogEntry | None:
        backend = self._tool_to_backend.get(tool_name) or self._guess_backend(tool_name)

        if backend is not None and backend in self.registry:
            for tool in await self.catalog.fetch(backend):
                if tool.name == tool_name:
                    return tool

        for tool in await self.list_all_tools():
            if tool.name == tool_name:
                return tool
        return None

    async def _resolve_backend(self, tool_name: str) -> str:
        backend = self._tool_to_backend.get(tool_name) or self._guess_backend(tool_name)
        if backend is None:
            await self.list_all_tools()
            backend = self._tool_to_backend.get(tool_name)
        if backend is None:
            raise ToolNotFoundError(tool_name)
        return backend

    async def execute_tool(
        self,
        tool_name: str,
        arguments: dict[str, Any] | None = None,
        mcp_name: str | None = None,
    ) -> Any:
        """
        Invoke a tool by public name and return the backend's raw result.

        Args:
            tool_name: Public (possibly prefixed) tool name
            arguments: Passed to the backend unchanged
            mcp_name: Route to this backend instead of resolving the name

        Raises:
            ToolNotFoundError: the name resolves to no backend
            BackendNotFoundError: the backend is not configured
            BackendConnectionError: the backend could not be reached
        """
        if mcp_name:
            if mcp_name not in self.registry:
                raise BackendNotFoundError(mcp_name)
            backend = mcp_name
        else:
            backend = await self._resolve_backend(tool_name)

        spec = self.registry.get(backend)
        if spec is None:
            raise BackendNotFoundError(backend)

        native_name = tool_name
        prefix = f"{backend}{NAME_SEPARATOR}"
        if tool_name.startswith(prefix):
            native_name = tool_name[len(prefix):]

        session = await self.pool.acquire(backend, spec)
        logger.info(f"Executing {native_name} on {backend}")
        return await session.call_tool(native_name, arguments or {})

    # ── MCP-level operations ────────────────────────────────

    def _mcp_info(self, name: str, tool_count: int) -> dict[str, Any]:
        info: dict[str, Any] = {
            "name": name,
            "status": "connected" if self.pool.is_connected(name) else "disconnected",
            "tool_count": tool_count,
        }
        spec = self.registry.get(name)
        if spec is not None and spec.description:
            info["description"] = spec.description
        return info

    def list_mcps(self) -> list[dict[str, Any]]:
        infos = []
        for name in self.registry.list_all():
            cache = self.catalog.peek(name)
            count = len(cache.entries) if cache is not None and cache.fetched else 0
            infos.append(self._mcp_info(name, count))
        return infos

    def search_mcps(self, query: str | None = None) -> list[dict[str, Any]]:
        mcps = self.list_mcps()
        if not query:
            return mcps
        query_lower = query.lower()
        return [m for m in mcps if query_lower in m["name"].lower()]

    async def get_mcp_details(self, name: str) -> dict[str, Any] | None:
        if name not in self.registry:
            return None

        tools = await self.catalog.fetch(name)
        details = self._mcp_info(name, len(tools))
        details["tools"] = [t.to_summary() for t in tools]
        return details
