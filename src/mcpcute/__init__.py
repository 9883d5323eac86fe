"""
mcpcute — one small, stable set of meta-tools in front of many MCP servers.

Usage:
    from mcpcute import Aggregator, BackendRegistry, DiskCacheStore

    registry = BackendRegistry.from_file("mcpcute.config.json")
    async with Aggregator(registry, store=DiskCacheStore()) as aggregator:
        hits = await aggregator.search_tools("read")
        result = await aggregator.execute_tool(hits[0].name, {"path": "/tmp/x"})

    # Or serve the meta-tools to an agent over stdio
    #   python -m mcpcute --config mcpcute.config.json
"""

__version__ = "0.3.0"

from .errors import (
    BackendConnectionError,
    BackendNotFoundError,
    ConfigError,
    McpcuteError,
    ToolNotFoundError,
)
from .models import (
    NAME_SEPARATOR,
    BackendCatalogCache,
    CatalogEntry,
    PersistedCacheRecord,
    SessionState,
)
from .signature import NO_SIGNATURE, signature
from .spec import BackendRegistry, BackendSpec
from .cache import DiskCacheStore, default_cache_root
from .mcp import BackendSession, ConnectionPool, StdioSession
from .catalog import ToolCatalogCache
from .aggregator import Aggregator
from .meta import META_TOOL_SCHEMAS, MetaToolError, MetaTools

__all__ = [
    # Core
    "Aggregator",
    "ToolCatalogCache",
    "ConnectionPool",
    "DiskCacheStore",
    "default_cache_root",
    "signature",
    "NO_SIGNATURE",
    # Configuration
    "BackendSpec",
    "BackendRegistry",
    # Sessions
    "BackendSession",
    "StdioSession",
    # Front end
    "MetaTools",
    "MetaToolError",
    "META_TOOL_SCHEMAS",
    # Models
    "CatalogEntry",
    "BackendCatalogCache",
    "PersistedCacheRecord",
    "SessionState",
    "NAME_SEPARATOR",
    # Errors
    "McpcuteError",
    "ConfigError",
    "BackendNotFoundError",
    "ToolNotFoundError",
    "BackendConnectionError",
]
