"""
Data models for mcpcute.

Enums and dataclasses shared by the pool, the catalog cache and the
aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

# Separator between backend name and native tool name in a renamed tool
NAME_SEPARATOR = "__"

CACHE_FORMAT_VERSION = 1


# ── Enums ────────────────────────────────────────────────────

class SessionState(str, Enum):
    UNCONNECTED = "unconnected"
    CONNECTED = "connected"
    CLOSING = "closing"


# ── Catalog models ───────────────────────────────────────────

@dataclass
class CatalogEntry:
    """
    One tool as exposed through the aggregator.

    `name` is the public name. It starts equal to `native_name` and is
    rewritten to `<source>__<native_name>` when collision resolution
    renames it.
    """
    name: str
    source: str
    description: str | None = None
    input_schema: dict[str, Any] | None = None
    native_name: str = ""

    def __post_init__(self):
        if not self.native_name:
            self.native_name = self.name

    @classmethod
    def from_tool(cls, tool: dict[str, Any], source: str) -> CatalogEntry:
        """Build an entry from a backend `tools/list` item."""
        return cls(
            name=tool["name"],
            source=source,
            description=tool.get("description"),
            input_schema=tool.get("inputSchema"),
        )

    @property
    def prefixed_name(self) -> str:
        return f"{self.source}{NAME_SEPARATOR}{self.native_name}"

    def matches(self, query_lower: str) -> bool:
        """Case-insensitive substring match on name or description."""
        if query_lower in self.name.lower():
            return True
        return bool(self.description) and query_lower in self.description.lower()

    def to_details(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
            "source": self.source,
        }

    def to_summary(self) -> dict[str, Any]:
        return {"name": self.name, "description": self.description}

    def to_search_result(self) -> dict[str, Any]:
        return {"name": self.name, "source": self.source, "description": self.description}

    def to_record(self) -> dict[str, Any]:
        """Persisted form. Always the native name, never a renamed one."""
        return {
            "name": self.native_name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass
class BackendCatalogCache:
    """In-memory catalog of one backend."""
    entries: list[CatalogEntry] = field(default_factory=list)
    fetched: bool = False
    signature: str | None = None

    def reset(self) -> None:
        self.entries = []
        self.fetched = False
        self.signature = None


@dataclass
class PersistedCacheRecord:
    """On-disk catalog of one backend, trusted only under `signature`."""
    backend: str
    signature: str
    entries: list[dict[str, Any]]
    fetched_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )

    @classmethod
    def from_entries(
        cls, backend: str, signature: str, entries: list[CatalogEntry]
    ) -> PersistedCacheRecord:
        return cls(
            backend=backend,
            signature=signature,
            entries=[e.to_record() for e in entries],
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PersistedCacheRecord:
        """Parse a record. Raises ValueError on a malformed payload."""
        if not isinstance(data, dict):
            raise ValueError(f"Cache record must be a mapping, got {type(data).__name__}")

        signature = data.get("signature")
        entries = data.get("entries")
        if not isinstance(signature, str) or not isinstance(entries, list):
            raise ValueError("Cache record requires 'signature' and 'entries'")
        for item in entries:
            if not isinstance(item, dict) or not isinstance(item.get("name"), str):
                raise ValueError("Cache record entries must be mappings with a 'name'")

        return cls(
            backend=data.get("backend", ""),
            signature=signature,
            entries=entries,
            fetched_at=data.get("fetchedAt", ""),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": CACHE_FORMAT_VERSION,
            "backend": self.backend,
            "signature": self.signature,
            "entries": self.entries,
            "fetchedAt": self.fetched_at,
        }

    def to_catalog(self, source: str) -> list[CatalogEntry]:
        return [CatalogEntry.from_tool(item, source) for item in self.entries]
