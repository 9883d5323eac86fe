"""
Shared fixtures: scripted in-process backends standing in for MCP servers.
"""

from __future__ import annotations

from typing import Any

import pytest

from mcpcute.cache import DiskCacheStore
from mcpcute.mcp.pool import ConnectionPool
from mcpcute.mcp.transport import BackendSession
from mcpcute.spec import BackendRegistry, BackendSpec


class FakeBackend:
    """Scripted behaviour and call log for one backend."""

    def __init__(
        self,
        tools: list[dict[str, Any]] | None = None,
        fail_connect: bool = False,
        fail_list: bool = False,
        fail_close: bool = False,
        result: Any = None,
        call_error: Exception | None = None,
    ):
        self.tools = tools or []
        self.fail_connect = fail_connect
        self.fail_list = fail_list
        self.fail_close = fail_close
        self.result = result
        self.call_error = call_error

        self.connects = 0
        self.closes = 0
        self.list_calls = 0
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.specs: list[BackendSpec] = []


class FakeSession(BackendSession):
    def __init__(self, name: str, spec: BackendSpec, backend: FakeBackend):
        self.name = name
        self.spec = spec
        self.backend = backend
        self.alive = False

    async def connect(self) -> None:
        self.backend.connects += 1
        self.backend.specs.append(self.spec)
        if self.backend.fail_connect:
            raise OSError(f"cannot launch {self.spec.command}")
        self.alive = True

    async def list_tools(self) -> list[dict[str, Any]]:
        self.backend.list_calls += 1
        if self.backend.fail_list:
            raise RuntimeError("tools/list failed")
        return [dict(t) for t in self.backend.tools]

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        self.backend.calls.append((name, arguments))
        if self.backend.call_error is not None:
            raise self.backend.call_error
        if self.backend.result is not None:
            return self.backend.result
        return {"content": [{"type": "text", "text": f"{self.name}:{name}"}]}

    async def close(self) -> None:
        self.alive = False
        self.backend.closes += 1
        if self.backend.fail_close:
            raise RuntimeError("close failed")

    @property
    def is_alive(self) -> bool:
        return self.alive


def tool(name: str, description: str | None = None, schema: dict | None = None) -> dict:
    return {
        "name": name,
        "description": description or f"{name} tool",
        "inputSchema": schema or {"type": "object", "properties": {}},
    }


def make_spec(name: str, command: str = "fake-server", **kwargs) -> BackendSpec:
    return BackendSpec(name=name, command=command, **kwargs)


def make_registry(*names: str) -> BackendRegistry:
    return BackendRegistry([make_spec(n) for n in names])


@pytest.fixture
def backends() -> dict[str, FakeBackend]:
    """Backend name -> FakeBackend. Tests add entries before first use."""
    return {}


@pytest.fixture
def pool(backends) -> ConnectionPool:
    def factory(name: str, spec: BackendSpec) -> BackendSession:
        return FakeSession(name, spec, backends.setdefault(name, FakeBackend()))

    return ConnectionPool(session_factory=factory)


@pytest.fixture
def store(tmp_path) -> DiskCacheStore:
    return DiskCacheStore(tmp_path / "cache")
