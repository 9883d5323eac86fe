"""
Transport layer for backend MCP servers.

Defines the BackendSession contract the pool relies on and the stdio
implementation built on the MCP Python SDK: the backend runs as a child
process, JSON-RPC goes over its stdin/stdout, and the SDK's ClientSession
performs the `initialize` handshake and request correlation.
"""

from __future__ import annotations

import asyncio
import logging
import os
from abc import ABC, abstractmethod
from typing import Any

import anyio
from mcp import ClientSession, StdioServerParameters
from mcp.client.stdio import stdio_client
from mcp.shared.exceptions import McpError
from mcp.types import CONNECTION_CLOSED

from ..errors import BackendConnectionError
from ..spec import BackendSpec

logger = logging.getLogger(__name__)

# Raised by the SDK's streams once the child process has gone away
STREAM_CLOSED_ERRORS = (anyio.ClosedResourceError, anyio.BrokenResourceError, anyio.EndOfStream)


def root_cause(exc: BaseException) -> BaseException:
    """Strip task-group wrappers that hold a single exception."""
    while isinstance(exc, BaseExceptionGroup) and len(exc.exceptions) == 1:
        exc = exc.exceptions[0]
    return exc


class BackendSession(ABC):
    """A live connection to one backend MCP server."""

    name: str

    @abstractmethod
    async def connect(self) -> None:
        """Launch the backend and complete the protocol handshake."""
        ...

    @abstractmethod
    async def list_tools(self) -> list[dict[str, Any]]:
        """Return [{name, description?, inputSchema?}, ...]."""
        ...

    @abstractmethod
    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        """Invoke a tool by its native name and return the raw result."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Close the connection and stop the backend process."""
        ...

    @property
    @abstractmethod
    def is_alive(self) -> bool:
        """False once the backend process has exited or the session was closed."""
        ...


class StdioSession(BackendSession):
    """
    MCP over stdin/stdout pipes to a child process.

    The SDK's stdio_client and ClientSession are context managers bound to
    the task that entered them. Each session therefore runs in its own
    owner task, which opens the contexts, signals readiness, and holds them
    open until close() is requested. Requests can then be issued and the
    session closed from any task on the loop.

    Server output is relayed to the ClientSession through a local stream,
    so the end of the child's stdout marks the session dead even when no
    request is in flight.
    """

    def __init__(self, name: str, spec: BackendSpec):
        self.name = name
        self.spec = spec
        self._session: ClientSession | None = None
        self._owner: asyncio.Task | None = None
        self._ready: asyncio.Future | None = None
        self._closing: asyncio.Event | None = None

    def _server_params(self) -> StdioServerParameters:
        return StdioServerParameters(
            command=self.spec.command,
            args=list(self.spec.args),
            env={**os.environ, **self.spec.env},
        )

    async def connect(self) -> None:
        if self._owner is not None and not self._owner.done():
            logger.warning(f"Session {self.name} already running, closing first")
            await self.close()

        logger.info(f"Connecting to MCP server: {self.name} ({self.spec.command_line})")
        loop = asyncio.get_running_loop()
        self._ready = loop.create_future()
        self._closing = asyncio.Event()
        self._owner = asyncio.create_task(self._run(), name=f"mcpcute-session-{self.name}")

        try:
            await self._ready
        except BackendConnectionError:
            raise
        except Exception as e:
            raise BackendConnectionError(self.name, str(e) or type(e).__name__) from e

        logger.info(f"Connected to MCP server: {self.name}")

    async def _run(self) -> None:
        ready = self._ready
        try:
            async with stdio_client(self._server_params()) as (read, write):
                relay_send, relay_read = anyio.create_memory_object_stream(0)
                async with anyio.create_task_group() as tg:
                    tg.start_soon(self._relay, read, relay_send)
                    async with ClientSession(relay_read, write) as session:
                        await session.initialize()
                        self._session = session
                        ready.set_result(None)
                        await self._closing.wait()
                    tg.cancel_scope.cancel()
        except Exception as e:
            cause = root_cause(e)
            if not ready.done():
                ready.set_exception(cause)
            else:
                logger.warning(f"Session {self.name} ended with error: {cause}")
        finally:
            self._session = None
            if not ready.done():
                ready.set_exception(
                    BackendConnectionError(self.name, "session ended before handshake")
                )

    async def _relay(self, source, sink) -> None:
        try:
            async with sink:
                async for message in source:
                    await sink.send(message)
        except STREAM_CLOSED_ERRORS:
            # ClientSession stopped reading, the session is shutting down
            return
        self._mark_dead("backend closed its output")

    def _mark_dead(self, reason: str) -> None:
        # The owner task keeps the contexts open until close(), so pending
        # requests still receive their connection-closed errors
        if self._session is None:
            return
        logger.warning(f"Lost connection to {self.name}: {reason}")
        self._session = None

    def _require_session(self) -> ClientSession:
        if self._session is None:
            raise RuntimeError(f"Session {self.name} is not connected. Call connect() first.")
        return self._session

    def _check_connection_error(self, exc: Exception) -> None:
        if isinstance(exc, STREAM_CLOSED_ERRORS):
            self._mark_dead(type(exc).__name__)
        elif isinstance(exc, McpError) and exc.error.code == CONNECTION_CLOSED:
            self._mark_dead(exc.error.message)

    async def list_tools(self) -> list[dict[str, Any]]:
        session = self._require_session()

        tools: list[dict[str, Any]] = []
        try:
            response = await session.list_tools()
            while True:
                for tool in response.tools:
                    tools.append({
                        "name": tool.name,
                        "description": tool.description,
                        "inputSchema": tool.inputSchema,
                    })
                cursor = getattr(response, "nextCursor", None)
                if not cursor:
                    break
                response = await session.list_tools(cursor=cursor)
        except Exception as e:
            self._check_connection_error(e)
            raise

        return tools

    async def call_tool(self, name: str, arguments: dict[str, Any]) -> Any:
        session = self._require_session()
        try:
            return await session.call_tool(name, arguments)
        except Exception as e:
            self._check_connection_error(e)
            raise

    async def close(self) -> None:
        owner = self._owner
        if owner is None:
            return

        self._closing.set()
        self._owner = None
        try:
            await owner
        finally:
            self._session = None
            logger.info(f"Disconnected from {self.name}")

    @property
    def is_alive(self) -> bool:
        return self._session is not None and self._owner is not None and not self._owner.done()
