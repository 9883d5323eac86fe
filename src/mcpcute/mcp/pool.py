"""
Connection Pool — lazily dialed, signature-checked backend sessions.

Usage:
    pool = ConnectionPool()
    session = await pool.acquire("time", spec)
    result = await session.call_tool("get_current_time", {"timezone": "UTC"})
    await pool.release_all()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from ..errors import BackendConnectionError
from ..models import SessionState
from ..signature import signature
from ..spec import BackendSpec
from .transport import BackendSession, StdioSession

logger = logging.getLogger(__name__)

SessionFactory = Callable[[str, BackendSpec], BackendSession]


@dataclass
class PooledSession:
    """A pool slot: the live session and the signature it was opened under."""
    name: str
    session: BackendSession
    signature: str
    state: SessionState = SessionState.CONNECTED


class ConnectionPool:
    """
    Owns at most one live session per backend name.

    Per-backend state machine:
        UNCONNECTED --acquire--> CONNECTED(signature)
        CONNECTED --release / signature mismatch / process exit--> CLOSING --> UNCONNECTED
    """

    def __init__(self, session_factory: SessionFactory | None = None):
        self._session_factory = session_factory or StdioSession
        self._sessions: dict[str, PooledSession] = {}
        # name -> (dial task, signature being dialed)
        self._dialing: dict[str, tuple[asyncio.Future, str]] = {}

    async def acquire(self, name: str, spec: BackendSpec) -> BackendSession:
        """Return a session for `name` opened under `spec`'s signature."""
        wanted = signature(spec)

        pending = self._dialing.get(name)
        if pending is not None:
            task, dialed = pending
            if dialed == wanted:
                return await asyncio.shield(task)
            # Let the outdated dial settle, then replace it below
            await asyncio.wait({task})

        pooled = self._sessions.get(name)
        if pooled is not None:
            if pooled.state is SessionState.CONNECTED and not pooled.session.is_alive:
                logger.warning(f"Session {name} is no longer alive, reconnecting")
            elif pooled.signature == wanted and pooled.state is SessionState.CONNECTED:
                return pooled.session
            elif pooled.signature != wanted:
                logger.info(f"Configuration of {name} changed, reconnecting")
            await self.release(name)

        # Another caller may have started the redial while this one was releasing
        pending = self._dialing.get(name)
        if pending is not None and pending[1] == wanted:
            return await asyncio.shield(pending[0])

        pooled = self._sessions.get(name)
        if pooled is not None and pooled.signature == wanted and self.is_connected(name):
            return pooled.session

        task = asyncio.ensure_future(self._dial(name, spec, wanted))
        self._dialing[name] = (task, wanted)
        task.add_done_callback(lambda t: self._forget_dial(name, t))
        return await asyncio.shield(task)

    def _forget_dial(self, name: str, task: asyncio.Future) -> None:
        pending = self._dialing.get(name)
        if pending is not None and pending[0] is task:
            del self._dialing[name]

    async def _dial(self, name: str, spec: BackendSpec, wanted: str) -> BackendSession:
        session = self._session_factory(name, spec)
        try:
            await session.connect()
        except BackendConnectionError:
            raise
        except Exception as e:
            raise BackendConnectionError(name, str(e) or type(e).__name__) from e

        self._sessions[name] = PooledSession(name=name, session=session, signature=wanted)
        return session

    async def release(self, name: str) -> None:
        """Close the session for `name`. Close failures are logged, not raised."""
        pooled = self._sessions.get(name)
        if pooled is None or pooled.state is SessionState.CLOSING:
            return

        pooled.state = SessionState.CLOSING
        try:
            await pooled.session.close()
        except Exception as e:
            logger.error(f"Error disconnecting from {name}: {e}")
        finally:
            if self._sessions.get(name) is pooled:
                del self._sessions[name]

    async def release_all(self) -> None:
        """Close every session concurrently. One failure never blocks the rest."""
        names = list(self._sessions.keys())
        if not names:
            return

        results = await asyncio.gather(
            *(self.release(name) for name in names), return_exceptions=True
        )
        for name, result in zip(names, results):
            if isinstance(result, BaseException):
                logger.error(f"Error disconnecting from {name}: {result}")

    def state(self, name: str) -> SessionState:
        pooled = self._sessions.get(name)
        if pooled is None:
            return SessionState.UNCONNECTED
        # A backend that exited on its own counts as unconnected until redialed
        if pooled.state is SessionState.CONNECTED and not pooled.session.is_alive:
            return SessionState.UNCONNECTED
        return pooled.state

    def is_connected(self, name: str) -> bool:
        return self.state(name) is SessionState.CONNECTED

    def connected(self) -> list[str]:
        return [n for n in self._sessions if self.is_connected(n)]
