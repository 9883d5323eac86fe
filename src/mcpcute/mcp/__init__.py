"""
Backend connectivity.

Provides:
- BackendSession / StdioSession — one MCP connection over a child process
- ConnectionPool — lazy, signature-checked sessions keyed by backend name
"""

from .transport import BackendSession, StdioSession
from .pool import ConnectionPool, PooledSession

__all__ = [
    "BackendSession",
    "StdioSession",
    "ConnectionPool",
    "PooledSession",
]
