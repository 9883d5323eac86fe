"""
Exception types raised by the aggregator core.

Adapters catch these at the public boundary and turn them into
structured error results.
"""

from __future__ import annotations


class McpcuteError(Exception):
    """Base class for mcpcute errors."""


class ConfigError(McpcuteError, ValueError):
    """Backend configuration could not be loaded."""


class BackendNotFoundError(McpcuteError, LookupError):
    """A backend name is not present in the configuration."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Server not found: {name}")


class ToolNotFoundError(McpcuteError, LookupError):
    """A public tool name cannot be resolved to any backend."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Tool not found: {name}")


class BackendConnectionError(McpcuteError, RuntimeError):
    """Launching a backend process or its handshake failed."""

    def __init__(self, name: str, reason: str):
        self.name = name
        self.reason = reason
        super().__init__(f"Failed to connect to {name}: {reason}")
