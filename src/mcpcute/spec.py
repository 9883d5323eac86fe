"""
Backend configuration — which MCP servers mcpcute aggregates.

The configuration file maps backend names to launch specs. Both the
Claude-Desktop style JSON layout and a plain YAML mapping are accepted.

Example (mcpcute.config.json):
    {
      "mcpServers": {
        "fs": {
          "command": "npx",
          "args": ["-y", "@modelcontextprotocol/server-filesystem", "/tmp"]
        },
        "time": {
          "command": "python",
          "args": ["-m", "mcp_server_time"],
          "env": {"LOG_LEVEL": "debug"},
          "description": "Current time and timezone conversion"
        }
      }
    }

Example (mcpcute.yaml):
    time:
      command: [python, -m, mcp_server_time]
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterator

import yaml

from .errors import ConfigError

logger = logging.getLogger(__name__)


# ── Backend Spec ────────────────────────────────────────────

@dataclass(frozen=True)
class BackendSpec:
    """Launch definition of one backend MCP server."""
    name: str
    command: str
    args: tuple[str, ...] = ()
    env: dict[str, str] = field(default_factory=dict, hash=False)
    description: str | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> BackendSpec:
        """
        Create a BackendSpec from one configuration entry.

        `command` may be a string (with a separate `args` list) or a list
        whose head is the executable and whose tail is prepended to `args`.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Backend '{name}' must be a mapping, got {type(data).__name__}")

        command = data.get("command")
        args = list(data.get("args") or [])

        if isinstance(command, (list, tuple)):
            if not command:
                raise ConfigError(f"Backend '{name}' has an empty command")
            args = [str(a) for a in command[1:]] + args
            command = command[0]

        if not command or not isinstance(command, str):
            raise ConfigError(f"Backend '{name}' has no command")

        env = data.get("env") or {}
        if not isinstance(env, dict):
            raise ConfigError(f"Backend '{name}' env must be a mapping")

        return cls(
            name=name,
            command=command,
            args=tuple(str(a) for a in args),
            env={str(k): str(v) for k, v in env.items()},
            description=data.get("description"),
        )

    @property
    def command_line(self) -> str:
        return " ".join([self.command, *self.args])


# ── Backend Registry ────────────────────────────────────────

class BackendRegistry:
    """
    Ordered registry of configured backends.

    Registration order is configuration order; collision tie-breaks and
    listing order follow it.
    """

    def __init__(self, specs: list[BackendSpec] | None = None):
        self._backends: dict[str, BackendSpec] = {}
        for spec in specs or []:
            self.register(spec)

    def register(self, spec: BackendSpec) -> None:
        """Register a backend spec (replaces any spec with the same name)."""
        self._backends[spec.name] = spec
        logger.debug(f"Registered backend: {spec.name} ({spec.command_line})")

    def get(self, name: str) -> BackendSpec | None:
        return self._backends.get(name)

    def list_all(self) -> list[str]:
        return list(self._backends.keys())

    def __contains__(self, name: object) -> bool:
        return name in self._backends

    def __iter__(self) -> Iterator[BackendSpec]:
        return iter(self._backends.values())

    def __len__(self) -> int:
        return len(self._backends)

    @property
    def count(self) -> int:
        return len(self._backends)

    def load_from_dict(self, data: dict[str, Any]) -> int:
        """
        Load backend specs from a parsed configuration document.

        Accepts {"mcpServers": {...}} or a bare {name: {...}} mapping.
        Entries without a usable command are skipped with a warning.
        """
        if not isinstance(data, dict):
            raise ConfigError(f"Configuration must be a mapping, got {type(data).__name__}")

        servers = data.get("mcpServers", data)
        if not isinstance(servers, dict):
            raise ConfigError("'mcpServers' must be a mapping")

        count = 0
        for name, config in servers.items():
            try:
                spec = BackendSpec.from_dict(str(name), config)
            except ConfigError as e:
                logger.warning(f"{e}, skipping")
                continue
            self.register(spec)
            count += 1

        logger.info(f"Loaded {count} backend(s)")
        return count

    def load_from_file(self, path: str | Path) -> int:
        """Load backend specs from a JSON (.json) or YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "r", encoding="utf-8") as f:
            try:
                if path.suffix.lower() == ".json":
                    data = json.load(f)
                else:
                    data = yaml.safe_load(f)
            except (json.JSONDecodeError, yaml.YAMLError) as e:
                raise ConfigError(f"Invalid configuration file {path}: {e}") from e

        return self.load_from_dict(data or {})

    @classmethod
    def from_file(cls, path: str | Path) -> BackendRegistry:
        registry = cls()
        registry.load_from_file(path)
        return registry
