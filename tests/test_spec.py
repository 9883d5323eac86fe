"""
Tests for backend configuration loading.
"""

import json

import pytest

from mcpcute.errors import ConfigError
from mcpcute.spec import BackendRegistry, BackendSpec


# ── BackendSpec Tests ───────────────────────────────────────

class TestBackendSpec:
    def test_from_dict_minimal(self):
        spec = BackendSpec.from_dict("fs", {"command": "npx"})
        assert spec.name == "fs"
        assert spec.command == "npx"
        assert spec.args == ()
        assert spec.env == {}
        assert spec.description is None

    def test_from_dict_full(self):
        spec = BackendSpec.from_dict("db", {
            "command": "uvx",
            "args": ["mcp-server-sqlite", "--db", "app.db"],
            "env": {"DEBUG": 1},
            "description": "SQLite",
        })
        assert spec.args == ("mcp-server-sqlite", "--db", "app.db")
        assert spec.env == {"DEBUG": "1"}
        assert spec.description == "SQLite"
        assert spec.command_line == "uvx mcp-server-sqlite --db app.db"

    def test_command_list_form(self):
        spec = BackendSpec.from_dict("calc", {
            "command": ["python", "-m", "calc"],
            "args": ["--verbose"],
        })
        assert spec.command == "python"
        assert spec.args == ("-m", "calc", "--verbose")

    def test_missing_command(self):
        with pytest.raises(ConfigError):
            BackendSpec.from_dict("x", {"args": ["a"]})

    def test_empty_command_list(self):
        with pytest.raises(ConfigError):
            BackendSpec.from_dict("x", {"command": []})

    def test_bad_env(self):
        with pytest.raises(ConfigError):
            BackendSpec.from_dict("x", {"command": "a", "env": ["A=1"]})


# ── BackendRegistry Tests ───────────────────────────────────

class TestBackendRegistry:
    def test_load_mcp_servers_layout(self):
        registry = BackendRegistry()
        count = registry.load_from_dict({
            "mcpServers": {
                "fs": {"command": "npx"},
                "db": {"command": "uvx"},
            }
        })
        assert count == 2
        assert registry.list_all() == ["fs", "db"]
        assert "fs" in registry
        assert registry.get("db").command == "uvx"

    def test_load_bare_mapping(self):
        registry = BackendRegistry()
        assert registry.load_from_dict({"fs": {"command": "npx"}}) == 1

    def test_skips_entries_without_command(self):
        registry = BackendRegistry()
        count = registry.load_from_dict({"mcpServers": {
            "good": {"command": "npx"},
            "bad": {"args": ["x"]},
        }})
        assert count == 1
        assert registry.list_all() == ["good"]

    def test_rejects_non_mapping(self):
        with pytest.raises(ConfigError):
            BackendRegistry().load_from_dict(["fs"])

    def test_load_json_file(self, tmp_path):
        path = tmp_path / "mcpcute.config.json"
        path.write_text(json.dumps({
            "mcpServers": {"fs": {"command": "npx", "args": ["-y", "fs"]}}
        }))
        registry = BackendRegistry.from_file(path)
        assert registry.count == 1
        assert registry.get("fs").args == ("-y", "fs")

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "mcpcute.yaml"
        path.write_text(
            "time:\n"
            "  command: [python, -m, mcp_server_time]\n"
            "  env:\n"
            "    LOG_LEVEL: debug\n"
        )
        registry = BackendRegistry.from_file(path)
        spec = registry.get("time")
        assert spec.command == "python"
        assert spec.args == ("-m", "mcp_server_time")
        assert spec.env == {"LOG_LEVEL": "debug"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            BackendRegistry.from_file(tmp_path / "nope.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "broken.json"
        path.write_text("{not json")
        with pytest.raises(ConfigError):
            BackendRegistry.from_file(path)

    def test_empty_yaml_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert BackendRegistry.from_file(path).count == 0
