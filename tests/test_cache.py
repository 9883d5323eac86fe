"""
Tests for the Disk Cache Store.
"""

import json
import sys

import pytest

from mcpcute.cache import DiskCacheStore, default_cache_root, sanitize_name
from mcpcute.models import PersistedCacheRecord


def _record(backend="fs", signature="sig-1", names=("read_file",)) -> PersistedCacheRecord:
    return PersistedCacheRecord(
        backend=backend,
        signature=signature,
        entries=[{"name": n, "description": f"{n} tool", "inputSchema": {"type": "object"}} for n in names],
    )


# ── Cache root ──────────────────────────────────────────────

class TestCacheRoot:
    def test_env_override(self, monkeypatch, tmp_path):
        monkeypatch.setenv("MCPCUTE_CACHE_DIR", str(tmp_path / "custom"))
        assert default_cache_root() == tmp_path / "custom"

    @pytest.mark.skipif(not sys.platform.startswith("linux"), reason="XDG layout is Linux only")
    def test_xdg_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("MCPCUTE_CACHE_DIR", raising=False)
        monkeypatch.setenv("XDG_CACHE_HOME", str(tmp_path))
        assert default_cache_root() == tmp_path / "mcpcute"

    def test_created_recursively(self, tmp_path):
        root = tmp_path / "a" / "b" / "c"
        store = DiskCacheStore(root)
        assert store.enabled
        assert root.is_dir()

    def test_unwritable_root_disables_store(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        store = DiskCacheStore(blocker / "cache")
        assert not store.enabled
        assert store.load("fs") is None
        store.store("fs", _record())
        store.invalidate("fs")


# ── File naming ─────────────────────────────────────────────

class TestSanitizeName:
    def test_plain_name_unchanged(self):
        assert sanitize_name("my-server_1.2") == "my-server_1.2"

    def test_unsafe_chars_replaced(self):
        assert sanitize_name("org/server name") == "org_server_name"

    def test_no_path_traversal(self, store):
        path = store.path_for("../../etc/passwd")
        assert path.parent == store.root

    def test_dot_names(self):
        assert sanitize_name("..") == "__"
        assert sanitize_name("") == "_"


# ── load / store / invalidate ───────────────────────────────

class TestDiskCacheStore:
    def test_missing_file_is_absent(self, store):
        assert store.load("fs") is None

    def test_store_then_load(self, store):
        store.store("fs", _record(names=("read_file", "write_file")))
        loaded = store.load("fs")
        assert loaded is not None
        assert loaded.signature == "sig-1"
        assert [e["name"] for e in loaded.entries] == ["read_file", "write_file"]
        assert loaded.fetched_at

    def test_file_layout(self, store):
        store.store("fs", _record())
        data = json.loads(store.path_for("fs").read_text())
        assert set(data) >= {"signature", "entries", "fetchedAt"}

    def test_store_overwrites(self, store):
        store.store("fs", _record(signature="old"))
        store.store("fs", _record(signature="new"))
        assert store.load("fs").signature == "new"

    def test_no_temp_files_left(self, store):
        store.store("fs", _record())
        assert [p.name for p in store.root.iterdir()] == ["fs.json"]

    def test_malformed_json_is_absent(self, store):
        store.path_for("fs").write_text("{broken")
        assert store.load("fs") is None

    def test_wrong_shape_is_absent(self, store):
        store.path_for("fs").write_text(json.dumps({"signature": 42, "entries": "nope"}))
        assert store.load("fs") is None

    def test_entry_without_name_is_absent(self, store):
        store.path_for("fs").write_text(json.dumps({"signature": "s", "entries": [{"description": "x"}]}))
        assert store.load("fs") is None

    def test_record_for_other_backend_is_absent(self, store):
        # "a/b" and "a_b" share a file name
        store.store("a/b", _record(backend="a/b"))
        assert store.load("a_b") is None
        assert store.load("a/b") is not None

    def test_invalidate(self, store):
        store.store("fs", _record())
        store.invalidate("fs")
        assert store.load("fs") is None
        assert not store.path_for("fs").exists()

    def test_invalidate_absent_is_noop(self, store):
        store.invalidate("never-stored")
