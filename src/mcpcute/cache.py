"""
Disk Cache Store — persisted tool catalogs, one JSON file per backend.

A record is only an advisory cache: it is trusted while its signature
matches the backend's current launch configuration and otherwise thrown
away. No cross-process locking; the last writer wins.
"""

from __future__ import annotations

import json
import logging
import os
import re
import sys
import tempfile
from pathlib import Path

from .models import PersistedCacheRecord

logger = logging.getLogger(__name__)

APP_NAME = "mcpcute"
CACHE_DIR_ENV = "MCPCUTE_CACHE_DIR"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def default_cache_root() -> Path:
    """Resolve the cache root from MCPCUTE_CACHE_DIR or the platform default."""
    override = os.environ.get(CACHE_DIR_ENV)
    if override:
        return Path(override).expanduser()

    home = Path.home()
    if sys.platform == "darwin":
        return home / "Library" / "Caches" / APP_NAME
    if sys.platform.startswith("win"):
        base = os.environ.get("LOCALAPPDATA")
        root = Path(base) if base else home / "AppData" / "Local"
        return root / APP_NAME / "Cache"

    xdg = os.environ.get("XDG_CACHE_HOME")
    root = Path(xdg) if xdg else home / ".cache"
    return root / APP_NAME


def sanitize_name(name: str) -> str:
    """Map a backend name to a safe file stem."""
    cleaned = _UNSAFE_CHARS.sub("_", name)
    # "." and ".." are not usable file stems
    if cleaned.strip(".") == "":
        cleaned = cleaned.replace(".", "_")
    return cleaned or "_"


class DiskCacheStore:
    """
    File-backed store of PersistedCacheRecords.

    If the root cannot be created the store disables itself: loads miss,
    stores and deletes are no-ops, and the run continues in memory only.
    """

    def __init__(self, root: str | Path | None = None):
        self.root = Path(root).expanduser() if root else default_cache_root()
        self.enabled = True
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning(f"Cache directory {self.root} unavailable, caching in memory only: {e}")
            self.enabled = False

    def path_for(self, name: str) -> Path:
        return self.root / f"{sanitize_name(name)}.json"

    def load(self, name: str) -> PersistedCacheRecord | None:
        """Return the record for `name`, or None if missing or unreadable."""
        if not self.enabled:
            return None

        path = self.path_for(name)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning(f"Could not read cache for {name}: {e}")
            return None

        try:
            record = PersistedCacheRecord.from_dict(json.loads(raw))
        except ValueError as e:
            # json.JSONDecodeError is a ValueError
            logger.warning(f"Ignoring malformed cache file {path}: {e}")
            return None

        if record.backend and record.backend != name:
            logger.warning(
                f"Ignoring cache file {path}: written for '{record.backend}', not '{name}'"
            )
            return None

        return record

    def store(self, name: str, record: PersistedCacheRecord) -> None:
        """Overwrite the record for `name`. Raises OSError on failure."""
        if not self.enabled:
            return

        path = self.path_for(name)
        payload = json.dumps(record.to_dict(), indent=2)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.stem}.", suffix=".tmp", dir=str(self.root)
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise

        logger.debug(f"Cached {len(record.entries)} tool(s) for {name} at {path}")

    def invalidate(self, name: str) -> None:
        """Delete the record for `name` if there is one."""
        if not self.enabled:
            return

        path = self.path_for(name)
        try:
            path.unlink()
            logger.info(f"Invalidated cache for {name}")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"Could not delete cache file {path}: {e}")
