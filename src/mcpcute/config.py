"""
Runtime settings resolved from the environment.

    MCPCUTE_CONFIG     backend configuration file (default ./mcpcute.config.json)
    MCPCUTE_CACHE_DIR  catalog cache directory (default: platform cache dir)
    MCPCUTE_NO_CACHE   set to 1/true/yes to disable catalog persistence
    MCPCUTE_LOG_LEVEL  logging level (default INFO)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from .cache import CACHE_DIR_ENV

DEFAULT_CONFIG_PATH = "./mcpcute.config.json"

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass
class Settings:
    config_path: Path
    cache_dir: Path | None = None
    use_cache: bool = True
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> Settings:
        env = os.environ if environ is None else environ
        cache_dir = env.get(CACHE_DIR_ENV)
        return cls(
            config_path=Path(env.get("MCPCUTE_CONFIG") or DEFAULT_CONFIG_PATH),
            cache_dir=Path(cache_dir).expanduser() if cache_dir else None,
            use_cache=env.get("MCPCUTE_NO_CACHE", "").strip().lower() not in _TRUTHY,
            log_level=(env.get("MCPCUTE_LOG_LEVEL") or "INFO").upper(),
        )
