"""
mcpcute command line.

Usage:
    # Serve the meta-tools over stdio (what an MCP client launches)
    mcpcute --config mcpcute.config.json

    # List configured backends
    mcpcute --list

    # Forget every persisted catalog
    mcpcute --clear-cache
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from . import __version__
from .aggregator import Aggregator
from .cache import DiskCacheStore
from .config import Settings
from .errors import ConfigError
from .server import serve
from .spec import BackendRegistry

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO") -> None:
    """Log to stderr; stdout belongs to the MCP protocol."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mcpcute",
        description="Aggregate many MCP servers behind a handful of meta-tools.",
    )
    parser.add_argument("--config", type=Path, help="Backend configuration file (JSON or YAML)")
    parser.add_argument("--cache-dir", type=Path, help="Directory for persisted tool catalogs")
    parser.add_argument("--no-cache", action="store_true", help="Do not persist tool catalogs")
    parser.add_argument("--log-level", help="Logging level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--list", action="store_true", help="List configured backends and exit")
    parser.add_argument("--clear-cache", action="store_true", help="Delete persisted catalogs and exit")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def resolve_settings(args: argparse.Namespace, settings: Settings | None = None) -> Settings:
    """Apply command line overrides on top of environment settings."""
    settings = settings or Settings.from_env()
    if args.config:
        settings.config_path = args.config
    if args.cache_dir:
        settings.cache_dir = args.cache_dir
    if args.no_cache:
        settings.use_cache = False
    if args.log_level:
        settings.log_level = args.log_level.upper()
    return settings


def list_backends(registry: BackendRegistry) -> None:
    if not registry.count:
        print("No backends configured.")
        return
    print(f"Configured backends ({registry.count}):")
    for spec in registry:
        line = f"  {spec.name:<20} {spec.command_line}"
        if spec.description:
            line += f"  # {spec.description}"
        print(line)


def clear_cache(registry: BackendRegistry, store: DiskCacheStore) -> None:
    for name in registry.list_all():
        store.invalidate(name)
    print(f"Cleared cached tools for {registry.count} backend(s) in {store.root}")


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = resolve_settings(args)
    configure_logging(settings.log_level)

    try:
        registry = BackendRegistry.from_file(settings.config_path)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.list:
        list_backends(registry)
        return 0

    store = DiskCacheStore(settings.cache_dir) if settings.use_cache else None

    if args.clear_cache:
        if store is None:
            print("Catalog persistence is disabled, nothing to clear.")
            return 0
        clear_cache(registry, store)
        return 0

    aggregator = Aggregator(registry, store=store)
    try:
        asyncio.run(serve(aggregator))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
