from __future__ import annotations

import argparse
import json
import sys
import time
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import Optional, Sequence

from quizsync.config import AppConfig, default_app_config
from quizsync.data.cache import CatalogCache
from quizsync.data.defaults import get_default_catalog
from quizsync.data.schemas import Catalog, CatalogSource
from quizsync.data.wire import catalog_to_entries
from quizsync.errors import CacheIOError, ConfigError, describe_error
from quizsync.settings import SourceSettings, validate_url
from quizsync.sync import SyncListener, SyncOrchestrator
from quizsync.utils.logging import setup_logging


def format_catalog(catalog: Catalog, source: Optional[CatalogSource] = None) -> str:
    """Human readable catalog summary."""
    header = f"{len(catalog)} categories"
    if source is not None:
        header = f"[{source.value}] {header}"
    lines = [header]
    for category in catalog:
        lines.append(
            f"  {category.id}  {category.name} ({len(category.questions)} questions) - {category.description}"
        )
    return "\n".join(lines)


def emit_catalog(catalog: Catalog, source: Optional[CatalogSource], as_json: bool) -> None:
    if as_json:
        print(json.dumps(catalog_to_entries(catalog), ensure_ascii=False, indent=2))
    else:
        print(format_catalog(catalog, source))


class _PrintingListener(SyncListener):
    def __init__(self, as_json: bool = False, verbose: bool = True):
        self.as_json = as_json
        self.verbose = verbose

    def on_catalog_published(self, catalog: Catalog, source: CatalogSource) -> None:
        if self.verbose:
            emit_catalog(catalog, source, self.as_json)
            sys.stdout.flush()

    def on_sync_error(self, error: BaseException) -> None:
        print(f"Notice: sync fell back to built-in quizzes ({describe_error(error)})", file=sys.stderr)


def load_config(path: Optional[str]) -> AppConfig:
    if not path:
        return default_app_config()
    return AppConfig.from_json(path)


def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", "-c", default=None, help="Path to config JSON (default: built-in defaults)")
    common.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    parser = argparse.ArgumentParser(
        prog="quizsync",
        description="quizsync - keep a local quiz catalog in sync with a remote source",
        epilog="""Examples:
  # Sync once and print the resulting catalog
  quizsync sync

  # Point at a different source and sync
  quizsync url set https://example.com/quiz.json
  quizsync sync --json

  # Keep syncing as connectivity changes
  quizsync watch
""",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    sync_parser = subparsers.add_parser("sync", parents=[common], help="Sync once and print the catalog")
    sync_parser.add_argument("--offline", action="store_true", help="Skip the network and use cache or defaults")
    sync_parser.add_argument("--json", action="store_true", help="Print the catalog as JSON")
    sync_parser.add_argument("--timeout", type=float, default=60.0, help="Seconds to wait for a catalog (default: 60)")

    show_parser = subparsers.add_parser("show", parents=[common], help="Print the cached catalog")
    show_parser.add_argument("--json", action="store_true", help="Print the catalog as JSON")

    defaults_parser = subparsers.add_parser("defaults", parents=[common], help="Print the built-in catalog")
    defaults_parser.add_argument("--json", action="store_true", help="Print the catalog as JSON")

    url_parser = subparsers.add_parser("url", parents=[common], help="Show or change the source URL")
    url_parser.add_argument("action", choices=["get", "set", "reset"], help="What to do with the URL")
    url_parser.add_argument("value", nargs="?", help="New URL for 'set'")

    watch_parser = subparsers.add_parser("watch", parents=[common], help="Sync on startup and on reconnect until interrupted")
    watch_parser.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    watch_parser.add_argument("--json", action="store_true", help="Print catalogs as JSON")

    subparsers.add_parser("clear-cache", parents=[common], help="Delete the cached catalog")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    try:
        cfg = load_config(args.config)
    except FileNotFoundError:
        print(f"Error: Config file '{args.config}' not found")
        return 1
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON format in '{args.config}': {e}")
        return 1
    except TypeError as e:
        print(f"Error: Unknown setting in '{args.config}': {e}")
        return 1

    level = "DEBUG" if args.verbose else cfg.logging.level
    logger = setup_logging(cfg.logging.log_dir, cfg.logging.filename, level, cfg.logging.structured)

    if args.command == "defaults":
        emit_catalog(get_default_catalog(), CatalogSource.DEFAULT, args.json)
        return 0

    if args.command == "show":
        cache = CatalogCache(cfg.storage.cache_path())
        try:
            catalog = cache.load()
        except CacheIOError as e:
            print(f"Error: {e}")
            logger.error("CacheIOError: %s", e)
            return 1
        if catalog is None:
            print(f"No cached catalog at {cache.path}")
            return 1
        emit_catalog(catalog, CatalogSource.CACHE, args.json)
        return 0

    if args.command == "clear-cache":
        cache = CatalogCache(cfg.storage.cache_path())
        try:
            removed = cache.clear()
        except CacheIOError as e:
            print(f"Error: {e}")
            return 1
        print("Cache cleared" if removed else "No cache to clear")
        return 0

    if args.command == "url":
        settings = SourceSettings(cfg.storage.settings_path(), cfg.source.default_url)
        if args.action == "get":
            print(settings.source_url)
            return 0
        if args.action == "reset":
            settings.reset_source_url()
            print(settings.source_url)
            return 0
        if not args.value:
            parser.error("url set requires a URL")
        try:
            settings.set_source_url(validate_url(args.value))
        except ConfigError as e:
            print(f"Error: {e}")
            return 2
        print(settings.source_url)
        return 0

    if args.command == "sync":
        orchestrator = SyncOrchestrator.from_config(cfg, offline=args.offline, with_monitor=False)
        orchestrator.add_listener(_PrintingListener(verbose=False))
        try:
            state = orchestrator.start().result(timeout=args.timeout)
        except FutureTimeoutError:
            print(f"Error: no catalog published within {args.timeout:.0f}s")
            return 1
        finally:
            orchestrator.close()
        emit_catalog(state.catalog, state.source, args.json)
        return 0

    if args.command == "watch":
        orchestrator = SyncOrchestrator.from_config(cfg)
        orchestrator.add_listener(_PrintingListener(as_json=args.json))
        deadline = None if args.duration is None else time.monotonic() + args.duration
        try:
            orchestrator.start()
            while deadline is None or time.monotonic() < deadline:
                time.sleep(0.2)
        except KeyboardInterrupt:
            logger.info("Interrupted; stopping")
        finally:
            orchestrator.close()
        return 0

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
