# src/main.py - v2
"""CLI entry point: build, clean, plan and cache-config commands.

Usage:
    assetforge build [--no-clean] [--cache-config] [--stage NAME ...]
    assetforge clean
    assetforge plan [--dev]
    assetforge cache-config

Exit codes: 0 on success, 1 on any stage failure or fatal error,
130 when interrupted.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path

from assetforge.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except Exception as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="assetforge",
        description=f"assetforge v{__version__}: front-end build orchestrator",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "-C", "--project", type=Path, default=None,
        help="Project root (default: PROJECT_ROOT or current directory)",
    )
    parser.add_argument(
        "-j", "--concurrency", type=int, default=None,
        help="Maximum concurrently running stages",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- build ---
    p_build = subparsers.add_parser("build", help="Clean, then run the full build")
    p_build.add_argument(
        "--no-clean", action="store_true",
        help="Keep previous outputs (enables incremental stages)",
    )
    p_build.add_argument(
        "--cache-config", action="store_true",
        help="Write the cache manifest after a successful build",
    )
    p_build.add_argument(
        "--stage", action="append", default=None, dest="stages",
        help="Only run this stage and its predecessors (repeatable)",
    )
    p_build.set_defaults(func=_cmd_build)

    # --- clean ---
    p_clean = subparsers.add_parser("clean", help="Remove output and intermediate trees")
    p_clean.set_defaults(func=_cmd_clean)

    # --- plan ---
    p_plan = subparsers.add_parser("plan", help="Print the resolved stage batches")
    p_plan.add_argument("--dev", action="store_true", help="Show the dev pipeline")
    p_plan.set_defaults(func=_cmd_plan)

    # --- cache-config ---
    p_cache = subparsers.add_parser(
        "cache-config", help="Write the cache manifest for the current output tree",
    )
    p_cache.set_defaults(func=_cmd_cache_config)

    return parser


def _load_settings(args: argparse.Namespace):
    from assetforge.config.settings import load_settings

    overrides: dict[str, object] = {}
    if args.project is not None:
        overrides["project_root"] = args.project
    if args.concurrency is not None:
        overrides["concurrency_limit"] = args.concurrency
    if getattr(args, "stages", None):
        overrides["stages"] = args.stages
    return load_settings(**overrides)


async def _cmd_build(args: argparse.Namespace, settings) -> int:
    """Run the production pipeline."""
    from assetforge.cache.change_tracker import ChangeTracker
    from assetforge.cache.snapshot_store import SnapshotStore
    from assetforge.pipeline.orchestrator import Orchestrator
    from assetforge.pipeline.presets import build_default_graph
    from assetforge.storage.layout import clean

    graph = build_default_graph(settings)

    if not args.no_clean:
        clean(settings.tmp_path, settings.output_path)

    orchestrator = Orchestrator(
        change_tracker=ChangeTracker(SnapshotStore(settings.snapshot_file)),
        concurrency_limit=settings.concurrency_limit,
    )
    _install_stop_handlers(orchestrator)
    result = await orchestrator.execute(graph)

    print(f"\nBuild {'complete' if result.success else 'failed'}:")
    print(f"  Succeeded:  {len(result.succeeded_stages)}")
    print(f"  Failed:     {len(result.failed_stages)}")
    print(f"  Skipped:    {len(result.skipped_stages)}")
    print(f"  Duration:   {result.duration_ms / 1000:.1f}s")
    for failure in result.failed_stages:
        print(f"  ! {failure.name}: {failure.message}")

    if result.cancelled:
        return 130
    if not result.success:
        return 1

    if args.cache_config or settings.cache_config_enabled:
        _write_cache_config(settings)
    return 0


async def _cmd_clean(args: argparse.Namespace, settings) -> int:
    from assetforge.storage.layout import clean

    removed = clean(settings.tmp_path, settings.output_path)
    print(f"Removed {len(removed)} director{'y' if len(removed) == 1 else 'ies'}")
    return 0


async def _cmd_plan(args: argparse.Namespace, settings) -> int:
    """Print each batch and its stages."""
    from assetforge.pipeline.presets import build_default_graph, build_dev_graph

    graph = build_dev_graph(settings) if args.dev else build_default_graph(settings)
    for idx, batch in enumerate(graph.resolve_order()):
        print(f"Batch {idx}:")
        for name in batch:
            stage = graph.get(name)
            deps = ", ".join(stage.predecessors) or "-"
            print(f"  {name:<14} after: {deps:<40} {stage.description}")
    return 0


async def _cmd_cache_config(args: argparse.Namespace, settings) -> int:
    if not settings.output_path.is_dir():
        logger.error("Output tree not found: %s (run build first)", settings.output_path)
        return 1
    _write_cache_config(settings)
    return 0


def _write_cache_config(settings) -> None:
    from assetforge.manifest.fingerprint_manifest import (
        FingerprintManifest,
        collect_precache,
        resolve_cache_id,
        write_cache_config,
    )

    precache = collect_precache(settings.output_path, settings.precache_patterns)
    manifest = FingerprintManifest(resolve_cache_id(settings.project_path, settings.cache_id))
    record = manifest.compute(precache)
    path = write_cache_config(
        settings.output_path,
        record,
        filename=settings.cache_config_file,
        disabled=settings.cache_disabled,
    )
    print(f"Cache config: {path} ({record.digest})")


def _install_stop_handlers(orchestrator) -> None:
    """Let SIGINT/SIGTERM stop the run at the next stage boundary."""
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, orchestrator.request_stop)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform or outside the main thread.
            logger.debug("Cannot install handler for %s", sig)


def _setup_logging(settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from assetforge.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
