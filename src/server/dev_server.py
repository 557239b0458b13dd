# src/server/dev_server.py - v2
"""Development server interface: incremental rebuild plus reload signal.

The network transport (HTTP serving, browser reload push, file watching)
lives outside this package. A transport:
  - maps each request through resolve_request() to a file on disk;
  - forwards file-system change notifications to handle_change();
  - awaits start() once before accepting requests, which builds what the
    server serves;
  - registers a reload listener, which is called exactly once per
    completed Orchestrator.execute, never per stage.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlsplit

from assetforge.config.settings import Settings
from assetforge.core.globbing import is_excluded, match_pattern, split_patterns
from assetforge.core.models import RunResult
from assetforge.pipeline.graph import PipelineGraph
from assetforge.pipeline.orchestrator import Orchestrator
from assetforge.storage.layout import ENTRY_HTML

logger = logging.getLogger(__name__)

ReloadListener = Callable[[RunResult], None]


class DevServer:
    """Serve one or more directories and rebuild on source changes.

    Args:
        orchestrator: Runs the rebuilds.
        graph: Pipeline rebuilt on every relevant change.
        base_dirs: Directories searched in order for each request.
        project_root: Root that watch patterns are relative to.
        watch_patterns: Globs (with "!" exclusions) selecting relevant changes.
        port: Port the transport should bind.
        history_fallback: Serve index.html for extension-less unknown paths.
        startup_graph: Pipeline built by start(); defaults to graph.
    """

    def __init__(
        self,
        orchestrator: Orchestrator,
        graph: PipelineGraph | None,
        base_dirs: list[Path],
        project_root: Path,
        watch_patterns: list[str] | None = None,
        port: int = 5000,
        history_fallback: bool = True,
        startup_graph: PipelineGraph | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._graph = graph
        self._startup_graph = startup_graph if startup_graph is not None else graph
        self._base_dirs = [Path(d).resolve() for d in base_dirs]
        self._project_root = Path(project_root).resolve()
        self._watch, self._ignore = split_patterns(watch_patterns or [])
        self._port = port
        self._history_fallback = history_fallback
        self._listeners: list[ReloadListener] = []
        self._lock = asyncio.Lock()
        self.last_result: RunResult | None = None

    @property
    def port(self) -> int:
        return self._port

    @property
    def base_dirs(self) -> list[Path]:
        return list(self._base_dirs)

    def add_reload_listener(self, listener: ReloadListener) -> None:
        self._listeners.append(listener)

    def resolve_request(self, url_path: str) -> Path | None:
        """Map a request path to a file in the first base dir that has it.

        Directories resolve to their index.html. Paths escaping a base dir
        are rejected. Unknown paths whose last segment has no extension fall
        back to the root index.html (client-side routing).
        """
        raw = unquote(urlsplit(url_path).path)
        parts = [p for p in PurePosixPath("/" + raw).parts[1:] if p not in ("", ".")]
        if ".." in parts:
            return None

        for base in self._base_dirs:
            candidate = base.joinpath(*parts) if parts else base
            if candidate.is_dir():
                candidate = candidate / ENTRY_HTML
            if candidate.is_file():
                return candidate

        if self._history_fallback and (not parts or "." not in parts[-1]):
            for base in self._base_dirs:
                index = base / ENTRY_HTML
                if index.is_file():
                    return index
        return None

    def is_relevant(self, changed_paths: Iterable[str | Path]) -> bool:
        """True if any changed path matches the watch patterns."""
        if self._graph is None:
            return False
        for raw in changed_paths:
            path = Path(raw)
            if path.is_absolute():
                try:
                    path = path.resolve().relative_to(self._project_root)
                except ValueError:
                    continue
            rel = path.as_posix()
            if is_excluded(rel, self._ignore):
                continue
            if any(match_pattern(rel, pattern) for pattern in self._watch):
                return True
        return False

    async def start(self) -> RunResult | None:
        """Build the served tree once before serving.

        No reload signal is sent: no client is connected yet.
        """
        if self._startup_graph is None:
            return None
        async with self._lock:
            result = await self._orchestrator.execute(self._startup_graph)
            self.last_result = result
        if not result.success:
            logger.error("Startup build failed: %s", result.failed_stage_names)
        return result

    async def rebuild(self) -> RunResult:
        """Run the graph once and signal reload listeners once."""
        if self._graph is None:
            raise RuntimeError("This server has no pipeline to rebuild")
        async with self._lock:
            result = await self._orchestrator.execute(self._graph)
            self.last_result = result
            self._notify(result)
            return result

    async def handle_change(self, changed_paths: Iterable[str | Path]) -> RunResult | None:
        """Rebuild if the change touches a watched source; else do nothing."""
        paths = list(changed_paths)
        if not self.is_relevant(paths):
            logger.debug("Ignoring change to %s", paths)
            return None
        logger.info("Change detected in %d file(s), rebuilding", len(paths))
        return await self.rebuild()

    def _notify(self, result: RunResult) -> None:
        for listener in self._listeners:
            try:
                listener(result)
            except Exception:
                logger.exception("Reload listener failed")


def create_dev_server(settings: Settings, orchestrator: Orchestrator) -> DevServer:
    """Serve tmp_root then source_root, rebuilding the dev pipeline on change."""
    from assetforge.pipeline.presets import build_dev_graph, dev_watch_patterns

    return DevServer(
        orchestrator=orchestrator,
        graph=build_dev_graph(settings),
        base_dirs=[settings.tmp_path, settings.source_path],
        project_root=settings.project_path,
        watch_patterns=dev_watch_patterns(settings),
        port=settings.dev_server_port,
    )


def create_dist_server(settings: Settings, orchestrator: Orchestrator) -> DevServer:
    """Serve the output tree; start() runs the full production build first."""
    from assetforge.pipeline.presets import build_default_graph

    return DevServer(
        orchestrator=orchestrator,
        graph=None,
        base_dirs=[settings.output_path],
        project_root=settings.project_path,
        port=settings.dist_server_port,
        startup_graph=build_default_graph(settings),
    )
