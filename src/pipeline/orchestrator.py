# src/pipeline/orchestrator.py - v3
"""Orchestrator: run a PipelineGraph batch by batch.

Stages of one batch run concurrently, bounded by a semaphore, each stage
body in a worker thread. A batch is a strict barrier: the next batch starts
only once every stage of the current one reached a terminal state.

Failure policy:
  - A stage failure never interrupts its siblings.
  - After a batch with a failure, no later batch starts; their stages are
    reported as skipped.
  - No retries. Incremental stages only commit their input snapshot after
    success, so the next invocation picks up where this one failed.

Incremental stages hand only added or modified inputs to their transform.
They rerun over every input when an input was removed or a file they wrote
last time is gone, and delete the outputs they no longer produce.

Graph errors (cycles, unknown predecessors, output conflicts) are raised
from execute() before any stage starts.
"""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

from assetforge.cache.change_tracker import ChangeTracker
from assetforge.core.errors import OutputWriteFailed, StageError
from assetforge.core.models import RunResult, SourceFile, StageOutcome
from assetforge.logging.context import (
    set_batch_context,
    set_run_context,
    set_stage_context,
)
from assetforge.pipeline.graph import PipelineGraph
from assetforge.pipeline.stage import TransformStage
from assetforge.pipeline.state import PipelineRun

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 4


class Orchestrator:
    """Execute pipeline graphs.

    Args:
        change_tracker: Tracker used by incremental stages. Without one,
            every stage processes its full input set.
        concurrency_limit: Default bound on concurrently running stages.
    """

    def __init__(
        self,
        change_tracker: ChangeTracker | None = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY,
    ) -> None:
        _check_limit(concurrency_limit)
        self._tracker = change_tracker
        self._concurrency_limit = concurrency_limit
        self._stop_requested = False

    @property
    def stop_requested(self) -> bool:
        return self._stop_requested

    def request_stop(self) -> None:
        """Stop at the next stage boundary.

        In-flight stages finish normally; no further batch is started.
        Safe to call from a signal handler.
        """
        if not self._stop_requested:
            logger.warning("Stop requested: finishing in-flight stages")
        self._stop_requested = True

    async def execute(
        self,
        graph: PipelineGraph,
        concurrency_limit: int | None = None,
    ) -> RunResult:
        """Run every stage of the graph in dependency order.

        Args:
            graph: Stages and their edges.
            concurrency_limit: Overrides the default bound for this call.

        Returns:
            RunResult listing succeeded, failed and skipped stages.

        Raises:
            GraphError: The graph cannot be ordered. Nothing ran.
        """
        limit = self._concurrency_limit if concurrency_limit is None else concurrency_limit
        _check_limit(limit)

        run = PipelineRun(batches=graph.resolve_order())
        self._stop_requested = False
        set_run_context(run.run_id)
        semaphore = asyncio.Semaphore(limit)

        for batch_idx, batch in enumerate(run.batches):
            if self._stop_requested:
                run.cancelled = True
                skipped = run.skip_pending("run stopped before this batch")
                logger.warning("Run stopped; %d stages not started", len(skipped))
                break

            set_batch_context(batch_idx)
            logger.info(
                "Batch %d/%d: executing %s", batch_idx + 1, len(run.batches), batch
            )
            outcomes = await asyncio.gather(
                *(self._run_stage(graph.get(name), semaphore) for name in batch)
            )
            for outcome in outcomes:
                run.record(outcome)
            run.batches_completed = batch_idx + 1

            if run.has_failures:
                skipped = run.skip_pending("a predecessor batch failed")
                if skipped:
                    logger.error(
                        "Aborting after batch %d: skipping %s", batch_idx + 1, skipped
                    )
                break

        result = run.to_result()
        _log_summary(result)
        return result

    async def _run_stage(
        self, stage: TransformStage, semaphore: asyncio.Semaphore
    ) -> StageOutcome:
        """Run one stage to a terminal outcome; never raises StageError."""
        async with semaphore:
            set_stage_context(stage.name)
            start_ns = time.monotonic_ns()
            try:
                outcome = await asyncio.to_thread(self._execute_stage, stage)
            except StageError as exc:
                logger.error("Stage '%s' failed: %s", stage.name, exc)
                outcome = StageOutcome(
                    name=stage.name,
                    status="failed",
                    error_kind=exc.kind,
                    message=str(exc),
                )
            except Exception as exc:
                logger.exception("Stage '%s' raised unexpectedly", stage.name)
                outcome = StageOutcome(
                    name=stage.name,
                    status="failed",
                    error_kind="unexpected",
                    message=repr(exc),
                )
            outcome.duration_ms = (time.monotonic_ns() - start_ns) // 1_000_000
            return outcome

    def _execute_stage(self, stage: TransformStage) -> StageOutcome:
        """Stage body, run in a worker thread."""
        sources = stage.resolve_inputs()

        if not stage.incremental or self._tracker is None:
            outputs = stage.run(sources)
            return StageOutcome(name=stage.name, status="succeeded", outputs=len(outputs))

        change_set = self._tracker.compute_change_set(
            [s.path for s in sources], stage_name=stage.name
        )
        previous = set(self._tracker.load_outputs(stage.name))
        full_run = bool(change_set.removed) or _outputs_missing(stage, sources, previous)

        if not full_run and not change_set.has_changes:
            logger.info("Stage '%s': up to date (%d inputs)", stage.name, len(sources))
            return StageOutcome(name=stage.name, status="up_to_date")

        if full_run:
            logger.info(
                "Stage '%s': %d inputs removed or outputs missing, rebuilding all %d inputs",
                stage.name, len(change_set.removed), len(sources),
            )
            written = {o.path.as_posix() for o in stage.run(sources)}
            _prune(stage, previous - written)
            owned = written
        else:
            changed = set(change_set.changed)
            written = {
                o.path.as_posix()
                for o in stage.run(s for s in sources if s.path.as_posix() in changed)
            }
            owned = previous | written

        self._tracker.commit(stage.name, change_set, owned)
        return StageOutcome(name=stage.name, status="succeeded", outputs=len(written))


def _outputs_missing(
    stage: TransformStage, sources: list[SourceFile], previous: set[str]
) -> bool:
    """True when files the stage wrote last time are gone from disk."""
    if previous:
        return any(not Path(p).is_file() for p in previous)
    return bool(sources) and not stage.resolved_output_dir.is_dir()


def _prune(stage: TransformStage, stale: set[str]) -> None:
    """Delete outputs the stage no longer produces, inside its output dir only."""
    out_dir = stage.resolved_output_dir
    for raw in sorted(stale):
        path = Path(raw)
        if not path.is_relative_to(out_dir):
            logger.warning("Stage '%s': not pruning %s outside %s", stage.name, path, out_dir)
            continue
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise OutputWriteFailed(stage.name, exc) from exc
        logger.info("Stage '%s': removed stale output %s", stage.name, path)


def _check_limit(limit: int) -> None:
    if limit < 1:
        raise ValueError(f"concurrency_limit must be >= 1, got {limit}")


def _log_summary(result: RunResult) -> None:
    if result.success:
        logger.info(
            "Run %s complete: %d stages succeeded (%d up to date), %dms",
            result.run_id,
            len(result.succeeded_stages),
            len(result.up_to_date_stages),
            result.duration_ms,
        )
        return
    for failure in result.failed_stages:
        logger.error("Stage '%s' failed (%s): %s", failure.name, failure.error_kind, failure.message)
    logger.error(
        "Run %s %s: %d succeeded, %d failed, %d skipped, %dms",
        result.run_id,
        "cancelled" if result.cancelled else "failed",
        len(result.succeeded_stages),
        len(result.failed_stages),
        len(result.skipped_stages),
        result.duration_ms,
    )
