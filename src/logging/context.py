# src/logging/context.py - v2
"""Contextual logging support: attach run_id, batch and stage to log records.

asyncio tasks and worker threads started with asyncio.to_thread inherit a
copy of the current context, so each concurrently running stage logs with
its own stage name.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_batch: contextvars.ContextVar[int | None] = contextvars.ContextVar(
    "batch", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    run_id: str | None = None
    batch: int | None = None
    stage: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    return LogContext(run_id=_run_id.get(), batch=_batch.get(), stage=_stage.get())


def set_run_context(run_id: str) -> None:
    """Set run-level context (once per Orchestrator.execute call)."""
    _run_id.set(run_id)
    _batch.set(None)
    _stage.set(None)


def set_batch_context(batch: int) -> None:
    _batch.set(batch)


def set_stage_context(stage: str) -> None:
    """Set stage-level context (inside the stage's own task)."""
    _stage.set(stage)


def clear_context() -> None:
    """Reset all context variables."""
    _run_id.set(None)
    _batch.set(None)
    _stage.set(None)
