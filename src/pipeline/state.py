# src/pipeline/state.py - v2
"""PipelineRun: the mutable record of one orchestrator execution.

Created when orchestration begins, updated as each stage reaches a
terminal state, and turned into a RunResult at the end. The run owns its
outcome map exclusively; stages never see it.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, Field

from assetforge.core.models import RunResult, StageFailure, StageOutcome


class PipelineRun(BaseModel):
    """Stage outcomes accumulated over one execution."""

    run_id: str = Field(default_factory=lambda: uuid.uuid4().hex[:12])
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    batches: list[list[str]] = Field(default_factory=list)
    outcomes: dict[str, StageOutcome] = Field(default_factory=dict)
    batches_completed: int = 0
    cancelled: bool = False

    @property
    def stage_order(self) -> list[str]:
        return [name for batch in self.batches for name in batch]

    @property
    def pending(self) -> list[str]:
        """Stages with no terminal outcome yet, in execution order."""
        return [n for n in self.stage_order if n not in self.outcomes]

    @property
    def has_failures(self) -> bool:
        return any(o.status == "failed" for o in self.outcomes.values())

    def record(self, outcome: StageOutcome) -> None:
        self.outcomes[outcome.name] = outcome

    def skip_pending(self, reason: str) -> list[str]:
        """Mark every stage that never started as skipped."""
        skipped = self.pending
        for name in skipped:
            self.record(StageOutcome(name=name, status="skipped", message=reason))
        return skipped

    def to_result(self) -> RunResult:
        elapsed = datetime.now(timezone.utc) - self.started_at
        result = RunResult(
            run_id=self.run_id,
            cancelled=self.cancelled,
            batches_completed=self.batches_completed,
            duration_ms=int(elapsed.total_seconds() * 1000),
        )
        for name in self.stage_order:
            outcome = self.outcomes.get(name)
            if outcome is None or outcome.status == "skipped":
                result.skipped_stages.append(name)
            elif outcome.status == "failed":
                result.failed_stages.append(
                    StageFailure(
                        name=name,
                        error_kind=outcome.error_kind or "unknown",
                        message=outcome.message or "",
                    )
                )
            else:
                result.succeeded_stages.append(name)
                if outcome.status == "up_to_date":
                    result.up_to_date_stages.append(name)
        return result
