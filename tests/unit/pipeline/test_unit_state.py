# tests/unit/pipeline/test_unit_state.py - v2
"""Tests for pipeline/state.py: PipelineRun."""

from __future__ import annotations

from assetforge.core.models import StageOutcome
from assetforge.pipeline.state import PipelineRun


class TestPipelineRun:
    def test_default_creation(self):
        run = PipelineRun()
        assert run.run_id
        assert run.outcomes == {}
        assert run.pending == []

    def test_run_id_unique(self):
        assert PipelineRun().run_id != PipelineRun().run_id

    def test_pending_in_execution_order(self):
        run = PipelineRun(batches=[["a", "c"], ["b"]])
        run.record(StageOutcome(name="a", status="succeeded"))
        assert run.pending == ["c", "b"]

    def test_skip_pending(self):
        run = PipelineRun(batches=[["a"], ["b", "c"]])
        run.record(StageOutcome(name="a", status="failed", error_kind="transform_failed"))
        assert run.has_failures
        assert run.skip_pending("upstream failed") == ["b", "c"]
        assert run.pending == []

    def test_to_result(self):
        run = PipelineRun(batches=[["a", "c"], ["b"]])
        run.record(StageOutcome(name="a", status="failed", error_kind="transform_failed", message="boom"))
        run.record(StageOutcome(name="c", status="up_to_date"))
        run.skip_pending("x")
        result = run.to_result()
        assert result.succeeded_stages == ["c"]
        assert result.up_to_date_stages == ["c"]
        assert result.failed_stage_names == ["a"]
        assert result.failed_stages[0].message == "boom"
        assert result.skipped_stages == ["b"]
        assert result.success is False
