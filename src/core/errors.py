# src/core/errors.py - v1
"""Error taxonomy for pipeline construction and stage execution.

Stage-local errors (StageError subclasses) are caught at the orchestrator's
batch join and aggregated into the RunResult. Graph errors are raised while
resolving the pipeline, before any stage runs, and are always fatal.
"""

from __future__ import annotations

from collections.abc import Iterable


class AssetForgeError(Exception):
    """Base class for all assetforge errors."""


# --- Stage-local errors ---


class StageError(AssetForgeError):
    """Failure confined to a single stage."""

    kind = "stage_error"

    def __init__(self, stage_name: str, message: str) -> None:
        super().__init__(f"[{stage_name}] {message}")
        self.stage_name = stage_name


class InputUnavailable(StageError):
    """A declared input path cannot be read."""

    kind = "input_unavailable"

    def __init__(self, stage_name: str, path: str, reason: str = "") -> None:
        detail = f"input unavailable: {path}"
        if reason:
            detail = f"{detail} ({reason})"
        super().__init__(stage_name, detail)
        self.path = path


class TransformFailed(StageError):
    """The external transform raised an error."""

    kind = "transform_failed"

    def __init__(self, stage_name: str, cause: BaseException) -> None:
        super().__init__(stage_name, f"transform failed: {cause!r}")
        self.cause = cause


class OutputWriteFailed(StageError):
    """Disk or permission error while a stage wrote its outputs."""

    kind = "output_write_failed"

    def __init__(self, stage_name: str, cause: OSError) -> None:
        super().__init__(stage_name, f"cannot write output: {cause}")
        self.cause = cause


# --- Graph construction errors ---


class GraphError(AssetForgeError):
    """Pipeline graph is invalid; nothing may run."""


class CyclicDependency(GraphError):
    """Stages depend on each other in a cycle."""

    def __init__(self, involved_stages: Iterable[str]) -> None:
        self.involved_stages = sorted(involved_stages)
        super().__init__(
            f"Cycle detected involving stages: {self.involved_stages}"
        )


class UnknownStage(GraphError):
    """A stage names a predecessor that was never added."""

    def __init__(self, stage_name: str, missing: str) -> None:
        super().__init__(
            f"Stage '{stage_name}' depends on '{missing}' which is not registered"
        )
        self.stage_name = stage_name
        self.missing = missing


class OutputConflict(GraphError):
    """Two stages in the same batch share an output directory."""

    def __init__(self, output_dir: str, stages: Iterable[str]) -> None:
        self.stages = sorted(stages)
        super().__init__(
            f"Stages {self.stages} run concurrently but share output directory {output_dir}"
        )
        self.output_dir = output_dir
