# src/core/models.py - v1
"""Core domain models: SourceFile, OutputFile, ChangeSet, StageOutcome, RunResult.

SourceFile and OutputFile are runtime values handed to transforms; the
remaining models are serializable records produced by the tracker and the
orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

from assetforge.cache.fingerprint import fingerprint_bytes
from assetforge.core.errors import InputUnavailable


@dataclass(frozen=True)
class SourceFile:
    """An input file matched by a stage pattern.

    Identity is the normalized path. Content and hash are read lazily and
    cached, so a SourceFile is immutable once read within a run.
    """

    path: Path
    base: Path
    stage: str = field(default="", compare=False)

    @classmethod
    def from_path(cls, path: Path, base: Path, stage: str = "") -> SourceFile:
        return cls(path=Path(path).resolve(), base=Path(base).resolve(), stage=stage)

    @property
    def relative_path(self) -> str:
        """Path relative to the glob base, in POSIX form."""
        try:
            return self.path.relative_to(self.base).as_posix()
        except ValueError:
            return self.path.name

    @cached_property
    def mtime_ns(self) -> int:
        try:
            return self.path.stat().st_mtime_ns
        except OSError as exc:
            raise InputUnavailable(self.stage, str(self.path), str(exc)) from exc

    @cached_property
    def content(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as exc:
            raise InputUnavailable(self.stage, str(self.path), str(exc)) from exc

    @cached_property
    def content_hash(self) -> str:
        """SHA-256 of the file bytes."""
        return fingerprint_bytes(self.content)


@dataclass(frozen=True)
class OutputFile:
    """A file written by a stage beneath its output directory."""

    path: Path
    relative_path: str


class ChangeSet(BaseModel):
    """Classification of candidate inputs against a previous snapshot.

    Every candidate lands in exactly one of added/modified/unchanged.
    `removed` lists snapshot paths that are no longer candidates.
    """

    added: list[str] = Field(default_factory=list)
    modified: list[str] = Field(default_factory=list)
    unchanged: list[str] = Field(default_factory=list)
    removed: list[str] = Field(default_factory=list)
    snapshot: dict[str, str] = Field(default_factory=dict)

    @property
    def changed(self) -> list[str]:
        """Paths that need reprocessing (added + modified), sorted."""
        return sorted([*self.added, *self.modified])

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.modified)


StageStatus = Literal["succeeded", "up_to_date", "failed", "skipped"]


class StageOutcome(BaseModel):
    """Terminal state of one stage within a run."""

    name: str
    status: StageStatus
    error_kind: str | None = None
    message: str | None = None
    outputs: int = 0
    duration_ms: int = 0


class StageFailure(BaseModel):
    """A failed stage and its cause, as surfaced to the invoker."""

    name: str
    error_kind: str
    message: str


class RunResult(BaseModel):
    """Aggregate result of one Orchestrator.execute call."""

    run_id: str
    succeeded_stages: list[str] = Field(default_factory=list)
    up_to_date_stages: list[str] = Field(default_factory=list)
    failed_stages: list[StageFailure] = Field(default_factory=list)
    skipped_stages: list[str] = Field(default_factory=list)
    cancelled: bool = False
    batches_completed: int = 0
    duration_ms: int = 0

    @property
    def success(self) -> bool:
        return not self.failed_stages and not self.cancelled

    @property
    def failed_stage_names(self) -> list[str]:
        return [f.name for f in self.failed_stages]
