# src/cache/models.py - v3
"""Snapshot store models: StageSnapshot, SnapshotDocument."""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import BaseModel, Field


class StageSnapshot(BaseModel):
    """Input fingerprints and written outputs recorded after a stage last succeeded."""

    stage: str
    fingerprints: dict[str, str] = Field(default_factory=dict)
    outputs: list[str] = Field(default_factory=list)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class SnapshotDocument(BaseModel):
    """On-disk layout of the snapshot store."""

    version: int = 1
    stages: dict[str, StageSnapshot] = Field(default_factory=dict)
