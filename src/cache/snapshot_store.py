# src/cache/snapshot_store.py - v2
"""JSON file-backed snapshot store.

Holds one StageSnapshot per stage in a single JSON document. Writes go to
a sibling temp file and are swapped in with os.replace, under a lock, so a
crash mid-write never leaves a truncated store behind.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from pathlib import Path

from pydantic import ValidationError

from assetforge.cache.models import SnapshotDocument, StageSnapshot

logger = logging.getLogger(__name__)


class SnapshotStore:
    """Persist per-stage input fingerprints."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path).expanduser()
        self._lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, stage: str) -> dict[str, str]:
        """Return the stored fingerprints for a stage (empty if none)."""
        with self._lock:
            entry = self._read().stages.get(stage)
        return dict(entry.fingerprints) if entry else {}

    def get_outputs(self, stage: str) -> list[str]:
        """Return the output paths recorded for a stage (empty if none)."""
        with self._lock:
            entry = self._read().stages.get(stage)
        return list(entry.outputs) if entry else []

    def put(
        self,
        stage: str,
        fingerprints: dict[str, str],
        outputs: list[str] | None = None,
    ) -> None:
        """Replace a stage's snapshot."""
        with self._lock:
            document = self._read()
            document.stages[stage] = StageSnapshot(
                stage=stage,
                fingerprints=dict(fingerprints),
                outputs=sorted(outputs or []),
            )
            self._write(document)
        logger.debug("Snapshot stored for '%s' (%d files)", stage, len(fingerprints))

    def delete(self, stage: str) -> None:
        """Forget a stage's snapshot so its next run is a full run."""
        with self._lock:
            document = self._read()
            if document.stages.pop(stage, None) is not None:
                self._write(document)

    def stages(self) -> list[str]:
        with self._lock:
            return sorted(self._read().stages)

    def _read(self) -> SnapshotDocument:
        if not self._path.exists():
            return SnapshotDocument()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            return SnapshotDocument(**data)
        except (json.JSONDecodeError, ValidationError, OSError) as e:
            logger.warning("Ignoring unreadable snapshot store %s: %s", self._path, e)
            return SnapshotDocument()

    def _write(self, document: SnapshotDocument) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(f"{self._path.name}.tmp")
        tmp_path.write_text(document.model_dump_json(indent=2), encoding="utf-8")
        os.replace(tmp_path, self._path)
