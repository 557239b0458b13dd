# src/cache/change_tracker.py - v2
"""Change tracker: classify stage inputs against the last successful snapshot.

compute_change_set() is pure: it reads the candidates and compares their
content fingerprints with a previous snapshot, but never writes. The new
snapshot is persisted by commit(), which the orchestrator calls only after
the owning stage succeeded, so a failed transform's inputs are retried on
the next run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from pathlib import Path

from assetforge.cache.fingerprint import fingerprint_file, normalize_path
from assetforge.cache.snapshot_store import SnapshotStore
from assetforge.core.errors import InputUnavailable
from assetforge.core.models import ChangeSet

logger = logging.getLogger(__name__)


def compute_change_set(
    candidate_paths: Iterable[str | Path],
    previous_snapshot: Mapping[str, str],
    stage_name: str = "",
) -> ChangeSet:
    """Classify each candidate as added, modified or unchanged.

    Args:
        candidate_paths: Input files to classify. Must exist and be readable.
        previous_snapshot: normalized path -> fingerprint from the last success.
        stage_name: Stage requesting the classification (for error reporting).

    Returns:
        ChangeSet where every candidate appears in exactly one bucket, plus
        the snapshot that describes the candidates as they are now.

    Raises:
        InputUnavailable: If a candidate cannot be read.
    """
    change_set = ChangeSet()
    for raw in candidate_paths:
        key = normalize_path(raw)
        if key in change_set.snapshot:
            continue
        try:
            fp = fingerprint_file(Path(key))
        except OSError as exc:
            raise InputUnavailable(stage_name, key, str(exc)) from exc
        change_set.snapshot[key] = fp

        previous = previous_snapshot.get(key)
        if previous is None:
            change_set.added.append(key)
        elif previous != fp:
            change_set.modified.append(key)
        else:
            change_set.unchanged.append(key)

    change_set.removed = sorted(set(previous_snapshot) - set(change_set.snapshot))
    return change_set


class ChangeTracker:
    """Owns the snapshot store and is the only component that writes to it."""

    def __init__(self, store: SnapshotStore) -> None:
        self._store = store

    def load_snapshot(self, stage_name: str) -> dict[str, str]:
        return self._store.get(stage_name)

    def load_outputs(self, stage_name: str) -> list[str]:
        """Files the stage wrote as of its last successful run."""
        return self._store.get_outputs(stage_name)

    def compute_change_set(
        self,
        candidate_paths: Iterable[str | Path],
        previous_snapshot: Mapping[str, str] | None = None,
        stage_name: str = "",
    ) -> ChangeSet:
        """Classify candidates; loads the stage's stored snapshot when none is given."""
        if previous_snapshot is None:
            previous_snapshot = self.load_snapshot(stage_name)
        change_set = compute_change_set(candidate_paths, previous_snapshot, stage_name)
        logger.debug(
            "Change set for '%s': %d added, %d modified, %d unchanged, %d removed",
            stage_name,
            len(change_set.added),
            len(change_set.modified),
            len(change_set.unchanged),
            len(change_set.removed),
        )
        return change_set

    def commit(
        self,
        stage_name: str,
        change_set: ChangeSet,
        outputs: Iterable[str] | None = None,
    ) -> None:
        """Persist the change set's snapshot after the stage succeeded.

        outputs lists every file the stage currently owns in its output
        directory. A later run prunes the ones it no longer produces and
        reruns the stage when one of them has gone missing.
        """
        self._store.put(stage_name, change_set.snapshot, list(outputs or []))

    def invalidate(self, stage_name: str) -> None:
        self._store.delete(stage_name)
