# src/cache/fingerprint.py - v2
"""Content fingerprints for change detection.

A fingerprint is the SHA-256 of the file bytes. Timestamps are never part
of it, so touching a file without editing it does not mark it modified.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

_CHUNK_SIZE = 1 << 16


def fingerprint_bytes(raw_bytes: bytes) -> str:
    """SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(raw_bytes).hexdigest()


def fingerprint_file(path: Path) -> str:
    """SHA-256 hex digest of a file, read in chunks.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    digest = hashlib.sha256()
    with Path(path).open("rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def normalize_path(path: str | Path) -> str:
    """Canonical snapshot key for a path (absolute, POSIX separators)."""
    return Path(path).expanduser().resolve().as_posix()
