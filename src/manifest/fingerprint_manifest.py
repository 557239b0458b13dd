# src/manifest/fingerprint_manifest.py - v1
"""Fingerprint manifest: a stable digest over the precached file list.

The digest covers the JSON serialization of the path list only, not the
file contents. Editing an already-listed file therefore leaves the
fingerprint unchanged; adding, removing or reordering paths changes it.
MD5 is used as a fast identifier, not for security.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Sequence
from pathlib import Path

from assetforge.core.globbing import expand_patterns
from assetforge.manifest.models import CacheConfig, FingerprintRecord

logger = logging.getLogger(__name__)

ROOT_ENTRY = "./"


def serialize_paths(paths: Sequence[str]) -> bytes:
    """Compact JSON array, e.g. ["index.html","./"]."""
    return json.dumps(list(paths), separators=(",", ":"), ensure_ascii=False).encode(
        "utf-8"
    )


class FingerprintManifest:
    """Compute FingerprintRecords for one logical cache."""

    def __init__(self, cache_id: str) -> None:
        self._cache_id = cache_id

    @property
    def cache_id(self) -> str:
        return self._cache_id

    def compute(self, output_paths: Sequence[str]) -> FingerprintRecord:
        """Digest the paths in the order supplied."""
        paths = list(output_paths)
        digest = hashlib.md5(serialize_paths(paths)).hexdigest()  # noqa: S324
        return FingerprintRecord(cache_id=self._cache_id, precache=paths, digest=digest)


def collect_precache(output_root: Path, patterns: Sequence[str]) -> list[str]:
    """Expand precache patterns against the output tree.

    Patterns are processed in order; each pattern's matches are sorted and a
    path already listed is not repeated. The literal "./" entry stands for
    the application root and is kept as is.
    """
    output_root = Path(output_root).resolve()
    collected: list[str] = []
    seen: set[str] = set()
    for pattern in patterns:
        if pattern in (ROOT_ENTRY, "."):
            found = [ROOT_ENTRY]
        else:
            found = sorted(
                path.relative_to(output_root).as_posix()
                for path, _ in expand_patterns([pattern], output_root)
            )
        for rel in found:
            if rel not in seen:
                seen.add(rel)
                collected.append(rel)
    return collected


def resolve_cache_id(project_root: Path, configured: str = "") -> str:
    """Configured id, else package.json "name", else the project directory name."""
    if configured:
        return configured
    project_root = Path(project_root).resolve()
    package_json = project_root / "package.json"
    if package_json.is_file():
        try:
            name = json.loads(package_json.read_text(encoding="utf-8")).get("name")
        except (json.JSONDecodeError, OSError, AttributeError) as e:
            logger.warning("Cannot read name from %s: %s", package_json, e)
            name = None
        if isinstance(name, str) and name:
            return name
    return project_root.name


def write_cache_config(
    output_root: Path,
    record: FingerprintRecord,
    filename: str = "cache-config.json",
    disabled: bool = False,
) -> Path:
    """Write the cache manifest into the output tree. Returns its path."""
    config = CacheConfig.from_record(record, disabled=disabled)
    path = Path(output_root) / filename
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config.model_dump_json(by_alias=True), encoding="utf-8")
    logger.info(
        "Cache config written: %s (%d entries, fingerprint %s)",
        path, len(record.precache), record.digest,
    )
    return path
