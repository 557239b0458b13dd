# src/pipeline/transforms.py - v1
"""Built-in leaf transforms.

Content transformations (prefixing, minifying, transpiling, bundling) are
supplied by the caller. The two shipped here need no external tooling.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from assetforge.core.models import SourceFile


def copy_transform(inputs: Sequence[SourceFile], output_dir: Path) -> list[Path]:
    """Mirror each input under output_dir at its path relative to its glob base."""
    written: list[Path] = []
    for source in inputs:
        target = output_dir / source.relative_path
        target.parent.mkdir(parents=True, exist_ok=True)
        if target.resolve() != source.path:
            target.write_bytes(source.content)
        written.append(target)
    return written


def verify_transform(inputs: Sequence[SourceFile], output_dir: Path) -> list[Path]:
    """Read every input so a missing or unreadable one fails the stage; writes nothing."""
    for source in inputs:
        _ = source.content_hash
    return []
