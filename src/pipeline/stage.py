# src/pipeline/stage.py - v1
"""TransformStage: one named transformation step with declared inputs/outputs.

The transform itself is an external collaborator with a fixed contract:

    transform(inputs: Sequence[SourceFile], output_dir: Path) -> Iterable[Path]

It receives the resolved inputs, writes beneath output_dir only, and
returns the paths it wrote. It must be idempotent: the same inputs always
produce byte-identical outputs, so a re-run after a partial failure is safe.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from assetforge.core.errors import (
    InputUnavailable,
    OutputWriteFailed,
    StageError,
    TransformFailed,
)
from assetforge.core.globbing import expand_patterns, split_patterns
from assetforge.core.models import OutputFile, SourceFile

logger = logging.getLogger(__name__)

Transform = Callable[[Sequence[SourceFile], Path], Iterable[Path]]


@dataclass
class TransformStage:
    """A named unit wrapping one external transform.

    Attributes:
        name: Unique stage name.
        inputs: Ordered glob patterns relative to base_dir; "!" prefix excludes.
        output_dir: Directory this stage alone writes into.
        transform: External transform callable.
        predecessors: Stages whose outputs must exist before this one starts.
        base_dir: Root the input patterns are resolved against.
        incremental: Only hand added/modified inputs to the transform.
        allow_empty: If False, zero resolved inputs is an InputUnavailable error.
        description: Human-readable summary (shown by the plan command).
    """

    name: str
    inputs: list[str]
    output_dir: Path
    transform: Transform
    predecessors: list[str] = field(default_factory=list)
    base_dir: Path = field(default_factory=Path)
    incremental: bool = False
    allow_empty: bool = True
    description: str = ""

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("stage name must be a non-empty string")
        self.output_dir = Path(self.output_dir)
        self.base_dir = Path(self.base_dir)
        self.predecessors = list(self.predecessors)

    @property
    def resolved_output_dir(self) -> Path:
        if self.output_dir.is_absolute():
            return self.output_dir.resolve()
        return (self.base_dir / self.output_dir).resolve()

    def resolve_inputs(self) -> list[SourceFile]:
        """Expand input patterns into SourceFiles, in pattern order.

        Raises:
            InputUnavailable: If the stage requires inputs and one of its
                patterns matched nothing.
        """
        matches = expand_patterns(self.inputs, self.base_dir)
        if not self.allow_empty:
            positive, negative = split_patterns(self.inputs)
            exclusions = [f"!{p}" for p in negative]
            for pattern in positive:
                if not expand_patterns([pattern, *exclusions], self.base_dir):
                    raise InputUnavailable(self.name, pattern, "no file matched")
        return [SourceFile.from_path(path, base, stage=self.name) for path, base in matches]

    def run(self, inputs: Iterable[SourceFile]) -> set[OutputFile]:
        """Run the transform over inputs and return the files it wrote.

        Zero inputs completes immediately with an empty set.

        Raises:
            InputUnavailable: An input cannot be read.
            OutputWriteFailed: The output directory or a file cannot be written.
            TransformFailed: The transform raised any other error.
        """
        sources = list(inputs)
        if not sources:
            logger.info("Stage '%s': no inputs, nothing to do", self.name)
            return set()

        for source in sources:
            if not source.path.is_file() or not os.access(source.path, os.R_OK):
                raise InputUnavailable(self.name, str(source.path), "not a readable file")

        out_dir = self.resolved_output_dir
        try:
            out_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteFailed(self.name, exc) from exc

        try:
            written = list(self.transform(sources, out_dir))
        except StageError:
            raise
        except OSError as exc:
            raise OutputWriteFailed(self.name, exc) from exc
        except Exception as exc:
            raise TransformFailed(self.name, exc) from exc

        outputs: set[OutputFile] = set()
        for raw in written:
            path = Path(raw).resolve()
            try:
                relative = path.relative_to(out_dir).as_posix()
            except ValueError:
                raise TransformFailed(
                    self.name,
                    ValueError(f"wrote {path} outside output directory {out_dir}"),
                ) from None
            outputs.add(OutputFile(path=path, relative_path=relative))

        logger.info(
            "Stage '%s': %d inputs -> %d outputs in %s",
            self.name, len(sources), len(outputs), out_dir,
        )
        return outputs
