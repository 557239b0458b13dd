# src/pipeline/graph.py - v2
"""Pipeline graph: declared stages and their dependency edges.

resolve_order() layers the graph with Kahn's algorithm. Each layer (batch)
holds stages with no edge between them; every predecessor of a stage sits
in a strictly earlier batch. Stages inside a batch are sorted by name so
the plan is deterministic.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable, Mapping, Sequence

from assetforge.core.errors import CyclicDependency, OutputConflict, UnknownStage
from assetforge.pipeline.stage import TransformStage

logger = logging.getLogger(__name__)


def resolve_batches(dependency_map: Mapping[str, Sequence[str]]) -> list[list[str]]:
    """Layer a dependency map into concurrently runnable batches.

    Args:
        dependency_map: stage name -> predecessor stage names.

    Returns:
        Ordered batches, each sorted lexicographically.

    Raises:
        UnknownStage: A predecessor is not a key of the map.
        CyclicDependency: Some stages can never be resolved. No partial
            ordering is returned.
    """
    if not dependency_map:
        return []

    all_stages = set(dependency_map)
    for stage, deps in dependency_map.items():
        for dep in deps:
            if dep not in all_stages:
                raise UnknownStage(stage, dep)

    in_degree: dict[str, int] = {s: 0 for s in all_stages}
    dependents: dict[str, list[str]] = {s: [] for s in all_stages}
    for stage, deps in dependency_map.items():
        for dep in set(deps):
            dependents[dep].append(stage)
            in_degree[stage] += 1

    batches: list[list[str]] = []
    ready = sorted(s for s, d in in_degree.items() if d == 0)
    processed = 0

    while ready:
        batches.append(ready)
        next_ready: list[str] = []
        for stage in ready:
            processed += 1
            for dependent in dependents[stage]:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    next_ready.append(dependent)
        ready = sorted(next_ready)

    if processed != len(all_stages):
        raise CyclicDependency(s for s, d in in_degree.items() if d > 0)

    return batches


class PipelineGraph:
    """Named stages plus the edges between them."""

    def __init__(self, stages: Iterable[TransformStage] = ()) -> None:
        self._stages: dict[str, TransformStage] = {}
        for stage in stages:
            self.add_stage(stage)

    def __len__(self) -> int:
        return len(self._stages)

    def __contains__(self, name: object) -> bool:
        return name in self._stages

    @property
    def stage_names(self) -> list[str]:
        return sorted(self._stages)

    def add_stage(self, stage: TransformStage) -> None:
        """Register a stage. Names must be unique."""
        if stage.name in self._stages:
            raise ValueError(f"Stage '{stage.name}' is already registered")
        self._stages[stage.name] = stage

    def get(self, name: str) -> TransformStage:
        try:
            return self._stages[name]
        except KeyError:
            raise UnknownStage("<graph>", name) from None

    def dependency_map(self) -> dict[str, list[str]]:
        return {name: list(s.predecessors) for name, s in self._stages.items()}

    def resolve_order(self) -> list[list[str]]:
        """Return ordered batches of stage names.

        Raises:
            CyclicDependency, UnknownStage: The graph is not a valid DAG.
            OutputConflict: Two stages of one batch share an output directory.
        """
        batches = resolve_batches(self.dependency_map())
        for batch in batches:
            self._check_output_conflicts(batch)
        logger.info(
            "Pipeline resolved: %d stages in %d batches -> %s",
            len(self._stages), len(batches), batches,
        )
        return batches

    def select(self, names: Iterable[str]) -> PipelineGraph:
        """Sub-graph holding the named stages and all of their ancestors."""
        wanted: set[str] = set()
        pending = list(names)
        while pending:
            name = pending.pop()
            if name in wanted:
                continue
            stage = self.get(name)
            wanted.add(name)
            pending.extend(stage.predecessors)
        return PipelineGraph(self._stages[n] for n in sorted(wanted))

    def _check_output_conflicts(self, batch: list[str]) -> None:
        # Only identical directories conflict. A sibling may write a subtree of
        # another's directory (images into dist/images beside js_dist into
        # dist) as long as the two never write the same files.
        by_dir: dict[str, list[str]] = defaultdict(list)
        for name in batch:
            by_dir[str(self._stages[name].resolved_output_dir)].append(name)
        for output_dir, owners in by_dir.items():
            if len(owners) > 1:
                raise OutputConflict(output_dir, owners)
