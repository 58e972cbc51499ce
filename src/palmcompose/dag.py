# dag.py
from __future__ import annotations

import logging
from typing import Dict, List, Set, Tuple

from .errors import CyclicDependencyError, UnknownDependencyError
from .model import ExecutionPlan, Step, WorkflowSpec

logger = logging.getLogger(__name__)


def build_graph(spec: WorkflowSpec) -> Tuple[Dict[str, Set[str]], Dict[str, int]]:
    """
    Build the dependency graph of a validated workflow.

    Returns:
      adj:   step name -> names of steps that depend on it
      indeg: step name -> number of distinct dependencies
    """
    names = set(spec.step_names())
    adj: Dict[str, Set[str]] = {n: set() for n in names}
    indeg: Dict[str, int] = {n: 0 for n in names}

    for step in spec.steps:
        for dep in step.depends_on:
            if dep not in names:
                raise UnknownDependencyError(step=step.name, dependency=dep, known=sorted(names))
            # Edge dep -> step (dep must finish in an earlier wave)
            if step.name not in adj[dep]:
                adj[dep].add(step.name)
                indeg[step.name] += 1

    return adj, indeg


def resolve_waves(spec: WorkflowSpec, *, allow_cycles: bool = False) -> ExecutionPlan:
    """
    Group steps into waves (topological levels).

    Each wave holds every remaining step whose dependencies were all placed
    in earlier waves, so a wave is as wide as possible. Steps keep their
    declaration order inside a wave.

    When a scan finds no ready step the remaining steps depend on each other.
    That raises CyclicDependencyError, unless allow_cycles is set: then all
    remaining steps are put into one final wave and resolution stops.
    """
    adj, indeg = build_graph(spec)
    pending = dict(indeg)

    remaining: List[Step] = list(spec.steps)
    waves: List[List[Step]] = []

    while remaining:
        wave = [s for s in remaining if pending[s.name] == 0]

        if not wave:
            stuck = [s.name for s in remaining]
            if not allow_cycles:
                raise CyclicDependencyError(stuck=stuck)
            logger.warning("dependency cycle among %s; running them together in a final wave", stuck)
            waves.append(list(remaining))
            break

        placed = {s.name for s in wave}
        for name in placed:
            for child in adj[name]:
                pending[child] -= 1
        remaining = [s for s in remaining if s.name not in placed]
        waves.append(wave)

    return ExecutionPlan(waves=waves)
