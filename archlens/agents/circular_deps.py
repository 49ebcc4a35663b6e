"""
Circular import detection.

Iterative three-colour depth-first search over the import edges. A back
edge to a node still on the stack (gray) closes a cycle, which is
rebuilt by walking the parent map. Each distinct member set is reported
once.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from archlens.agents.base import Agent
from archlens.models import Severity, Tier
from archlens.utils import dedupe

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import Finding, ProjectGraph

logger = logging.getLogger(__name__)

WHITE, GRAY, BLACK = 0, 1, 2


def find_cycles(graph: ProjectGraph) -> list[list[str]]:
    """
    Return every distinct import cycle as a closed path [a, b, ..., a].

    Cycles with the same member set are reported once, keyed by the
    sorted member ids.
    """
    adjacency: dict[str, list[str]] = {node_id: [] for node_id in graph.nodes}
    for edge in graph.edges:
        if edge.kind == "imports" and edge.source in adjacency and edge.target in adjacency:
            adjacency[edge.source].append(edge.target)
    adjacency = {node_id: list(dedupe(targets)) for node_id, targets in adjacency.items()}

    color = dict.fromkeys(adjacency, WHITE)
    parent: dict[str, str] = {}
    cycles: list[list[str]] = []
    reported: set[str] = set()

    for start in adjacency:
        if color[start] != WHITE:
            continue
        color[start] = GRAY
        # (node, index of the next neighbour to visit)
        stack: list[tuple[str, int]] = [(start, 0)]

        while stack:
            node, index = stack[-1]
            neighbours = adjacency[node]
            if index >= len(neighbours):
                color[node] = BLACK
                stack.pop()
                continue
            stack[-1] = (node, index + 1)
            target = neighbours[index]

            if color[target] == WHITE:
                parent[target] = node
                color[target] = GRAY
                stack.append((target, 0))
            elif color[target] == GRAY:
                cycle = [node]
                current = node
                while current != target:
                    current = parent[current]
                    cycle.append(current)
                cycle.reverse()
                key = "|".join(sorted(cycle))
                if key not in reported:
                    reported.add(key)
                    cycles.append(cycle + [cycle[0]])

    return cycles


def run(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    findings = []
    for cycle in find_cycles(graph):
        length = len(cycle) - 1
        short = length <= 2
        findings.append(AGENT.finding(
            Severity.ERROR if short else Severity.WARNING,
            f"Circular dependency ({length} files)",
            "Import cycle: " + " → ".join(cycle),
            file_path=cycle[0],
            suggestion=(
                "Break the cycle by extracting shared types/utils into a separate file"
                if short
                else "Consider introducing an interface or barrel file to break the dependency chain"
            ),
        ))
    logger.debug("circular-deps: %d cycles", len(findings))
    return findings


AGENT = Agent(
    id="circular-deps",
    name="Circular Dependencies",
    description="Detects circular import chains with a three-colour DFS over the dependency graph",
    tier=Tier.FREE,
    run=run,
)
