"""
Structural size checks: oversized files, god components, complex pages.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from archlens.agents.base import Agent
from archlens.config import get_threshold
from archlens.models import Severity, Tier

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import Finding, ProjectGraph

logger = logging.getLogger(__name__)


def run(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    max_line_count = get_threshold(config, "max_line_count")
    max_dependencies = get_threshold(config, "max_dependencies")
    max_page_components = get_threshold(config, "max_page_components")
    findings: list[Finding] = []

    for node_id, node in graph.nodes.items():
        if node.line_count > max_line_count:
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Oversized file",
                f"File has {node.line_count} lines (threshold: {max_line_count})",
                file_path=node_id,
                suggestion="Split into smaller, focused modules",
            ))

    for comp in graph.components:
        node = graph.nodes.get(comp.file_path)
        if node is None:
            continue
        dep_count = len(node.imports)
        if dep_count > max_dependencies:
            findings.append(AGENT.finding(
                Severity.WARNING,
                "God component",
                f"Component `{comp.name}` has {dep_count} imports (threshold: {max_dependencies})",
                file_path=comp.file_path,
                suggestion="Extract sub-components or use composition pattern",
            ))

    for page in graph.pages:
        if len(page.components) > max_page_components:
            findings.append(AGENT.finding(
                Severity.INFO,
                "Complex page",
                f"Page `{page.route_path}` renders {len(page.components)} components",
                file_path=page.file_path,
                suggestion="Consider splitting into smaller sub-pages or extracting sections",
            ))

    logger.debug("architecture-guard: %d findings", len(findings))
    return findings


AGENT = Agent(
    id="architecture-guard",
    name="Architecture Guard",
    description="Flags oversized files, god components and pages that render too many components",
    tier=Tier.FREE,
    run=run,
)
