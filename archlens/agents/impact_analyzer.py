"""
Change impact: files many others depend on, files that depend on many
others, hub components and bridge files.
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
    high_fan_in = get_threshold(config, "high_fan_in")
    high_fan_out = get_threshold(config, "high_fan_out")
    bridge_min = get_threshold(config, "bridge_min_degree")
    hub_min_used_by = get_threshold(config, "hub_min_used_by")
    hub_min_renders = get_threshold(config, "hub_min_renders")

    fan_in = graph.fan_in()
    fan_out = graph.fan_out()
    findings: list[Finding] = []

    for node_id in graph.nodes:
        count = fan_in.get(node_id, 0)
        if count >= high_fan_in and not node_id.endswith(".d.ts"):
            findings.append(AGENT.finding(
                Severity.INFO,
                "High-impact file (fan-in)",
                f"{count} files depend on this file; changes here have a wide blast radius",
                file_path=node_id,
                suggestion="Ensure thorough testing when modifying this file",
            ))

    for node_id in graph.nodes:
        count = fan_out.get(node_id, 0)
        if count >= high_fan_out:
            findings.append(AGENT.finding(
                Severity.INFO,
                "High coupling (fan-out)",
                f"File imports from {count} other files (threshold: {high_fan_out})",
                file_path=node_id,
                suggestion="Consider reducing dependencies or splitting the file",
            ))

    component_ids = set()
    for comp in graph.components:
        component_ids.add(comp.file_path)
        if len(comp.used_by) >= hub_min_used_by and len(comp.renders) >= hub_min_renders:
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Hub component",
                f"`{comp.name}` is used by {len(comp.used_by)} files and renders "
                f"{len(comp.renders)} children, a critical junction point",
                file_path=comp.file_path,
                suggestion="Changes propagate both up and down the component tree; keep its interface stable",
            ))

    # Degree heuristic for articulation points; UI components are covered by the hub check
    for node_id in graph.nodes:
        if node_id in component_ids:
            continue
        fi, fo = fan_in.get(node_id, 0), fan_out.get(node_id, 0)
        if fi >= bridge_min and fo >= bridge_min:
            findings.append(AGENT.finding(
                Severity.INFO,
                "Bridge file",
                f"File acts as a bridge: {fi} dependents, {fo} dependencies",
                file_path=node_id,
                suggestion="Keep its responsibilities narrow and well tested",
            ))

    logger.debug("impact-analyzer: %d findings", len(findings))
    return findings


AGENT = Agent(
    id="impact-analyzer",
    name="Impact Analyzer",
    description="Identifies high fan-in/fan-out files, hub components and bridge files",
    tier=Tier.PRO,
    run=run,
)
