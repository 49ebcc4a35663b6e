"""
Performance smells: heavy pages, needless client components, request
waterfalls and components with many children.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from archlens.agents.base import Agent
from archlens.config import get_threshold
from archlens.models import Severity, Tier

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import ComponentInfo, Finding, ProjectGraph

logger = logging.getLogger(__name__)


def uses_client_features(comp: ComponentInfo) -> bool:
    return bool(comp.hooks or comp.state or comp.api_calls or comp.side_effects)


def run(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    max_page_imports = get_threshold(config, "max_page_imports")
    max_api_calls = get_threshold(config, "max_api_calls_per_page")
    max_renders = get_threshold(config, "max_component_renders")
    findings: list[Finding] = []

    for page in graph.pages:
        import_count = len(page.imports)
        if import_count > max_page_imports:
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Heavy page",
                f"Page `{page.route_path}` has {import_count} imports (threshold: {max_page_imports})",
                file_path=page.file_path,
                suggestion="Lazy-load non-critical components with dynamic() or React.lazy()",
            ))

    for comp in graph.components:
        if comp.is_client and not uses_client_features(comp):
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Unnecessary client component",
                f"`{comp.name}` is a client component but uses no hooks, state, or side effects",
                file_path=comp.file_path,
                suggestion='Remove "use client" to make it a server component',
            ))

    for page in graph.pages:
        if len(page.api_calls) > max_api_calls:
            findings.append(AGENT.finding(
                Severity.WARNING,
                "API call waterfall risk",
                f"Page `{page.route_path}` makes {len(page.api_calls)} API calls (threshold: {max_api_calls})",
                file_path=page.file_path,
                suggestion="Consolidate API calls or fetch in parallel with Promise.all",
            ))

    for comp in graph.components:
        if len(comp.renders) > max_renders:
            findings.append(AGENT.finding(
                Severity.INFO,
                "Component with many children",
                f"`{comp.name}` renders {len(comp.renders)} child components",
                file_path=comp.file_path,
                suggestion="Consider code-splitting or extracting sub-sections",
            ))

    logger.debug("performance-sentinel: %d findings", len(findings))
    return findings


AGENT = Agent(
    id="performance-sentinel",
    name="Performance Sentinel",
    description="Detects heavy pages, unnecessary client components and API call waterfalls",
    tier=Tier.PRO,
    run=run,
)
