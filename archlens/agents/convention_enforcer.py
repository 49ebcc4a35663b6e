"""
Naming and consistency conventions.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from archlens.agents.base import Agent
from archlens.config import get_threshold
from archlens.models import Severity, Tier
from archlens.utils import file_stem, kebab_to_camel

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import Finding, ProjectGraph

logger = logging.getLogger(__name__)

# Directories laid out by the router, where barrels make no sense
ROUTING_DIRS = {"app", "pages"}


def hook_name_matches(stem: str, hook_name: str) -> bool:
    """useCart.ts, use-cart.ts and useCartItems.ts may all export useCart."""
    return stem == hook_name or hook_name in stem or kebab_to_camel(stem) == hook_name


def run(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    findings: list[Finding] = []
    findings.extend(_hook_naming(graph))
    findings.extend(_auth_consistency(graph))
    findings.extend(_route_casing(graph))
    findings.extend(_missing_barrels(graph, get_threshold(config, "barrel_min_files")))
    logger.debug("convention-enforcer: %d findings", len(findings))
    return findings


def _hook_naming(graph: ProjectGraph) -> list[Finding]:
    findings = []
    for comp in graph.components:
        stem = file_stem(comp.file_path)
        if stem == "index" or not comp.name.startswith("use"):
            continue
        if hook_name_matches(stem, comp.name):
            continue
        findings.append(AGENT.finding(
            Severity.INFO,
            "Hook naming mismatch",
            f"File `{stem}` exports hook `{comp.name}`",
            file_path=comp.file_path,
            suggestion=f"Rename the file to `{comp.name}{PurePosixPath(comp.file_path).suffix}` or rename the hook",
        ))
    return findings


def _auth_consistency(graph: ProjectGraph) -> list[Finding]:
    patterns: dict[str, list[str]] = defaultdict(list)
    for route in graph.api_routes:
        if route.auth != "None":
            patterns[route.auth].append(route.file_path)
    if len(patterns) <= 1:
        return []

    summary = ", ".join(f"{pattern} ({len(files)} routes)" for pattern, files in patterns.items())
    return [AGENT.finding(
        Severity.WARNING,
        "Inconsistent auth patterns",
        f"Multiple auth patterns detected: {summary}",
        suggestion="Standardize on a single auth pattern across all route handlers",
    )]


def _route_casing(graph: ProjectGraph) -> list[Finding]:
    findings = []
    for route in graph.api_routes:
        for segment in route.route_path.split("/"):
            if not segment or segment.startswith(("[", ":")):
                continue
            if segment != segment.lower():
                findings.append(AGENT.finding(
                    Severity.INFO,
                    "Non-kebab-case route",
                    f"Route segment `{segment}` in `{route.route_path}` is not lowercase",
                    file_path=route.file_path,
                    suggestion="Use kebab-case for route segments",
                ))
                break
    return findings


def _missing_barrels(graph: ProjectGraph, min_files: int) -> list[Finding]:
    by_dir: dict[str, list[str]] = defaultdict(list)
    for node_id in graph.nodes:
        by_dir[str(PurePosixPath(node_id).parent)].append(node_id)

    findings = []
    for directory, files in sorted(by_dir.items()):
        if len(files) < min_files or directory == ".":
            continue
        if ROUTING_DIRS.intersection(PurePosixPath(directory).parts):
            continue
        if any(file_stem(f) == "index" for f in files):
            continue
        findings.append(AGENT.finding(
            Severity.INFO,
            "Missing barrel export",
            f"Directory has {len(files)} files but no index barrel export",
            file_path=directory,
            suggestion="Add an index.ts that re-exports the public API",
        ))
    return findings


AGENT = Agent(
    id="convention-enforcer",
    name="Convention Enforcer",
    description="Checks hook naming, route casing, barrel exports and consistency of auth patterns",
    tier=Tier.PRO,
    run=run,
)
