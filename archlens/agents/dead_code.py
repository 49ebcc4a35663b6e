"""
Dead code detection: orphan modules and unused exports.
"""

from __future__ import annotations

import logging
import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING

from archlens.agents.base import Agent
from archlens.models import Role, Severity, Tier
from archlens.utils import file_stem

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import Finding, GraphNode, ProjectGraph

logger = logging.getLogger(__name__)

# File names the framework loads by convention, never through an import.
# Each set only applies where that framework looks for it.
APP_ROUTER_FILES = {"layout", "template", "loading", "error", "not-found", "global-error", "default"}
PAGES_ROUTER_FILES = {"_app", "_document", "_error", "404", "500"}
ROOT_FILES = {"middleware", "instrumentation"}
NUXT_ROOT_FILES = {"app", "error"}
# Nuxt registers every file in these directories itself
NUXT_AUTO_DIRS = {"layouts", "middleware", "plugins"}
_CONFIG_FILE = re.compile(r"\.config\.[^/]+$")
_ENTRY_KINDS = (Role.PAGE, Role.ROUTE_HANDLER)


def is_reserved_file(path: str) -> bool:
    """
    True for a framework convention file in the place the framework loads it.

    app/**/error.tsx and src/middleware.ts qualify; src/lib/error.ts does not.
    """
    parts = PurePosixPath(path).parts[:-1]
    if parts[:1] == ("src",):
        parts = parts[1:]
    stem = file_stem(path)
    if not parts:
        return stem in ROOT_FILES or (path.endswith(".vue") and stem in NUXT_ROOT_FILES)
    if parts[0] == "app":
        return stem in APP_ROUTER_FILES
    if parts[0] == "pages":
        return stem in PAGES_ROUTER_FILES
    return parts[0] in NUXT_AUTO_DIRS


def is_entry_point(node: GraphNode) -> bool:
    """Modules reached by the framework rather than by imports."""
    if node.kind in _ENTRY_KINDS:
        return True
    name = PurePosixPath(node.id).name
    if name.endswith(".d.ts") or _CONFIG_FILE.search(name):
        return True
    return file_stem(node.id) == "index" or is_reserved_file(node.id)


def run(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    findings: list[Finding] = []

    component_names = {comp.file_path: comp.name for comp in graph.components}
    imported_names: set[str] = set()
    for node in graph.nodes.values():
        for imp in node.imports:
            imported_names.update(imp.specifiers)

    for node_id, node in graph.nodes.items():
        if graph.importers_of(node_id) or is_entry_point(node):
            continue
        if node.kind in (Role.COMPONENT, Role.HOOK):
            label = "hook" if node.kind is Role.HOOK else "component"
            findings.append(AGENT.finding(
                Severity.WARNING,
                f"Orphan {label}",
                f"{label.capitalize()} `{component_names.get(node_id, node.name)}` is never imported or rendered by any other file",
                file_path=node_id,
                suggestion="Remove the file or restore the import",
            ))
        else:
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Orphan lib file" if node.kind is Role.LIBRARY else "Orphan module",
                f"Module has {len(node.exports)} export(s) but is never imported",
                file_path=node_id,
                suggestion="Remove the file or restore imports",
            ))

    for node_id, node in graph.nodes.items():
        if node.kind in _ENTRY_KINDS:
            continue
        # Orphans are already reported as a whole
        if not graph.importers_of(node_id):
            continue
        for export in node.exports:
            if export.kind == "default" or export.name == "default" or export.is_type_only:
                continue
            if export.name in imported_names:
                continue
            findings.append(AGENT.finding(
                Severity.INFO,
                "Unused export",
                f"Export `{export.name}` ({export.kind}) is never imported by any file in the project",
                file_path=node_id,
                suggestion="Remove the export or mark it as internal",
            ))

    logger.debug("dead-code: %d findings", len(findings))
    return findings


AGENT = Agent(
    id="dead-code",
    name="Dead Code Detector",
    description="Finds modules nothing imports and exports no file uses",
    tier=Tier.FREE,
    run=run,
)
