"""
Security heuristics over the module graph.

Three checks:

1. Mutating route handlers that touch data entities with no auth marker.
2. Server-only env vars reachable from client-marked components, either
   directly or through the libraries they import.
3. Dangerous call/import patterns (shell execution, dynamic evaluation,
   raw HTML injection) in route handlers and libraries.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import TYPE_CHECKING

from archlens.agents.base import Agent
from archlens.models import Role, Severity, Tier

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import Finding, ProjectGraph, RouteHandlerInfo

logger = logging.getLogger(__name__)

MUTATING_METHODS = {"POST", "PUT", "DELETE", "PATCH"}
WRITE_OPERATIONS = {
    "create", "createMany", "createManyAndReturn", "update", "updateMany", "upsert", "delete", "deleteMany",
}
ALWAYS_PUBLIC_ENV = {"NODE_ENV"}


def is_mutating(route: RouteHandlerInfo) -> bool:
    """
    True if the handler can change data.

    A handler that exports no explicit method ("ALL") counts as mutating
    only when it performs a write operation.
    """
    if MUTATING_METHODS.intersection(route.methods):
        return True
    if "ALL" in route.methods:
        return any(effect.startswith("DB:") and effect[3:] in WRITE_OPERATIONS for effect in route.side_effects)
    return False


def is_public_env(name: str, config: dict[str, Any]) -> bool:
    security = config.get("security") or {}
    if name in ALWAYS_PUBLIC_ENV or name in (security.get("public_env_vars") or ()):
        return True
    return any(name.startswith(prefix) for prefix in security.get("public_env_prefixes") or ())


def run(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    findings: list[Finding] = []
    findings.extend(_unauthenticated_mutations(graph, config))
    findings.extend(_client_env_leaks(graph, config))
    findings.extend(_dangerous_patterns(graph))
    logger.debug("security-scanner: %d findings", len(findings))
    return findings


def _unauthenticated_mutations(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    exempt = [s.lower() for s in (config.get("security") or {}).get("auth_exempt_routes") or ()]
    findings = []
    for route in graph.api_routes:
        if not route.models or route.auth != "None" or not is_mutating(route):
            continue
        route_path = route.route_path.lower()
        if any(pattern in route_path for pattern in exempt):
            logger.debug("Route %s exempt from auth check", route.route_path)
            continue
        findings.append(AGENT.finding(
            Severity.ERROR,
            "Unprotected mutation route",
            f"Route `{route.route_path}` ({','.join(route.methods)}) accesses DB models "
            f"[{', '.join(route.models)}] without auth",
            file_path=route.file_path,
            suggestion="Add an auth() or getServerSession check before DB operations",
        ))
    return findings


def _client_env_leaks(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    findings = []
    for comp in graph.components:
        if not comp.is_client:
            continue

        for env_var in comp.env_vars:
            if is_public_env(env_var, config):
                continue
            findings.append(AGENT.finding(
                Severity.ERROR,
                "Server env var in client component",
                f"Client component `{comp.name}` reads `{env_var}`, which is not publicly prefixed",
                file_path=comp.file_path,
                suggestion="Move the logic to a server component or route handler, or use a public env var",
            ))

        for lib_id, env_var in _reachable_library_env(graph, comp.file_path):
            if is_public_env(env_var, config):
                continue
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Server env var exposed to client bundle",
                f"Client component `{comp.name}` imports `{lib_id}`, which reads `{env_var}`",
                file_path=comp.file_path,
                suggestion="Split server-only logic into a separate file",
            ))
    return findings


def _reachable_library_env(graph: ProjectGraph, start: str) -> list[tuple[str, str]]:
    """(library id, env var) for every library reachable through imports of start."""
    found: list[tuple[str, str]] = []
    seen = {start}
    queue = deque([start])
    while queue:
        node = graph.nodes.get(queue.popleft())
        if node is None:
            continue
        for imp in node.imports:
            target = imp.resolved_path
            if target is None or target in seen:
                continue
            seen.add(target)
            lib = graph.nodes.get(target)
            if lib is None or lib.kind is not Role.LIBRARY:
                continue
            found.extend((target, env_var) for env_var in lib.metadata.get("env_vars", ()))
            queue.append(target)
    return found


def _dangerous_patterns(graph: ProjectGraph) -> list[Finding]:
    findings = []
    for node_id, node in graph.nodes.items():
        if node.kind not in (Role.ROUTE_HANDLER, Role.LIBRARY):
            continue
        for signal in node.metadata.get("security_signals", ()):
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Dangerous pattern",
                f"File uses `{signal}`; make sure no untrusted input reaches it",
                file_path=node_id,
                suggestion="Use parameterized commands and sanitized HTML instead of string interpolation",
            ))
    return findings


AGENT = Agent(
    id="security-scanner",
    name="Security Scanner",
    description="Detects unauthenticated data mutations, server env vars in client code and dangerous patterns",
    tier=Tier.PRO,
    run=run,
)
