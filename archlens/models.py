"""
Core data models shared across archlens components.

Everything reachable from a ProjectGraph is frozen: collections are
tuples and the node map is a read-only mapping, so agents cannot change
the graph they analyze.
"""

from __future__ import annotations

import enum
from collections import defaultdict
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping


class Role(enum.Enum):
    """Primary module kind. Declaration order is classification precedence."""

    PAGE = "page"
    ROUTE_HANDLER = "api-route"
    HOOK = "hook"
    COMPONENT = "component"
    LIBRARY = "lib"


class Severity(str, enum.Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class Tier(str, enum.Enum):
    FREE = "free"
    PRO = "pro"


# --- Per-file facts ---


@dataclass(frozen=True)
class ImportInfo:
    """One import (or re-export) statement."""

    source: str
    specifiers: tuple[str, ...] = ()
    is_type_only: bool = False
    resolved_path: str | None = None
    kind: str = "static"  # static | re-export | dynamic | side-effect


@dataclass(frozen=True)
class ExportInfo:
    name: str
    kind: str  # function | class | variable | type | interface | enum | default
    is_type_only: bool = False
    signature: str | None = None


@dataclass(frozen=True)
class StateInfo:
    name: str
    initial_value: str | None = None


@dataclass(frozen=True)
class ApiCallInfo:
    endpoint: str
    method: str = "GET"


@dataclass(frozen=True)
class DataAccess:
    """An ORM-style `client.entity.operation(...)` call."""

    model: str
    operation: str

    @property
    def description(self) -> str:
        return f"DB:{self.operation}"


@dataclass(frozen=True)
class ParsedModule:
    """Structural fact sheet for one source file, as produced by a parser."""

    path: str
    language: str
    imports: tuple[ImportInfo, ...] = ()
    exports: tuple[ExportInfo, ...] = ()
    client_marked: bool = False
    hooks: tuple[str, ...] = ()
    state: tuple[StateInfo, ...] = ()
    api_calls: tuple[ApiCallInfo, ...] = ()
    env_vars: tuple[str, ...] = ()
    side_effects: tuple[str, ...] = ()
    data_access: tuple[DataAccess, ...] = ()
    elements: tuple[str, ...] = ()
    auth_markers: tuple[str, ...] = ()
    security_signals: tuple[str, ...] = ()
    roles: tuple[Role, ...] = ()
    line_count: int = 0
    data_fetching_method: str | None = None
    i18n_namespace: str | None = None
    search_params: tuple[str, ...] = ()

    @property
    def render_kind(self) -> str:
        return "client" if self.client_marked else "server"

    def has_role(self, role: Role) -> bool:
        return role in self.roles


# --- Graph ---


@dataclass(frozen=True)
class GraphNode:
    """A module in the import graph."""

    id: str
    kind: Role
    name: str = ""
    exports: tuple[ExportInfo, ...] = ()
    imports: tuple[ImportInfo, ...] = ()
    metadata: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self) -> None:
        if not isinstance(self.metadata, MappingProxyType):
            object.__setattr__(self, "metadata", MappingProxyType(dict(self.metadata)))

    @property
    def line_count(self) -> int:
        return int(self.metadata.get("line_count", 0) or 0)


@dataclass(frozen=True)
class GraphEdge:
    source: str
    target: str
    kind: str = "imports"


@dataclass(frozen=True)
class PageInfo:
    file_path: str
    route_path: str
    render_kind: str = "server"
    auth: str = "None"
    imports: tuple[ImportInfo, ...] = ()
    data_fetching: tuple[DataAccess, ...] = ()
    components: tuple[str, ...] = ()
    api_calls: tuple[ApiCallInfo, ...] = ()
    params: tuple[str, ...] = ()
    i18n_namespace: str | None = None
    data_fetching_method: str | None = None


@dataclass(frozen=True)
class ComponentInfo:
    file_path: str
    name: str
    render_kind: str = "server"
    state: tuple[StateInfo, ...] = ()
    hooks: tuple[str, ...] = ()
    api_calls: tuple[ApiCallInfo, ...] = ()
    side_effects: tuple[str, ...] = ()
    env_vars: tuple[str, ...] = ()
    used_by: tuple[str, ...] = ()
    renders: tuple[str, ...] = ()

    @property
    def is_client(self) -> bool:
        return self.render_kind == "client"


@dataclass(frozen=True)
class RouteHandlerInfo:
    file_path: str
    route_path: str
    methods: tuple[str, ...] = ("ALL",)
    auth: str = "None"
    models: tuple[str, ...] = ()
    side_effects: tuple[str, ...] = ()


@dataclass(frozen=True)
class LibraryInfo:
    file_path: str
    exports: tuple[ExportInfo, ...] = ()
    imports: tuple[ImportInfo, ...] = ()
    used_by: tuple[str, ...] = ()
    env_vars: tuple[str, ...] = ()
    side_effects: tuple[str, ...] = ()


# --- Schema ---


@dataclass(frozen=True)
class SchemaField:
    name: str
    type: str
    constraints: tuple[str, ...] = ()


@dataclass(frozen=True)
class SchemaRelation:
    field: str
    target: str
    cardinality: str = "one-to-one"  # one-to-one | one-to-many | many-to-many


@dataclass(frozen=True)
class SchemaEntity:
    name: str
    fields: tuple[SchemaField, ...] = ()
    relations: tuple[SchemaRelation, ...] = ()


@dataclass(frozen=True)
class SchemaEnum:
    name: str
    values: tuple[str, ...] = ()


@dataclass(frozen=True)
class Schema:
    entities: tuple[SchemaEntity, ...] = ()
    enums: tuple[SchemaEnum, ...] = ()
    provider: str = "none"

    @property
    def is_empty(self) -> bool:
        return not self.entities and not self.enums


def reverse_index(edges) -> dict[str, tuple[str, ...]]:
    """Map each edge target to its distinct importers, in edge order."""
    index: dict[str, list[str]] = defaultdict(list)
    for edge in edges:
        if edge.source not in index[edge.target]:
            index[edge.target].append(edge.source)
    return {target: tuple(sources) for target, sources in index.items()}


@dataclass(frozen=True)
class ProjectGraph:
    """
    The frozen module graph handed to agents and renderers.

    `used_by` is derived from `edges` at construction time, so it is
    always the exact inverse of the import edges.
    """

    nodes: Mapping[str, GraphNode] = field(default_factory=dict)
    edges: tuple[GraphEdge, ...] = ()
    pages: tuple[PageInfo, ...] = ()
    components: tuple[ComponentInfo, ...] = ()
    api_routes: tuple[RouteHandlerInfo, ...] = ()
    libs: tuple[LibraryInfo, ...] = ()
    schema: Schema = field(default_factory=Schema)
    used_by: Mapping[str, tuple[str, ...]] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", MappingProxyType(dict(self.nodes)))
        for name in ("edges", "pages", "components", "api_routes", "libs"):
            object.__setattr__(self, name, tuple(getattr(self, name)))

        object.__setattr__(self, "used_by", MappingProxyType(reverse_index(self.edges)))

    def importers_of(self, module_id: str) -> tuple[str, ...]:
        return self.used_by.get(module_id, ())

    def fan_in(self) -> dict[str, int]:
        """In-degree per node over the edge multiset."""
        counts: dict[str, int] = defaultdict(int)
        for edge in self.edges:
            counts[edge.target] += 1
        return dict(counts)

    def fan_out(self) -> dict[str, int]:
        """Out-degree per node over the edge multiset."""
        counts: dict[str, int] = defaultdict(int)
        for edge in self.edges:
            counts[edge.source] += 1
        return dict(counts)


# --- Agents ---


@dataclass(frozen=True)
class Finding:
    """One reported issue."""

    agent_id: str
    severity: Severity
    title: str
    message: str
    file_path: str | None = None
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "agentId": self.agent_id,
            "severity": self.severity.value,
            "title": self.title,
            "message": self.message,
        }
        if self.file_path is not None:
            data["filePath"] = self.file_path
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        return data


@dataclass(frozen=True)
class AgentResult:
    agent_id: str
    tier: Tier
    findings: tuple[Finding, ...] = ()
    duration_ms: int = 0
    skipped: bool = False
    skip_reason: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "agentId": self.agent_id,
            "tier": self.tier.value,
            "findings": [f.to_dict() for f in self.findings],
            "durationMs": self.duration_ms,
            "skipped": self.skipped,
        }
        if self.skip_reason is not None:
            data["skipReason"] = self.skip_reason
        return data


@dataclass(frozen=True)
class RunSummary:
    results: tuple[AgentResult, ...]
    total_findings: int
    errors: int
    warnings: int
    infos: int
    agents_ran: int
    agents_skipped: int
    total_duration_ms: int

    @property
    def findings(self) -> list[Finding]:
        return [f for r in self.results for f in r.findings]

    @property
    def has_errors(self) -> bool:
        return self.errors > 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "totalFindings": self.total_findings,
            "errors": self.errors,
            "warnings": self.warnings,
            "infos": self.infos,
            "agentsRan": self.agents_ran,
            "agentsSkipped": self.agents_skipped,
            "totalDurationMs": self.total_duration_ms,
        }


@dataclass(frozen=True)
class LicenseInfo:
    valid: bool
    tier: Tier = Tier.FREE
    expires_at: str | None = None
    message: str | None = None
