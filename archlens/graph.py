"""
Graph builder for archlens.

Aggregates parsed modules into a frozen ProjectGraph: re-resolves
import specifiers against the set of parsed modules, builds the edge
list and reverse-usage index, assigns each module its primary kind and
fills the page, component, route handler and library fact collections.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from typing import TYPE_CHECKING

from archlens.models import (
    ComponentInfo,
    GraphEdge,
    GraphNode,
    LibraryInfo,
    PageInfo,
    ProjectGraph,
    Role,
    RouteHandlerInfo,
    Schema,
    reverse_index,
)
from archlens.parsers.roles import primary_kind
from archlens.resolver import ImportResolver
from archlens.utils import dedupe, file_stem

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import ImportInfo, ParsedModule

logger = logging.getLogger(__name__)

ROUTE_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH")

_SOURCE_EXT = r"\.(?:[cm]?[jt]sx?|vue)$"
_APP_FILE = re.compile(rf"(?:^|/)app/(?:(.*)/)?(?:page|route){_SOURCE_EXT}")
_PAGES_FILE = re.compile(rf"(?:^|/)pages/(.*){_SOURCE_EXT}")
_NUXT_API_FILE = re.compile(rf"(?:^|/)server/(api/.*?)(?:\.(get|post|put|delete|patch))?{_SOURCE_EXT}")
_ROUTE_GROUP = re.compile(r"^\(.*\)$")


def route_path_for(rel_path: str) -> str:
    """
    Derive the URL path a page or route handler serves.

    app/(shop)/products/[id]/page.tsx -> /products/[id]
    pages/blog/index.tsx -> /blog
    server/api/users.get.ts -> /api/users
    """
    m = _APP_FILE.search(rel_path)
    if m:
        # Route groups and parallel-route slots don't appear in the URL
        segments = [
            s for s in (m.group(1) or "").split("/")
            if s and not _ROUTE_GROUP.match(s) and not s.startswith("@")
        ]
        return "/" + "/".join(segments)

    m = _NUXT_API_FILE.search(rel_path) or _PAGES_FILE.search(rel_path)
    route = "/" + (m.group(1) if m else re.sub(_SOURCE_EXT, "", rel_path))

    if route.endswith("/index"):
        route = route[: -len("/index")]
    return route or "/"


def route_methods_for(module: ParsedModule) -> tuple[str, ...]:
    """HTTP methods a route handler serves; ("ALL",) when it handles every method."""
    nuxt = _NUXT_API_FILE.search(module.path)
    if nuxt:
        return (nuxt.group(2).upper(),) if nuxt.group(2) else ("ALL",)
    if _PAGES_FILE.search(module.path):
        return ("ALL",)
    methods = tuple(e.name for e in module.exports if e.name in ROUTE_METHODS)
    return methods or ("ALL",)


class GraphBuilder:
    """Build a ProjectGraph from parsed modules in one aggregation pass."""

    def __init__(
        self,
        config: dict[str, Any],
        aliases: dict[str, list[str]] | None = None,
        base_url: str = ".",
    ) -> None:
        """
        Args:
            config: Merged configuration (auth marker names are read from it).
            aliases: Path alias table for import resolution.
            base_url: Directory alias targets are relative to.
        """
        self.config = config
        self.aliases = aliases
        self.base_url = base_url
        auth_config = config.get("auth") or {}
        self.route_marker_names = [m.get("name") for m in auth_config.get("route_markers") or []]

    def build(self, modules: list[ParsedModule], schema: Schema | None = None) -> ProjectGraph:
        """
        Aggregate parsed modules into a frozen graph.

        Args:
            modules: Parsed modules, in any order. Duplicate paths keep the first.
            schema: Data-model schema to attach (empty when None).

        Returns:
            The ProjectGraph.
        """
        by_id: dict[str, ParsedModule] = {}
        for module in sorted(modules, key=lambda m: m.path):
            if module.path in by_id:
                logger.warning("Duplicate module id %s ignored", module.path)
                continue
            by_id[module.path] = module

        resolver = ImportResolver.for_modules(by_id, self.aliases, self.base_url)

        resolved: dict[str, tuple[ImportInfo, ...]] = {}
        edges: list[GraphEdge] = []
        for module_id, module in by_id.items():
            imports = []
            for imp in module.imports:
                target = resolver.resolve(imp.source, module_id) if resolver.is_internal(imp.source) else None
                imports.append(dataclasses.replace(imp, resolved_path=target))
                if target is not None and target != module_id:
                    edges.append(GraphEdge(module_id, target))
            resolved[module_id] = tuple(imports)

        used_by = reverse_index(edges)

        nodes: dict[str, GraphNode] = {}
        pages: list[PageInfo] = []
        components: list[ComponentInfo] = []
        api_routes: list[RouteHandlerInfo] = []
        libs: list[LibraryInfo] = []

        for module_id, module in by_id.items():
            imports = resolved[module_id]
            kind = primary_kind(module.roles)
            importers = used_by.get(module_id, ())

            nodes[module_id] = GraphNode(
                id=module_id,
                kind=kind,
                name=module.exports[0].name if module.exports else file_stem(module_id),
                exports=module.exports,
                imports=imports,
                metadata={
                    "line_count": module.line_count,
                    "language": module.language,
                    "client_marked": module.client_marked,
                    "roles": tuple(role.value for role in module.roles),
                    "env_vars": module.env_vars,
                    "security_signals": module.security_signals,
                    "auth_markers": module.auth_markers,
                },
            )

            if module.has_role(Role.PAGE):
                pages.append(self._page_info(module, imports))
            if module.has_role(Role.ROUTE_HANDLER):
                api_routes.append(self._route_info(module))
            if module.has_role(Role.COMPONENT) or module.has_role(Role.HOOK):
                components.append(self._component_info(module, importers))
            if module.has_role(Role.LIBRARY) or not module.roles:
                libs.append(LibraryInfo(
                    file_path=module_id,
                    exports=module.exports,
                    imports=imports,
                    used_by=importers,
                    env_vars=module.env_vars,
                    side_effects=module.side_effects,
                ))

        graph = ProjectGraph(
            nodes=nodes,
            edges=tuple(edges),
            pages=tuple(pages),
            components=tuple(components),
            api_routes=tuple(api_routes),
            libs=tuple(libs),
            schema=schema or Schema(),
        )
        logger.debug(
            "Built graph: %d nodes, %d edges, %d pages, %d components, %d routes, %d libs",
            len(nodes), len(edges), len(pages), len(components), len(api_routes), len(libs),
        )
        return graph

    def _route_auth(self, module: ParsedModule) -> str:
        for name in module.auth_markers:
            if name in self.route_marker_names:
                return name
        return "None"

    def _page_info(self, module: ParsedModule, imports: tuple[ImportInfo, ...]) -> PageInfo:
        # Pages also accept page-only markers such as client session hooks
        auth = module.auth_markers[0] if module.auth_markers else "None"
        return PageInfo(
            file_path=module.path,
            route_path=route_path_for(module.path),
            render_kind=module.render_kind,
            auth=auth,
            imports=imports,
            data_fetching=module.data_access,
            components=module.elements,
            api_calls=module.api_calls,
            params=module.search_params,
            i18n_namespace=module.i18n_namespace,
            data_fetching_method=module.data_fetching_method,
        )

    def _route_info(self, module: ParsedModule) -> RouteHandlerInfo:
        return RouteHandlerInfo(
            file_path=module.path,
            route_path=route_path_for(module.path),
            methods=route_methods_for(module),
            auth=self._route_auth(module),
            models=dedupe(access.model for access in module.data_access),
            side_effects=module.side_effects,
        )

    @staticmethod
    def _component_info(module: ParsedModule, importers: tuple[str, ...]) -> ComponentInfo:
        values = [e.name for e in module.exports if not e.is_type_only]
        hooks = [name for name in values if re.match(r"use[A-Z]", name)]
        capitalized = [name for name in values if name[:1].isupper()]
        # A hook module is named after its hook even when it also exports components or types
        candidates = hooks + capitalized if module.has_role(Role.HOOK) else capitalized + hooks
        name = candidates[0] if candidates else None
        return ComponentInfo(
            file_path=module.path,
            name=name or file_stem(module.path),
            render_kind=module.render_kind,
            state=module.state,
            hooks=module.hooks,
            api_calls=module.api_calls,
            side_effects=module.side_effects,
            env_vars=module.env_vars,
            used_by=importers,
            renders=module.elements,
        )


def build_graph(
    modules: list[ParsedModule],
    config: dict[str, Any],
    schema: Schema | None = None,
    aliases: dict[str, list[str]] | None = None,
    base_url: str = ".",
) -> ProjectGraph:
    """Convenience wrapper around GraphBuilder."""
    return GraphBuilder(config, aliases, base_url).build(modules, schema)
