"""Factories for building small graphs without touching the filesystem."""

from __future__ import annotations

import posixpath

from archlens.config import merge_config
from archlens.graph import build_graph
from archlens.models import (
    DataAccess,
    ExportInfo,
    ImportInfo,
    ParsedModule,
    Schema,
    SchemaEntity,
    SchemaRelation,
)
from archlens.parsers.roles import classify_roles


def module(path, imports=(), exports=(), **facts) -> ParsedModule:
    """
    A ParsedModule with roles classified from its path and exports.

    imports: source strings ("./b", "@/lib/db") or ImportInfo objects.
    exports: names (plain functions) or ExportInfo objects.
    """
    import_infos = tuple(i if isinstance(i, ImportInfo) else ImportInfo(i) for i in imports)
    export_infos = tuple(e if isinstance(e, ExportInfo) else ExportInfo(e, "function") for e in exports)
    return ParsedModule(
        path=path,
        language=facts.pop("language", "typescript"),
        imports=import_infos,
        exports=export_infos,
        roles=classify_roles(path, export_infos),
        **facts,
    )


def route(path, models=(), methods=("POST",), auth=(), operation="create", **facts) -> ParsedModule:
    """A route handler module exporting the given HTTP methods and touching models."""
    access = tuple(DataAccess(m, operation) for m in models)
    return module(
        path,
        exports=[ExportInfo(m, "function") for m in methods],
        data_access=access,
        side_effects=tuple(dict.fromkeys(a.description for a in access)),
        auth_markers=tuple(auth),
        **facts,
    )


def graph_of(*modules, schema=None, config=None):
    return build_graph(list(modules), config or merge_config(None), schema)


def chain(*paths):
    """Modules where each imports the next: chain("a.ts", "b.ts") -> a imports b."""
    mods = []
    for i, path in enumerate(paths):
        nxt = paths[i + 1] if i + 1 < len(paths) else None
        mods.append(module(path, imports=[relative(path, nxt)] if nxt else []))
    return mods


def cycle(*paths):
    """Modules importing each other in a ring."""
    return [
        module(path, imports=[relative(path, paths[(i + 1) % len(paths)])])
        for i, path in enumerate(paths)
    ]


def relative(from_path: str, to_path: str) -> str:
    """Specifier for to_path as imported from from_path (same directory only)."""
    assert posixpath.dirname(from_path) == posixpath.dirname(to_path)
    return "./" + posixpath.basename(to_path).rsplit(".", 1)[0]


def entity(name, *relations):
    return SchemaEntity(name, relations=tuple(SchemaRelation(f.lower(), f, "one-to-many") for f in relations))


def schema_of(*entities) -> Schema:
    return Schema(tuple(entities), (), "prisma")
