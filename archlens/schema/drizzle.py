"""
Drizzle ORM schema parser for archlens.

Table declarations (`pgTable`, `mysqlTable`, `sqliteTable`) are read
from every file first, so `relations(...)` blocks and `.references()`
calls can point at tables declared in other files.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from archlens.models import Schema, SchemaEntity, SchemaEnum, SchemaField, SchemaRelation
from archlens.parsers.lexer import find_matching, split_top_level, strip_comments
from archlens.utils import entity_key, to_pascal_case

logger = logging.getLogger(__name__)

COLUMN_TYPES = {
    "serial": "Int",
    "integer": "Int",
    "smallint": "Int",
    "tinyint": "Int",
    "mediumint": "Int",
    "int": "Int",
    "bigint": "BigInt",
    "bigserial": "BigInt",
    "text": "String",
    "varchar": "String",
    "char": "String",
    "uuid": "String",
    "longtext": "String",
    "boolean": "Boolean",
    "timestamp": "DateTime",
    "date": "DateTime",
    "json": "Json",
    "jsonb": "Json",
    "real": "Float",
    "doublePrecision": "Float",
    "numeric": "Decimal",
    "decimal": "Decimal",
    "blob": "Bytes",
    "binary": "Bytes",
    "varbinary": "Bytes",
}

_TABLE_DECL = re.compile(r"(?:const|let|var)\s+([\w$]+)\s*=\s*(pgTable|mysqlTable|sqliteTable)\s*\(")
_RELATIONS_DECL = re.compile(r"(?:const|let|var)\s+[\w$]+\s*=\s*relations\s*\(")
_ENUM_DECL = re.compile(r"(?:const|let|var)\s+([\w$]+)\s*=\s*(pgEnum|mysqlEnum)\s*\(")
_COLUMN = re.compile(r"""^(?:([\w$]+)|['"]([^'"]+)['"])\s*:\s*(.*)$""", re.S)
_COLUMN_HEAD = re.compile(r"^([\w$]+)\s*\(")
_REFERENCES = re.compile(r"\.references\(\s*\(\s*\)\s*(?::\s*[\w$.]+\s*)?=>\s*([\w$]+)\.[\w$]+")
_ONE = re.compile(r"([\w$]+)\s*:\s*one\s*\(\s*([\w$]+)")
_MANY = re.compile(r"([\w$]+)\s*:\s*many\s*\(\s*([\w$]+)")
_STRING = re.compile(r"""['"`]([^'"`]*)['"`]""")


def _call_args(text: str, open_paren: int) -> list[str] | None:
    close = find_matching(text, open_paren)
    if close == -1:
        return None
    return split_top_level(text[open_paren + 1:close])


def _string_literal(arg: str) -> str | None:
    m = re.fullmatch(r"""\s*['"`]([^'"`]*)['"`]\s*""", arg)
    return m.group(1) if m else None


def _column_constraints(expr: str) -> list[str]:
    constraints: list[str] = []
    if ".primaryKey()" in expr:
        constraints.append("primary key")
    if ".notNull()" in expr:
        constraints.append("not null")
    if ".unique()" in expr:
        constraints.append("unique")
    if ".defaultNow()" in expr:
        constraints.append("@default(now())")
    default = expr.find(".default(")
    if default != -1:
        open_paren = default + len(".default")
        close = find_matching(expr, open_paren)
        if close != -1:
            constraints.append(f"@default({expr[open_paren + 1:close].strip()})")
    return constraints


class _Table:
    def __init__(self, var: str, name: str) -> None:
        self.var = var
        self.name = name
        # (field name, column head call, constraints)
        self.columns: list[tuple[str, str, list[str]]] = []
        # (field name, target variable, cardinality)
        self.relations: list[tuple[str, str, str]] = []


def parse_drizzle(sources: list[tuple[str, str]]) -> Schema:
    """
    Parse Drizzle schema modules.

    Args:
        sources: (source name, content) pairs. Files that never mention
            "drizzle-orm" are ignored.

    Returns:
        Schema with provider "drizzle".
    """
    texts: list[tuple[str, str]] = []
    for name, content in sources:
        if "drizzle-orm" not in content:
            logger.debug("Skipping %s: no drizzle-orm import", name)
            continue
        texts.append((name, strip_comments(content, name, check_syntax=False)))

    tables: dict[str, _Table] = {}
    enum_vars: dict[str, str] = {}
    enums: list[SchemaEnum] = []

    # Pass 1: tables and enums from every file
    for name, text in texts:
        for m in _TABLE_DECL.finditer(text):
            args = _call_args(text, m.end() - 1)
            if not args or len(args) < 2 or not args[1].startswith("{"):
                continue
            table = _Table(m.group(1), _string_literal(args[0]) or m.group(1))
            for column in split_top_level(args[1][1:-1]):
                parsed = _COLUMN.match(column)
                if not parsed:
                    continue
                field_name = parsed.group(1) or parsed.group(2)
                expr = parsed.group(3)
                head = _COLUMN_HEAD.match(expr)
                table.columns.append((field_name, head.group(1) if head else "", _column_constraints(expr)))
                ref = _REFERENCES.search(expr)
                if ref:
                    table.relations.append((field_name, ref.group(1), "one-to-one"))
            if table.var not in tables:
                tables[table.var] = table

        for m in _ENUM_DECL.finditer(text):
            args = _call_args(text, m.end() - 1)
            if not args or len(args) < 2 or not args[1].startswith("["):
                continue
            enum_name = _string_literal(args[0]) or m.group(1)
            enum_vars[m.group(1)] = enum_name
            if not any(e.name == enum_name for e in enums):
                values = tuple(s.group(1) for s in _STRING.finditer(args[1]))
                enums.append(SchemaEnum(enum_name, values))

    # Pass 2: relations() blocks
    for name, text in texts:
        for m in _RELATIONS_DECL.finditer(text):
            args = _call_args(text, m.end() - 1)
            if not args or len(args) < 2:
                continue
            table = tables.get(args[0].strip())
            if table is None:
                continue
            known = {field for field, _, _ in table.relations}
            found = [(r.start(), r.group(1), r.group(2), "one-to-one") for r in _ONE.finditer(args[1])]
            found += [(r.start(), r.group(1), r.group(2), "one-to-many") for r in _MANY.finditer(args[1])]
            for _, field, target, cardinality in sorted(found):
                if field not in known:
                    table.relations.append((field, target, cardinality))
                    known.add(field)

    entities: list[SchemaEntity] = []
    seen: set[str] = set()
    for table in tables.values():
        entity_name = to_pascal_case(table.name)
        if entity_key(entity_name) in seen:
            logger.warning("Duplicate table %s ignored", table.name)
            continue
        seen.add(entity_key(entity_name))

        fields = []
        for field_name, head, constraints in table.columns:
            if head in enum_vars:
                field_type = enum_vars[head]
            else:
                field_type = COLUMN_TYPES.get(head, head or "unknown")
            fields.append(SchemaField(field_name, field_type, tuple(constraints)))

        relations = []
        for field_name, target_var, cardinality in table.relations:
            target = tables.get(target_var)
            target_name = to_pascal_case(target.name if target else target_var)
            relations.append(SchemaRelation(field_name, target_name, cardinality))

        entities.append(SchemaEntity(entity_name, tuple(fields), tuple(relations)))

    logger.debug("Parsed drizzle schema: %d tables, %d enums", len(entities), len(enums))
    return Schema(tuple(entities), tuple(enums), "drizzle")


def load_drizzle_schema(path: Path) -> Schema:
    """Load Drizzle schema modules from a file or (recursively) a directory."""
    if path.is_dir():
        files = sorted(
            p for p in path.rglob("*.ts")
            if p.is_file() and not p.name.endswith(".d.ts") and "node_modules" not in p.parts
        )
    else:
        files = [path]

    sources: list[tuple[str, str]] = []
    for file in files:
        try:
            sources.append((str(file), file.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", file, e)
    return parse_drizzle(sources)
