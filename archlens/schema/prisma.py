"""
Prisma schema parser for archlens.

Reads `model` and `enum` blocks from one or more .prisma files. Entity
names are collected across every file first, so a field whose type is
another model becomes a relation even when that model is declared
later or in a different file.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path

from archlens.models import Schema, SchemaEntity, SchemaEnum, SchemaField, SchemaRelation
from archlens.parsers.lexer import find_matching
from archlens.utils import entity_key, to_pascal_case

logger = logging.getLogger(__name__)

_BLOCK_START = re.compile(r"^(model|enum|view|type|datasource|generator)\s+(\w+)\s*\{\s*$")
_ATTRIBUTE = re.compile(r"@(\w+(?:\.\w+)?)")
_ENUM_VALUE = re.compile(r"^([A-Za-z_]\w*)")

# Block kinds that declare entities
_ENTITY_BLOCKS = ("model", "view")


def _strip_line_comment(line: str) -> str:
    """Drop a trailing // comment that isn't inside a string literal."""
    in_string = False
    for i, c in enumerate(line):
        if c == '"' and (i == 0 or line[i - 1] != "\\"):
            in_string = not in_string
        elif c == "/" and not in_string and line.startswith("//", i):
            return line[:i]
    return line


def _split_blocks(content: str, source: str) -> list[tuple[str, str, list[str]]]:
    """
    Split schema text into (kind, name, body lines) blocks.

    A block that never closes is skipped with a warning.
    """
    blocks: list[tuple[str, str, list[str]]] = []
    current: tuple[str, str, list[str]] | None = None
    opened_at = 0

    for lineno, raw in enumerate(content.splitlines(), 1):
        line = _strip_line_comment(raw).strip()
        if not line:
            continue
        start = _BLOCK_START.match(line)
        if start:
            if current is not None:
                logger.warning("%s:%d: %s %s has no closing brace, skipped", source, opened_at, current[0], current[1])
            current = (start.group(1), start.group(2), [])
            opened_at = lineno
        elif line.startswith("}"):
            if current is not None:
                blocks.append(current)
                current = None
        elif current is not None:
            current[2].append(line)

    if current is not None:
        logger.warning("%s:%d: %s %s has no closing brace, skipped", source, opened_at, current[0], current[1])
    return blocks


def _attributes(rest: str) -> list[tuple[str, str]]:
    """(attribute name, full verbatim text) pairs, with balanced parentheses."""
    found: list[tuple[str, str]] = []
    pos = 0
    while True:
        m = _ATTRIBUTE.search(rest, pos)
        if not m:
            return found
        end = m.end()
        if end < len(rest) and rest[end] == "(":
            close = find_matching(rest, end)
            end = close + 1 if close != -1 else len(rest)
        found.append((m.group(1), rest[m.start():end]))
        pos = end


def parse_prisma(sources: list[tuple[str, str]]) -> Schema:
    """
    Parse Prisma schema text.

    Args:
        sources: (source name, content) pairs; multi-file schemas are merged.

    Returns:
        Schema with provider "prisma".
    """
    blocks: list[tuple[str, str, list[str]]] = []
    for name, content in sources:
        blocks.extend(_split_blocks(content, name))

    entity_names = {
        entity_key(name): to_pascal_case(name)
        for kind, name, _ in blocks
        if kind in _ENTITY_BLOCKS
    }

    enums: list[SchemaEnum] = []
    seen_enums: set[str] = set()
    for kind, name, body in blocks:
        if kind != "enum" or name in seen_enums:
            continue
        seen_enums.add(name)
        values = []
        for line in body:
            if line.startswith("@@"):
                continue
            m = _ENUM_VALUE.match(line)
            if m:
                values.append(m.group(1))
        enums.append(SchemaEnum(name, tuple(values)))

    # entity key -> {field name: (target key, is_array)}
    relation_shapes: dict[str, dict[str, tuple[str, bool]]] = {}
    raw_entities: list[tuple[str, list[SchemaField], list[tuple[str, str, bool]]]] = []
    seen_entities: set[str] = set()

    for kind, name, body in blocks:
        if kind not in _ENTITY_BLOCKS:
            continue
        key = entity_key(name)
        if key in seen_entities:
            logger.warning("Duplicate model %s ignored", name)
            continue
        seen_entities.add(key)

        fields: list[SchemaField] = []
        relations: list[tuple[str, str, bool]] = []
        for line in body:
            if line.startswith("@"):
                continue
            parts = line.split(None, 2)
            if len(parts) < 2:
                continue
            field_name, field_type = parts[0], parts[1]
            rest = parts[2] if len(parts) > 2 else ""

            constraints: list[str] = []
            if field_type.endswith("?"):
                field_type = field_type[:-1]
                constraints.append("optional")
            is_array = field_type.endswith("[]")
            if is_array:
                field_type = field_type[:-2]
                constraints.append("array")

            for attr, verbatim in _attributes(rest):
                if attr == "id":
                    constraints.append("primary key")
                elif attr == "unique":
                    constraints.append("unique")
                elif attr == "default":
                    constraints.append(verbatim)
                elif attr == "updatedAt":
                    constraints.append("auto-updated")
                elif attr == "map":
                    constraints.append(verbatim)

            fields.append(SchemaField(field_name, field_type, tuple(constraints)))

            target_key = entity_key(field_type)
            if target_key in entity_names:
                relations.append((field_name, target_key, is_array))

        relation_shapes[key] = {f: (t, arr) for f, t, arr in relations}
        raw_entities.append((to_pascal_case(name), fields, relations))

    entities = []
    for entity_name, fields, relations in raw_entities:
        own_key = entity_key(entity_name)
        resolved = []
        for field_name, target_key, is_array in relations:
            if is_array:
                back_is_array = any(
                    t == own_key and arr for t, arr in relation_shapes.get(target_key, {}).values()
                )
                cardinality = "many-to-many" if back_is_array and target_key != own_key else "one-to-many"
            else:
                cardinality = "one-to-one"
            resolved.append(SchemaRelation(field_name, entity_names[target_key], cardinality))
        entities.append(SchemaEntity(entity_name, tuple(fields), tuple(resolved)))

    logger.debug("Parsed prisma schema: %d models, %d enums", len(entities), len(enums))
    return Schema(tuple(entities), tuple(enums), "prisma")


def load_prisma_schema(path: Path) -> Schema:
    """
    Load a Prisma schema from a file, or from every .prisma file in a directory.

    Unreadable files are logged and skipped.
    """
    files = sorted(path.glob("*.prisma")) if path.is_dir() else [path]
    sources: list[tuple[str, str]] = []
    for file in files:
        try:
            sources.append((str(file), file.read_text(encoding="utf-8")))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", file, e)
    return parse_prisma(sources)
