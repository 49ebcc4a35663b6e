"""
Data-model schema extraction for archlens.

load_schema() finds the project's Prisma or Drizzle definitions and
returns a Schema. A project without one gets an empty Schema, never an
error.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

from archlens.models import Schema
from archlens.schema.drizzle import load_drizzle_schema, parse_drizzle
from archlens.schema.prisma import load_prisma_schema, parse_prisma

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

PRISMA_CANDIDATES = ["prisma/schema.prisma", "schema.prisma", "prisma/schema"]
DRIZZLE_CANDIDATES = ["src/db", "db", "drizzle", "src/schema", "lib/db", "src/lib/db", "server/db"]


def _find_prisma(root: Path) -> Path | None:
    for candidate in PRISMA_CANDIDATES:
        path = root / candidate
        if path.is_file() or (path.is_dir() and any(path.glob("*.prisma"))):
            return path
    return None


def _drizzle_dirs(root: Path) -> list[Path]:
    return [root / c for c in DRIZZLE_CANDIDATES if (root / c).is_dir()]


def load_schema(root: Path, config: dict[str, Any] | None = None) -> Schema:
    """
    Load the project's data-model schema.

    Args:
        root: Project root directory.
        config: Configuration dict; reads `schema.provider` and `schema.path`.

    Returns:
        The parsed Schema, or an empty Schema when no source is found.
    """
    schema_config = (config or {}).get("schema") or {}
    provider = schema_config.get("provider") or "auto"
    explicit = schema_config.get("path")

    if provider == "none":
        return Schema()

    if explicit:
        path = root / explicit
        if not path.exists():
            logger.warning("Configured schema path %s does not exist", path)
            return Schema()
        if provider == "drizzle" or (provider == "auto" and path.suffix != ".prisma" and not any(path.glob("*.prisma"))):
            return load_drizzle_schema(path)
        return load_prisma_schema(path)

    if provider in ("auto", "prisma"):
        prisma_path = _find_prisma(root)
        if prisma_path is not None:
            logger.debug("Using prisma schema at %s", prisma_path)
            return load_prisma_schema(prisma_path)

    if provider in ("auto", "drizzle"):
        for drizzle_path in _drizzle_dirs(root):
            schema = load_drizzle_schema(drizzle_path)
            if not schema.is_empty:
                logger.debug("Using drizzle schema in %s", drizzle_path)
                return schema

    logger.debug("No schema source found under %s", root)
    return Schema()


__all__ = [
    "load_schema",
    "load_prisma_schema",
    "load_drizzle_schema",
    "parse_prisma",
    "parse_drizzle",
]
