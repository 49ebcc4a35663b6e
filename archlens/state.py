"""
Per-file content hash snapshot for archlens.

build_snapshot() returns the data a diff tool stores between runs to
tell which files changed. archlens never reads or writes the snapshot
itself.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

from archlens import __version__
from archlens.scanner import ProjectScanner
from archlens.utils import get_file_hash, to_posix

if TYPE_CHECKING:
    from typing import Any

    from archlens.scanner import AnalysisResult

logger = logging.getLogger(__name__)


def build_snapshot(root: Path, config: dict[str, Any], result: AnalysisResult | None = None) -> dict[str, Any]:
    """
    Build the content hash snapshot of a project's source files.

    Args:
        root: Project root directory.
        config: Configuration dictionary.
        result: A finished scan; when given, its framework and graph
            counts fill in 'framework' and 'stats'.

    Returns:
        Dict with 'version', 'analyzed_at', 'framework', 'files'
        ({path: {hash, size}}) and 'stats'.
    """
    root = Path(root).resolve()
    scanner = ProjectScanner(root, config)

    files: dict[str, dict[str, Any]] = {}
    for filepath in scanner.walk_files():
        rel_path = to_posix(filepath.relative_to(root))
        try:
            files[rel_path] = {"hash": get_file_hash(filepath), "size": filepath.stat().st_size}
        except OSError as e:
            logger.warning("Could not hash %s: %s", filepath, e)

    stats: dict[str, int] = {}
    framework = "auto"
    if result is not None:
        graph = result.graph
        framework = result.framework.get("framework", "auto")
        stats = {
            "pages": len(graph.pages),
            "components": len(graph.components),
            "api_routes": len(graph.api_routes),
            "libs": len(graph.libs),
            "models": len(graph.schema.entities),
            "enums": len(graph.schema.enums),
        }

    return {
        "version": __version__,
        "analyzed_at": datetime.now(timezone.utc).isoformat(),
        "framework": framework,
        "files": dict(sorted(files.items())),
        "stats": stats,
    }
