"""
Main scanner orchestrator for archlens.

Discovers source files, parses them in parallel, loads the data-model
schema and hands everything to the graph builder.
"""

from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from archlens.config import DEFAULT_CONFIG, get_workers
from archlens.exceptions import ParseError
from archlens.framework import detect_framework
from archlens.graph import GraphBuilder
from archlens.parsers import ParserRegistry
from archlens.resolver import ImportResolver, load_path_aliases
from archlens.schema import load_schema
from archlens.utils import should_exclude, to_posix

if TYPE_CHECKING:
    from typing import Any, Iterator

    from archlens.models import ParsedModule, ProjectGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    graph: ProjectGraph
    framework: dict[str, Any]
    total_files: int
    failed_files: tuple[str, ...]
    duration_ms: int


class ProjectScanner:
    """Scan a project tree and build its ProjectGraph."""

    def __init__(self, root: Path, config: dict[str, Any] | None = None):
        """
        Initialize the project scanner.

        Args:
            root: Root directory to scan.
            config: Configuration dictionary (already merged with defaults).
        """
        self.root = Path(root).resolve()
        self.config = config or DEFAULT_CONFIG
        registered = ParserRegistry.list_extensions()
        self.extensions = {e.lower() for e in self.config.get("extensions") or [] if e.lower() in registered}
        self.exclude = list(self.config.get("exclude") or [])
        self.include = list(self.config.get("include") or [])

    def scan(self) -> AnalysisResult:
        """
        Scan the project.

        Files that fail to parse are logged, counted in `failed_files` and
        left out of the graph; the scan itself does not fail.
        """
        started = time.perf_counter()

        framework = detect_framework(self.root, self.config.get("framework") or "auto")
        aliases, base_url = load_path_aliases(self.root)
        resolver = ImportResolver.for_directory(self.root, aliases, base_url)

        files = sorted(self.walk_files(), key=lambda p: to_posix(p.relative_to(self.root)))
        logger.debug("Found %d source files under %s", len(files), self.root)

        workers = get_workers(self.config)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            outcomes = list(executor.map(lambda f: self._parse_file(f, resolver), files))

        modules: list[ParsedModule] = []
        failed: list[str] = []
        for filepath, outcome in zip(files, outcomes):
            if outcome is None:
                failed.append(to_posix(filepath.relative_to(self.root)))
            else:
                modules.append(outcome)

        schema = load_schema(self.root, self.config)
        graph = GraphBuilder(self.config, aliases, base_url).build(modules, schema)

        duration_ms = int((time.perf_counter() - started) * 1000)
        logger.info(
            "Scanned %d files (%d failed) in %d ms", len(files), len(failed), duration_ms
        )
        return AnalysisResult(
            graph=graph,
            framework=framework,
            total_files=len(files),
            failed_files=tuple(sorted(failed)),
            duration_ms=duration_ms,
        )

    def walk_files(self) -> Iterator[Path]:
        """Walk directory and yield source files to parse."""
        for root, dirs, files in os.walk(self.root):
            rel_root = to_posix(Path(root).relative_to(self.root))
            # Filter out excluded directories; a trailing slash lets "**/x/**" match the directory itself
            dirs[:] = sorted(
                d for d in dirs
                if not should_exclude(_join(rel_root, d) + "/", self.exclude)
            )

            for filename in files:
                rel_path = _join(rel_root, filename)
                if Path(filename).suffix.lower() not in self.extensions:
                    continue
                if should_exclude(rel_path, self.exclude):
                    continue
                if self.include and not should_exclude(rel_path, self.include):
                    continue
                yield Path(root) / filename

    def _parse_file(self, filepath: Path, resolver: ImportResolver) -> ParsedModule | None:
        """Parse a single file, returning None if it can't be parsed."""
        parser, _ = ParserRegistry.get_parser(filepath, self.config)
        if parser is None:
            return None
        try:
            return parser.parse_file(filepath, self.root, resolver)
        except ParseError as e:
            logger.warning("Skipping %s", e)
            return None


def _join(rel_root: str, name: str) -> str:
    return name if rel_root in ("", ".") else f"{rel_root}/{name}"


def analyze_project(root: Path, config: dict[str, Any] | None = None) -> AnalysisResult:
    """Scan a project and return its AnalysisResult."""
    return ProjectScanner(root, config).scan()
