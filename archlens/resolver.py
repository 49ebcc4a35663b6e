"""
Import specifier resolution for archlens.

Resolves relative and aliased import specifiers to project-relative
module ids, using the same literal-then-fallback order everywhere.
"""

from __future__ import annotations

import json
import logging
import posixpath
import re
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Iterable

from archlens.parsers.lexer import strip_comments
from archlens.utils import to_posix

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

# Tried in order after the literal path
RESOLVE_FALLBACKS = (
    ".ts",
    ".tsx",
    ".js",
    ".jsx",
    "/index.ts",
    "/index.tsx",
    "/index.js",
    "/index.jsx",
)

# Aliases used by Next.js / Nuxt scaffolds when no tsconfig paths exist
DEFAULT_ALIASES: dict[str, list[str]] = {
    "@/*": ["./*", "./src/*"],
    "~/*": ["./*", "./src/*"],
}


class ImportResolver:
    """
    Resolve import specifiers to project-relative module ids.

    The existence check is pluggable: the parser checks the filesystem,
    the graph builder checks the set of parsed module ids.
    """

    def __init__(
        self,
        exists: Callable[[str], bool],
        aliases: dict[str, list[str]] | None = None,
        base_url: str = ".",
    ) -> None:
        """
        Args:
            exists: Returns True if a project-relative path is a module.
            aliases: tsconfig-style `paths` table ("@/*" -> ["./src/*"]).
            base_url: Directory alias targets are relative to.
        """
        self.exists = exists
        self.aliases = aliases if aliases is not None else dict(DEFAULT_ALIASES)
        self.base_url = to_posix(base_url) or "."

    @classmethod
    def for_modules(
        cls,
        module_ids: Iterable[str],
        aliases: dict[str, list[str]] | None = None,
        base_url: str = ".",
    ) -> "ImportResolver":
        """Resolver backed by an in-memory set of module ids."""
        known = frozenset(module_ids)
        return cls(known.__contains__, aliases, base_url)

    @classmethod
    def for_directory(
        cls,
        root: Path,
        aliases: dict[str, list[str]] | None = None,
        base_url: str = ".",
    ) -> "ImportResolver":
        """Resolver backed by the filesystem under root."""
        root = root.resolve()

        def exists(rel: str) -> bool:
            return (root / rel).is_file()

        return cls(exists, aliases, base_url)

    def is_internal(self, specifier: str) -> bool:
        """True for relative specifiers and ones matching an alias."""
        if specifier.startswith("."):
            return True
        return any(self._alias_match(pattern, specifier) is not None for pattern in self.aliases)

    def resolve(self, specifier: str, from_path: str) -> str | None:
        """
        Resolve a specifier imported by from_path.

        Args:
            specifier: The import source string.
            from_path: Project-relative path of the importing module.

        Returns:
            Project-relative module id, or None for external packages and
            paths that don't exist.
        """
        for candidate in self.candidates(specifier, from_path):
            found = self._with_fallbacks(candidate)
            if found:
                return found
        return None

    def candidates(self, specifier: str, from_path: str) -> list[str]:
        """Base paths (before extension fallbacks) a specifier may refer to."""
        if specifier.startswith("."):
            base_dir = posixpath.dirname(to_posix(from_path))
            return [_normalize(posixpath.join(base_dir, specifier))]

        bases: list[str] = []
        # Longest alias prefix first, so "@/lib/*" beats "@/*"
        for pattern in sorted(self.aliases, key=len, reverse=True):
            captured = self._alias_match(pattern, specifier)
            if captured is None:
                continue
            for target in self.aliases[pattern]:
                substituted = target.replace("*", captured, 1) if "*" in target else target
                bases.append(_normalize(posixpath.join(self.base_url, substituted)))
        return bases

    def _with_fallbacks(self, base: str) -> str | None:
        if not base or base.startswith(".."):
            return None
        if self.exists(base):
            return base
        for suffix in RESOLVE_FALLBACKS:
            if self.exists(base + suffix):
                return base + suffix
        return None

    @staticmethod
    def _alias_match(pattern: str, specifier: str) -> str | None:
        """Return the text captured by the alias wildcard, or None."""
        if "*" not in pattern:
            return "" if specifier == pattern else None
        prefix, _, suffix = pattern.partition("*")
        if specifier.startswith(prefix) and specifier.endswith(suffix) and len(specifier) >= len(prefix) + len(suffix):
            return specifier[len(prefix):len(specifier) - len(suffix)]
        return None


def _normalize(path: str) -> str:
    normalized = posixpath.normpath(path)
    return "" if normalized == "." else normalized


def load_path_aliases(root: Path) -> tuple[dict[str, list[str]] | None, str]:
    """
    Read `compilerOptions.paths` and `baseUrl` from tsconfig.json / jsconfig.json.

    tsconfig files commonly contain comments and trailing commas, which
    are stripped before JSON decoding.

    Returns:
        (aliases, base_url). aliases is None when no config declares paths,
        in which case the resolver falls back to DEFAULT_ALIASES.
    """
    for name in ("tsconfig.json", "jsconfig.json"):
        config_path = root / name
        if not config_path.is_file():
            continue
        try:
            raw = config_path.read_text(encoding="utf-8")
            cleaned = re.sub(r",(\s*[}\]])", r"\1", strip_comments(raw, name, check_syntax=False))
            data: dict[str, Any] = json.loads(cleaned)
        except (OSError, ValueError) as e:
            logger.warning("Could not read %s: %s", config_path, e)
            continue

        options = data.get("compilerOptions") or {}
        base_url = to_posix(options.get("baseUrl") or ".")
        paths = options.get("paths")
        if isinstance(paths, dict) and paths:
            aliases = {
                str(pattern): [str(t) for t in targets]
                for pattern, targets in paths.items()
                if isinstance(targets, list)
            }
            logger.debug("Loaded %d path aliases from %s", len(aliases), name)
            return aliases, base_url
        if data.get("extends"):
            logger.debug("%s extends %s; inherited paths are not followed", name, data["extends"])
        return None, base_url

    return None, "."
