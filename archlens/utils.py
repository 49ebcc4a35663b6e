"""
Utility functions for archlens.
"""

from __future__ import annotations

import functools
import hashlib
import logging
import re
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)


def get_file_hash(filepath: Path) -> str:
    """
    Generate SHA256 hash of file contents.

    Args:
        filepath: Path to the file to hash.

    Returns:
        Hash string in format "sha256:<first 16 chars of hex>".

    Raises:
        FileNotFoundError: If the file doesn't exist.
        PermissionError: If the file can't be read.
    """
    sha256 = hashlib.sha256()
    with open(filepath, "rb") as f:
        for chunk in iter(lambda: f.read(8192), b""):
            sha256.update(chunk)
    return f"sha256:{sha256.hexdigest()[:16]}"


def count_lines(content: str) -> int:
    """Count lines in source text (a trailing newline does not add a line)."""
    if not content:
        return 0
    return content.count("\n") + (0 if content.endswith("\n") else 1)


def to_posix(path: str | Path) -> str:
    """Normalize a relative path to forward slashes with no leading './'."""
    text = str(path).replace("\\", "/")
    while text.startswith("./"):
        text = text[2:]
    return text


@functools.lru_cache(maxsize=256)
def _glob_to_regex(pattern: str) -> re.Pattern[str]:
    """Translate a glob with `**` support into a compiled regex."""
    out: list[str] = []
    i = 0
    while i < len(pattern):
        c = pattern[i]
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif c == "*":
            out.append("[^/]*")
            i += 1
        elif c == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(c))
            i += 1
    return re.compile("^" + "".join(out) + "$")


def matches_glob(rel_path: str, pattern: str) -> bool:
    """
    Check a project-relative path against a glob pattern.

    `**` spans directories, `*` and `?` stay inside one path segment.
    Patterns without a slash match against the file name alone.
    """
    rel_path = to_posix(rel_path)
    if "/" not in pattern:
        return bool(_glob_to_regex(pattern).match(PurePosixPath(rel_path).name))
    return bool(_glob_to_regex(pattern).match(rel_path))


def should_exclude(rel_path: str, exclude_patterns: list[str]) -> bool:
    """
    Check if a project-relative path should be excluded.

    Args:
        rel_path: Path relative to the project root.
        exclude_patterns: Glob patterns (e.g. "**/node_modules/**", "*.test.*").

    Returns:
        True if any pattern matches.
    """
    return any(matches_glob(rel_path, pattern) for pattern in exclude_patterns)


def to_pascal_case(name: str) -> str:
    """
    Convert snake_case, kebab-case or camelCase to PascalCase.

    Examples:
        order_items -> OrderItems
        user -> User
        verificationToken -> VerificationToken
    """
    camel = re.sub(r"[_\-]+([A-Za-z0-9])", lambda m: m.group(1).upper(), name.strip("_-"))
    return camel[:1].upper() + camel[1:]


def entity_key(name: str) -> str:
    """Comparison key for data entity names, used wherever names are matched."""
    return to_pascal_case(name).lower()


def kebab_to_camel(name: str) -> str:
    """use-cart-items -> useCartItems"""
    return re.sub(r"-([a-z0-9])", lambda m: m.group(1).upper(), name)


def file_stem(path: str) -> str:
    """Return the file name without its extension(s) for source files."""
    name = PurePosixPath(path).name
    if name.endswith(".d.ts"):
        return name[: -len(".d.ts")]
    return name.rsplit(".", 1)[0] if "." in name else name


def dedupe(items) -> tuple:
    """Remove duplicates, keeping first occurrence order."""
    return tuple(dict.fromkeys(items))
