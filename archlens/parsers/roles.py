"""
Role classification for parsed modules.

ROLE_RULES is an ordered list of (predicate, Role) pairs. Path
conventions come first, then content heuristics, then directory
conventions. A module collects every role whose predicate holds; its
primary kind is the first one, or LIBRARY when nothing matched.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Callable

from archlens.models import Role
from archlens.utils import file_stem

if TYPE_CHECKING:
    from archlens.models import ExportInfo

    RolePredicate = Callable[[str, "tuple[ExportInfo, ...]"], bool]

_SOURCE_EXT = r"(?:[cm]?[jt]sx?|vue)"

_APP_PAGE = re.compile(rf"(?:^|/)app/(?:.+/)?page\.{_SOURCE_EXT}$")
_PAGES_DIR = re.compile(rf"(?:^|/)pages/.+\.{_SOURCE_EXT}$")
_PAGES_SPECIAL = {"_app", "_document", "_error"}

_APP_ROUTE = re.compile(r"(?:^|/)app/(?:.+/)?route\.[cm]?[jt]sx?$")
_PAGES_API = re.compile(r"(?:^|/)pages/api/.+\.[cm]?[jt]sx?$")
_SERVER_API = re.compile(r"(?:^|/)server/api/.+\.[cm]?[jt]s$")

_HOOK_NAME = re.compile(r"^use[A-Z-]")
_HOOK_DIR = re.compile(r"(?:^|/)composables/")

_COMPONENT_DIR = re.compile(r"(?:^|/)components/")
_COMPONENT_EXTS = {".tsx", ".jsx", ".vue"}
# PascalCase, but not an ALL_CAPS constant
_COMPONENT_NAME = re.compile(r"^[A-Z](?![A-Z0-9_]*$)")
_COMPONENT_EXPORT_KINDS = {"function", "default", "variable", "class"}
HTTP_METHODS = ("GET", "POST", "PUT", "DELETE", "PATCH", "HEAD", "OPTIONS")

_LIBRARY_DIR = re.compile(r"^(?:src/)?(?:lib|utils)/|^server/utils/")


def is_page(rel_path: str, exports: tuple[ExportInfo, ...] = ()) -> bool:
    if _APP_PAGE.search(rel_path):
        return True
    if _PAGES_DIR.search(rel_path) and "pages/api/" not in rel_path:
        return file_stem(rel_path) not in _PAGES_SPECIAL
    return False


def is_route_handler(rel_path: str, exports: tuple[ExportInfo, ...] = ()) -> bool:
    return bool(
        _APP_ROUTE.search(rel_path)
        or _PAGES_API.search(rel_path)
        or _SERVER_API.search(rel_path)
    )


def is_hook(rel_path: str, exports: tuple[ExportInfo, ...] = ()) -> bool:
    if _HOOK_NAME.match(file_stem(rel_path)) or _HOOK_DIR.search(rel_path):
        return True
    return any(
        _HOOK_NAME.match(e.name) and e.kind in ("function", "variable", "default")
        for e in exports
    )


def is_component(rel_path: str, exports: tuple[ExportInfo, ...] = ()) -> bool:
    if _COMPONENT_DIR.search(rel_path):
        return True
    if PurePosixPath(rel_path).suffix not in _COMPONENT_EXTS:
        return False
    return any(
        e.kind in _COMPONENT_EXPORT_KINDS
        and not e.is_type_only
        and _COMPONENT_NAME.match(e.name)
        and e.name not in HTTP_METHODS
        for e in exports
    )


def is_library(rel_path: str, exports: tuple[ExportInfo, ...] = ()) -> bool:
    return bool(_LIBRARY_DIR.search(rel_path))


ROLE_RULES: list[tuple[RolePredicate, Role]] = [
    (is_page, Role.PAGE),
    (is_route_handler, Role.ROUTE_HANDLER),
    (is_hook, Role.HOOK),
    (is_component, Role.COMPONENT),
    (is_library, Role.LIBRARY),
]


def classify_roles(rel_path: str, exports: tuple[ExportInfo, ...]) -> tuple[Role, ...]:
    """Return every satisfied role, in precedence order."""
    return tuple(role for predicate, role in ROLE_RULES if predicate(rel_path, exports))


def primary_kind(roles: tuple[Role, ...]) -> Role:
    return roles[0] if roles else Role.LIBRARY
