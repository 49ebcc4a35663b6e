"""
Framework detection for archlens.

Looks at config files, routing directories and package.json
dependencies to guess which web framework a project uses.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

FRAMEWORKS = ("nextjs-app", "nextjs-pages", "nuxt", "sveltekit", "remix")

# (framework, package names that confirm it)
_PACKAGE_SIGNALS: list[tuple[str, tuple[str, ...]]] = [
    ("next", ("next",)),
    ("nuxt", ("nuxt",)),
    ("sveltekit", ("@sveltejs/kit",)),
    ("remix", ("@remix-run/node", "@remix-run/react")),
]


def _any_exists(root: Path, names: list[str]) -> bool:
    return any((root / name).exists() for name in names)


def detect_framework(root: Path, configured: str = "auto") -> dict[str, Any]:
    """
    Detect the project's framework.

    Args:
        root: Project root directory.
        configured: The `framework` config value; anything but "auto" wins outright.

    Returns:
        Dict with 'framework' (one of FRAMEWORKS or "auto" when unknown),
        'confidence' (0-100) and 'signals' (human-readable evidence).
    """
    if configured and configured != "auto":
        return {"framework": configured, "confidence": 100, "signals": ["set in config"]}

    signals: list[str] = []
    framework = "auto"
    confidence = 0

    if _any_exists(root, ["next.config.js", "next.config.mjs", "next.config.ts"]):
        signals.append("next.config found")
        confidence += 40
        if _any_exists(root, ["app", "src/app"]):
            framework = "nextjs-app"
            signals.append("app/ directory found")
            confidence += 30
        elif _any_exists(root, ["pages", "src/pages"]):
            framework = "nextjs-pages"
            signals.append("pages/ directory found")
            confidence += 30

    if _any_exists(root, ["nuxt.config.ts", "nuxt.config.js"]):
        framework = "nuxt"
        signals.append("nuxt.config found")
        confidence = 80

    if _any_exists(root, ["svelte.config.js"]):
        framework = "sveltekit"
        signals.append("svelte.config.js found")
        confidence = 80

    if _any_exists(root, ["remix.config.js", "app/root.tsx"]):
        framework = "remix"
        signals.append("remix signals found")
        confidence = 70

    deps = _read_dependencies(root)
    for name, packages in _PACKAGE_SIGNALS:
        present = [p for p in packages if p in deps]
        if not present:
            continue
        if len(packages) == 1:
            signals.append(f"{present[0]}@{deps[present[0]]} in dependencies")
        else:
            signals.append(f"{name} packages in dependencies")
        confidence = min(confidence + 20, 100)
        # A bare Next.js dependency still tells us the router
        if name == "next" and framework == "auto":
            if _any_exists(root, ["app", "src/app"]):
                framework = "nextjs-app"
            elif _any_exists(root, ["pages", "src/pages"]):
                framework = "nextjs-pages"

    logger.debug("Detected framework %s (confidence %d): %s", framework, confidence, signals)
    return {"framework": framework, "confidence": confidence, "signals": signals}


def _read_dependencies(root: Path) -> dict[str, str]:
    """Merged dependencies + devDependencies from package.json, or {}."""
    package_json = root / "package.json"
    if not package_json.exists():
        return {}
    try:
        with open(package_json, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("Could not parse %s: %s", package_json, e)
        return {}
    if not isinstance(data, dict):
        return {}

    deps: dict[str, str] = {}
    for key in ("dependencies", "devDependencies"):
        section = data.get(key)
        if isinstance(section, dict):
            deps.update({str(k): str(v) for k, v in section.items()})
    return deps
