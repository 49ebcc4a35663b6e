"""
Configuration constants and loading utilities for archlens.
"""

from __future__ import annotations

import copy
import os
from pathlib import Path
from typing import Any

import yaml

from archlens.exceptions import ConfigError


DEFAULT_EXCLUDE = [
    "**/node_modules/**",
    "**/.next/**",
    "**/.nuxt/**",
    "**/.output/**",
    "**/dist/**",
    "**/build/**",
    "**/coverage/**",
    "**/.git/**",
    "**/*.test.*",
    "**/*.spec.*",
    "**/__tests__/**",
]


# Single documented default per agent threshold.
DEFAULT_THRESHOLDS: dict[str, int] = {
    # architecture-guard
    "max_line_count": 500,          # lines before a file is "oversized"
    "max_dependencies": 15,         # imports before a component is a "god component"
    "max_page_components": 20,      # rendered components before a page is "complex"
    # performance-sentinel
    "max_page_imports": 20,         # imports before a page is "heavy"
    "max_api_calls_per_page": 5,    # outbound calls before waterfall risk
    "max_component_renders": 15,    # distinct child elements per component
    # impact-analyzer
    "high_fan_in": 10,              # dependents for a high-impact file
    "high_fan_out": 15,             # dependencies for a high-coupling file
    "bridge_min_degree": 5,         # both in- and out-degree for a bridge file
    "hub_min_used_by": 5,           # usages for a hub component
    "hub_min_renders": 5,           # rendered children for a hub component
    # convention-enforcer
    "barrel_min_files": 4,          # files in a directory before an index barrel is expected
}


DEFAULT_CONFIG: dict[str, Any] = {
    # Where out-of-process renderers write their output; unused by the core
    "output": ".planning",

    # nextjs-app | nextjs-pages | nuxt | sveltekit | remix | auto
    "framework": "auto",

    # Source file discovery
    "extensions": [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".vue"],
    "exclude": list(DEFAULT_EXCLUDE),
    "include": [],

    # Parallel file parsing (0 = pick from CPU count)
    "workers": 0,

    # Data-model source: auto | prisma | drizzle | none
    "schema": {
        "provider": "auto",
        "path": None,
    },

    # Auth marker detection. First matching marker wins.
    "auth": {
        "route_markers": [
            {"regex": r"\bauth\s*\(\s*\)", "name": "auth()"},
            {"regex": r"\bgetServerSession\s*\(", "name": "getServerSession"},
            {"regex": r"\bcurrentUser\s*\(\s*\)", "name": "currentUser()"},
            {"regex": r"\bgetToken\s*\(", "name": "getToken"},
            {"regex": r"\bwithAuth\s*\(", "name": "withAuth"},
            {"regex": r"\bgetAuth\s*\(", "name": "getAuth"},
        ],
        # Only meaningful on pages
        "page_markers": [
            {"regex": r"\buseSession\s*\(", "name": "useSession (client)"},
            {"regex": r"\bredirect\s*\(", "name": "redirect (conditional)"},
        ],
    },

    # ORM-style data access: <client>.<entity>.<operation>(...)
    "data_access": {
        "clients": ["prisma", "db"],
    },

    "security": {
        # Env vars with these prefixes are safe to ship to the browser
        "public_env_prefixes": ["NEXT_PUBLIC_", "VITE_", "NUXT_PUBLIC_"],
        "public_env_vars": ["NODE_ENV"],
        # Route path substrings excluded from the unauthenticated-mutation check
        "auth_exempt_routes": ["webhook", "cron", "health", "auth", "public", "register", "login"],
    },

    "agents": {
        "enabled": True,
        "license": None,
        "exclude": [],
        "thresholds": dict(DEFAULT_THRESHOLDS),
        "timeout_seconds": 30,
        "max_workers": 0,  # 0 = one thread per agent
    },
}


def merge_config(user_config: dict[str, Any] | None) -> dict[str, Any]:
    """
    Merge a partial user config over DEFAULT_CONFIG.

    Nested dicts are merged recursively; lists and scalars replace the default.
    """
    config = copy.deepcopy(DEFAULT_CONFIG)
    if user_config:
        _deep_merge(config, user_config)
    return config


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> None:
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(base.get(key), dict):
            _deep_merge(base[key], value)
        else:
            base[key] = copy.deepcopy(value)


def load_config(config_path: Path) -> dict[str, Any]:
    """
    Load configuration from YAML file, merged with defaults.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        Configuration dictionary with user values merged over defaults.

    Raises:
        ConfigError: If the file can't be read or isn't a YAML mapping.
    """
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            user_config = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f"Could not read config {config_path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if not isinstance(user_config, dict):
        raise ConfigError(f"Config {config_path} must be a mapping, got {type(user_config).__name__}")

    return merge_config(user_config)


def get_threshold(config: dict[str, Any], name: str) -> int:
    """Read an agent threshold, falling back to its documented default."""
    thresholds = (config.get("agents") or {}).get("thresholds") or {}
    value = thresholds.get(name)
    if value is None:
        return DEFAULT_THRESHOLDS[name]
    return int(value)


def get_workers(config: dict[str, Any]) -> int:
    workers = int(config.get("workers") or 0)
    if workers > 0:
        return workers
    return min(8, os.cpu_count() or 1)


def get_config_template() -> str:
    """Generate a documented YAML config template."""
    return '''# =============================================================================
# archlens configuration
# =============================================================================
# Every key is optional. Missing keys fall back to built-in defaults.
# =============================================================================

# Output directory used by report renderers
output: .planning

# nextjs-app | nextjs-pages | nuxt | sveltekit | remix | auto
framework: auto

# Glob patterns excluded from the scan (replaces the default list)
exclude:
  - "**/node_modules/**"
  - "**/.next/**"
  - "**/dist/**"
  - "**/*.test.*"
  - "**/*.spec.*"

# =============================================================================
# DATA MODEL
# =============================================================================
# provider: auto | prisma | drizzle | none
# path: explicit schema file (prisma) or directory (drizzle)
# =============================================================================
schema:
  provider: auto
  # path: prisma/schema.prisma

# =============================================================================
# AUTH DETECTION
# =============================================================================
# Regex patterns that mark a route handler (or page) as authenticated.
# The first matching marker names the auth pattern in findings.
# =============================================================================
auth:
  route_markers:
    - regex: "\\\\bauth\\\\s*\\\\(\\\\s*\\\\)"
      name: "auth()"
    - regex: "\\\\bgetServerSession\\\\s*\\\\("
      name: getServerSession

# ORM clients whose <client>.<entity>.<operation>() calls count as data access
data_access:
  clients:
    - prisma
    - db

security:
  public_env_prefixes:
    - NEXT_PUBLIC_
  auth_exempt_routes:
    - webhook
    - cron
    - health

# =============================================================================
# AGENTS
# =============================================================================
agents:
  enabled: true
  # license: AL-PRO-...
  exclude: []
  timeout_seconds: 30
  # Agent threads; 0 runs every agent on its own thread
  max_workers: 0
  thresholds:
    max_line_count: 500
    max_dependencies: 15
    max_page_components: 20
    max_page_imports: 20
    max_api_calls_per_page: 5
    max_component_renders: 15
    high_fan_in: 10
    high_fan_out: 15
    bridge_min_degree: 5
    hub_min_used_by: 5
    hub_min_renders: 5
    barrel_min_files: 4
'''
