"""
archlens - Static architecture analysis for web-application source trees.

Builds a typed module graph (pages, components, route handlers, libraries,
data-model schema) from TypeScript/JavaScript/Vue sources and runs a suite
of analysis agents over it.
"""

__version__ = "0.3.0"

from archlens.config import DEFAULT_CONFIG, DEFAULT_EXCLUDE, load_config, merge_config
from archlens.scanner import AnalysisResult, ProjectScanner, analyze_project
from archlens.agents import ALL_AGENTS, run_agents

__all__ = [
    "ALL_AGENTS",
    "AnalysisResult",
    "DEFAULT_CONFIG",
    "DEFAULT_EXCLUDE",
    "ProjectScanner",
    "analyze_project",
    "load_config",
    "merge_config",
    "run_agents",
    "__version__",
]
