"""
Agent definition for archlens.

An agent is plain data: an id, a description, a tier and a run function
that reads the frozen graph and returns findings. Agents hold no state
between runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable

from archlens.models import Finding, Severity, Tier

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import ProjectGraph

    AgentFn = Callable[[ProjectGraph, "dict[str, Any]"], "list[Finding]"]


@dataclass(frozen=True)
class Agent:
    id: str
    name: str
    description: str
    tier: Tier
    run: AgentFn

    def finding(
        self,
        severity: Severity,
        title: str,
        message: str,
        file_path: str | None = None,
        suggestion: str | None = None,
    ) -> Finding:
        """Build a Finding attributed to this agent."""
        return Finding(self.id, severity, title, message, file_path, suggestion)
