"""
Analysis agents for archlens.

Agents are registered in a flat, ordered tuple. run_agents() decides which
of them run, executes the chosen ones on a thread pool with a per-agent
timeout, and folds every result (skips included) into a RunSummary.
"""

from __future__ import annotations

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import TYPE_CHECKING

from archlens.agents import (
    architecture_guard,
    circular_deps,
    convention_enforcer,
    dead_code,
    impact_analyzer,
    performance_sentinel,
    schema_drift,
    security_scanner,
)
from archlens.agents.base import Agent
from archlens.agents.license import validate_license
from archlens.models import AgentResult, RunSummary, Severity, Tier

if TYPE_CHECKING:
    from typing import Any, Iterable

    from archlens.models import Finding, ProjectGraph

logger = logging.getLogger(__name__)

ALL_AGENTS: tuple[Agent, ...] = (
    # Free
    dead_code.AGENT,
    circular_deps.AGENT,
    architecture_guard.AGENT,
    # Pro
    security_scanner.AGENT,
    schema_drift.AGENT,
    performance_sentinel.AGENT,
    convention_enforcer.AGENT,
    impact_analyzer.AGENT,
)

DEFAULT_TIMEOUT_SECONDS = 30


def get_agent(agent_id: str) -> Agent | None:
    return next((agent for agent in ALL_AGENTS if agent.id == agent_id), None)


def list_agents() -> tuple[Agent, ...]:
    return ALL_AGENTS


def run_agents(
    graph: ProjectGraph,
    config: dict[str, Any],
    *,
    agent_ids: Iterable[str] | None = None,
    exclude_ids: Iterable[str] | None = None,
    free_only: bool = False,
    max_workers: int | None = None,
    agents: Iterable[Agent] | None = None,
) -> RunSummary:
    """
    Run analysis agents over a built graph.

    Every agent in the registry produces exactly one AgentResult: either a
    skip with its reason, or the findings it returned. An agent that raises
    or exceeds `agents.timeout_seconds` yields a single error finding
    instead of aborting the run. The timeout counts from when the agent
    starts on a worker, not from when it was queued.

    Args:
        graph: The frozen project graph.
        config: Configuration dictionary (already merged with defaults).
        agent_ids: Only run these agents; the others are skipped.
        exclude_ids: Skip these agents.
        free_only: Skip every pro agent.
        max_workers: Thread count; 0 or None uses `agents.max_workers`,
            and 0 there means one thread per agent.
        agents: Agent list to use instead of ALL_AGENTS.

    Returns:
        RunSummary with results in registry order.
    """
    started = time.perf_counter()
    agents_config = config.get("agents") or {}
    registry = tuple(agents) if agents is not None else ALL_AGENTS

    selected = set(agent_ids) if agent_ids else None
    excluded_ids = set(exclude_ids or ())
    excluded_config = set(agents_config.get("exclude") or ())
    license_info = None

    results: dict[str, AgentResult] = {}
    runnable: list[Agent] = []
    for agent in registry:
        reason = None
        if not agents_config.get("enabled", True):
            reason = "agents disabled in config"
        elif (selected is not None and agent.id not in selected) or agent.id in excluded_ids:
            reason = "excluded by id"
        elif agent.id in excluded_config:
            reason = "excluded in config"
        elif agent.tier is Tier.PRO and free_only:
            reason = "free-only run"
        elif agent.tier is Tier.PRO:
            if license_info is None:
                license_info = validate_license(agents_config.get("license"))
            if not license_info.valid:
                reason = f"PRO license required ({license_info.message})"

        if reason is None:
            runnable.append(agent)
        else:
            logger.debug("Skipping agent %s: %s", agent.id, reason)
            results[agent.id] = AgentResult(agent.id, agent.tier, skipped=True, skip_reason=reason)

    if runnable:
        timeout = float(agents_config.get("timeout_seconds") or DEFAULT_TIMEOUT_SECONDS)
        workers = max_workers or int(agents_config.get("max_workers") or 0) or len(runnable)
        for result in _execute(runnable, graph, config, workers, timeout):
            results[result.agent_id] = result

    ordered = tuple(results[agent.id] for agent in registry)
    return _summarize(ordered, int((time.perf_counter() - started) * 1000))


def _execute(
    runnable: list[Agent],
    graph: ProjectGraph,
    config: dict[str, Any],
    workers: int,
    timeout: float,
) -> list[AgentResult]:
    executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="archlens-agent")
    started_at: dict[str, float] = {}
    results = []
    try:
        submitted = []
        for agent in runnable:
            started = threading.Event()
            future = executor.submit(_timed_run, agent, graph, config, started, started_at)
            submitted.append((agent, started, future))

        for agent, started, future in submitted:
            waited_from = time.perf_counter()
            try:
                # Time spent queued behind other agents is not charged
                if not started.wait(timeout):
                    future.cancel()
                    raise FutureTimeoutError
                remaining = max(0.0, started_at[agent.id] + timeout - time.perf_counter())
                findings = tuple(future.result(timeout=remaining))
            except FutureTimeoutError:
                logger.error("Agent %s timed out after %g s", agent.id, timeout)
                findings = (agent.finding(
                    Severity.ERROR,
                    "Agent timed out",
                    f"{agent.name} did not finish within {timeout:g} seconds",
                ),)
            except Exception as e:
                logger.error("Agent %s crashed: %s", agent.id, e, exc_info=True)
                findings = (agent.finding(
                    Severity.ERROR,
                    "Agent crashed",
                    f"{agent.name} threw an error: {e}",
                ),)
            duration_ms = int((time.perf_counter() - started_at.get(agent.id, waited_from)) * 1000)
            results.append(AgentResult(agent.id, agent.tier, findings, duration_ms))
    finally:
        # A timed-out agent keeps its thread; do not wait for it
        executor.shutdown(wait=False, cancel_futures=True)
    return results


def _timed_run(
    agent: Agent,
    graph: ProjectGraph,
    config: dict[str, Any],
    started: threading.Event,
    started_at: dict[str, float],
) -> list[Finding]:
    """Run an agent on a worker thread, recording when it actually began."""
    started_at[agent.id] = time.perf_counter()
    started.set()
    return agent.run(graph, config)


def _summarize(results: tuple[AgentResult, ...], duration_ms: int) -> RunSummary:
    findings: list[Finding] = [f for r in results for f in r.findings]
    by_severity = {severity: 0 for severity in Severity}
    for finding in findings:
        by_severity[finding.severity] += 1
    ran = sum(1 for r in results if not r.skipped)
    return RunSummary(
        results=results,
        total_findings=len(findings),
        errors=by_severity[Severity.ERROR],
        warnings=by_severity[Severity.WARNING],
        infos=by_severity[Severity.INFO],
        agents_ran=ran,
        agents_skipped=len(results) - ran,
        total_duration_ms=duration_ms,
    )


__all__ = [
    "ALL_AGENTS",
    "Agent",
    "get_agent",
    "list_agents",
    "run_agents",
    "validate_license",
]
