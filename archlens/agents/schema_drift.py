"""
Schema drift: entities referenced in code but not declared, and declared
entities nothing uses.

An entity counts as used when a route handler or page touches it, or when
a used entity relates to it. Relations are followed to a fixed point, so
a join table reached only through its parent is not reported.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from archlens.agents.base import Agent
from archlens.models import Severity, Tier
from archlens.utils import dedupe, entity_key

if TYPE_CHECKING:
    from typing import Any

    from archlens.models import Finding, ProjectGraph, SchemaEntity

logger = logging.getLogger(__name__)

# Auth-library tables that are managed outside application code
FRAMEWORK_ENTITIES = {"Account", "Session", "VerificationToken"}


def referenced_models(graph: ProjectGraph) -> tuple[str, ...]:
    """Entity names touched in code, as written, in first-seen order."""
    names: list[str] = []
    for route in graph.api_routes:
        names.extend(route.models)
    for page in graph.pages:
        names.extend(access.model for access in page.data_fetching if access.model)
    return dedupe(names)


def used_entity_closure(entities: dict[str, SchemaEntity], seeds: set[str]) -> set[str]:
    """
    Expand a set of entity keys along schema relations.

    Args:
        entities: Declared entities by entity_key.
        seeds: Keys referenced directly from code.

    Returns:
        Every key reachable from the seeds, seeds included.
    """
    used = set(seeds)
    pending = [key for key in seeds if key in entities]
    while pending:
        entity = entities[pending.pop()]
        for relation in entity.relations:
            key = entity_key(relation.target)
            if key not in used:
                used.add(key)
                if key in entities:
                    pending.append(key)
    return used


def run(graph: ProjectGraph, config: dict[str, Any]) -> list[Finding]:
    if not graph.schema.entities:
        return [AGENT.finding(
            Severity.INFO,
            "No schema detected",
            "No ORM schema found, schema drift checks skipped",
        )]

    entities = {entity_key(entity.name): entity for entity in graph.schema.entities}
    models = referenced_models(graph)
    used = used_entity_closure(entities, {entity_key(model) for model in models})
    findings: list[Finding] = []

    for model in models:
        if entity_key(model) not in entities:
            findings.append(AGENT.finding(
                Severity.WARNING,
                "Model used but not in schema",
                f"`{model}` is used in code but no matching model was found in the schema",
                suggestion="Add the model to your schema or fix the reference",
            ))

    for key, entity in entities.items():
        if key in used or entity.name in FRAMEWORK_ENTITIES:
            continue
        findings.append(AGENT.finding(
            Severity.INFO,
            "Unused schema model",
            f"Schema model `{entity.name}` is never referenced in any route handler or page data access",
            suggestion="Remove the model if no longer needed, or add code that uses it",
        ))

    logger.debug("schema-drift: %d referenced, %d used after closure", len(models), len(used))
    return findings


AGENT = Agent(
    id="schema-drift",
    name="Schema Drift Detector",
    description="Finds models referenced in code but missing from the schema, and schema models never used",
    tier=Tier.PRO,
    run=run,
)
