"""Ontology store: validated seeding and graph loading.

Seeding is all-or-nothing. The merged forest (stored tags plus seed) is
validated in memory first; only a valid forest is written, inside a single
BEGIN IMMEDIATE transaction. Tags are upserted by id and never deleted.
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass

import structlog
from sqlmodel import select

from semtag.core.errors import OntologyError
from semtag.ontology.graph import OntologyGraph, OntologyNode
from semtag.ontology.seed import ONTOLOGY_SEED, TagSeed
from semtag.store.database import Database
from semtag.store.models import OntologyTag, TagKind

logger = structlog.get_logger(__name__)

_VALID_KINDS = frozenset(k.value for k in TagKind)


@dataclass
class SeedResult:
    created: int = 0
    updated: int = 0
    unchanged: int = 0


def node_from_row(row: OntologyTag) -> OntologyNode:
    return OntologyNode(
        id=row.id,
        name=row.name,
        kind=row.kind,
        description=row.description,
        parent_id=row.parent_id,
        aliases=tuple(row.get_aliases()),
    )


def node_from_seed(seed: TagSeed) -> OntologyNode:
    return OntologyNode(
        id=seed.id,
        name=seed.name,
        kind=seed.kind,
        description=seed.description,
        parent_id=seed.parent_id,
        aliases=tuple(seed.aliases),
    )


def validate_ontology(nodes: Sequence[OntologyNode]) -> OntologyGraph:
    """Validate a complete forest and return its graph.

    Raises:
        OntologyError: empty id, unknown kind, duplicate id, dangling
            parent, or a parent cycle.
    """
    for node in nodes:
        if not node.id or not node.id.strip():
            raise OntologyError.empty_id(node.name)
        if node.kind not in _VALID_KINDS:
            raise OntologyError.invalid_kind(node.id, node.kind)
    return OntologyGraph(nodes)


def seed_ontology(
    db: Database,
    seeds: Sequence[TagSeed] = ONTOLOGY_SEED,
    now: float | None = None,
) -> SeedResult:
    """Upsert the seed into ontology_tags, diffing every mutable field.

    Raises:
        OntologyError: If the merged forest is invalid. Nothing is written.
    """
    ts = now if now is not None else time.time()
    seed_nodes = [node_from_seed(s) for s in seeds]

    # Duplicates inside the seed itself must not be masked by the merge below
    seen: set[str] = set()
    for node in seed_nodes:
        if node.id in seen:
            raise OntologyError.duplicate_id(node.id)
        seen.add(node.id)

    result = SeedResult()
    with db.immediate_transaction() as session:
        existing = {row.id: row for row in session.exec(select(OntologyTag)).all()}

        merged = {tag_id: node_from_row(row) for tag_id, row in existing.items()}
        merged.update({node.id: node for node in seed_nodes})
        validate_ontology(list(merged.values()))

        for node in seed_nodes:
            row = existing.get(node.id)
            if row is None:
                row = OntologyTag(
                    id=node.id,
                    name=node.name,
                    kind=node.kind,
                    description=node.description,
                    parent_id=node.parent_id,
                    created_at=ts,
                    updated_at=ts,
                )
                row.set_aliases(list(node.aliases))
                session.add(row)
                result.created += 1
                continue

            if node_from_row(row) == node:
                result.unchanged += 1
                continue

            row.name = node.name
            row.kind = node.kind
            row.description = node.description
            row.parent_id = node.parent_id
            row.set_aliases(list(node.aliases))
            row.updated_at = ts
            session.add(row)
            result.updated += 1

    logger.info(
        "ontology_seeded",
        created=result.created,
        updated=result.updated,
        unchanged=result.unchanged,
    )
    return result


def load_graph(db: Database) -> OntologyGraph:
    """Build the graph from stored tags."""
    with db.session() as session:
        rows = session.exec(select(OntologyTag)).all()
    return OntologyGraph(node_from_row(row) for row in rows)
