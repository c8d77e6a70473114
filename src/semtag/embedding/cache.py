"""Content-hashed embedding cache over the ``embeddings`` table.

The latest record for ``(scope, scope_id, model_id, dims)`` is authoritative when
its ``text_hash`` matches the current source text; otherwise the vector is
regenerated and a new record appended. Writes are idempotent: content is a
pure function of the hash key, so concurrent writers converge.
"""

from __future__ import annotations

import json
import time

import numpy as np
import structlog
from sqlmodel import Session, col, select

from semtag.config.constants import ONTOLOGY_DIMS
from semtag.core.text import stable_hash
from semtag.embedding.generator import embed
from semtag.ontology.graph import OntologyGraph, OntologyNode
from semtag.store.database import Database
from semtag.store.models import EmbeddingRecord, EmbeddingScope

logger = structlog.get_logger(__name__)


def tag_descriptor(node: OntologyNode) -> str:
    return f"{node.name}. {node.description}"


def alias_text(node: OntologyNode, alias: str) -> str:
    return f"{alias}. Alias of {node.name}. {node.description}"


def average_vectors(vectors: list[list[float]]) -> list[float]:
    valid = [v for v in vectors if v]
    if not valid:
        return []
    return [float(x) for x in np.mean(np.asarray(valid, dtype=np.float64), axis=0)]


class EmbeddingCache:
    """Get-or-create access to cached vectors for one model id."""

    def __init__(self, db: Database, model_id: str, dims: int = ONTOLOGY_DIMS) -> None:
        self.db = db
        self.model_id = model_id
        self.dims = dims

    def _latest_by_scope_id(self, session: Session, scope: EmbeddingScope) -> dict[str, EmbeddingRecord]:
        rows = session.exec(
            select(EmbeddingRecord)
            .where(EmbeddingRecord.scope == scope.value)
            .where(EmbeddingRecord.model_id == self.model_id)
            .where(EmbeddingRecord.dims == self.dims)
            .order_by(col(EmbeddingRecord.id))
        ).all()
        # Ascending id order: later rows overwrite earlier ones
        return {row.scope_id: row for row in rows}

    def _resolve(
        self,
        session: Session,
        existing: EmbeddingRecord | None,
        scope: EmbeddingScope,
        scope_id: str,
        text: str,
    ) -> list[float]:
        text_hash = stable_hash(text)
        if existing is not None and existing.text_hash == text_hash and existing.dims == self.dims:
            vector = existing.get_vector()
            if vector:
                return vector

        emb = embed(text, self.model_id, self.dims)
        session.add(
            EmbeddingRecord(
                scope=scope.value,
                scope_id=scope_id,
                model_id=self.model_id,
                dims=emb.dims,
                vector_json=json.dumps(list(emb.vector)),
                text_hash=text_hash,
                created_at=time.time(),
            )
        )
        logger.debug("embedding_generated", scope=scope.value, scope_id=scope_id)
        return list(emb.vector)

    def question_vector(self, question_id: str, text: str) -> list[float]:
        with self.db.session() as session:
            existing = session.exec(
                select(EmbeddingRecord)
                .where(EmbeddingRecord.scope == EmbeddingScope.QUESTION.value)
                .where(EmbeddingRecord.scope_id == question_id)
                .where(EmbeddingRecord.model_id == self.model_id)
            .where(EmbeddingRecord.dims == self.dims)
                .order_by(col(EmbeddingRecord.id).desc())
                .limit(1)
            ).first()
            vector = self._resolve(session, existing, EmbeddingScope.QUESTION, question_id, text)
            session.commit()
        return vector

    def node_vectors(self, graph: OntologyGraph) -> dict[str, list[float]]:
        """Per-node vectors: tag descriptor averaged with same-length alias vectors."""
        out: dict[str, list[float]] = {}
        with self.db.session() as session:
            by_tag = self._latest_by_scope_id(session, EmbeddingScope.ONTOLOGY_TAG)
            by_alias = self._latest_by_scope_id(session, EmbeddingScope.ONTOLOGY_ALIAS)

            for node in graph.nodes:
                tag_vector = self._resolve(
                    session,
                    by_tag.get(node.id),
                    EmbeddingScope.ONTOLOGY_TAG,
                    node.id,
                    tag_descriptor(node),
                )

                alias_vectors: list[list[float]] = []
                for alias in sorted(str(a) for a in node.aliases if a):
                    text = alias_text(node, alias)
                    key = f"{node.id}::{stable_hash(text)}"
                    alias_vectors.append(
                        self._resolve(session, by_alias.get(key), EmbeddingScope.ONTOLOGY_ALIAS, key, text)
                    )

                same_length = [v for v in alias_vectors if len(v) == len(tag_vector)]
                combined = average_vectors([tag_vector, *same_length])
                out[node.id] = combined or tag_vector
            session.commit()
        return out
