"""Hybrid question search: substring ranking fused with vector ranking.

Documents are indexed per question with a content hash; an unchanged hash
skips re-embedding. Search ranks candidates twice (case-insensitive
substring match, cosine similarity) and fuses both rankings with
Reciprocal Rank Fusion. Short queries lean on the substring channel.
"""

from __future__ import annotations

import json
import time
from collections.abc import Sequence
from dataclasses import dataclass

import numpy as np
import structlog
from sqlalchemy import func, or_
from sqlmodel import col, select

from semtag.analysis.engine import combined_text
from semtag.config.constants import (
    SEARCH_CANDIDATE_LIMIT,
    SEARCH_DEFAULT_LIMIT,
    SEARCH_PREVIEW_WORDS,
    SEARCH_RRF_K,
    SEARCH_SHORT_QUERY_CHARS,
)
from semtag.config.models import EngineConfig
from semtag.core.text import stable_hash
from semtag.embedding.generator import embed
from semtag.store.database import Database
from semtag.store.models import Question, SearchDoc

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class SearchHit:
    question_id: str
    title: str
    subtitle: str
    preview: str
    score: float


@dataclass
class IndexStats:
    indexed: int = 0
    unchanged: int = 0


def first_words(text: str, max_words: int) -> str:
    return " ".join(text.split()[: max(0, max_words)])


def rrf_merge(
    rankings: Sequence[tuple[Sequence[str], float]],
    k: int = SEARCH_RRF_K,
) -> dict[str, float]:
    """Weighted Reciprocal Rank Fusion over (ordered keys, weight) pairs."""
    out: dict[str, float] = {}
    for keys, weight in rankings:
        for rank, key in enumerate(keys, start=1):
            out[key] = out.get(key, 0.0) + weight * (1.0 / (k + rank))
    return out


def _embedding_params(
    model_id: str | None, dims: int | None, config: EngineConfig | None
) -> tuple[str, int]:
    cfg = config or EngineConfig()
    return (model_id if model_id is not None else cfg.model_id, dims if dims is not None else cfg.search_dims)


def _document(question: Question) -> tuple[str, str, str]:
    title = f"Question {question.code}" if question.code else "Question"
    subtitle = ", ".join(question.get_tags()[:4])
    return title, subtitle, combined_text(question)


def index_questions(
    db: Database,
    model_id: str | None = None,
    dims: int | None = None,
    config: EngineConfig | None = None,
) -> IndexStats:
    """Upsert a search document for every question.

    ``model_id`` and ``dims`` default to ``config.model_id`` and
    ``config.search_dims``. A document is re-embedded when its content hash,
    model or vector size differs.
    """
    model_id, dims = _embedding_params(model_id, dims, config)
    stats = IndexStats()
    now = time.time()
    with db.session() as session:
        existing = {doc.question_id: doc for doc in session.exec(select(SearchDoc)).all()}
        for question in session.exec(select(Question).order_by(col(Question.id))).all():
            title, subtitle, content = _document(question)
            content_hash = stable_hash(f"{title}\n{subtitle}\n\n{content}".strip())
            doc = existing.get(question.id)
            if (
                doc is not None
                and doc.content_hash == content_hash
                and doc.model_id == model_id
                and doc.dims == dims
            ):
                stats.unchanged += 1
                continue

            emb = embed(f"{title}\n{subtitle}\n\n{content}", model_id, dims)
            if doc is None:
                doc = SearchDoc(
                    question_id=question.id,
                    title=title,
                    content_hash=content_hash,
                    model_id=emb.model_id,
                    dims=emb.dims,
                    vector_json="[]",
                    updated_at=now,
                )
            doc.title = title
            doc.subtitle = subtitle
            doc.content = content
            doc.content_hash = content_hash
            doc.model_id = model_id
            doc.dims = emb.dims
            doc.vector_json = json.dumps(list(emb.vector))
            doc.updated_at = question.updated_at or now
            session.add(doc)
            stats.indexed += 1
        session.commit()

    logger.info("search_indexed", indexed=stats.indexed, unchanged=stats.unchanged)
    return stats


def hybrid_search(
    db: Database,
    query: str,
    limit: int = SEARCH_DEFAULT_LIMIT,
    model_id: str | None = None,
    dims: int | None = None,
    config: EngineConfig | None = None,
) -> list[SearchHit]:
    """Search indexed questions. Blank queries return nothing.

    Only documents embedded with the same model and vector size take part
    in the vector ranking.
    """
    model_id, dims = _embedding_params(model_id, dims, config)
    q = (query or "").strip()
    if not q:
        return []

    needle = q.lower()
    with db.session() as session:
        text_matches = session.exec(
            select(SearchDoc)
            .where(
                or_(
                    func.lower(SearchDoc.title).contains(needle, autoescape=True),
                    func.lower(SearchDoc.subtitle).contains(needle, autoescape=True),
                    func.lower(SearchDoc.content).contains(needle, autoescape=True),
                )
            )
            .order_by(col(SearchDoc.question_id))
            .limit(SEARCH_CANDIDATE_LIMIT)
        ).all()
        docs = session.exec(
            select(SearchDoc).where(SearchDoc.model_id == model_id).where(SearchDoc.dims == dims)
        ).all()

    by_id = {doc.question_id: doc for doc in docs}
    by_id.update({doc.question_id: doc for doc in text_matches})

    vector_ranked: list[str] = []
    query_vec = np.asarray(embed(q, model_id, dims).vector, dtype=np.float64)
    if docs and float(np.dot(query_vec, query_vec)) > 0.0:
        matrix = np.asarray([doc.get_vector() for doc in docs], dtype=np.float64)
        norms = np.linalg.norm(matrix, axis=1) * float(np.linalg.norm(query_vec))
        sims = np.divide(matrix @ query_vec, norms, out=np.zeros(len(docs)), where=norms > 0)
        order = sorted(range(len(docs)), key=lambda i: (-float(sims[i]), docs[i].question_id))
        vector_ranked = [docs[i].question_id for i in order[:SEARCH_CANDIDATE_LIMIT]]

    short = len(q) <= SEARCH_SHORT_QUERY_CHARS
    fused = rrf_merge(
        [
            ([doc.question_id for doc in text_matches], 2.0 if short else 1.2),
            (vector_ranked, 0.4 if short else 1.4),
        ]
    )

    hits: list[SearchHit] = []
    for question_id, score in sorted(fused.items(), key=lambda kv: (-kv[1], kv[0]))[: max(limit, 0)]:
        doc = by_id.get(question_id)
        if doc is None or not doc.title:
            continue
        hits.append(
            SearchHit(
                question_id=question_id,
                title=doc.title,
                subtitle=doc.subtitle,
                preview=first_words(doc.content, SEARCH_PREVIEW_WORDS),
                score=score,
            )
        )
    return hits
