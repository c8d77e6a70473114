"""Semantic tagging and difficulty engine with content-hash memoization.

``SemanticEngine.analyze`` is idempotent under unchanged input: the cache
key ``sha256(version::model::type::combined_text)`` selects an existing ai
analysis, which is returned as-is with no side effects. On a miss the full
pipeline runs and exactly one new analysis row is written.
"""

from __future__ import annotations

import time
from dataclasses import dataclass

import structlog
from sqlmodel import col, select

from semtag.analysis.activation import ActivationResult, run_activation
from semtag.analysis.boosts import compute_boosts
from semtag.analysis.difficulty import DifficultyResult, score_difficulty
from semtag.analysis.heuristics import concept_hits, extract_signals
from semtag.analysis.selector import select_tags
from semtag.batch.tuning import load_tuning
from semtag.config.constants import ANALYSIS_VERSION, RATIONALE_ACTIVATED_NODES, RATIONALE_ROOTS
from semtag.config.models import SemTagConfig
from semtag.core.text import plain_text, round6, stable_hash
from semtag.embedding.cache import EmbeddingCache
from semtag.ontology.graph import OntologyGraph
from semtag.ontology.seeding import load_graph, seed_ontology
from semtag.store.database import Database
from semtag.store.models import (
    ActivatedNode,
    AnalysisSource,
    HeuristicArtifact,
    HierarchyRationale,
    Question,
    QuestionAnalysis,
    Rationale,
    RootActivation,
)

logger = structlog.get_logger(__name__)


def combined_text(question: Question) -> str:
    """Plain question text, with the explanation appended when present."""
    plain = plain_text(question.text)
    explanation = plain_text(question.explanation)
    combined = f"{plain}\n\nExplanation: {explanation}" if explanation else plain
    return combined.strip()


def input_hash(question: Question, model_id: str, text: str | None = None) -> str:
    combined = combined_text(question) if text is None else text
    return stable_hash(f"{ANALYSIS_VERSION}::{model_id}::{question.type}::{combined}")


@dataclass
class _OntologyContext:
    graph: OntologyGraph
    node_vectors: dict[str, list[float]]


class SemanticEngine:
    """Analyzes questions against the stored ontology.

    The graph and per-node vectors are built once and reused until
    ``reset()``; the queue resets at the start of every batch. All state
    lives in the injected ``Database``, so separate engines over separate
    databases never share anything.
    """

    def __init__(self, db: Database, config: SemTagConfig | None = None) -> None:
        self.db = db
        self.config = config or SemTagConfig()
        self._context: _OntologyContext | None = None
        self._seeded = False

    @property
    def model_id(self) -> str:
        return self.config.engine.model_id

    def reset(self) -> None:
        """Drop the cached graph so the next analysis rereads the ontology."""
        self._context = None

    def ensure_ontology(self) -> OntologyGraph:
        """Seed (once per engine) and return the current graph."""
        return self._ontology().graph

    def _ontology(self) -> _OntologyContext:
        if self._context is None:
            if not self._seeded:
                seed_ontology(self.db)
                self._seeded = True
            graph = load_graph(self.db)
            cache = EmbeddingCache(self.db, self.model_id, self.config.engine.ontology_dims)
            self._context = _OntologyContext(graph=graph, node_vectors=cache.node_vectors(graph))
        return self._context

    def find_cached(self, question_id: str, key: str) -> QuestionAnalysis | None:
        with self.db.session() as session:
            return session.exec(
                select(QuestionAnalysis)
                .where(QuestionAnalysis.question_id == question_id)
                .where(QuestionAnalysis.source == AnalysisSource.AI.value)
                .where(QuestionAnalysis.model_id == self.model_id)
                .where(QuestionAnalysis.analysis_version == ANALYSIS_VERSION)
                .where(QuestionAnalysis.input_hash == key)
                .order_by(col(QuestionAnalysis.id).desc())
                .limit(1)
            ).first()

    def analyze(self, question: Question) -> QuestionAnalysis | None:
        """Analyze one question, reusing a cached result when the input is unchanged.

        Returns:
            The stored analysis, or None when the question has no text.
        """
        combined = combined_text(question)
        if not combined:
            logger.debug("analysis_skipped_empty", question_id=question.id)
            return None

        key = input_hash(question, self.model_id, combined)
        cached = self.find_cached(question.id, key)
        if cached is not None:
            logger.debug("analysis_cache_hit", question_id=question.id, analysis_id=cached.id)
            return cached

        started = time.perf_counter()
        tuning = load_tuning(self.db, self.config.tuning)
        ctx = self._ontology()
        question_vector = EmbeddingCache(
            self.db, self.model_id, self.config.engine.ontology_dims
        ).question_vector(question.id, combined)

        question_plain = plain_text(question.text)
        signals = extract_signals(f"{combined}\n{question_plain}")
        boosts, artifacts = compute_boosts(signals, concept_hits(combined))
        activation = run_activation(ctx.graph, question_vector, ctx.node_vectors, boosts, tuning)
        tags = select_tags(activation, tuning.tag_threshold, self.config.engine.top_k)
        difficulty = score_difficulty(activation, ctx.graph, combined, question_plain, signals)

        analysis = QuestionAnalysis(
            question_id=question.id,
            input_hash=key,
            model_id=self.model_id,
            analysis_version=ANALYSIS_VERSION,
            source=AnalysisSource.AI.value,
            created_at=time.time(),
            difficulty_score=difficulty.score,
            difficulty_band=difficulty.band.value,
            factors_json="{}",
        )
        analysis.set_tags(tags)
        analysis.set_factors(difficulty.factors)
        analysis.set_rationale(build_rationale(ctx.graph, activation, artifacts, difficulty))

        with self.db.session() as session:
            session.add(analysis)
            session.commit()
            session.refresh(analysis)

        logger.info(
            "question_analyzed",
            question_id=question.id,
            analysis_id=analysis.id,
            tags=len(tags),
            difficulty=difficulty.score,
            band=difficulty.band.value,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return analysis

    def analyze_id(self, question_id: str) -> QuestionAnalysis | None:
        """Load a question by id and analyze it. None if missing or blank."""
        with self.db.session() as session:
            question = session.get(Question, question_id)
        if question is None:
            logger.debug("analysis_question_missing", question_id=question_id)
            return None
        return self.analyze(question)


def build_rationale(
    graph: OntologyGraph,
    activation: ActivationResult,
    artifacts: list[HeuristicArtifact],
    difficulty: DifficultyResult,
) -> Rationale:
    ranked = activation.ranked()
    roots = sorted(
        (
            RootActivation(tag_id=root_id, tag_name=node.name, score=round6(activation.score(root_id)))
            for root_id in graph.roots
            if (node := graph.get(root_id)) is not None
        ),
        key=lambda r: (-r.score, r.tag_id),
    )
    return Rationale(
        top_signals=difficulty.top_signals,
        activated_nodes=[
            ActivatedNode(
                tag_id=n.tag_id,
                tag_name=n.tag_name,
                final_score=round6(n.final_score),
                base_similarity=round6(n.base_similarity),
                heuristic_boost=round6(n.heuristic_boost),
                propagated_up=round6(n.propagated_up),
                propagated_down=round6(n.propagated_down),
                depth=n.depth,
            )
            for n in ranked[:RATIONALE_ACTIVATED_NODES]
        ],
        hierarchy=HierarchyRationale(
            roots_activated=[r for r in roots if r.score > 0][:RATIONALE_ROOTS],
            sibling_suppression_applied=activation.sibling_suppression_applied,
        ),
        heuristics=artifacts,
        difficulty_components=difficulty.components,
        consistency=difficulty.consistency,
    )
