"""User override layer.

An override pins a question's tags and/or difficulty. Automatic write-back
checks for one before touching the question (see daemon.autoapply); the
engine itself keeps producing ai analyses underneath.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field

import structlog
from sqlmodel import col, select

from semtag.analysis.difficulty import map_score_to_band
from semtag.config.constants import DEFAULT_MODEL_ID
from semtag.core.errors import StoreError
from semtag.core.text import clamp01
from semtag.store.database import Database
from semtag.store.models import AnalysisSource, QuestionAnalysis, QuestionOverride

logger = structlog.get_logger(__name__)


@dataclass
class EffectiveResult:
    """What the host application should show for a question."""

    question_id: str
    source: AnalysisSource
    tags: list[str] = field(default_factory=list)
    difficulty_score: float | None = None
    difficulty_band: str | None = None
    analysis_id: int | None = None
    override_id: int | None = None


def latest_override(db: Database, question_id: str) -> QuestionOverride | None:
    with db.session() as session:
        return session.exec(
            select(QuestionOverride)
            .where(QuestionOverride.question_id == question_id)
            .order_by(col(QuestionOverride.id).desc())
            .limit(1)
        ).first()


def has_override(db: Database, question_id: str) -> bool:
    return latest_override(db, question_id) is not None


def latest_ai_analysis(
    db: Database, question_id: str, model_id: str = DEFAULT_MODEL_ID
) -> QuestionAnalysis | None:
    with db.session() as session:
        return session.exec(
            select(QuestionAnalysis)
            .where(QuestionAnalysis.question_id == question_id)
            .where(QuestionAnalysis.source == AnalysisSource.AI.value)
            .where(QuestionAnalysis.model_id == model_id)
            .order_by(col(QuestionAnalysis.id).desc())
            .limit(1)
        ).first()


def record_override(
    db: Database,
    question_id: str,
    base_analysis_id: int | None = None,
    tags: list[str] | None = None,
    difficulty_score: float | None = None,
    difficulty_band: str | None = None,
    notes: str | None = None,
) -> QuestionOverride:
    """Persist a user override for a question.

    A score without a band gets the band derived from the score.

    Raises:
        StoreError: If ``base_analysis_id`` does not exist.
    """
    now = time.time()
    score = clamp01(difficulty_score) if difficulty_score is not None else None
    band = difficulty_band
    if band is None and score is not None:
        band = map_score_to_band(score).value

    with db.session() as session:
        if base_analysis_id is not None and session.get(QuestionAnalysis, base_analysis_id) is None:
            raise StoreError.not_found("analysis", str(base_analysis_id))
        override = QuestionOverride(
            question_id=question_id,
            base_analysis_id=base_analysis_id,
            tags_json=json.dumps(list(tags)) if tags is not None else None,
            difficulty_score=score,
            difficulty_band=band,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        session.add(override)
        session.commit()
        session.refresh(override)

    logger.info("override_recorded", question_id=question_id, override_id=override.id)
    return override


def effective_result(
    db: Database, question_id: str, model_id: str = DEFAULT_MODEL_ID
) -> EffectiveResult | None:
    """Override values where present, falling back to the latest ai analysis."""
    override = latest_override(db, question_id)
    analysis = latest_ai_analysis(db, question_id, model_id)
    if override is not None and override.base_analysis_id is not None:
        with db.session() as session:
            analysis = session.get(QuestionAnalysis, override.base_analysis_id) or analysis

    if override is None:
        if analysis is None:
            return None
        return EffectiveResult(
            question_id=question_id,
            source=AnalysisSource.AI,
            tags=[t.tag_name for t in analysis.get_tags()],
            difficulty_score=analysis.difficulty_score,
            difficulty_band=analysis.difficulty_band,
            analysis_id=analysis.id,
        )

    override_tags = override.get_tags()
    if override_tags is not None:
        tags = override_tags
    else:
        tags = [t.tag_name for t in analysis.get_tags()] if analysis else []

    if override.difficulty_band is not None or override.difficulty_score is not None:
        score = override.difficulty_score
        band = override.difficulty_band
    else:
        score = analysis.difficulty_score if analysis else None
        band = analysis.difficulty_band if analysis else None

    return EffectiveResult(
        question_id=question_id,
        source=AnalysisSource.USER,
        tags=tags,
        difficulty_score=score,
        difficulty_band=band,
        analysis_id=analysis.id if analysis else None,
        override_id=override.id,
    )
