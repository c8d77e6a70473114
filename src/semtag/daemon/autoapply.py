"""Write analysis results back onto question records.

The override check happens before any read-modify-write of the question:
a question with a user override is never touched.
"""

from __future__ import annotations

import time
from enum import Enum

import structlog

from semtag.analysis.overrides import has_override
from semtag.config.models import AutoApplyConfig
from semtag.store.database import Database
from semtag.store.models import AnalysisSource, DifficultyBand, Question, QuestionAnalysis

logger = structlog.get_logger(__name__)

_BAND_LEVEL = {
    DifficultyBand.VERY_EASY: 2,
    DifficultyBand.EASY: 4,
    DifficultyBand.MODERATE: 6,
    DifficultyBand.HARD: 8,
    DifficultyBand.VERY_HARD: 10,
    DifficultyBand.OLYMPIAD: 12,
}
_DEFAULT_LEVEL = 6


class ApplyOutcome(str, Enum):
    APPLIED = "applied"
    DISABLED = "disabled"
    OVERRIDDEN = "overridden"
    NOT_AI = "not_ai"
    MISSING = "missing"


def band_to_level(band: str) -> int:
    """Discrete 2..12 level kept for older consumers."""
    try:
        return _BAND_LEVEL[DifficultyBand(band)]
    except ValueError:
        return _DEFAULT_LEVEL


def band_to_legacy_difficulty(band: str) -> str:
    if band in (DifficultyBand.VERY_EASY.value, DifficultyBand.EASY.value):
        return "easy"
    if band == DifficultyBand.MODERATE.value:
        return "medium"
    return "hard"


def apply_analysis_to_question(
    db: Database,
    analysis_id: int,
    config: AutoApplyConfig,
) -> ApplyOutcome:
    """Merge suggested tags and difficulty from an ai analysis into its question."""
    if not config.enabled:
        return ApplyOutcome.DISABLED

    with db.session() as session:
        analysis = session.get(QuestionAnalysis, analysis_id)
    if analysis is None:
        return ApplyOutcome.MISSING
    if analysis.source != AnalysisSource.AI.value:
        return ApplyOutcome.NOT_AI

    question_id = analysis.question_id
    if has_override(db, question_id):
        logger.debug("auto_apply_skipped_override", question_id=question_id)
        return ApplyOutcome.OVERRIDDEN

    with db.session() as session:
        question = session.get(Question, question_id)
        if question is None:
            return ApplyOutcome.MISSING

        suggested = [t.tag_name for t in analysis.get_tags() if t.score >= config.min_score][: config.max_tags]
        existing = question.get_tags()
        if config.apply_tags:
            merged = list(dict.fromkeys([*existing, *suggested])) if config.preserve_existing_tags else suggested
            question.set_tags(merged)

        write_difficulty = config.apply_difficulty and not (
            config.preserve_existing_difficulty and question.has_difficulty
        )
        if write_difficulty:
            question.difficulty_band = analysis.difficulty_band
            question.difficulty_level = band_to_level(analysis.difficulty_band)
            question.difficulty = band_to_legacy_difficulty(analysis.difficulty_band)
        question.updated_at = time.time()

        session.add(question)
        session.commit()

    logger.info(
        "auto_apply_done",
        question_id=question_id,
        analysis_id=analysis_id,
        tags_written=config.apply_tags,
        difficulty_written=write_difficulty,
    )
    return ApplyOutcome.APPLIED
