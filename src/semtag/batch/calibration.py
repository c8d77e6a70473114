"""Corpus calibrator: rank-based remap of difficulty onto [0, 1]."""

from __future__ import annotations

from dataclasses import dataclass

import structlog
from sqlmodel import select

from semtag.analysis.difficulty import map_score_to_band
from semtag.config.constants import ANALYSIS_VERSION, CALIBRATION_MIN_ANALYSES, DEFAULT_MODEL_ID
from semtag.core.text import clamp01, round6
from semtag.store.database import Database
from semtag.store.models import AnalysisSource, QuestionAnalysis

logger = structlog.get_logger(__name__)


@dataclass
class CalibrationResult:
    analyses: int = 0
    updated: int = 0
    skipped: bool = False


def calibrate_corpus(db: Database, model_id: str = DEFAULT_MODEL_ID) -> CalibrationResult:
    """Replace every ai difficulty score with its percentile rank.

    Sorted by (score, question id), the i-th of n analyses gets i / (n - 1).
    Rows are written only when score or band changes. Runs as one
    BEGIN IMMEDIATE transaction so no per-question write interleaves.
    No-op below CALIBRATION_MIN_ANALYSES analyses.
    """
    with db.immediate_transaction() as session:
        analyses = session.exec(
            select(QuestionAnalysis)
            .where(QuestionAnalysis.source == AnalysisSource.AI.value)
            .where(QuestionAnalysis.model_id == model_id)
            .where(QuestionAnalysis.analysis_version == ANALYSIS_VERSION)
        ).all()
        n = len(analyses)
        if n < CALIBRATION_MIN_ANALYSES:
            logger.debug("calibration_skipped", analyses=n, min_analyses=CALIBRATION_MIN_ANALYSES)
            return CalibrationResult(analyses=n, skipped=True)

        ordered = sorted(analyses, key=lambda a: (a.difficulty_score, a.question_id, a.id or 0))
        updated = 0
        for i, analysis in enumerate(ordered):
            percentile = 0.5 if n == 1 else i / (n - 1)
            calibrated = round6(clamp01(percentile))
            band = map_score_to_band(calibrated).value
            if analysis.difficulty_score == calibrated and analysis.difficulty_band == band:
                continue

            analysis.difficulty_score = calibrated
            analysis.difficulty_band = band
            rationale = analysis.get_rationale()
            if rationale.difficulty_components is not None:
                components = rationale.difficulty_components.model_copy(update={"calibrated_score": calibrated})
                analysis.set_rationale(rationale.model_copy(update={"difficulty_components": components}))
            session.add(analysis)
            updated += 1

    logger.info("corpus_calibrated", analyses=n, updated=updated, model_id=model_id)
    return CalibrationResult(analyses=n, updated=updated)
