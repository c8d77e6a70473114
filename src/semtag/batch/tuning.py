"""Tuning parameter persistence and the tuning optimizer.

The optimizer reads previously persisted analyses only; it never rewrites
them. Its output changes future activation runs through the tuning_state
singleton row.
"""

from __future__ import annotations

import time

import structlog
from pydantic import BaseModel
from sqlmodel import Session, select

from semtag.config.constants import (
    ANALYSIS_VERSION,
    DEFAULT_MODEL_ID,
    TUNING_MIN_SAMPLES,
    TUNING_THRESHOLD_MAX,
    TUNING_THRESHOLD_MIN,
    TUNING_THRESHOLD_STEP,
)
from semtag.config.models import SemanticTuningParams
from semtag.core.text import clamp, clamp01, round6
from semtag.store.database import Database
from semtag.store.models import AnalysisSource, QuestionAnalysis, TuningState

logger = structlog.get_logger(__name__)

_TIE_EPSILON = 1e-9
_RATIO_FLOOR = 1e-6
TUNING_ROW_ID = 1


class TuningDerived(BaseModel):
    avg_tags_at_threshold: float = 0.0
    chosen_threshold: float
    avg_up_ratio: float = 0.0
    avg_down_ratio: float = 0.0


class TuningReport(BaseModel):
    """What a tuning pass saw and decided."""

    sample_count: int
    tuned: SemanticTuningParams
    derived: TuningDerived


def _params_from_row(row: TuningState) -> SemanticTuningParams:
    # Validators clamp anything a stale row might hold
    return SemanticTuningParams(
        enabled=row.enabled,
        tag_threshold=row.tag_threshold,
        sibling_lambda=row.sibling_lambda,
        up_beta=row.up_beta,
        down_gamma=row.down_gamma,
        target_avg_tags=row.target_avg_tags,
    )


def read_tuning(session: Session, defaults: SemanticTuningParams | None = None) -> SemanticTuningParams:
    """Effective params: stored row, else ``defaults``. Disabled falls back to built-ins."""
    row = session.get(TuningState, TUNING_ROW_ID)
    params = _params_from_row(row) if row is not None else (defaults or SemanticTuningParams())
    if not params.enabled:
        return SemanticTuningParams(enabled=False)
    return params


def load_tuning(db: Database, defaults: SemanticTuningParams | None = None) -> SemanticTuningParams:
    with db.session() as session:
        return read_tuning(session, defaults)


def write_tuning(session: Session, params: SemanticTuningParams, now: float | None = None) -> TuningState:
    ts = now if now is not None else time.time()
    row = session.get(TuningState, TUNING_ROW_ID)
    if row is None:
        row = TuningState(
            id=TUNING_ROW_ID,
            tag_threshold=params.tag_threshold,
            sibling_lambda=params.sibling_lambda,
            up_beta=params.up_beta,
            down_gamma=params.down_gamma,
            target_avg_tags=params.target_avg_tags,
            updated_at=ts,
        )
    row.enabled = params.enabled
    row.tag_threshold = params.tag_threshold
    row.sibling_lambda = params.sibling_lambda
    row.up_beta = params.up_beta
    row.down_gamma = params.down_gamma
    row.target_avg_tags = params.target_avg_tags
    row.updated_at = ts
    session.add(row)
    return row


def save_tuning(db: Database, params: SemanticTuningParams) -> None:
    """Explicit user configuration of the tuning parameters."""
    with db.immediate_transaction() as session:
        write_tuning(session, params)
    logger.info("tuning_saved", **params.model_dump())


def threshold_candidates() -> list[float]:
    lo = round(TUNING_THRESHOLD_MIN / TUNING_THRESHOLD_STEP)
    hi = round(TUNING_THRESHOLD_MAX / TUNING_THRESHOLD_STEP)
    return [round6(i * TUNING_THRESHOLD_STEP) for i in range(lo, hi + 1)]


def tune(
    db: Database,
    model_id: str = DEFAULT_MODEL_ID,
    defaults: SemanticTuningParams | None = None,
) -> TuningReport:
    """Re-derive tuning params from existing ai analyses.

    Picks the threshold whose average tag count lands closest to
    target_avg_tags (lower threshold wins ties), and maps the observed
    up/down propagation ratios onto upBeta, downGamma and siblingLambda.
    With fewer than TUNING_MIN_SAMPLES usable analyses the current params
    are re-persisted unchanged.
    """
    with db.immediate_transaction() as session:
        analyses = session.exec(
            select(QuestionAnalysis)
            .where(QuestionAnalysis.source == AnalysisSource.AI.value)
            .where(QuestionAnalysis.model_id == model_id)
            .where(QuestionAnalysis.analysis_version == ANALYSIS_VERSION)
        ).all()
        node_lists = [a.get_rationale().activated_nodes for a in analyses]
        usable = [nodes for nodes in node_lists if nodes]
        sample_count = len(usable)
        base = read_tuning(session, defaults)

        if sample_count < TUNING_MIN_SAMPLES:
            write_tuning(session, base)
            logger.info("tuning_skipped", sample_count=sample_count, min_samples=TUNING_MIN_SAMPLES)
            return TuningReport(
                sample_count=sample_count,
                tuned=base,
                derived=TuningDerived(chosen_threshold=base.tag_threshold),
            )

        best_threshold = base.tag_threshold
        best_diff = float("inf")
        best_avg = 0.0
        for th in threshold_candidates():
            total = sum(sum(1 for n in nodes if n.final_score >= th) for nodes in usable)
            avg = total / sample_count
            diff = abs(avg - base.target_avg_tags)
            if diff < best_diff - _TIE_EPSILON or (abs(diff - best_diff) < _TIE_EPSILON and th < best_threshold):
                best_diff = diff
                best_threshold = th
                best_avg = avg

        up_sum = down_sum = 0.0
        ratio_n = 0
        for nodes in usable:
            for n in nodes:
                if n.final_score <= 0:
                    continue
                denom = max(n.final_score, _RATIO_FLOOR)
                up_sum += clamp01(n.propagated_up / denom)
                down_sum += clamp01(n.propagated_down / denom)
                ratio_n += 1
        avg_up = up_sum / ratio_n if ratio_n else 0.0
        avg_down = down_sum / ratio_n if ratio_n else 0.0

        tuned = SemanticTuningParams(
            enabled=True,
            tag_threshold=round6(best_threshold),
            sibling_lambda=round6(clamp(0.25 + 0.25 * (1 - avg_up), 0.15, 0.55)),
            up_beta=round6(clamp(0.35 + 0.7 * avg_up, 0.2, 0.75)),
            down_gamma=round6(clamp(0.08 + 0.35 * avg_down, 0.05, 0.35)),
            target_avg_tags=base.target_avg_tags,
        )
        write_tuning(session, tuned)

    report = TuningReport(
        sample_count=sample_count,
        tuned=tuned,
        derived=TuningDerived(
            avg_tags_at_threshold=round6(best_avg),
            chosen_threshold=tuned.tag_threshold,
            avg_up_ratio=round6(avg_up),
            avg_down_ratio=round6(avg_down),
        ),
    )
    logger.info(
        "tuning_applied",
        sample_count=sample_count,
        threshold=tuned.tag_threshold,
        up_beta=tuned.up_beta,
        down_gamma=tuned.down_gamma,
        sibling_lambda=tuned.sibling_lambda,
    )
    return report
