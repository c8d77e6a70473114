"""Tests for auto-apply write-back."""

from __future__ import annotations

import pytest

from semtag.analysis.engine import SemanticEngine
from semtag.analysis.overrides import record_override
from semtag.config.models import AutoApplyConfig
from semtag.daemon.autoapply import (
    ApplyOutcome,
    apply_analysis_to_question,
    band_to_legacy_difficulty,
    band_to_level,
)
from semtag.store.database import Database
from semtag.store.models import Question, QuestionAnalysis

ENABLED = AutoApplyConfig(enabled=True, min_score=0.0)


def _question(db: Database, question_id: str) -> Question:
    with db.session() as session:
        question = session.get(Question, question_id)
    assert question is not None
    return question


@pytest.fixture
def analyzed(engine: SemanticEngine, make_question) -> QuestionAnalysis:
    analysis = engine.analyze(make_question("q1", "What is 12% of 250?", tags=["manual"]))
    assert analysis is not None and analysis.id is not None
    return analysis


class TestBandMapping:
    @pytest.mark.parametrize(
        ("band", "level", "legacy"),
        [
            ("very_easy", 2, "easy"),
            ("easy", 4, "easy"),
            ("moderate", 6, "medium"),
            ("hard", 8, "hard"),
            ("very_hard", 10, "hard"),
            ("olympiad", 12, "hard"),
        ],
    )
    def test_given_band_when_mapped_then_level_and_legacy(self, band: str, level: int, legacy: str) -> None:
        assert band_to_level(band) == level
        assert band_to_legacy_difficulty(band) == legacy

    def test_given_unknown_band_when_mapped_then_middle_level(self) -> None:
        assert band_to_level("galactic") == 6


class TestApplyAnalysis:
    def test_given_disabled_config_when_applied_then_question_untouched(
        self, temp_db: Database, analyzed: QuestionAnalysis
    ) -> None:
        # When
        outcome = apply_analysis_to_question(temp_db, analyzed.id, AutoApplyConfig(enabled=False))

        # Then
        assert outcome == ApplyOutcome.DISABLED
        assert _question(temp_db, "q1").get_tags() == ["manual"]

    def test_given_enabled_config_when_applied_then_tags_merged_after_existing(
        self, temp_db: Database, analyzed: QuestionAnalysis
    ) -> None:
        # When
        outcome = apply_analysis_to_question(temp_db, analyzed.id, ENABLED)

        # Then
        assert outcome == ApplyOutcome.APPLIED
        question = _question(temp_db, "q1")
        suggested = [t.tag_name for t in analyzed.get_tags()][: ENABLED.max_tags]
        assert question.get_tags() == list(dict.fromkeys(["manual", *suggested]))
        assert question.difficulty_band == analyzed.difficulty_band
        assert question.difficulty_level == band_to_level(analyzed.difficulty_band)
        assert question.difficulty == band_to_legacy_difficulty(analyzed.difficulty_band)

    def test_given_replace_mode_when_applied_then_existing_tags_dropped(
        self, temp_db: Database, analyzed: QuestionAnalysis
    ) -> None:
        config = AutoApplyConfig(enabled=True, min_score=0.0, preserve_existing_tags=False)

        apply_analysis_to_question(temp_db, analyzed.id, config)

        assert "manual" not in _question(temp_db, "q1").get_tags()

    def test_given_existing_difficulty_when_preserved_then_not_overwritten(
        self, temp_db: Database, engine: SemanticEngine, make_question
    ) -> None:
        # Given
        analysis = engine.analyze(make_question("q2", "What is 12% of 250?", difficulty="hard"))
        assert analysis is not None and analysis.id is not None

        # When
        apply_analysis_to_question(temp_db, analysis.id, ENABLED)

        # Then
        question = _question(temp_db, "q2")
        assert question.difficulty == "hard"
        assert question.difficulty_band is None

    def test_given_high_min_score_when_applied_then_no_tags_added(
        self, temp_db: Database, analyzed: QuestionAnalysis
    ) -> None:
        config = AutoApplyConfig(enabled=True, min_score=1.01)

        apply_analysis_to_question(temp_db, analyzed.id, config)

        assert _question(temp_db, "q1").get_tags() == ["manual"]

    def test_given_user_override_when_applied_then_question_never_touched(
        self, temp_db: Database, analyzed: QuestionAnalysis
    ) -> None:
        # Given
        record_override(temp_db, "q1", base_analysis_id=analyzed.id, tags=["pinned"])
        before = _question(temp_db, "q1")

        # When
        outcome = apply_analysis_to_question(temp_db, analyzed.id, ENABLED)

        # Then
        assert outcome == ApplyOutcome.OVERRIDDEN
        after = _question(temp_db, "q1")
        assert after.tags_json == before.tags_json
        assert after.difficulty_band == before.difficulty_band
        assert after.updated_at == before.updated_at

    def test_given_unknown_analysis_when_applied_then_missing(self, temp_db: Database) -> None:
        assert apply_analysis_to_question(temp_db, 999, ENABLED) == ApplyOutcome.MISSING
