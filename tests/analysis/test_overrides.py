"""Tests for the user override layer."""

from __future__ import annotations

import pytest

from semtag.analysis.engine import SemanticEngine
from semtag.analysis.overrides import effective_result, has_override, latest_override, record_override
from semtag.core.errors import ErrorCode, StoreError
from semtag.store.database import Database
from semtag.store.models import AnalysisSource, QuestionAnalysis


@pytest.fixture
def analyzed(engine: SemanticEngine, make_question) -> QuestionAnalysis:
    analysis = engine.analyze(make_question("q1", "Prove that the derivative of sin(x) is cos(x)"))
    assert analysis is not None
    return analysis


class TestRecordOverride:
    def test_given_score_without_band_when_recorded_then_band_derived(self, temp_db: Database) -> None:
        # When
        override = record_override(temp_db, "q1", difficulty_score=0.75)

        # Then
        assert override.id is not None
        assert override.difficulty_band == "very_hard"
        assert has_override(temp_db, "q1")
        assert not has_override(temp_db, "q2")

    def test_given_out_of_range_score_when_recorded_then_clamped(self, temp_db: Database) -> None:
        override = record_override(temp_db, "q1", difficulty_score=1.7)
        assert override.difficulty_score == 1.0
        assert override.difficulty_band == "olympiad"

    def test_given_missing_base_analysis_when_recorded_then_store_error(self, temp_db: Database) -> None:
        with pytest.raises(StoreError) as exc_info:
            record_override(temp_db, "q1", base_analysis_id=404)
        assert exc_info.value.code == ErrorCode.STORE_NOT_FOUND
        assert not has_override(temp_db, "q1")

    def test_given_two_overrides_when_latest_read_then_newest_wins(self, temp_db: Database) -> None:
        record_override(temp_db, "q1", notes="first")
        record_override(temp_db, "q1", notes="second")

        latest = latest_override(temp_db, "q1")

        assert latest is not None
        assert latest.notes == "second"


class TestEffectiveResult:
    def test_given_no_data_when_resolved_then_none(self, temp_db: Database) -> None:
        assert effective_result(temp_db, "q1") is None

    def test_given_ai_only_when_resolved_then_ai_values(self, temp_db: Database, analyzed: QuestionAnalysis) -> None:
        # When
        result = effective_result(temp_db, "q1")

        # Then
        assert result is not None
        assert result.source == AnalysisSource.AI
        assert result.tags == [t.tag_name for t in analyzed.get_tags()]
        assert result.difficulty_band == analyzed.difficulty_band
        assert result.override_id is None

    def test_given_tag_override_when_resolved_then_override_tags_and_ai_difficulty(
        self, temp_db: Database, analyzed: QuestionAnalysis
    ) -> None:
        # Given
        record_override(temp_db, "q1", base_analysis_id=analyzed.id, tags=["Calculus"])

        # When
        result = effective_result(temp_db, "q1")

        # Then
        assert result is not None
        assert result.source == AnalysisSource.USER
        assert result.tags == ["Calculus"]
        assert result.difficulty_band == analyzed.difficulty_band
        assert result.analysis_id == analyzed.id

    def test_given_difficulty_override_when_reanalyzed_then_override_still_wins(
        self, temp_db: Database, engine: SemanticEngine, make_question, analyzed: QuestionAnalysis
    ) -> None:
        # Given
        record_override(temp_db, "q1", difficulty_band="easy")

        # When
        engine.analyze(make_question("q1", "Prove that the integral of cos(x) is sin(x)"))
        result = effective_result(temp_db, "q1")

        # Then
        assert result is not None
        assert result.difficulty_band == "easy"
        assert result.difficulty_score is None
        assert result.tags
