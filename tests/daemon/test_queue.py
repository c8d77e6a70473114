"""Tests for the background analysis queue."""

from __future__ import annotations

import asyncio
from unittest.mock import patch

import pytest
from sqlmodel import select

from semtag.analysis.engine import SemanticEngine
from semtag.config.models import AutoApplyConfig, QueueConfig, SemTagConfig
from semtag.daemon.queue import QueueState, SemanticQueue, purge_ai_state
from semtag.store.database import Database
from semtag.store.models import EmbeddingRecord, Question, QuestionAnalysis

TEXTS = {
    "q1": "What is 12% of 250?",
    "q2": "Prove that the derivative of sin(x) is cos(x)",
    "q3": "Solve 2x + 3 = 11 for x.",
    "q4": "Explain why the sky appears blue.",
}


def _analyzed_ids(db: Database) -> list[str]:
    with db.session() as session:
        return sorted(a.question_id for a in session.exec(select(QuestionAnalysis)).all())


@pytest.fixture
def seeded(make_question) -> dict[str, Question]:
    return {qid: make_question(qid, text) for qid, text in TEXTS.items()}


class TestEnqueue:
    def test_given_duplicate_ids_when_enqueued_then_deduplicated_in_order(self, engine: SemanticEngine) -> None:
        # Given
        queue = SemanticQueue(engine)

        # When
        queue.enqueue(["b", "a"])
        count = queue.enqueue(["a", "c", "b"])

        # Then
        assert count == 3
        assert queue.pending_count == 3
        assert queue.status.pending == 3
        assert queue.status.state == QueueState.IDLE


class TestSettings:
    def test_given_explicit_zero_interval_when_resolved_then_not_replaced_by_config(
        self, engine: SemanticEngine
    ) -> None:
        # Given
        queue = SemanticQueue(engine, interval_sec=0.0, batch_size=3)

        # When
        interval, size = queue.resolve_settings()

        # Then
        assert interval == 0.0
        assert size == 3

    def test_given_call_arguments_when_resolved_then_they_win(self, engine: SemanticEngine) -> None:
        queue = SemanticQueue(engine, interval_sec=5.0, batch_size=3)
        assert queue.resolve_settings(0.0, 1) == (0.0, 1)

    def test_given_nothing_set_when_resolved_then_config_values(self, temp_db: Database) -> None:
        config = SemTagConfig(queue=QueueConfig(interval_sec=2.5, batch_size=4))
        queue = SemanticQueue(SemanticEngine(temp_db, config))
        assert queue.resolve_settings() == (2.5, 4)

    def test_given_zero_batch_size_when_resolved_then_at_least_one(self, engine: SemanticEngine) -> None:
        queue = SemanticQueue(engine, batch_size=0)
        assert queue.resolve_settings()[1] == 1


class TestProcessing:
    @pytest.mark.asyncio
    async def test_given_pending_ids_when_batch_processed_then_batch_size_taken(
        self, engine: SemanticEngine, seeded: dict[str, Question]
    ) -> None:
        # Given
        queue = SemanticQueue(engine, batch_size=2)
        queue.enqueue(sorted(seeded))

        # When
        stats = await queue.process_next()

        # Then
        assert stats is not None
        assert stats.analyzed == 2
        assert queue.pending_count == 2
        assert _analyzed_ids(engine.db) == ["q1", "q2"]
        await queue.stop()

    @pytest.mark.asyncio
    async def test_given_failing_question_when_drained_then_others_still_analyzed(
        self, engine: SemanticEngine, seeded: dict[str, Question]
    ) -> None:
        # Given
        queue = SemanticQueue(engine, batch_size=4)
        queue.enqueue(sorted(seeded))
        real_analyze = engine.analyze_id

        def flaky(question_id: str) -> QuestionAnalysis | None:
            if question_id == "q2":
                raise RuntimeError("analysis exploded")
            return real_analyze(question_id)

        # When
        with patch.object(engine, "analyze_id", side_effect=flaky):
            stats = await queue.drain()

        # Then
        assert stats.failed == 1
        assert stats.analyzed == 3
        assert _analyzed_ids(engine.db) == ["q1", "q3", "q4"]
        assert queue.status.failed == 1
        assert queue.status.last_error == "analysis exploded"
        await queue.stop()

    @pytest.mark.asyncio
    async def test_given_missing_and_blank_ids_when_processed_then_skipped(
        self, engine: SemanticEngine, make_question
    ) -> None:
        make_question("blank", "   ")
        queue = SemanticQueue(engine)
        queue.enqueue(["ghost", "blank"])

        stats = await queue.drain()

        assert stats.skipped == 2
        assert stats.analyzed == 0
        await queue.stop()

    @pytest.mark.asyncio
    async def test_given_batch_in_flight_when_process_next_then_returns_none(self, engine: SemanticEngine) -> None:
        queue = SemanticQueue(engine)
        queue._running = True

        assert await queue.process_next() is None
        queue._running = False
        await queue.stop()


class TestCalibrationTrigger:
    @pytest.mark.asyncio
    async def test_given_queue_drained_when_processed_then_calibration_runs_once(
        self, engine: SemanticEngine, seeded: dict[str, Question]
    ) -> None:
        # Given
        queue = SemanticQueue(engine, batch_size=2)
        queue.enqueue(sorted(seeded))

        # When
        with patch("semtag.daemon.queue.calibrate_corpus") as calibrate:
            await queue.drain()
            queue.enqueue(["q1"])
            await queue.drain()

        # Then: first drain calibrates, second falls inside the debounce window
        assert calibrate.call_count == 1
        assert queue.status.last_calibrated_at is not None
        await queue.stop()

    @pytest.mark.asyncio
    async def test_given_zero_debounce_when_drained_twice_then_calibrates_twice(
        self, temp_db: Database, seeded: dict[str, Question]
    ) -> None:
        engine = SemanticEngine(temp_db, SemTagConfig(queue=QueueConfig(calibration_debounce_sec=-1.0)))
        queue = SemanticQueue(engine)

        with patch("semtag.daemon.queue.calibrate_corpus") as calibrate:
            queue.enqueue(["q1"])
            await queue.drain()
            queue.enqueue(["q2"])
            await queue.drain()

        assert calibrate.call_count == 2
        await queue.stop()

    @pytest.mark.asyncio
    async def test_given_pending_work_when_batch_done_then_no_calibration(
        self, engine: SemanticEngine, seeded: dict[str, Question]
    ) -> None:
        queue = SemanticQueue(engine, batch_size=1)
        queue.enqueue(sorted(seeded))

        with patch("semtag.daemon.queue.calibrate_corpus") as calibrate:
            await queue.process_next()

        calibrate.assert_not_called()
        await queue.stop()


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_given_started_queue_when_running_then_processes_periodically(
        self, engine: SemanticEngine, seeded: dict[str, Question]
    ) -> None:
        # Given
        queue = SemanticQueue(engine)
        queue.enqueue(sorted(seeded))

        # When
        queue.start(interval_sec=0.01, batch_size=2)
        for _ in range(500):
            if queue.pending_count == 0 and len(_analyzed_ids(engine.db)) == 4:
                break
            await asyncio.sleep(0.01)

        # Then
        assert _analyzed_ids(engine.db) == sorted(seeded)
        await queue.stop()
        assert queue.status.state == QueueState.STOPPED

    @pytest.mark.asyncio
    async def test_given_pending_ids_when_stopped_then_pending_cleared(self, engine: SemanticEngine) -> None:
        # Given
        queue = SemanticQueue(engine)
        queue.enqueue(["a", "b"])
        queue.start(interval_sec=60.0)

        # When
        await queue.stop()

        # Then
        assert queue.pending_count == 0
        assert queue.status.state == QueueState.STOPPED

    @pytest.mark.asyncio
    async def test_given_stopped_queue_when_stopped_again_then_noop(self, engine: SemanticEngine) -> None:
        queue = SemanticQueue(engine)
        queue.start(interval_sec=60.0)
        await queue.stop()

        await queue.stop()

        assert queue.status.state == QueueState.STOPPED


class TestRerun:
    @pytest.mark.asyncio
    async def test_given_analyzed_corpus_when_rerun_with_purge_then_ai_rows_rebuilt(
        self, engine: SemanticEngine, seeded: dict[str, Question]
    ) -> None:
        # Given
        queue = SemanticQueue(engine, batch_size=4)
        queue.enqueue(sorted(seeded))
        await queue.drain()

        # When
        count = queue.rerun_all(purge_existing_ai=True)

        # Then
        assert count == 4
        assert _analyzed_ids(engine.db) == []
        await queue.drain()
        assert _analyzed_ids(engine.db) == sorted(seeded)
        await queue.stop()

    def test_given_cached_state_when_purged_then_analyses_and_embeddings_removed(
        self, engine: SemanticEngine, seeded: dict[str, Question]
    ) -> None:
        # Given
        engine.analyze_id("q1")

        # When
        analyses, embeddings = purge_ai_state(engine.db)

        # Then
        assert analyses == 1
        assert embeddings > 0
        with engine.db.session() as session:
            assert session.exec(select(EmbeddingRecord)).first() is None


class TestAutoApplyFromQueue:
    @pytest.mark.asyncio
    async def test_given_auto_apply_enabled_when_drained_then_question_updated(
        self, temp_db: Database, seeded: dict[str, Question]
    ) -> None:
        # Given
        config = SemTagConfig(auto_apply=AutoApplyConfig(enabled=True, min_score=0.0))
        queue = SemanticQueue(SemanticEngine(temp_db, config))
        queue.enqueue(["q1"])

        # When
        stats = await queue.drain()

        # Then
        assert stats.applied == 1
        with temp_db.session() as session:
            question = session.get(Question, "q1")
        assert question is not None
        assert question.get_tags()
        assert question.difficulty_band is not None
        await queue.stop()
