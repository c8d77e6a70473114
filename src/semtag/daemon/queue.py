"""Background analysis queue using a single-worker thread pool."""

from __future__ import annotations

import asyncio
import contextlib
import threading
import time
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum

import structlog
from sqlalchemy import delete
from sqlmodel import select

from semtag.analysis.engine import SemanticEngine
from semtag.batch.calibration import calibrate_corpus
from semtag.config.models import QueueConfig
from semtag.core.logging import clear_run_id, set_run_id
from semtag.daemon.autoapply import ApplyOutcome, apply_analysis_to_question
from semtag.store.database import Database
from semtag.store.models import AnalysisSource, EmbeddingRecord, Question, QuestionAnalysis

logger = structlog.get_logger(__name__)


class QueueState(Enum):
    """Background queue state."""

    IDLE = "idle"
    ANALYZING = "analyzing"
    STOPPING = "stopping"
    STOPPED = "stopped"


@dataclass
class QueueStatus:
    """Current queue status."""

    state: QueueState
    pending: int
    processed: int = 0
    failed: int = 0
    last_error: str | None = None
    last_calibrated_at: float | None = None


@dataclass
class BatchStats:
    analyzed: int = 0
    skipped: int = 0
    failed: int = 0
    applied: int = 0


def purge_ai_state(db: Database) -> tuple[int, int]:
    """Delete every ai analysis and every cached embedding.

    User overrides and question records are untouched.

    Returns:
        (analyses deleted, embeddings deleted)
    """
    with db.immediate_transaction() as session:
        analyses = session.execute(
            delete(QuestionAnalysis).where(QuestionAnalysis.source == AnalysisSource.AI.value)  # type: ignore[arg-type]
        ).rowcount
        embeddings = session.execute(delete(EmbeddingRecord)).rowcount
    logger.info("ai_state_purged", analyses=analyses, embeddings=embeddings)
    return int(analyses or 0), int(embeddings or 0)


@dataclass
class SemanticQueue:
    """
    Non-blocking analysis queue.

    Design:
    - A periodic task on the running loop takes at most batch_size ids per tick
    - Analysis runs in a single-worker ThreadPoolExecutor (one batch in flight)
    - Per-question failures are logged and the batch continues
    - Calibration runs after the queue drains, at most once per debounce window
    """

    engine: SemanticEngine
    interval_sec: float | None = None
    batch_size: int | None = None

    _state: QueueState = field(default=QueueState.IDLE, init=False)
    _executor: ThreadPoolExecutor | None = field(default=None, init=False)
    _pending: list[str] = field(default_factory=list, init=False)
    _pending_lock: threading.Lock = field(default_factory=threading.Lock, init=False)
    _task: asyncio.Task[None] | None = field(default=None, init=False)
    _running: bool = field(default=False, init=False)
    _last_calibrated_at: float | None = field(default=None, init=False)
    _processed: int = field(default=0, init=False)
    _failed: int = field(default=0, init=False)
    _last_error: str | None = field(default=None, init=False)

    @property
    def db(self) -> Database:
        return self.engine.db

    @property
    def _queue_config(self) -> QueueConfig:
        return self.engine.config.queue

    def enqueue(self, question_ids: Iterable[str]) -> int:
        """Add ids to the pending list, keeping first-seen order. Returns pending size."""
        with self._pending_lock:
            merged = dict.fromkeys(self._pending)
            for qid in question_ids:
                merged.setdefault(qid, None)
            self._pending = list(merged)
            count = len(self._pending)
        logger.debug("questions_enqueued", total_pending=count)
        return count

    def resolve_settings(
        self, interval_sec: float | None = None, batch_size: int | None = None
    ) -> tuple[float, int]:
        """Call arguments, then constructor values, then config. Explicit zeros count."""
        interval = next(v for v in (interval_sec, self.interval_sec, self._queue_config.interval_sec) if v is not None)
        size = next(v for v in (batch_size, self.batch_size, self._queue_config.batch_size) if v is not None)
        return max(0.0, interval), max(1, size)

    def _ensure_executor(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="semtag-queue")
        return self._executor

    def start(self, interval_sec: float | None = None, batch_size: int | None = None) -> None:
        """Start periodic processing on the running event loop."""
        if self._task is not None and not self._task.done():
            return
        interval, size = self.resolve_settings(interval_sec, batch_size)
        self._ensure_executor()
        self._state = QueueState.IDLE
        self._task = asyncio.get_running_loop().create_task(self._run(interval, size))
        logger.info("semantic_queue_started", interval_sec=interval, batch_size=size)

    async def _run(self, interval_sec: float, batch_size: int) -> None:
        while self._state not in (QueueState.STOPPING, QueueState.STOPPED):
            await self.process_next(batch_size)
            await asyncio.sleep(interval_sec)

    async def stop(self) -> None:
        """Cancel the periodic task, drop pending ids and shut the pool down."""
        self._state = QueueState.STOPPING

        if self._task is not None and not self._task.done():
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None

        with self._pending_lock:
            self._pending.clear()

        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

        self._state = QueueState.STOPPED
        logger.info("semantic_queue_stopped")

    async def process_next(self, batch_size: int | None = None) -> BatchStats | None:
        """Analyze one batch. Returns None when a batch is already in flight."""
        if self._running:
            return None
        _, size = self.resolve_settings(batch_size=batch_size)

        self._running = True
        stats = BatchStats()
        try:
            with self._pending_lock:
                batch = self._pending[:size]
                self._pending = self._pending[size:]
            if batch:
                self._state = QueueState.ANALYZING
                loop = asyncio.get_running_loop()
                stats = await loop.run_in_executor(self._ensure_executor(), self._process_batch_sync, batch)
        finally:
            self._running = False
            if self._state == QueueState.ANALYZING:
                self._state = QueueState.IDLE

        if not self.pending_count:
            await self._maybe_calibrate()
        return stats

    def _process_batch_sync(self, question_ids: list[str]) -> BatchStats:
        """Synchronous batch analysis - runs in thread pool."""
        stats = BatchStats()
        set_run_id()
        try:
            self.engine.reset()
            auto_apply = self.engine.config.auto_apply
            for qid in question_ids:
                try:
                    analysis = self.engine.analyze_id(qid)
                    if analysis is None:
                        stats.skipped += 1
                        continue
                    stats.analyzed += 1
                    if analysis.id is not None and auto_apply.enabled:
                        outcome = apply_analysis_to_question(self.db, analysis.id, auto_apply)
                        if outcome == ApplyOutcome.APPLIED:
                            stats.applied += 1
                except Exception as e:
                    stats.failed += 1
                    self._last_error = str(e)
                    logger.error("semantic_analysis_failed", question_id=qid, error=str(e))
            self._processed += stats.analyzed
            self._failed += stats.failed
            logger.info(
                "semantic_batch_done",
                analyzed=stats.analyzed,
                skipped=stats.skipped,
                failed=stats.failed,
                applied=stats.applied,
            )
            return stats
        finally:
            clear_run_id()

    async def _maybe_calibrate(self) -> None:
        now = time.monotonic()
        debounce = self._queue_config.calibration_debounce_sec
        if self._last_calibrated_at is not None and now - self._last_calibrated_at <= debounce:
            return
        self._last_calibrated_at = now
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(self._ensure_executor(), calibrate_corpus, self.db, self.engine.model_id)
        except Exception as e:
            self._last_error = str(e)
            logger.error("calibration_failed", error=str(e))

    async def drain(self, batch_size: int | None = None) -> BatchStats:
        """Process batches until nothing is pending."""
        total = BatchStats()
        while self.pending_count:
            stats = await self.process_next(batch_size)
            if stats is None:
                await asyncio.sleep(0)
                continue
            total.analyzed += stats.analyzed
            total.skipped += stats.skipped
            total.failed += stats.failed
            total.applied += stats.applied
        return total

    def rerun_all(self, purge_existing_ai: bool = False) -> int:
        """Enqueue every question, optionally dropping existing ai analyses first."""
        if purge_existing_ai:
            with self.db.immediate_transaction() as session:
                session.execute(
                    delete(QuestionAnalysis).where(QuestionAnalysis.source == AnalysisSource.AI.value)  # type: ignore[arg-type]
                )
        with self.db.session() as session:
            ids = sorted(session.exec(select(Question.id)).all())
        self.engine.reset()
        return self.enqueue(ids)

    @property
    def pending_count(self) -> int:
        with self._pending_lock:
            return len(self._pending)

    @property
    def status(self) -> QueueStatus:
        return QueueStatus(
            state=self._state,
            pending=self.pending_count,
            processed=self._processed,
            failed=self._failed,
            last_error=self._last_error,
            last_calibrated_at=self._last_calibrated_at,
        )
