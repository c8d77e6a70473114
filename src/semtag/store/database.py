"""SQLite access for semtag.

Every connection runs in WAL mode with a busy timeout, so analysis reads
proceed while a corpus-wide job (seeding, calibration, tuning) holds the
write lock. Those jobs use ``immediate_transaction``; per-question writes
use ``session``.
"""

from __future__ import annotations

import time
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog
from sqlalchemy import event, text
from sqlalchemy.exc import OperationalError
from sqlmodel import Session, SQLModel, create_engine

from semtag.core.errors import StoreError

if TYPE_CHECKING:
    from sqlalchemy import Engine

    from semtag.config.models import DatabaseConfig

logger = structlog.get_logger(__name__)

_LOCK_MESSAGES = ("database is locked", "database is busy")


@dataclass(frozen=True)
class RetryPolicy:
    """Exponential backoff for acquiring the write lock."""

    max_retries: int = 3
    base_delay: float = 0.1
    max_delay: float = 2.0

    def delay(self, attempt: int) -> float:
        return min(self.base_delay * (2**attempt), self.max_delay)


def _is_lock_contention(error: OperationalError) -> bool:
    message = str(error).lower()
    return any(m in message for m in _LOCK_MESSAGES)


class Database:
    """Engine and session factory over one SQLite file."""

    def __init__(
        self,
        db_path: Path,
        max_retries: int = 3,
        retry_base_delay: float = 0.1,
        retry_max_delay: float = 2.0,
        busy_timeout_ms: int = 30000,
    ) -> None:
        self.db_path = Path(db_path)
        self.retry = RetryPolicy(max_retries, retry_base_delay, retry_max_delay)
        self._busy_timeout_ms = int(busy_timeout_ms)
        self.engine = self._build_engine()

    @property
    def _max_retries(self) -> int:
        return self.retry.max_retries

    @classmethod
    def from_config(cls, db_path: Path, config: DatabaseConfig) -> Database:
        return cls(
            db_path,
            max_retries=config.max_retries,
            retry_base_delay=config.retry_base_delay_sec,
            busy_timeout_ms=config.busy_timeout_ms,
        )

    def _build_engine(self) -> Engine:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        engine = create_engine(
            f"sqlite:///{self.db_path}",
            connect_args={"check_same_thread": False},
        )
        event.listen(engine, "connect", self._apply_pragmas)
        return engine

    def _apply_pragmas(self, dbapi_conn: Any, _record: Any) -> None:
        cursor = dbapi_conn.cursor()
        try:
            for pragma in (
                "journal_mode=WAL",
                f"busy_timeout={self._busy_timeout_ms}",
                "synchronous=NORMAL",
                "foreign_keys=ON",
            ):
                cursor.execute(f"PRAGMA {pragma}")
        finally:
            cursor.close()

    def create_all(self) -> None:
        import semtag.store.models  # noqa: F401  (table registration)

        SQLModel.metadata.create_all(self.engine)

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Plain ORM session; the caller commits."""
        with Session(self.engine, expire_on_commit=False) as session:
            yield session

    def _begin_immediate(self, retries: int) -> Session:
        attempt = 0
        while True:
            session = Session(self.engine, expire_on_commit=False)
            try:
                session.execute(text("BEGIN IMMEDIATE"))
                return session
            except OperationalError as e:
                session.close()
                if not _is_lock_contention(e):
                    raise
                if attempt >= retries:
                    raise StoreError.busy(attempts=attempt + 1, reason=str(e)) from e
                pause = self.retry.delay(attempt)
                logger.warning("sqlite_busy_retry", attempt=attempt + 1, max_retries=retries, delay_sec=pause)
                time.sleep(pause)
                attempt += 1

    @contextmanager
    def immediate_transaction(self, max_retries: int | None = None) -> Iterator[Session]:
        """Write session holding the RESERVED lock from the start.

        Commits when the block exits normally and rolls back otherwise.
        Only taking the lock is retried; errors raised inside the block
        propagate unchanged.

        Raises:
            StoreError: The lock was still held elsewhere after all retries.
        """
        session = self._begin_immediate(self.retry.max_retries if max_retries is None else max_retries)
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
