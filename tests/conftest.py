"""Root conftest.py: shared fixtures.

Ensures local src/ directory takes priority over any installed packages.
"""

from __future__ import annotations

import sys
import time
from collections.abc import Callable, Generator
from pathlib import Path

import pytest

_src_dir = Path(__file__).parent.parent / "src"
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

from semtag.analysis.engine import SemanticEngine  # noqa: E402
from semtag.config.models import SemTagConfig  # noqa: E402
from semtag.store.database import Database  # noqa: E402
from semtag.store.models import Question  # noqa: E402

QuestionFactory = Callable[..., Question]


@pytest.fixture
def temp_db(tmp_path: Path) -> Generator[Database, None, None]:
    """Fresh database with schema."""
    db = Database(tmp_path / "semtag.db")
    db.create_all()
    yield db
    db.dispose()


@pytest.fixture
def engine(temp_db: Database) -> SemanticEngine:
    return SemanticEngine(temp_db, SemTagConfig())


@pytest.fixture
def make_question(temp_db: Database) -> QuestionFactory:
    """Insert (or replace) a question row and return it."""

    def _make(
        question_id: str,
        text: str,
        explanation: str | None = None,
        code: str | None = None,
        tags: list[str] | None = None,
        **fields: object,
    ) -> Question:
        with temp_db.session() as session:
            question = session.get(Question, question_id) or Question(id=question_id)
            question.text = text
            question.explanation = explanation
            question.code = code
            question.set_tags(tags or [])
            for key, value in fields.items():
                setattr(question, key, value)
            question.updated_at = time.time()
            session.add(question)
            session.commit()
            session.refresh(question)
        return question

    return _make
