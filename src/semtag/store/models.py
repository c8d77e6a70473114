"""SQLModel tables and JSON payload models for semtag.

Single source of truth for all persisted schemas.

Tables:
- ontology_tags: the seeded concept forest
- embeddings: content-hashed vector cache (tags, aliases, questions)
- question_analyses: engine output, keyed for cache lookup
- question_overrides: user-authored layer, never overwritten
- tuning_state: singleton row holding SemanticTuningParams
- questions: host question records (read by the engine, written by auto-apply)
- search_docs: per-question hybrid search documents

List/struct columns are stored as JSON text and exposed through typed
accessors that validate with pydantic.
"""

import json
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field as PydanticField
from sqlmodel import Field, SQLModel

# ============================================================================
# ENUMS
# ============================================================================


class TagKind(str, Enum):
    """Ontology node kinds."""

    TOPIC = "topic"
    SUBTOPIC = "subtopic"
    SKILL = "skill"
    OPERATION = "operation"
    PREREQUISITE = "prerequisite"
    OTHER = "other"


class EmbeddingScope(str, Enum):
    """What an embedding record was computed from."""

    ONTOLOGY_TAG = "ontology_tag"
    ONTOLOGY_ALIAS = "ontology_alias"
    QUESTION = "question"


class AnalysisSource(str, Enum):
    AI = "ai"
    USER = "user"


class DifficultyBand(str, Enum):
    """Six ordered difficulty buckets, easiest first."""

    VERY_EASY = "very_easy"
    EASY = "easy"
    MODERATE = "moderate"
    HARD = "hard"
    VERY_HARD = "very_hard"
    OLYMPIAD = "olympiad"

    @property
    def order(self) -> int:
        return _BAND_ORDER[self]


_BAND_ORDER = {band: i for i, band in enumerate(DifficultyBand)}


# ============================================================================
# JSON PAYLOADS
# ============================================================================


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True)


class TagAssignment(_Payload):
    tag_id: str
    tag_name: str
    score: float
    rank: int
    explanation: str | None = None


class DifficultyFactors(_Payload):
    """Persisted difficulty breakdown, each in [0, 1]."""

    semantic_complexity: float
    conceptual_depth: float
    reasoning_steps: float
    abstraction_level: float
    symbol_density: float
    prerequisite_load: float


class TopSignal(_Payload):
    label: str
    weight: float
    detail: str | None = None


class ActivatedNode(_Payload):
    """Per-node breakdown of one activation run."""

    tag_id: str
    tag_name: str
    final_score: float
    base_similarity: float
    heuristic_boost: float
    propagated_up: float  # received from children
    propagated_down: float  # received from parent
    depth: int


class RootActivation(_Payload):
    tag_id: str
    tag_name: str
    score: float


class HierarchyRationale(_Payload):
    roots_activated: list[RootActivation] = PydanticField(default_factory=list)
    sibling_suppression_applied: bool = False


class HeuristicContribution(_Payload):
    tag_id: str
    weight: float


class HeuristicArtifact(_Payload):
    key: str
    score: float
    contributed_to: list[HeuristicContribution] = PydanticField(default_factory=list)


class DifficultyComponents(_Payload):
    foundational_distance: float
    abstraction_depth: float
    reasoning_chain: float
    prerequisite_breadth: float
    consistency_adjustment: float
    calibrated_score: float | None = None


class ConsistencyAdjustment(_Payload):
    rule: str
    delta: float
    detail: str | None = None


class Rationale(_Payload):
    """Explainability record attached to every analysis."""

    top_signals: list[TopSignal] = PydanticField(default_factory=list)
    activated_nodes: list[ActivatedNode] = PydanticField(default_factory=list)
    hierarchy: HierarchyRationale = PydanticField(default_factory=HierarchyRationale)
    heuristics: list[HeuristicArtifact] = PydanticField(default_factory=list)
    difficulty_components: DifficultyComponents | None = None
    consistency: list[ConsistencyAdjustment] = PydanticField(default_factory=list)


def _dump(value: Any) -> str:
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


# ============================================================================
# TABLES
# ============================================================================


class OntologyTag(SQLModel, table=True):
    """A concept node. ``id`` is immutable once seeded."""

    __tablename__ = "ontology_tags"

    id: str = Field(primary_key=True)
    name: str
    kind: str = Field(index=True)
    description: str = ""
    parent_id: str | None = Field(default=None, index=True)
    aliases_json: str = "[]"
    created_at: float
    updated_at: float

    def get_aliases(self) -> list[str]:
        result: list[str] = json.loads(self.aliases_json or "[]")
        return result

    def set_aliases(self, aliases: list[str]) -> None:
        self.aliases_json = json.dumps(list(aliases))


class EmbeddingRecord(SQLModel, table=True):
    """Cached vector. Latest row per (scope, scope_id, model_id) wins."""

    __tablename__ = "embeddings"

    id: int | None = Field(default=None, primary_key=True)
    scope: str = Field(index=True)
    scope_id: str = Field(index=True)
    model_id: str = Field(index=True)
    dims: int
    vector_json: str
    text_hash: str
    created_at: float

    def get_vector(self) -> list[float]:
        result: list[float] = json.loads(self.vector_json)
        return result


class QuestionAnalysis(SQLModel, table=True):
    """One engine run over one question's text.

    Cache key: (question_id, model_id, analysis_version, input_hash) with
    source == "ai". Only the calibrator mutates difficulty_score/band and the
    calibrated_score inside the rationale.
    """

    __tablename__ = "question_analyses"

    id: int | None = Field(default=None, primary_key=True)
    question_id: str = Field(index=True)
    input_hash: str = Field(index=True)
    model_id: str = Field(index=True)
    analysis_version: int
    source: str = Field(default=AnalysisSource.AI.value, index=True)
    created_at: float
    tags_json: str = "[]"
    difficulty_score: float
    difficulty_band: str
    factors_json: str
    rationale_json: str = "{}"

    def get_tags(self) -> list[TagAssignment]:
        return [TagAssignment.model_validate(t) for t in json.loads(self.tags_json or "[]")]

    def set_tags(self, tags: list[TagAssignment]) -> None:
        self.tags_json = _dump([t.model_dump() for t in tags])

    def get_factors(self) -> DifficultyFactors:
        return DifficultyFactors.model_validate(json.loads(self.factors_json))

    def set_factors(self, factors: DifficultyFactors) -> None:
        self.factors_json = _dump(factors.model_dump())

    def get_rationale(self) -> Rationale:
        return Rationale.model_validate(json.loads(self.rationale_json or "{}"))

    def set_rationale(self, rationale: Rationale) -> None:
        self.rationale_json = _dump(rationale.model_dump())


class QuestionOverride(SQLModel, table=True):
    """User correction layered over an analysis. Auto-apply never writes past it."""

    __tablename__ = "question_overrides"

    id: int | None = Field(default=None, primary_key=True)
    question_id: str = Field(index=True)
    base_analysis_id: int | None = Field(default=None, index=True)
    tags_json: str | None = None
    difficulty_score: float | None = None
    difficulty_band: str | None = None
    notes: str | None = None
    created_at: float
    updated_at: float

    def get_tags(self) -> list[str] | None:
        if self.tags_json is None:
            return None
        result: list[str] = json.loads(self.tags_json)
        return result


class TuningState(SQLModel, table=True):
    """Singleton (id=1) holding the process-wide tuning parameters."""

    __tablename__ = "tuning_state"

    id: int = Field(default=1, primary_key=True)
    enabled: bool = True
    tag_threshold: float
    sibling_lambda: float
    up_beta: float
    down_gamma: float
    target_avg_tags: float
    updated_at: float


class Question(SQLModel, table=True):
    """Host application question record."""

    __tablename__ = "questions"

    id: str = Field(primary_key=True)
    type: str = "mcq"
    code: str | None = None
    text: str = ""
    explanation: str | None = None
    tags_json: str = "[]"
    difficulty_band: str | None = None
    difficulty_level: int | None = None
    difficulty: str | None = None  # legacy easy/medium/hard label
    updated_at: float | None = None

    def get_tags(self) -> list[str]:
        result: list[str] = json.loads(self.tags_json or "[]")
        return result

    def set_tags(self, tags: list[str]) -> None:
        self.tags_json = json.dumps(list(tags))

    @property
    def has_difficulty(self) -> bool:
        return bool(self.difficulty_band or self.difficulty or self.difficulty_level)


class SearchDoc(SQLModel, table=True):
    """Hybrid search document for one question."""

    __tablename__ = "search_docs"

    question_id: str = Field(primary_key=True)
    title: str
    subtitle: str = ""
    content: str = ""
    content_hash: str = Field(index=True)
    model_id: str
    dims: int
    vector_json: str
    updated_at: float

    def get_vector(self) -> list[float]:
        result: list[float] = json.loads(self.vector_json)
        return result
