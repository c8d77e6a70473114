"""Configuration sections for semtag.

Defaults live here; see semtag.config.loader for how YAML files, the
environment and keyword overrides are layered on top. Environment
variables take the form SEMTAG__<SECTION>__<KEY>, for example:
    SEMTAG__LOGGING__LEVEL=DEBUG
    SEMTAG__QUEUE__BATCH_SIZE=4
    SEMTAG__TUNING__TAG_THRESHOLD=0.35
    SEMTAG__AUTO_APPLY__ENABLED=true
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from semtag.config.constants import DEFAULT_MODEL_ID, DEFAULT_TOP_K, ONTOLOGY_DIMS, SEARCH_DIMS
from semtag.core.text import clamp

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """One log sink. Configure lists of these in YAML."""

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # or "stdout", or an absolute file path
    level: LogLevel | None = None  # None: use LoggingConfig.level

    @field_validator("destination")
    @classmethod
    def _absolute_file(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        resolved = Path(v).expanduser()
        if not resolved.is_absolute():
            raise ValueError(f"log file must be an absolute path, got {v!r}")
        return str(resolved)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        SEMTAG__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every activation run and is verbose.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class DatabaseConfig(BaseModel):
    """SQLite location and lock handling.

    Env vars:
        SEMTAG__DATABASE__PATH: SQLite file location
        SEMTAG__DATABASE__BUSY_TIMEOUT_MS: SQLite busy timeout
        SEMTAG__DATABASE__MAX_RETRIES: Max retry attempts for locked DB
    """

    path: str | None = Field(
        default=None,
        description="SQLite file path. Default: .semtag/semtag.db under the project root.",
    )
    busy_timeout_ms: int = Field(
        default=30000,
        description="SQLite busy timeout (ms). How long to wait for locks.",
    )
    max_retries: int = Field(
        default=3,
        description="Retries when the write lock is held elsewhere.",
    )
    retry_base_delay_sec: float = Field(
        default=0.1,
        description="First retry pause in seconds; doubles per attempt.",
    )

    @field_validator("max_retries")
    @classmethod
    def validate_retries(cls, v: int) -> int:
        if v < 0:
            raise ValueError(f"max_retries must be >= 0, got {v}")
        return v


class EngineConfig(BaseModel):
    """Analysis engine configuration.

    Env vars:
        SEMTAG__ENGINE__MODEL_ID: Embedding model identifier (part of every cache key)
        SEMTAG__ENGINE__TOP_K: Max tags per question
    """

    model_id: str = Field(
        default=DEFAULT_MODEL_ID,
        description="Embedding model id. Changing it invalidates every cached analysis.",
    )
    top_k: int = Field(default=DEFAULT_TOP_K, description="Max tags kept per question.")
    ontology_dims: int = Field(default=ONTOLOGY_DIMS, description="Vector size for ontology scoring.")
    search_dims: int = Field(default=SEARCH_DIMS, description="Vector size for hybrid search.")

    @field_validator("top_k", "ontology_dims", "search_dims")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be >= 1, got {v}")
        return v


class SemanticTuningParams(BaseModel):
    """Process-wide propagation/threshold parameters.

    Out-of-range values are clamped into range, never rejected.
    """

    enabled: bool = True
    tag_threshold: float = 0.3
    sibling_lambda: float = 0.35
    up_beta: float = 0.55
    down_gamma: float = 0.18
    target_avg_tags: float = 6

    @field_validator("tag_threshold")
    @classmethod
    def _clamp_threshold(cls, v: float) -> float:
        return clamp(v, 0.15, 0.65)

    @field_validator("sibling_lambda")
    @classmethod
    def _clamp_lambda(cls, v: float) -> float:
        return clamp(v, 0.0, 0.75)

    @field_validator("up_beta")
    @classmethod
    def _clamp_up(cls, v: float) -> float:
        return clamp(v, 0.15, 0.9)

    @field_validator("down_gamma")
    @classmethod
    def _clamp_down(cls, v: float) -> float:
        return clamp(v, 0.0, 0.6)

    @field_validator("target_avg_tags")
    @classmethod
    def _clamp_target(cls, v: float) -> float:
        return clamp(v, 2, 12)


class QueueConfig(BaseModel):
    """Background queue configuration.

    Env vars:
        SEMTAG__QUEUE__INTERVAL_SEC: Delay between batches
        SEMTAG__QUEUE__BATCH_SIZE: Questions analyzed per batch
        SEMTAG__QUEUE__CALIBRATION_DEBOUNCE_SEC: Min gap between calibrations
    """

    interval_sec: float = Field(
        default=1.0,
        description="Delay between batches. Lower values finish sooner but hog the loop.",
    )
    batch_size: int = Field(
        default=2,
        description="Questions per batch. Small batches keep the host responsive.",
    )
    calibration_debounce_sec: float = Field(
        default=30.0,
        description="Calibration runs after drain at most once per window.",
    )

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"batch_size must be >= 1, got {v}")
        return v


class AutoApplyConfig(BaseModel):
    """Automatic write-back of analysis results onto questions.

    Never applies to questions with a user override.

    Env vars:
        SEMTAG__AUTO_APPLY__ENABLED: Enable write-back
        SEMTAG__AUTO_APPLY__MIN_SCORE: Minimum tag score to apply
    """

    enabled: bool = False
    apply_tags: bool = True
    apply_difficulty: bool = True
    max_tags: int = 6
    min_score: float = 0.35
    preserve_existing_tags: bool = True
    preserve_existing_difficulty: bool = True

    @field_validator("max_tags")
    @classmethod
    def validate_max_tags(cls, v: int) -> int:
        return max(1, v)


class SemTagConfig(BaseModel):
    """Root configuration for semtag.

    Every section is also reachable through YAML and SEMTAG__ env vars.
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    tuning: SemanticTuningParams = Field(default_factory=SemanticTuningParams)
    queue: QueueConfig = Field(default_factory=QueueConfig)
    auto_apply: AutoApplyConfig = Field(default_factory=AutoApplyConfig)
