"""Config module exports."""

from semtag.config.loader import get_db_path, load_config
from semtag.config.models import (
    AutoApplyConfig,
    DatabaseConfig,
    EngineConfig,
    LoggingConfig,
    LogOutputConfig,
    QueueConfig,
    SemanticTuningParams,
    SemTagConfig,
)

__all__ = [
    "load_config",
    "get_db_path",
    "SemTagConfig",
    "AutoApplyConfig",
    "DatabaseConfig",
    "EngineConfig",
    "LoggingConfig",
    "LogOutputConfig",
    "QueueConfig",
    "SemanticTuningParams",
]
