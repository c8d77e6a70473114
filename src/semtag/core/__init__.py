"""Core utilities: errors, logging, text helpers."""

from semtag.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    OntologyError,
    SemTagError,
    StoreError,
)
from semtag.core.logging import configure_logging, get_logger

__all__ = [
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "OntologyError",
    "SemTagError",
    "StoreError",
    "configure_logging",
    "get_logger",
]
