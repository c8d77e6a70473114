"""semtag error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Ontology
- 4xxx: Store
- 9xxx: Internal
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_FILE_NOT_FOUND = 2004

    # Ontology (3xxx)
    ONTOLOGY_CYCLE = 3001
    ONTOLOGY_UNKNOWN_PARENT = 3002
    ONTOLOGY_DUPLICATE_ID = 3003
    ONTOLOGY_INVALID_KIND = 3004
    ONTOLOGY_EMPTY_ID = 3005

    # Store (4xxx)
    STORE_BUSY = 4001
    STORE_NOT_FOUND = 4002

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class SemTagError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'ONTOLOGY_CYCLE')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for logs and host-application responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(SemTagError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Cannot parse config file {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Config value '{field}' rejected: {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"No config file at {path}",
            details={"path": path},
        )


class OntologyError(SemTagError):
    """Malformed ontology. Always fatal: seeding aborts without writing."""

    @classmethod
    def cycle(cls, path: list[str]) -> "OntologyError":
        return cls(
            code=ErrorCode.ONTOLOGY_CYCLE,
            message=f"Cycle in ontology parent chain: {' -> '.join(path)}",
            details={"path": path},
        )

    @classmethod
    def unknown_parent(cls, tag_id: str, parent_id: str) -> "OntologyError":
        return cls(
            code=ErrorCode.ONTOLOGY_UNKNOWN_PARENT,
            message=f"Tag '{tag_id}' references unknown parent '{parent_id}'",
            details={"tag_id": tag_id, "parent_id": parent_id},
        )

    @classmethod
    def duplicate_id(cls, tag_id: str) -> "OntologyError":
        return cls(
            code=ErrorCode.ONTOLOGY_DUPLICATE_ID,
            message=f"Duplicate ontology tag id: {tag_id}",
            details={"tag_id": tag_id},
        )

    @classmethod
    def invalid_kind(cls, tag_id: str, kind: str) -> "OntologyError":
        return cls(
            code=ErrorCode.ONTOLOGY_INVALID_KIND,
            message=f"Tag '{tag_id}' has unknown kind '{kind}'",
            details={"tag_id": tag_id, "kind": kind},
        )

    @classmethod
    def empty_id(cls, name: str) -> "OntologyError":
        return cls(
            code=ErrorCode.ONTOLOGY_EMPTY_ID,
            message=f"Ontology tag '{name}' has an empty id",
            details={"name": name},
        )


class StoreError(SemTagError):
    """Persistent store errors. Surfaced to callers; the queue logs and moves on."""

    @classmethod
    def busy(cls, attempts: int, reason: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_BUSY,
            message=f"Database busy after {attempts} attempt(s): {reason}",
            retryable=True,
            details={"attempts": attempts, "reason": reason},
        )

    @classmethod
    def not_found(cls, kind: str, key: str) -> "StoreError":
        return cls(
            code=ErrorCode.STORE_NOT_FOUND,
            message=f"{kind} not found: {key}",
            details={"kind": kind, "key": key},
        )


class InternalError(SemTagError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
