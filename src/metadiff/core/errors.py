"""metadiff error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Load (module reading)
- 4xxx: Diff
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

    # Load (3xxx)
    LOAD_UNREADABLE = 3001
    LOAD_INVALID_MODULE = 3002
    LOAD_UNSUPPORTED_FORMAT = 3003
    LOAD_UNRESOLVED_REFERENCE = 3004

    # Diff (4xxx)
    DIFF_DUPLICATE_TYPE = 4001
    DIFF_DUPLICATE_RECORD = 4002


@dataclass(frozen=True, slots=True)
class MetadiffError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'LOAD_INVALID_MODULE')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output and structured logs."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(MetadiffError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )


class LoadError(MetadiffError):
    """A file could not be read as a module, or a dependency is unresolved."""

    @property
    def path(self) -> str | None:
        return self.details.get("path")

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "LoadError":
        return cls(
            code=ErrorCode.LOAD_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_module(cls, path: str, reason: str) -> "LoadError":
        return cls(
            code=ErrorCode.LOAD_INVALID_MODULE,
            message=f"{path} is not a valid module: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unsupported_format(cls, path: str) -> "LoadError":
        return cls(
            code=ErrorCode.LOAD_UNSUPPORTED_FORMAT,
            message=f"No reader registered for {path}",
            details={"path": path},
        )

    @classmethod
    def unresolved_reference(cls, path: str, reference: str, roots: list[str]) -> "LoadError":
        return cls(
            code=ErrorCode.LOAD_UNRESOLVED_REFERENCE,
            message=f"{path} references {reference}, which was not found in {', '.join(roots)}",
            details={"path": path, "reference": reference, "roots": roots},
        )


class DuplicateKeyError(MetadiffError):
    """Two entities or change records collide on the same key."""

    @classmethod
    def duplicate_type(cls, module: str, full_name: str) -> "DuplicateKeyError":
        return cls(
            code=ErrorCode.DIFF_DUPLICATE_TYPE,
            message=f"Type {full_name} is declared more than once in {module}",
            details={"module": module, "full_name": full_name},
        )

    @classmethod
    def duplicate_record(cls, key: str, type_name: str) -> "DuplicateKeyError":
        return cls(
            code=ErrorCode.DIFF_DUPLICATE_RECORD,
            message=f"Change record {key} under {type_name} collides with an earlier record",
            details={"key": key, "type": type_name},
        )

