"""reactorcov error types with typed error codes.

Error code ranges:
- 2xxx: Config (settings, manifests, glob patterns, output directory)
- 3xxx: Data loading (coverage-data files)
- 4xxx: Report composition

An unresolved reactor dependency is not an error and has no code.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002
    CONFIG_MISSING_REQUIRED = 2003
    CONFIG_FILE_NOT_FOUND = 2004
    CONFIG_INVALID_PATTERN = 2005
    CONFIG_OUTPUT_UNUSABLE = 2006
    CONFIG_DUPLICATE_MODULE = 2007

    # Data loading (3xxx)
    DATA_UNREADABLE = 3001
    DATA_UNPARSEABLE = 3002

    # Report composition (4xxx)
    REPORT_MODULE_FAILED = 4001


@dataclass(frozen=True, slots=True)
class ReactorCovError(Exception):
    """Base error with structured context for CLI and JSON output."""

    code: ErrorCode
    message: str
    retryable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON responses."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "retryable": self.retryable,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(ReactorCovError):
    """Configuration-related errors, raised before any aggregation phase runs."""

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
    def missing_required(cls, field: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_MISSING_REQUIRED,
            message=f"Missing required config field: {field}",
            details={"field": field},
        )

    @classmethod
    def file_not_found(cls, path: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_FILE_NOT_FOUND,
            message=f"Config file not found: {path}",
            details={"path": path},
        )

    @classmethod
    def invalid_pattern(cls, pattern: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_PATTERN,
            message=f"Invalid glob pattern {pattern!r}: {reason}",
            details={"pattern": pattern, "reason": reason},
        )

    @classmethod
    def output_unusable(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_OUTPUT_UNUSABLE,
            message=f"Output directory {path} is unusable: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def duplicate_module(cls, module_id: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_DUPLICATE_MODULE,
            message=f"Module registered twice in reactor: {module_id}",
            details={"module": module_id},
        )


class DataLoadError(ReactorCovError):
    """A matched coverage-data file could not be read or parsed."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "DataLoadError":
        return cls(
            code=ErrorCode.DATA_UNREADABLE,
            message=f"Cannot read coverage data {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unparseable(cls, path: str, reason: str) -> "DataLoadError":
        return cls(
            code=ErrorCode.DATA_UNPARSEABLE,
            message=f"Cannot parse coverage data {path}: {reason}",
            details={"path": path, "reason": reason},
        )


class ReportCompositionError(ReactorCovError):
    """The report visitor failed while building a module sub-report."""

    @classmethod
    def module_failed(cls, module: str, reason: str) -> "ReportCompositionError":
        return cls(
            code=ErrorCode.REPORT_MODULE_FAILED,
            message=f"Failed to build report for {module}: {reason}",
            details={"module": module, "reason": reason},
        )

