"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (REACTORCOV__SECTION__KEY)
3. YAML config (<root>/reactorcov.yaml or an explicit --config file)
4. Built-in defaults (this file)

Environment Variable Format:
    REACTORCOV__<SECTION>__<KEY>=<VALUE>

Examples:
    REACTORCOV__LOGGING__LEVEL=DEBUG
    REACTORCOV__REPORT__TITLE="Nightly coverage"
    REACTORCOV__REPORT__DATA_FILE_INCLUDES='["target/*.xml"]'
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

DEFAULT_DATA_FILE_INCLUDES: tuple[str, ...] = ("target/*.exec",)
DEFAULT_REPORTING_DIRECTORY = "target/site"
OUTPUT_SUFFIX = "reactorcov-aggregate"


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        REACTORCOV__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. INFO traces the phases, DEBUG lists every matched data file.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class ReportConfig(BaseModel):
    """Aggregate report configuration.

    Everything except the data-file patterns is passed through to the
    report visitor and formatters without interpretation.

    Env vars:
        REACTORCOV__REPORT__TITLE: Name of the report group
        REACTORCOV__REPORT__DATA_FILE_INCLUDES: JSON list of glob patterns
        REACTORCOV__REPORT__OUTPUT_DIRECTORY: Where formatted output is written
        REACTORCOV__REPORT__SKIP: Skip aggregation entirely
    """

    data_file_includes: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DATA_FILE_INCLUDES),
        description="Coverage-data files to load from each module, relative to its base "
        "directory. '*' and '?' stay within one path segment, '**' spans segments.",
    )
    data_file_excludes: list[str] = Field(
        default_factory=list,
        description="Coverage-data files to skip. Excludes win over includes.",
    )
    includes: list[str] = Field(
        default_factory=list,
        description="Files to report on, relative to each source and each class root. "
        "Both roots see the same list, so prefer suffix-free patterns such as "
        "'com/example/**' or '**/*Impl.*'. Empty = all.",
    )
    excludes: list[str] = Field(
        default_factory=list,
        description="Files to leave out of the report, matched like includes against "
        "source and class paths alike.",
    )
    title: str = Field(
        default="Aggregate Coverage",
        description="Name of the report group.",
    )
    source_encoding: str = Field(
        default="UTF-8",
        description="Encoding used to read source files.",
    )
    output_encoding: str = Field(
        default="UTF-8",
        description="Encoding of the written report files.",
    )
    footer: str = Field(
        default="",
        description="Footer text placed in rendered reports.",
    )
    locale: str = Field(
        default="en_US",
        description="Locale hint handed to the formatters.",
    )
    reporting_directory: str = Field(
        default=DEFAULT_REPORTING_DIRECTORY,
        description="Reporting root; the default output directory lives beneath it.",
    )
    output_directory: str | None = Field(
        default=None,
        description=f"Report output directory. Default: <reporting_directory>/{OUTPUT_SUFFIX}.",
    )
    skip: bool = Field(
        default=False,
        description="Skip aggregation without touching any module.",
    )

    @field_validator("data_file_includes", "data_file_excludes", "includes", "excludes")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            if not pattern.strip():
                raise ValueError("Glob patterns must be non-empty")
        return v

    @field_validator("source_encoding", "output_encoding")
    @classmethod
    def validate_encoding(cls, v: str) -> str:
        import codecs

        try:
            codecs.lookup(v)
        except LookupError as e:
            raise ValueError(f"Unknown encoding: {v}") from e
        return v


class ReactorCovConfig(BaseModel):
    """Root configuration model."""

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    report: ReportConfig = Field(default_factory=ReportConfig)


def report_output_directory(directory: Path) -> Path:
    """Place the aggregate report beneath a site-generation output directory.

    The suffix is only appended once, so an already-suffixed path is kept.
    """
    if directory.name == OUTPUT_SUFFIX:
        return directory
    return directory / OUTPUT_SUFFIX


def resolve_output_directory(config: ReportConfig, root: Path) -> Path:
    """Absolute output directory for a report run rooted at ``root``."""
    if config.output_directory:
        path = Path(config.output_directory).expanduser()
        return path if path.is_absolute() else root / path
    return report_output_directory(root / config.reporting_directory)
