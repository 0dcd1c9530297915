"""Structured logging with run correlation and multi-output support.

Supports:
- Separate console vs file log levels
- Run correlation IDs (one per aggregation invocation)
- JSON or console rendering per output
"""

from __future__ import annotations

import logging
import sys
from contextvars import ContextVar
from pathlib import Path
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

if TYPE_CHECKING:
    from reactorcov.config.models import LoggingConfig

_run_id: ContextVar[str | None] = ContextVar("run_id", default=None)

_log_file_path: Path | None = None


def get_run_id() -> str | None:
    return _run_id.get()


def set_run_id(run_id: str | None = None) -> str:
    """Set or generate the aggregation run correlation ID."""
    rid = run_id or uuid4().hex[:12]
    _run_id.set(rid)
    return rid


def clear_run_id() -> None:
    _run_id.set(None)


def get_log_file_path() -> Path | None:
    """Get the first configured log file path, if any.

    The CLI points users at it when an aggregation fails.
    """
    return _log_file_path


def _set_log_file_path(path: Path | None) -> None:
    global _log_file_path
    _log_file_path = path


def _add_run_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    if rid := get_run_id():
        event_dict["run_id"] = rid
    return event_dict


_LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def configure_logging(
    *,
    config: LoggingConfig | None = None,
    json_format: bool = False,
    level: str = "INFO",
) -> None:
    """Configure structlog. Pass config for multi-output, or use simple params.

    Args:
        config: Logging configuration with outputs
        json_format: Use JSON format for simple setup
        level: Default log level
    """
    from reactorcov.config.models import LoggingConfig, LogOutputConfig

    if config is None:
        config = LoggingConfig(
            level=level.upper(),  # type: ignore[arg-type]
            outputs=[LogOutputConfig(format="json" if json_format else "console")],
        )

    default_level = _LEVEL_MAP.get(config.level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S", key="timestamp"),
        _add_run_id,  # type: ignore[list-item]
    ]

    _configure_stdlib_logging(config, shared_processors, default_level)


def _create_handler(destination: str) -> logging.Handler:
    """Create handler for stderr, stdout, or file path."""
    if destination == "stderr":
        return logging.StreamHandler(sys.stderr)
    if destination == "stdout":
        return logging.StreamHandler(sys.stdout)
    path = Path(destination)
    path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(path, mode="a")


def _configure_stdlib_logging(
    config: LoggingConfig,
    shared_processors: list[structlog.types.Processor],
    default_level: int,
) -> None:
    """Configure logging via stdlib (proper file handle management)."""
    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(default_level),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Don't cache - allows reconfiguration and respects level changes
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(default_level)

    _set_log_file_path(None)

    for output in config.outputs:
        output_level = _LEVEL_MAP.get((output.level or config.level).upper(), default_level)
        is_console = output.destination in ("stderr", "stdout")

        if not is_console and _log_file_path is None:
            _set_log_file_path(Path(output.destination))

        if output.format == "json":
            formatter = structlog.stdlib.ProcessorFormatter(
                processor=structlog.processors.JSONRenderer(),
                foreign_pre_chain=shared_processors,
            )
        else:
            formatter = structlog.stdlib.ProcessorFormatter(
                processor=structlog.dev.ConsoleRenderer(colors=is_console and sys.stderr.isatty()),
                foreign_pre_chain=shared_processors,
            )

        handler = _create_handler(output.destination)
        handler.setLevel(output_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    logger = structlog.get_logger()
    if name:
        logger = logger.bind(logger=name)
    return logger  # type: ignore[no-any-return]
