"""Core module exports."""

from reactorcov.core.errors import (
    ConfigError,
    DataLoadError,
    ErrorCode,
    ReactorCovError,
    ReportCompositionError,
)
from reactorcov.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "DataLoadError",
    "ErrorCode",
    "ReactorCovError",
    "ReportCompositionError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
]
