"""Config module exports."""

from reactorcov.config.loader import load_config
from reactorcov.config.models import (
    LoggingConfig,
    LogOutputConfig,
    ReactorCovConfig,
    ReportConfig,
    report_output_directory,
    resolve_output_directory,
)

__all__ = [
    "load_config",
    "LoggingConfig",
    "LogOutputConfig",
    "ReactorCovConfig",
    "ReportConfig",
    "report_output_directory",
    "resolve_output_directory",
]
