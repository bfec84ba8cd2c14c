"""Core module exports."""

from specparity.core.errors import (
    ConfigError,
    ErrorCode,
    InternalError,
    ParseError,
    SpecParityError,
)
from specparity.core.logging import (
    clear_run_id,
    configure_logging,
    get_logger,
    get_run_id,
    set_run_id,
)
from specparity.core.progress import pluralize, progress, status

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "InternalError",
    "ParseError",
    "SpecParityError",
    # Logging
    "clear_run_id",
    "configure_logging",
    "get_logger",
    "get_run_id",
    "set_run_id",
    # Console feedback
    "pluralize",
    "progress",
    "status",
]
