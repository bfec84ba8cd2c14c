"""Config module exports."""

from specparity.config.loader import load_config
from specparity.config.models import (
    FileHasSpecConfig,
    LoggingConfig,
    MethodCheckConfig,
    PublicMethodHasSpecConfig,
    SpecParityConfig,
    SufficientContextsConfig,
)

__all__ = [
    "load_config",
    "FileHasSpecConfig",
    "LoggingConfig",
    "MethodCheckConfig",
    "PublicMethodHasSpecConfig",
    "SpecParityConfig",
    "SufficientContextsConfig",
]
