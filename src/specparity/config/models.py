"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (SPECPARITY__SECTION__KEY)
3. Repo YAML (.specparity.yml)
4. Built-in defaults (this file)

Check options accept both the snake_case field names and the RuboCop-style
option names used in ``.rubocop.yml`` (``SkipMethodDescribeFor``,
``DescribeAliases``, ``IgnoreMemoization``), so an existing RuboCop
configuration block can be pasted under the matching section.

Environment Variable Format:
    SPECPARITY__<SECTION>__<KEY>=<VALUE>

Examples:
    SPECPARITY__LOGGING__LEVEL=DEBUG
    SPECPARITY__SUFFICIENT_CONTEXTS__IGNORE_MEMOIZATION=false
"""

import re
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from specparity.config.constants import DEFAULT_EXCLUDED_PATTERNS

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration."""

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
        SPECPARITY__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="WARNING",
        description="Root log level. DEBUG traces every spec candidate decision.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class CheckConfig(BaseModel):
    """Options shared by every check."""

    model_config = ConfigDict(populate_by_name=True)

    enabled: bool = Field(default=True, alias="Enabled")


class FileHasSpecConfig(CheckConfig):
    """RSpecParity/FileHasSpec options."""


class MethodCheckConfig(CheckConfig):
    """Options shared by the two method-level checks."""

    skip_method_describe_for: list[str] = Field(
        default_factory=list,
        alias="SkipMethodDescribeFor",
        description="Path globs whose single-public-method units only need examples "
        "under the unit header, not a method header.",
    )
    describe_aliases: dict[str, list[str]] = Field(
        default_factory=dict,
        alias="DescribeAliases",
        description="Maps a header key such as '#call' to alternate keys such as '.call'.",
    )
    excluded_patterns: list[str] = Field(
        default_factory=lambda: list(DEFAULT_EXCLUDED_PATTERNS),
        alias="ExcludedPatterns",
        description="Regexes for callback-style method names that are never checked.",
    )

    @field_validator("describe_aliases", mode="before")
    @classmethod
    def normalize_aliases(cls, v: Any) -> Any:
        if v is None:
            return {}
        if not isinstance(v, dict):
            return v
        normalized: dict[str, list[str]] = {}
        for key, value in v.items():
            key = str(key)
            if not key.startswith(("#", ".")):
                raise ValueError(f"Describe alias key must start with '#' or '.': {key}")
            values = value if isinstance(value, list) else [value]
            normalized[key] = [str(item) for item in values]
        return normalized

    @field_validator("excluded_patterns")
    @classmethod
    def validate_patterns(cls, v: list[str]) -> list[str]:
        for pattern in v:
            try:
                re.compile(pattern)
            except re.error as e:
                raise ValueError(f"Invalid pattern {pattern!r}: {e}") from e
        return v


class PublicMethodHasSpecConfig(MethodCheckConfig):
    """RSpecParity/PublicMethodHasSpec options."""


class SufficientContextsConfig(MethodCheckConfig):
    """RSpecParity/SufficientContexts options."""

    ignore_memoization: bool = Field(
        default=True,
        alias="IgnoreMemoization",
        description="Do not count memoization guards on instance variables as branches.",
    )


class SpecParityConfig(BaseModel):
    """Root configuration for specparity.

    All settings can be configured via:
    1. Environment variables: SPECPARITY__SECTION__KEY
    2. The repo YAML file (.specparity.yml)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    file_has_spec: FileHasSpecConfig = Field(default_factory=FileHasSpecConfig)
    public_method_has_spec: PublicMethodHasSpecConfig = Field(
        default_factory=PublicMethodHasSpecConfig
    )
    sufficient_contexts: SufficientContextsConfig = Field(
        default_factory=SufficientContextsConfig
    )
