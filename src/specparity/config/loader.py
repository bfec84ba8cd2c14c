"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (SPECPARITY__SECTION__KEY)
3. Repo config (.specparity.yml)
4. Built-in defaults (lowest priority)

The repo file may use snake_case sections (``sufficient_contexts:``) or the
RuboCop check names (``RSpecParity/SufficientContexts:``).
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from specparity.config.constants import CHECK_SECTIONS, CONFIG_FILENAME
from specparity.config.models import (
    FileHasSpecConfig,
    LoggingConfig,
    PublicMethodHasSpecConfig,
    SpecParityConfig,
    SufficientContextsConfig,
)
from specparity.core.errors import ConfigError


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top-level value must be a mapping")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _normalize_sections(raw: dict[str, Any]) -> dict[str, Any]:
    """Fold ``RSpecParity/<Check>`` keys into their snake_case sections."""
    normalized: dict[str, Any] = {}
    for key, value in raw.items():
        section = CHECK_SECTIONS.get(key, key)
        if section in normalized and isinstance(value, dict):
            normalized[section] = _deep_merge(normalized[section], value)
        else:
            normalized[section] = value
    return normalized


class _YamlSource(PydanticBaseSettingsSource):
    """Settings source that reads from pre-loaded YAML config."""

    def __init__(self, settings_cls: type[BaseSettings], yaml_config: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._yaml_config = yaml_config

    def get_field_value(
        self,
        field: Any,  # noqa: ARG002
        field_name: str,
    ) -> tuple[Any, str, bool]:
        val = self._yaml_config.get(field_name)
        return val, field_name, val is not None

    def __call__(self) -> dict[str, Any]:
        return self._yaml_config


def _make_settings_class(yaml_config: dict[str, Any]) -> type[BaseSettings]:
    """Create a Settings class with instance-based YAML source (thread-safe)."""

    class SpecParitySettings(BaseSettings):
        """Root config. Env vars: SPECPARITY__LOGGING__LEVEL, etc."""

        model_config = SettingsConfigDict(
            env_prefix="SPECPARITY__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        file_has_spec: FileHasSpecConfig = FileHasSpecConfig()
        public_method_has_spec: PublicMethodHasSpecConfig = PublicMethodHasSpecConfig()
        sufficient_contexts: SufficientContextsConfig = SufficientContextsConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            # Precedence (first wins): init kwargs > env vars > yaml file
            return (init_settings, env_settings, _YamlSource(settings_cls, yaml_config))

    return SpecParitySettings


def load_config(repo_root: Path | None = None, **kwargs: Any) -> SpecParityConfig:
    """Load config: defaults < .specparity.yml < env vars < kwargs.

    Args:
        repo_root: Repository root to load config from.
                   Defaults to current working directory.
        **kwargs: Override values (highest precedence).

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On invalid YAML syntax or validation errors.
    """
    repo_root = repo_root or Path.cwd()
    yaml_config = _normalize_sections(_load_yaml(repo_root / CONFIG_FILENAME))

    settings_cls = _make_settings_class(yaml_config)
    try:
        settings = settings_cls(**kwargs)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
    return SpecParityConfig.model_validate(settings.model_dump())
