"""Configuration loading with pydantic-settings.

Supports loading configuration from multiple sources with precedence:
1. Direct kwargs (highest priority)
2. Environment variables (REACTORCOV__SECTION__KEY)
3. YAML config (<root>/reactorcov.yaml, or an explicit path)
4. Built-in defaults (lowest priority)
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from reactorcov.config.models import LoggingConfig, ReactorCovConfig, ReportConfig
from reactorcov.core.errors import ConfigError

CONFIG_FILE_NAME = "reactorcov.yaml"


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with path.open() as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), "top level must be a mapping")
    return data


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
    """Create a Settings class with instance-based YAML source."""

    class ReactorCovSettings(BaseSettings):
        """Root config. Env vars: REACTORCOV__LOGGING__LEVEL, REACTORCOV__REPORT__TITLE, etc."""

        model_config = SettingsConfigDict(
            env_prefix="REACTORCOV__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        report: ReportConfig = ReportConfig()

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

    return ReactorCovSettings


def load_config(
    root: Path | None = None,
    config_path: Path | None = None,
    **kwargs: Any,
) -> ReactorCovConfig:
    """Load config: defaults < yaml < env vars < kwargs.

    Args:
        root: Project root holding an optional reactorcov.yaml.
              Defaults to current working directory.
        config_path: Explicit YAML file; must exist when given.
        **kwargs: Override values (highest precedence), e.g. report={...}.

    Returns:
        Fully resolved configuration object.

    Raises:
        ConfigError: On missing explicit file, invalid YAML or validation errors.
    """
    root = root or Path.cwd()
    if config_path is not None:
        if not config_path.is_file():
            raise ConfigError.file_not_found(str(config_path))
        yaml_config = _load_yaml(config_path)
    else:
        yaml_config = _load_yaml(root / CONFIG_FILE_NAME)

    settings_cls = _make_settings_class(yaml_config)
    try:
        return settings_cls(**kwargs)  # type: ignore[return-value]
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(loc) for loc in err["loc"])
        raise ConfigError.invalid_value(field, err.get("input"), err["msg"]) from e
