"""Resolve a ``SemTagConfig`` from YAML files, environment and keyword overrides.

Layers, lowest first: built-in defaults, ``~/.config/semtag/config.yaml``,
``<project>/.semtag/config.yaml`` (or an explicit ``config_file``),
``SEMTAG__SECTION__KEY`` environment variables, keyword arguments.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from semtag.config.models import (
    AutoApplyConfig,
    DatabaseConfig,
    EngineConfig,
    LoggingConfig,
    QueueConfig,
    SemanticTuningParams,
    SemTagConfig,
)
from semtag.core.errors import ConfigError

GLOBAL_CONFIG_PATH = Path("~/.config/semtag/config.yaml").expanduser()
PROJECT_DIRNAME = ".semtag"
CONFIG_FILENAME = "config.yaml"
DB_FILENAME = "semtag.db"


def _load_yaml(path: Path) -> dict[str, Any]:
    """Mapping stored at ``path``; an absent or empty file yields ``{}``."""
    if not path.is_file():
        return {}
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError.parse_error(str(path), str(e)) from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError.parse_error(str(path), f"expected a mapping, got {type(data).__name__}")
    return data


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


class _FileLayer(PydanticBaseSettingsSource):
    """Pre-merged YAML layers exposed as a settings source."""

    def __init__(self, settings_cls: type[BaseSettings], data: dict[str, Any]) -> None:
        super().__init__(settings_cls)
        self._data = data

    def get_field_value(self, field: Any, field_name: str) -> tuple[Any, str, bool]:  # noqa: ARG002
        value = self._data.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        return {k: v for k, v in self._data.items() if k in self.settings_cls.model_fields}


def _settings_for(file_data: dict[str, Any]) -> type[BaseSettings]:
    # A class per call keeps the YAML payload off shared state.
    class _Settings(BaseSettings):
        model_config = SettingsConfigDict(
            env_prefix="SEMTAG__",
            env_nested_delimiter="__",
            case_sensitive=False,
        )

        logging: LoggingConfig = LoggingConfig()
        database: DatabaseConfig = DatabaseConfig()
        engine: EngineConfig = EngineConfig()
        tuning: SemanticTuningParams = SemanticTuningParams()
        queue: QueueConfig = QueueConfig()
        auto_apply: AutoApplyConfig = AutoApplyConfig()

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
            file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        ) -> tuple[PydanticBaseSettingsSource, ...]:
            return (init_settings, env_settings, _FileLayer(settings_cls, file_data))

    return _Settings


def _first_validation_problem(exc: ValidationError) -> ConfigError:
    problem = exc.errors()[0]
    where = ".".join(str(part) for part in problem["loc"]) or "<root>"
    return ConfigError.invalid_value(where, problem.get("input"), problem["msg"])


def load_config(
    project_root: Path | None = None,
    config_file: Path | None = None,
    **overrides: Any,
) -> SemTagConfig:
    """Build the effective configuration.

    Args:
        project_root: Directory containing ``.semtag/``. Defaults to the cwd.
        config_file: Explicit project config; must exist when given.
        **overrides: Section values that beat every other layer.

    Raises:
        ConfigError: Missing explicit file, unparsable YAML, or invalid values.
    """
    if config_file is not None:
        if not config_file.is_file():
            raise ConfigError.file_not_found(str(config_file))
        project_file = config_file
    else:
        project_file = (project_root or Path.cwd()) / PROJECT_DIRNAME / CONFIG_FILENAME

    file_data = _deep_merge(_load_yaml(GLOBAL_CONFIG_PATH), _load_yaml(project_file))
    try:
        resolved = _settings_for(file_data)(**overrides)
        return SemTagConfig.model_validate(resolved.model_dump())
    except ValidationError as e:
        raise _first_validation_problem(e) from e


def get_db_path(project_root: Path, config: SemTagConfig | None = None) -> Path:
    """SQLite file for a project: ``database.path`` if set, else ``.semtag/semtag.db``."""
    cfg = config if config is not None else load_config(project_root)
    if cfg.database.path:
        configured = Path(cfg.database.path).expanduser()
        return configured if configured.is_absolute() else project_root / configured
    return project_root / PROJECT_DIRNAME / DB_FILENAME
