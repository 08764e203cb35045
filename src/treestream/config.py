from __future__ import annotations

from contextvars import ContextVar
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError
from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from treestream.constants import (
    DEFAULT_AUTO_START,
    DEFAULT_INTERVAL_MS,
    DEFAULT_SPEED,
    DEFAULT_STREAM_BY,
    PROJECT_CONFIG_FILENAME,
)
from treestream.exceptions import ConfigError
from treestream.logging import get_logger

__all__ = [
    "StreamConfig",
    "TreeStreamSettings",
    "load_config",
    "get_user_config_path",
]

logger = get_logger(__name__)

# Project config path chosen by load_config(); None means ./treestream.yaml
_project_config_path: ContextVar[Path | None] = ContextVar(
    "_project_config_path", default=None
)


class StreamConfig(BaseModel):
    """Per-instance streaming defaults.

    Attributes:
        speed: Tokens revealed per tick (>= 1).
        interval: Delay between ticks in milliseconds (>= 0).
        stream_by: Tokenization strategy for text units.
        auto_start: Start streaming as soon as a run is reset.
    """

    speed: int = Field(default=DEFAULT_SPEED, ge=1)
    interval: float = Field(default=DEFAULT_INTERVAL_MS, ge=0)
    stream_by: Literal["word", "character"] = DEFAULT_STREAM_BY
    auto_start: bool = DEFAULT_AUTO_START


class YamlConfigSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from YAML files."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | None = None,
    ):
        super().__init__(settings_cls)
        self.yaml_file = yaml_file
        self._config_data: dict[str, Any] = {}
        if yaml_file and yaml_file.exists():
            try:
                with open(yaml_file) as f:
                    loaded = yaml.safe_load(f)
                    if loaded is None:
                        logger.warning(
                            f"Config file {yaml_file} is empty, using defaults."
                        )
                    elif isinstance(loaded, dict):
                        self._config_data = loaded
                    else:
                        raise ConfigError(
                            message=f"Config file {yaml_file} must be a mapping",
                            field=None,
                            value=loaded,
                        )
            except yaml.YAMLError as e:
                raise ConfigError(
                    message=f"Invalid YAML in {yaml_file}: {e}",
                    field=None,
                    value=None,
                ) from e

    def get_field_value(
        self, field: FieldInfo, field_name: str
    ) -> tuple[Any, str, bool]:
        """Get value for a specific field from the YAML config."""
        if field_name in self._config_data:
            return self._config_data[field_name], field_name, False
        return None, field_name, False

    def __call__(self) -> dict[str, Any]:
        return self._config_data


class TreeStreamSettings(BaseSettings):
    """Root configuration object containing all tree-stream settings."""

    model_config = SettingsConfigDict(
        env_prefix="TREESTREAM_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    stream: StreamConfig = Field(default_factory=StreamConfig)
    verbosity: Literal["error", "warning", "info", "debug"] = "warning"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize the order of settings sources.

        Priority (highest to lowest):
        1. Init settings (explicit keyword arguments)
        2. Environment variables (TREESTREAM_*)
        3. Project YAML config (./treestream.yaml or --config path)
        4. User YAML config (~/.config/treestream/config.yaml)
        """
        project_config_path = (
            _project_config_path.get() or Path.cwd() / PROJECT_CONFIG_FILENAME
        )
        return (
            init_settings,
            env_settings,
            YamlConfigSource(settings_cls, project_config_path),
            YamlConfigSource(settings_cls, get_user_config_path()),
        )


def get_user_config_path() -> Path:
    """Get the path to the user configuration file.

    Returns:
        Path to ~/.config/treestream/config.yaml
    """
    return Path.home() / ".config" / "treestream" / "config.yaml"


def load_config(config_path: Path | None = None) -> TreeStreamSettings:
    """Load configuration with hierarchy: defaults -> user -> project -> env.

    Args:
        config_path: Optional path to project config file. Defaults to
            ./treestream.yaml

    Returns:
        TreeStreamSettings instance with merged configuration

    Raises:
        ConfigError: If configuration is invalid
    """
    if config_path is None:
        config_path = Path.cwd() / PROJECT_CONFIG_FILENAME

    if not config_path.exists():
        logger.info("No project configuration found, using defaults.")

    token = _project_config_path.set(config_path)
    try:
        return TreeStreamSettings()
    except ValidationError as e:
        first_error = e.errors()[0]
        field = ".".join(str(loc) for loc in first_error["loc"])
        raise ConfigError(
            message=f"Invalid configuration: {first_error['msg']}",
            field=field,
            value=first_error.get("input"),
        ) from e
    finally:
        _project_config_path.reset(token)
