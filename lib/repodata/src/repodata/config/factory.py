# region Docstring
"""
repodata.config.factory
Settings base class and cached factory shared by every repodata settings class.
Overview:
- FactoryBaseSettings layers four sources, highest priority first:
    1. Environment variables
    2. `.env` in the application root
    3. YAML: `config.yaml`, then `config.{APP_ENV}.yaml`, then the file named by
        REPODATA_CONFIG (later files win)
    4. Init kwargs, then field defaults
- get_settings(cls) builds each settings class once per process; reload_settings()
    drops the cached instances so the next lookup re-reads every source.
Design notes:
- The entity table nests a mapping of definitions, which is easier to maintain in YAML
    than in a single environment variable; the env var still accepts it as JSON.
- Complex env values that are not valid JSON are handed to the field validators as raw
    strings instead of failing at the source.
"""
# endregion
# region Imports
import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, List, Type, TypeVar

from pydantic.fields import FieldInfo
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from .base import APP_ENV, APP_ROOT

CONFIG_FILE_VAR = "REPODATA_CONFIG"

S = TypeVar("S", bound=BaseSettings)

# endregion
# region YAML files


def config_files() -> List[Path]:
    """YAML files consulted by every settings class, lowest priority first."""
    files = [APP_ROOT / "config.yaml", APP_ROOT / f"config.{APP_ENV}.yaml"]
    explicit = os.getenv(CONFIG_FILE_VAR)
    if explicit:
        files.append(Path(explicit).expanduser().resolve())
    return files


# endregion
# region FactoryBaseSettings


class FactoryBaseSettings(BaseSettings):
    """BaseSettings reading env vars, `.env` and the YAML config files."""

    model_config = SettingsConfigDict(
        env_file=APP_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        yaml_settings = YamlConfigSettingsSource(settings_cls, yaml_file=config_files())
        return (env_settings, dotenv_settings, yaml_settings, init_settings)

    def decode_complex_value(
        self, field_name: str, field: FieldInfo, value: Any
    ) -> Any:
        if not isinstance(value, str):
            return value
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            return value


# endregion
# region Factory


@lru_cache
def get_settings(settings_cls: Type[S]) -> S:
    """
    Shared instance of a settings class.

    Example:
        >>> get_settings(GitHubDataSettings).full_name
        'lordtoepel/leanscale-data'
    """
    return settings_cls()


def reload_settings() -> None:
    """Forget every cached settings instance."""
    get_settings.cache_clear()


# endregion
