"""
repodata.config
Configuration and settings management for the GitHub-backed data layer.
Overview:
- Provides Pydantic-based settings classes for the content client, data provider,
    cache backends, webhook invalidator and the hookserver application.
- Each settings class inherits from FactoryBaseSettings and supports environment variable
    overrides via Field aliases.
Contents:
- Models:
    - EntityDefinition:
        Directory path and tenant scoping for one entity type.
- Constants:
    - DEFAULT_ENTITIES:
        The entity table used when no configuration overrides it.
- Settings Classes:
    - GitHubDataSettings:
        Remote repository identity (owner/repo/branch), access token, API base URL,
        cache TTL, HTTP timeout and retry policy, conflict retry budget, entity table,
        and webhook enable flag / shared secret.
    - CacheSettings:
        Cache backend selection (in-process memory or sqlite file) and sqlite path.
    - HookServerSettings:
        Host, port, and log level for the hookserver FastAPI application.
    - AppSettings:
        Application root, environment, and computed logs/cache directories.
Design Notes:
- All settings classes use Pydantic Field with aliases to support environment variable
    configuration (e.g., GITHUB_DATA_OWNER, GITHUB_WEBHOOK_SECRET).
- Default values allow a zero-configuration start in development; the token and
    webhook secret have no default and must be supplied in production.
- The entity table is best expressed in config.yaml; GITHUB_DATA_ENTITIES accepts the
    same mapping as JSON.
"""

from pathlib import Path
from typing import Dict, Literal, Optional

from pydantic import BaseModel, Field

from repodata.config.base import APP_ENV, APP_ROOT
from repodata.config.factory import FactoryBaseSettings
from repodata.config.factory import config_files, get_settings, reload_settings  # noqa: F401
from repodata.constants import EntityType


class EntityDefinition(BaseModel):
    """Storage layout for one entity type."""

    path: str = Field(..., description="Top-level directory holding the entity files.")
    scoped: bool = Field(
        default=True,
        description="Whether files are partitioned under an organization_id subdirectory.",
    )


UNSCOPED_ENTITIES = (EntityType.ORGANIZATIONS, EntityType.USERS)

DEFAULT_ENTITIES: Dict[str, EntityDefinition] = {
    entity.value: EntityDefinition(
        path=entity.value, scoped=entity not in UNSCOPED_ENTITIES
    )
    for entity in EntityType
}
"""[Dict[str, EntityDefinition]] Default entity table."""


class GitHubDataSettings(FactoryBaseSettings):
    """
    Configuration for the GitHub data repository.
    """

    owner: str = Field(
        default="lordtoepel",
        alias="GITHUB_DATA_OWNER",
        description="Owner (user or organization) of the data repository.",
    )
    repo: str = Field(
        default="leanscale-data",
        alias="GITHUB_DATA_REPO",
        description="Name of the data repository.",
    )
    branch: str = Field(
        default="main",
        alias="GITHUB_DATA_BRANCH",
        description="Branch all reads and writes are made against.",
    )
    token: Optional[str] = Field(
        default=None,
        alias="GITHUB_DATA_TOKEN",
        description="Access token sent as a bearer token to the contents API.",
    )
    api_url: str = Field(
        default="https://api.github.com",
        alias="GITHUB_API_URL",
        description="Base URL of the GitHub REST API.",
    )
    cache_ttl: int = Field(
        default=60,
        ge=0,
        alias="GITHUB_DATA_CACHE_TTL",
        description="Seconds a bucket listing stays cached. 0 disables caching.",
    )
    timeout: float = Field(
        default=10.0,
        gt=0,
        alias="GITHUB_DATA_TIMEOUT",
        description="Timeout for each outbound API call. (Seconds)",
    )
    read_retries: int = Field(
        default=3,
        ge=0,
        alias="GITHUB_DATA_READ_RETRIES",
        description="Extra attempts for idempotent reads after a transient failure.",
    )
    retry_backoff: float = Field(
        default=0.5,
        ge=0,
        alias="GITHUB_DATA_RETRY_BACKOFF",
        description="Base delay for exponential read backoff. (Seconds)",
    )
    conflict_retries: int = Field(
        default=3,
        ge=0,
        alias="GITHUB_DATA_CONFLICT_RETRIES",
        description="Extra attempts for a write whose content hash precondition failed.",
    )
    entities: Dict[str, EntityDefinition] = Field(
        default_factory=lambda: dict(DEFAULT_ENTITIES),
        alias="GITHUB_DATA_ENTITIES",
        description="Entity type table: directory path and scoped flag per entity.",
    )
    webhook_enabled: bool = Field(
        default=False,
        alias="GITHUB_WEBHOOK_ENABLED",
        description="Accept webhook deliveries for cache invalidation.",
    )
    webhook_secret: Optional[str] = Field(
        default=None,
        alias="GITHUB_WEBHOOK_SECRET",
        description="Shared secret for X-Hub-Signature-256 verification.",
    )

    @property
    def full_name(self) -> str:
        """Repository identity as reported by webhook payloads (owner/repo)."""
        return f"{self.owner}/{self.repo}"

    def is_known(self, entity_type: str) -> bool:
        """Whether the entity type appears in the entity table."""
        return entity_type in self.entities

    def is_scoped(self, entity_type: str) -> bool:
        """Scoped flag for an entity type; unknown types are treated as scoped."""
        definition = self.entities.get(entity_type)
        return definition.scoped if definition is not None else True

    def entity_path(self, entity_type: str) -> str:
        """Directory for an entity type; unknown types use their own name."""
        definition = self.entities.get(entity_type)
        return definition.path if definition is not None else entity_type

    def entity_for_directory(self, directory: str) -> Optional[str]:
        """Reverse lookup of entity_path; None when no entity lives there."""
        if directory in self.entities and self.entities[directory].path == directory:
            return directory
        for entity_type, definition in self.entities.items():
            if definition.path == directory:
                return entity_type
        return None


class CacheSettings(FactoryBaseSettings):
    """
    Bucket cache backend configuration.
    """

    backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        alias="REPODATA_CACHE_BACKEND",
        description="Cache store: in-process memory or a shared sqlite file.",
    )
    sqlite_path: Path = Field(
        default=APP_ROOT / ".cache" / "repodata_cache.db",
        alias="REPODATA_CACHE_PATH",
        description="Path to the SQLite database used by the sqlite backend.",
    )


class HookServerSettings(FactoryBaseSettings):
    """
    Hookserver API configuration settings.
    """

    host: str = Field(
        default="localhost",
        alias="HOOKSERVER_HOST",
        description="Host for the hookserver.",
    )
    port: int = Field(
        default=8120,
        alias="HOOKSERVER_PORT",
        description="Port for the hookserver.",
    )
    log_level: str = Field(
        default="info",
        alias="HOOKSERVER_LOG_LEVEL",
        description="Log level for the hookserver.",
    )


class AppSettings(FactoryBaseSettings):
    """Application configuration settings."""

    app_root: Path = Field(
        default=Path(APP_ROOT),
        alias="REPODATA_ROOT",
        description="Root directory for application data storage.",
    )
    environment: str = Field(
        default=APP_ENV,
        alias="ENVIRONMENT",
        description="Current application environment (prod, docker, dev).",
    )

    @property
    def logs_dir(self) -> Path:
        """Base directory for logs."""
        return self.app_root / "logs"

    @property
    def cache_dir(self) -> Path:
        """Base directory for cache."""
        return self.app_root / ".cache"


__all__ = [
    "DEFAULT_ENTITIES",
    "AppSettings",
    "CacheSettings",
    "EntityDefinition",
    "GitHubDataSettings",
    "HookServerSettings",
    "config_files",
    "get_settings",
    "reload_settings",
]
