# region Docstring
"""
repodata.config.base
Where the application lives and which environment it runs in.
Overview:
- APP_ROOT anchors `.env`, the YAML config files, logs and the sqlite cache. It is the
    REPODATA_ROOT directory when set, otherwise the working directory.
- APP_ENV picks the environment-specific YAML file. An ENVIRONMENT value of prod, docker
    or dev wins; otherwise the root path decides: `/app` is docker, `/srv` is prod,
    anything else is dev.
Both are resolved once, at import.
"""
# endregion
# region Imports
import os
from pathlib import Path
from typing import Literal, Optional

Environment = Literal["prod", "docker", "dev"]

# endregion
# region AppEnv


class AppEnv:
    PROD: Literal["prod"] = "prod"
    DOCKER: Literal["docker"] = "docker"
    DEV: Literal["dev"] = "dev"

    ROOT_VAR = "REPODATA_ROOT"
    ENV_VAR = "ENVIRONMENT"

    @classmethod
    def for_path(cls, path: Path) -> Environment:
        """Environment implied by where the process runs."""
        posix = path.as_posix()
        if posix.startswith("/app"):
            return cls.DOCKER
        if posix.startswith("/srv"):
            return cls.PROD
        return cls.DEV

    @classmethod
    def environment(cls, declared: Optional[str] = None) -> Environment:
        declared = declared if declared is not None else os.getenv(cls.ENV_VAR)
        if declared in (cls.PROD, cls.DOCKER, cls.DEV):
            return declared
        return cls.for_path(Path.cwd())

    @classmethod
    def app_root(cls) -> Path:
        override = os.getenv(cls.ROOT_VAR)
        return Path(override).resolve() if override else Path.cwd().resolve()


# endregion

APP_ROOT: Path = AppEnv.app_root()
"""[Path] Root directory of the application."""
APP_ENV: Environment = AppEnv.environment()
"""[Literal] Environment type."""

__all__ = [
    "APP_ENV",
    "APP_ROOT",
    "AppEnv",
    "Environment",
]
