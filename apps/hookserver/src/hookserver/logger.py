# region Docstring
"""
hookserver.logger
Logging for the Hookserver process.
Overview:
- JSON lines (python-json-logger) to `<logs_dir>/hookserver.jsonl`, plain text to the
    console, both at HOOKSERVER_LOG_LEVEL.
- The `hookserver` logger does not propagate; library loggers (`repodata.*`) reach the
    same handlers through the root logger.
- At startup the previous log file is archived as `hookserver_YYYYmmdd_HHMMSS.jsonl` when
    the newest archive is at least a day old, and only the newest archives are kept.
"""
# endregion
# region Imports
import logging
from datetime import datetime, timedelta, timezone
from logging import Logger as T_Logger
from logging.config import dictConfig
from pathlib import Path
from typing import Any, Dict, List, Optional

from pythonjsonlogger.json import JsonFormatter  # type: ignore # noqa F401

from repodata.utils import get_time

from .config import api_settings, app_settings

ARCHIVE_STAMP = "%Y%m%d_%H%M%S"
ARCHIVE_MAX_AGE = timedelta(days=1)
ARCHIVES_KEPT = 10

__log_file_path__: Path = app_settings.logs_dir / "hookserver.jsonl"
__log_level__: str = api_settings.log_level.upper()

logger: T_Logger = logging.getLogger("hookserver")
system_logger = logger.getChild("SYSTEM")

# endregion
# region Config


def build_logging_config(log_file: Path, level: str) -> Dict[str, Any]:
    handlers = ["file", "console"]
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "()": "pythonjsonlogger.json.JsonFormatter",
                "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
            },
            "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"},
        },
        "handlers": {
            "file": {
                "class": "logging.FileHandler",
                "filename": str(log_file),
                "formatter": "json",
                "level": level,
            },
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "standard",
                "level": level,
            },
        },
        "loggers": {
            "hookserver": {"handlers": handlers, "level": level, "propagate": False},
        },
        "root": {"handlers": handlers, "level": level},
    }


# endregion
# region Archives


def list_archives(log_file: Path) -> List[Path]:
    """Archived log files, newest first."""
    return sorted(
        log_file.parent.glob(f"{log_file.stem}_*{log_file.suffix}"),
        key=lambda f: f.stat().st_mtime,
        reverse=True,
    )


def _archive_time(log_file: Path, archive: Path) -> Optional[datetime]:
    stamp = archive.stem[len(log_file.stem) + 1:]
    try:
        return datetime.strptime(stamp, ARCHIVE_STAMP).replace(tzinfo=timezone.utc)
    except ValueError:
        return None


def archive_log_file(log_file: Path, now: Optional[datetime] = None) -> Optional[Path]:
    """
    Rename a non-empty log file to a timestamped archive.

    Returns:
        Optional[Path]: The archive path, or None when nothing was archived.
    """
    now = now or get_time()
    archives = list_archives(log_file)
    if archives:
        newest = _archive_time(log_file, archives[0])
        if newest is None:
            system_logger.warning(f"Unparseable archive name {archives[0]}, not archiving")
            return None
        if now - newest < ARCHIVE_MAX_AGE:
            return None

    if not log_file.exists() or log_file.stat().st_size == 0:
        return None
    archive = log_file.with_name(f"{log_file.stem}_{now.strftime(ARCHIVE_STAMP)}{log_file.suffix}")
    log_file.rename(archive)
    return archive


def prune_archives(log_file: Path, keep: int = ARCHIVES_KEPT) -> List[Path]:
    """Delete all but the newest `keep` archives; returns the deleted paths."""
    stale = list_archives(log_file)[keep:]
    for archive in stale:
        archive.unlink()
    return stale


# endregion
# region Setup


def setup_logging(log_file: Path = __log_file_path__, level: str = __log_level__) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    archived = archive_log_file(log_file)
    pruned = prune_archives(log_file)
    dictConfig(build_logging_config(log_file, level))
    if archived:
        system_logger.debug(f"Archived previous log to {archived}")
    for path in pruned:
        system_logger.debug(f"Deleted old log archive {path}")
    system_logger.debug("Logger for hookserver initialized.")


setup_logging()

# endregion
