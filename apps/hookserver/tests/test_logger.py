"""
Tests for log file archiving and the logging config.
"""

import os
from datetime import datetime, timezone

from hookserver.logger import (
    archive_log_file,
    build_logging_config,
    list_archives,
    prune_archives,
)

NOW = datetime(2026, 3, 2, 8, 30, 0, tzinfo=timezone.utc)


def write(path, text="{}\n", mtime=None):
    path.write_text(text)
    if mtime is not None:
        os.utime(path, (mtime, mtime))
    return path


class TestArchiveLogFile:
    def test_archives_non_empty_log(self, tmp_path):
        log_file = write(tmp_path / "hookserver.jsonl")
        archive = archive_log_file(log_file, now=NOW)
        assert archive == tmp_path / "hookserver_20260302_083000.jsonl"
        assert not log_file.exists()

    def test_skips_empty_or_missing_log(self, tmp_path):
        log_file = tmp_path / "hookserver.jsonl"
        assert archive_log_file(log_file, now=NOW) is None
        write(log_file, "")
        assert archive_log_file(log_file, now=NOW) is None

    def test_recent_archive_blocks_another(self, tmp_path):
        write(tmp_path / "hookserver_20260302_010000.jsonl")
        log_file = write(tmp_path / "hookserver.jsonl")
        assert archive_log_file(log_file, now=NOW) is None
        assert log_file.exists()

    def test_day_old_archive_allows_another(self, tmp_path):
        write(tmp_path / "hookserver_20260301_083000.jsonl")
        log_file = write(tmp_path / "hookserver.jsonl")
        assert archive_log_file(log_file, now=NOW) is not None

    def test_unparseable_archive_name(self, tmp_path):
        write(tmp_path / "hookserver_backup.jsonl")
        log_file = write(tmp_path / "hookserver.jsonl")
        assert archive_log_file(log_file, now=NOW) is None


def test_prune_keeps_newest(tmp_path):
    log_file = tmp_path / "hookserver.jsonl"
    for day in range(1, 6):
        write(tmp_path / f"hookserver_202603{day:02d}_000000.jsonl", mtime=1_700_000_000 + day)

    deleted = prune_archives(log_file, keep=2)

    assert [p.name for p in list_archives(log_file)] == [
        "hookserver_20260305_000000.jsonl",
        "hookserver_20260304_000000.jsonl",
    ]
    assert len(deleted) == 3


def test_logging_config(tmp_path):
    config = build_logging_config(tmp_path / "x.jsonl", "DEBUG")
    assert config["handlers"]["file"]["filename"] == str(tmp_path / "x.jsonl")
    assert config["loggers"]["hookserver"]["propagate"] is False
    assert "repodata" not in config["loggers"]
