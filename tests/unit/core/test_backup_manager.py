"""
test_backup_manager.py
----------------------
Unit tests for sermonlib.core.backup_manager.AutoBackupManager.

Covers backup naming and markers, best-backup ranking, the time-bounded
close-time backup and retention cleanup.
"""
import json
import os
import threading
import time
from datetime import datetime, timedelta
from unittest.mock import MagicMock

import pytest

from sermonlib.core.backup_manager import AutoBackupManager
from sermonlib.core.logging_manager import CatalogLogger
from sermonlib.pipeline.snapshot import Snapshot


def _write_backup(directory, name, sermons, mtime):
    path = directory / name
    path.write_text(json.dumps({"version": "1.0", "sermons": [{}] * sermons, "series": []}))
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def manager(tmp_path):
    return AutoBackupManager(tmp_path / "backups", retention_days=30)


class TestCreateBackup:
    """Test create_backup."""

    def test_auto_backup_name_and_marker(self, manager, sample_sermons):
        path = manager.create_backup(Snapshot(sermons=sample_sermons, series=[]))

        assert path.parent == manager.backup_dir
        assert path.name.startswith("SermonLibrary_AutoBackup_")
        assert path.suffix == ".slb"
        assert ":" not in path.name
        assert (path.parent / (path.name + ".marker")).exists()
        assert len(json.loads(path.read_text())["sermons"]) == 3

    def test_manual_backup_prefix(self, manager):
        path = manager.create_backup(Snapshot(sermons=[], series=[]), auto=False)
        assert path.name.startswith("SermonLibrary_Backup_")

    def test_same_timestamp_does_not_overwrite(self, manager, monkeypatch):
        monkeypatch.setattr(
            AutoBackupManager, "_get_timestamp_for_filename", staticmethod(lambda: "fixed")
        )
        first = manager.create_backup(Snapshot(sermons=[], series=[]))
        second = manager.create_backup(Snapshot(sermons=[], series=[]))
        assert first != second
        assert first.exists() and second.exists()


class TestSelectBest:
    """Best auto-backup: most sermons, then newest."""

    def test_no_backup_dir(self, manager):
        assert manager.select_best() is None
        assert manager.load_best() is None

    def test_prefers_sermon_count_over_recency(self, manager):
        manager.backup_dir.mkdir(parents=True)
        now = time.time()
        big_old = _write_backup(manager.backup_dir, "SermonLibrary_AutoBackup_a.slb", 10, now - 3600)
        _write_backup(manager.backup_dir, "SermonLibrary_AutoBackup_b.slb", 3, now)

        assert manager.select_best() == big_old

    def test_tie_broken_by_mtime(self, manager):
        manager.backup_dir.mkdir(parents=True)
        now = time.time()
        _write_backup(manager.backup_dir, "SermonLibrary_AutoBackup_a.slb", 5, now - 100)
        newer = _write_backup(manager.backup_dir, "SermonLibrary_AutoBackup_b.slb", 5, now)

        assert manager.select_best() == newer

    def test_unreadable_counts_as_zero(self, manager):
        manager.backup_dir.mkdir(parents=True)
        now = time.time()
        broken = manager.backup_dir / "SermonLibrary_AutoBackup_z.slb"
        broken.write_text("{not json")
        os.utime(broken, (now, now))
        good = _write_backup(manager.backup_dir, "SermonLibrary_AutoBackup_a.slb", 1, now - 100)

        ranked = manager.rank_auto_backups()
        assert [c.path for c in ranked] == [good, broken]
        assert ranked[1].sermon_count == 0

    def test_manual_backups_not_candidates(self, manager):
        manager.backup_dir.mkdir(parents=True)
        _write_backup(manager.backup_dir, "SermonLibrary_Backup_x.slb", 50, time.time())
        assert manager.select_best() is None

    def test_load_best_returns_snapshot(self, manager, sample_sermons):
        manager.create_backup(Snapshot(sermons=sample_sermons, series=[]))
        snapshot = manager.load_best()
        assert [s.title for s in snapshot.sermons] == ["Hope", "Peace", "Grace"]


class TestBackupOnClose:
    """Time-bounded close-time backup."""

    def test_success_returns_path(self, manager, sample_sermons):
        path = manager.backup_on_close(lambda: Snapshot(sermons=sample_sermons, series=[]))
        assert path is not None and path.exists()

    def test_failure_returns_none(self, tmp_path):
        logger = MagicMock(spec=CatalogLogger)
        manager = AutoBackupManager(tmp_path / "backups", logger=logger)

        def _explode():
            raise RuntimeError("renderer gone")

        assert manager.backup_on_close(_explode) is None
        logger.log_error.assert_called_once()

    def test_timeout_returns_none(self, manager):
        release = threading.Event()

        def _slow():
            release.wait(5)
            return Snapshot(sermons=[], series=[])

        started = time.monotonic()
        result = manager.backup_on_close(_slow, timeout=0.1)
        elapsed = time.monotonic() - started
        release.set()

        assert result is None
        assert elapsed < 2


class TestCleanup:
    """Retention cleanup."""

    def test_removes_expired_auto_backups_only(self, manager):
        manager.backup_dir.mkdir(parents=True)
        old = manager.backup_dir / "SermonLibrary_AutoBackup_old.slb"
        old.write_text("{}")
        (manager.backup_dir / "SermonLibrary_AutoBackup_old.slb.marker").write_text(
            (datetime.now() - timedelta(days=45)).isoformat()
        )
        fresh = manager.create_backup(Snapshot(sermons=[], series=[]))
        manual = manager.backup_dir / "SermonLibrary_Backup_old.slb"
        manual.write_text("{}")
        past = time.time() - 90 * 86400
        os.utime(manual, (past, past))

        removed = manager.cleanup_old_backups()

        assert removed == 1
        assert not old.exists()
        assert fresh.exists()
        assert manual.exists()

    def test_mtime_used_without_marker(self, manager):
        manager.backup_dir.mkdir(parents=True)
        stale = _write_backup(
            manager.backup_dir, "SermonLibrary_AutoBackup_s.slb", 1, time.time() - 40 * 86400
        )
        assert manager.cleanup_old_backups() == 1
        assert not stale.exists()


class TestListBackups:
    """list_backups metadata."""

    def test_lists_types_and_counts(self, manager, sample_sermons):
        manager.create_backup(Snapshot(sermons=sample_sermons, series=[]))
        manager.create_backup(Snapshot(sermons=[], series=[]), auto=False)

        listing = manager.list_backups()

        assert {b["type"] for b in listing} == {"auto", "manual"}
        auto = next(b for b in listing if b["type"] == "auto")
        assert auto["sermons"] == 3
        assert auto["age_days"] == 0
