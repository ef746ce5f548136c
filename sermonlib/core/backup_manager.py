#!/usr/bin/env python3
"""
backup_manager.py
--------------------
Snapshot backup management for the Sermon Library project.

Handles timestamped snapshot backups in a backup directory: automatic
backups taken when a session closes, manual backups, selection of the best
auto-backup to recover from, and retention cleanup.

Features:
    - Timestamped ``.slb`` snapshot files with marker files recording the
      exact creation time
    - Close-time backup bounded by a hard timeout, never raising
    - Best-backup selection: most sermons first, newest first on ties
    - Automatic cleanup of old auto-backups based on retention policy

Usage:
    from sermonlib.core.backup_manager import AutoBackupManager
    from sermonlib.core.paths import BACKUP_DIR

    manager = AutoBackupManager(BACKUP_DIR, retention_days=30)

    # Backup on shutdown (returns None on failure or timeout)
    path = manager.backup_on_close(session.snapshot, timeout=5.0)

    # Recover on startup
    snapshot = manager.load_best()

    # List all backups
    backups = manager.list_backups()
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

# --- Local imports ---
from sermonlib.pipeline.snapshot import (
    Snapshot,
    read_snapshot_file,
    sermon_count,
    utc_timestamp,
    write_snapshot_file,
)

from .exceptions import BackupError, CatalogError
from .logging_manager import CatalogLogger, safe_logger
from .paths import AUTO_BACKUP_PREFIX, SNAPSHOT_SUFFIX

MANUAL_BACKUP_PREFIX = "SermonLibrary_Backup_"
MARKER_SUFFIX = ".marker"
DEFAULT_CLOSE_TIMEOUT = 5.0


@dataclass(frozen=True)
class BackupCandidate:
    """An auto-backup file considered for recovery."""
    path:         Path
    sermon_count: int
    mtime:        float


class AutoBackupManager:
    """
    Handles snapshot backup creation, ranking and cleanup.

    All backups live flat in ``backup_dir``. Auto-backups are named
    ``SermonLibrary_AutoBackup_<timestamp>.slb``; manual ones use the
    ``SermonLibrary_Backup_`` prefix and are never cleaned up.
    """

    def __init__(
        self,
        backup_dir: Path,
        retention_days: int = 30,
        logger: Optional[CatalogLogger] = None,
    ) -> None:
        """
        Initialize backup manager.

        Args:
            backup_dir: Directory for backup storage (created lazily)
            retention_days: Days to retain auto-backups
            logger: Optional logger for backup operations
        """
        self.backup_dir = Path(backup_dir)
        self.retention_days = retention_days
        self.logger = logger

    @staticmethod
    def _get_timestamp_for_filename() -> str:
        """
        Get timestamp string suitable for filenames.

        Returns:
            ISO 8601 UTC timestamp with ':' and '.' replaced by '-'
        """
        return utc_timestamp().replace(":", "-").replace(".", "-")

    @staticmethod
    def _get_timestamp_for_metadata() -> str:
        return datetime.now().isoformat()

    @staticmethod
    def _marker_for(path: Path) -> Path:
        return path.with_name(path.name + MARKER_SUFFIX)

    def _unique_path(self, prefix: str) -> Path:
        base = f"{prefix}{self._get_timestamp_for_filename()}"
        path = self.backup_dir / f"{base}{SNAPSHOT_SUFFIX}"
        counter = 1
        while path.exists():
            path = self.backup_dir / f"{base}_{counter}{SNAPSHOT_SUFFIX}"
            counter += 1
        return path

    def create_backup(self, snapshot: Snapshot, auto: bool = True) -> Path:
        """
        Write a timestamped snapshot backup.

        Args:
            snapshot: Snapshot to write
            auto: Auto-backup (subject to retention) or manual backup

        Returns:
            Path to the created backup file

        Raises:
            BackupError: If the backup cannot be written
        """
        prefix = AUTO_BACKUP_PREFIX if auto else MANUAL_BACKUP_PREFIX
        self.backup_dir.mkdir(parents=True, exist_ok=True)
        backup_path = write_snapshot_file(
            self._unique_path(prefix), snapshot, logger=self.logger
        )

        try:
            self._marker_for(backup_path).write_text(self._get_timestamp_for_metadata())
        except OSError as e:
            raise BackupError(f"Failed to write backup marker: {e}") from e

        safe_logger(self.logger).log_operation(
            "backup_created",
            {
                "backup_type": "auto" if auto else "manual",
                "backup_path": str(backup_path),
                "sermons": snapshot.sermon_total,
                "backup_size": backup_path.stat().st_size,
            },
        )
        return backup_path

    def backup_on_close(
        self,
        snapshot_factory: Callable[[], Snapshot],
        timeout: float = DEFAULT_CLOSE_TIMEOUT,
    ) -> Optional[Path]:
        """
        Take an auto-backup with a hard time bound.

        The snapshot is built and written on a worker thread. If it does not
        finish within ``timeout`` seconds, or fails for any reason, the
        failure is logged and None is returned so shutdown can proceed.

        Args:
            snapshot_factory: Callable producing the snapshot to write
            timeout: Maximum seconds to wait

        Returns:
            Path to backup file if successful, None if failed or timed out
        """
        outcome: Dict[str, Any] = {}

        def _worker() -> None:
            try:
                outcome["path"] = self.create_backup(snapshot_factory(), auto=True)
                self.cleanup_old_backups()
            except Exception as e:
                outcome["error"] = e

        worker = threading.Thread(target=_worker, name="close-backup", daemon=True)
        worker.start()
        worker.join(timeout)

        if worker.is_alive():
            safe_logger(self.logger).log_warning(
                "Close-time backup timed out", {"timeout_seconds": timeout}
            )
            return None

        if "error" in outcome:
            safe_logger(self.logger).log_error(
                outcome["error"], {"operation": "backup_on_close"}
            )
            return None

        return outcome.get("path")

    def _auto_backup_files(self) -> List[Path]:
        if not self.backup_dir.is_dir():
            return []
        return sorted(self.backup_dir.glob(f"{AUTO_BACKUP_PREFIX}*{SNAPSHOT_SUFFIX}"))

    @staticmethod
    def _count_sermons(path: Path) -> int:
        try:
            return sermon_count(json.loads(path.read_text(encoding="utf-8")))
        except (OSError, ValueError):
            return 0

    def rank_auto_backups(self) -> List[BackupCandidate]:
        """
        Rank auto-backups for recovery.

        Sorted by sermon count descending, then modification time
        descending. Unreadable files count as zero sermons.
        """
        candidates = [
            BackupCandidate(
                path=path,
                sermon_count=self._count_sermons(path),
                mtime=path.stat().st_mtime,
            )
            for path in self._auto_backup_files()
        ]
        candidates.sort(key=lambda c: (c.sermon_count, c.mtime), reverse=True)
        return candidates

    def select_best(self) -> Optional[Path]:
        """Path of the best auto-backup, or None when there is none."""
        ranked = self.rank_auto_backups()
        return ranked[0].path if ranked else None

    def load_best(self) -> Optional[Snapshot]:
        """
        Load the best auto-backup.

        Returns:
            Snapshot, or None when there is no usable backup
        """
        best = self.select_best()
        if best is None:
            return None

        try:
            snapshot = read_snapshot_file(best, logger=self.logger)
        except CatalogError as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "load_best_backup", "path": str(best)}
            )
            return None

        safe_logger(self.logger).log_info(
            "Loaded auto-backup",
            {"path": str(best), "sermons": snapshot.sermon_total},
        )
        return snapshot

    def cleanup_old_backups(self) -> int:
        """
        Remove auto-backups older than the retention period.

        Returns:
            Number of backups removed
        """
        cutoff_date = datetime.now() - timedelta(days=self.retention_days)
        removed_count = 0

        for backup_file in self._auto_backup_files():
            marker_file = self._marker_for(backup_file)

            try:
                # Marker file if present, otherwise modification time
                if marker_file.exists():
                    creation_time = datetime.fromisoformat(marker_file.read_text().strip())
                else:
                    creation_time = datetime.fromtimestamp(backup_file.stat().st_mtime)

                if creation_time < cutoff_date:
                    backup_file.unlink(missing_ok=True)
                    marker_file.unlink(missing_ok=True)
                    removed_count += 1

            except (OSError, ValueError) as e:
                safe_logger(self.logger).log_error(
                    e, {"operation": "cleanup_backup", "file": str(backup_file)}
                )

        if removed_count > 0:
            safe_logger(self.logger).log_operation(
                "backup_cleanup",
                {"removed_count": removed_count, "retention_days": self.retention_days},
            )
        return removed_count

    def list_backups(self) -> List[Dict[str, Any]]:
        """
        List all snapshot backups with metadata.

        Returns:
            Backup info dictionaries, sorted by file name
        """
        if not self.backup_dir.is_dir():
            return []

        backups = []
        for backup_file in sorted(self.backup_dir.glob(f"*{SNAPSHOT_SUFFIX}")):
            stat = backup_file.stat()
            created = datetime.fromtimestamp(stat.st_mtime)
            backups.append(
                {
                    "name": backup_file.name,
                    "path": str(backup_file),
                    "type": (
                        "auto" if backup_file.name.startswith(AUTO_BACKUP_PREFIX) else "manual"
                    ),
                    "size": stat.st_size,
                    "sermons": self._count_sermons(backup_file),
                    "created": created.isoformat(),
                    "age_days": (datetime.now() - created).days,
                }
            )
        return backups
