#!/usr/bin/env python3
"""
session.py
--------------------
A working session over the sermon catalog.

``CatalogSession`` wires the store to its collaborators:

    - persistence: every committed mutation schedules a debounced write of
      the catalog (without embedded images) under the key ``sermon-data``
    - startup: persisted data with at least one sermon wins; otherwise the
      best auto-backup is loaded; otherwise the catalog starts empty
    - presentation state: view settings, column layout, filters and the
      active column sort travel with the session and into snapshots
    - shutdown: pending writes are flushed, then a close-time auto-backup
      is taken within a hard time bound

Usage:
    with CatalogSession.open(DATA_DIR, settings, logger=logger) as session:
        session.import_csv(Path("sermons.csv"))
        rows = session.rows()
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path
from typing import List, Optional

# --- Local imports ---
from sermonlib.core.backup_manager import AutoBackupManager
from sermonlib.core.config import Settings
from sermonlib.core.exceptions import (
    PersistenceUnavailableError,
    SnapshotSchemaMismatchError,
)
from sermonlib.core.logging_manager import CatalogLogger, area_logger, safe_logger
from sermonlib.core.paths import BACKUP_DIR, PERSISTENCE_KEY
from sermonlib.pipeline.csv_codec import ImportResult, read_csv_file, write_csv_file
from sermonlib.pipeline.snapshot import (
    RestoreReport,
    Snapshot,
    build_snapshot,
    dumps_snapshot,
    loads_snapshot,
    read_snapshot_file,
    resolve_collections,
    restore_snapshot,
    write_snapshot_file,
)
from sermonlib.views.filters import FilterOptions
from sermonlib.views.modes import DEFAULT_COLUMNS, ColumnConfig, ColumnSort, ViewSettings
from sermonlib.views.projector import build_view

from .images import FileImageStore, ImageStore
from .models import ExpandedSermon
from .persistence import DebouncedWriter, KeyValueStore, SqliteBlobStore
from .store import CatalogStore

SOURCE_PERSISTENCE = "persistence"
SOURCE_BACKUP = "backup"
SOURCE_EMPTY = "empty"


class CatalogSession:
    """
    Catalog store plus persistence, backups and presentation state.

    Attributes:
        store: The catalog store
        persistence: Key-value store holding the live catalog
        images: Image collaborator (may be None)
        backups: Auto-backup manager (may be None)
        settings: User settings
        loaded_from: Where ``start()`` found the catalog
    """

    def __init__(
        self,
        persistence: KeyValueStore,
        images: Optional[ImageStore] = None,
        backups: Optional[AutoBackupManager] = None,
        settings: Optional[Settings] = None,
        logger: Optional[CatalogLogger] = None,
    ) -> None:
        self.persistence = persistence
        self.images = images
        self.backups = backups
        self.settings = settings or Settings()
        self.logger = area_logger(logger, "session")
        self._csv_logger = area_logger(logger, "csv")
        self._snapshot_logger = area_logger(logger, "snapshot")

        self.store = CatalogStore(logger=area_logger(logger, "store"))
        self.writer = DebouncedWriter(
            self._write_blob,
            delay=self.settings.debounce_seconds,
            logger=area_logger(logger, "persistence"),
        )

        self.view_settings = ViewSettings()
        self.column_config: List[ColumnConfig] = list(DEFAULT_COLUMNS)
        self.filters = FilterOptions()
        self.column_sort = ColumnSort()

        self.loaded_from: Optional[str] = None
        self._unsubscribe = None

    @classmethod
    def open(
        cls,
        data_dir: Path,
        settings: Optional[Settings] = None,
        logger: Optional[CatalogLogger] = None,
    ) -> "CatalogSession":
        """
        Build a session over the standard on-disk layout and start it.

        Args:
            data_dir: Directory holding ``sermons.db`` and ``images/``
            settings: User settings (defaults when None)
            logger: Optional logger

        Raises:
            PersistenceUnavailableError: If the database cannot be opened
        """
        settings = settings or Settings()
        data_dir = Path(data_dir)
        session = cls(
            persistence=SqliteBlobStore(
                data_dir / "sermons.db", logger=area_logger(logger, "persistence")
            ),
            images=FileImageStore(data_dir / "images", logger=area_logger(logger, "images")),
            backups=AutoBackupManager(
                settings.default_backup_location or BACKUP_DIR,
                retention_days=settings.retention_days,
                logger=area_logger(logger, "backup"),
            ),
            settings=settings,
            logger=logger,
        )
        session.start()
        return session

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> str:
        """
        Load the catalog and begin persisting mutations.

        Returns:
            The source used: "persistence", "backup" or "empty"

        Raises:
            PersistenceUnavailableError: If the persisted data cannot be read
        """
        log = safe_logger(self.logger)
        snapshot = self._load_persisted()
        source = SOURCE_PERSISTENCE

        if snapshot is None and self.backups is not None:
            snapshot = self.backups.load_best()
            source = SOURCE_BACKUP
            if snapshot is not None and not snapshot.sermons:
                snapshot = None

        if snapshot is None:
            source = SOURCE_EMPTY
        else:
            self.store.replace(*resolve_collections(self.store, snapshot))
            self._apply_presentation(snapshot)

        self.loaded_from = source
        self._unsubscribe = self.store.subscribe(self._on_change)
        log.log_info(
            "Catalog session started",
            {"source": source, "sermons": len(self.store), "series": len(self.store.series)},
        )
        return source

    def _load_persisted(self) -> Optional[Snapshot]:
        blob = self.persistence.get(PERSISTENCE_KEY)
        if not blob:
            return None
        try:
            snapshot = loads_snapshot(blob, logger=self._snapshot_logger)
        except SnapshotSchemaMismatchError as e:
            safe_logger(self.logger).log_warning(
                "Persisted catalog unreadable, trying backups", {"error": str(e)}
            )
            return None
        return snapshot if snapshot.sermons else None

    def _apply_presentation(self, snapshot: Snapshot) -> None:
        self.view_settings = snapshot.view_settings
        self.column_config = list(snapshot.column_config)
        self.filters = snapshot.filters

    def _write_blob(self, blob: str) -> None:
        self.persistence.put(PERSISTENCE_KEY, blob)

    def _on_change(self, operation: str) -> None:
        self.writer.schedule(self.serialize())

    def serialize(self) -> str:
        """Catalog and presentation state as persisted (no embedded images)."""
        return dumps_snapshot(self.snapshot(include_images=False))

    def save_now(self) -> None:
        """
        Write the current state immediately, bypassing the quiet window.

        Raises:
            PersistenceUnavailableError: If the write fails
        """
        self.writer.cancel()
        self._write_blob(self.serialize())

    def close(self, backup: bool = True) -> Optional[Path]:
        """
        Flush pending writes and take the close-time auto-backup.

        Never raises: persistence failures are logged and the backup is
        bounded by ``settings.backup_timeout_seconds``.

        Returns:
            Path of the auto-backup, or None if none was taken
        """
        log = safe_logger(self.logger)
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        try:
            self.writer.flush()
        except PersistenceUnavailableError as e:
            log.log_error(e, {"operation": "close_flush"})

        backup_path = None
        if backup and self.backups is not None and len(self.store) > 0:
            backup_path = self.backups.backup_on_close(
                self.snapshot, timeout=self.settings.backup_timeout_seconds
            )

        dispose = getattr(self.persistence, "dispose", None)
        if callable(dispose):
            dispose()

        log.log_info("Catalog session closed", {"backup": str(backup_path) if backup_path else None})
        return backup_path

    def __enter__(self) -> "CatalogSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # -------------------------------------------------------------------------
    # Views
    # -------------------------------------------------------------------------

    def rows(self) -> List[ExpandedSermon]:
        """Rows for the current view mode, filters and sort."""
        return build_view(
            self.store.sermons, self.view_settings, self.filters, self.column_sort
        )

    def toggle_column_sort(self, column: str) -> ColumnSort:
        self.column_sort = self.column_sort.toggle(column)
        return self.column_sort

    # -------------------------------------------------------------------------
    # Interchange and backups
    # -------------------------------------------------------------------------

    def snapshot(self, include_images: bool = True) -> Snapshot:
        return build_snapshot(
            self.store,
            self.images if include_images else None,
            view_settings=self.view_settings,
            column_config=self.column_config,
            filters=self.filters,
            logger=self._snapshot_logger,
        )

    def import_csv(self, path: Path) -> ImportResult:
        """Parse a CSV file and append its sermons to the catalog."""
        result = read_csv_file(path, logger=self._csv_logger)
        if result.sermons:
            self.store.import_sermons(result.sermons)
        return result

    def export_csv(self, path: Path) -> int:
        """
        Raises:
            ExportError: If the file cannot be written
        """
        return write_csv_file(path, self.store.sermons, logger=self._csv_logger)

    def backup(self, path: Optional[Path] = None) -> Path:
        """
        Write a full snapshot with embedded images.

        Without a path, a timestamped manual backup is written to the
        backup directory.

        Raises:
            BackupError: If the backup cannot be written
        """
        snapshot = self.snapshot()
        if path is not None:
            return write_snapshot_file(Path(path), snapshot, logger=self._snapshot_logger)
        if self.backups is None:
            return write_snapshot_file(
                BACKUP_DIR / "SermonLibrary_Backup.slb", snapshot, logger=self._snapshot_logger
            )
        return self.backups.create_backup(snapshot, auto=False)

    def restore(self, path: Path) -> RestoreReport:
        """
        Replace the catalog with a snapshot file's contents.

        Raises:
            BackupError: If the file cannot be read
            SnapshotSchemaMismatchError: If it does not hold a JSON object
        """
        snapshot = read_snapshot_file(Path(path), logger=self._snapshot_logger)
        report = restore_snapshot(
            self.store, snapshot, self.images, logger=self._snapshot_logger
        )
        self._apply_presentation(snapshot)
        # The replace already scheduled a write without the new presentation
        if self._unsubscribe is not None:
            self.writer.schedule(self.serialize())
        return report
