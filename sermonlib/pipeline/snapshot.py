#!/usr/bin/env python3
"""
snapshot.py
-------------------
Full-catalog snapshots (``.slb`` backup files).

A snapshot is a UTF-8 JSON document holding everything needed to rebuild
the library on another machine:

    {
      "version": "1.0",
      "timestamp": "2025-01-05T10:00:00.000Z",
      "sermons": [...],
      "series": [...],
      "viewSettings": {"sortBy": "lastPreached", "sortOrder": "desc", "viewMode": "list"},
      "columnConfig": [{"key": "date", "label": "Date", "visible": true, "order": 0}, ...],
      "filters": {...},
      "images": {"<original ref>": {"base64": "...", "mimeType": "image/jpeg",
                                    "originalPath": "<original ref>"}}
    }

Loading is tolerant: individual malformed sermon or series records are
skipped with a warning, and a missing (or non-list) collection loads as
None. Only a document that is not a JSON object at all is rejected.

Restore swaps the catalog in one commit. A collection the document does
not carry keeps its current contents; when only series are missing, the
restored sermons are linked into the current series. Embedded images are
written locally first, and sermons whose image reference matches an
embedded original are pointed at the restored file.

Programmatic API:
    from sermonlib.pipeline.snapshot import build_snapshot, write_snapshot_file
    snapshot = build_snapshot(store, image_store, logger=logger)
    path = write_snapshot_file(backup_dir / "library.slb", snapshot)

    snapshot = read_snapshot_file(path, logger=logger)
    report = restore_snapshot(store, snapshot, image_store, logger=logger)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

# --- Local imports ---
from sermonlib.catalog.images import ImagePayload, ImageStore
from sermonlib.catalog.models import Series, Sermon, canonicalize
from sermonlib.catalog.store import CatalogStore
from sermonlib.core.exceptions import (
    BackupError,
    SnapshotSchemaMismatchError,
    ValidationError,
)
from sermonlib.core.logging_manager import CatalogLogger, safe_logger
from sermonlib.core.paths import SNAPSHOT_SUFFIX
from sermonlib.views.filters import FilterOptions
from sermonlib.views.modes import (
    DEFAULT_COLUMNS,
    ColumnConfig,
    ViewSettings,
    columns_from_list,
)

SNAPSHOT_VERSION = "1.0"
FALLBACK_IMAGE_NAME = "restored_image.jpg"


def utc_timestamp() -> str:
    """Current time as ISO 8601 UTC with millisecond precision."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class Snapshot:
    """
    In-memory form of a snapshot document.

    ``sermons`` and ``series`` are None when the document did not carry
    them. ``warnings`` collects records skipped while loading; it is not
    serialized.
    """
    sermons:       Optional[List[Sermon]]
    series:        Optional[List[Series]]
    version:       str                     = SNAPSHOT_VERSION
    timestamp:     str                     = field(default_factory=utc_timestamp)
    view_settings: ViewSettings            = field(default_factory=ViewSettings)
    column_config: List[ColumnConfig]      = field(default_factory=lambda: list(DEFAULT_COLUMNS))
    filters:       FilterOptions           = field(default_factory=FilterOptions)
    images:        Dict[str, ImagePayload] = field(default_factory=dict)
    warnings:      List[str]               = field(default_factory=list)

    @property
    def sermon_total(self) -> int:
        return len(self.sermons or [])

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"version": self.version, "timestamp": self.timestamp}
        if self.sermons is not None:
            data["sermons"] = [s.to_dict() for s in self.sermons]
        if self.series is not None:
            data["series"] = [s.to_dict() for s in self.series]
        data.update(
            {
                "viewSettings": self.view_settings.to_dict(),
                "columnConfig": [c.to_dict() for c in self.column_config],
                "filters": self.filters.to_dict(),
                "images": {ref: p.to_dict() for ref, p in self.images.items()},
            }
        )
        return data

    @classmethod
    def from_dict(
        cls, data: Any, logger: Optional[CatalogLogger] = None
    ) -> "Snapshot":
        """
        Build a snapshot from a decoded JSON document.

        Raises:
            SnapshotSchemaMismatchError: If the document is not an object
        """
        if not isinstance(data, dict):
            raise SnapshotSchemaMismatchError(
                f"Snapshot must be a JSON object, got {type(data).__name__}"
            )

        log = safe_logger(logger)
        warnings: List[str] = []

        def _records(key: str) -> Optional[List[Any]]:
            value = data.get(key)
            if value is None:
                return None
            if not isinstance(value, list):
                warnings.append(f"'{key}' is not a list; ignored")
                return None
            return value

        sermons: Optional[List[Sermon]] = None
        sermon_records = _records("sermons")
        if sermon_records is not None:
            sermons = []
            for index, record in enumerate(sermon_records):
                try:
                    sermons.append(Sermon.from_dict(record))
                except (ValidationError, TypeError, ValueError) as e:
                    warnings.append(f"sermon #{index}: {e}")

        series: Optional[List[Series]] = None
        series_records = _records("series")
        if series_records is not None:
            series = []
            for index, record in enumerate(series_records):
                try:
                    series.append(Series.from_dict(record))
                except (ValidationError, TypeError, ValueError) as e:
                    warnings.append(f"series #{index}: {e}")

        images: Dict[str, ImagePayload] = {}
        raw_images = data.get("images")
        if isinstance(raw_images, dict):
            for ref, payload in raw_images.items():
                try:
                    images[str(ref)] = ImagePayload.from_dict(payload, original_path=str(ref))
                except ValidationError as e:
                    warnings.append(f"image {ref!r}: {e}")

        for message in warnings:
            log.log_warning("Skipped snapshot record", {"reason": message})

        return cls(
            sermons=sermons,
            series=series,
            version=str(data.get("version") or SNAPSHOT_VERSION),
            timestamp=str(data.get("timestamp") or utc_timestamp()),
            view_settings=ViewSettings.from_dict(data.get("viewSettings")),
            column_config=columns_from_list(data.get("columnConfig")),
            filters=FilterOptions.from_dict(data.get("filters")),
            images=images,
            warnings=warnings,
        )


# --- Encoding ---
def dumps_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot.to_dict(), indent=2, ensure_ascii=False)


def loads_snapshot(text: str, logger: Optional[CatalogLogger] = None) -> Snapshot:
    """
    Decode snapshot JSON text.

    Raises:
        SnapshotSchemaMismatchError: If the text is not a JSON object
    """
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise SnapshotSchemaMismatchError(f"Snapshot is not valid JSON: {e}") from e
    return Snapshot.from_dict(data, logger=logger)


def sermon_count(document: Any) -> int:
    """Number of sermon records in a decoded snapshot document (0 if none)."""
    if isinstance(document, dict) and isinstance(document.get("sermons"), list):
        return len(document["sermons"])
    return 0


# --- Building ---
def collect_images(
    sermons: List[Sermon],
    image_store: Optional[ImageStore],
    logger: Optional[CatalogLogger] = None,
) -> Dict[str, ImagePayload]:
    """Embed every distinct sermon image; unreadable ones are skipped."""
    images: Dict[str, ImagePayload] = {}
    if image_store is None:
        return images

    log = safe_logger(logger)
    for sermon in sermons:
        ref = sermon.image
        if not ref or ref in images:
            continue
        try:
            payload = image_store.to_embeddable(ref)
        except OSError as e:
            log.log_warning("Cannot read sermon image", {"ref": ref, "error": str(e)})
            continue
        if payload is None:
            log.log_warning("Sermon image not found", {"ref": ref, "sermon": sermon.title})
            continue
        images[ref] = payload
    return images


def build_snapshot(
    store: CatalogStore,
    image_store: Optional[ImageStore] = None,
    view_settings: Optional[ViewSettings] = None,
    column_config: Optional[List[ColumnConfig]] = None,
    filters: Optional[FilterOptions] = None,
    logger: Optional[CatalogLogger] = None,
) -> Snapshot:
    """
    Capture the current catalog and presentation state.

    Args:
        store: Catalog to capture
        image_store: Image collaborator; None omits images
        view_settings: Toolbar state to persist
        column_config: Column layout to persist
        filters: Active filters to persist
        logger: Optional logger

    Returns:
        Snapshot ready for ``dumps_snapshot``
    """
    sermons = store.sermons
    return Snapshot(
        sermons=sermons,
        series=store.series,
        view_settings=view_settings or ViewSettings(),
        column_config=list(column_config or DEFAULT_COLUMNS),
        filters=filters or FilterOptions(),
        images=collect_images(sermons, image_store, logger),
    )


# --- Files ---
def write_snapshot_file(
    path: Path, snapshot: Snapshot, logger: Optional[CatalogLogger] = None
) -> Path:
    """
    Write a snapshot to disk, adding the ``.slb`` suffix when missing.

    Raises:
        BackupError: If the file cannot be written
    """
    path = Path(path)
    if path.suffix != SNAPSHOT_SUFFIX:
        path = path.with_name(path.name + SNAPSHOT_SUFFIX)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dumps_snapshot(snapshot), encoding="utf-8")
    except OSError as e:
        safe_logger(logger).log_error(e, {"operation": "write_snapshot", "path": str(path)})
        raise BackupError(f"Failed to write backup {path}: {e}") from e

    safe_logger(logger).log_operation(
        "snapshot_written",
        {"path": str(path), "sermons": snapshot.sermon_total, "images": len(snapshot.images)},
    )
    return path


def read_snapshot_file(path: Path, logger: Optional[CatalogLogger] = None) -> Snapshot:
    """
    Read a snapshot file.

    Raises:
        BackupError: If the file cannot be read
        SnapshotSchemaMismatchError: If it does not hold a JSON object
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise BackupError(f"Cannot read backup {path}: {e}") from e
    return loads_snapshot(text, logger=logger)


# --- Restore ---
@dataclass(frozen=True)
class RestoreReport:
    """Summary of a completed restore."""
    sermons:         int
    series:          int
    images_restored: int
    images_failed:   int


def _image_file_name(ref: str) -> str:
    return ref.replace("\\", "/").rsplit("/", 1)[-1] or FALLBACK_IMAGE_NAME


def resolve_collections(
    store: CatalogStore, snapshot: Snapshot
) -> Tuple[List[Sermon], List[Series]]:
    """
    Sermons and series a restore should commit.

    A collection missing from the snapshot keeps the store's current one.
    With series missing, each restored sermon is linked into the current
    series so no reference is left without a record.
    """
    sermons = store.sermons if snapshot.sermons is None else list(snapshot.sermons)
    if snapshot.series is not None:
        return sermons, list(snapshot.series)

    series = store.series
    for sermon in sermons:
        series = CatalogStore.link_series(series, canonicalize(sermon))
    return sermons, series


def restore_snapshot(
    store: CatalogStore,
    snapshot: Snapshot,
    image_store: Optional[ImageStore] = None,
    logger: Optional[CatalogLogger] = None,
) -> RestoreReport:
    """
    Replace the catalog with the snapshot's contents.

    Embedded images are materialized first. Sermon image references equal
    to an embedded original are rewritten to the restored file; others are
    left as they are. Collections absent from the snapshot are kept (see
    ``resolve_collections``). Series are reconciled against the restored
    sermons and the catalog is swapped in a single commit.

    Returns:
        RestoreReport with counts
    """
    log = safe_logger(logger)
    remapped: Dict[str, str] = {}
    failed = 0

    if image_store is not None:
        for original, payload in snapshot.images.items():
            try:
                new_ref = image_store.from_embeddable(payload, _image_file_name(original))
            except OSError as e:
                log.log_warning("Failed to restore image", {"ref": original, "error": str(e)})
                new_ref = None
            if new_ref:
                remapped[original] = new_ref
            else:
                failed += 1

    sermons, series = resolve_collections(store, snapshot)
    sermons = [
        replace(s, image=remapped[s.image]) if s.image in remapped else s
        for s in sermons
    ]
    store.replace(sermons, series)

    report = RestoreReport(
        sermons=len(store),
        series=len(store.series),
        images_restored=len(remapped),
        images_failed=failed,
    )
    log.log_operation(
        "snapshot_restored",
        {
            "sermons": report.sermons,
            "series": report.series,
            "images_restored": report.images_restored,
            "images_failed": report.images_failed,
            "skipped_records": len(snapshot.warnings),
        },
    )
    return report
