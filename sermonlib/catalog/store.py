#!/usr/bin/env python3
"""
store.py
--------------------
The catalog store: the single mutation gateway for sermons and series.

All catalog state lives in an explicit ``CatalogStore`` object instead of
ambient globals. Every mutation builds the new sermon and series lists
first and commits them together, so no operation partially applies.
Listeners are notified after each commit; the view layer uses this to
invalidate projections and the session uses it to schedule persistence.

Key Features:
    - Upsert of sermons with id assignment and history synthesis
    - Canonical date/place maintenance on every write path
    - Series synthesis on first reference to an unseen title
    - Orphaned series pruning via the reconciler after every mutation
    - Bulk import and all-or-nothing full replace (restore)
    - Filter facets (types, places, tags)

Usage:
    store = CatalogStore(logger=logger)
    saved = store.save_sermon(Sermon(id=None, title="Hope", date=date(2024, 12, 1),
                                     series="Advent"))
    store.delete_sermon(saved.id)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional, Tuple

# --- Local imports ---
from sermonlib.core.logging_manager import CatalogLogger, safe_logger
from sermonlib.core.validators import DataValidator

from .decorators import log_catalog_operation, validate_fields
from .models import (
    PreachingInstance,
    Series,
    Sermon,
    canonicalize,
    new_id,
    new_series_id,
)
from .reconciler import reconcile_series

Listener = Callable[[str], None]
"""Callback receiving the name of the mutation that was committed."""


@dataclass(frozen=True)
class Facets:
    """Distinct values offered by the filter drop-downs."""
    types:  Tuple[str, ...]
    places: Tuple[str, ...]
    tags:   Tuple[str, ...]


def _copy_sermon(sermon: Sermon) -> Sermon:
    """Copy a sermon deeply enough that callers cannot mutate store state."""
    return replace(
        sermon,
        tags=list(sermon.tags),
        references=list(sermon.references),
        preaching_history=[replace(i) for i in sermon.preaching_history],
        versions=[replace(v) for v in sermon.versions],
    )


def _copy_series(series: Series) -> Series:
    return replace(series, sermons=list(series.sermons), tags=list(series.tags))


class CatalogStore:
    """
    In-memory catalog of sermons and series.

    Attributes:
        logger: Optional logger for mutation tracking
    """

    def __init__(
        self,
        sermons: Optional[List[Sermon]] = None,
        series: Optional[List[Series]] = None,
        logger: Optional[CatalogLogger] = None,
    ) -> None:
        """
        Initialize the store.

        Initial sermons are canonicalized and the initial series reconciled
        against them.

        Args:
            sermons: Initial sermon collection
            series: Initial series collection
            logger: Optional logger for mutation tracking
        """
        self.logger = logger
        self._sermons: List[Sermon] = [
            canonicalize(_copy_sermon(s)) for s in sermons or []
        ]
        self._series: List[Series] = reconcile_series(
            self._sermons, [_copy_series(s) for s in series or []]
        )
        self._listeners: List[Listener] = []

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def sermons(self) -> List[Sermon]:
        """Copy of the sermon collection, in insertion order."""
        return [_copy_sermon(s) for s in self._sermons]

    @property
    def series(self) -> List[Series]:
        """Copy of the series collection."""
        return [_copy_series(s) for s in self._series]

    def __len__(self) -> int:
        return len(self._sermons)

    def get_sermon(self, sermon_id: str) -> Optional[Sermon]:
        for sermon in self._sermons:
            if sermon.id == sermon_id:
                return _copy_sermon(sermon)
        return None

    def get_series(self, title: str) -> Optional[Series]:
        """Look up a series by its title."""
        wanted = title.strip()
        for item in self._series:
            if item.title.strip() == wanted:
                return _copy_series(item)
        return None

    def series_sermons(self, series: Series) -> List[Sermon]:
        """Sermons currently referencing the given series by title."""
        title = series.title.strip()
        return [
            _copy_sermon(s) for s in self._sermons if (s.series or "").strip() == title
        ]

    def facets(self) -> Facets:
        """
        Distinct sermon types, places and tags, in first-seen order.

        Places include every preaching-instance location as well as the
        sermons' own places.
        """
        types = DataValidator.unique_strings(s.type for s in self._sermons)
        places = DataValidator.unique_strings(
            place
            for s in self._sermons
            for place in [s.place, *(i.location for i in s.preaching_history)]
        )
        tags = DataValidator.unique_strings(t for s in self._sermons for t in s.tags)
        return Facets(types=tuple(types), places=tuple(places), tags=tuple(tags))

    def to_dict(self) -> Dict[str, list]:
        """Serialize sermons and series to snapshot-schema mappings."""
        return {
            "sermons": [s.to_dict() for s in self._sermons],
            "series": [s.to_dict() for s in self._series],
        }

    # -------------------------------------------------------------------------
    # Listeners
    # -------------------------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a callback invoked after every committed mutation.

        Returns:
            A function that removes the listener again
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(
        self, operation: str, sermons: List[Sermon], series: List[Series]
    ) -> None:
        """Swap in new state atomically and notify listeners."""
        self._sermons = sermons
        self._series = series
        for listener in list(self._listeners):
            listener(operation)

    # -------------------------------------------------------------------------
    # Mutation helpers
    # -------------------------------------------------------------------------

    def _prepare(self, sermon: Sermon, is_new: bool) -> Sermon:
        """
        Normalize a sermon for storage.

        Assigns an id, normalizes tags/references/series, synthesizes a
        single preaching instance for new sermons without history and
        restores the canonical date/place invariant.
        """
        prepared = _copy_sermon(sermon)
        prepared.id = prepared.id or new_id()
        prepared.title = prepared.title.strip()
        prepared.series = DataValidator.normalize_string(prepared.series)
        prepared.tags = DataValidator.unique_strings(prepared.tags)
        prepared.references = DataValidator.unique_strings(prepared.references)

        if is_new and not prepared.preaching_history:
            prepared.preaching_history = [
                PreachingInstance(
                    id=new_id(),
                    date=prepared.date,
                    location=prepared.place or "",
                )
            ]

        return canonicalize(prepared)

    @staticmethod
    def link_series(series: List[Series], sermon: Sermon) -> List[Series]:
        """
        Ensure the sermon's series exists and lists the sermon.

        The only place a series is ever created.
        """
        title = sermon.series
        if not title:
            return series

        for index, item in enumerate(series):
            if item.title.strip() == title:
                if sermon.id not in item.sermons:
                    updated = list(series)
                    updated[index] = replace(item, sermons=[*item.sermons, sermon.id])
                    return updated
                return series

        created = Series(
            id=new_series_id(),
            title=title,
            description=f'Auto-created series for "{title}"',
            start_date=sermon.date,
            sermons=[sermon.id],
        )
        return [*series, created]

    def _apply_save(
        self, sermons: List[Sermon], series: List[Series], sermon: Sermon
    ) -> Tuple[List[Sermon], List[Series], Sermon]:
        """Upsert a sermon into working copies of the collections."""
        position = next(
            (i for i, s in enumerate(sermons) if sermon.id and s.id == sermon.id), None
        )
        prepared = self._prepare(sermon, is_new=position is None)

        if position is None:
            sermons = [*sermons, prepared]
        else:
            sermons = list(sermons)
            sermons[position] = prepared

        series = self.link_series(series, prepared)
        return sermons, series, prepared

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    @log_catalog_operation("save_sermon")
    @validate_fields(["title", "date"])
    def save_sermon(self, sermon: Sermon) -> Sermon:
        """
        Insert or update a sermon by id.

        New sermons (no id, or an id not yet stored) get an id and, if they
        carry no preaching history, a synthesized instance from their own
        date/place. A non-blank series title that no series has yet
        synthesizes one. Series are reconciled before committing.

        Args:
            sermon: Sermon as edited

        Returns:
            The stored sermon (copy)

        Raises:
            ValidationError: If the title is empty or the date missing
        """
        sermons, series, prepared = self._apply_save(
            self._sermons, self._series, sermon
        )
        self._commit("save_sermon", sermons, reconcile_series(sermons, series))

        safe_logger(self.logger).log_debug(
            f"Saved sermon: {prepared.title}",
            {"sermon_id": prepared.id, "series": prepared.series},
        )
        return _copy_sermon(prepared)

    @log_catalog_operation("delete_sermon")
    def delete_sermon(self, sermon_id: str) -> bool:
        """
        Remove a sermon and prune series no longer referenced.

        Returns:
            True if a sermon was removed, False for an unknown id
        """
        remaining = [s for s in self._sermons if s.id != sermon_id]
        if len(remaining) == len(self._sermons):
            return False

        self._commit(
            "delete_sermon", remaining, reconcile_series(remaining, self._series)
        )
        return True

    @log_catalog_operation("import_sermons")
    def import_sermons(self, imported: List[Sermon]) -> List[Sermon]:
        """
        Append a batch of sermons through the save path in one commit.

        Args:
            imported: Sermons produced by the interchange importer

        Returns:
            The stored sermons (copies)
        """
        sermons, series = self._sermons, self._series
        saved: List[Sermon] = []
        for sermon in imported:
            sermons, series, prepared = self._apply_save(sermons, series, sermon)
            saved.append(prepared)

        self._commit("import_sermons", sermons, reconcile_series(sermons, series))

        safe_logger(self.logger).log_info(
            "Imported sermons",
            {
                "count": len(saved),
                "instances": sum(len(s.preaching_history) for s in saved),
            },
        )
        return [_copy_sermon(s) for s in saved]

    @log_catalog_operation("replace_catalog")
    def replace(self, sermons: List[Sermon], series: List[Series]) -> None:
        """
        Replace the whole catalog (used by restore).

        Sermons are canonicalized and the series reconciled against them;
        nothing is synthesized. The swap is a single commit.
        """
        new_sermons = [canonicalize(_copy_sermon(s)) for s in sermons]
        new_series = reconcile_series(new_sermons, [_copy_series(s) for s in series])
        self._commit("replace_catalog", new_sermons, new_series)

    @log_catalog_operation("clear_series")
    def clear_series(self, sermon_id: str) -> bool:
        """
        Remove a sermon from its series.

        Returns:
            True if the sermon existed and had a series
        """
        position = next(
            (i for i, s in enumerate(self._sermons) if s.id == sermon_id), None
        )
        if position is None or not self._sermons[position].series:
            return False

        sermons = list(self._sermons)
        sermons[position] = replace(sermons[position], series=None, series_order=None)
        self._commit("clear_series", sermons, reconcile_series(sermons, self._series))
        return True

    @log_catalog_operation("set_series_image")
    def set_series_image(self, series_id: str, image: Optional[str]) -> bool:
        """Set or clear a series' image reference."""
        position = next(
            (i for i, s in enumerate(self._series) if s.id == series_id), None
        )
        if position is None:
            return False

        series = list(self._series)
        series[position] = replace(series[position], image=image or None)
        self._commit("set_series_image", self._sermons, series)
        return True
