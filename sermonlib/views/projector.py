#!/usr/bin/env python3
"""
projector.py
-------------------
Derives the row-level views the presentation layer renders.

Two projection shapes, selected by the view mode:

    - Expanded by occasion (DETAILS): one row per preaching instance, or a
      single row from the sermon's own date/place when it has no history.
      All rows are sorted ascending by date.
    - Collapsed by sermon (LIST, GRID): one row per sermon, dated by its
      most recent preaching instance.

Rows are ``ExpandedSermon`` values and are rebuilt on every recompute.
Filtering and sorting run after projection, over the projected rows.

Usage:
    from sermonlib.views.projector import build_view

    rows = build_view(store.sermons, settings, filters, column_sort)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Iterable, List, Optional

# --- Local imports ---
from sermonlib.catalog.models import ExpandedSermon, Sermon

from .filters import FilterOptions, filter_rows
from .modes import ColumnSort, ViewMode, ViewSettings
from .sorting import sort_rows


def _plain_row(sermon: Sermon) -> ExpandedSermon:
    return ExpandedSermon(
        sermon=sermon,
        row_id=str(sermon.id),
        date=sermon.date,
        place=sermon.place or "",
        original_date=sermon.date,
        preaching_instance=None,
    )


def expand_by_occasion(sermons: Iterable[Sermon]) -> List[ExpandedSermon]:
    """One row per preaching instance, sorted ascending by date."""
    rows: List[ExpandedSermon] = []
    for sermon in sermons:
        if not sermon.preaching_history:
            rows.append(_plain_row(sermon))
            continue
        for instance in sermon.preaching_history:
            rows.append(
                ExpandedSermon(
                    sermon=sermon,
                    row_id=f"{sermon.id}-{instance.id}",
                    date=instance.date,
                    place=instance.location,
                    original_date=sermon.date,
                    preaching_instance=instance,
                )
            )
    rows.sort(key=lambda row: row.date)
    return rows


def collapse_by_sermon(sermons: Iterable[Sermon]) -> List[ExpandedSermon]:
    """One row per sermon, using its latest preaching instance."""
    rows: List[ExpandedSermon] = []
    for sermon in sermons:
        latest = sermon.latest_instance()
        if latest is None:
            rows.append(_plain_row(sermon))
            continue
        rows.append(
            ExpandedSermon(
                sermon=sermon,
                row_id=str(sermon.id),
                date=latest.date,
                place=latest.location,
                original_date=sermon.date,
                preaching_instance=latest,
            )
        )
    return rows


def project(sermons: Iterable[Sermon], mode: ViewMode) -> List[ExpandedSermon]:
    """Project sermons into rows for the given view mode."""
    if mode.expands_occasions:
        return expand_by_occasion(sermons)
    return collapse_by_sermon(sermons)


def build_view(
    sermons: Iterable[Sermon],
    settings: Optional[ViewSettings] = None,
    filters: Optional[FilterOptions] = None,
    column_sort: Optional[ColumnSort] = None,
) -> List[ExpandedSermon]:
    """
    Project, filter and sort in one pass.

    Args:
        sermons: Sermon collection
        settings: Toolbar settings (view mode and default sort)
        filters: Active filters
        column_sort: Active header sort; overrides the toolbar sort

    Returns:
        Rows ready for rendering
    """
    settings = settings or ViewSettings()
    rows = project(sermons, settings.view_mode)
    rows = filter_rows(rows, filters or FilterOptions())
    return sort_rows(rows, settings, column_sort or ColumnSort())
