#!/usr/bin/env python3
"""
sorting.py
-------------------
Ordering of projected rows.

An active column sort (header click) takes precedence over the toolbar
sort settings. Both sorts are stable.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import Any, Callable, Dict, List

# --- Local imports ---
from sermonlib.catalog.models import ExpandedSermon

from .filters import column_value
from .modes import ColumnSort, SortDirection, SortKey, ViewSettings

SortKeyFunc = Callable[[ExpandedSermon], Any]

SETTINGS_KEYS: Dict[SortKey, SortKeyFunc] = {
    SortKey.TITLE: lambda row: row.title.casefold(),
    SortKey.DATE: lambda row: row.date,
    SortKey.SERIES: lambda row: (row.series or "").casefold(),
    SortKey.FIRST_PREACHED: lambda row: row.sermon.first_preached,
    SortKey.LAST_PREACHED: lambda row: row.sermon.last_preached,
}

COLUMN_KEYS: Dict[str, SortKeyFunc] = {
    "date": lambda row: row.date,
    "firstPreached": lambda row: row.sermon.first_preached,
    "lastPreached": lambda row: row.sermon.last_preached,
    "preachingHistory": lambda row: row.sermon.preaching_count,
    "fileSize": lambda row: row.sermon.file_size or 0,
    "lastModified": lambda row: (
        row.sermon.last_modified.timestamp() if row.sermon.last_modified else 0.0
    ),
}


def _column_key(column: str) -> SortKeyFunc:
    if column in COLUMN_KEYS:
        return COLUMN_KEYS[column]
    return lambda row: column_value(row, column).casefold()


def sort_rows(
    rows: List[ExpandedSermon],
    settings: ViewSettings,
    column_sort: ColumnSort = ColumnSort(),
) -> List[ExpandedSermon]:
    """
    Sort rows by the active column sort, else by the toolbar settings.

    Returns:
        A new sorted list
    """
    if column_sort.is_active:
        key = _column_key(column_sort.column)
        descending = column_sort.direction is SortDirection.DESC
    else:
        key = SETTINGS_KEYS[settings.sort_by]
        descending = settings.sort_order is SortDirection.DESC

    return sorted(rows, key=key, reverse=descending)
