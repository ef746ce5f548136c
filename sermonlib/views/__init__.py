"""
sermonlib.views
---------------
Projection, filtering and sorting of the catalog into renderable rows.
"""
from .filters import FilterOptions, column_value, filter_rows
from .modes import (
    DEFAULT_COLUMNS,
    ColumnConfig,
    ColumnSort,
    SortDirection,
    SortKey,
    ViewMode,
    ViewSettings,
)
from .projector import build_view, project
from .sorting import sort_rows

__all__ = [
    "DEFAULT_COLUMNS",
    "ColumnConfig",
    "ColumnSort",
    "FilterOptions",
    "SortDirection",
    "SortKey",
    "ViewMode",
    "ViewSettings",
    "build_view",
    "column_value",
    "filter_rows",
    "project",
    "sort_rows",
]
