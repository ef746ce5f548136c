#!/usr/bin/env python3
"""
modes.py
-------------------
Presentation state as explicit tagged values.

Defines the view mode (which projection shape is used), the toolbar sort
settings, the tri-state column sort, and the column configuration. All of
them serialize to the snapshot schema (``viewSettings``, ``columnConfig``).
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Optional


class ViewMode(str, Enum):
    """Presentation mode; DETAILS expands sermons by occasion."""
    LIST = "list"
    GRID = "grid"
    DETAILS = "details"

    @property
    def expands_occasions(self) -> bool:
        return self is ViewMode.DETAILS


class SortKey(str, Enum):
    """Toolbar sort fields."""
    TITLE = "title"
    DATE = "date"
    SERIES = "series"
    FIRST_PREACHED = "firstPreached"
    LAST_PREACHED = "lastPreached"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"
    NONE = "none"


def _enum_or_default(enum_cls, value: Any, default):
    try:
        return enum_cls(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class ViewSettings:
    """Toolbar sort and view-mode selection."""
    sort_by:    SortKey       = SortKey.LAST_PREACHED
    sort_order: SortDirection = SortDirection.DESC
    view_mode:  ViewMode      = ViewMode.LIST

    def to_dict(self) -> Dict[str, str]:
        return {
            "sortBy": self.sort_by.value,
            "sortOrder": self.sort_order.value,
            "viewMode": self.view_mode.value,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "ViewSettings":
        """Build settings, falling back to defaults for unknown values."""
        if not isinstance(data, dict):
            return cls()
        order = _enum_or_default(SortDirection, data.get("sortOrder"), SortDirection.DESC)
        if order is SortDirection.NONE:
            order = SortDirection.DESC
        return cls(
            sort_by=_enum_or_default(SortKey, data.get("sortBy"), SortKey.LAST_PREACHED),
            sort_order=order,
            view_mode=_enum_or_default(ViewMode, data.get("viewMode"), ViewMode.LIST),
        )


@dataclass(frozen=True)
class ColumnSort:
    """
    Tri-state header sort.

    Clicking the active column cycles asc -> desc -> none; clicking another
    column starts it at asc.
    """
    column:    Optional[str] = None
    direction: SortDirection = SortDirection.NONE

    @property
    def is_active(self) -> bool:
        return bool(self.column) and self.direction is not SortDirection.NONE

    def toggle(self, column: str) -> "ColumnSort":
        if column != self.column or self.direction is SortDirection.NONE:
            return ColumnSort(column, SortDirection.ASC)
        if self.direction is SortDirection.ASC:
            return ColumnSort(column, SortDirection.DESC)
        return ColumnSort()


@dataclass(frozen=True)
class ColumnConfig:
    """One column of the details table."""
    key:     str
    label:   str
    visible: bool = True
    order:   int  = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "key": self.key,
            "label": self.label,
            "visible": self.visible,
            "order": self.order,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ColumnConfig":
        return cls(
            key=str(data["key"]),
            label=str(data.get("label") or data["key"]),
            visible=bool(data.get("visible", True)),
            order=int(data.get("order", 0)),
        )


DEFAULT_COLUMNS: List[ColumnConfig] = [
    ColumnConfig("date", "Date", True, 0),
    ColumnConfig("title", "Title", True, 1),
    ColumnConfig("series", "Series", True, 2),
    ColumnConfig("references", "Scripture", True, 3),
    ColumnConfig("place", "Place", True, 4),
    ColumnConfig("type", "Type", True, 5),
    ColumnConfig("tags", "Tags", True, 6),
    ColumnConfig("lastModified", "Modified", False, 7),
    ColumnConfig("fileSize", "Size", False, 8),
]


def columns_from_list(data: Any) -> List[ColumnConfig]:
    """Parse a column configuration list, defaulting when unusable."""
    if not isinstance(data, list):
        return list(DEFAULT_COLUMNS)
    columns = []
    for item in data:
        if isinstance(item, dict) and item.get("key"):
            try:
                columns.append(ColumnConfig.from_dict(item))
            except (TypeError, ValueError):
                continue
    return columns or list(DEFAULT_COLUMNS)
