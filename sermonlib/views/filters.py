#!/usr/bin/env python3
"""
filters.py
-------------------
Row filtering over projected views.

Filters run after projection, so in the details view a date range or
place filter matches individual preaching occasions rather than the
sermon's canonical values.

Column terms match against the rendered cell text (``column_value``), the
same text the details table shows.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

# --- Local imports ---
from sermonlib.catalog.models import ExpandedSermon
from sermonlib.core.validators import DataValidator

SEARCH_FIELDS = ("all", "title", "series", "references")


@dataclass(frozen=True)
class FilterOptions:
    """
    Active filters. Empty values are inactive.

    Attributes:
        search_term: Free text, matched case-insensitively
        search_field: One of all/title/series/references
        series: Exact series title
        type: Exact sermon type
        place: Exact row place
        tags: Row passes when it carries any of these tags
        date_range: Inclusive (start, end); either bound may be None
        column_terms: Column key -> case-insensitive substring
    """
    search_term:  str                                        = ""
    search_field: str                                        = "all"
    series:       Optional[str]                              = None
    type:         Optional[str]                              = None
    place:        Optional[str]                              = None
    tags:         Tuple[str, ...]                            = ()
    date_range:   Tuple[Optional[date], Optional[date]]      = (None, None)
    column_terms: Dict[str, str]                             = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        start, end = self.date_range
        return {
            "searchTerm": self.search_term,
            "searchField": self.search_field,
            "series": self.series or "",
            "type": self.type or "",
            "place": self.place or "",
            "tags": list(self.tags),
            "dateRange": {
                "start": start.isoformat() if start else None,
                "end": end.isoformat() if end else None,
            },
            "columnTerms": dict(self.column_terms),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "FilterOptions":
        """Build filters from a snapshot mapping; unusable values are dropped."""
        if not isinstance(data, dict):
            return cls()

        date_range = data.get("dateRange") or {}
        bounds: List[Optional[date]] = []
        for key in ("start", "end"):
            try:
                bounds.append(DataValidator.normalize_date(date_range.get(key)))
            except (AttributeError, ValueError):
                bounds.append(None)

        search_field = data.get("searchField") or "all"
        terms = data.get("columnTerms") or {}

        return cls(
            search_term=str(data.get("searchTerm") or ""),
            search_field=search_field if search_field in SEARCH_FIELDS else "all",
            series=DataValidator.normalize_string(data.get("series")),
            type=DataValidator.normalize_string(data.get("type")),
            place=DataValidator.normalize_string(data.get("place")),
            tags=tuple(DataValidator.unique_strings(data.get("tags"))),
            date_range=(bounds[0], bounds[1]),
            column_terms=(
                {str(k): str(v) for k, v in terms.items() if v}
                if isinstance(terms, dict) else {}
            ),
        )


def column_value(row: ExpandedSermon, key: str) -> str:
    """
    Rendered cell text for a column of the details table.

    Args:
        row: Projected row
        key: Column key

    Returns:
        Display string; empty for unknown keys or missing values
    """
    sermon = row.sermon
    if key == "date":
        return row.date.isoformat()
    if key == "firstPreached":
        return sermon.first_preached.isoformat()
    if key == "lastPreached":
        return sermon.last_preached.isoformat()
    if key == "preachingHistory":
        return f"{sermon.preaching_count}x"
    if key == "title":
        return sermon.title
    if key == "series":
        return sermon.series or "-"
    if key == "references":
        return ", ".join(sermon.references)
    if key == "place":
        return row.place or "-"
    if key == "type":
        return sermon.type or ""
    if key == "summary":
        return sermon.summary or ""
    if key == "tags":
        shown = ", ".join(sermon.tags[:2])
        extra = len(sermon.tags) - 2
        return f"{shown} +{extra}" if extra > 0 else shown
    if key == "lastModified":
        return sermon.last_modified.date().isoformat() if sermon.last_modified else ""
    if key == "fileSize":
        return f"{round(sermon.file_size / 1024)} KB" if sermon.file_size else ""
    return ""


def _matches_search(row: ExpandedSermon, term: str, search_field: str) -> bool:
    needle = term.casefold()
    title = row.title.casefold()
    series = (row.series or "").casefold()
    references = [r.casefold() for r in row.references]

    if search_field == "title":
        return needle in title
    if search_field == "series":
        return needle in series
    if search_field == "references":
        return any(needle in r for r in references)
    return (
        needle in title
        or needle in (row.summary or "").casefold()
        or needle in series
        or any(needle in r for r in references)
    )


def matches(row: ExpandedSermon, options: FilterOptions) -> bool:
    """True if the row passes every active filter."""
    term = options.search_term.strip()
    if term and not _matches_search(row, term, options.search_field):
        return False
    if options.series and row.series != options.series:
        return False
    if options.type and row.type != options.type:
        return False
    if options.place and row.place != options.place:
        return False
    if options.tags and not any(tag in row.tags for tag in options.tags):
        return False

    start, end = options.date_range
    if start and row.date < start:
        return False
    if end and row.date > end:
        return False

    for key, term in options.column_terms.items():
        needle = term.strip().casefold()
        if not needle:
            continue
        value = column_value(row, key)
        # Empty cells never exclude a row
        if value and needle not in value.casefold():
            return False
    return True


def filter_rows(
    rows: Iterable[ExpandedSermon], options: FilterOptions
) -> List[ExpandedSermon]:
    return [row for row in rows if matches(row, options)]
