#!/usr/bin/env python3
"""
reconciler.py
--------------------
Keeps the series collection a pure function of sermon -> series references.

Sermons reference a series by title string. The series collection is
therefore treated as an index over the sermons: a series survives only
while at least one sermon names it, and its member id list is rebuilt by
scanning the sermons. Nothing here ever creates a series; creation belongs
to ``CatalogStore.save_sermon``.

Functions:
    referenced_titles: Titles named by at least one sermon
    series_index: Title -> ordered member sermon ids
    reconcile_series: Drop orphaned series and rebuild membership
    find_orphans: Series that reconciliation would drop
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import replace
from typing import Dict, Iterable, List, Set

# --- Local imports ---
from .models import Series, Sermon


def _series_title(sermon: Sermon) -> str:
    return (sermon.series or "").strip()


def referenced_titles(sermons: Iterable[Sermon]) -> Set[str]:
    """Return the set of non-blank series titles referenced by sermons."""
    return {title for title in map(_series_title, sermons) if title}


def series_index(sermons: Iterable[Sermon]) -> Dict[str, List[str]]:
    """
    Map each referenced series title to its member sermon ids.

    Ids are listed in sermon collection order.
    """
    index: Dict[str, List[str]] = {}
    for sermon in sermons:
        title = _series_title(sermon)
        if title and sermon.id is not None:
            index.setdefault(title, []).append(sermon.id)
    return index


def find_orphans(sermons: Iterable[Sermon], series: Iterable[Series]) -> List[Series]:
    """Return the series no sermon references any more."""
    used = referenced_titles(sermons)
    return [s for s in series if s.title.strip() not in used]


def reconcile_series(sermons: List[Sermon], series: List[Series]) -> List[Series]:
    """
    Prune orphaned series and rebuild membership from the sermons.

    Pure: inputs are not modified. Surviving series keep their order and
    the existing order of still-valid member ids; newly found members are
    appended in sermon order. Applying it twice gives the same result as
    applying it once.

    Args:
        sermons: Current sermon collection
        series: Current series collection

    Returns:
        New series list
    """
    index = series_index(sermons)

    reconciled: List[Series] = []
    for item in series:
        members = index.get(item.title.strip())
        if members is None:
            continue

        member_set = set(members)
        merged: List[str] = []
        for sid in [*item.sermons, *members]:
            if sid in member_set and sid not in merged:
                merged.append(sid)
        reconciled.append(replace(item, sermons=merged))

    return reconciled
