#!/usr/bin/env python3
"""
Catalog Package
---------------
The sermon catalog: data model, store and series reconciliation.

Key Components:
    - models: Sermon, PreachingInstance, Series and projection rows
    - reconciler: Pure series reconciliation against sermons
    - store: CatalogStore, the single mutation gateway
    - persistence: Key-value stores and the debounced writer
    - images: Image collaborator for snapshots
    - session: CatalogSession (import from ``sermonlib.catalog.session``)
"""
from .models import (
    ExpandedSermon,
    PreachingInstance,
    Series,
    Sermon,
    SermonVersion,
    add_instance,
    canonicalize,
    remove_instance,
    update_instance,
)
from .reconciler import reconcile_series, series_index
from .store import CatalogStore, Facets

__all__ = [
    "CatalogStore",
    "ExpandedSermon",
    "Facets",
    "PreachingInstance",
    "Series",
    "Sermon",
    "SermonVersion",
    "add_instance",
    "canonicalize",
    "reconcile_series",
    "remove_instance",
    "series_index",
    "update_instance",
]
