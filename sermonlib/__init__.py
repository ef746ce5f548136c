"""
Sermon Library Package
======================

A catalog engine for sermons, their preaching history and series.

Keeps a sermon catalog consistent under edits, imports and restores:
every sermon's canonical date and place follow its earliest preaching
occasion, series exist exactly as long as some sermon names them, and
the catalog can be projected into per-sermon or per-occasion views.

Main Components:
    - catalog: Data model, store, series reconciler, persistence, session
    - views: Projection, filtering and sorting into renderable rows
    - pipeline: CSV interchange and snapshot (backup) codecs
    - core: Logging, exceptions, paths, settings, backup management
    - utils: Date parsing
    - cli: The ``sermondb`` command-line interface

Primary Interfaces:
    - sermonlib.catalog.store.CatalogStore: Single mutation gateway
    - sermonlib.catalog.session.CatalogSession: Store plus persistence and backups
    - sermonlib.cli: Catalog management CLI

Example Usage:
    >>> from sermonlib.catalog.session import CatalogSession
    >>> from sermonlib.core.paths import DATA_DIR
    >>> with CatalogSession.open(DATA_DIR) as session:
    ...     result = session.import_csv(Path("sermons.csv"))
    ...     rows = session.rows()
"""
__version__ = "1.0.0"
