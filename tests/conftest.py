"""
conftest.py
-----------
Shared pytest fixtures for Sermon Library tests.

Provides fixtures for:
- Temporary directories and loggers
- Sermon and series factories
- Pre-populated catalog stores
"""
import os
import tempfile

# Library home must point somewhere disposable before sermonlib.core.paths is imported
os.environ.setdefault("SERMONLIB_HOME", tempfile.mkdtemp(prefix="sermonlib-home-"))

import pytest  # noqa: E402
from datetime import date  # noqa: E402
from pathlib import Path  # noqa: E402
from tempfile import TemporaryDirectory  # noqa: E402

from sermonlib.catalog.models import PreachingInstance, Series, Sermon, new_id  # noqa: E402
from sermonlib.catalog.store import CatalogStore  # noqa: E402
from sermonlib.core.logging_manager import CatalogLogger  # noqa: E402


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def logger(tmp_path):
    """Real CatalogLogger writing into a temp directory."""
    catalog_logger = CatalogLogger(tmp_path / "logs", component_name="test")
    yield catalog_logger
    catalog_logger.close()


# ----- Factories -----

@pytest.fixture
def make_instance():
    """Factory for preaching instances."""

    def _make(when, location="Main Hall", **kwargs):
        return PreachingInstance(id=new_id(), date=when, location=location, **kwargs)

    return _make


@pytest.fixture
def make_sermon(make_instance):
    """
    Factory for sermons.

    ``occasions`` is a list of (date, location) pairs turned into the
    preaching history.
    """

    def _make(title="Hope", when=date(2024, 12, 1), occasions=None, **kwargs):
        history = [make_instance(d, loc) for d, loc in occasions or []]
        kwargs.setdefault("id", new_id())
        return Sermon(title=title, date=when, preaching_history=history, **kwargs)

    return _make


@pytest.fixture
def sample_sermons(make_sermon):
    """Three sermons: two in 'Advent', one standalone preached twice."""
    return [
        make_sermon(
            "Hope",
            date(2024, 12, 1),
            occasions=[(date(2024, 12, 1), "Main Hall")],
            series="Advent",
            tags=["advent", "hope"],
            references=["Isaiah 9:6"],
            type="Sermon",
        ),
        make_sermon(
            "Peace",
            date(2024, 12, 8),
            occasions=[(date(2024, 12, 8), "Main Hall")],
            series="Advent",
            tags=["advent"],
            type="Sermon",
        ),
        make_sermon(
            "Grace",
            date(2023, 5, 14),
            occasions=[
                (date(2025, 2, 2), "Chapel"),
                (date(2023, 5, 14), "Main Hall"),
            ],
            tags=["grace", "faith", "love"],
            references=["Ephesians 2:8"],
            type="Teaching",
        ),
    ]


@pytest.fixture
def populated_store(sample_sermons):
    """Store holding the sample sermons saved through the normal path."""
    store = CatalogStore()
    for sermon in sample_sermons:
        store.save_sermon(sermon)
    return store


@pytest.fixture
def advent_series():
    """A series record titled 'Advent'."""
    return Series(id="series-advent", title="Advent", description="Waiting")
