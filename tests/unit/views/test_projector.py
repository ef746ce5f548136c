"""
test_projector.py
-----------------
Unit tests for the occasion-expanded and sermon-collapsed projections.
"""
from datetime import date

from sermonlib.catalog.models import canonicalize
from sermonlib.views.filters import FilterOptions
from sermonlib.views.modes import (
    ColumnSort,
    SortDirection,
    SortKey,
    ViewMode,
    ViewSettings,
)
from sermonlib.views.projector import (
    build_view,
    collapse_by_sermon,
    expand_by_occasion,
    project,
)


class TestExpandByOccasion:
    """DETAILS projection."""

    def test_one_row_per_instance_sorted_ascending(self, sample_sermons):
        rows = expand_by_occasion(sample_sermons)

        assert len(rows) == 4
        assert [r.date for r in rows] == sorted(r.date for r in rows)
        assert rows[0].date == date(2023, 5, 14)
        assert rows[-1].place == "Chapel"

    def test_row_ids_unique_and_composite(self, sample_sermons):
        rows = expand_by_occasion(sample_sermons)
        ids = [r.row_id for r in rows]

        assert len(set(ids)) == len(ids)
        grace = sample_sermons[2]
        assert f"{grace.id}-{grace.preaching_history[0].id}" in ids

    def test_original_date_is_canonical(self, sample_sermons):
        grace = canonicalize(sample_sermons[2])
        rows = expand_by_occasion([grace])
        assert {r.original_date for r in rows} == {date(2023, 5, 14)}
        assert {r.date for r in rows} == {date(2023, 5, 14), date(2025, 2, 2)}

    def test_no_history_uses_own_date(self, make_sermon):
        sermon = make_sermon(when=date(2020, 1, 5), place="Annex")
        rows = expand_by_occasion([sermon])

        assert len(rows) == 1
        assert rows[0].row_id == sermon.id
        assert rows[0].place == "Annex"
        assert rows[0].preaching_instance is None


class TestCollapseBySermon:
    """LIST/GRID projection."""

    def test_one_row_per_sermon_with_latest_instance(self, sample_sermons):
        rows = collapse_by_sermon(sample_sermons)

        assert [r.title for r in rows] == ["Hope", "Peace", "Grace"]
        grace = rows[2]
        assert grace.date == date(2025, 2, 2)
        assert grace.place == "Chapel"
        assert grace.row_id == sample_sermons[2].id

    def test_mode_selects_projection(self, sample_sermons):
        assert len(project(sample_sermons, ViewMode.GRID)) == 3
        assert len(project(sample_sermons, ViewMode.DETAILS)) == 4


class TestBuildView:
    """Projection, filtering and sorting together."""

    def test_default_sort_last_preached_desc(self, sample_sermons):
        rows = build_view(sample_sermons)
        assert [r.title for r in rows] == ["Grace", "Peace", "Hope"]

    def test_settings_sort(self, sample_sermons):
        settings = ViewSettings(sort_by=SortKey.TITLE, sort_order=SortDirection.ASC)
        rows = build_view(sample_sermons, settings)
        assert [r.title for r in rows] == ["Grace", "Hope", "Peace"]

    def test_column_sort_overrides_settings(self, sample_sermons):
        settings = ViewSettings(sort_by=SortKey.TITLE, sort_order=SortDirection.ASC)
        rows = build_view(
            sample_sermons, settings, column_sort=ColumnSort("title", SortDirection.DESC)
        )
        assert [r.title for r in rows] == ["Peace", "Hope", "Grace"]

    def test_filters_apply_after_projection(self, sample_sermons):
        settings = ViewSettings(view_mode=ViewMode.DETAILS)
        rows = build_view(sample_sermons, settings, FilterOptions(place="Chapel"))

        assert len(rows) == 1
        assert rows[0].title == "Grace"
        assert rows[0].date == date(2025, 2, 2)
