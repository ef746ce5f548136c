"""
test_models.py
--------------
Unit tests for the catalog data model.

Covers the canonical date invariant, preaching-history helpers, the
ordered-set mutators and snapshot-schema serialization.
"""
import pytest
from datetime import date, datetime, timezone

from sermonlib.catalog.models import (
    PreachingInstance,
    Series,
    Sermon,
    add_instance,
    canonicalize,
    remove_instance,
    update_instance,
)
from sermonlib.core.exceptions import ValidationError


class TestCanonicalDate:
    """Canonical date/place follow the earliest preaching instance."""

    def test_canonicalize_uses_earliest(self, make_sermon):
        sermon = make_sermon(
            "Hope",
            date(2025, 1, 1),
            occasions=[(date(2024, 12, 15), "Chapel"), (date(2024, 12, 1), "Main Hall")],
        )
        result = canonicalize(sermon)
        assert result.date == date(2024, 12, 1)
        assert result.place == "Main Hall"

    def test_canonicalize_without_history_is_unchanged(self, make_sermon):
        sermon = make_sermon("Hope", date(2024, 1, 1), place="Annex")
        result = canonicalize(sermon)
        assert result == sermon
        assert result is not sermon

    def test_first_and_last_preached(self, make_sermon):
        sermon = make_sermon(
            occasions=[(date(2024, 3, 1), "A"), (date(2025, 3, 1), "B"), (date(2024, 1, 1), "C")]
        )
        assert sermon.first_preached == date(2024, 1, 1)
        assert sermon.last_preached == date(2025, 3, 1)
        assert sermon.preaching_count == 3

    def test_latest_instance_first_wins_on_ties(self, make_sermon):
        sermon = make_sermon(occasions=[(date(2024, 3, 1), "A"), (date(2024, 3, 1), "B")])
        assert sermon.latest_instance().location == "A"

    def test_no_history_falls_back_to_own_date(self, make_sermon):
        sermon = make_sermon(when=date(2020, 6, 7))
        assert sermon.first_preached == sermon.last_preached == date(2020, 6, 7)
        assert sermon.preaching_count == 1


class TestHistoryHelpers:
    """add_instance / update_instance / remove_instance."""

    def test_add_earlier_instance_moves_canonical_date(self, make_sermon):
        sermon = canonicalize(make_sermon(occasions=[(date(2024, 12, 1), "Main Hall")]))
        result = add_instance(sermon, date(2024, 11, 20), "Chapel", audience="Youth")

        assert len(result.preaching_history) == 2
        assert result.date == date(2024, 11, 20)
        assert result.place == "Chapel"
        assert len(sermon.preaching_history) == 1

    def test_update_instance_recomputes(self, make_sermon):
        sermon = canonicalize(
            make_sermon(occasions=[(date(2024, 1, 1), "A"), (date(2024, 6, 1), "B")])
        )
        late = sermon.preaching_history[1]
        result = update_instance(sermon, late.id, date=date(2023, 1, 1))

        assert result.date == date(2023, 1, 1)
        assert result.place == "B"
        assert result.preaching_history[1].id == late.id

    def test_update_instance_rejects_id_change(self, make_sermon):
        sermon = make_sermon(occasions=[(date(2024, 1, 1), "A")])
        with pytest.raises(ValidationError):
            update_instance(sermon, sermon.preaching_history[0].id, id="other")

    def test_update_unknown_instance(self, make_sermon):
        sermon = make_sermon(occasions=[(date(2024, 1, 1), "A")])
        with pytest.raises(ValidationError):
            update_instance(sermon, "missing", location="X")

    def test_remove_instance_recomputes(self, make_sermon):
        sermon = canonicalize(
            make_sermon(occasions=[(date(2024, 1, 1), "A"), (date(2024, 6, 1), "B")])
        )
        result = remove_instance(sermon, sermon.preaching_history[0].id)
        assert result.date == date(2024, 6, 1)
        assert result.place == "B"


class TestOrderedSets:
    """Tags and references behave as insertion-ordered sets."""

    def test_add_tag_ignores_duplicates_and_blanks(self, make_sermon):
        sermon = make_sermon(tags=["faith"])
        assert sermon.add_tag("hope") is True
        assert sermon.add_tag("faith") is False
        assert sermon.add_tag("  ") is False
        assert sermon.tags == ["faith", "hope"]

    def test_remove_reference(self, make_sermon):
        sermon = make_sermon(references=["John 3:16"])
        assert sermon.add_reference(" Romans 8:28 ") is True
        assert sermon.remove_reference("John 3:16") is True
        assert sermon.remove_reference("John 3:16") is False
        assert sermon.references == ["Romans 8:28"]


class TestSerialization:
    """Snapshot-schema dictionaries."""

    def test_sermon_to_dict_keys(self, make_sermon):
        sermon = make_sermon(
            occasions=[(date(2024, 12, 1), "Main Hall")],
            series="Advent",
            series_order=1,
            file_size=2048,
            last_modified=datetime(2025, 1, 5, 10, 0, tzinfo=timezone.utc),
        )
        data = sermon.to_dict()

        assert data["date"] == "2024-12-01"
        assert data["seriesOrder"] == 1
        assert data["fileSize"] == 2048
        assert data["preachingHistory"][0]["location"] == "Main Hall"
        assert "summary" not in data
        assert "versions" not in data

    def test_sermon_round_trip(self, make_sermon):
        sermon = make_sermon(
            occasions=[(date(2024, 12, 1), "Main Hall")],
            series="Advent",
            tags=["a", "b"],
            references=["Isaiah 9:6"],
            summary="Light in darkness",
            type="Sermon",
            place="Main Hall",
        )
        assert Sermon.from_dict(sermon.to_dict()) == sermon

    def test_from_dict_accepts_js_timestamps(self):
        sermon = Sermon.from_dict(
            {
                "id": "1",
                "title": "Hope",
                "date": "2024-12-01T00:00:00.000Z",
                "preachingHistory": [
                    {"id": "p1", "date": "2024-12-01T00:00:00.000Z", "location": "Main Hall"}
                ],
            }
        )
        assert sermon.date == date(2024, 12, 1)
        assert sermon.preaching_history[0].date == date(2024, 12, 1)

    def test_from_dict_missing_date_uses_history(self):
        sermon = Sermon.from_dict(
            {
                "title": "Hope",
                "preachingHistory": [
                    {"date": "2024-12-08", "location": "B"},
                    {"date": "2024-12-01", "location": "A"},
                ],
            }
        )
        assert sermon.date == date(2024, 12, 1)
        assert sermon.id

    def test_from_dict_without_any_date_raises(self):
        with pytest.raises(ValidationError):
            Sermon.from_dict({"title": "Hope"})

    def test_instance_missing_date_raises(self):
        with pytest.raises(ValidationError):
            PreachingInstance.from_dict({"id": "p1", "location": "A"})

    def test_series_round_trip(self):
        series = Series(
            id="series-1",
            title="Advent",
            description="Waiting",
            start_date=date(2024, 12, 1),
            sermons=["a", "b"],
            tags=["season"],
        )
        data = series.to_dict()
        assert data["startDate"] == "2024-12-01"
        assert "endDate" not in data
        assert Series.from_dict(data) == series

    def test_series_requires_title(self):
        with pytest.raises(ValidationError):
            Series.from_dict({"id": "x"})
