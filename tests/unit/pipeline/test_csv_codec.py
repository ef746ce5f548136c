"""
test_csv_codec.py
-----------------
Unit tests for sermonlib.pipeline.csv_codec.

Covers record splitting, header matching, fallback values, merging of
repeated titles into one sermon, and export.
"""
import pytest
from datetime import date

from sermonlib.core.exceptions import ExportError, MalformedRowError
from sermonlib.pipeline.csv_codec import (
    match_columns,
    parse_csv,
    read_csv_file,
    split_csv_line,
    to_csv,
    write_csv_file,
)

TODAY = date(2026, 1, 1)


class TestSplitCsvLine:
    """Test split_csv_line."""

    def test_plain_fields_trimmed(self):
        assert split_csv_line(" Hope , 01-12-2024,Advent ") == ["Hope", "01-12-2024", "Advent"]

    def test_quoted_comma(self):
        assert split_csv_line('"Hope, Joy",x') == ["Hope, Joy", "x"]

    def test_doubled_quote(self):
        assert split_csv_line('"Say ""Amen""",x') == ['Say "Amen"', "x"]

    def test_trailing_empty_field(self):
        assert split_csv_line("a,") == ["a", ""]

    def test_unterminated_quote(self):
        with pytest.raises(MalformedRowError):
            split_csv_line('"Hope,01-12-2024')


class TestMatchColumns:
    """Test match_columns."""

    def test_synonyms(self):
        mapping = match_columns(["Sermon Name", "Preached On", "Scripture", "Venue"])
        assert mapping["title"] == 0
        assert mapping["date"] == 1
        assert mapping["references"] == 2
        assert mapping["place"] == 3
        assert mapping["series"] is None

    def test_candidate_order_wins_over_header_order(self):
        mapping = match_columns(["Sermon", "Title"])
        assert mapping["title"] == 1


class TestParseCsv:
    """Test parse_csv."""

    def test_repeated_title_merges_occasions(self):
        text = (
            "Title,Date,Place,Series\n"
            "Hope,08-12-2024,Chapel,Advent\n"
            "hope,01-12-2024,Main Hall,Ignored\n"
        )
        result = parse_csv(text, today=TODAY)

        assert len(result.sermons) == 1
        sermon = result.sermons[0]
        assert sermon.title == "Hope"
        assert sermon.series == "Advent"
        assert sermon.date == date(2024, 12, 1)
        assert sermon.place == "Main Hall"
        assert len(sermon.preaching_history) == 2
        assert result.instance_count == 2

    def test_invalid_date_falls_back_to_today(self):
        result = parse_csv("Title,Date\nHope,30-02-2025\n", today=TODAY)

        assert result.sermons[0].date == TODAY
        assert len(result.warnings) == 1
        assert result.warnings[0].row_number == 2
        assert result.warnings[0].value == "30-02-2025"

    def test_missing_title_and_place_defaults(self):
        result = parse_csv("Date,Notes\n2024-12-01,Some notes\n", today=TODAY)
        sermon = result.sermons[0]

        assert sermon.title == "Untitled"
        assert sermon.place == "Unknown Location"
        assert sermon.summary == "Some notes"

    def test_lists_split_on_semicolon(self):
        text = 'Title,Date,Tags,References\nHope,01-12-2024,"hope; advent;hope",Isaiah 9:6;Luke 2\n'
        sermon = parse_csv(text, today=TODAY).sermons[0]

        assert sermon.tags == ["hope", "advent"]
        assert sermon.references == ["Isaiah 9:6", "Luke 2"]

    def test_malformed_row_skipped(self):
        text = 'Title,Date\nHope,01-12-2024\n"Broken,01-12-2024\n'
        result = parse_csv(text, today=TODAY)

        assert [s.title for s in result.sermons] == ["Hope"]
        assert len(result.skipped) == 1
        assert result.skipped[0].row_number == 3

    def test_quoted_line_breaks_stay_in_field(self):
        text = (
            "Title,Date,Summary\n"
            'Hope,01-12-2024,"line one\nline two"\n'
            "Peace,08-12-2024,short\n"
        )
        result = parse_csv(text, today=TODAY)

        assert [s.title for s in result.sermons] == ["Hope", "Peace"]
        assert result.sermons[0].summary == "line one\nline two"
        assert result.skipped == []

    def test_crlf_line_endings(self):
        result = parse_csv("Title,Date\r\nHope,01-12-2024\r\nPeace,08-12-2024\r\n", today=TODAY)
        assert [s.title for s in result.sermons] == ["Hope", "Peace"]

    def test_blank_rows_ignored(self):
        result = parse_csv("Title,Date\n,\nHope,01-12-2024\n", today=TODAY)
        assert len(result.sermons) == 1
        assert result.warnings == []

    def test_header_only_warns(self):
        result = parse_csv("Title,Date\n", today=TODAY)
        assert result.sermons == []
        assert result.warnings[0].row_number == 0

    def test_first_seen_order(self):
        text = "Title,Date\nB,01-01-2024\nA,02-01-2024\nB,03-01-2024\n"
        assert [s.title for s in parse_csv(text, today=TODAY).sermons] == ["B", "A"]


class TestExport:
    """Test to_csv and the file helpers."""

    def test_round_trip(self, tmp_path, sample_sermons):
        path = tmp_path / "out" / "sermons.csv"
        assert write_csv_file(path, sample_sermons) == 3

        result = read_csv_file(path, today=TODAY)

        assert [s.title for s in result.sermons] == ["Hope", "Peace", "Grace"]
        hope = result.sermons[0]
        assert hope.date == date(2024, 12, 1)
        assert hope.series == "Advent"
        assert hope.tags == ["advent", "hope"]
        assert hope.references == ["Isaiah 9:6"]
        assert hope.type == "Sermon"
        assert hope.place == "Main Hall"
        grace = result.sermons[2]
        assert grace.type == "Teaching"
        assert grace.date == date(2023, 5, 14)
        assert grace.place == "Main Hall"
        assert result.warnings == []

    def test_placeless_sermon_imports_with_fallback(self, make_sermon):
        # No place and no history exports an empty cell
        text = to_csv([make_sermon("Hope")])
        assert text.splitlines()[1].endswith(',""')

        assert parse_csv(text, today=TODAY).sermons[0].place == "Unknown Location"

    def test_round_trip_awkward_summaries(self, make_sermon):
        summaries = {
            "Hope": "line one\nline two",
            "Peace": "first, second, third",
            "Joy": 'He said "Amen", twice',
        }
        sermons = [
            make_sermon(title, summary=summary, type="Sermon", place="Chapel")
            for title, summary in summaries.items()
        ]

        result = parse_csv(to_csv(sermons), today=TODAY)

        assert {s.title: s.summary for s in result.sermons} == summaries
        assert all(s.place == "Chapel" and s.type == "Sermon" for s in result.sermons)
        assert result.skipped == []

    def test_quotes_escaped(self, make_sermon):
        text = to_csv([make_sermon('Say "Amen"', summary="a, b")])
        assert '"Say ""Amen"""' in text
        assert '"a, b"' in text
        assert text.splitlines()[0] == "Title,Date,Series,Summary,Tags,References,Type,Place"

    def test_bom_ignored(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_text("\ufeffTitle,Date\nHope,01-12-2024\n", encoding="utf-8")
        assert read_csv_file(path).sermons[0].title == "Hope"

    def test_unwritable_path(self, tmp_path, sample_sermons):
        blocker = tmp_path / "file"
        blocker.write_text("x")
        with pytest.raises(ExportError):
            write_csv_file(blocker / "sermons.csv", sample_sermons)
