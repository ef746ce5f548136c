"""
test_dates.py
-------------
Unit tests for sermonlib.utils.dates.

Covers the three accepted formats, their precedence, range and calendar
validation, and the typed failure.
"""
import pytest
from datetime import date

from sermonlib.core.exceptions import InvalidDateError, ValidationError
from sermonlib.utils.dates import format_iso, parse_date, try_parse_date


class TestParseDate:
    """Test parse_date."""

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("25-12-2024", date(2024, 12, 25)),
            ("5-1-2025", date(2025, 1, 5)),
            ("05/01/2025", date(2025, 1, 5)),
            ("2024-12-25", date(2024, 12, 25)),
            ("2025-1-5", date(2025, 1, 5)),
            ("  01-12-2024  ", date(2024, 12, 1)),
        ],
    )
    def test_accepted_formats(self, text, expected):
        assert parse_date(text) == expected

    def test_day_first_wins(self):
        """Ambiguous dd-mm values are read day first."""
        assert parse_date("03-04-2024") == date(2024, 4, 3)

    def test_leap_day(self):
        assert parse_date("29-02-2024") == date(2024, 2, 29)

    @pytest.mark.parametrize(
        "text",
        ["30-02-2025", "29-02-2023", "31-04-2024", "00-01-2024", "01-13-2024"],
    )
    def test_calendar_invalid_raises(self, text):
        with pytest.raises(InvalidDateError) as exc_info:
            parse_date(text)
        assert exc_info.value.text == text

    @pytest.mark.parametrize("text", ["01-01-1899", "01-01-2101", "2101-01-01"])
    def test_out_of_range_year_raises(self, text):
        with pytest.raises(InvalidDateError):
            parse_date(text)

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_empty_raises(self, text):
        with pytest.raises(InvalidDateError):
            parse_date(text)

    @pytest.mark.parametrize("text", ["December 1, 2024", "2024/12/01", "1.12.2024", "abc"])
    def test_unknown_format_raises(self, text):
        with pytest.raises(InvalidDateError):
            parse_date(text)

    @pytest.mark.parametrize(
        "text",
        [
            "٠١-١٢-٢٠٢٤",  # Arabic-Indic
            "０１/１２/２０２４",  # fullwidth
        ],
    )
    def test_non_ascii_digits_raise(self, text):
        with pytest.raises(InvalidDateError):
            parse_date(text)

    def test_error_is_value_and_validation_error(self):
        with pytest.raises(ValueError):
            parse_date("nope")
        with pytest.raises(ValidationError):
            parse_date("nope")


class TestHelpers:
    """Test try_parse_date and format_iso."""

    def test_try_parse_returns_none_on_failure(self):
        assert try_parse_date("30-02-2025") is None

    def test_try_parse_returns_date(self):
        assert try_parse_date("01/02/2024") == date(2024, 2, 1)

    def test_format_iso(self):
        assert format_iso(date(2024, 1, 5)) == "2024-01-05"
