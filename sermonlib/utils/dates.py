#!/usr/bin/env python3
"""
dates.py
-------------------
Free-text date parsing for the interchange format.

Interchange date cells are ambiguous: the primary format is day-first
(DD-MM-YYYY), with DD/MM/YYYY and ISO YYYY-MM-DD accepted as fallbacks.
Each candidate match is range-checked and validated against the calendar;
a failing candidate is discarded and the next format is tried.

Functions:
    parse_date: Parse text into a date or raise InvalidDateError
    try_parse_date: Same, but returns None instead of raising
    format_iso: Render a date as YYYY-MM-DD

Usage:
    from sermonlib.utils.dates import parse_date

    parse_date("05-01-2025")   # date(2025, 1, 5)
    parse_date("05/01/2025")   # date(2025, 1, 5)
    parse_date("2025-01-05")   # date(2025, 1, 5)
    parse_date("30-02-2025")   # InvalidDateError
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import re
from datetime import date
from typing import Optional, Pattern, Tuple

# --- Local imports ---
from sermonlib.core.exceptions import InvalidDateError

MIN_YEAR = 1900
MAX_YEAR = 2100

# (name, pattern, group order as (day, month, year) indices)
DATE_FORMATS: Tuple[Tuple[str, Pattern[str], Tuple[int, int, int]], ...] = (
    ("DD-MM-YYYY", re.compile(r"^([0-9]{1,2})-([0-9]{1,2})-([0-9]{4})$"), (1, 2, 3)),
    ("DD/MM/YYYY", re.compile(r"^([0-9]{1,2})/([0-9]{1,2})/([0-9]{4})$"), (1, 2, 3)),
    ("YYYY-MM-DD", re.compile(r"^([0-9]{4})-([0-9]{1,2})-([0-9]{1,2})$"), (3, 2, 1)),
)
"""Accepted formats, in precedence order."""


def _build_date(day: int, month: int, year: int) -> Optional[date]:
    """
    Validate components and build a date.

    Returns None when a component is out of bounds or the combination does
    not exist on the calendar (e.g. 31 April, 29 February in a common year).
    """
    if not (1 <= day <= 31 and 1 <= month <= 12 and MIN_YEAR <= year <= MAX_YEAR):
        return None
    try:
        candidate = date(year, month, day)
    except ValueError:
        return None
    # Round-trip check
    if (candidate.day, candidate.month, candidate.year) != (day, month, year):
        return None
    return candidate


def parse_date(text: Optional[str]) -> date:
    """
    Resolve a free-text date under the interchange grammar.

    Args:
        text: Raw date text

    Returns:
        The parsed calendar date

    Raises:
        InvalidDateError: If no accepted format yields a valid date

    Examples:
        >>> parse_date("25-12-2024")
        datetime.date(2024, 12, 25)
        >>> parse_date("1/2/2024")
        datetime.date(2024, 2, 1)
        >>> parse_date("2024-12-25")
        datetime.date(2024, 12, 25)
    """
    if text is None or not text.strip():
        raise InvalidDateError(text, "Empty date value")

    trimmed = text.strip()
    for _name, pattern, (day_idx, month_idx, year_idx) in DATE_FORMATS:
        match = pattern.match(trimmed)
        if not match:
            continue
        parsed = _build_date(
            int(match.group(day_idx)),
            int(match.group(month_idx)),
            int(match.group(year_idx)),
        )
        if parsed is not None:
            return parsed

    raise InvalidDateError(
        trimmed,
        f"Cannot parse date {trimmed!r}: expected DD-MM-YYYY, DD/MM/YYYY or YYYY-MM-DD",
    )


def try_parse_date(text: Optional[str]) -> Optional[date]:
    """Parse a date, returning None instead of raising."""
    try:
        return parse_date(text)
    except InvalidDateError:
        return None


def format_iso(value: date) -> str:
    """Render a date as YYYY-MM-DD."""
    return value.isoformat()
