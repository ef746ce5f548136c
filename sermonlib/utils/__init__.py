"""
Utilities package for the Sermon Library.

- dates: Free-text date parsing for the interchange format
"""
from .dates import format_iso, parse_date, try_parse_date

__all__ = ["format_iso", "parse_date", "try_parse_date"]
