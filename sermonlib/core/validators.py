#!/usr/bin/env python3
"""
validators.py
--------------------
Data validation and normalization utilities for catalog operations.

Provides type-safe conversion, validation, and normalization functions
used by the catalog model, the interchange codec and the snapshot codec.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from .exceptions import ValidationError


class DataValidator:
    """Centralized data validation for catalog operations."""

    @staticmethod
    def validate_required_fields(
        data: Dict[str, Any], required_fields: List[str]
    ) -> None:
        """
        Validate that required fields are present and non-empty.

        Args:
            data: Data dictionary to validate
            required_fields: List of required field names

        Raises:
            ValidationError: If validation fails
        """
        for field in required_fields:
            value = data.get(field)
            if isinstance(value, str):
                value = value.strip()
            if not value:
                raise ValidationError(f"Required field '{field}' missing or empty")

    @staticmethod
    def normalize_date(date_value: Any) -> Optional[date]:
        """
        Normalize various date inputs to date object.

        Strings are accepted in ISO form (with or without a time part),
        which is what snapshots carry. Free-text interchange dates go
        through ``sermonlib.utils.dates.parse_date`` instead.

        Args:
            date_value: Date string, date object, or datetime

        Returns:
            Normalized date object or None
        """
        if isinstance(date_value, datetime):
            return date_value.date()
        elif isinstance(date_value, date):
            return date_value
        elif isinstance(date_value, str) and date_value.strip():
            text = date_value.strip()
            try:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            except ValueError:
                return date.fromisoformat(text[:10])
        return None

    @staticmethod
    def normalize_datetime(value: Any) -> Optional[datetime]:
        """Normalize an ISO string or datetime to datetime; None otherwise."""
        if isinstance(value, datetime):
            return value
        if isinstance(value, str) and value.strip():
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        return None

    @staticmethod
    def normalize_string(value: Any) -> Optional[str]:
        """
        Normalize string value.

        Args:
            value: Value to normalize

        Returns:
            Stripped string, or None when empty
        """
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @staticmethod
    def normalize_int(value: Any) -> Optional[int]:
        """Convert value to integer safely, None when not convertible."""
        if value is None or value == "":
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None

    @staticmethod
    def unique_strings(values: Optional[Iterable[Any]]) -> List[str]:
        """
        Normalize a collection into an insertion-ordered set of strings.

        Whitespace is stripped, empty values dropped, and later duplicates
        ignored.

        Examples:
            >>> DataValidator.unique_strings([" faith", "hope", "faith", ""])
            ['faith', 'hope']
        """
        result: List[str] = []
        seen = set()
        for value in values or []:
            text = DataValidator.normalize_string(value)
            if text and text not in seen:
                seen.add(text)
                result.append(text)
        return result
