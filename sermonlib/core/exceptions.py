#!/usr/bin/env python3
"""
exceptions.py
--------------------
Custom exception classes for the Sermon Library project.

This module defines a hierarchy of exceptions used throughout the project
to handle specific error conditions in the catalog engine and its
collaborators.

Exception Hierarchy:
    Exception (built-in)
    └── CatalogError - Base for all catalog errors
        ├── ValidationError - Data validation failures
        │   └── InvalidDateError - Unparseable date text (also a ValueError)
        ├── MalformedRowError - Interchange row with broken quoting
        ├── PersistenceUnavailableError - Key-value store read/write failures
        │   └── BackupError - Snapshot backup creation/restoration failures
        ├── SnapshotSchemaMismatchError - Snapshot document not usable at all
        └── ExportError - Interchange export failures

Usage:
    from sermonlib.core.exceptions import InvalidDateError, PersistenceUnavailableError

    try:
        store.put("sermon-data", payload)
    except PersistenceUnavailableError as e:
        logger.log_error(e, {"operation": "persist"})
"""
from typing import Optional


class CatalogError(Exception):
    """
    Base exception for catalog-related errors.

    Catch this to handle any error raised by the catalog engine, or catch
    specific subclasses for more granular handling.
    """

    pass


class ValidationError(CatalogError):
    """
    Exception for data validation failures.

    Raised when input data fails validation checks:
    - Missing required fields
    - Empty titles
    - Malformed preaching instances

    Examples:
        >>> raise ValidationError("Required field 'title' missing or empty")
    """

    pass


class InvalidDateError(ValidationError, ValueError):
    """
    Exception for date text that matches none of the accepted formats.

    Accepted formats are DD-MM-YYYY, DD/MM/YYYY and YYYY-MM-DD. The importer
    catches this and falls back to the current date with a warning.

    Attributes:
        text: The raw text that failed to parse
    """

    def __init__(self, text: Optional[str], message: Optional[str] = None) -> None:
        self.text = text
        super().__init__(message or f"Invalid date: {text!r}")


class MalformedRowError(CatalogError):
    """
    Exception for interchange rows that cannot be split into fields.

    Raised by the CSV line splitter on an unterminated quoted field.
    The importer skips the row and continues with the batch.

    Attributes:
        line: The raw line text
        row_number: 1-based line number within the file, when known
    """

    def __init__(
        self, message: str, line: str = "", row_number: Optional[int] = None
    ) -> None:
        self.line = line
        self.row_number = row_number
        super().__init__(message)


class PersistenceUnavailableError(CatalogError):
    """
    Exception for persistence collaborator failures.

    Raised when the key-value store cannot be read from or written to.
    Surfaced to the caller; the close-time auto-backup treats it as a soft
    failure and lets shutdown proceed.

    Examples:
        >>> raise PersistenceUnavailableError("Cannot write key 'sermon-data'")
    """

    pass


class BackupError(PersistenceUnavailableError):
    """
    Exception for snapshot backup creation and restoration failures.

    Examples:
        >>> raise BackupError("Failed to write backup: disk full")
        >>> raise BackupError("Backup file not found: /tmp/x.slb")
    """

    pass


class SnapshotSchemaMismatchError(CatalogError):
    """
    Exception for snapshot documents that are not usable at all.

    Only raised when the document is not a JSON object. Missing or
    wrong-typed optional collections degrade to empty instead.
    """

    pass


class ExportError(CatalogError):
    """
    Exception for interchange export failures.

    Examples:
        >>> raise ExportError("Cannot write CSV: permission denied")
    """

    pass
