#!/usr/bin/env python3
"""
cli_utils.py
-------------------
Shared CLI utilities for Sermon Library commands.

Functions:
    setup_logger: Initialize CatalogLogger for CLI operations
    format_size: Human-readable byte counts for listings

Usage:
    from sermonlib.core.cli_utils import setup_logger

    logger = setup_logger(log_dir, "sermondb")
"""
from pathlib import Path

from sermonlib.core.logging_manager import CatalogLogger


def setup_logger(log_dir: Path, component_name: str) -> CatalogLogger:
    """
    Setup logging for CLI operations.

    Creates the operations log directory if it doesn't exist and initializes
    a CatalogLogger instance for the specified component.

    Args:
        log_dir: Base log directory (typically from paths.LOG_DIR)
        component_name: Component identifier for logging (e.g., 'sermondb')

    Returns:
        Configured CatalogLogger instance

    Examples:
        >>> from sermonlib.core.paths import LOG_DIR
        >>> logger = setup_logger(LOG_DIR, "sermondb")
        >>> logger.log_info("Starting import...")
    """
    operations_log_dir = Path(log_dir) / "operations"
    operations_log_dir.mkdir(parents=True, exist_ok=True)
    return CatalogLogger(operations_log_dir, component_name=component_name)


def format_size(size: int) -> str:
    """Format a byte count as B, KB or MB."""
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.2f} MB"
