#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Logging for the sermon catalog.

A CatalogLogger owns two rotating files in its log directory:
``<component>.log`` receives every record and ``errors.log`` only
failures. The store, the CSV codec, snapshots, backups, persistence and
images each log through an area logger taken from it, so every record
names where it came from:

    2025-01-05 10:00:00 INFO    sermondb.store   save_sermon | sermons=3 series=1 seconds=0.002
    2025-01-05 10:00:01 WARNING sermondb.csv     Unparseable date, using today | row=5 value=30-02-2025

Usage:
    logger = CatalogLogger(LOG_DIR, component_name="sermondb")
    store = CatalogStore(logger=logger.area("store"))
    safe_logger(None).log_info("ignored")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import copy
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click

CATALOG_AREAS = (
    "store",
    "csv",
    "snapshot",
    "backup",
    "persistence",
    "images",
    "session",
    "cli",
)

RECORD_FORMAT = "%(asctime)s %(levelname)-7s %(name)-16s %(message)s"


def format_fields(details: Optional[Dict[str, Any]]) -> str:
    """
    Render record details as ``key=value`` pairs.

    Containers are written as JSON; booleans in lower case.
    """
    parts = []
    for key, value in (details or {}).items():
        if isinstance(value, bool):
            text = str(value).lower()
        elif isinstance(value, (dict, list, tuple)):
            text = json.dumps(value, default=str)
        else:
            text = str(value)
        parts.append(f"{key}={text}")
    return " ".join(parts)


class CatalogLogger:
    """
    Catalog logger with per-area children.

    Attributes:
        log_dir: Directory for log files
        component_name: Root logger name, also the main log file stem
        area_name: Catalog area of this logger (None for the root)
        logger: Underlying ``logging.Logger``
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "sermonlib",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        """
        Args:
            log_dir: Directory for log files
            component_name: Root logger name (e.g. 'sermondb')
            max_bytes: Maximum log file size before rotation (default: 10MB)
            backup_count: Number of rotated files to keep (default: 5)
        """
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.area_name: Optional[str] = None
        self.max_bytes = max_bytes
        self.backup_count = backup_count
        self.logger = logging.getLogger(component_name)
        self._setup_handlers()

    def _setup_handlers(self) -> None:
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.logger.setLevel(logging.DEBUG)
        # Area loggers propagate here; nothing goes on to the root logger
        self.logger.propagate = False
        self.logger.handlers = []

        self.logger.addHandler(
            self._file_handler(self.log_dir / f"{self.component_name}.log", logging.DEBUG)
        )
        self.logger.addHandler(self._file_handler(self.log_dir / "errors.log", logging.ERROR))

        console = logging.StreamHandler()
        console.setLevel(logging.WARNING)
        console.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        self.logger.addHandler(console)

    def _file_handler(self, file_path: Path, level: int) -> RotatingFileHandler:
        handler = RotatingFileHandler(
            file_path,
            maxBytes=self.max_bytes,
            backupCount=self.backup_count,
            encoding="utf-8",
        )
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(RECORD_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        return handler

    def area(self, name: str) -> "CatalogLogger":
        """
        Logger for one catalog area, writing to the same files.

        Raises:
            ValueError: If ``name`` is not one of CATALOG_AREAS
        """
        if name not in CATALOG_AREAS:
            raise ValueError(f"Unknown catalog area: {name!r}")
        child = copy.copy(self)
        child.area_name = name
        child.logger = logging.getLogger(f"{self.component_name}.{name}")
        return child

    def close(self) -> None:
        """Close the log files. Area loggers leave them to the root."""
        if self.area_name is not None:
            return
        for handler in list(self.logger.handlers):
            handler.close()
            self.logger.removeHandler(handler)

    def _emit(self, level: int, event: str, details: Optional[Dict[str, Any]]) -> None:
        fields = format_fields(details)
        self.logger.log(level, f"{event} | {fields}" if fields else event)

    # --- Catalog events ---
    def log_operation(
        self, operation: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record a completed catalog operation (export, backup, restore...)."""
        self._emit(logging.INFO, operation, details)

    def log_mutation(
        self,
        operation: str,
        sermons: int,
        series: int,
        seconds: Optional[float] = None,
    ) -> None:
        """Record a committed store mutation with the resulting catalog size."""
        details: Dict[str, Any] = {"sermons": sermons, "series": series}
        if seconds is not None:
            details["seconds"] = round(seconds, 4)
        self._emit(logging.INFO, operation, details)

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, message, details)

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, message, details)

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.WARNING, message, details)

    def log_error(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Record a failure in both log files.

        The traceback is attached when called while handling ``error``.
        """
        fields = format_fields(context)
        message = f"{type(error).__name__}: {error}"
        self.logger.error(
            f"{message} | {fields}" if fields else message,
            exc_info=sys.exc_info()[1] is error,
        )

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log a command failure and return the line to show the user.

        Args:
            error: Exception raised by the command
            context: Where it happened (defaults to ``source=cli``)
            show_traceback: Append the current traceback to the message
        """
        self.log_error(error, context or {"source": "cli"})
        message = f"❌ {type(error).__name__}: {error}"
        if show_traceback:
            return f"{message}\n\n{traceback.format_exc()}"
        return message


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Report a failed command and exit.

    Logs under the ``cli`` area of ``ctx.obj["logger"]``, echoes a one-line
    message to stderr (with traceback under ``--verbose``) and never returns.

    Args:
        ctx: Click context holding ``logger`` and ``verbose``
        error: Exception that occurred
        operation: Name of the failed command (e.g. 'import_csv')
        additional_context: Extra fields such as the file path or sermon id
        exit_code: Process exit code (default: 1)
    """
    logger = area_logger(ctx.obj.get("logger"), "cli")
    verbose: bool = ctx.obj.get("verbose", False)

    context = {"operation": operation}
    if additional_context:
        context.update(additional_context)

    click.echo(safe_logger(logger).log_cli_error(error, context, show_traceback=verbose), err=True)
    sys.exit(exit_code)


class NullLogger:
    """Stands in for CatalogLogger when no logging is configured."""

    def area(self, name: str) -> "NullLogger":
        return self

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_mutation(
        self, operation: str, sermons: int, series: int, seconds: Optional[float] = None
    ) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return f"❌ {type(error).__name__}: {error}"


_null_logger = NullLogger()


def safe_logger(logger: Optional[CatalogLogger]) -> CatalogLogger:
    """Return ``logger``, or a shared NullLogger when it is None."""
    return logger if logger is not None else _null_logger  # type: ignore[return-value]


def area_logger(logger: Optional[CatalogLogger], name: str) -> Optional[CatalogLogger]:
    """``logger.area(name)``, passing None through."""
    return logger.area(name) if logger is not None else None
