#!/usr/bin/env python3
"""
config.py
--------------------
User settings for the Sermon Library, stored as YAML.

Settings cover the auto-backup location and the timing knobs of the
persistence layer. A missing settings file yields defaults; a malformed one
yields defaults plus a logged warning, so a broken file never blocks startup.

Usage:
    from sermonlib.core.config import Settings
    from sermonlib.core.paths import SETTINGS_PATH

    settings = Settings.load(SETTINGS_PATH)
    settings.default_backup_location = Path("~/Backups").expanduser()
    settings.save(SETTINGS_PATH)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import yaml

# --- Local imports ---
from .logging_manager import CatalogLogger, safe_logger


@dataclass
class Settings:
    """
    Persisted user settings.

    Fields:
    - default_backup_location: Directory for close-time auto-backups
    - has_shown_backup_dialog: Whether the first-run backup prompt was shown
    - debounce_seconds:        Quiet window before a persistence write
    - backup_timeout_seconds:  Hard budget for the close-time backup
    - retention_days:          Auto-backups older than this are removed
    - dark_mode:               Presentation preference, carried verbatim
    """
    default_backup_location: Optional[Path] = None
    has_shown_backup_dialog: bool           = False
    debounce_seconds:        float          = 1.0
    backup_timeout_seconds:  float          = 5.0
    retention_days:          int            = 30
    dark_mode:               bool           = False

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Settings":
        """Build settings from a mapping, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}

        location = values.get("default_backup_location")
        if location:
            values["default_backup_location"] = Path(location).expanduser()
        else:
            values["default_backup_location"] = None

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize settings to plain YAML-safe types."""
        return {
            "default_backup_location": (
                str(self.default_backup_location)
                if self.default_backup_location
                else None
            ),
            "has_shown_backup_dialog": self.has_shown_backup_dialog,
            "debounce_seconds": self.debounce_seconds,
            "backup_timeout_seconds": self.backup_timeout_seconds,
            "retention_days": self.retention_days,
            "dark_mode": self.dark_mode,
        }

    @classmethod
    def load(
        cls, path: Path, logger: Optional[CatalogLogger] = None
    ) -> "Settings":
        """
        Load settings from a YAML file.

        Args:
            path: Settings file path
            logger: Optional logger for parse warnings

        Returns:
            Settings instance (defaults when the file is absent or unreadable)
        """
        if not path.exists():
            return cls()

        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            safe_logger(logger).log_warning(
                "Unreadable settings file, using defaults",
                {"path": str(path), "error": str(e)},
            )
            return cls()

        if not isinstance(data, dict):
            return cls()

        try:
            return cls.from_dict(data)
        except (TypeError, ValueError) as e:
            safe_logger(logger).log_warning(
                "Invalid settings values, using defaults",
                {"path": str(path), "error": str(e)},
            )
            return cls()

    def save(self, path: Path) -> None:
        """Write settings to a YAML file, creating parent directories."""
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False, allow_unicode=True)
