#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and configuration for the Sermon Library project.

All paths are Path objects rooted at the library home directory. The home
defaults to ``~/SermonLibrary`` and can be moved with the
``SERMONLIB_HOME`` environment variable (tests point it at a temp dir).

The layout:
    HOME/
    ├── data/          # Persisted catalog database and images
    │   ├── sermons.db
    │   └── images/
    ├── logs/          # Application logs
    ├── backups/       # Default auto-backup location
    └── settings.yaml  # User settings
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
from pathlib import Path


def _get_library_home() -> Path:
    """
    Determine the library home directory.

    Returns:
        Path object for the library home (not created here)
    """
    override = os.environ.get("SERMONLIB_HOME")
    if override:
        return Path(override).expanduser().resolve()
    return Path.home() / "SermonLibrary"


# ----- Library home -----
ROOT: Path = _get_library_home()
DATA_DIR = ROOT / "data"

# --- Persistence ---
DB_PATH = DATA_DIR / "sermons.db"
IMAGES_DIR = DATA_DIR / "images"

# --- Logs / backups / settings ---
LOG_DIR = ROOT / "logs"
BACKUP_DIR = ROOT / "backups"
SETTINGS_PATH = ROOT / "settings.yaml"

# --- File naming ---
SNAPSHOT_SUFFIX = ".slb"
AUTO_BACKUP_PREFIX = "SermonLibrary_AutoBackup_"
PERSISTENCE_KEY = "sermon-data"
