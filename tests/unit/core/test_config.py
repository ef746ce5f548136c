"""
test_config.py
--------------
Unit tests for sermonlib.core.config.Settings (YAML settings file).
"""
from pathlib import Path
from unittest.mock import MagicMock

import yaml

from sermonlib.core.config import Settings
from sermonlib.core.logging_manager import CatalogLogger


class TestSettingsLoad:
    """Loading settings from YAML."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = Settings.load(tmp_path / "missing.yaml")
        assert settings == Settings()
        assert settings.debounce_seconds == 1.0
        assert settings.backup_timeout_seconds == 5.0
        assert settings.default_backup_location is None

    def test_round_trip(self, tmp_path):
        path = tmp_path / "conf" / "settings.yaml"
        original = Settings(
            default_backup_location=tmp_path / "backups",
            has_shown_backup_dialog=True,
            retention_days=7,
        )
        original.save(path)

        loaded = Settings.load(path)
        assert loaded == original

    def test_unknown_keys_ignored(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text(yaml.safe_dump({"dark_mode": True, "window_size": [800, 600]}))
        assert Settings.load(path).dark_mode is True

    def test_malformed_yaml_gives_defaults_and_warns(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("dark_mode: [unclosed\n")
        logger = MagicMock(spec=CatalogLogger)

        settings = Settings.load(path, logger=logger)

        assert settings == Settings()
        logger.log_warning.assert_called_once()

    def test_non_mapping_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("- just\n- a list\n")
        assert Settings.load(path) == Settings()

    def test_backup_location_expanded(self, tmp_path):
        path = tmp_path / "settings.yaml"
        path.write_text("default_backup_location: ~/SermonBackups\n")
        loaded = Settings.load(path)
        assert loaded.default_backup_location == Path("~/SermonBackups").expanduser()
