"""
test_persistence.py
-------------------
Unit tests for the key-value stores and the debounced writer.
"""
import threading
import time
from unittest.mock import MagicMock

import pytest

from sermonlib.catalog.persistence import DebouncedWriter, InMemoryStore, SqliteBlobStore
from sermonlib.core.exceptions import PersistenceUnavailableError


class TestInMemoryStore:
    """Dictionary-backed store."""

    def test_put_get(self):
        store = InMemoryStore()
        assert store.get("sermon-data") is None
        store.put("sermon-data", "{}")
        assert store.get("sermon-data") == "{}"


class TestSqliteBlobStore:
    """SQLite-backed store."""

    def test_put_get_overwrite(self, tmp_path):
        store = SqliteBlobStore(tmp_path / "data" / "sermons.db")
        store.put("sermon-data", "first")
        store.put("sermon-data", "second")

        assert store.get("sermon-data") == "second"
        assert store.get("missing") is None
        store.dispose()

    def test_persists_across_instances(self, tmp_path):
        path = tmp_path / "sermons.db"
        first = SqliteBlobStore(path)
        first.put("sermon-data", '{"sermons": []}')
        first.dispose()

        second = SqliteBlobStore(path)
        assert second.get("sermon-data") == '{"sermons": []}'
        second.dispose()

    def test_unopenable_path_raises(self, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(PersistenceUnavailableError):
            SqliteBlobStore(blocker / "sermons.db")


class TestDebouncedWriter:
    """Quiet-window coalescing."""

    def test_latest_payload_wins(self):
        written = []
        done = threading.Event()

        def _write(payload):
            written.append(payload)
            done.set()

        writer = DebouncedWriter(_write, delay=0.05)
        writer.schedule("one")
        writer.schedule("two")
        writer.schedule("three")

        assert done.wait(2)
        time.sleep(0.1)
        assert written == ["three"]
        assert writer.writes == 1
        assert writer.pending is False

    def test_flush_writes_immediately(self):
        write = MagicMock()
        writer = DebouncedWriter(write, delay=10)
        writer.schedule("payload")

        assert writer.flush() is True
        write.assert_called_once_with("payload")
        assert writer.flush() is False

    def test_cancel_discards(self):
        write = MagicMock()
        writer = DebouncedWriter(write, delay=0.05)
        writer.schedule("payload")
        writer.cancel()

        time.sleep(0.15)
        write.assert_not_called()
        assert writer.pending is False

    def test_flush_propagates_failure(self):
        write = MagicMock(side_effect=PersistenceUnavailableError("disk gone"))
        writer = DebouncedWriter(write, delay=10)
        writer.schedule("payload")

        with pytest.raises(PersistenceUnavailableError):
            writer.flush()

    def test_timer_failure_is_logged(self):
        logger = MagicMock()
        fired = threading.Event()

        def _write(payload):
            fired.set()
            raise PersistenceUnavailableError("disk gone")

        writer = DebouncedWriter(_write, delay=0.01, logger=logger)
        writer.schedule("payload")

        assert fired.wait(2)
        time.sleep(0.05)
        logger.log_error.assert_called_once()
        assert writer.writes == 0
