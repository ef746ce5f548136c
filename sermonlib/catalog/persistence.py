#!/usr/bin/env python3
"""
persistence.py
--------------------
Key-value persistence collaborator and debounced writer.

The catalog engine never touches the filesystem for its live state; it
hands serialized blobs to a ``KeyValueStore``. Two implementations exist:

    - InMemoryStore: dictionary-backed, used by tests and dry runs
    - SqliteBlobStore: SQLAlchemy ORM table ``blobs`` in a SQLite file

Writes triggered by catalog mutations go through ``DebouncedWriter``, which
coalesces bursts of mutations into a single write after a quiet window.
A newer payload always supersedes a pending one; there is no queue of
historical writes.

Usage:
    store = SqliteBlobStore(DB_PATH, logger=logger)
    writer = DebouncedWriter(lambda blob: store.put("sermon-data", blob), delay=1.0)
    writer.schedule(json_blob)
    writer.flush()
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import threading
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Dict, Iterator, Optional, Protocol, Union

# --- Third party imports ---
from sqlalchemy import DateTime, String, Text, create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

# --- Local imports ---
from sermonlib.core.exceptions import PersistenceUnavailableError
from sermonlib.core.logging_manager import CatalogLogger, safe_logger


class KeyValueStore(Protocol):
    """Opaque blob store used for live catalog persistence."""

    def put(self, key: str, value: str) -> None: ...

    def get(self, key: str) -> Optional[str]: ...


class InMemoryStore:
    """Dictionary-backed key-value store."""

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)


# --- ORM ---
class Base(DeclarativeBase):
    """Declarative base for the persistence tables."""

    pass


class Blob(Base):
    """
    A single stored value.

    Attributes:
        key: Lookup key (primary key)
        value: Serialized payload
        updated_at: Timestamp of the last write
    """

    __tablename__ = "blobs"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    def __repr__(self) -> str:
        return f"<Blob(key={self.key!r}, size={len(self.value)})>"


class SqliteBlobStore:
    """
    SQLite-backed key-value store.

    Every call runs in its own transactional session. SQLAlchemy errors are
    converted to ``PersistenceUnavailableError`` so callers see one failure
    type regardless of the backend.
    """

    def __init__(
        self,
        db_path: Union[str, Path],
        logger: Optional[CatalogLogger] = None,
    ) -> None:
        """
        Initialize engine and session factory, creating the table if needed.

        Args:
            db_path: Path to the SQLite file
            logger: Optional logger for persistence operations

        Raises:
            PersistenceUnavailableError: If the database cannot be opened
        """
        self.db_path = Path(db_path).expanduser().resolve()
        self.logger = logger

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(f"sqlite:///{self.db_path}", future=True)
            Base.metadata.create_all(self.engine)
        except (OSError, SQLAlchemyError) as e:
            safe_logger(self.logger).log_error(
                e, {"operation": "open_store", "db_path": str(self.db_path)}
            )
            raise PersistenceUnavailableError(
                f"Cannot open persistence store at {self.db_path}: {e}"
            ) from e

        self.SessionLocal = sessionmaker(bind=self.engine, expire_on_commit=False)

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Provide a transactional scope around a series of operations."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            safe_logger(self.logger).log_error(e, {"operation": "session"})
            raise PersistenceUnavailableError(f"Persistence operation failed: {e}") from e
        finally:
            session.close()

    def put(self, key: str, value: str) -> None:
        with self.session_scope() as session:
            blob = session.get(Blob, key)
            if blob is None:
                session.add(Blob(key=key, value=value))
            else:
                blob.value = value

        safe_logger(self.logger).log_operation(
            "blob_written", {"key": key, "size": len(value)}
        )

    def get(self, key: str) -> Optional[str]:
        with self.session_scope() as session:
            blob = session.get(Blob, key)
            return blob.value if blob is not None else None

    def dispose(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()


class DebouncedWriter:
    """
    Coalesce rapid successive writes into one.

    ``schedule()`` (re)starts a quiet-window timer; only the most recent
    payload is written when it fires. ``flush()`` writes any pending payload
    immediately and ``cancel()`` discards it.

    Write failures are logged and never raised from the timer thread;
    ``flush()`` propagates them to its caller.
    """

    def __init__(
        self,
        write: Callable[[str], None],
        delay: float = 1.0,
        logger: Optional[CatalogLogger] = None,
    ) -> None:
        self._write = write
        self.delay = delay
        self.logger = logger
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[str] = None
        self._generation = 0
        self.writes = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, payload: str) -> None:
        """Replace any pending payload and restart the quiet window."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._pending = payload
            self._generation += 1
            generation = self._generation
            self._timer = threading.Timer(self.delay, self._fire, args=(generation,))
            self._timer.daemon = True
            self._timer.start()

    def _take(self, generation: Optional[int] = None) -> Optional[str]:
        with self._lock:
            if generation is not None and generation != self._generation:
                return None
            payload, self._pending = self._pending, None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            return payload

    def _fire(self, generation: int) -> None:
        payload = self._take(generation)
        if payload is None:
            return
        try:
            self._write(payload)
            self.writes += 1
        except PersistenceUnavailableError as e:
            safe_logger(self.logger).log_error(e, {"operation": "debounced_write"})

    def flush(self) -> bool:
        """
        Write the pending payload now.

        Returns:
            True if something was written

        Raises:
            PersistenceUnavailableError: If the write fails
        """
        payload = self._take()
        if payload is None:
            return False
        self._write(payload)
        self.writes += 1
        return True

    def cancel(self) -> None:
        """Drop the pending payload without writing."""
        self._take()
