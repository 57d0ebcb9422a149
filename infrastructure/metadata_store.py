"""SQLite persistence for cached media metadata.

Records live in a single flat table keyed by asset identifier. Inserts and
deletes are buffered in the open transaction until `commit` is called, which
lets the sync engine batch its writes.
"""

from __future__ import annotations

from datetime import datetime
import os
from pathlib import Path
import sqlite3
import threading

from loguru import logger

from core.errors import MetadataStoreError
from core.models import MetadataRecord

_SCHEMA = """
CREATE TABLE IF NOT EXISTS media_metadata (
    identifier TEXT PRIMARY KEY NOT NULL,
    file_size INTEGER NOT NULL DEFAULT 0,
    creation_date TEXT,
    duration REAL NOT NULL DEFAULT 0,
    latitude REAL,
    longitude REAL
)
"""


def _format_datetime(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt else None


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        logger.warning("Invalid stored datetime: {}", value)
        return None


class SqliteMetadataStore:
    """`MetadataStore` backed by a SQLite database file."""

    def __init__(self, db_path: str | Path) -> None:
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            db_dir = os.path.dirname(self.db_path)
            if db_dir:
                os.makedirs(db_dir, exist_ok=True)
        self._lock = threading.Lock()
        try:
            # Writes happen on worker threads, reads on the UI thread
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            with self._lock:
                self._conn.execute(_SCHEMA)
                self._conn.commit()
        except sqlite3.Error as ex:
            raise MetadataStoreError(f"Cannot open metadata store {self.db_path}: {ex}") from ex
        logger.info("Metadata store opened: {}", self.db_path)

    def list_records(self) -> list[MetadataRecord]:
        try:
            with self._lock:
                rows = self._conn.execute(
                    "SELECT identifier, file_size, creation_date, duration, latitude, longitude "
                    "FROM media_metadata"
                ).fetchall()
        except sqlite3.Error as ex:
            raise MetadataStoreError(f"Failed to list metadata records: {ex}") from ex
        return [
            MetadataRecord(
                identifier=row[0],
                file_size=int(row[1] or 0),
                creation_date=_parse_datetime(row[2]),
                duration=float(row[3] or 0.0),
                latitude=row[4],
                longitude=row[5],
            )
            for row in rows
        ]

    def insert(self, record: MetadataRecord) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "INSERT INTO media_metadata "
                    "(identifier, file_size, creation_date, duration, latitude, longitude) "
                    "VALUES (?, ?, ?, ?, ?, ?)",
                    (
                        record.identifier,
                        int(record.file_size),
                        _format_datetime(record.creation_date),
                        float(record.duration),
                        record.latitude,
                        record.longitude,
                    ),
                )
        except sqlite3.Error as ex:
            raise MetadataStoreError(f"Failed to insert {record.identifier}: {ex}") from ex

    def delete(self, record: MetadataRecord) -> None:
        try:
            with self._lock:
                self._conn.execute(
                    "DELETE FROM media_metadata WHERE identifier = ?", (record.identifier,)
                )
        except sqlite3.Error as ex:
            raise MetadataStoreError(f"Failed to delete {record.identifier}: {ex}") from ex

    def commit(self) -> None:
        try:
            with self._lock:
                self._conn.commit()
        except sqlite3.Error as ex:
            raise MetadataStoreError(f"Failed to commit metadata store: {ex}") from ex

    def rollback(self) -> None:
        """Discard inserts and deletes not yet committed."""
        try:
            with self._lock:
                self._conn.rollback()
        except sqlite3.Error as ex:
            raise MetadataStoreError(f"Failed to roll back metadata store: {ex}") from ex

    def close(self) -> None:
        with self._lock:
            self._conn.close()
