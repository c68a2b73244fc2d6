"""Durable key-value adapters backing the persistent stores.

An adapter is anything with ``read(key) -> str | None`` and
``write(key, text) -> bool``. Reads of an unavailable medium raise
``DurableReadError``; writes never raise and report failure as ``False``.
"""
import sqlite3
from datetime import datetime

import structlog

from exam_tracker.db import get_connection, init_db

logger = structlog.get_logger(__name__)


class StorageError(Exception):
    """Base class for durable storage failures."""


class DurableReadError(StorageError):
    """The backing medium could not be read."""


class DurableWriteError(StorageError):
    """The backing medium rejected a write (full, read-only, gone)."""


class SQLiteStorage:
    """Key-value storage kept in the ``kv_store`` table of a SQLite file."""

    def __init__(self, db_path: str):
        self.db_path = db_path
        init_db(db_path)

    def read(self, key: str) -> str | None:
        try:
            conn = get_connection(self.db_path)
            try:
                row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise DurableReadError(f"could not read {key!r}: {e}") from e
        return row["value"] if row else None

    def write(self, key: str, text: str) -> bool:
        try:
            conn = get_connection(self.db_path)
            try:
                conn.execute(
                    "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, ?) "
                    "ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=excluded.updated_at",
                    (key, text, datetime.now().isoformat()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            logger.warning("storage.write_failed", key=key, path=self.db_path, error=str(e))
            return False
        return True

    def remove(self, key: str) -> None:
        conn = get_connection(self.db_path)
        try:
            conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            conn.commit()
        finally:
            conn.close()

    def keys(self) -> list[str]:
        conn = get_connection(self.db_path)
        try:
            rows = conn.execute("SELECT key FROM kv_store ORDER BY key").fetchall()
        finally:
            conn.close()
        return [r["key"] for r in rows]


class MemoryStorage:
    """In-process storage for tests and throwaway sessions.

    ``fail_writes`` makes every write report failure, the way a full
    medium would.
    """

    def __init__(self, data: dict[str, str] | None = None, fail_writes: bool = False):
        self.data = dict(data or {})
        self.fail_writes = fail_writes

    def read(self, key: str) -> str | None:
        return self.data.get(key)

    def write(self, key: str, text: str) -> bool:
        if self.fail_writes:
            logger.warning("storage.write_failed", key=key, error="writes disabled")
            return False
        self.data[key] = text
        return True

    def remove(self, key: str) -> None:
        self.data.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self.data)
