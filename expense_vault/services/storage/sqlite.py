"""
SQLite Storage Implementation

A single `kv` table in an embedded SQLite database. Every write is its
own transaction, so a value is either fully replaced or untouched.

Values are read as bytes and decoded here: SQLite does not check that
TEXT is valid UTF-8, and a row written by another program may not be.
"""

import sqlite3
from pathlib import Path
from typing import Iterator, Optional

from tenacity import (
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from expense_vault.services.storage.interface import (
    KeyValueStore,
    QuotaExceededError,
    StoreUnavailableError,
    UndecodableValueError,
    WriteFailureError,
)


def _is_locked(error: BaseException) -> bool:
    return isinstance(error, sqlite3.OperationalError) and "locked" in str(error).lower()


class SqliteKeyValueStore(KeyValueStore):
    """SQLite-backed key-value store."""

    def __init__(
        self,
        db_path: Path,
        quota_bytes: int = 0,
        retry_attempts: int = 3,
    ):
        super().__init__(quota_bytes=quota_bytes)
        self._db_path = Path(db_path)
        self._retry_attempts = retry_attempts
        try:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(self._db_path))
            self._conn.text_factory = bytes
            self._conn.execute("PRAGMA busy_timeout=2000")
            with self._conn:
                self._conn.execute(
                    "CREATE TABLE IF NOT EXISTS kv ("
                    " key TEXT PRIMARY KEY,"
                    " value TEXT NOT NULL"
                    ")"
                )
        except (OSError, sqlite3.Error) as e:
            raise StoreUnavailableError(
                f"Cannot open SQLite store {self._db_path}: {e}"
            ) from e

    @property
    def db_path(self) -> Path:
        return self._db_path

    def get_item(self, key: str) -> Optional[str]:
        try:
            row = self._conn.execute(
                "SELECT CAST(value AS BLOB) FROM kv WHERE key = ?", (key,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot read '{key}': {e}") from e
        if row is None:
            return None
        raw = row[0]
        try:
            return raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise UndecodableValueError(
                f"Value for '{key}' is not valid UTF-8: {e}", raw_size=len(raw)
            ) from e

    def set_item(self, key: str, value: str) -> None:
        self.check_quota(key, value)
        self._write(
            key,
            "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)",
            (key, value),
        )

    def copy_item(self, source: str, destination: str) -> None:
        try:
            row = self._conn.execute(
                "SELECT length(CAST(value AS BLOB)) FROM kv WHERE key = ?", (source,)
            ).fetchone()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot read '{source}': {e}") from e
        if row is None:
            return
        self.check_quota_size(destination, row[0])
        # Copied inside SQLite so the bytes are never decoded
        self._write(
            destination,
            "INSERT OR REPLACE INTO kv (key, value) SELECT ?, value FROM kv WHERE key = ?",
            (destination, source),
        )

    def _write(self, key: str, sql: str, params: tuple) -> None:
        try:
            for attempt in Retrying(
                stop=stop_after_attempt(self._retry_attempts),
                wait=wait_exponential(multiplier=0.05, max=1),
                retry=retry_if_exception(_is_locked),
                reraise=True,
            ):
                with attempt:
                    with self._conn:
                        self._conn.execute(sql, params)
        except sqlite3.ProgrammingError as e:
            raise StoreUnavailableError(f"Cannot write '{key}': {e}") from e
        except sqlite3.Error as e:
            if "full" in str(e).lower():
                raise QuotaExceededError(f"Database full writing '{key}': {e}") from e
            raise WriteFailureError(f"Failed to write '{key}': {e}") from e

    def remove_item(self, key: str) -> None:
        try:
            with self._conn:
                self._conn.execute("DELETE FROM kv WHERE key = ?", (key,))
        except sqlite3.Error as e:
            raise WriteFailureError(f"Failed to remove '{key}': {e}") from e

    def keys(self) -> Iterator[str]:
        try:
            rows = self._conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot list keys: {e}") from e
        return iter([bytes(row[0]).decode("utf-8", errors="replace") for row in rows])

    def close(self) -> None:
        self._conn.close()
