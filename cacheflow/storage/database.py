"""
Manages the SQLite database that backs the response cache.
"""

import asyncio
import logging
import sqlite3
from pathlib import Path
from typing import Any

log = logging.getLogger(__name__)

Row = tuple[str, str, int]


class SqliteStore:
    """
    A thread-safe SQLite key/value store holding one row per cache key
    with connection pooling and insert-or-replace writes.
    """

    DB_FILE_NAME = "cache_database.sqlite"

    def __init__(self, data_dir_path: Path, pool_size: int = 5):
        data_dir_path.mkdir(parents=True, exist_ok=True)
        self.db_path = data_dir_path / self.DB_FILE_NAME
        self._connection_semaphore = asyncio.Semaphore(pool_size)
        self._initialize_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Gets a new database connection with optimized PRAGMA settings."""
        try:
            conn = sqlite3.connect(self.db_path, timeout=30, check_same_thread=False)
            conn.execute("PRAGMA journal_mode=WAL;")
            conn.execute("PRAGMA synchronous=NORMAL;")
            conn.execute("PRAGMA temp_store=MEMORY;")
            return conn
        except sqlite3.Error as e:
            log.error(f"Failed to connect to cache database: {e}")
            raise

    def _initialize_db(self) -> None:
        """Creates the database and table if they don't exist."""
        with self._get_connection() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS cache_entries (
                    key TEXT PRIMARY KEY NOT NULL,
                    payload TEXT NOT NULL,
                    stored_at INTEGER NOT NULL
                );
                """
            )
            conn.commit()
        conn.close()

    async def _run_in_executor(self, func, *args) -> Any:
        """Runs a synchronous database function within the connection pool semaphore."""
        async with self._connection_semaphore:
            return await asyncio.to_thread(func, *args)

    def _execute_write(self, query: str, params: tuple = ()) -> None:
        conn = self._get_connection()
        try:
            with conn:
                conn.execute(query, params)
        finally:
            conn.close()

    def _get_sync(self, key: str) -> Row | None:
        conn = self._get_connection()
        try:
            cursor = conn.execute(
                "SELECT key, payload, stored_at FROM cache_entries WHERE key = ?",
                (key,),
            )
            return cursor.fetchone()
        finally:
            conn.close()

    def _count_sync(self) -> int:
        conn = self._get_connection()
        try:
            return conn.execute("SELECT COUNT(*) FROM cache_entries").fetchone()[0]
        finally:
            conn.close()

    def _vacuum_sync(self) -> None:
        conn = self._get_connection()
        try:
            conn.execute("VACUUM;")
            conn.execute("ANALYZE;")
        finally:
            conn.close()
        log.info("Cache database optimized successfully.")

    async def get(self, key: str) -> Row | None:
        """Returns the `(key, payload, stored_at)` row for a key, or None."""
        return await self._run_in_executor(self._get_sync, key)

    async def put(self, key: str, payload: str, stored_at: int) -> None:
        """Inserts the row, replacing any previous row for the same key."""
        await self._run_in_executor(
            self._execute_write,
            "INSERT OR REPLACE INTO cache_entries (key, payload, stored_at) "
            "VALUES (?, ?, ?)",
            (key, payload, stored_at),
        )

    async def delete(self, key: str) -> None:
        await self._run_in_executor(
            self._execute_write, "DELETE FROM cache_entries WHERE key = ?", (key,)
        )

    async def clear(self) -> None:
        await self._run_in_executor(self._execute_write, "DELETE FROM cache_entries")

    async def count(self) -> int:
        """Returns the number of stored rows."""
        return await self._run_in_executor(self._count_sync)

    async def vacuum(self) -> None:
        """Optimizes the database file by rebuilding it."""
        await self._run_in_executor(self._vacuum_sync)
