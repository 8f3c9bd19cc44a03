"""Key-value persistence for ledger and registry state."""

import logging
from pathlib import Path
from typing import Protocol

import aiosqlite

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when a value cannot be read from or written to the store."""


class Store(Protocol):
    """Durable key-value persistence."""

    async def get(self, key: str) -> bytes | None: ...

    async def set(self, key: str, data: bytes) -> None: ...


class SqliteStore:
    """Store backed by a single SQLite key-value table."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._db: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open database connection."""
        self._db = await aiosqlite.connect(self.db_path)
        self._db.row_factory = aiosqlite.Row
        logger.info(f"Connected to database at {self.db_path}")

    async def close(self) -> None:
        """Close database connection."""
        if self._db:
            await self._db.close()
            self._db = None
            logger.info("Database connection closed")

    @property
    def db(self) -> aiosqlite.Connection:
        """Get the database connection."""
        if self._db is None:
            raise StoreError("Database not connected")
        return self._db

    async def get(self, key: str) -> bytes | None:
        """Get the raw value stored under key."""
        try:
            async with self.db.execute(
                "SELECT value FROM kv_store WHERE key = ?", (key,)
            ) as cursor:
                row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to read {key!r}: {e}") from e

        if row is None:
            return None
        return bytes(row["value"])

    async def set(self, key: str, data: bytes) -> None:
        """Insert or replace the value stored under key."""
        try:
            await self.db.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                (key, data),
            )
            await self.db.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Failed to write {key!r}: {e}") from e


class MemoryStore:
    """Process-local store, used in tests and when no database is configured."""

    def __init__(self, initial: dict[str, bytes] | None = None):
        self.data: dict[str, bytes] = dict(initial or {})

    async def get(self, key: str) -> bytes | None:
        return self.data.get(key)

    async def set(self, key: str, data: bytes) -> None:
        self.data[key] = data
