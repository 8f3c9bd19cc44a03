"""Database migration runner."""

import logging
from pathlib import Path

import aiosqlite

logger = logging.getLogger(__name__)

SCHEMA_PATH = Path(__file__).parent / "schema.sql"
SCHEMA_VERSION = 1


async def init_database(db: aiosqlite.Connection) -> None:
    """Create the key-value table."""
    await db.executescript(SCHEMA_PATH.read_text())


async def run_migrations(db_path: Path) -> None:
    """Bring the database at db_path up to SCHEMA_VERSION.

    The version lives in SQLite's user_version pragma; a fresh file is 0.
    """
    async with aiosqlite.connect(db_path) as db:
        async with db.execute("PRAGMA user_version") as cursor:
            row = await cursor.fetchone()
        version = row[0] if row else 0

        if version >= SCHEMA_VERSION:
            logger.debug(f"Database schema at version {version}, nothing to do")
            return

        await init_database(db)
        await db.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        await db.commit()

        logger.info(f"Database at {db_path} migrated from version {version} to {SCHEMA_VERSION}")
