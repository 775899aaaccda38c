"""SQLite database management for the Meta Surfer local store.

This module handles database connection, initialization, and schema management.
The analysis cache and the usage analytics live in separate tables of the same
device-local file. Any sqlite or filesystem failure is re-raised as
StorageDegradedError so the owning services can absorb it.
"""

import logging
import sqlite3
from contextlib import asynccontextmanager, contextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Generator, List, Optional, Tuple

import aiosqlite

from analysis.errors import StorageDegradedError
from utils.config import Config

logger = logging.getLogger(__name__)

DEFAULT_DB_NAME = "metasurfer.db"

# Database schema version
SCHEMA_VERSION = 1

SCHEMA_SQL = """
-- Schema version tracking
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY,
    applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

-- Analysis responses, expired after a fixed TTL
CREATE TABLE IF NOT EXISTS analysis_cache (
    cache_key TEXT PRIMARY KEY,
    title TEXT,
    author TEXT,
    category TEXT,
    payload TEXT NOT NULL,
    stored_at INTEGER NOT NULL  -- epoch milliseconds
);

-- Usage analytics, one JSON record per namespace
CREATE TABLE IF NOT EXISTS analytics (
    namespace TEXT PRIMARY KEY,
    record TEXT NOT NULL,
    version INTEGER NOT NULL DEFAULT 0,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_analysis_cache_stored ON analysis_cache(stored_at);
CREATE INDEX IF NOT EXISTS idx_analysis_cache_category ON analysis_cache(category);
"""

STORAGE_ERRORS = (sqlite3.Error, OSError)


def default_db_path() -> Path:
    """Location of the database file under the data directory."""
    return Config.DATA_DIR / DEFAULT_DB_NAME


class CacheDatabase:
    """SQLite database manager.

    Provides both sync and async interfaces for database operations.
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the database manager.

        Args:
            db_path: Path to SQLite database file. Defaults to ~/.metasurfer/metasurfer.db
        """
        self.db_path = Path(db_path) if db_path is not None else default_db_path()
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            # Connecting will fail later and be reported as degraded storage
            logger.warning(f"Could not create database directory {self.db_path.parent}: {e}")
        self._initialized = False

    def init_schema(self) -> None:
        """Initialize database schema (synchronous)."""
        if self._initialized:
            return

        with self._connect() as conn:
            conn.executescript(SCHEMA_SQL)
            conn.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )
            conn.commit()

        logger.debug(f"Initialized database at {self.db_path}")
        self._initialized = True

    async def init_schema_async(self) -> None:
        """Initialize database schema (asynchronous)."""
        if self._initialized:
            return

        async with self._connect_async() as db:
            await db.executescript(SCHEMA_SQL)
            await db.execute(
                "INSERT OR IGNORE INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,)
            )
            await db.commit()

        logger.debug(f"Initialized database at {self.db_path}")
        self._initialized = True

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        try:
            conn = sqlite3.connect(self.db_path)
        except STORAGE_ERRORS as e:
            raise StorageDegradedError(
                f"Cannot open database {self.db_path}: {e}", original_error=e
            ) from e

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA journal_mode = WAL")
            yield conn
        except STORAGE_ERRORS as e:
            raise StorageDegradedError(f"Database error: {e}", original_error=e) from e
        finally:
            conn.close()

    @asynccontextmanager
    async def _connect_async(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        try:
            db = await aiosqlite.connect(self.db_path)
        except STORAGE_ERRORS as e:
            raise StorageDegradedError(
                f"Cannot open database {self.db_path}: {e}", original_error=e
            ) from e

        db.row_factory = aiosqlite.Row
        try:
            await db.execute("PRAGMA journal_mode = WAL")
            yield db
        except STORAGE_ERRORS as e:
            raise StorageDegradedError(f"Database error: {e}", original_error=e) from e
        finally:
            await db.close()

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Get a synchronous database connection with the schema in place.

        Yields:
            SQLite connection with row factory

        Raises:
            StorageDegradedError: if the database cannot be opened or used
        """
        self.init_schema()
        with self._connect() as conn:
            yield conn

    @asynccontextmanager
    async def get_async_connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get an asynchronous database connection with the schema in place.

        Yields:
            Async SQLite connection

        Raises:
            StorageDegradedError: if the database cannot be opened or used
        """
        await self.init_schema_async()
        async with self._connect_async() as db:
            yield db

    # Utility methods

    def execute(self, sql: str, params: Tuple = ()) -> List[sqlite3.Row]:
        """Execute SQL query synchronously.

        Args:
            sql: SQL query string
            params: Query parameters

        Returns:
            List of rows
        """
        with self.get_connection() as conn:
            cursor = conn.execute(sql, params)
            results = cursor.fetchall()
            conn.commit()
            return results

    def get_stats(self) -> Dict[str, Any]:
        """Get database statistics.

        Returns:
            Dictionary with table counts and file size
        """
        stats = {}
        with self.get_connection() as conn:
            for table in ("analysis_cache", "analytics"):
                cursor = conn.execute(f"SELECT COUNT(*) FROM {table}")
                stats[f"{table}_count"] = cursor.fetchone()[0]

        stats["db_size_mb"] = round(self.db_path.stat().st_size / (1024 * 1024), 2)
        return stats

    def vacuum(self) -> None:
        """Optimize database by running VACUUM."""
        with self.get_connection() as conn:
            conn.execute("VACUUM")
            logger.info("Database vacuumed successfully")


__all__ = [
    "CacheDatabase",
    "default_db_path",
    "DEFAULT_DB_NAME",
    "SCHEMA_VERSION",
]
