"""Analysis response cache with a fixed 24 hour TTL.

Entries are keyed by (title, author, category) with exact string matching.
Expired entries are purged lazily on lookup and eagerly by sweep_expired(),
which the session runs once at startup.

Storage failures never reach the caller: lookups degrade to a miss and
writes degrade to "not cached".
"""

import hashlib
import json
import logging
import time
from typing import Any, Callable, Dict, Optional

from analysis.errors import StorageDegradedError, log_degraded
from cache.database import CacheDatabase
from models.analysis import AnalysisPayload, CacheEntry

logger = logging.getLogger(__name__)

CACHE_TTL_HOURS = 24
CACHE_TTL_MS = CACHE_TTL_HOURS * 60 * 60 * 1000

_SELECT_SQL = "SELECT cache_key, payload, stored_at FROM analysis_cache WHERE cache_key = ?"
_DELETE_SQL = "DELETE FROM analysis_cache WHERE cache_key = ? AND stored_at IS ?"
_UPSERT_SQL = """
    INSERT INTO analysis_cache (cache_key, title, author, category, payload, stored_at)
    VALUES (?, ?, ?, ?, ?, ?)
    ON CONFLICT(cache_key) DO UPDATE SET
        title = excluded.title,
        author = excluded.author,
        category = excluded.category,
        payload = excluded.payload,
        stored_at = excluded.stored_at
"""
# Rows whose timestamp is not an integer can never be served, so they go too
_SWEEP_SQL = """
    DELETE FROM analysis_cache
    WHERE typeof(stored_at) != 'integer' OR stored_at <= ?
"""


def derive_key(title: str, author: str, category: str) -> str:
    """Create the cache key for a (title, author, category) triple.

    The triple is JSON-encoded before hashing so that separator characters
    inside a field cannot make two distinct triples collide. No case or
    whitespace normalization is applied.

    Returns:
        SHA256 hex digest
    """
    encoded = json.dumps([title, author, category], ensure_ascii=False)
    return hashlib.sha256(encoded.encode("utf-8")).hexdigest()


def epoch_millis() -> int:
    return int(time.time() * 1000)


class AnalysisCache:
    """Device-local cache of analysis payloads."""

    def __init__(
        self,
        db: CacheDatabase,
        clock: Callable[[], int] = epoch_millis,
    ):
        """Initialize the analysis cache.

        Args:
            db: CacheDatabase instance owning the analysis_cache table
            clock: Returns the current time in epoch milliseconds
        """
        self.db = db
        self._clock = clock

    def _is_expired(self, entry: CacheEntry) -> bool:
        return entry.age_ms(self._clock()) >= CACHE_TTL_MS

    def _parse_row(self, row: Any) -> Optional[CacheEntry]:
        """Parse a stored row, returning None if it is malformed."""
        stored_at = row["stored_at"]
        if not isinstance(stored_at, int):
            return None
        try:
            payload = AnalysisPayload.from_dict(json.loads(row["payload"]))
        except (TypeError, ValueError) as e:
            logger.debug(f"Malformed cache record {row['cache_key'][:12]}: {e}")
            return None
        return CacheEntry(key=row["cache_key"], payload=payload, stored_at=stored_at)

    def _upsert_params(self, key: str, payload: AnalysisPayload, stored_at: int) -> tuple:
        return (
            key,
            payload.title,
            payload.author,
            payload.category,
            json.dumps(payload.to_dict(), ensure_ascii=False),
            stored_at,
        )

    # Synchronous methods

    def get(self, key: str) -> Optional[CacheEntry]:
        """Get a servable cache entry (sync).

        An expired or malformed entry is removed and reported as absent.

        Args:
            key: Cache key from derive_key()

        Returns:
            CacheEntry, or None if absent, expired, malformed or unreadable
        """
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(_SELECT_SQL, (key,)).fetchone()
                if row is None:
                    logger.debug(f"Cache miss: {key[:12]}")
                    return None

                entry = self._parse_row(row)
                if entry is not None and not self._is_expired(entry):
                    logger.debug(f"Cache hit: {key[:12]}")
                    return entry

                # Only drop the row we inspected, not a fresher concurrent write
                conn.execute(_DELETE_SQL, (key, row["stored_at"]))
                conn.commit()
                logger.debug(f"Evicted {'expired' if entry else 'malformed'} entry: {key[:12]}")
                return None

        except StorageDegradedError as e:
            log_degraded(e, "Cache lookup")
            return None

    def put(self, key: str, payload: AnalysisPayload) -> bool:
        """Store a payload, overwriting any existing entry (sync).

        Args:
            key: Cache key from derive_key()
            payload: Analysis payload to cache

        Returns:
            True if the entry was written
        """
        stored_at = self._clock()
        try:
            with self.db.get_connection() as conn:
                conn.execute(_UPSERT_SQL, self._upsert_params(key, payload, stored_at))
                conn.commit()
        except StorageDegradedError as e:
            log_degraded(e, "Cache write")
            return False

        logger.debug(f"Cached analysis of '{payload.title[:50]}' ({payload.category})")
        return True

    def sweep_expired(self) -> int:
        """Remove every expired entry (sync).

        Returns:
            Number of entries removed
        """
        cutoff = self._clock() - CACHE_TTL_MS
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute(_SWEEP_SQL, (cutoff,))
                count = cursor.rowcount
                conn.commit()
        except StorageDegradedError as e:
            log_degraded(e, "Cache sweep")
            return 0

        if count:
            logger.info(f"Swept {count} expired cache entries")
        return count

    def clear(self) -> int:
        """Remove all entries (sync).

        Returns:
            Number of entries removed
        """
        try:
            with self.db.get_connection() as conn:
                cursor = conn.execute("DELETE FROM analysis_cache")
                count = cursor.rowcount
                conn.commit()
        except StorageDegradedError as e:
            log_degraded(e, "Cache clear")
            return 0

        logger.info(f"Cleared {count} cache entries")
        return count

    def contains(self, key: str) -> bool:
        """Check whether any row exists for a key, expired or not (sync)."""
        try:
            with self.db.get_connection() as conn:
                return conn.execute(_SELECT_SQL, (key,)).fetchone() is not None
        except StorageDegradedError as e:
            log_degraded(e, "Cache inspection")
            return False

    def stats(self) -> Dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dict with total and expired entry counts and per-category totals
        """
        cutoff = self._clock() - CACHE_TTL_MS
        try:
            with self.db.get_connection() as conn:
                total = conn.execute("SELECT COUNT(*) FROM analysis_cache").fetchone()[0]
                expired = conn.execute(
                    "SELECT COUNT(*) FROM analysis_cache WHERE stored_at <= ?", (cutoff,)
                ).fetchone()[0]
                rows = conn.execute(
                    "SELECT category, COUNT(*) AS n FROM analysis_cache GROUP BY category"
                ).fetchall()
        except StorageDegradedError as e:
            log_degraded(e, "Cache statistics")
            return {"total_entries": 0, "expired_entries": 0, "by_category": {}, "available": False}

        return {
            "total_entries": total,
            "expired_entries": expired,
            "by_category": {row["category"]: row["n"] for row in rows},
            "available": True,
        }

    # Asynchronous methods

    async def get_async(self, key: str) -> Optional[CacheEntry]:
        """Get a servable cache entry (async).

        Args:
            key: Cache key from derive_key()

        Returns:
            CacheEntry, or None if absent, expired, malformed or unreadable
        """
        try:
            async with self.db.get_async_connection() as db:
                cursor = await db.execute(_SELECT_SQL, (key,))
                row = await cursor.fetchone()
                if row is None:
                    logger.debug(f"Cache miss: {key[:12]}")
                    return None

                entry = self._parse_row(row)
                if entry is not None and not self._is_expired(entry):
                    logger.debug(f"Cache hit: {key[:12]}")
                    return entry

                await db.execute(_DELETE_SQL, (key, row["stored_at"]))
                await db.commit()
                logger.debug(f"Evicted {'expired' if entry else 'malformed'} entry: {key[:12]}")
                return None

        except StorageDegradedError as e:
            log_degraded(e, "Cache lookup")
            return None

    async def put_async(self, key: str, payload: AnalysisPayload) -> bool:
        """Store a payload, overwriting any existing entry (async).

        Returns:
            True if the entry was written
        """
        stored_at = self._clock()
        try:
            async with self.db.get_async_connection() as db:
                await db.execute(_UPSERT_SQL, self._upsert_params(key, payload, stored_at))
                await db.commit()
        except StorageDegradedError as e:
            log_degraded(e, "Cache write")
            return False

        logger.debug(f"Cached analysis of '{payload.title[:50]}' ({payload.category})")
        return True

    async def sweep_expired_async(self) -> int:
        """Remove every expired entry (async).

        Returns:
            Number of entries removed
        """
        cutoff = self._clock() - CACHE_TTL_MS
        try:
            async with self.db.get_async_connection() as db:
                cursor = await db.execute(_SWEEP_SQL, (cutoff,))
                count = cursor.rowcount
                await db.commit()
        except StorageDegradedError as e:
            log_degraded(e, "Cache sweep")
            return 0

        if count:
            logger.info(f"Swept {count} expired cache entries")
        return count


# Export
__all__ = ["AnalysisCache", "derive_key", "epoch_millis", "CACHE_TTL_HOURS", "CACHE_TTL_MS"]
