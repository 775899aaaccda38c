"""Usage analytics for Meta Surfer.

Counts cache hits and provider calls in total and per category, and keeps
the counts in the local database across sessions. Durability is best effort:
a record that cannot be loaded starts the counters from zero, and a record
that cannot be saved stays visible in memory for the rest of the session.
"""

import json
import logging
import threading
from typing import Any, Optional, Tuple

from analysis.errors import StorageDegradedError, log_degraded
from cache.database import CacheDatabase
from models.analysis import AnalyticsAggregate

logger = logging.getLogger(__name__)

ANALYTICS_NAMESPACE = "analytics"

_SELECT_SQL = "SELECT record, version FROM analytics WHERE namespace = ?"
# Writes may land out of order under concurrency; the version guard keeps the newest
_UPSERT_SQL = """
    INSERT INTO analytics (namespace, record, version, updated_at)
    VALUES (?, ?, ?, datetime('now'))
    ON CONFLICT(namespace) DO UPDATE SET
        record = excluded.record,
        version = excluded.version,
        updated_at = excluded.updated_at
    WHERE excluded.version > analytics.version
        OR typeof(analytics.version) != 'integer'
"""


class AnalyticsCounter:
    """Aggregate counters for analysis requests."""

    def __init__(self, db: CacheDatabase, namespace: str = ANALYTICS_NAMESPACE):
        """Initialize the counter and load the persisted aggregate.

        Args:
            db: CacheDatabase instance owning the analytics table
            namespace: Record key within the analytics table
        """
        self.db = db
        self.namespace = namespace
        self._lock = threading.Lock()
        self._aggregate, self._version = self._load()

    def _parse_record(self, row: Any) -> Tuple[AnalyticsAggregate, int]:
        version = row["version"] if isinstance(row["version"], int) else 0
        try:
            aggregate = AnalyticsAggregate.from_dict(json.loads(row["record"]))
        except (TypeError, ValueError) as e:
            logger.warning(f"Discarding unreadable analytics record: {e}")
            return AnalyticsAggregate(), version
        return aggregate, version

    def _load(self) -> Tuple[AnalyticsAggregate, int]:
        try:
            with self.db.get_connection() as conn:
                row = conn.execute(_SELECT_SQL, (self.namespace,)).fetchone()
        except StorageDegradedError as e:
            log_degraded(e, "Analytics load")
            return AnalyticsAggregate(), 0

        if row is None:
            logger.debug("No analytics recorded yet")
            return AnalyticsAggregate(), 0

        aggregate, version = self._parse_record(row)
        logger.debug(
            f"Loaded analytics: {aggregate.cache_hits} hits, {aggregate.api_calls} calls"
        )
        return aggregate, version

    def _apply(self, category: str, was_cache_hit: bool) -> Tuple[AnalyticsAggregate, int]:
        """Update the in-memory aggregate and return a copy with its version."""
        with self._lock:
            if was_cache_hit:
                self._aggregate.cache_hits += 1
            else:
                self._aggregate.api_calls += 1
            self._aggregate.categories[category] = self._aggregate.categories.get(category, 0) + 1
            self._version += 1
            return self._aggregate.copy(), self._version

    def _save_params(self, aggregate: AnalyticsAggregate, version: int) -> tuple:
        return (self.namespace, json.dumps(aggregate.to_dict(), ensure_ascii=False), version)

    def _save(self, aggregate: AnalyticsAggregate, version: int) -> bool:
        try:
            with self.db.get_connection() as conn:
                conn.execute(_UPSERT_SQL, self._save_params(aggregate, version))
                conn.commit()
        except StorageDegradedError as e:
            log_degraded(e, "Analytics save")
            return False
        return True

    async def _save_async(self, aggregate: AnalyticsAggregate, version: int) -> bool:
        try:
            async with self.db.get_async_connection() as db:
                await db.execute(_UPSERT_SQL, self._save_params(aggregate, version))
                await db.commit()
        except StorageDegradedError as e:
            log_degraded(e, "Analytics save")
            return False
        return True

    def record_event(self, category: str, was_cache_hit: bool) -> AnalyticsAggregate:
        """Count one served analysis (sync).

        Args:
            category: Category of the request; any string is accepted
            was_cache_hit: True for a cache hit, False for a provider call

        Returns:
            Snapshot of the aggregate after the update
        """
        aggregate, version = self._apply(category, was_cache_hit)
        self._save(aggregate, version)
        logger.debug(f"Recorded {'cache hit' if was_cache_hit else 'API call'} for {category}")
        return aggregate

    async def record_event_async(self, category: str, was_cache_hit: bool) -> AnalyticsAggregate:
        """Count one served analysis (async).

        The in-memory update happens before the first await, so concurrent
        tasks on the same loop never interleave inside it.
        """
        aggregate, version = self._apply(category, was_cache_hit)
        await self._save_async(aggregate, version)
        logger.debug(f"Recorded {'cache hit' if was_cache_hit else 'API call'} for {category}")
        return aggregate

    def snapshot(self) -> AnalyticsAggregate:
        """Return a copy of the current aggregate."""
        with self._lock:
            return self._aggregate.copy()

    def format_summary(self, aggregate: Optional[AnalyticsAggregate] = None) -> str:
        """Format a human-readable usage summary."""
        s = aggregate or self.snapshot()
        lines = [
            f"Total Analyses: {s.total}",
            f"Cache Hits: {s.cache_hits}",
            f"API Calls: {s.api_calls}",
        ]
        if s.categories:
            lines.append("Analyses by Category:")
            for category, count in s.categories.items():
                lines.append(f"  {category}: {count}")
        return "\n".join(lines)


__all__ = ["AnalyticsCounter", "ANALYTICS_NAMESPACE"]
