"""Meta Surfer local storage.

This package provides SQLite-based storage for:
- Analysis responses (24 hour TTL)
- Usage analytics
"""

from cache.database import CacheDatabase, default_db_path
from cache.analysis_cache import AnalysisCache, derive_key, CACHE_TTL_HOURS, CACHE_TTL_MS
from cache.analytics import AnalyticsCounter, ANALYTICS_NAMESPACE

__all__ = [
    "CacheDatabase",
    "default_db_path",
    "AnalysisCache",
    "derive_key",
    "CACHE_TTL_HOURS",
    "CACHE_TTL_MS",
    "AnalyticsCounter",
    "ANALYTICS_NAMESPACE",
]
