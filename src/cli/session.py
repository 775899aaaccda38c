"""Front-end session state for Meta Surfer.

Holds what the user currently sees: the last analysis, the last error
message, whether a request is in flight and the latest usage statistics.
The storage services are created once per process and handed to the
orchestrator here.
"""

import logging
from pathlib import Path
from typing import Optional

from analysis.errors import AnalysisError, ErrorType
from analysis.orchestrator import AnalysisOrchestrator, AnalysisProvider
from analysis.provider import GeminiProvider
from cache.analysis_cache import AnalysisCache
from cache.analytics import AnalyticsCounter
from cache.database import CacheDatabase
from models.analysis import AnalysisResult, AnalyticsAggregate

logger = logging.getLogger(__name__)


class AnalysisSession:
    """One user's interaction with the analyzer."""

    def __init__(
        self,
        orchestrator: AnalysisOrchestrator,
        cache: AnalysisCache,
        analytics: AnalyticsCounter,
    ):
        self.orchestrator = orchestrator
        self.cache = cache
        self.analytics_counter = analytics

        self.analysis: Optional[AnalysisResult] = None
        self.error: Optional[str] = None
        self.error_type: Optional[ErrorType] = None
        self.is_loading = False
        self.analytics: Optional[AnalyticsAggregate] = None

    @classmethod
    def create(
        cls,
        db_path: Optional[Path] = None,
        provider: Optional[AnalysisProvider] = None,
    ) -> "AnalysisSession":
        """Wire up storage, provider and orchestrator.

        Args:
            db_path: Database file, defaults to the configured data directory
            provider: Analysis provider, defaults to GeminiProvider

        Returns:
            A started session
        """
        db = CacheDatabase(db_path)
        cache = AnalysisCache(db)
        analytics = AnalyticsCounter(db)
        orchestrator = AnalysisOrchestrator(cache, analytics, provider or GeminiProvider())
        session = cls(orchestrator, cache, analytics)
        session.start()
        return session

    def start(self) -> None:
        """Purge expired cache entries and load the usage statistics."""
        removed = self.cache.sweep_expired()
        logger.debug(f"Session started, {removed} expired entries removed")
        self.analytics = self.analytics_counter.snapshot()
        logger.debug(self.analytics_counter.format_summary(self.analytics))

    async def submit(self, title: str, author: str, category: str) -> Optional[AnalysisResult]:
        """Request an analysis and update the visible state.

        Returns:
            The result, or None if the request failed (see ``error``)
        """
        self.error = None
        self.error_type = None
        self.is_loading = True
        try:
            result = await self.orchestrator.request(title, author, category)
        except AnalysisError as e:
            self.error = e.message
            self.error_type = e.error_type
            logger.info(f"Analysis request failed: {e.to_dict()}")
            return None
        finally:
            self.is_loading = False
            self.analytics = self.analytics_counter.snapshot()

        self.analysis = result
        return result

    def reset(self) -> None:
        """Return to the input state."""
        self.analysis = None
        self.error = None
        self.error_type = None


__all__ = ["AnalysisSession"]
