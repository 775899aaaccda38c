"""Coordination of a single analysis request.

    Idle -> CheckingCache -> CacheHit -> Done
                          -> CacheMiss -> CallingProvider -> Success -> Done
                                                          -> Failure -> Failed

A failed request is terminal; nothing is retried, cached or counted.
"""

import asyncio
import logging
from typing import Protocol

from analysis.errors import InvalidCategoryError
from analysis.prompts import is_known_category, render
from cache.analysis_cache import AnalysisCache, derive_key
from cache.analytics import AnalyticsCounter
from models.analysis import AnalysisPayload, AnalysisResult, ResultSource

logger = logging.getLogger(__name__)


class AnalysisProvider(Protocol):
    async def analyze(self, prompt: str) -> str:
        ...


class AnalysisOrchestrator:
    """Serve analyses from the cache, falling back to the provider."""

    def __init__(
        self,
        cache: AnalysisCache,
        analytics: AnalyticsCounter,
        provider: AnalysisProvider,
    ):
        self.cache = cache
        self.analytics = analytics
        self.provider = provider

    async def request(self, title: str, author: str, category: str) -> AnalysisResult:
        """Get an analysis of a work.

        Args:
            title: Title of the work
            author: Author, artist or director
            category: One of the known categories

        Returns:
            AnalysisResult tagged with its source

        Raises:
            InvalidCategoryError: category has no prompt template
            RateLimitedError: provider rate limit
            ProviderRequestFailedError: other provider failure
            UnexpectedProviderFormatError: provider answered without text
        """
        if not is_known_category(category):
            raise InvalidCategoryError(category)

        key = derive_key(title, author, category)

        entry = await self.cache.get_async(key)
        if entry is not None:
            await self.analytics.record_event_async(category, True)
            logger.info(f"Served '{title[:50]}' ({category}) from cache")
            return AnalysisResult(payload=entry.payload, source=ResultSource.CACHE)

        prompt = render(category, title, author)
        logger.info(f"Requesting analysis of '{title[:50]}' ({category})")
        content = await self.provider.analyze(prompt)

        payload = AnalysisPayload(title=title, author=author, category=category, content=content)
        # Once the provider has answered, storing and counting happen together
        # even if the caller stops waiting.
        await asyncio.shield(self._commit(key, payload))
        return AnalysisResult(payload=payload, source=ResultSource.LIVE)

    async def _commit(self, key: str, payload: AnalysisPayload) -> None:
        await self.cache.put_async(key, payload)
        await self.analytics.record_event_async(payload.category, False)


__all__ = ["AnalysisOrchestrator", "AnalysisProvider"]
