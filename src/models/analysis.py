"""Models for analyses, cache entries and usage analytics."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict


class ResultSource(Enum):
    """Where an analysis was served from."""

    CACHE = "cache"
    LIVE = "live"


@dataclass(frozen=True)
class AnalysisPayload:
    """An analysis of one artistic work."""

    title: str
    author: str
    category: str
    content: str

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "author": self.author,
            "category": self.category,
            "content": self.content,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalysisPayload":
        """Build a payload from a stored record.

        Raises:
            ValueError: if a field is missing or not a string
        """
        if not isinstance(data, dict):
            raise ValueError(f"Payload must be an object, got {type(data).__name__}")
        values = {}
        for name in ("title", "author", "category", "content"):
            value = data.get(name)
            if not isinstance(value, str):
                raise ValueError(f"Payload field '{name}' missing or not a string")
            values[name] = value
        return cls(**values)


@dataclass(frozen=True)
class CacheEntry:
    """A cached payload and the time it was stored (epoch milliseconds)."""

    key: str
    payload: AnalysisPayload
    stored_at: int

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.stored_at


@dataclass(frozen=True)
class AnalysisResult:
    """Outcome of a successful analysis request."""

    payload: AnalysisPayload
    source: ResultSource

    @property
    def from_cache(self) -> bool:
        return self.source is ResultSource.CACHE

    def to_dict(self) -> dict:
        data = self.payload.to_dict()
        data["source"] = self.source.value
        return data


@dataclass
class AnalyticsAggregate:
    """Usage counters across all sessions.

    Every recorded event bumps exactly one of cache_hits / api_calls and one
    category, so ``cache_hits + api_calls == sum(categories.values())``.
    """

    cache_hits: int = 0
    api_calls: int = 0
    categories: Dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return self.cache_hits + self.api_calls

    def is_consistent(self) -> bool:
        return self.total == sum(self.categories.values())

    def copy(self) -> "AnalyticsAggregate":
        return AnalyticsAggregate(
            cache_hits=self.cache_hits,
            api_calls=self.api_calls,
            categories=dict(self.categories),
        )

    def to_dict(self) -> dict:
        """Persisted layout."""
        return {
            "cacheHits": self.cache_hits,
            "apiCalls": self.api_calls,
            "categories": dict(self.categories),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AnalyticsAggregate":
        """Build an aggregate from the persisted layout.

        Raises:
            ValueError: if any counter is missing, negative or not an integer,
                or the totals disagree with the per-category counts
        """
        if not isinstance(data, dict):
            raise ValueError(f"Analytics record must be an object, got {type(data).__name__}")

        def _count(value: Any, label: str) -> int:
            # bool is an int subclass
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                raise ValueError(f"Invalid counter for {label}: {value!r}")
            return value

        categories = data.get("categories")
        if not isinstance(categories, dict):
            raise ValueError("Analytics record has no categories mapping")

        aggregate = cls(
            cache_hits=_count(data.get("cacheHits"), "cacheHits"),
            api_calls=_count(data.get("apiCalls"), "apiCalls"),
            categories={str(k): _count(v, str(k)) for k, v in categories.items()},
        )
        if not aggregate.is_consistent():
            raise ValueError(
                f"Analytics totals ({aggregate.total}) do not match category counts "
                f"({sum(aggregate.categories.values())})"
            )
        return aggregate
