"""Meta Surfer analysis requests.

- errors: classified request and storage failures
- prompts: category templates and rendering
- provider: Gemini access through litellm, with failure classification
- orchestrator: cache lookup, provider call, storage and counting

The provider and orchestrator are imported from their modules directly;
the storage layer depends on this package for its error types.
"""

from analysis.errors import (
    AnalysisError,
    ErrorType,
    InvalidCategoryError,
    ProviderRequestFailedError,
    RateLimitedError,
    StorageDegradedError,
    UnexpectedProviderFormatError,
)
from analysis.prompts import CATEGORY_LABELS, KNOWN_CATEGORIES, is_known_category, render

__all__ = [
    "AnalysisError",
    "ErrorType",
    "InvalidCategoryError",
    "ProviderRequestFailedError",
    "RateLimitedError",
    "StorageDegradedError",
    "UnexpectedProviderFormatError",
    "CATEGORY_LABELS",
    "KNOWN_CATEGORIES",
    "is_known_category",
    "render",
]
