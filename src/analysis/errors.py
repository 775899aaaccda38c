"""Error types for Meta Surfer analysis requests.

Every failure carries a kind, a user-facing message and, where the provider
reported one, an HTTP status code, so callers branch on ``error_type`` rather
than parsing text.

Request-level kinds reach the user:
- InvalidCategoryError
- RateLimitedError
- ProviderRequestFailedError
- UnexpectedProviderFormatError

StorageDegradedError is raised by the database layer only and absorbed by the
cache and analytics services.
"""

import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "You've exceeded the API rate limit. Please wait and try again later."
UNEXPECTED_FORMAT_MESSAGE = "Unexpected API response format"


class ErrorType(Enum):
    """Classification of analysis failures."""

    # Request-level errors, surfaced to the user
    INVALID_CATEGORY = "invalid_category"
    RATE_LIMITED = "rate_limited"
    PROVIDER_REQUEST_FAILED = "provider_request_failed"
    UNEXPECTED_PROVIDER_FORMAT = "unexpected_provider_format"

    # Absorbed locally, never surfaced
    STORAGE_DEGRADED = "storage_degraded"


class AnalysisError(Exception):
    """Base exception for analysis failures."""

    def __init__(
        self,
        error_type: ErrorType,
        message: str,
        status_code: Optional[int] = None,
        original_error: Optional[Exception] = None,
        context: Optional[dict] = None,
    ):
        self.error_type = error_type
        self.message = message
        self.status_code = status_code
        self.original_error = original_error
        self.context = context or {}
        super().__init__(message)

    def __str__(self) -> str:
        return f"[{self.error_type.value}] {self.message}"

    def to_dict(self) -> dict:
        """Convert to dictionary for display or logging."""
        return {
            "type": self.error_type.value,
            "message": self.message,
            "status_code": self.status_code,
            "context": self.context,
        }


class InvalidCategoryError(AnalysisError):
    """Raised when the requested category has no prompt template."""

    def __init__(self, category: str, **kwargs):
        super().__init__(
            ErrorType.INVALID_CATEGORY,
            f"Invalid category: {category}",
            context={"category": category},
            **kwargs,
        )


class RateLimitedError(AnalysisError):
    """Raised when the provider answers with a rate-limit status."""

    def __init__(self, message: str = RATE_LIMIT_MESSAGE, status_code: Optional[int] = 429, **kwargs):
        super().__init__(ErrorType.RATE_LIMITED, message, status_code=status_code, **kwargs)


class ProviderRequestFailedError(AnalysisError):
    """Raised for any other non-success provider response."""

    def __init__(self, status_code: Optional[int] = None, message: Optional[str] = None, **kwargs):
        if message is None:
            if status_code is not None:
                message = f"API request failed with status {status_code}"
            else:
                message = "API request failed"
        super().__init__(
            ErrorType.PROVIDER_REQUEST_FAILED, message, status_code=status_code, **kwargs
        )


class UnexpectedProviderFormatError(AnalysisError):
    """Raised when the provider succeeds but returns no analysis text."""

    def __init__(self, message: str = UNEXPECTED_FORMAT_MESSAGE, **kwargs):
        super().__init__(ErrorType.UNEXPECTED_PROVIDER_FORMAT, message, **kwargs)


class StorageDegradedError(AnalysisError):
    """Raised by the storage layer when the local database cannot be used."""

    def __init__(self, message: str = "Local storage unavailable", **kwargs):
        super().__init__(ErrorType.STORAGE_DEGRADED, message, **kwargs)


def log_degraded(error: StorageDegradedError, operation: str) -> None:
    """Record an absorbed storage failure."""
    logger.warning(f"{operation} proceeding without storage: {error}")


__all__ = [
    "ErrorType",
    "AnalysisError",
    "InvalidCategoryError",
    "RateLimitedError",
    "ProviderRequestFailedError",
    "UnexpectedProviderFormatError",
    "StorageDegradedError",
    "log_degraded",
    "RATE_LIMIT_MESSAGE",
    "UNEXPECTED_FORMAT_MESSAGE",
]
