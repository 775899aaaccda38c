"""Remote analysis provider.

Sends a rendered prompt to Gemini through litellm and turns every failure into
one of the classified request errors before it reaches the orchestrator.
Nothing here retries; a failed call is reported once.
"""

import logging
from typing import Any, Dict, List, Optional

from analysis.errors import (
    AnalysisError,
    ProviderRequestFailedError,
    RateLimitedError,
    UnexpectedProviderFormatError,
)
from utils.config import Config

logger = logging.getLogger(__name__)

RATE_LIMIT_STATUS = 429

SAFETY_SETTINGS: List[Dict[str, str]] = [
    {
        "category": "HARM_CATEGORY_DANGEROUS_CONTENT",
        "threshold": "BLOCK_MEDIUM_AND_ABOVE",
    },
]


def _status_code(exc: BaseException) -> Optional[int]:
    """Pull an HTTP status code off a provider exception, if it has one."""
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    response = getattr(exc, "response", None)
    value = getattr(response, "status_code", None)
    if isinstance(value, int):
        return value
    return None


def classify_provider_failure(exc: Exception) -> AnalysisError:
    """Map a provider exception to a classified request error.

    Args:
        exc: Exception raised by the provider client

    Returns:
        RateLimitedError for status 429, ProviderRequestFailedError otherwise
    """
    if isinstance(exc, AnalysisError):
        return exc

    status = _status_code(exc)
    if status == RATE_LIMIT_STATUS:
        return RateLimitedError(original_error=exc)

    return ProviderRequestFailedError(
        status_code=status,
        original_error=exc,
        context={"detail": str(exc)[:200]},
    )


def extract_content(response: Any) -> str:
    """Pull the analysis text out of a completion response.

    Raises:
        UnexpectedProviderFormatError: if the response carries no text
    """
    try:
        content = response.choices[0].message.content
    except (AttributeError, IndexError, KeyError, TypeError) as e:
        raise UnexpectedProviderFormatError(original_error=e)

    if not isinstance(content, str) or not content:
        raise UnexpectedProviderFormatError()
    return content


class GeminiProvider:
    """Gemini text generation through litellm."""

    def __init__(
        self,
        model: Optional[str] = None,
        temperature: Optional[float] = None,
        top_k: Optional[int] = None,
        top_p: Optional[float] = None,
        max_output_tokens: Optional[int] = None,
        api_key: Optional[str] = None,
    ):
        self.model = model or Config.LITELLM_MODEL
        self.temperature = Config.TEMPERATURE if temperature is None else temperature
        self.top_k = Config.TOP_K if top_k is None else top_k
        self.top_p = Config.TOP_P if top_p is None else top_p
        self.max_output_tokens = max_output_tokens or Config.MAX_OUTPUT_TOKENS
        self.api_key = api_key or Config.GEMINI_API_KEY or None

    def _completion_kwargs(self) -> Dict[str, Any]:
        kwargs = {
            "model": self.model,
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_tokens": self.max_output_tokens,
            "safety_settings": SAFETY_SETTINGS,
        }
        if self.api_key:
            kwargs["api_key"] = self.api_key
        return kwargs

    async def analyze(self, prompt: str) -> str:
        """Request an analysis for a rendered prompt.

        Args:
            prompt: Prompt text from prompts.render()

        Returns:
            Generated analysis text

        Raises:
            RateLimitedError: provider reported a rate limit
            ProviderRequestFailedError: any other provider failure
            UnexpectedProviderFormatError: success without analysis text
        """
        from litellm import acompletion

        logger.debug(f"Calling {self.model} ({len(prompt)} chars)")
        try:
            response = await acompletion(
                messages=[{"role": "user", "content": prompt}],
                **self._completion_kwargs(),
            )
        except Exception as e:
            error = classify_provider_failure(e)
            logger.warning(f"Provider call failed: {error}")
            raise error from e

        return extract_content(response)


__all__ = [
    "GeminiProvider",
    "classify_provider_failure",
    "extract_content",
    "SAFETY_SETTINGS",
]
