#!/usr/bin/env python
"""Tests for the Gemini provider and failure classification.

Run with: pytest tests/test_provider.py -v
"""

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class StatusError(Exception):
    def __init__(self, status_code, message="boom"):
        super().__init__(message)
        self.status_code = status_code


def make_response(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


# === classify_provider_failure ===

def test_classify_429_as_rate_limited():
    from analysis.errors import ErrorType, RATE_LIMIT_MESSAGE
    from analysis.provider import classify_provider_failure

    error = classify_provider_failure(StatusError(429))
    assert error.error_type is ErrorType.RATE_LIMITED
    assert error.message == RATE_LIMIT_MESSAGE
    assert error.status_code == 429


def test_classify_other_status_includes_code():
    from analysis.errors import ErrorType
    from analysis.provider import classify_provider_failure

    error = classify_provider_failure(StatusError(500))
    assert error.error_type is ErrorType.PROVIDER_REQUEST_FAILED
    assert error.status_code == 500
    assert error.message == "API request failed with status 500"


def test_classify_status_on_response_attribute():
    from analysis.errors import ErrorType
    from analysis.provider import classify_provider_failure

    exc = Exception("http")
    exc.response = SimpleNamespace(status_code=429)
    assert classify_provider_failure(exc).error_type is ErrorType.RATE_LIMITED


def test_classify_without_status():
    from analysis.errors import ErrorType
    from analysis.provider import classify_provider_failure

    error = classify_provider_failure(ConnectionError("no route"))
    assert error.error_type is ErrorType.PROVIDER_REQUEST_FAILED
    assert error.status_code is None
    assert error.message == "API request failed"


def test_classify_litellm_rate_limit():
    import litellm
    from analysis.errors import ErrorType
    from analysis.provider import classify_provider_failure

    exc = litellm.RateLimitError(message="quota", llm_provider="gemini", model="gemini/gemini-1.0-pro")
    assert classify_provider_failure(exc).error_type is ErrorType.RATE_LIMITED


def test_classify_passes_through_classified_errors():
    from analysis.errors import UnexpectedProviderFormatError
    from analysis.provider import classify_provider_failure

    original = UnexpectedProviderFormatError()
    assert classify_provider_failure(original) is original


# === extract_content ===

def test_extract_content():
    from analysis.provider import extract_content
    assert extract_content(make_response("An analysis")) == "An analysis"


@pytest.mark.parametrize("response", [
    make_response(None),
    make_response(""),
    SimpleNamespace(choices=[]),
    SimpleNamespace(),
    None,
])
def test_extract_content_unexpected_format(response):
    from analysis.errors import UNEXPECTED_FORMAT_MESSAGE, UnexpectedProviderFormatError
    from analysis.provider import extract_content

    with pytest.raises(UnexpectedProviderFormatError) as exc_info:
        extract_content(response)
    assert exc_info.value.message == UNEXPECTED_FORMAT_MESSAGE


# === GeminiProvider.analyze ===

def test_analyze_sends_generation_settings():
    from analysis.provider import SAFETY_SETTINGS, GeminiProvider

    provider = GeminiProvider(model="gemini/test-model", api_key="k")
    mock = AsyncMock(return_value=make_response("Result"))
    with patch("litellm.acompletion", mock):
        text = asyncio.run(provider.analyze("Analyze 'Dune'"))

    assert text == "Result"
    kwargs = mock.call_args.kwargs
    assert kwargs["model"] == "gemini/test-model"
    assert kwargs["messages"] == [{"role": "user", "content": "Analyze 'Dune'"}]
    assert kwargs["temperature"] == 0.7
    assert kwargs["top_k"] == 40
    assert kwargs["top_p"] == 0.95
    assert kwargs["max_tokens"] == 1024
    assert kwargs["safety_settings"] == SAFETY_SETTINGS
    assert kwargs["api_key"] == "k"


def test_analyze_rate_limited():
    from analysis.errors import RateLimitedError
    from analysis.provider import GeminiProvider

    mock = AsyncMock(side_effect=StatusError(429))
    with patch("litellm.acompletion", mock):
        with pytest.raises(RateLimitedError):
            asyncio.run(GeminiProvider(model="m").analyze("p"))


def test_analyze_request_failed():
    from analysis.errors import ProviderRequestFailedError
    from analysis.provider import GeminiProvider

    mock = AsyncMock(side_effect=StatusError(400))
    with patch("litellm.acompletion", mock):
        with pytest.raises(ProviderRequestFailedError) as exc_info:
            asyncio.run(GeminiProvider(model="m").analyze("p"))
    assert exc_info.value.status_code == 400


def test_analyze_empty_content():
    from analysis.errors import UnexpectedProviderFormatError
    from analysis.provider import GeminiProvider

    mock = AsyncMock(return_value=make_response(None))
    with patch("litellm.acompletion", mock):
        with pytest.raises(UnexpectedProviderFormatError):
            asyncio.run(GeminiProvider(model="m").analyze("p"))


def test_no_automatic_retry():
    from analysis.errors import ProviderRequestFailedError
    from analysis.provider import GeminiProvider

    mock = AsyncMock(side_effect=StatusError(503))
    with patch("litellm.acompletion", mock):
        with pytest.raises(ProviderRequestFailedError):
            asyncio.run(GeminiProvider(model="m").analyze("p"))
    assert mock.call_count == 1
