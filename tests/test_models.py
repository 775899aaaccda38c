#!/usr/bin/env python
"""Tests for analysis data models.

Run with: pytest tests/test_models.py -v
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def test_payload_from_dict():
    from models.analysis import AnalysisPayload

    payload = AnalysisPayload.from_dict(
        {"title": "Dune", "author": "Frank Herbert", "category": "literature", "content": "x"}
    )
    assert payload.title == "Dune"
    assert payload.to_dict()["content"] == "x"


@pytest.mark.parametrize("data", [
    None,
    [],
    {"title": "Dune", "author": "Frank Herbert", "category": "literature"},
    {"title": "Dune", "author": 3, "category": "literature", "content": "x"},
])
def test_payload_from_dict_rejects(data):
    from models.analysis import AnalysisPayload
    with pytest.raises(ValueError):
        AnalysisPayload.from_dict(data)


def test_result_source():
    from models.analysis import AnalysisPayload, AnalysisResult, ResultSource

    payload = AnalysisPayload("Dune", "Frank Herbert", "literature", "x")
    assert AnalysisResult(payload, ResultSource.CACHE).from_cache
    assert not AnalysisResult(payload, ResultSource.LIVE).from_cache
    assert AnalysisResult(payload, ResultSource.CACHE).to_dict()["source"] == "cache"


def test_aggregate_round_trip():
    from models.analysis import AnalyticsAggregate

    aggregate = AnalyticsAggregate(cache_hits=2, api_calls=1, categories={"film": 3})
    assert AnalyticsAggregate.from_dict(aggregate.to_dict()) == aggregate


@pytest.mark.parametrize("data", [
    {"cacheHits": 0, "apiCalls": 0},
    {"cacheHits": True, "apiCalls": 0, "categories": {"film": 1}},
    {"cacheHits": 0, "apiCalls": 1.0, "categories": {"film": 1}},
    {"cacheHits": 0, "apiCalls": 1, "categories": {"film": -1, "music": 2}},
    {"cacheHits": 0, "apiCalls": 2, "categories": {"film": 1}},
])
def test_aggregate_from_dict_rejects(data):
    from models.analysis import AnalyticsAggregate
    with pytest.raises(ValueError):
        AnalyticsAggregate.from_dict(data)


def test_aggregate_copy_is_independent():
    from models.analysis import AnalyticsAggregate

    original = AnalyticsAggregate(api_calls=1, categories={"film": 1})
    clone = original.copy()
    clone.categories["film"] = 5
    assert original.categories == {"film": 1}
