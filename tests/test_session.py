#!/usr/bin/env python
"""Tests for the front-end session and CLI rendering.

Tests cover:
- Startup sweep and analytics loading
- submit() success and error surfacing
- reset()
- CLI commands against a fake provider
- The top-level fault boundary

Run with: pytest tests/test_session.py -v
"""

import argparse
import asyncio
import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


class FakeProvider:
    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = 0

    async def analyze(self, prompt: str) -> str:
        self.calls += 1
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "session.db"


def make_session(db_path, *outcomes):
    from cli.session import AnalysisSession
    return AnalysisSession.create(db_path=db_path, provider=FakeProvider(*outcomes))


# === AnalysisSession ===

def test_start_sweeps_expired(db_path):
    from cache.analysis_cache import AnalysisCache, CACHE_TTL_MS
    from cache.database import CacheDatabase
    from models.analysis import AnalysisPayload

    now = 1_700_000_000_000
    old = AnalysisCache(CacheDatabase(db_path), clock=lambda: now - CACHE_TTL_MS - 1)
    old.put("stale", AnalysisPayload("A", "B", "film", "text"))

    session = make_session(db_path)
    assert not session.cache.contains("stale")
    assert session.analytics.total == 0


def test_submit_success_then_cached(db_path):
    session = make_session(db_path, "C1")

    result = asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))
    assert result is not None
    assert not result.from_cache
    assert session.analysis is result
    assert session.error is None
    assert session.is_loading is False
    assert session.analytics.api_calls == 1

    session.reset()
    assert session.analysis is None

    again = asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))
    assert again.from_cache
    assert again.payload.content == "C1"
    assert session.analytics.cache_hits == 1
    assert session.analytics.categories == {"literature": 2}


def test_submit_invalid_category(db_path):
    from analysis.errors import ErrorType

    session = make_session(db_path)
    result = asyncio.run(session.submit("David", "Michelangelo", "sculpture"))

    assert result is None
    assert session.error == "Invalid category: sculpture"
    assert session.error_type is ErrorType.INVALID_CATEGORY
    assert session.analytics.total == 0
    assert session.is_loading is False


def test_submit_rate_limited(db_path):
    from analysis.errors import ErrorType, RateLimitedError, RATE_LIMIT_MESSAGE

    session = make_session(db_path, RateLimitedError())
    asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))

    assert session.error == RATE_LIMIT_MESSAGE
    assert session.error_type is ErrorType.RATE_LIMITED
    assert session.analytics.total == 0


def test_error_cleared_on_next_submit(db_path):
    from analysis.errors import ProviderRequestFailedError

    session = make_session(db_path, ProviderRequestFailedError(status_code=500), "ok")
    asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))
    assert session.error == "API request failed with status 500"

    asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))
    assert session.error is None
    assert session.analysis.payload.content == "ok"


def test_reset_clears_error(db_path):
    session = make_session(db_path)
    asyncio.run(session.submit("X", "Y", "poetry"))
    session.reset()
    assert session.error is None
    assert session.error_type is None


# === CLI ===

def analyze_args(**overrides):
    values = {"title": "Dune", "author": "Frank Herbert", "category": "literature", "quiet": False}
    values.update(overrides)
    return argparse.Namespace(**values)


def test_cli_analyze_prints_result(db_path, capsys):
    from cli.metasurfer_cli import cmd_analyze

    session = make_session(db_path, "A desert planet epic.")
    status = asyncio.run(cmd_analyze(analyze_args(), session=session))
    out = capsys.readouterr().out

    assert status == 0
    assert "A desert planet epic." in out
    assert "Source: live analysis" in out
    assert "Total Analyses: 1" in out
    assert "API Limits: 15 RPM, 32,000 TPM, 1,500 RPD" in out
    assert "can make mistakes" in out


def test_cli_analyze_reports_error(db_path, capsys):
    from cli.metasurfer_cli import cmd_analyze

    session = make_session(db_path)
    status = asyncio.run(cmd_analyze(analyze_args(category="sculpture"), session=session))
    out = capsys.readouterr().out

    assert status == 1
    assert "Invalid category: sculpture" in out


def test_cli_stats(db_path, capsys):
    from cli.metasurfer_cli import cmd_stats

    session = make_session(db_path, "text")
    asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))
    asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))

    asyncio.run(cmd_stats(argparse.Namespace(), session=session))
    out = capsys.readouterr().out
    assert "Total Analyses: 2" in out
    assert "Cache Hits: 1" in out
    assert "literature: 2" in out


def test_cli_cache_stats_and_sweep(db_path, capsys):
    from cli.metasurfer_cli import cmd_cache

    session = make_session(db_path, "text")
    asyncio.run(session.submit("Dune", "Frank Herbert", "literature"))

    assert asyncio.run(cmd_cache(argparse.Namespace(cache_command="stats"), session=session)) == 0
    assert "Entries: 1" in capsys.readouterr().out

    assert asyncio.run(cmd_cache(argparse.Namespace(cache_command="sweep"), session=session)) == 0
    assert "Removed 0 expired" in capsys.readouterr().out

    args = argparse.Namespace(cache_command="clear", yes=True)
    assert asyncio.run(cmd_cache(args, session=session)) == 0
    assert "Cleared 1 cache entries" in capsys.readouterr().out


def test_cli_interactive(db_path, capsys, monkeypatch):
    from cli.metasurfer_cli import cmd_interactive

    answers = iter(["Dune", "Frank Herbert", "", "Dune", "Frank Herbert", "literature", ""])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(answers))

    session = make_session(db_path, "Spice.")
    status = asyncio.run(cmd_interactive(argparse.Namespace(category="literature"), session=session))
    out = capsys.readouterr().out

    assert status == 0
    assert out.count("Spice.") == 2
    assert session.analytics.cache_hits == 1
    assert session.analysis is None


def test_parser():
    from cli.metasurfer_cli import create_parser

    args = create_parser().parse_args(["analyze", "Dune", "Frank Herbert", "-c", "literature"])
    assert args.command == "analyze"
    assert args.title == "Dune"
    assert args.category == "literature"

    args = create_parser().parse_args(["--db", "x.db", "cache", "clear", "--yes"])
    assert args.cache_command == "clear"
    assert args.yes is True


def test_fault_boundary(monkeypatch, capsys):
    """An unexpected rendering error becomes a generic notice."""
    from cli import metasurfer_cli
    from cli.output import FALLBACK_NOTICE

    async def explode(args):
        raise RuntimeError("render failed")

    monkeypatch.setattr(metasurfer_cli, "async_main", explode)
    status = metasurfer_cli.run(argparse.Namespace(command="analyze"))

    assert status == 1
    assert FALLBACK_NOTICE in capsys.readouterr().err
