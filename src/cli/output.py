"""Unified output manager for console and log file output.

All user-facing output goes through OutputManager so that it reaches both the
console and the log file.
"""

import logging
import textwrap
from typing import Any, Dict, Optional

from analysis.prompts import CATEGORY_LABELS
from models.analysis import AnalysisResult, AnalyticsAggregate
from utils.config import Config

APP_TITLE = "Meta Surfer"
APP_TAGLINE = "The easiest way to know an artistic work"
DISCLAIMER = (
    "Meta Surfer is an AI-powered app that can make mistakes. "
    "Please double-check the responses."
)
FALLBACK_NOTICE = "Something went wrong. Please restart Meta Surfer and try again."


class OutputManager:
    """Unified output manager for dual console/log output.

    Usage:
        from cli.output import get_output
        out = get_output(__name__)
        out.header("Meta Surfer")
        out.analysis(result)
        out.footer()
    """

    def __init__(self, logger: logging.Logger, width: int = 60):
        """Initialize OutputManager with a logger.

        Args:
            logger: Logger instance for file output
            width: Width of separators and wrapped text
        """
        self.logger = logger
        self.width = width

    def info(self, msg: str) -> None:
        print(msg)
        self.logger.info(msg)

    def success(self, msg: str, emoji: str = "✓") -> None:
        print(f"{emoji} {msg}")
        self.logger.info(f"[SUCCESS] {msg}")

    def warning(self, msg: str, emoji: str = "⚠") -> None:
        print(f"{emoji} {msg}")
        self.logger.warning(msg)

    def error(self, msg: str, emoji: str = "❌") -> None:
        print(f"{emoji} {msg}")
        self.logger.error(msg)

    def header(self, title: str, subtitle: Optional[str] = None) -> None:
        """Output section header.

        Args:
            title: Header title
            subtitle: Optional second line
        """
        line = "=" * self.width
        print(f"\n{line}")
        print(f"  {title}")
        if subtitle:
            print(f"  {subtitle}")
        print(f"{line}\n")
        self.logger.info(f"=== {title} ===")

    def subheader(self, title: str) -> None:
        print(f"\n{title}:")
        self.logger.info(f"--- {title} ---")

    def stat(self, label: str, value: Any, indent: int = 3) -> None:
        """Output a statistic or key-value pair.

        Args:
            label: Statistic label
            value: Statistic value
            indent: Number of spaces to indent
        """
        spaces = " " * indent
        print(f"{spaces}{label}: {value}")
        self.logger.info(f"STAT {label}={value}")

    def stats(self, stats_dict: Dict[str, Any], indent: int = 3) -> None:
        for label, value in stats_dict.items():
            self.stat(label, value, indent)

    def bullet(self, msg: str, indent: int = 3) -> None:
        spaces = " " * indent
        print(f"{spaces}- {msg}")
        self.logger.info(f"  - {msg}")

    def blank(self) -> None:
        print()

    def divider(self, char: str = "-") -> None:
        print(char * self.width)

    def analysis(self, result: AnalysisResult) -> None:
        """Output an analysis with its heading and source."""
        payload = result.payload
        label = CATEGORY_LABELS.get(payload.category, payload.category)
        self.header(payload.title, f"by {payload.author}  [{label}]")
        for paragraph in payload.content.split("\n"):
            if paragraph.strip():
                print(textwrap.fill(paragraph, width=self.width))
            else:
                print()
        print()
        source = "cache" if result.from_cache else "live analysis"
        self.logger.info(
            f"ANALYSIS '{payload.title}' by {payload.author} ({payload.category}) "
            f"from {source}, {len(payload.content)} chars"
        )
        self.stat("Source", source, indent=0)

    def analytics(self, aggregate: AnalyticsAggregate) -> None:
        """Output the usage statistics summary."""
        self.subheader("Usage Statistics")
        self.stat("Total Analyses", aggregate.total)
        self.stat("Cache Hits", aggregate.cache_hits)
        self.stat("API Calls", aggregate.api_calls)
        if aggregate.categories:
            self.subheader("Analyses by Category")
            for category, count in aggregate.categories.items():
                self.bullet(f"{category}: {count}")

    def footer(self) -> None:
        """Output the provider limits and disclaimer."""
        print()
        self.divider()
        print(f"API Limits: {Config.PROVIDER_LIMITS}")
        print(DISCLAIMER)


# Global output manager registry
_output_managers: Dict[str, OutputManager] = {}


def get_output(name: str = "metasurfer") -> OutputManager:
    """Get or create an OutputManager for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        OutputManager instance
    """
    if name not in _output_managers:
        logger = logging.getLogger(name)
        _output_managers[name] = OutputManager(logger)
    return _output_managers[name]


__all__ = [
    "OutputManager",
    "get_output",
    "APP_TITLE",
    "APP_TAGLINE",
    "DISCLAIMER",
    "FALLBACK_NOTICE",
]
