#!/usr/bin/env python3
"""Meta Surfer CLI - AI analysis of films, music, literature and visual art."""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent.parent / "src"))

from analysis.prompts import CATEGORY_LABELS, KNOWN_CATEGORIES
from analysis.provider import GeminiProvider
from cli.output import APP_TAGLINE, APP_TITLE, FALLBACK_NOTICE, OutputManager, get_output
from cli.session import AnalysisSession
from utils.config import Config
from utils.user_config import merge_with_cli_args

logger = logging.getLogger(__name__)


def setup_logging(
    log_dir: Optional[Path] = None,
    verbose: bool = False,
    log_file_name: Optional[str] = None,
) -> Path:
    """Setup logging to both console and file.

    Args:
        log_dir: Directory for log files (default: Config.LOG_DIR)
        verbose: If True, set DEBUG level; otherwise the configured level
        log_file_name: Custom log file name (default: auto-generated with timestamp)

    Returns:
        Path to the log file
    """
    log_dir = log_dir or Config.LOG_DIR
    log_dir.mkdir(parents=True, exist_ok=True)

    if log_file_name is None:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file_name = f"metasurfer_{timestamp}.log"
    log_file = log_dir / log_file_name

    log_level = logging.DEBUG if verbose else getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO)

    file_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_formatter = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(message)s",
        datefmt="%H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    # File handler (always DEBUG to capture everything)
    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(file_formatter)
    root_logger.addHandler(file_handler)

    # Console handler only shows problems unless verbose; OutputManager prints the rest
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level if verbose else max(log_level, logging.WARNING))
    console_handler.setFormatter(console_formatter)
    root_logger.addHandler(console_handler)

    # Reduce noise from third-party libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("LiteLLM").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)

    logging.info(f"Logging initialized. Log file: {log_file}")
    return log_file


def build_session(args) -> AnalysisSession:
    """Create a session from CLI arguments and user preferences."""
    prefs = merge_with_cli_args(
        cli_model=getattr(args, "model", None),
        cli_temperature=getattr(args, "temperature", None),
        cli_max_output_tokens=getattr(args, "max_tokens", None),
    )
    provider = GeminiProvider(
        model=prefs["model"],
        temperature=prefs["temperature"],
        max_output_tokens=prefs["max_output_tokens"],
    )
    db_path = Path(args.db) if getattr(args, "db", None) else None
    return AnalysisSession.create(db_path=db_path, provider=provider)


def resolve_category(args) -> str:
    if getattr(args, "category", None):
        return args.category
    return merge_with_cli_args()["default_category"]


def show_result(session: AnalysisSession, out: OutputManager) -> int:
    """Render the session's current analysis or error."""
    if session.error:
        out.error(session.error)
        return 1
    if session.analysis is not None:
        out.analysis(session.analysis)
    return 0


async def cmd_analyze(args, session: Optional[AnalysisSession] = None) -> int:
    """Analyze a single work."""
    out = get_output("metasurfer.analyze")
    session = session or build_session(args)
    category = resolve_category(args)

    out.header(APP_TITLE, APP_TAGLINE)
    out.info("Analyzing... Please wait.")
    await session.submit(args.title, args.author, category)

    status = show_result(session, out)
    if session.analytics is not None and not args.quiet:
        out.analytics(session.analytics)
    out.footer()
    return status


def _prompt(label: str, default: Optional[str] = None) -> str:
    suffix = f" [{default}]" if default else ""
    value = input(f"{label}{suffix}: ").strip()
    return value or (default or "")


async def cmd_interactive(args, session: Optional[AnalysisSession] = None) -> int:
    """Prompt for works until the user submits an empty title."""
    out = get_output("metasurfer.interactive")
    session = session or build_session(args)
    default_category = resolve_category(args)

    out.header(APP_TITLE, APP_TAGLINE)
    out.info("Categories: " + ", ".join(KNOWN_CATEGORIES))
    out.info("Leave the title empty to quit.")

    while True:
        try:
            title = _prompt("\nTitle")
            if not title:
                break
            author = _prompt("Author / artist")
            if not author:
                out.warning("An author is required.")
                continue
            category = _prompt("Category", default_category)
        except EOFError:
            break

        out.info("Analyzing... Please wait.")
        await session.submit(title, author, category)
        show_result(session, out)
        if session.analytics is not None:
            out.analytics(session.analytics)
        session.reset()

    out.footer()
    return 0


async def cmd_stats(args, session: Optional[AnalysisSession] = None) -> int:
    """Show usage statistics."""
    out = get_output("metasurfer.stats")
    session = session or build_session(args)
    out.header(APP_TITLE, APP_TAGLINE)
    out.analytics(session.analytics_counter.snapshot())
    out.footer()
    return 0


async def cmd_categories(args) -> int:
    """List the supported categories."""
    out = get_output("metasurfer.categories")
    out.subheader("Categories")
    for name in KNOWN_CATEGORIES:
        out.stat(name, CATEGORY_LABELS[name])
    return 0


async def cmd_cache(args, session: Optional[AnalysisSession] = None) -> int:
    """Manage the analysis cache."""
    out = get_output("metasurfer.cache")
    session = session or build_session(args)
    cache = session.cache

    if args.cache_command == "stats":
        out.header("Cache Statistics")
        stats = cache.stats()
        if not stats["available"]:
            out.warning("Cache database is unavailable")
            return 1
        out.stat("Database", cache.db.db_path)
        out.stat("Entries", stats["total_entries"])
        out.stat("Expired", stats["expired_entries"])
        for category, count in stats["by_category"].items():
            out.bullet(f"{category}: {count}")

    elif args.cache_command == "sweep":
        count = cache.sweep_expired()
        out.success(f"Removed {count} expired cache entries")

    elif args.cache_command == "clear":
        if not args.yes:
            confirm = input("This will delete all cached analyses. Are you sure? (y/N): ")
            if confirm.lower() != "y":
                out.info("Aborted")
                return 0
        count = cache.clear()
        out.success(f"Cleared {count} cache entries")

    elif args.cache_command == "vacuum":
        out.info("Optimizing database...")
        cache.db.vacuum()
        stats = cache.db.get_stats()
        out.success(f"Done. Database size: {stats.get('db_size_mb', 0)} MB")

    else:
        out.warning("No cache command specified. Use: stats, sweep, clear, or vacuum")
        return 1

    return 0


def _add_provider_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--model", "-m", help=f"litellm model name (default: {Config.LITELLM_MODEL})")
    parser.add_argument("--temperature", "-t", type=float, help="Sampling temperature")
    parser.add_argument("--max-tokens", type=int, help="Maximum output tokens")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="metasurfer",
        description="Meta Surfer - The easiest way to know an artistic work",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  metasurfer analyze "Dune" "Frank Herbert" -c literature
  metasurfer analyze "Blade Runner" "Ridley Scott" -c film
  metasurfer interactive
  metasurfer stats
  metasurfer cache stats
  metasurfer cache sweep
        """,
    )
    parser.add_argument("--db", help="Path to the local database file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Show debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # analyze command
    analyze_parser = subparsers.add_parser("analyze", help="Analyze an artistic work")
    analyze_parser.add_argument("title", help="Title of the work")
    analyze_parser.add_argument("author", help="Author, artist or director")
    analyze_parser.add_argument(
        "--category", "-c",
        help=f"One of: {', '.join(KNOWN_CATEGORIES)} (default from user config)",
    )
    analyze_parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Do not print usage statistics",
    )
    _add_provider_options(analyze_parser)

    # interactive command
    interactive_parser = subparsers.add_parser("interactive", help="Analyze works one after another")
    interactive_parser.add_argument("--category", "-c", help="Default category")
    _add_provider_options(interactive_parser)

    subparsers.add_parser("stats", help="Show usage statistics")
    subparsers.add_parser("categories", help="List supported categories")

    # cache command
    cache_parser = subparsers.add_parser("cache", help="Manage the local analysis cache")
    cache_subparsers = cache_parser.add_subparsers(dest="cache_command", help="Cache commands")
    cache_subparsers.add_parser("stats", help="Show cache statistics")
    cache_subparsers.add_parser("sweep", help="Remove expired entries")
    cache_clear_parser = cache_subparsers.add_parser("clear", help="Remove all entries")
    cache_clear_parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")
    cache_subparsers.add_parser("vacuum", help="Optimize database storage")

    return parser


async def async_main(args) -> int:
    """Async main entry point."""
    if args.command == "analyze":
        return await cmd_analyze(args)
    elif args.command == "interactive":
        return await cmd_interactive(args)
    elif args.command == "stats":
        return await cmd_stats(args)
    elif args.command == "categories":
        return await cmd_categories(args)
    elif args.command == "cache":
        return await cmd_cache(args)
    else:
        print("No command specified. Use --help for usage.")
        return 1


def run(args) -> int:
    """Run a parsed command behind the top-level fault boundary."""
    try:
        return asyncio.run(async_main(args))
    except KeyboardInterrupt:
        print()
        return 130
    except Exception:
        logger.exception("Unhandled error while rendering")
        print(FALLBACK_NOTICE, file=sys.stderr)
        return 1


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose or Config.DEBUG)
    Config.ensure_directories()
    logger.debug(f"Configuration: {Config.get_summary()}")
    if args.command in ("analyze", "interactive") and not Config.validate_api_keys()["gemini"]:
        logger.warning("GEMINI_API_KEY is not set; analysis requests will fail")
    return run(args)


if __name__ == "__main__":
    sys.exit(main())
