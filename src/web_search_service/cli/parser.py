"""CLI argument parser and banner display."""

from __future__ import annotations

import argparse

from rich.console import Console
from rich.panel import Panel

from .. import __version__
from ..core import ServiceSettings


def print_banner(settings: ServiceSettings) -> None:
    """Print a startup banner with configuration info."""
    console = Console()

    info = f"""[bold]Web Search Service[/bold] [green]v{__version__}[/]
Multi-provider web search with caching and fallback.

[dim]----------------------------------------------------[/]
[bold]Host:[/bold]     [yellow]{settings.host}[/]
[bold]Port:[/bold]     [yellow]{settings.port}[/]
[bold]Routing:[/bold]  [yellow]{settings.routing_mode}[/]
[bold]Cache:[/bold]    [{"green" if settings.cache_enabled else "red"}]{settings.cache_enabled}[/]
[bold]Database:[/bold] [yellow]{settings.database_url or settings.db_path}[/]
"""

    panel = Panel(
        info,
        title="[bold white]Startup[/]",
        border_style="blue",
        expand=False,
    )

    console.print(panel)


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser.

    Returns:
        ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="web-search-service",
        description="Web Search Service - multi-provider search with caching and fallback",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Start the HTTP service
  web-search-service serve --port 3002

  # Run a search from the terminal
  web-search-service search "python asyncio tutorial" -n 5

  # Ask NewsAPI for headlines
  web-search-service news "elections" --country gb

  # Show how a query would be routed
  web-search-service classify "bitcoin price today"
        """,
    )

    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"%(prog)s v{__version__}",
        help="Show program's version number and exit",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Start the HTTP service")
    serve_parser.add_argument("--host", help="Host to bind to (default: HOST or 0.0.0.0)")
    serve_parser.add_argument(
        "-p",
        "--port",
        type=int,
        help="Port to bind to (default: PORT or 3002)",
    )
    serve_parser.add_argument(
        "-d",
        "--debug",
        action="store_true",
        help="Enable debug/verbose logging mode",
    )

    # Search command
    search_parser = subparsers.add_parser("search", help="Run a web search")
    search_parser.add_argument("query", help="Search query")
    search_parser.add_argument(
        "--provider",
        default="auto",
        help="Provider name or alias (default: auto)",
    )
    search_parser.add_argument(
        "-n",
        "--max-results",
        type=int,
        default=10,
        help="Maximum number of results (default: 10)",
    )
    search_parser.add_argument("--json", action="store_true", help="Print raw JSON output")

    # News command
    news_parser = subparsers.add_parser("news", help="Fetch news headlines from NewsAPI")
    news_parser.add_argument("query", help="Search query")
    news_parser.add_argument("--category", help="News category (e.g. technology)")
    news_parser.add_argument("--country", default="us", help="Country code (default: us)")
    news_parser.add_argument(
        "-n",
        "--max-results",
        type=int,
        default=10,
        help="Maximum number of articles (default: 10)",
    )
    news_parser.add_argument("--json", action="store_true", help="Print raw JSON output")

    # Classify command
    classify_parser = subparsers.add_parser("classify", help="Show the intent of a query")
    classify_parser.add_argument("query", help="Query to classify")

    # Stats command
    stats_parser = subparsers.add_parser("stats", help="Show cache, history and provider stats")
    stats_parser.add_argument(
        "--clear-cache",
        action="store_true",
        help="Delete every cached result before printing stats",
    )

    return parser
