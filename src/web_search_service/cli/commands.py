"""CLI command handlers: serve, search, news, classify, stats."""

from __future__ import annotations

import argparse
import asyncio
import json
from typing import Any

from rich.console import Console
from rich.table import Table

from ..api import run_server
from ..context import ServiceContext
from ..core import ServiceSettings, get_logger, setup_logging
from ..search.base import SearchError, SearchResult
from ..search.intent import IntentClassifier
from .parser import print_banner

logger = get_logger("cli")


def _load_settings(**overrides: Any) -> ServiceSettings:
    settings = ServiceSettings.from_env(**{k: v for k, v in overrides.items() if v is not None})
    setup_logging(settings.logging_config)
    return settings


def _results_table(title: str, results: list[SearchResult]) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("URL", style="blue", overflow="fold")
    table.add_column("Source", style="magenta")
    table.add_column("Score", justify="right")

    for index, result in enumerate(results, start=1):
        table.add_row(
            str(index),
            result.title,
            result.url,
            result.source,
            f"{result.relevance_score:.2f}",
        )
    return table


def cmd_serve(args: argparse.Namespace) -> int:
    """Handle serve command.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    try:
        settings = _load_settings(
            host=args.host,
            port=args.port,
            log_level="DEBUG" if args.debug else None,
        )
        print_banner(settings)
        run_server(ServiceContext.from_settings(settings))
        return 0
    except KeyboardInterrupt:
        logger.info("Service interrupted by user")
        return 0
    except Exception as e:
        logger.error("Error starting service: %s", e, exc_info=True)
        return 1


def cmd_search(args: argparse.Namespace) -> int:
    """Handle search command."""
    context = ServiceContext.from_settings(_load_settings())
    console = Console()
    try:
        outcome = asyncio.run(
            context.service.search(
                args.query,
                {"provider": args.provider, "maxResults": args.max_results},
            )
        )
    except SearchError as e:
        console.print(f"[red]Search failed ({e.kind.value}):[/] {e.message}")
        return 1
    finally:
        context.close()

    if args.json:
        print(json.dumps(outcome.model_dump(by_alias=True, mode="json"), indent=2))
        return 0

    console.print(_results_table(f"Results for '{outcome.query}'", outcome.results))
    console.print(
        f"[bold]Provider:[/] {outcome.provider}  "
        f"[bold]Cached:[/] {outcome.cached}  "
        f"[bold]Elapsed:[/] {outcome.elapsed_ms}ms"
    )
    return 0


def cmd_news(args: argparse.Namespace) -> int:
    """Handle news command."""
    context = ServiceContext.from_settings(_load_settings())
    console = Console()
    options = {
        "category": args.category,
        "country": args.country,
        "maxResults": args.max_results,
    }
    try:
        outcome = asyncio.run(
            context.service.search_news_only(
                args.query,
                {k: v for k, v in options.items() if v is not None},
            )
        )
    except SearchError as e:
        console.print(f"[red]News search failed ({e.kind.value}):[/] {e.message}")
        return 1
    finally:
        context.close()

    if args.json:
        print(json.dumps(outcome.model_dump(by_alias=True, mode="json"), indent=2))
        return 0

    console.print(_results_table(f"Headlines for '{outcome.query}'", outcome.articles))
    console.print(f"[bold]Cached:[/] {outcome.cached}  [bold]Elapsed:[/] {outcome.elapsed_ms}ms")
    return 0


def cmd_classify(args: argparse.Namespace) -> int:
    """Handle classify command. Needs no network or database."""
    classifier = IntentClassifier()
    intent = classifier.classify(args.query)
    scores = classifier.score(args.query)

    table = Table(title=f"Intent scores for '{args.query}'")
    table.add_column("Intent", style="cyan")
    table.add_column("Score", justify="right")
    for candidate, value in scores.items():
        style = "bold green" if candidate is intent else ""
        table.add_row(candidate.value, str(value), style=style)

    console = Console()
    console.print(table)
    console.print(f"[bold]Intent:[/] {intent.value} - {classifier.explain(intent)}")
    return 0


def cmd_stats(args: argparse.Namespace) -> int:
    """Handle stats command."""
    context = ServiceContext.from_settings(_load_settings())
    console = Console()
    try:
        if args.clear_cache:
            removed = context.cache.clear()
            console.print(f"[yellow]Cleared {removed} cached entries.[/]")

        cache_stats = context.cache.stats()
        history_count = context.history.count()
        availability = context.registry.availability()
    finally:
        context.close()

    cache_table = Table(title="Cache")
    cache_table.add_column("Metric", style="cyan")
    cache_table.add_column("Value", justify="right")
    for key, value in cache_stats.items():
        cache_table.add_row(key, str(value))
    cache_table.add_row("history_entries", str(history_count))
    console.print(cache_table)

    provider_table = Table(title="Providers")
    provider_table.add_column("Name", style="cyan")
    provider_table.add_column("Status")
    for name, configured in availability.items():
        status = "[green]Available[/]" if configured else "[red]Unavailable[/]"
        provider_table.add_row(name, status)
    console.print(provider_table)
    return 0
