"""CLI module for the web search service.

This module provides the command-line interface for the service.
"""

from __future__ import annotations

from collections.abc import Sequence

from .commands import cmd_classify, cmd_news, cmd_search, cmd_serve, cmd_stats
from .parser import build_parser, print_banner


def main(argv: Sequence[str] | None = None) -> int:
    """CLI entry point.

    Args:
        argv: Optional sequence of CLI arguments (without the program name).

    Returns:
        Process exit code. 0 for success.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    # No command: print help and exit like argparse does
    if not args.command:
        parser.print_help()
        raise SystemExit(0)

    handlers = {
        "serve": cmd_serve,
        "search": cmd_search,
        "news": cmd_news,
        "classify": cmd_classify,
        "stats": cmd_stats,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


__all__ = [
    "main",
    "build_parser",
    "print_banner",
]
