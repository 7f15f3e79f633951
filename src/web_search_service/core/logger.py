"""Logging for the web search service.

Handlers are attached to the ``web_search`` namespace logger rather than the
root logger, so embedding applications and test runners keep their own
handlers. Console output goes through rich; a rotating file is optional.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler

from .config import LoggingConfig

LOGGER_NAMESPACE = "web_search"

# Third-party loggers that log every request at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")

_loggers: dict[str, logging.Logger] = {}
_installed: list[logging.Handler] = []

console = Console(stderr=True)


def _remove_installed_handlers(namespace_logger: logging.Logger) -> None:
    while _installed:
        handler = _installed.pop()
        namespace_logger.removeHandler(handler)
        handler.close()


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the service loggers.

    Safe to call more than once; handlers from an earlier call are replaced.

    Args:
        config: LoggingConfig instance. If None, uses defaults.
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level)

    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    _remove_installed_handlers(namespace_logger)
    namespace_logger.setLevel(level)

    console_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    console_handler.setLevel(level)
    _installed.append(console_handler)

    if config.log_file:
        log_path = Path(config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
            delay=True,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(config.format))
        _installed.append(file_handler)

    for handler in _installed:
        namespace_logger.addHandler(handler)

    # Per-request client logs are only useful when debugging
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if level <= logging.DEBUG else logging.WARNING)

    get_logger("setup").debug(
        "Logging configured: level=%s file=%s", config.level, config.log_file or "-"
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger under the ``web_search`` namespace.

    Child loggers inherit their level from the namespace logger.

    Args:
        name: Dotted area name, e.g. ``search.cache``
    """
    if name not in _loggers:
        _loggers[name] = logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")
    return _loggers[name]


def installed_handlers() -> list[logging.Handler]:
    """Handlers added by the last ``setup_logging`` call."""
    return list(_installed)
