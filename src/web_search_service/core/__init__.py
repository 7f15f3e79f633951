"""Core infrastructure: configuration, logging and counters."""

from .config import LoggingConfig, ServiceSettings
from .logger import get_logger, setup_logging
from .metrics import ServiceMetrics

__all__ = [
    "LoggingConfig",
    "ServiceSettings",
    "ServiceMetrics",
    "get_logger",
    "setup_logging",
]
