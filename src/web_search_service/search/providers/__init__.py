"""Search provider implementations."""

from .brave import (
    BraveImageProvider,
    BraveNewsProvider,
    BraveProviderBase,
    BraveRichProvider,
    BraveVideoProvider,
    BraveWebProvider,
)
from .duckduckgo import DuckDuckGoProvider
from .newsapi import NewsAPIProvider
from .searxng import SearXNGProvider

__all__ = [
    "BraveImageProvider",
    "BraveNewsProvider",
    "BraveProviderBase",
    "BraveRichProvider",
    "BraveVideoProvider",
    "BraveWebProvider",
    "DuckDuckGoProvider",
    "NewsAPIProvider",
    "SearXNGProvider",
]
