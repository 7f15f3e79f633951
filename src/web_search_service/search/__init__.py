"""Multi-provider web search.

This module provides:
- Provider adapters (DuckDuckGo, Brave endpoints, NewsAPI, SearXNG)
- Query intent classification
- Fallback orchestration with retry/backoff
- A persistent TTL cache and search history log
"""

from .base import (
    ErrorKind,
    FeatureNotImplementedError,
    InvalidRequestError,
    NewsOptions,
    ProviderNotConfiguredError,
    ProvidersExhaustedError,
    ResultSet,
    SearchAuthenticationError,
    SearchError,
    SearchOptions,
    SearchProvider,
    SearchProviderError,
    SearchProviderType,
    SearchRateLimitError,
    SearchResult,
    SearchResultType,
    SearchTimeoutError,
)
from .cache import ResultCache, compute_hit_rate
from .history import SearchHistoryLog
from .intent import Intent, IntentClassifier, classify_query_intent
from .keys import get_cache_ttl, normalize_key
from .orchestrator import FallbackOrchestrator, RoutingMode, RoutingStage
from .registry import ProviderRegistry
from .service import NewsOutcome, RequestContext, SearchOutcome, SearchService

__all__ = [
    # Base
    "ErrorKind",
    "FeatureNotImplementedError",
    "InvalidRequestError",
    "NewsOptions",
    "ProviderNotConfiguredError",
    "ProvidersExhaustedError",
    "ResultSet",
    "SearchAuthenticationError",
    "SearchError",
    "SearchOptions",
    "SearchProvider",
    "SearchProviderError",
    "SearchProviderType",
    "SearchRateLimitError",
    "SearchResult",
    "SearchResultType",
    "SearchTimeoutError",
    # Cache
    "ResultCache",
    "compute_hit_rate",
    "get_cache_ttl",
    "normalize_key",
    # History
    "SearchHistoryLog",
    # Intent
    "Intent",
    "IntentClassifier",
    "classify_query_intent",
    # Orchestration
    "FallbackOrchestrator",
    "ProviderRegistry",
    "RoutingMode",
    "RoutingStage",
    # Service
    "NewsOutcome",
    "RequestContext",
    "SearchOutcome",
    "SearchService",
]
