"""Base classes and interfaces for search providers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Slack on top of the per-attempt timeouts of multi-request providers
ATTEMPT_GRACE_SECONDS = 1.0


class ErrorKind(str, Enum):
    """Error codes surfaced to callers in the MCP envelope."""

    INVALID_REQUEST = "INVALID_REQUEST"
    PROVIDER_ERROR = "PROVIDER_ERROR"
    INVALID_API_KEY = "INVALID_API_KEY"
    RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"
    NOT_IMPLEMENTED = "NOT_IMPLEMENTED"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class SearchError(Exception):
    """Base exception for search-related errors.

    Subclasses set ``kind`` and ``retryable`` as class attributes; callers
    branch on those, never on the message text.
    """

    kind: ErrorKind = ErrorKind.PROVIDER_ERROR
    retryable: bool = True

    def __init__(self, message: str, provider: str | None = None) -> None:
        """Initialize search error.

        Args:
            message: Error message
            provider: Name of the provider that raised the error
        """
        self.provider = provider
        self.message = message
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Render the error as an envelope ``error`` object."""
        return {"code": self.kind.value, "message": self.message}


class InvalidRequestError(SearchError):
    """The request is missing a query or carries malformed options."""

    kind = ErrorKind.INVALID_REQUEST
    retryable = False


class SearchProviderError(SearchError):
    """Error from a specific search provider."""

    pass


class ProviderNotConfiguredError(SearchProviderError):
    """The provider's credential is absent, so the provider is disabled."""

    retryable = False


class SearchTimeoutError(SearchProviderError):
    """A provider call exceeded the per-request timeout."""

    pass


class ProvidersExhaustedError(SearchProviderError):
    """Every fallback stage failed or returned nothing."""

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        last_error: Exception | None = None,
    ) -> None:
        self.last_error = last_error
        super().__init__(message, provider=provider)


class SearchAuthenticationError(SearchError):
    """Authentication failed for a search provider."""

    kind = ErrorKind.INVALID_API_KEY
    retryable = False


class SearchRateLimitError(SearchError):
    """Rate limit exceeded for a search provider."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        retry_after: float | None = None,
    ) -> None:
        self.retry_after = retry_after
        super().__init__(message, provider=provider)


class FeatureNotImplementedError(SearchError):
    """The requested action is planned but not available."""

    kind = ErrorKind.NOT_IMPLEMENTED
    retryable = False


class SearchProviderType(str, Enum):
    """Supported search provider types."""

    DUCKDUCKGO = "duckduckgo"
    BRAVE_WEB = "brave-web"
    BRAVE_RICH = "brave-rich"
    BRAVE_NEWS = "brave-news"
    BRAVE_VIDEO = "brave-video"
    BRAVE_IMAGE = "brave-image"
    NEWSAPI = "newsapi"
    SEARXNG = "searxng"


class SearchResultType(str, Enum):
    """Kinds of normalized results a provider can emit."""

    WEB_RESULT = "web-result"
    INSTANT_ANSWER = "instant-answer"
    RELATED_TOPIC = "related-topic"
    RICH_RESULT = "rich-result"
    GRAPH_RESULT = "graph-result"
    LOCATION_RESULT = "location-result"
    NEWS_ARTICLE = "news-article"
    VIDEO_RESULT = "video-result"
    IMAGE_RESULT = "image-result"


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SearchResult(CamelModel):
    """Standardized search result from any provider.

    Attributes:
        title: Result title
        description: Text snippet/description
        url: Result URL
        source: Human readable source (engine, publisher or channel)
        type: Result kind
        relevance_score: Static relevance heuristic (0.0-1.0)
        metadata: Provider specific extras
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    title: str = Field(default="", description="Result title")
    description: str = Field(default="", description="Text snippet or description")
    url: str = Field(default="", description="Result URL")
    source: str = Field(default="", description="Result source")
    type: SearchResultType = Field(default=SearchResultType.WEB_RESULT)
    relevance_score: float = Field(default=1.0, ge=0.0, le=1.0, description="Relevance score")
    metadata: dict[str, Any] = Field(default_factory=dict, description="Provider extras")


class ResultSet(CamelModel):
    """Normalized output of a single provider call.

    Attributes:
        results: Ordered search results
        total: Informational total reported by the provider
        provider: Name of the provider that produced the results
        elapsed_ms: Time spent in the provider call
        metadata: Additional metadata from the provider
    """

    results: list[SearchResult] = Field(default_factory=list)
    total: int = Field(default=0, ge=0)
    provider: str = Field(description="Search provider name")
    elapsed_ms: int = Field(default=0, ge=0)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def count(self) -> int:
        """Get the number of results returned."""
        return len(self.results)

    @property
    def has_results(self) -> bool:
        """Check if any results were returned."""
        return len(self.results) > 0


class SearchOptions(CamelModel):
    """Recognized options for ``web.search``, validated once at the boundary."""

    provider: str = Field(default="auto", description="Provider name or 'auto'")
    max_results: int = Field(default=10, ge=1, le=50)
    filters: dict[str, Any] | None = None
    language: str = "en"
    sort_by: str | None = None
    from_date: str | None = None
    to_date: str | None = None
    freshness: str | None = None
    country: str | None = None
    safesearch: str | None = None
    category: str | None = None

    @property
    def is_auto(self) -> bool:
        return not self.provider or self.provider == "auto"

    def cache_fields(self) -> dict[str, Any]:
        """Options that take part in the cache key."""
        return self.model_dump(exclude_none=True)


class NewsOptions(CamelModel):
    """Recognized options for ``web.news``."""

    category: str | None = None
    country: str = "us"
    max_results: int = Field(default=10, ge=1, le=100)
    sort_by: str = "publishedAt"
    from_date: str | None = None
    to_date: str | None = None

    def cache_fields(self) -> dict[str, Any]:
        """Options that take part in the cache key."""
        return {**self.model_dump(exclude_none=True), "type": "news"}


def decaying_score(start: float, step: float, index: int) -> float:
    """Linear relevance decay, floored at zero."""
    return max(0.0, round(start - index * step, 4))


class SearchProvider(ABC):
    """Abstract base class for search providers.

    All search providers must implement this interface to ensure
    consistent behavior across different search engines.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Initialize the search provider.

        Args:
            api_key: API key for the provider (if required)
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.timeout = timeout
        self._request_count = 0
        self._error_count = 0

    @property
    @abstractmethod
    def provider_type(self) -> SearchProviderType:
        """Get the provider type."""
        pass

    @property
    def name(self) -> str:
        """Get the provider name used in result sets and history rows."""
        return self.provider_type.value

    @property
    def requires_api_key(self) -> bool:
        """Check if this provider requires an API key."""
        return True

    @property
    def is_configured(self) -> bool:
        """Check if the provider is properly configured."""
        if self.requires_api_key:
            return bool(self.api_key)
        return True

    @property
    def max_attempts(self) -> int:
        """Upstream requests one ``search`` call may make one after another."""
        return 1

    def call_budget(self, request_timeout: float) -> float:
        """Wall-clock limit for one ``search`` call, in seconds.

        Single-request providers get ``request_timeout``. Providers that walk
        several endpoints get room for every attempt to hit its own timeout,
        so a hung stage cannot starve the stages after it.
        """
        if self.max_attempts <= 1:
            return request_timeout
        return max(request_timeout, self.timeout * self.max_attempts + ATTEMPT_GRACE_SECONDS)

    @abstractmethod
    async def search(
        self,
        query: str,
        options: SearchOptions | None = None,
    ) -> ResultSet:
        """Perform a search query.

        Args:
            query: Search query string
            options: Validated search options

        Returns:
            ResultSet with results (possibly empty)

        Raises:
            SearchError: If search fails
        """
        pass

    def get_stats(self) -> dict[str, Any]:
        """Get provider statistics.

        Returns:
            Dictionary with provider statistics
        """
        return {
            "name": self.name,
            "configured": self.is_configured,
            "requires_api_key": self.requires_api_key,
            "request_count": self._request_count,
            "error_count": self._error_count,
            "error_rate": (
                self._error_count / self._request_count if self._request_count > 0 else 0.0
            ),
        }

    def _ensure_configured(self, setting_name: str) -> None:
        if not self.is_configured:
            raise ProviderNotConfiguredError(
                f"{setting_name} is not configured",
                provider=self.name,
            )

    @staticmethod
    def _elapsed_ms(started: float) -> int:
        return int((time.monotonic() - started) * 1000)

    def _increment_request(self) -> None:
        """Increment request counter."""
        self._request_count += 1

    def _increment_error(self) -> None:
        """Increment error counter."""
        self._error_count += 1
