"""NewsAPI.org provider.

``search`` uses the ``everything`` endpoint; ``top_headlines`` backs the
news-only operation.
"""

from __future__ import annotations

import time
from typing import Any

import httpx

from ...core.logger import get_logger
from ..base import (
    NewsOptions,
    ResultSet,
    SearchAuthenticationError,
    SearchOptions,
    SearchProvider,
    SearchProviderError,
    SearchProviderType,
    SearchRateLimitError,
    SearchResult,
    SearchResultType,
    SearchTimeoutError,
)

logger = get_logger("search.newsapi")

NEWSAPI_BASE_URL = "https://newsapi.org/v2"
NEWSAPI_RELEVANCE = 0.9


class NewsAPIProvider(SearchProvider):
    """NewsAPI.org article search.

    Features:
    - Full archive search (``everything``)
    - Top headlines by country/category
    - Quota errors surface as rate-limit errors so callers can back off
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        base_url: str = NEWSAPI_BASE_URL,
    ) -> None:
        """Initialize NewsAPI provider.

        Args:
            api_key: NewsAPI key
            timeout: Request timeout in seconds
            base_url: API root, without trailing slash
        """
        super().__init__(api_key=api_key, timeout=timeout)
        self.base_url = base_url.rstrip("/")

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.NEWSAPI

    async def search(
        self,
        query: str,
        options: SearchOptions | None = None,
    ) -> ResultSet:
        """Search all articles matching ``query``."""
        options = options or SearchOptions()
        params: dict[str, Any] = {
            "q": query,
            "pageSize": options.max_results,
            "language": options.language or "en",
            "sortBy": options.sort_by or "publishedAt",
        }
        if options.from_date:
            params["from"] = options.from_date
        if options.to_date:
            params["to"] = options.to_date
        if options.category:
            params["category"] = options.category

        return await self._fetch("everything", query, params)

    async def top_headlines(
        self,
        query: str,
        options: NewsOptions | None = None,
    ) -> ResultSet:
        """Fetch top headlines matching ``query``.

        Args:
            query: Search query
            options: News options (category, country, max_results, sort_by, dates)

        Returns:
            ResultSet of news articles
        """
        options = options or NewsOptions()
        params: dict[str, Any] = {
            "q": query,
            "pageSize": options.max_results,
            "sortBy": options.sort_by,
            "country": options.country,
        }
        if options.category:
            params["category"] = options.category
        if options.from_date:
            params["from"] = options.from_date
        if options.to_date:
            params["to"] = options.to_date

        return await self._fetch("top-headlines", query, params)

    async def _fetch(self, endpoint: str, query: str, params: dict[str, Any]) -> ResultSet:
        self._ensure_configured("NEWSAPI_KEY")

        self._increment_request()
        logger.info("NewsAPI %s: %s", endpoint, query[:100])
        started = time.monotonic()

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}/{endpoint}",
                    params=params,
                    headers={"X-Api-Key": self.api_key or ""},
                )
        except httpx.TimeoutException as exc:
            self._increment_error()
            raise SearchTimeoutError("NewsAPI request timed out", provider=self.name) from exc
        except httpx.HTTPError as exc:
            self._increment_error()
            raise SearchProviderError(f"NewsAPI error: {exc}", provider=self.name) from exc

        if response.status_code == 401:
            self._increment_error()
            raise SearchAuthenticationError("NewsAPI key is invalid", provider=self.name)
        if response.status_code == 429:
            self._increment_error()
            raise SearchRateLimitError("NewsAPI rate limit exceeded", provider=self.name)

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.status_code != 200:
            self._increment_error()
            message = data.get("message") if isinstance(data, dict) else None
            raise SearchProviderError(
                f"NewsAPI error: {message or response.status_code}",
                provider=self.name,
            )

        articles = data.get("articles") or []
        results = [self._to_result(article) for article in articles]

        logger.info("NewsAPI returned %d articles", len(results))
        return ResultSet(
            results=results,
            total=data.get("totalResults") or len(results),
            provider=self.name,
            elapsed_ms=self._elapsed_ms(started),
            metadata={"endpoint": endpoint},
        )

    @staticmethod
    def _to_result(article: dict[str, Any]) -> SearchResult:
        return SearchResult(
            title=article.get("title") or "",
            description=article.get("description") or "",
            url=article.get("url") or "",
            source=(article.get("source") or {}).get("name") or "Unknown",
            type=SearchResultType.NEWS_ARTICLE,
            relevance_score=NEWSAPI_RELEVANCE,
            metadata={
                "author": article.get("author"),
                "published_at": article.get("publishedAt"),
                "url_to_image": article.get("urlToImage"),
                "content": article.get("content"),
            },
        )
