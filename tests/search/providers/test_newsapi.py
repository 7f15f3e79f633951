"""Tests for NewsAPIProvider."""

from __future__ import annotations

import re

import httpx
import pytest
from pytest_httpx import HTTPXMock

from web_search_service.search.base import (
    ErrorKind,
    NewsOptions,
    ProviderNotConfiguredError,
    SearchAuthenticationError,
    SearchOptions,
    SearchProviderError,
    SearchProviderType,
    SearchRateLimitError,
    SearchResultType,
    SearchTimeoutError,
)
from web_search_service.search.providers import NewsAPIProvider

EVERYTHING_URL = re.compile(r"https://newsapi\.org/v2/everything\?.*")
HEADLINES_URL = re.compile(r"https://newsapi\.org/v2/top-headlines\?.*")

ARTICLES = {
    "status": "ok",
    "totalResults": 42,
    "articles": [
        {
            "source": {"id": None, "name": "Tech Daily"},
            "author": "Jane Doe",
            "title": "AI breakthrough",
            "description": "Something happened",
            "url": "https://news.example/ai",
            "urlToImage": "https://news.example/ai.png",
            "publishedAt": "2024-05-01T10:00:00Z",
            "content": "Full text",
        },
        {"title": "No source", "url": "https://news.example/other"},
    ],
}


@pytest.fixture
def provider():
    return NewsAPIProvider(api_key="news-key", timeout=1.0)


class TestNewsAPIProperties:
    """Tests for provider properties."""

    def test_provider_properties(self, provider) -> None:
        """Test provider properties."""
        assert provider.name == "newsapi"
        assert provider.provider_type == SearchProviderType.NEWSAPI
        assert provider.requires_api_key is True
        assert provider.is_configured is True

    @pytest.mark.asyncio
    async def test_missing_key(self) -> None:
        """Test a missing key raises before any request."""
        with pytest.raises(ProviderNotConfiguredError, match="NEWSAPI_KEY"):
            await NewsAPIProvider().top_headlines("ai")


class TestNewsAPISearch:
    """Tests for the everything and top-headlines endpoints."""

    @pytest.mark.asyncio
    async def test_everything(self, provider, httpx_mock: HTTPXMock) -> None:
        """Test the search contract uses the everything endpoint."""
        httpx_mock.add_response(url=EVERYTHING_URL, json=ARTICLES)

        result_set = await provider.search(
            "ai", SearchOptions(max_results=5, from_date="2024-05-01", category="technology")
        )

        assert result_set.provider == "newsapi"
        assert result_set.total == 42
        assert result_set.metadata == {"endpoint": "everything"}
        first, second = result_set.results
        assert first.type is SearchResultType.NEWS_ARTICLE
        assert first.source == "Tech Daily"
        assert first.relevance_score == 0.9
        assert first.metadata["author"] == "Jane Doe"
        assert first.metadata["published_at"] == "2024-05-01T10:00:00Z"
        assert first.metadata["url_to_image"] == "https://news.example/ai.png"
        assert second.source == "Unknown"

        request = httpx_mock.get_requests()[0]
        assert request.headers["X-Api-Key"] == "news-key"
        assert request.url.params["pageSize"] == "5"
        assert request.url.params["sortBy"] == "publishedAt"
        assert request.url.params["from"] == "2024-05-01"
        assert request.url.params["category"] == "technology"

    @pytest.mark.asyncio
    async def test_top_headlines(self, provider, httpx_mock: HTTPXMock) -> None:
        """Test top headlines send country and category."""
        httpx_mock.add_response(url=HEADLINES_URL, json=ARTICLES)

        result_set = await provider.top_headlines(
            "ai", NewsOptions(country="gb", category="technology", max_results=3)
        )

        assert result_set.metadata == {"endpoint": "top-headlines"}
        params = httpx_mock.get_requests()[0].url.params
        assert params["country"] == "gb"
        assert params["category"] == "technology"
        assert params["pageSize"] == "3"
        assert "from" not in params

    @pytest.mark.asyncio
    async def test_total_falls_back_to_count(self, provider, httpx_mock: HTTPXMock) -> None:
        """Test total uses the article count when totalResults is missing."""
        httpx_mock.add_response(url=HEADLINES_URL, json={"articles": ARTICLES["articles"]})

        result_set = await provider.top_headlines("ai")

        assert result_set.total == 2


class TestNewsAPIErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_invalid_key(self, provider, httpx_mock: HTTPXMock) -> None:
        """Test 401 maps to a non-retryable INVALID_API_KEY."""
        httpx_mock.add_response(url=HEADLINES_URL, status_code=401)

        with pytest.raises(SearchAuthenticationError) as exc_info:
            await provider.top_headlines("ai")

        assert exc_info.value.kind is ErrorKind.INVALID_API_KEY
        assert exc_info.value.retryable is False
        assert exc_info.value.message == "NewsAPI key is invalid"

    @pytest.mark.asyncio
    async def test_rate_limit(self, provider, httpx_mock: HTTPXMock) -> None:
        """Test 429 maps to a retryable RATE_LIMIT_EXCEEDED."""
        httpx_mock.add_response(url=HEADLINES_URL, status_code=429)

        with pytest.raises(SearchRateLimitError) as exc_info:
            await provider.top_headlines("ai")

        assert exc_info.value.kind is ErrorKind.RATE_LIMIT_EXCEEDED
        assert exc_info.value.retryable is True

    @pytest.mark.asyncio
    async def test_other_status_uses_message(self, provider, httpx_mock: HTTPXMock) -> None:
        """Test other errors carry the upstream message."""
        httpx_mock.add_response(
            url=EVERYTHING_URL,
            status_code=400,
            json={"status": "error", "message": "parametersMissing"},
        )

        with pytest.raises(SearchProviderError) as exc_info:
            await provider.search("ai")

        assert exc_info.value.message == "NewsAPI error: parametersMissing"
        assert provider.get_stats()["error_count"] == 1

    @pytest.mark.asyncio
    async def test_timeout(self, provider, httpx_mock: HTTPXMock) -> None:
        """Test transport timeouts become SearchTimeoutError."""
        httpx_mock.add_exception(httpx.ConnectTimeout("slow"), url=EVERYTHING_URL)

        with pytest.raises(SearchTimeoutError):
            await provider.search("ai")
