"""Brave Search API providers.

One provider per endpoint, all sharing the same key:
- brave-web: traditional web results
- brave-rich: infobox, graph and location data (prices, weather, calculations)
- brave-news: news articles with a freshness window
- brave-video: video results
- brave-image: image results
"""

from __future__ import annotations

import time
from abc import abstractmethod
from typing import Any

import httpx

from ...core.logger import get_logger
from ..base import (
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
    decaying_score,
)

logger = get_logger("search.brave")

BRAVE_API_BASE = "https://api.search.brave.com/res/v1"
BRAVE_WEB_URL = f"{BRAVE_API_BASE}/web/search"
BRAVE_NEWS_URL = f"{BRAVE_API_BASE}/news/search"
BRAVE_IMAGES_URL = f"{BRAVE_API_BASE}/images/search"
BRAVE_VIDEOS_URL = f"{BRAVE_API_BASE}/videos/search"

BRAVE_KEY_SETTING = "BRAVE_API_WEB_KEY"


class BraveProviderBase(SearchProvider):
    """Shared request/error handling for the Brave endpoints.

    Subclasses choose the endpoint, the query parameters and how the JSON
    body maps onto results.
    """

    endpoint: str = BRAVE_WEB_URL
    label: str = "Brave"

    def _build_params(self, query: str, options: SearchOptions) -> dict[str, Any]:
        params: dict[str, Any] = {"q": query, "count": options.max_results}
        if options.country:
            params["country"] = options.country
        return params

    @abstractmethod
    def _parse(self, data: dict[str, Any], options: SearchOptions) -> list[SearchResult]:
        """Map the endpoint's JSON body onto results."""

    def _result_metadata(self, results: list[SearchResult]) -> dict[str, Any]:
        return {}

    async def search(
        self,
        query: str,
        options: SearchOptions | None = None,
    ) -> ResultSet:
        """Query the Brave endpoint.

        Args:
            query: Search query
            options: Search options (max_results, country, language, safesearch, freshness)

        Returns:
            ResultSet with normalized results
        """
        self._ensure_configured(BRAVE_KEY_SETTING)
        options = options or SearchOptions()

        self._increment_request()
        logger.info("%s search: %s", self.label, query[:100])
        started = time.monotonic()

        data = await self._request(self._build_params(query, options))
        results = self._parse(data, options)

        logger.info("%s returned %d results", self.label, len(results))
        return ResultSet(
            results=results,
            total=len(results),
            provider=self.name,
            elapsed_ms=self._elapsed_ms(started),
            metadata=self._result_metadata(results),
        )

    async def _request(self, params: dict[str, Any]) -> dict[str, Any]:
        headers = {
            "X-Subscription-Token": self.api_key or "",
            "Accept": "application/json",
            "Accept-Encoding": "gzip",
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.endpoint, params=params, headers=headers)
        except httpx.TimeoutException as exc:
            self._increment_error()
            raise SearchTimeoutError(
                f"{self.label} search failed: request timed out",
                provider=self.name,
            ) from exc
        except httpx.HTTPError as exc:
            self._increment_error()
            raise SearchProviderError(
                f"{self.label} search failed: {exc}",
                provider=self.name,
            ) from exc

        if response.status_code != 200:
            self._increment_error()
            raise self._status_error(response)

        try:
            return response.json()
        except ValueError as exc:
            self._increment_error()
            raise SearchProviderError(
                f"{self.label} search failed: invalid JSON response",
                provider=self.name,
            ) from exc

    def _status_error(self, response: httpx.Response) -> SearchError:
        detail = response.reason_phrase
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get("message"):
            detail = body["message"]

        message = f"{self.label} search failed: {response.status_code} - {detail}"
        if response.status_code in (401, 403):
            return SearchAuthenticationError(message, provider=self.name)
        if response.status_code == 429:
            retry_after = response.headers.get("Retry-After")
            return SearchRateLimitError(
                message,
                provider=self.name,
                retry_after=float(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        return SearchProviderError(message, provider=self.name)


class BraveWebProvider(BraveProviderBase):
    """Plain web results."""

    label = "Brave Web"
    endpoint = BRAVE_WEB_URL

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.BRAVE_WEB

    def _build_params(self, query: str, options: SearchOptions) -> dict[str, Any]:
        params = super()._build_params(query, options)
        if options.language:
            params["search_lang"] = options.language
        if options.safesearch:
            params["safesearch"] = options.safesearch
        return params

    def _parse(self, data: dict[str, Any], options: SearchOptions) -> list[SearchResult]:
        web_results = (data.get("web") or {}).get("results") or []
        return [
            SearchResult(
                title=item.get("title") or "",
                description=item.get("description") or "",
                url=item.get("url") or "",
                source="Brave Search",
                type=SearchResultType.WEB_RESULT,
                relevance_score=decaying_score(0.9, 0.05, idx),
                metadata={
                    "age": item.get("age"),
                    "language": item.get("language"),
                    "family_friendly": item.get("family_friendly"),
                },
            )
            for idx, item in enumerate(web_results)
        ]


class BraveRichProvider(BraveProviderBase):
    """Structured answers from the web endpoint.

    Infobox and graph blocks come first, then locations. Plain web results are
    used only when none of those are present, capped at three.
    """

    label = "Brave Rich"
    endpoint = BRAVE_WEB_URL
    web_fill_limit = 3

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.BRAVE_RICH

    def _build_params(self, query: str, options: SearchOptions) -> dict[str, Any]:
        return {"q": query, "count": options.max_results}

    def _parse(self, data: dict[str, Any], options: SearchOptions) -> list[SearchResult]:
        results: list[SearchResult] = []

        infobox = data.get("infobox")
        if infobox:
            results.append(
                SearchResult(
                    title=infobox.get("title") or "Rich Result",
                    description=infobox.get("description") or "",
                    url=infobox.get("url") or "",
                    source="Brave Rich Search",
                    type=SearchResultType.RICH_RESULT,
                    relevance_score=1.0,
                    metadata={
                        "category": infobox.get("category"),
                        "data": infobox.get("data") or {},
                    },
                )
            )

        graph = data.get("graph")
        if graph:
            results.append(
                SearchResult(
                    title=graph.get("title") or "Graph Data",
                    description=graph.get("description") or "",
                    url=graph.get("url") or "",
                    source="Brave Rich Search",
                    type=SearchResultType.GRAPH_RESULT,
                    relevance_score=0.95,
                    metadata={
                        "type": graph.get("type"),
                        "data": graph.get("data") or {},
                    },
                )
            )

        locations = (data.get("locations") or {}).get("results") or []
        for idx, location in enumerate(locations):
            results.append(
                SearchResult(
                    title=location.get("title") or "",
                    description=location.get("description") or "",
                    url=location.get("url") or "",
                    source="Brave Rich Search",
                    type=SearchResultType.LOCATION_RESULT,
                    relevance_score=decaying_score(0.9, 0.05, idx),
                    metadata={
                        "coordinates": location.get("coordinates"),
                        "address": location.get("address"),
                    },
                )
            )

        if not results:
            web_results = (data.get("web") or {}).get("results") or []
            for idx, item in enumerate(web_results[: self.web_fill_limit]):
                results.append(
                    SearchResult(
                        title=item.get("title") or "",
                        description=item.get("description") or "",
                        url=item.get("url") or "",
                        source="Brave Search",
                        type=SearchResultType.WEB_RESULT,
                        relevance_score=decaying_score(0.8, 0.05, idx),
                    )
                )

        return results

    def _result_metadata(self, results: list[SearchResult]) -> dict[str, Any]:
        has_rich = any(
            result.type in (SearchResultType.RICH_RESULT, SearchResultType.GRAPH_RESULT)
            for result in results
        )
        return {"has_rich_results": has_rich}


class BraveNewsProvider(BraveProviderBase):
    """News articles, past day by default."""

    label = "Brave News"
    endpoint = BRAVE_NEWS_URL
    default_freshness = "pd"

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.BRAVE_NEWS

    def _build_params(self, query: str, options: SearchOptions) -> dict[str, Any]:
        params = super()._build_params(query, options)
        params["freshness"] = options.freshness or self.default_freshness
        return params

    def _parse(self, data: dict[str, Any], options: SearchOptions) -> list[SearchResult]:
        return [
            SearchResult(
                title=article.get("title") or "",
                description=article.get("description") or article.get("snippet") or "",
                url=article.get("url") or "",
                source=(article.get("source") or {}).get("name") or "News Source",
                type=SearchResultType.NEWS_ARTICLE,
                relevance_score=decaying_score(0.95, 0.03, idx),
                metadata={
                    "published_date": article.get("published_date") or article.get("age"),
                    "thumbnail": article.get("thumbnail"),
                    "breaking": bool(article.get("breaking", False)),
                },
            )
            for idx, article in enumerate(data.get("results") or [])
        ]


class BraveVideoProvider(BraveProviderBase):
    label = "Brave Video"
    endpoint = BRAVE_VIDEOS_URL

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.BRAVE_VIDEO

    def _parse(self, data: dict[str, Any], options: SearchOptions) -> list[SearchResult]:
        return [
            SearchResult(
                title=video.get("title") or "",
                description=video.get("description") or "",
                url=video.get("url") or "",
                source=video.get("source") or "Video Source",
                type=SearchResultType.VIDEO_RESULT,
                relevance_score=decaying_score(0.95, 0.03, idx),
                metadata={
                    "thumbnail": video.get("thumbnail"),
                    "duration": video.get("duration"),
                    "views": video.get("views"),
                    "published_date": video.get("published_date") or video.get("age"),
                    "channel": video.get("channel"),
                },
            )
            for idx, video in enumerate(data.get("results") or [])
        ]


class BraveImageProvider(BraveProviderBase):
    label = "Brave Image"
    endpoint = BRAVE_IMAGES_URL

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.BRAVE_IMAGE

    def _build_params(self, query: str, options: SearchOptions) -> dict[str, Any]:
        params = super()._build_params(query, options)
        if options.safesearch:
            params["safesearch"] = options.safesearch
        return params

    def _parse(self, data: dict[str, Any], options: SearchOptions) -> list[SearchResult]:
        results: list[SearchResult] = []
        for idx, image in enumerate(data.get("results") or []):
            properties = image.get("properties") or {}
            results.append(
                SearchResult(
                    title=image.get("title") or "",
                    description=image.get("description") or "",
                    url=image.get("url") or "",
                    source=image.get("source") or "Image Source",
                    type=SearchResultType.IMAGE_RESULT,
                    relevance_score=decaying_score(0.95, 0.03, idx),
                    metadata={
                        "thumbnail": image.get("thumbnail"),
                        "properties": {
                            "url": properties.get("url"),
                            "width": properties.get("width"),
                            "height": properties.get("height"),
                            "format": properties.get("format"),
                        },
                    },
                )
            )
        return results
