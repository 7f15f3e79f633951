"""SearXNG meta-search provider - free, no API key required.

Public instances come and go, so the provider walks an ordered mirror list
and answers from the first instance that returns results.
"""

from __future__ import annotations

import asyncio
import time
from typing import Any

import httpx

from ...core.logger import get_logger
from ..base import (
    ResultSet,
    SearchOptions,
    SearchProvider,
    SearchProviderError,
    SearchProviderType,
    SearchResult,
    SearchResultType,
    decaying_score,
)

logger = get_logger("search.searxng")

DEFAULT_INSTANCES: tuple[str, ...] = (
    "https://searx.be",
    "https://search.sapti.me",
    "https://searx.tiekoetter.com",
    "https://search.bus-hit.me",
    "https://searx.work",
)
DEFAULT_ENGINES = "google,bing,duckduckgo"


class SearXNGProvider(SearchProvider):
    """Multi-instance SearXNG search."""

    def __init__(
        self,
        instances: list[str] | tuple[str, ...] = DEFAULT_INSTANCES,
        timeout: float = 5.0,
        engines: str = DEFAULT_ENGINES,
    ) -> None:
        """Initialize SearXNG provider.

        Args:
            instances: Mirror base URLs, tried in order
            timeout: Per-instance timeout in seconds
            engines: Comma separated upstream engines
        """
        super().__init__(api_key=None, timeout=timeout)
        self.instances = [instance.rstrip("/") for instance in instances]
        self.engines = engines

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.SEARXNG

    @property
    def requires_api_key(self) -> bool:
        return False

    @property
    def max_attempts(self) -> int:
        return len(self.instances)

    async def search(
        self,
        query: str,
        options: SearchOptions | None = None,
    ) -> ResultSet:
        """Search the first responsive mirror.

        Raises:
            SearchProviderError: If every instance failed or came back empty
        """
        options = options or SearchOptions()
        self._increment_request()
        logger.info("SearXNG search: %s", query[:100])
        started = time.monotonic()

        params = {
            "q": query,
            "format": "json",
            "engines": self.engines,
            "language": options.language or "en",
            "safesearch": "0",
        }

        for instance in self.instances:
            data = await self._query_instance(instance, params)
            if data is None:
                continue

            results = self._format_results(data["results"], options.max_results)
            logger.info("SearXNG instance %s returned %d results", instance, len(data["results"]))
            return ResultSet(
                results=results,
                total=len(data["results"]),
                provider=self.name,
                elapsed_ms=self._elapsed_ms(started),
                metadata={"instance": instance},
            )

        self._increment_error()
        raise SearchProviderError(
            "All SearXNG instances failed or returned empty results",
            provider=self.name,
        )

    async def _query_instance(self, instance: str, params: dict[str, Any]) -> dict[str, Any] | None:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await asyncio.wait_for(
                    client.get(f"{instance}/search", params=params), timeout=self.timeout
                )
        except (httpx.TimeoutException, TimeoutError):
            logger.warning("SearXNG instance %s timed out", instance)
            return None
        except httpx.HTTPError as exc:
            logger.warning("SearXNG instance %s failed: %s", instance, exc)
            return None

        if response.status_code != 200:
            logger.warning("SearXNG instance %s returned %d", instance, response.status_code)
            return None

        try:
            data = response.json()
        except ValueError:
            logger.warning("SearXNG instance %s returned invalid JSON", instance)
            return None

        if not isinstance(data, dict) or not data.get("results"):
            logger.warning("SearXNG instance %s returned no results", instance)
            return None
        return data

    def _format_results(self, raw_results: list[dict[str, Any]], limit: int) -> list[SearchResult]:
        results: list[SearchResult] = []
        for item in raw_results[:limit]:
            title = item.get("title") or ""
            url = item.get("url") or ""
            if not title or not url:
                continue
            results.append(
                SearchResult(
                    title=title,
                    description=item.get("content") or item.get("description") or "",
                    url=url,
                    source="SearXNG",
                    type=SearchResultType.WEB_RESULT,
                    relevance_score=decaying_score(0.9, 0.05, len(results)),
                    metadata={
                        "engine": item.get("engine") or "unknown",
                        "score": item.get("score") or 0,
                        "published_date": item.get("publishedDate"),
                    },
                )
            )
        return results

    async def check_instance(self, instance: str) -> bool:
        """Check whether a mirror answers a test query."""
        try:
            async with httpx.AsyncClient(timeout=3.0) as client:
                response = await client.get(
                    f"{instance.rstrip('/')}/search",
                    params={"q": "test", "format": "json"},
                )
        except httpx.HTTPError:
            return False
        return response.status_code == 200
