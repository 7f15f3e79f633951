"""DuckDuckGo search provider - free, no API key required.

Results are scraped from the HTML endpoints, falling back stage by stage:

1. full HTML results page, primary markup
2. same page, alternate markup
3. lightweight ("lite") page
4. structured instant-answer API

A stage runs only when everything before it produced nothing. A stage that
fails (network error, timeout, bad status) advances the chain instead of
raising.
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
)
from ..scraping import ExtractionStrategy
from .duckduckgo_markup import HTML_PAGE_STRATEGIES, LITE_PAGE_STRATEGIES

logger = get_logger("search.duckduckgo")

DUCKDUCKGO_API_URL = "https://api.duckduckgo.com"
DUCKDUCKGO_HTML_URL = "https://html.duckduckgo.com/html/"
DUCKDUCKGO_LITE_URL = "https://lite.duckduckgo.com/lite/"

BROWSER_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/124.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml",
    "Accept-Language": "en-US,en;q=0.9",
}

INSTANT_ANSWER_SCORE = 0.95
RELATED_TOPIC_SCORE = 0.7


class DuckDuckGoProvider(SearchProvider):
    """DuckDuckGo search provider.

    Features:
    - Free to use, no API key required
    - Three markup strategies before falling back to the instant-answer API
    - Redirect links unwrapped to their targets
    """

    def __init__(
        self,
        timeout: float = 10.0,
        api_url: str = DUCKDUCKGO_API_URL,
        html_url: str = DUCKDUCKGO_HTML_URL,
        lite_url: str = DUCKDUCKGO_LITE_URL,
    ) -> None:
        """Initialize DuckDuckGo provider.

        Args:
            timeout: Request timeout in seconds
            api_url: Instant-answer API root
            html_url: Full HTML results endpoint
            lite_url: Lightweight HTML results endpoint
        """
        super().__init__(api_key=None, timeout=timeout)
        self.api_url = api_url.rstrip("/")
        self.html_url = html_url
        self.lite_url = lite_url

    @property
    def provider_type(self) -> SearchProviderType:
        return SearchProviderType.DUCKDUCKGO

    @property
    def requires_api_key(self) -> bool:
        return False

    @property
    def max_attempts(self) -> int:
        # HTML page, Lite page, instant-answer API
        return 3

    async def search(
        self,
        query: str,
        options: SearchOptions | None = None,
    ) -> ResultSet:
        """Search DuckDuckGo through the fallback chain.

        Returns:
            ResultSet from the first stage with results, or an empty ResultSet
            when every stage completed without finding anything

        Raises:
            SearchProviderError: If every stage failed
        """
        options = options or SearchOptions()
        self._increment_request()
        logger.info("DuckDuckGo search: %s", query[:100])
        started = time.monotonic()

        stages_run = 0
        failed_stages = 0
        last_error: Exception | None = None

        # Stages 1-2 share the HTML page; 3 has its own page.
        for url, strategies in (
            (self.html_url, HTML_PAGE_STRATEGIES),
            (self.lite_url, LITE_PAGE_STRATEGIES),
        ):
            try:
                html = await self._fetch_page(url, query)
            except SearchProviderError as exc:
                logger.warning("DuckDuckGo page %s failed: %s", url, exc)
                last_error = exc
                stages_run += len(strategies)
                failed_stages += len(strategies)
                continue

            for strategy in strategies:
                stages_run += 1
                results = strategy.extract(html, options.max_results)
                if results:
                    return self._result_set(results, started, strategy)
                logger.debug("DuckDuckGo strategy %s found nothing", strategy.name)

        stages_run += 1
        try:
            results = await self._instant_answer(query, options.max_results)
        except SearchProviderError as exc:
            logger.warning("DuckDuckGo instant answer failed: %s", exc)
            last_error = exc
            failed_stages += 1
        else:
            if results:
                return self._result_set(results, started, None)

        if failed_stages == stages_run:
            self._increment_error()
            raise SearchProviderError(
                f"DuckDuckGo search failed: {last_error}",
                provider=self.name,
            )

        logger.info("DuckDuckGo returned no results for: %s", query[:100])
        return ResultSet(
            results=[],
            total=0,
            provider=self.name,
            elapsed_ms=self._elapsed_ms(started),
        )

    def _result_set(
        self,
        results: list[SearchResult],
        started: float,
        strategy: ExtractionStrategy | None,
    ) -> ResultSet:
        stage = strategy.name if strategy else "instant-answer"
        logger.info("DuckDuckGo returned %d results (%s)", len(results), stage)
        return ResultSet(
            results=results,
            total=len(results),
            provider=self.name,
            elapsed_ms=self._elapsed_ms(started),
            metadata={"stage": stage},
        )

    async def _get(self, url: str, params: dict[str, Any], headers: dict[str, str]) -> httpx.Response:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as client:
                response = await asyncio.wait_for(
                    client.get(url, params=params, headers=headers), timeout=self.timeout
                )
        except (httpx.TimeoutException, TimeoutError) as exc:
            raise SearchProviderError(f"request to {url} timed out", provider=self.name) from exc
        except httpx.HTTPError as exc:
            raise SearchProviderError(f"request to {url} failed: {exc}", provider=self.name) from exc

        if response.status_code != 200:
            raise SearchProviderError(
                f"{url} returned HTTP {response.status_code}",
                provider=self.name,
            )
        return response

    async def _fetch_page(self, url: str, query: str) -> str:
        response = await self._get(url, {"q": query}, BROWSER_HEADERS)
        return response.text

    async def _instant_answer(self, query: str, max_results: int) -> list[SearchResult]:
        response = await self._get(
            f"{self.api_url}/",
            {"q": query, "format": "json", "no_html": 1, "skip_disambig": 1},
            {"User-Agent": BROWSER_HEADERS["User-Agent"]},
        )
        try:
            data = response.json()
        except ValueError as exc:
            raise SearchProviderError("instant answer returned invalid JSON", provider=self.name) from exc

        results: list[SearchResult] = []
        if data.get("AbstractText"):
            results.append(
                SearchResult(
                    title=data.get("Heading") or "Instant Answer",
                    description=data["AbstractText"],
                    url=data.get("AbstractURL") or "",
                    source="DuckDuckGo",
                    type=SearchResultType.INSTANT_ANSWER,
                    relevance_score=INSTANT_ANSWER_SCORE,
                )
            )

        for topic in data.get("RelatedTopics") or []:
            text = topic.get("Text")
            first_url = topic.get("FirstURL")
            if not text or not first_url:
                continue
            results.append(
                SearchResult(
                    title=text.split(" - ")[0] or text,
                    description=text,
                    url=first_url,
                    source="DuckDuckGo",
                    type=SearchResultType.RELATED_TOPIC,
                    relevance_score=RELATED_TOPIC_SCORE,
                )
            )

        return results[:max_results]
