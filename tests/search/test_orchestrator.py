"""Tests for FallbackOrchestrator.

Tests cover:
- Intent mode stage transitions
- Explicit provider mode
- Sequential mode with retries and backoff
- Timeouts and unexpected errors
"""

from __future__ import annotations

import asyncio
import re
from unittest.mock import MagicMock

import httpx
import pytest
from pytest_httpx import HTTPXMock

from tests.mocks import FakeProvider, make_result_set
from web_search_service.search.base import (
    ErrorKind,
    InvalidRequestError,
    ProvidersExhaustedError,
    ResultSet,
    SearchAuthenticationError,
    SearchOptions,
    SearchProviderError,
    SearchProviderType,
    SearchRateLimitError,
    SearchTimeoutError,
)
from web_search_service.search.intent import IntentClassifier
from web_search_service.search.providers import DuckDuckGoProvider, SearXNGProvider
from web_search_service.search.orchestrator import FallbackOrchestrator, RoutingMode
from web_search_service.search.registry import ProviderRegistry

P = SearchProviderType


def _empty(provider_type: SearchProviderType) -> FakeProvider:
    return FakeProvider(provider_type, [ResultSet(provider=provider_type.value)])


def _with_results(provider_type: SearchProviderType, count: int = 3) -> FakeProvider:
    return FakeProvider(provider_type, [make_result_set(provider_type.value, count)])


def _registry(*providers: FakeProvider) -> ProviderRegistry:
    return ProviderRegistry(list(providers))


class TestIntentMode:
    """Tests for the default intent routing chain."""

    @pytest.mark.asyncio
    async def test_primary_answers(self) -> None:
        """Test the free tier answers without classification."""
        ddg = _with_results(P.DUCKDUCKGO, 2)
        classifier = MagicMock(spec=IntentClassifier)
        orchestrator = FallbackOrchestrator(_registry(ddg), classifier)

        result_set = await orchestrator.run("python tutorial", SearchOptions())

        assert result_set.provider == "duckduckgo"
        assert result_set.count == 2
        classifier.classify.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_primary_routes_by_intent(self) -> None:
        """Test an empty primary falls through to the intent provider."""
        ddg = _empty(P.DUCKDUCKGO)
        rich = _with_results(P.BRAVE_RICH, 3)
        web = _with_results(P.BRAVE_WEB, 5)
        orchestrator = FallbackOrchestrator(_registry(ddg, rich, web), IntentClassifier())

        result_set = await orchestrator.run("bitcoin price today", SearchOptions())

        assert result_set.provider == "brave-rich"
        assert result_set.count == 3
        assert ddg.call_count == 1
        assert rich.call_count == 1
        assert web.call_count == 0

    @pytest.mark.asyncio
    async def test_failed_primary_routes_by_intent(self) -> None:
        """Test a failing primary is treated like an empty one."""
        ddg = FakeProvider(P.DUCKDUCKGO, [SearchProviderError("scrape blocked")])
        video = _with_results(P.BRAVE_VIDEO, 1)
        orchestrator = FallbackOrchestrator(_registry(ddg, video), IntentClassifier())

        result_set = await orchestrator.run("funny cat videos", SearchOptions())

        assert result_set.provider == "brave-video"

    @pytest.mark.asyncio
    async def test_web_fallback(self) -> None:
        """Test a failing intent provider falls back to general web."""
        ddg = _empty(P.DUCKDUCKGO)
        news = FakeProvider(P.BRAVE_NEWS, [SearchRateLimitError("Brave News rate limited")])
        web = _with_results(P.BRAVE_WEB, 4)
        orchestrator = FallbackOrchestrator(_registry(ddg, news, web), IntentClassifier())

        result_set = await orchestrator.run("breaking news about AI", SearchOptions())

        assert result_set.provider == "brave-web"
        assert news.call_count == 1
        assert web.call_count == 1

    @pytest.mark.asyncio
    async def test_exhausted_reports_last_error(self) -> None:
        """Test exhaustion raises PROVIDER_ERROR with the final upstream message."""
        ddg = FakeProvider(P.DUCKDUCKGO, [SearchProviderError("DuckDuckGo search failed: blocked")])
        news = FakeProvider(P.BRAVE_NEWS, [SearchRateLimitError("rate limited")])
        web = FakeProvider(P.BRAVE_WEB, [SearchProviderError("Brave Web search failed: 500 - boom")])
        orchestrator = FallbackOrchestrator(_registry(ddg, news, web), IntentClassifier())

        with pytest.raises(ProvidersExhaustedError) as exc_info:
            await orchestrator.run("breaking news about AI", SearchOptions())

        error = exc_info.value
        assert error.kind is ErrorKind.PROVIDER_ERROR
        assert error.message == (
            "All providers failed or returned empty results. "
            "Last error: Brave Web search failed: 500 - boom"
        )
        assert isinstance(error.last_error, SearchProviderError)

    @pytest.mark.asyncio
    async def test_empty_fallback_keeps_earlier_error(self) -> None:
        """Test an empty stage does not erase the previous error."""
        ddg = _empty(P.DUCKDUCKGO)
        rich = FakeProvider(P.BRAVE_RICH, [SearchAuthenticationError("bad key")])
        web = _empty(P.BRAVE_WEB)
        orchestrator = FallbackOrchestrator(_registry(ddg, rich, web), IntentClassifier())

        with pytest.raises(ProvidersExhaustedError, match="Last error: bad key"):
            await orchestrator.run("weather in Paris", SearchOptions())

    @pytest.mark.asyncio
    async def test_web_intent_not_called_twice(self) -> None:
        """Test the web fallback stage is skipped when the intent is web."""
        ddg = _empty(P.DUCKDUCKGO)
        web = _empty(P.BRAVE_WEB)
        orchestrator = FallbackOrchestrator(_registry(ddg, web), IntentClassifier())

        with pytest.raises(ProvidersExhaustedError, match="Last error: no results"):
            await orchestrator.run("who invented the telephone", SearchOptions())

        assert web.call_count == 1

    @pytest.mark.asyncio
    async def test_missing_providers_are_failures(self) -> None:
        """Test unregistered stage providers count as failed stages."""
        orchestrator = FallbackOrchestrator(_registry(), IntentClassifier())

        with pytest.raises(ProvidersExhaustedError, match="brave-web is not registered"):
            await orchestrator.run("who invented the telephone", SearchOptions())

    @pytest.mark.asyncio
    async def test_each_stage_called_once(self) -> None:
        """Test intent mode does not retry within a stage."""
        ddg = FakeProvider(P.DUCKDUCKGO, [SearchProviderError("down")])
        web = FakeProvider(P.BRAVE_WEB, [SearchProviderError("down")])
        sleep = MagicMock()
        orchestrator = FallbackOrchestrator(_registry(ddg, web), IntentClassifier(), sleep=sleep)

        with pytest.raises(ProvidersExhaustedError):
            await orchestrator.run("who invented the telephone", SearchOptions())

        assert ddg.call_count == 1
        assert web.call_count == 1
        sleep.assert_not_called()


class TestExplicitProvider:
    """Tests for explicit provider selection."""

    @pytest.mark.asyncio
    async def test_classifier_never_invoked(self) -> None:
        """Test an explicit provider skips classification and the chain."""
        ddg = _with_results(P.DUCKDUCKGO)
        searxng = _with_results(P.SEARXNG, 2)
        classifier = MagicMock(spec=IntentClassifier)
        orchestrator = FallbackOrchestrator(_registry(ddg, searxng), classifier)

        result_set = await orchestrator.run("python", SearchOptions(provider="searxng"))

        assert result_set.provider == "searxng"
        assert ddg.call_count == 0
        classifier.classify.assert_not_called()
        classifier.score.assert_not_called()

    @pytest.mark.asyncio
    async def test_alias(self) -> None:
        """Test short aliases resolve to Brave endpoints."""
        news = _with_results(P.BRAVE_NEWS, 1)
        orchestrator = FallbackOrchestrator(_registry(news), IntentClassifier())

        result_set = await orchestrator.run("elections", SearchOptions(provider="News"))

        assert result_set.provider == "brave-news"

    @pytest.mark.asyncio
    async def test_empty_result_returned_as_is(self) -> None:
        """Test an explicit provider's empty result is not a failure."""
        web = _empty(P.BRAVE_WEB)
        orchestrator = FallbackOrchestrator(_registry(web), IntentClassifier())

        result_set = await orchestrator.run("nothing", SearchOptions(provider="brave-web"))

        assert result_set.has_results is False

    @pytest.mark.asyncio
    async def test_error_returned_as_is(self) -> None:
        """Test an explicit provider's error propagates unchanged."""
        error = SearchAuthenticationError("Brave Web search failed: 401 - bad token")
        web = FakeProvider(P.BRAVE_WEB, [error])
        ddg = _with_results(P.DUCKDUCKGO)
        orchestrator = FallbackOrchestrator(_registry(web, ddg), IntentClassifier())

        with pytest.raises(SearchAuthenticationError) as exc_info:
            await orchestrator.run("python", SearchOptions(provider="brave-web"))

        assert exc_info.value is error
        assert ddg.call_count == 0

    @pytest.mark.asyncio
    async def test_unknown_provider(self) -> None:
        """Test unknown provider names are invalid requests."""
        orchestrator = FallbackOrchestrator(_registry(_empty(P.DUCKDUCKGO)), IntentClassifier())

        with pytest.raises(InvalidRequestError) as exc_info:
            await orchestrator.run("python", SearchOptions(provider="altavista"))

        assert exc_info.value.kind is ErrorKind.INVALID_REQUEST
        assert "Unknown provider 'altavista'" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Test a slow provider is cut off by the request timeout."""
        slow = FakeProvider(P.SEARXNG, [make_result_set("searxng", 1)], delay=1.0)
        orchestrator = FallbackOrchestrator(
            _registry(slow), IntentClassifier(), request_timeout=0.05
        )

        with pytest.raises(SearchTimeoutError) as exc_info:
            await orchestrator.run("python", SearchOptions(provider="searxng"))

        assert exc_info.value.provider == "searxng"
        assert exc_info.value.kind is ErrorKind.PROVIDER_ERROR

    @pytest.mark.asyncio
    async def test_unexpected_exception_wrapped(self) -> None:
        """Test non-search exceptions become provider errors."""
        broken = FakeProvider(P.SEARXNG, [RuntimeError("kaboom")])
        orchestrator = FallbackOrchestrator(_registry(broken), IntentClassifier())

        with pytest.raises(SearchProviderError, match="searxng search failed: kaboom"):
            await orchestrator.run("python", SearchOptions(provider="searxng"))


class TestSequentialMode:
    """Tests for the sequential routing mode."""

    def _orchestrator(self, registry, sleep, **kwargs) -> FallbackOrchestrator:
        return FallbackOrchestrator(
            registry,
            IntentClassifier(),
            routing_mode=RoutingMode.SEQUENTIAL,
            retry_delay_ms=1000,
            sleep=sleep,
            **kwargs,
        )

    @pytest.mark.asyncio
    async def test_retries_with_backoff(self, sleep_calls) -> None:
        """Test retryable errors back off exponentially."""
        ddg = FakeProvider(
            P.DUCKDUCKGO,
            [SearchProviderError("blip"), SearchProviderError("blip"), make_result_set("duckduckgo", 2)],
        )
        orchestrator = self._orchestrator(_registry(ddg), sleep_calls)

        result_set = await orchestrator.run("python", SearchOptions())

        assert result_set.provider == "duckduckgo"
        assert ddg.call_count == 3
        assert sleep_calls.calls == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self, sleep_calls) -> None:
        """Test each provider gets max_retries attempts before moving on."""
        ddg = FakeProvider(P.DUCKDUCKGO, [SearchProviderError("still down")])
        searxng = _with_results(P.SEARXNG, 1)
        orchestrator = self._orchestrator(_registry(ddg, searxng), sleep_calls, max_retries=3)

        result_set = await orchestrator.run("python", SearchOptions())

        assert result_set.provider == "searxng"
        assert ddg.call_count == 3
        assert sleep_calls.calls == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_non_retryable_not_retried(self, sleep_calls) -> None:
        """Test authentication errors move straight to the next provider."""
        web = FakeProvider(P.BRAVE_WEB, [SearchAuthenticationError("bad key")])
        ddg = _with_results(P.DUCKDUCKGO, 1)
        orchestrator = self._orchestrator(
            _registry(web, ddg),
            sleep_calls,
            sequential_providers=["brave-web", "duckduckgo"],
        )

        result_set = await orchestrator.run("python", SearchOptions())

        assert result_set.provider == "duckduckgo"
        assert web.call_count == 1
        assert sleep_calls.calls == []

    @pytest.mark.asyncio
    async def test_empty_moves_to_next(self, sleep_calls) -> None:
        """Test an empty result set is not retried."""
        ddg = _empty(P.DUCKDUCKGO)
        searxng = _with_results(P.SEARXNG, 2)
        orchestrator = self._orchestrator(_registry(ddg, searxng), sleep_calls)

        result_set = await orchestrator.run("python", SearchOptions())

        assert result_set.provider == "searxng"
        assert ddg.call_count == 1

    @pytest.mark.asyncio
    async def test_skips_unconfigured(self, sleep_calls) -> None:
        """Test unconfigured providers are skipped without a call."""
        ddg = _empty(P.DUCKDUCKGO)
        searxng = _empty(P.SEARXNG)
        web = FakeProvider(P.BRAVE_WEB, [make_result_set("brave-web", 1)], configured=False)
        orchestrator = self._orchestrator(_registry(ddg, searxng, web), sleep_calls)

        with pytest.raises(ProvidersExhaustedError, match="no results"):
            await orchestrator.run("python", SearchOptions())

        assert web.call_count == 0

    @pytest.mark.asyncio
    async def test_nothing_configured(self, sleep_calls) -> None:
        """Test a list with no usable providers."""
        web = FakeProvider(P.BRAVE_WEB, configured=False)
        orchestrator = self._orchestrator(
            _registry(web), sleep_calls, sequential_providers=["brave-web", "bing"]
        )

        with pytest.raises(ProvidersExhaustedError, match="No configured search providers"):
            await orchestrator.run("python", SearchOptions())


class TestCallWithRetries:
    """Tests for call_with_retries used by the news path."""

    @pytest.mark.asyncio
    async def test_rate_limit_is_retried(self, sleep_calls) -> None:
        """Test rate-limit errors are retried with backoff."""
        provider = _empty(P.NEWSAPI)
        outcomes = [SearchRateLimitError("quota"), make_result_set("newsapi", 1)]

        async def operation() -> ResultSet:
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        orchestrator = FallbackOrchestrator(
            _registry(provider), IntentClassifier(), retry_delay_ms=200, sleep=sleep_calls
        )

        result_set = await orchestrator.call_with_retries(provider, operation)

        assert result_set.count == 1
        assert sleep_calls.calls == [0.2]

    @pytest.mark.asyncio
    async def test_invalid_key_raised_immediately(self, sleep_calls) -> None:
        """Test an invalid key is never retried."""
        provider = _empty(P.NEWSAPI)
        calls = 0

        async def operation() -> ResultSet:
            nonlocal calls
            calls += 1
            raise SearchAuthenticationError("NewsAPI key is invalid")

        orchestrator = FallbackOrchestrator(_registry(provider), IntentClassifier(), sleep=sleep_calls)

        with pytest.raises(SearchAuthenticationError):
            await orchestrator.call_with_retries(provider, operation)

        assert calls == 1
        assert sleep_calls.calls == []


HTML_URL = re.compile(r"https://html\.duckduckgo\.com/html/\?.*")
LITE_URL = re.compile(r"https://lite\.duckduckgo\.com/lite/\?.*")
API_URL = re.compile(r"https://api\.duckduckgo\.com/\?.*")


async def _hang(request: httpx.Request) -> httpx.Response:
    await asyncio.sleep(30)
    return httpx.Response(200)


class TestMultiRequestProviders:
    """Tests that a hung stage or mirror does not end the whole provider call."""

    @pytest.mark.asyncio
    async def test_duckduckgo_reaches_instant_answer(self, httpx_mock: HTTPXMock) -> None:
        """Test hung HTML and Lite pages still leave time for the instant-answer API."""
        httpx_mock.add_callback(_hang, url=HTML_URL)
        httpx_mock.add_callback(_hang, url=LITE_URL)
        httpx_mock.add_response(
            url=API_URL,
            json={"Heading": "Python", "AbstractText": "A language", "AbstractURL": "https://python.org"},
        )
        orchestrator = FallbackOrchestrator(
            _registry(DuckDuckGoProvider(timeout=0.1)), IntentClassifier(), request_timeout=0.3
        )

        result_set = await orchestrator.run("python", SearchOptions())

        assert result_set.provider == "duckduckgo"
        assert result_set.metadata == {"stage": "instant-answer"}
        assert result_set.results[0].title == "Python"

    @pytest.mark.asyncio
    async def test_searxng_reaches_last_mirror(self, httpx_mock: HTTPXMock) -> None:
        """Test hung mirrors are skipped until a responsive one answers."""
        mirrors = ["https://hung-1.example", "https://hung-2.example", "https://good.example"]
        httpx_mock.add_callback(_hang, url=re.compile(r"https://hung-1\.example/search\?.*"))
        httpx_mock.add_callback(_hang, url=re.compile(r"https://hung-2\.example/search\?.*"))
        httpx_mock.add_response(
            url=re.compile(r"https://good\.example/search\?.*"),
            json={"results": [{"title": "Answer", "url": "https://example.com/answer"}]},
        )
        orchestrator = FallbackOrchestrator(
            _registry(SearXNGProvider(instances=mirrors, timeout=0.1)),
            IntentClassifier(),
            request_timeout=0.1,
        )

        result_set = await orchestrator.run("python", SearchOptions(provider="searxng"))

        assert result_set.metadata == {"instance": "https://good.example"}
        assert result_set.results[0].title == "Answer"
