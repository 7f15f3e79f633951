"""Search service: cache lookup, orchestration, cache write and history."""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from pydantic import Field, ValidationError
from sqlalchemy.exc import SQLAlchemyError

from ..core.logger import get_logger
from ..core.metrics import ServiceMetrics
from .base import (
    CamelModel,
    InvalidRequestError,
    NewsOptions,
    ResultSet,
    SearchOptions,
    SearchProviderType,
    SearchResult,
)
from .cache import ResultCache
from .history import SearchHistoryLog
from .keys import DEFAULT_TTL_GENERAL_MS, DEFAULT_TTL_TIME_SENSITIVE_MS, get_cache_ttl, normalize_key
from .orchestrator import FallbackOrchestrator
from .providers import NewsAPIProvider

logger = get_logger("search.service")


class RequestContext(CamelModel):
    """Caller identity recorded in the search history."""

    user_id: str | None = None
    session_id: str | None = None


class SearchOutcome(CamelModel):
    """Result of ``SearchService.search``."""

    results: list[SearchResult] = Field(default_factory=list)
    total: int = 0
    query: str
    provider: str
    cached: bool = False
    elapsed_ms: int = 0
    provider_ms: int = Field(default=0, exclude=True)
    cache_ms: int = Field(default=0, exclude=True)


class NewsOutcome(CamelModel):
    """Result of ``SearchService.search_news_only``."""

    articles: list[SearchResult] = Field(default_factory=list)
    total: int = 0
    query: str
    cached: bool = False
    elapsed_ms: int = 0
    provider_ms: int = Field(default=0, exclude=True)
    cache_ms: int = Field(default=0, exclude=True)


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


class SearchService:
    """The two public search operations.

    Features:
    - Cache first, keyed by normalized query and options
    - Time-sensitive queries cached for a shorter TTL
    - Concurrent misses on one key share a single upstream fetch
    - Cache and history failures never fail a search
    """

    def __init__(
        self,
        orchestrator: FallbackOrchestrator,
        cache: ResultCache,
        history: SearchHistoryLog,
        metrics: ServiceMetrics | None = None,
        time_sensitive_ttl_ms: int = DEFAULT_TTL_TIME_SENSITIVE_MS,
        general_ttl_ms: int = DEFAULT_TTL_GENERAL_MS,
        single_flight: bool = True,
    ) -> None:
        """Initialize the search service.

        Args:
            orchestrator: Provider fallback orchestrator
            cache: Result cache
            history: Search history log
            metrics: Service counters
            time_sensitive_ttl_ms: TTL for queries mentioning recency
            general_ttl_ms: TTL for everything else
            single_flight: Share one fetch between concurrent identical misses
        """
        self.orchestrator = orchestrator
        self.cache = cache
        self.history = history
        self.metrics = metrics or ServiceMetrics()
        self.time_sensitive_ttl_ms = time_sensitive_ttl_ms
        self.general_ttl_ms = general_ttl_ms
        self.single_flight = single_flight
        self._inflight: dict[str, asyncio.Task[ResultSet]] = {}
        # In-memory SQLite shares one connection across threads.
        self._db_lock = asyncio.Lock()

    async def search(
        self,
        query: Any,
        options: SearchOptions | Mapping[str, Any] | None = None,
        context: RequestContext | Mapping[str, Any] | None = None,
    ) -> SearchOutcome:
        """Search the web for ``query``.

        Args:
            query: Free-text query
            options: Search options (provider, max_results, filters, ...)
            context: Caller identity for the history log

        Returns:
            SearchOutcome with ``cached`` telling whether the cache answered

        Raises:
            InvalidRequestError: If the query or options are invalid
            SearchError: If no provider produced results
        """
        started = time.monotonic()
        query = self._validate_query(query)
        search_options = self._parse(SearchOptions, options)
        caller = self._parse(RequestContext, context)
        self.metrics.increment_searches()

        key = normalize_key(query, search_options)
        cached = await self._cache_get(key)
        cache_ms = _elapsed_ms(started)

        if cached is not None:
            elapsed = _elapsed_ms(started)
            logger.info("Returning cached results for: %s", query[:50])
            await self._record_history(query, cached.provider, cached.count, True, elapsed, caller)
            return SearchOutcome(
                results=cached.results,
                total=cached.total or cached.count,
                query=query,
                provider=cached.provider,
                cached=True,
                elapsed_ms=elapsed,
                cache_ms=cache_ms,
            )

        fetch_started = time.monotonic()
        result_set = await self._fetch_shared(
            key,
            lambda: self._fetch_and_store(
                key,
                query,
                lambda: self.orchestrator.run(query, search_options),
            ),
        )
        provider_ms = _elapsed_ms(fetch_started)
        elapsed = _elapsed_ms(started)

        await self._record_history(query, result_set.provider, result_set.count, False, elapsed, caller)
        logger.info(
            "Search completed: %d results from %s in %dms",
            result_set.count,
            result_set.provider,
            elapsed,
        )
        return SearchOutcome(
            results=result_set.results,
            total=result_set.total or result_set.count,
            query=query,
            provider=result_set.provider,
            cached=False,
            elapsed_ms=elapsed,
            provider_ms=provider_ms,
            cache_ms=cache_ms,
        )

    async def search_news_only(
        self,
        query: Any,
        options: NewsOptions | Mapping[str, Any] | None = None,
        context: RequestContext | Mapping[str, Any] | None = None,
    ) -> NewsOutcome:
        """Fetch top headlines for ``query`` from NewsAPI.

        Raises:
            InvalidRequestError: If the query or options are invalid
            SearchError: If NewsAPI fails after retries
        """
        started = time.monotonic()
        query = self._validate_query(query)
        news_options = self._parse(NewsOptions, options)
        caller = self._parse(RequestContext, context)
        self.metrics.increment_searches()

        key = normalize_key(query, news_options)
        cached = await self._cache_get(key)
        cache_ms = _elapsed_ms(started)

        if cached is not None:
            elapsed = _elapsed_ms(started)
            await self._record_history(query, cached.provider, cached.count, True, elapsed, caller)
            return NewsOutcome(
                articles=cached.results,
                total=cached.total or cached.count,
                query=query,
                cached=True,
                elapsed_ms=elapsed,
                cache_ms=cache_ms,
            )

        newsapi = self._newsapi()
        fetch_started = time.monotonic()
        result_set = await self._fetch_shared(
            key,
            lambda: self._fetch_and_store(
                key,
                query,
                lambda: self.orchestrator.call_with_retries(
                    newsapi, lambda: newsapi.top_headlines(query, news_options)
                ),
            ),
        )
        provider_ms = _elapsed_ms(fetch_started)
        elapsed = _elapsed_ms(started)

        await self._record_history(query, newsapi.name, result_set.count, False, elapsed, caller)
        return NewsOutcome(
            articles=result_set.results,
            total=result_set.total or result_set.count,
            query=query,
            cached=False,
            elapsed_ms=elapsed,
            provider_ms=provider_ms,
            cache_ms=cache_ms,
        )

    def _newsapi(self) -> NewsAPIProvider:
        provider = self.orchestrator.registry.get(SearchProviderType.NEWSAPI.value)
        if not isinstance(provider, NewsAPIProvider):
            raise InvalidRequestError("News search is not available")
        return provider

    @staticmethod
    def _validate_query(query: Any) -> str:
        if not isinstance(query, str) or not query.strip():
            raise InvalidRequestError("Query is required and must be a string")
        return query

    @staticmethod
    def _parse(model: type[Any], value: Any) -> Any:
        if value is None:
            return model()
        if isinstance(value, model):
            return value
        if isinstance(value, Mapping):
            # JSON null means the field was left out.
            value = {k: v for k, v in value.items() if v is not None}
        try:
            return model.model_validate(value)
        except ValidationError as exc:
            details = "; ".join(
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            )
            raise InvalidRequestError(f"Invalid options: {details}") from exc

    async def _fetch_shared(
        self,
        key: str,
        fetch: Callable[[], Awaitable[ResultSet]],
    ) -> ResultSet:
        """Run ``fetch`` once per key among concurrent callers."""
        if not self.single_flight:
            return await fetch()

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(fetch())
            self._inflight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("Joining in-flight fetch for key: %s", key[:80])

        # A cancelled caller must not cancel the fetch other callers wait on.
        return await asyncio.shield(task)

    def _forget(self, key: str, task: asyncio.Task[ResultSet]) -> None:
        if self._inflight.get(key) is task:
            del self._inflight[key]
        if not task.cancelled():
            # Mark the exception retrieved when every waiter was cancelled.
            task.exception()

    async def _fetch_and_store(
        self,
        key: str,
        query: str,
        fetch: Callable[[], Awaitable[ResultSet]],
    ) -> ResultSet:
        result_set = await fetch()
        ttl_ms = get_cache_ttl(query, self.time_sensitive_ttl_ms, self.general_ttl_ms)
        try:
            await self._run_db(self.cache.put, key, result_set, ttl_ms, query=query)
        except SQLAlchemyError as exc:
            logger.warning("Failed to cache results for %s: %s", query[:50], exc)
        return result_set

    async def _run_db(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run a blocking storage call in the default executor."""
        async with self._db_lock:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(None, functools.partial(fn, *args, **kwargs))

    async def _cache_get(self, key: str) -> ResultSet | None:
        try:
            return await self._run_db(self.cache.get, key)
        except SQLAlchemyError as exc:
            logger.warning("Cache lookup failed, treating as miss: %s", exc)
            return None

    async def _record_history(
        self,
        query: str,
        provider: str,
        results_count: int,
        cached: bool,
        elapsed_ms: int,
        caller: RequestContext,
    ) -> None:
        try:
            await self._run_db(
                self.history.record,
                query=query,
                provider=provider,
                results_count=results_count,
                cached=cached,
                elapsed_ms=elapsed_ms,
                user_id=caller.user_id,
                session_id=caller.session_id,
            )
        except SQLAlchemyError as exc:
            logger.warning("Failed to log search history: %s", exc)
