"""Provider fallback orchestration.

Two routing modes, chosen by configuration:

``intent`` (default)
    explicit-provider -> (or) primary-free-tier -> intent-routed ->
    web-fallback -> exhausted. Every stage makes a single call.

``sequential``
    Walk an ordered provider list, retrying each provider with exponential
    backoff before moving on.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from enum import Enum

from ..core.logger import get_logger
from .base import (
    ProvidersExhaustedError,
    ResultSet,
    SearchError,
    SearchOptions,
    SearchProvider,
    SearchProviderError,
    SearchProviderType,
    SearchTimeoutError,
)
from .intent import Intent, IntentClassifier
from .registry import ProviderRegistry

logger = get_logger("search.orchestrator")

INTENT_PROVIDERS: dict[Intent, SearchProviderType] = {
    Intent.RICH: SearchProviderType.BRAVE_RICH,
    Intent.NEWS: SearchProviderType.BRAVE_NEWS,
    Intent.VIDEO: SearchProviderType.BRAVE_VIDEO,
    Intent.IMAGE: SearchProviderType.BRAVE_IMAGE,
    Intent.WEB: SearchProviderType.BRAVE_WEB,
}

PRIMARY_PROVIDER = SearchProviderType.DUCKDUCKGO
WEB_FALLBACK_PROVIDER = SearchProviderType.BRAVE_WEB

DEFAULT_SEQUENTIAL_PROVIDERS: tuple[str, ...] = ("duckduckgo", "searxng", "brave-web")


class RoutingStage(str, Enum):
    """States of the intent-mode fallback chain."""

    EXPLICIT_PROVIDER = "explicit-provider"
    PRIMARY_FREE_TIER = "primary-free-tier"
    INTENT_ROUTED = "intent-routed"
    WEB_FALLBACK = "web-fallback"
    EXHAUSTED = "exhausted"


class RoutingMode(str, Enum):
    INTENT = "intent"
    SEQUENTIAL = "sequential"


class FallbackOrchestrator:
    """Decides which providers to call for a query and in what order.

    Example:
        ```python
        orchestrator = FallbackOrchestrator(registry, IntentClassifier())
        result_set = await orchestrator.run("weather in Paris", SearchOptions())
        ```
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        classifier: IntentClassifier,
        routing_mode: RoutingMode | str = RoutingMode.INTENT,
        sequential_providers: Sequence[str] = DEFAULT_SEQUENTIAL_PROVIDERS,
        max_retries: int = 3,
        retry_delay_ms: int = 1000,
        request_timeout: float = 10.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            registry: Provider registry
            classifier: Intent classifier used in intent mode
            routing_mode: ``intent`` or ``sequential``
            sequential_providers: Provider order for sequential mode
            max_retries: Attempts per provider in sequential mode and for
                ``call_with_retries``
            retry_delay_ms: Base backoff delay in milliseconds
            request_timeout: Upper bound for one single-request provider call,
                in seconds. See ``SearchProvider.call_budget``
            sleep: Coroutine used for backoff waits
        """
        self.registry = registry
        self.classifier = classifier
        self.routing_mode = RoutingMode(routing_mode)
        self.sequential_providers = list(sequential_providers)
        self.max_retries = max(1, max_retries)
        self.retry_delay_ms = retry_delay_ms
        self.request_timeout = request_timeout
        self._sleep = sleep

        logger.info(
            "FallbackOrchestrator initialized (mode=%s, retries=%d, timeout=%.1fs)",
            self.routing_mode.value,
            self.max_retries,
            request_timeout,
        )

    async def run(self, query: str, options: SearchOptions | None = None) -> ResultSet:
        """Produce a result set for ``query``.

        Raises:
            InvalidRequestError: If an explicit provider name is unknown
            ProvidersExhaustedError: If the fallback chain ran out of providers
            SearchError: Errors of an explicitly requested provider, as-is
        """
        options = options or SearchOptions()

        if not options.is_auto:
            provider = self.registry.resolve(options.provider)
            logger.info("Stage %s: %s", RoutingStage.EXPLICIT_PROVIDER.value, provider.name)
            return await self._call(provider, query, options)

        if self.routing_mode is RoutingMode.SEQUENTIAL:
            return await self._run_sequential(query, options)
        return await self._run_intent(query, options)

    async def _run_intent(self, query: str, options: SearchOptions) -> ResultSet:
        last_error: Exception | None = None

        result, error = await self._attempt(RoutingStage.PRIMARY_FREE_TIER, PRIMARY_PROVIDER, query, options)
        if result is not None:
            return result
        last_error = error or last_error

        intent = self.classifier.classify(query)
        logger.info("Detected intent: %s (%s)", intent.value, self.classifier.explain(intent))

        result, error = await self._attempt(
            RoutingStage.INTENT_ROUTED, INTENT_PROVIDERS[intent], query, options
        )
        if result is not None:
            return result
        last_error = error or last_error

        if intent is not Intent.WEB:
            result, error = await self._attempt(
                RoutingStage.WEB_FALLBACK, WEB_FALLBACK_PROVIDER, query, options
            )
            if result is not None:
                return result
            last_error = error or last_error

        logger.warning("Stage %s for query: %s", RoutingStage.EXHAUSTED.value, query[:100])
        raise ProvidersExhaustedError(
            "All providers failed or returned empty results. "
            f"Last error: {self._describe(last_error)}",
            last_error=last_error,
        )

    async def _attempt(
        self,
        stage: RoutingStage,
        provider_type: SearchProviderType,
        query: str,
        options: SearchOptions,
    ) -> tuple[ResultSet | None, Exception | None]:
        """Run one stage; returns the result set when it has results."""
        provider = self.registry.get(provider_type.value)
        if provider is None:
            return None, SearchProviderError(
                f"{provider_type.value} is not registered", provider=provider_type.value
            )

        logger.info("Stage %s: trying %s", stage.value, provider.name)
        try:
            result_set = await self._call(provider, query, options)
        except SearchError as exc:
            logger.warning("Stage %s: %s failed: %s", stage.value, provider.name, exc)
            return None, exc

        if result_set.has_results:
            logger.info(
                "Stage %s: %s returned %d results",
                stage.value,
                provider.name,
                result_set.count,
            )
            return result_set, None

        logger.info("Stage %s: %s returned no results", stage.value, provider.name)
        return None, None

    async def _run_sequential(self, query: str, options: SearchOptions) -> ResultSet:
        last_error: Exception | None = None
        tried = 0

        for name in self.sequential_providers:
            provider = self.registry.get(name)
            if provider is None or not provider.is_configured:
                logger.debug("Skipping unavailable provider: %s", name)
                continue

            tried += 1
            try:
                result_set = await self.call_with_retries(
                    provider, lambda p=provider: p.search(query, options)
                )
            except SearchError as exc:
                logger.warning("Provider %s failed: %s", provider.name, exc)
                last_error = exc
                continue

            if result_set.has_results:
                return result_set
            logger.info("Provider %s returned no results, trying next", provider.name)

        if tried == 0:
            raise ProvidersExhaustedError("No configured search providers available")

        raise ProvidersExhaustedError(
            "All providers failed or returned empty results. "
            f"Last error: {self._describe(last_error)}",
            last_error=last_error,
        )

    async def call_with_retries(
        self,
        provider: SearchProvider,
        operation: Callable[[], Awaitable[ResultSet]],
    ) -> ResultSet:
        """Run ``operation`` against ``provider`` with exponential backoff.

        The wait before retry ``n`` (0-based) is ``retry_delay_ms * 2**n``.
        Non-retryable errors (bad key, provider not configured, invalid
        request) are raised immediately.

        Args:
            provider: Provider the operation belongs to
            operation: Zero-argument coroutine factory performing one call

        Returns:
            The operation's result set

        Raises:
            SearchError: The last error once attempts are used up
        """
        last_error: SearchError | None = None

        for attempt in range(self.max_retries):
            try:
                return await self._bounded(provider, operation)
            except SearchError as exc:
                last_error = exc
                if not exc.retryable:
                    raise

                if attempt < self.max_retries - 1:
                    delay_ms = self.retry_delay_ms * 2**attempt
                    logger.warning(
                        "%s attempt %d/%d failed: %s. Retrying in %dms...",
                        provider.name,
                        attempt + 1,
                        self.max_retries,
                        exc,
                        delay_ms,
                    )
                    await self._sleep(delay_ms / 1000)
                else:
                    logger.error(
                        "%s failed after %d attempts: %s",
                        provider.name,
                        self.max_retries,
                        exc,
                    )

        raise last_error or SearchProviderError(f"{provider.name} failed", provider=provider.name)

    async def _call(self, provider: SearchProvider, query: str, options: SearchOptions) -> ResultSet:
        return await self._bounded(provider, lambda: provider.search(query, options))

    async def _bounded(
        self,
        provider: SearchProvider,
        operation: Callable[[], Awaitable[ResultSet]],
    ) -> ResultSet:
        budget = provider.call_budget(self.request_timeout)
        try:
            return await asyncio.wait_for(operation(), timeout=budget)
        except TimeoutError as exc:
            raise SearchTimeoutError(
                f"{provider.name} timed out after {budget:g}s",
                provider=provider.name,
            ) from exc
        except SearchError:
            raise
        except Exception as exc:
            logger.error("Unexpected error from %s: %s", provider.name, exc, exc_info=True)
            raise SearchProviderError(
                f"{provider.name} search failed: {exc}",
                provider=provider.name,
            ) from exc

    @staticmethod
    def _describe(error: Exception | None) -> str:
        if error is None:
            return "no results"
        return error.message if isinstance(error, SearchError) else str(error)
