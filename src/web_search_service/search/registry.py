"""Provider lookup by name."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ..core.logger import get_logger
from .base import InvalidRequestError, SearchProvider, SearchProviderType
from .providers import (
    BraveImageProvider,
    BraveNewsProvider,
    BraveRichProvider,
    BraveVideoProvider,
    BraveWebProvider,
    DuckDuckGoProvider,
    NewsAPIProvider,
    SearXNGProvider,
)

if TYPE_CHECKING:
    from ..core.config import ServiceSettings

logger = get_logger("search.registry")

PROVIDER_ALIASES: dict[str, str] = {
    "web": SearchProviderType.BRAVE_WEB.value,
    "rich": SearchProviderType.BRAVE_RICH.value,
    "news": SearchProviderType.BRAVE_NEWS.value,
    "video": SearchProviderType.BRAVE_VIDEO.value,
    "image": SearchProviderType.BRAVE_IMAGE.value,
}


class ProviderRegistry:
    """Holds every provider instance, keyed by provider name.

    Unconfigured providers stay registered so they can be reported as
    unavailable; calling one raises ``ProviderNotConfiguredError``.
    """

    def __init__(self, providers: list[SearchProvider] | None = None) -> None:
        self._providers: dict[str, SearchProvider] = {}
        for provider in providers or []:
            self.register(provider)

    @classmethod
    def from_settings(cls, settings: ServiceSettings) -> ProviderRegistry:
        """Build the standard provider set from settings."""
        timeout = settings.request_timeout_seconds
        brave_key = settings.brave_api_web_key
        return cls(
            [
                # Three pages share the budget of a single request
                DuckDuckGoProvider(
                    timeout=timeout / 3,
                    api_url=settings.duckduckgo_base_url,
                    html_url=settings.duckduckgo_html_url,
                    lite_url=settings.duckduckgo_lite_url,
                ),
                BraveWebProvider(api_key=brave_key, timeout=timeout),
                BraveRichProvider(api_key=brave_key, timeout=timeout),
                BraveNewsProvider(api_key=brave_key, timeout=timeout),
                BraveVideoProvider(api_key=brave_key, timeout=timeout),
                BraveImageProvider(api_key=brave_key, timeout=timeout),
                NewsAPIProvider(
                    api_key=settings.newsapi_key,
                    timeout=timeout,
                    base_url=settings.newsapi_base_url,
                ),
                SearXNGProvider(
                    instances=settings.searxng_instances,
                    timeout=settings.searxng_timeout_seconds,
                ),
            ]
        )

    def register(self, provider: SearchProvider) -> None:
        self._providers[provider.name] = provider
        logger.info(
            "Registered search provider: %s (configured=%s)",
            provider.name,
            provider.is_configured,
        )

    def get(self, name: str) -> SearchProvider | None:
        """Get a provider by name or alias."""
        name = name.strip().lower()
        return self._providers.get(PROVIDER_ALIASES.get(name, name))

    def resolve(self, name: str) -> SearchProvider:
        """Get a provider by name or alias.

        Raises:
            InvalidRequestError: If no provider has that name
        """
        provider = self.get(name)
        if provider is None:
            raise InvalidRequestError(
                f"Unknown provider '{name}'. Available: {', '.join(self.names())}"
            )
        return provider

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.get(name) is not None

    def names(self) -> list[str]:
        return list(self._providers)

    def configured(self) -> list[SearchProvider]:
        return [provider for provider in self._providers.values() if provider.is_configured]

    def availability(self) -> dict[str, bool]:
        """Provider name to configured flag."""
        return {name: provider.is_configured for name, provider in self._providers.items()}

    def get_stats(self) -> dict[str, Any]:
        return {name: provider.get_stats() for name, provider in self._providers.items()}
