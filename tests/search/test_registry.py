"""Tests for ProviderRegistry."""

from __future__ import annotations

import pytest

from tests.mocks import FakeProvider
from web_search_service.core.config import ServiceSettings
from web_search_service.search.base import InvalidRequestError, SearchProviderType
from web_search_service.search.providers import (
    BraveWebProvider,
    DuckDuckGoProvider,
    NewsAPIProvider,
    SearXNGProvider,
)
from web_search_service.search.registry import ProviderRegistry


class TestProviderRegistry:
    """Tests for ProviderRegistry."""

    def test_from_settings_without_keys(self) -> None:
        """Test every provider is registered and keyless ones are available."""
        registry = ProviderRegistry.from_settings(ServiceSettings(_env_file=None))

        assert registry.names() == [
            "duckduckgo",
            "brave-web",
            "brave-rich",
            "brave-news",
            "brave-video",
            "brave-image",
            "newsapi",
            "searxng",
        ]
        availability = registry.availability()
        assert availability["duckduckgo"] is True
        assert availability["searxng"] is True
        assert availability["brave-web"] is False
        assert availability["newsapi"] is False
        assert {p.name for p in registry.configured()} == {"duckduckgo", "searxng"}

    def test_from_settings_with_keys(self) -> None:
        """Test keys and endpoints flow into the providers."""
        settings = ServiceSettings(
            _env_file=None,
            brave_api_web_key="brave",
            newsapi_key="news",
            newsapi_base_url="https://news.internal/v2/",
            searxng_instances=["https://searx.internal/"],
            request_timeout=4000,
            searxng_timeout=2500,
        )

        registry = ProviderRegistry.from_settings(settings)

        assert all(registry.availability().values())
        brave = registry.get("brave-web")
        assert isinstance(brave, BraveWebProvider)
        assert brave.api_key == "brave"
        assert brave.timeout == 4.0
        newsapi = registry.get("newsapi")
        assert isinstance(newsapi, NewsAPIProvider)
        assert newsapi.base_url == "https://news.internal/v2"
        searxng = registry.get("searxng")
        assert isinstance(searxng, SearXNGProvider)
        assert searxng.instances == ["https://searx.internal"]
        assert searxng.timeout == 2.5
        ddg = registry.get("duckduckgo")
        assert isinstance(ddg, DuckDuckGoProvider)
        assert ddg.timeout == pytest.approx(4 / 3)

    @pytest.mark.parametrize(
        ("alias", "expected"),
        [
            ("web", "brave-web"),
            ("rich", "brave-rich"),
            ("news", "brave-news"),
            ("video", "brave-video"),
            ("image", "brave-image"),
            (" DuckDuckGo ", "duckduckgo"),
        ],
    )
    def test_aliases(self, alias: str, expected: str) -> None:
        """Test aliases and case-insensitive names."""
        registry = ProviderRegistry.from_settings(ServiceSettings(_env_file=None))
        assert registry.resolve(alias).name == expected
        assert alias in registry

    def test_unknown_provider(self) -> None:
        """Test resolving an unknown name lists the available ones."""
        registry = ProviderRegistry([FakeProvider(SearchProviderType.DUCKDUCKGO)])

        assert registry.get("bing") is None
        assert "bing" not in registry
        with pytest.raises(InvalidRequestError, match="Unknown provider 'bing'. Available: duckduckgo"):
            registry.resolve("bing")

    def test_register_replaces_same_name(self) -> None:
        """Test registering a provider twice keeps the latest instance."""
        first = FakeProvider(SearchProviderType.SEARXNG)
        second = FakeProvider(SearchProviderType.SEARXNG)
        registry = ProviderRegistry([first])

        registry.register(second)

        assert registry.get("searxng") is second
        assert registry.names() == ["searxng"]

    def test_get_stats(self) -> None:
        """Test stats are reported per provider."""
        registry = ProviderRegistry([FakeProvider(SearchProviderType.SEARXNG)])

        stats = registry.get_stats()

        assert stats["searxng"]["request_count"] == 0
        assert stats["searxng"]["configured"] is True

    def test_call_budgets_cover_every_attempt(self) -> None:
        """Test multi-request providers get a budget that fits all their attempts."""
        settings = ServiceSettings(_env_file=None, request_timeout=3000, searxng_timeout=2000)
        registry = ProviderRegistry.from_settings(settings)
        timeout = settings.request_timeout_seconds

        assert registry.get("brave-web").call_budget(timeout) == 3.0
        assert registry.get("duckduckgo").call_budget(timeout) == pytest.approx(4.0)
        # five default mirrors at two seconds each, plus slack
        assert registry.get("searxng").call_budget(timeout) == pytest.approx(11.0)
