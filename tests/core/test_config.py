"""Tests for service settings and logging configuration."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from web_search_service.core.config import LoggingConfig, ServiceSettings


class TestServiceSettings:
    """Tests for ServiceSettings."""

    def test_defaults(self) -> None:
        """Test default values match the documented deployment defaults."""
        settings = ServiceSettings(_env_file=None)

        assert settings.cache_enabled is True
        assert settings.cache_ttl_time_sensitive == 600_000
        assert settings.cache_ttl_general == 86_400_000
        assert settings.max_retries == 3
        assert settings.retry_delay == 1000
        assert settings.request_timeout == 10_000
        assert settings.searxng_timeout_seconds == 5.0
        assert settings.routing_mode == "intent"
        assert settings.port == 3002
        assert settings.brave_api_web_key is None
        assert settings.sequential_providers == ["duckduckgo", "searxng", "brave-web"]

    def test_reads_environment(self, monkeypatch) -> None:
        """Test upper-case environment variables populate the settings."""
        monkeypatch.setenv("BRAVE_API_WEB_KEY", "brave-secret")
        monkeypatch.setenv("CACHE_ENABLED", "false")
        monkeypatch.setenv("REQUEST_TIMEOUT", "2500")
        monkeypatch.setenv("SEARXNG_TIMEOUT", "1500")
        monkeypatch.setenv("ROUTING_MODE", "sequential")

        settings = ServiceSettings(_env_file=None)

        assert settings.brave_api_web_key == "brave-secret"
        assert settings.cache_enabled is False
        assert settings.request_timeout_seconds == 2.5
        assert settings.searxng_timeout_seconds == 1.5
        assert settings.routing_mode == "sequential"

    def test_comma_separated_lists(self, monkeypatch) -> None:
        """Test provider and instance lists accept CSV strings."""
        monkeypatch.setenv("SEQUENTIAL_PROVIDERS", "searxng, duckduckgo ,")
        monkeypatch.setenv("SEARXNG_INSTANCES", "https://a.example,https://b.example")

        settings = ServiceSettings(_env_file=None)

        assert settings.sequential_providers == ["searxng", "duckduckgo"]
        assert settings.searxng_instances == ["https://a.example", "https://b.example"]

    def test_json_list(self, monkeypatch) -> None:
        """Test provider list accepts a JSON array."""
        monkeypatch.setenv("SEQUENTIAL_PROVIDERS", '["brave-web", "duckduckgo"]')

        settings = ServiceSettings(_env_file=None)

        assert settings.sequential_providers == ["brave-web", "duckduckgo"]

    def test_invalid_routing_mode(self) -> None:
        """Test unknown routing modes are rejected."""
        with pytest.raises(ValidationError):
            ServiceSettings(_env_file=None, routing_mode="random")

    def test_invalid_port(self) -> None:
        """Test out-of-range ports are rejected."""
        with pytest.raises(ValidationError):
            ServiceSettings(_env_file=None, port=70000)

    def test_database_url_overrides_path(self) -> None:
        """Test an explicit database URL wins over db_path."""
        settings = ServiceSettings(_env_file=None, database_url="sqlite://")
        assert settings.resolved_database_url == "sqlite://"

    def test_db_path_creates_directory(self, tmp_path) -> None:
        """Test the SQLite directory is created on demand."""
        db_path = tmp_path / "nested" / "search.db"
        settings = ServiceSettings(_env_file=None, db_path=str(db_path))

        url = settings.resolved_database_url

        assert url == f"sqlite:///{db_path}"
        assert db_path.parent.is_dir()

    def test_logging_config(self) -> None:
        """Test logging settings are exposed as a LoggingConfig."""
        settings = ServiceSettings(_env_file=None, log_level="debug", log_file="logs/app.log")

        logging_config = settings.logging_config

        assert logging_config.level == "DEBUG"
        assert logging_config.log_file == "logs/app.log"

    def test_from_env_overrides(self) -> None:
        """Test keyword overrides take precedence."""
        settings = ServiceSettings.from_env(port=8080, host="127.0.0.1")
        assert settings.port == 8080
        assert settings.host == "127.0.0.1"


class TestLoggingConfig:
    """Tests for LoggingConfig."""

    def test_level_is_normalised(self) -> None:
        """Test lower-case levels are accepted."""
        assert LoggingConfig(level=" warning ").level == "WARNING"

    def test_invalid_level(self) -> None:
        """Test unknown levels are rejected."""
        with pytest.raises(ValidationError):
            LoggingConfig(level="LOUD")
