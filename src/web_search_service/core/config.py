"""Configuration management for the web search service.

Settings are read from environment variables (and an optional ``.env`` file)
using pydantic-settings. Variable names match the historical deployment, e.g.
``CACHE_ENABLED``, ``BRAVE_API_WEB_KEY`` or ``REQUEST_TIMEOUT``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_DOTENV_LOADED = False


def _load_env_once() -> None:
    """Load environment variables from a .env file exactly once."""

    global _DOTENV_LOADED
    if not _DOTENV_LOADED:
        load_dotenv()
        _DOTENV_LOADED = True


class LoggingConfig(BaseModel):
    """Configuration for logging."""

    level: str = Field(default="INFO", description="Log level")
    format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    log_file: str | None = Field(default=None, description="Log file path")
    max_bytes: int = Field(default=10485760, description="Max log file size (10MB)")
    backup_count: int = Field(default=5, description="Number of backup files")

    @field_validator("level")
    @classmethod
    def normalise_level(cls, value: str) -> str:
        level = (value or "INFO").strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {value}")
        return level


class ServiceSettings(BaseSettings):
    """Main configuration for the web search service.

    All durations are in milliseconds. Providers take the request timeout in
    seconds through :attr:`request_timeout_seconds`.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Cache
    cache_enabled: bool = Field(default=True, description="Enable the result cache")
    cache_ttl_time_sensitive: int = Field(
        default=600_000,
        ge=0,
        description="TTL in ms for time-sensitive queries (latest, today, news, ...)",
    )
    cache_ttl_general: int = Field(
        default=86_400_000,
        ge=0,
        description="TTL in ms for all other queries",
    )

    # Retries and timeouts
    max_retries: int = Field(default=3, ge=1, description="Attempts per provider")
    retry_delay: int = Field(default=1000, ge=0, description="Base retry delay in ms")
    request_timeout: int = Field(
        default=10_000,
        gt=0,
        description="Per provider call timeout in ms",
    )

    # Routing
    routing_mode: Literal["intent", "sequential"] = Field(
        default="intent",
        description="intent: free tier, intent routing, web fallback; "
        "sequential: ordered provider list with retries",
    )
    sequential_providers: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["duckduckgo", "searxng", "brave-web"],
        description="Provider order used when routing_mode is sequential",
    )
    single_flight: bool = Field(
        default=True,
        description="Share one upstream fetch among concurrent identical cache misses",
    )

    # Provider credentials and endpoints
    brave_api_web_key: str | None = Field(default=None, description="Brave Search API key")
    newsapi_key: str | None = Field(default=None, description="NewsAPI key")
    newsapi_base_url: str = Field(default="https://newsapi.org/v2")
    duckduckgo_base_url: str = Field(default="https://api.duckduckgo.com")
    duckduckgo_html_url: str = Field(default="https://html.duckduckgo.com/html/")
    duckduckgo_lite_url: str = Field(default="https://lite.duckduckgo.com/lite/")
    searxng_timeout: int = Field(
        default=5000,
        gt=0,
        description="Per-mirror SearXNG timeout in ms",
    )
    searxng_instances: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: [
            "https://searx.be",
            "https://search.sapti.me",
            "https://searx.tiekoetter.com",
            "https://search.bus-hit.me",
            "https://searx.work",
        ],
    )

    # Storage
    db_path: str = Field(default="./data/web_search.db", description="SQLite file path")
    database_url: str | None = Field(
        default=None,
        description="SQLAlchemy URL, overrides db_path when set",
    )

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3002, ge=1, le=65535)

    # Logging
    log_level: str = Field(default="INFO")
    log_file: str | None = Field(default=None)

    @field_validator("sequential_providers", "searxng_instances", mode="before")
    @classmethod
    def _split_csv(cls, value: Any) -> Any:
        """Accept comma separated strings from the environment."""

        if isinstance(value, str):
            if value.strip().startswith("["):
                return json.loads(value)
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def request_timeout_seconds(self) -> float:
        return self.request_timeout / 1000

    @property
    def searxng_timeout_seconds(self) -> float:
        return self.searxng_timeout / 1000

    @property
    def resolved_database_url(self) -> str:
        """Return the SQLAlchemy URL, creating the SQLite directory if needed."""

        if self.database_url:
            return self.database_url
        path = Path(self.db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite:///{path}"

    @property
    def logging_config(self) -> LoggingConfig:
        return LoggingConfig(level=self.log_level, log_file=self.log_file)

    @classmethod
    def from_env(cls, **overrides: Any) -> ServiceSettings:
        """Build settings from the environment, loading ``.env`` once."""

        _load_env_once()
        return cls(**overrides)
