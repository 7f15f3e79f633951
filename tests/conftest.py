"""Test configuration hooks."""

from __future__ import annotations

import pytest

from web_search_service.core.config import ServiceSettings
from web_search_service.search.database import create_db_engine


# Configure anyio to only use asyncio backend (skip trio tests)
@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio to use only asyncio backend."""
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Keep developer credentials and .env files out of the tests."""
    for name in (
        "BRAVE_API_WEB_KEY",
        "NEWSAPI_KEY",
        "ROUTING_MODE",
        "CACHE_ENABLED",
        "DATABASE_URL",
        "DB_PATH",
        "SEQUENTIAL_PROVIDERS",
        "SEARXNG_INSTANCES",
        "SEARXNG_TIMEOUT",
        "REQUEST_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def engine():
    """In-memory SQLite engine with both tables created."""
    db_engine = create_db_engine("sqlite://")
    yield db_engine
    db_engine.dispose()


@pytest.fixture
def settings():
    """Settings pointing at an in-memory database with fast retries."""
    return ServiceSettings(
        _env_file=None,
        database_url="sqlite://",
        retry_delay=0,
        request_timeout=2000,
    )


@pytest.fixture
def sleep_calls():
    """Recording replacement for asyncio.sleep in backoff loops."""
    calls: list[float] = []

    async def fake_sleep(seconds: float) -> None:
        calls.append(seconds)

    fake_sleep.calls = calls
    return fake_sleep
