"""Web Search Service.

A multi-provider web search service with:
- DuckDuckGo scraping as the free primary tier
- Brave, NewsAPI and SearXNG providers with intent based routing
- Retry and fallback across providers
- A persistent TTL cache and search history
- MCP style HTTP actions served with FastAPI

Example:
    ```python
    import asyncio

    from web_search_service import ServiceContext

    context = ServiceContext.from_settings()
    outcome = asyncio.run(context.service.search("python asyncio tutorial"))
    print(outcome.provider, len(outcome.results))
    ```
"""

from importlib.metadata import PackageNotFoundError, version

try:  # pragma: no cover - best-effort during development
    __version__ = version("web-search-service")
except PackageNotFoundError:  # pragma: no cover
    __version__ = "0.0.0"

from .context import ServiceContext  # noqa: E402
from .core import ServiceSettings, get_logger, setup_logging  # noqa: E402

__all__ = [
    "__version__",
    "ServiceContext",
    "ServiceSettings",
    "get_logger",
    "setup_logging",
]
