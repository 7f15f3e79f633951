"""MCP action handlers.

Handlers return ``(http_status, body)`` pairs so they can be driven by the
FastAPI app or called directly.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .. import __version__
from ..context import ServiceContext
from ..core.logger import get_logger
from ..search.base import (
    ErrorKind,
    FeatureNotImplementedError,
    InvalidRequestError,
    SearchError,
    SearchProviderType,
)
from .models import SERVICE_NAME, McpEnvelope, McpError, McpRequest

logger = get_logger("api.handlers")

SCRAPE_NOT_IMPLEMENTED = (
    "URL scraping is not yet implemented. This feature is planned for a future release."
)
INTERNAL_ERROR_MESSAGE = "An unexpected error occurred"

HTTP_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.INVALID_REQUEST: 400,
    ErrorKind.NOT_IMPLEMENTED: 501,
}

PROVIDER_FEATURES: dict[str, list[str]] = {
    SearchProviderType.DUCKDUCKGO.value: ["general-search", "instant-answers", "related-topics"],
    SearchProviderType.BRAVE_WEB.value: ["general-search"],
    SearchProviderType.BRAVE_RICH.value: ["prices", "weather", "calculations", "structured-data"],
    SearchProviderType.BRAVE_NEWS.value: ["news", "freshness-filter"],
    SearchProviderType.BRAVE_VIDEO.value: ["videos"],
    SearchProviderType.BRAVE_IMAGE.value: ["images"],
    SearchProviderType.NEWSAPI.value: ["news", "articles", "top-headlines"],
    SearchProviderType.SEARXNG.value: ["meta-search", "multi-instance"],
}

ActionResult = tuple[dict[str, Any], dict[str, Any]]


def http_status_for(kind: ErrorKind) -> int:
    """HTTP status code for an error kind."""
    return HTTP_STATUS_BY_KIND.get(kind, 500)


class McpHandlers:
    """Implements the MCP actions on top of a service context."""

    def __init__(self, context: ServiceContext) -> None:
        self.context = context

    async def web_search(self, body: Any) -> tuple[int, dict[str, Any]]:
        """Handle ``web.search``."""

        async def operation(request: McpRequest) -> ActionResult:
            payload = self._require_query(request)
            outcome = await self.context.service.search(
                payload["query"], payload, request.context
            )
            return (
                outcome.model_dump(by_alias=True, mode="json"),
                {"providerMs": outcome.provider_ms, "cacheMs": outcome.cache_ms},
            )

        return await self._run("web.search", body, operation)

    async def web_news(self, body: Any) -> tuple[int, dict[str, Any]]:
        """Handle ``web.news``."""

        async def operation(request: McpRequest) -> ActionResult:
            payload = self._require_query(request)
            outcome = await self.context.service.search_news_only(
                payload["query"], payload, request.context
            )
            return (
                outcome.model_dump(by_alias=True, mode="json"),
                {"providerMs": outcome.provider_ms, "cacheMs": outcome.cache_ms},
            )

        return await self._run("web.news", body, operation)

    async def web_scrape(self, body: Any) -> tuple[int, dict[str, Any]]:
        """Handle ``web.scrape``, which is not available yet."""

        async def operation(request: McpRequest) -> ActionResult:
            raise FeatureNotImplementedError(SCRAPE_NOT_IMPLEMENTED)

        return await self._run("web.scrape", body if isinstance(body, dict) else {}, operation)

    def health(self) -> tuple[int, dict[str, Any]]:
        """Service health with cache stats and counters."""
        providers = {
            name: "available" if configured else "unavailable"
            for name, configured in self.context.registry.availability().items()
        }
        try:
            cache_stats = self.context.cache.stats()
        except SQLAlchemyError as exc:
            logger.error("Health check failed: %s", exc)
            return 500, {
                "service": SERVICE_NAME,
                "version": __version__,
                "status": "degraded",
                "providers": providers,
                "error": str(exc),
            }

        metrics = self.context.metrics.snapshot()
        return 200, {
            "service": SERVICE_NAME,
            "version": __version__,
            "status": "up",
            "uptime": metrics["uptime"],
            "providers": providers,
            "cache": cache_stats,
            "metrics": metrics,
        }

    def capabilities(self) -> dict[str, Any]:
        """Static description of the actions and providers."""
        availability = self.context.registry.availability()
        return {
            "service": SERVICE_NAME,
            "version": __version__,
            "capabilities": {
                "actions": [
                    {
                        "name": "web.search",
                        "description": "Perform web search with automatic provider selection",
                        "inputSchema": {
                            "query": "string (required)",
                            "provider": "string (optional, default: auto)",
                            "maxResults": "number (optional, default: 10)",
                            "filters": "object (optional)",
                            "language": "string (optional, default: en)",
                            "sortBy": "string (optional)",
                            "fromDate": "string (optional)",
                            "toDate": "string (optional)",
                        },
                        "outputSchema": {
                            "results": "array",
                            "total": "number",
                            "query": "string",
                            "provider": "string",
                            "cached": "boolean",
                            "elapsedMs": "number",
                        },
                    },
                    {
                        "name": "web.news",
                        "description": "Search news articles specifically",
                        "inputSchema": {
                            "query": "string (required)",
                            "category": "string (optional)",
                            "country": "string (optional, default: us)",
                            "maxResults": "number (optional, default: 10)",
                            "sortBy": "string (optional, default: publishedAt)",
                            "fromDate": "string (optional)",
                            "toDate": "string (optional)",
                        },
                        "outputSchema": {
                            "articles": "array",
                            "total": "number",
                            "query": "string",
                            "cached": "boolean",
                            "elapsedMs": "number",
                        },
                    },
                    {
                        "name": "web.scrape",
                        "description": "Scrape content from URL",
                        "status": "planned",
                    },
                ],
                "providers": [
                    {
                        "name": name,
                        "status": "active" if configured else "inactive",
                        "features": PROVIDER_FEATURES.get(name, []),
                        "primary": name == SearchProviderType.DUCKDUCKGO.value,
                    }
                    for name, configured in availability.items()
                ],
                "routingMode": self.context.orchestrator.routing_mode.value,
                "features": [
                    "multi-provider",
                    "intent-routing",
                    "intelligent-caching",
                    "fallback-mechanism",
                    "single-flight" if self.context.service.single_flight else "concurrent-fetch",
                ],
            },
        }

    @staticmethod
    def _parse_request(body: Any) -> McpRequest:
        if not isinstance(body, dict):
            raise InvalidRequestError("Request body must be a JSON object")
        try:
            return McpRequest.model_validate(body)
        except ValidationError as exc:
            raise InvalidRequestError(f"Malformed request: {exc.errors()[0]['msg']}") from exc

    @staticmethod
    def _require_query(request: McpRequest) -> dict[str, Any]:
        payload = request.payload or {}
        if not payload.get("query"):
            raise InvalidRequestError("Missing required field: query")
        return payload

    async def _run(
        self,
        action: str,
        body: Any,
        operation: Callable[[McpRequest], Awaitable[ActionResult]],
    ) -> tuple[int, dict[str, Any]]:
        started = time.monotonic()
        metrics = self.context.metrics
        metrics.increment_requests()
        raw_id = body.get("requestId") if isinstance(body, dict) else None
        request_id = raw_id if isinstance(raw_id, (str, int)) else None

        try:
            request = self._parse_request(body)
            data, timings = await operation(request)
        except SearchError as exc:
            status_code = http_status_for(exc.kind)
            error = McpError(code=exc.kind.value, message=exc.message)
            if status_code >= 500:
                logger.error("%s failed: [%s] %s", action, exc.kind.value, exc.message)
            else:
                logger.info("%s rejected: [%s] %s", action, exc.kind.value, exc.message)
        except Exception as exc:
            status_code = 500
            error = McpError(code=ErrorKind.INTERNAL_ERROR.value, message=INTERNAL_ERROR_MESSAGE)
            logger.error("%s failed unexpectedly: %s", action, exc, exc_info=True)
        else:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            metrics.record_response_time(elapsed_ms)
            envelope = McpEnvelope(
                action=action,
                request_id=request_id,
                status="ok",
                data=data,
                metrics={"elapsedMs": elapsed_ms, **timings},
            )
            return 200, envelope.to_response()

        elapsed_ms = int((time.monotonic() - started) * 1000)
        metrics.increment_errors()
        metrics.record_response_time(elapsed_ms)
        envelope = McpEnvelope(
            action=action,
            request_id=request_id,
            status="error",
            error=error,
            metrics={"elapsedMs": elapsed_ms},
        )
        return status_code, envelope.to_response()
