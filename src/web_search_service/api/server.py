"""FastAPI application exposing the MCP actions."""

from __future__ import annotations

from typing import Any

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .. import __version__
from ..context import ServiceContext
from ..core.logger import get_logger
from .handlers import McpHandlers
from .models import MCP_VERSION, SERVICE_NAME

logger = get_logger("api.server")


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except ValueError:
        return None


def create_app(context: ServiceContext) -> FastAPI:
    """Build the FastAPI app for a service context.

    Routes:
    - POST /web.search
    - POST /web.news
    - POST /web.scrape (answers 501)
    - GET /service.health
    - GET /service.capabilities
    """
    app = FastAPI(title="Web Search Service", version=__version__)
    handlers = McpHandlers(context)
    app.state.context = context

    @app.post("/web.search")
    async def web_search(request: Request) -> JSONResponse:
        status_code, body = await handlers.web_search(await _read_json(request))
        return JSONResponse(body, status_code=status_code)

    @app.post("/web.news")
    async def web_news(request: Request) -> JSONResponse:
        status_code, body = await handlers.web_news(await _read_json(request))
        return JSONResponse(body, status_code=status_code)

    @app.post("/web.scrape")
    async def web_scrape(request: Request) -> JSONResponse:
        status_code, body = await handlers.web_scrape(await _read_json(request))
        return JSONResponse(body, status_code=status_code)

    @app.get("/service.health")
    async def health() -> JSONResponse:
        status_code, body = handlers.health()
        return JSONResponse(body, status_code=status_code)

    @app.get("/service.capabilities")
    async def capabilities() -> dict[str, Any]:
        return handlers.capabilities()

    @app.exception_handler(404)
    async def not_found(request: Request, exc: Exception) -> JSONResponse:
        return JSONResponse(
            {
                "version": MCP_VERSION,
                "service": SERVICE_NAME,
                "status": "error",
                "error": {"code": "NOT_FOUND", "message": f"Endpoint {request.url.path} not found"},
            },
            status_code=404,
        )

    return app


def run_server(context: ServiceContext) -> None:
    """Serve the app with uvicorn until interrupted."""
    settings = context.settings
    app = create_app(context)
    logger.info("Web search service listening on http://%s:%s", settings.host, settings.port)
    try:
        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            log_config=None,
        )
    finally:
        context.close()
        logger.info("Web search service stopped")
