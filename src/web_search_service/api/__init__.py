"""HTTP surface for the MCP actions."""

from .handlers import McpHandlers, http_status_for
from .models import McpEnvelope, McpRequest
from .server import create_app, run_server

__all__ = [
    "McpEnvelope",
    "McpHandlers",
    "McpRequest",
    "create_app",
    "http_status_for",
    "run_server",
]
