"""MCP request and envelope models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import Field

from ..search.base import CamelModel

MCP_VERSION = "mcp.v1"
SERVICE_NAME = "web-search"


class McpRequest(CamelModel):
    """Incoming MCP request body."""

    request_id: str | int | None = None
    payload: dict[str, Any] | None = None
    context: dict[str, Any] | None = None


class McpError(CamelModel):
    code: str
    message: str


class McpEnvelope(CamelModel):
    """Response envelope shared by every MCP action."""

    version: str = MCP_VERSION
    service: str = SERVICE_NAME
    action: str
    request_id: str | int | None = None
    status: Literal["ok", "error"]
    data: dict[str, Any] | None = None
    error: McpError | None = None
    metrics: dict[str, Any] = Field(default_factory=dict)

    def to_response(self) -> dict[str, Any]:
        """Serialize with camelCase keys, keeping explicit nulls."""
        return self.model_dump(by_alias=True, mode="json")
