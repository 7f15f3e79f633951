"""In-process request counters for the web search service."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any


@dataclass
class ServiceMetrics:
    """Request, search and error counters owned by a service context.

    Attributes:
        total_searches: Searches that passed request validation
        request_count: Requests received by the MCP handlers
        error_count: Requests that ended with an error envelope
        total_response_time_ms: Sum of handler response times
        started_at: Monotonic start time used for uptime
    """

    total_searches: int = 0
    request_count: int = 0
    error_count: int = 0
    total_response_time_ms: int = 0
    started_at: float = field(default_factory=time.monotonic)

    def increment_requests(self) -> None:
        self.request_count += 1

    def increment_searches(self) -> None:
        self.total_searches += 1

    def increment_errors(self) -> None:
        self.error_count += 1

    def record_response_time(self, elapsed_ms: int) -> None:
        self.total_response_time_ms += elapsed_ms

    @property
    def uptime_seconds(self) -> int:
        return int(time.monotonic() - self.started_at)

    def snapshot(self) -> dict[str, Any]:
        """Get a point-in-time view of the counters.

        Returns:
            Dictionary with totals, average response time, error rate and uptime
        """
        avg_response_time = (
            self.total_response_time_ms // self.request_count if self.request_count > 0 else 0
        )
        error_rate = (
            round(self.error_count / self.request_count, 3) if self.request_count > 0 else 0.0
        )
        return {
            "total_searches": self.total_searches,
            "request_count": self.request_count,
            "error_count": self.error_count,
            "error_rate": error_rate,
            "avg_response_time_ms": avg_response_time,
            "uptime": self.uptime_seconds,
        }
