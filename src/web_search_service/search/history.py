"""Append-only search history log."""

from __future__ import annotations

import time
import uuid

from sqlalchemy import Engine, func, select

from ..core.logger import get_logger
from .database import SearchHistoryRecord, open_session, utcnow

logger = get_logger("search.history")


class SearchHistoryLog:
    """Writes one history row per search, cache hits included.

    The service never reads these rows back; ``count()`` exists for the
    stats command and tests.
    """

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    def record(
        self,
        query: str,
        provider: str,
        results_count: int,
        cached: bool,
        elapsed_ms: int,
        user_id: str | None = None,
        session_id: str | None = None,
    ) -> SearchHistoryRecord:
        """Append a history entry.

        Args:
            query: Original query text
            provider: Provider that served the results (``newsapi`` for news)
            results_count: Number of results returned to the caller
            cached: Whether the results came from the cache
            elapsed_ms: Wall time of the whole search
            user_id: Caller supplied user id
            session_id: Caller supplied session id

        Returns:
            The stored record
        """
        record = SearchHistoryRecord(
            id=f"search_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}",
            query=query,
            provider=provider,
            results_count=results_count,
            cached=cached,
            elapsed_ms=elapsed_ms,
            user_id=user_id,
            session_id=session_id,
            created_at=utcnow(),
        )
        with open_session(self._engine) as session:
            session.add(record)
            session.commit()
        logger.debug("Recorded search history %s (provider=%s, cached=%s)", record.id, provider, cached)
        return record

    def count(self) -> int:
        with open_session(self._engine) as session:
            return int(session.scalar(select(func.count(SearchHistoryRecord.id))) or 0)

    def recent(self, limit: int = 20) -> list[SearchHistoryRecord]:
        """Return the newest entries first."""
        with open_session(self._engine) as session:
            return list(
                session.scalars(
                    select(SearchHistoryRecord)
                    .order_by(SearchHistoryRecord.created_at.desc())
                    .limit(limit)
                )
            )
