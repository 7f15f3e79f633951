"""Persistent search result cache with TTL support."""

from __future__ import annotations

import time
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from pydantic import ValidationError
from sqlalchemy import Engine, case, delete, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from ..core.logger import get_logger
from .base import ResultSet
from .database import CacheRecord, open_session, utcnow

logger = get_logger("search.cache")


def compute_hit_rate(total_hits: int, total_entries: int) -> float:
    """Lifetime hit-rate approximation reported by ``stats()``.

    This is ``hits / (hits + rows)``, not a hit/miss ratio. The formula is kept
    as-is so dashboards built on earlier numbers stay comparable.
    """
    if total_hits <= 0:
        return 0.0
    return round(total_hits / (total_hits + total_entries), 2)


class ResultCache:
    """Database-backed cache mapping normalized query keys to result sets.

    Features:
    - Per-entry TTL chosen by the caller
    - Hit counting on read (best effort)
    - Expired rows removed opportunistically on write, no background sweeper
    - Global enable switch
    """

    def __init__(
        self,
        engine: Engine,
        enabled: bool = True,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """Initialize the result cache.

        Args:
            engine: SQLAlchemy engine with the ``search_cache`` table
            enabled: When False every read misses and writes are dropped
            clock: Returns the current naive UTC time
        """
        self._engine = engine
        self._enabled = enabled
        self._clock = clock
        logger.info("ResultCache initialized (enabled=%s)", enabled)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def get(self, key: str) -> ResultSet | None:
        """Get a cached result set if an unexpired entry exists.

        Args:
            key: Normalized cache key

        Returns:
            Cached ResultSet or None if not found/expired
        """
        if not self._enabled:
            return None

        now = self._clock()
        with open_session(self._engine) as session:
            record = session.scalars(
                select(CacheRecord)
                .where(CacheRecord.normalized_query == key, CacheRecord.expires_at > now)
                .order_by(CacheRecord.created_at.desc())
                .limit(1)
            ).first()

        if record is None:
            return None

        self._touch(record.id, now)

        try:
            result_set = ResultSet.model_validate_json(record.results)
        except ValidationError as exc:
            logger.error("Failed to parse cached results for key %s: %s", key[:80], exc)
            return None

        logger.debug("Cache hit for key: %s", key[:80])
        return result_set

    def _touch(self, record_id: str, now: datetime) -> None:
        try:
            with open_session(self._engine) as session:
                session.execute(
                    update(CacheRecord)
                    .where(CacheRecord.id == record_id)
                    .values(hit_count=CacheRecord.hit_count + 1, last_accessed=now)
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Failed to update cache hit count for %s: %s", record_id, exc)

    def put(
        self,
        key: str,
        payload: ResultSet,
        ttl_ms: int,
        query: str | None = None,
    ) -> None:
        """Cache a result set and purge expired rows.

        Args:
            key: Normalized cache key
            payload: ResultSet to store
            ttl_ms: Time-to-live in milliseconds
            query: Original query text (defaults to the key's query part)
        """
        if not self._enabled:
            return

        now = self._clock()
        record = CacheRecord(
            id=f"cache_{int(time.time() * 1000)}_{uuid.uuid4().hex[:8]}",
            query=query if query is not None else key.split("|", 1)[0],
            normalized_query=key,
            provider=payload.provider,
            results=payload.model_dump_json(),
            created_at=now,
            expires_at=now + timedelta(milliseconds=ttl_ms),
            hit_count=0,
            last_accessed=now,
        )

        with open_session(self._engine) as session:
            session.add(record)
            session.commit()
        logger.debug("Cached %d results for key: %s", payload.count, key[:80])

        self._cleanup_expired()

    def _cleanup_expired(self) -> int:
        try:
            with open_session(self._engine) as session:
                result = session.execute(
                    delete(CacheRecord).where(CacheRecord.expires_at < self._clock())
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.warning("Failed to cleanup expired cache entries: %s", exc)
            return 0

        removed = result.rowcount or 0
        if removed:
            logger.info("Cleaned up %d expired cache entries", removed)
        return removed

    def clear(self) -> int:
        """Remove every cached row.

        Returns:
            Number of rows removed
        """
        with open_session(self._engine) as session:
            result = session.execute(delete(CacheRecord))
            session.commit()
        removed = result.rowcount or 0
        logger.info("Search cache cleared (%d entries)", removed)
        return removed

    def stats(self) -> dict[str, Any]:
        """Get cache statistics.

        Returns:
            Dictionary with enabled flag, active/total row counts, total hits and
            the lifetime hit-rate approximation
        """
        if not self._enabled:
            return {
                "enabled": False,
                "active_count": 0,
                "total_count": 0,
                "total_hits": 0,
                "hit_rate": 0.0,
            }

        now = self._clock()
        with open_session(self._engine) as session:
            total_count, total_hits, active_count = session.execute(
                select(
                    func.count(CacheRecord.id),
                    func.coalesce(func.sum(CacheRecord.hit_count), 0),
                    func.count(case((CacheRecord.expires_at > now, 1))),
                )
            ).one()

        return {
            "enabled": True,
            "active_count": int(active_count or 0),
            "total_count": int(total_count or 0),
            "total_hits": int(total_hits or 0),
            "hit_rate": compute_hit_rate(int(total_hits or 0), int(total_count or 0)),
        }
