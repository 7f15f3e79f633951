"""SQLAlchemy models for the result cache and the search history log."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import Boolean, Column, DateTime, Engine, Index, Integer, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Session
from sqlalchemy.pool import StaticPool

from ..core.logger import get_logger

logger = get_logger("search.database")


def utcnow() -> datetime:
    """Naive UTC timestamp, the representation stored in the tables."""
    return datetime.now(UTC).replace(tzinfo=None)


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for ORM models."""

    pass


class CacheRecord(Base):
    """Cached result set for one normalized query.

    Attributes:
        id: Unique row id (``cache_<ms>_<hex>``)
        query: Original query text
        normalized_query: Cache key
        provider: Provider that produced the payload
        results: Serialized ResultSet JSON
        created_at: Insert time
        expires_at: Expiry time
        hit_count: Number of reads served from this row
        last_accessed: Time of the last read
    """

    __tablename__ = "search_cache"

    id = Column(String(64), primary_key=True)
    query = Column(Text, nullable=False)
    normalized_query = Column(Text, nullable=False)
    provider = Column(String(64), nullable=False)
    results = Column(Text, nullable=False)
    created_at = Column(DateTime, default=utcnow)
    expires_at = Column(DateTime, nullable=False)
    hit_count = Column(Integer, default=0, nullable=False)
    last_accessed = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_search_cache_normalized_query", "normalized_query"),
        Index("idx_search_cache_expires_at", "expires_at"),
        Index("idx_search_cache_provider", "provider"),
    )


class SearchHistoryRecord(Base):
    """Append-only audit row written for every search."""

    __tablename__ = "search_history"

    id = Column(String(64), primary_key=True)
    query = Column(Text, nullable=False)
    provider = Column(String(64), nullable=False)
    results_count = Column(Integer)
    cached = Column(Boolean, default=False)
    elapsed_ms = Column(Integer)
    user_id = Column(String(255))
    session_id = Column(String(255))
    created_at = Column(DateTime, default=utcnow)

    __table_args__ = (
        Index("idx_search_history_user_id", "user_id"),
        Index("idx_search_history_created_at", "created_at"),
    )

    def to_dict(self) -> dict[str, Any]:
        """Convert record to dictionary."""
        return {
            "id": self.id,
            "query": self.query,
            "provider": self.provider,
            "results_count": self.results_count,
            "cached": self.cached,
            "elapsed_ms": self.elapsed_ms,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


def create_db_engine(db_url: str, echo: bool = False) -> Engine:
    """Create an engine and make sure both tables exist.

    Args:
        db_url: SQLAlchemy database URL
        echo: Enable SQL logging

    Raises:
        ValueError: If the database cannot be initialized
    """
    kwargs: dict[str, Any] = {"echo": echo}
    if db_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if ":memory:" in db_url or db_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool

    try:
        engine = create_engine(db_url, **kwargs)
        Base.metadata.create_all(engine)
        logger.info("Initialized search database: %s", db_url)
    except Exception as exc:
        logger.error("Failed to initialize search database: %s", exc, exc_info=True)
        raise ValueError(f"Failed to initialize search database: {exc}") from exc
    return engine


def open_session(engine: Engine) -> Session:
    return Session(engine, expire_on_commit=False)
