"""Cache key normalization and TTL policy."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

DEFAULT_TTL_TIME_SENSITIVE_MS = 600_000
DEFAULT_TTL_GENERAL_MS = 86_400_000

TIME_SENSITIVE_WORDS = ("latest", "recent", "today", "yesterday", "news", "breaking", "current", "now")

_TIME_SENSITIVE_RE = re.compile(r"\b(?:" + "|".join(TIME_SENSITIVE_WORDS) + r")\b", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_query_text(query: str) -> str:
    """Lowercase, trim and collapse internal whitespace."""
    return _WHITESPACE_RE.sub(" ", query.strip()).lower()


def canonical_serialize(options: Mapping[str, Any] | BaseModel | None) -> str:
    """Serialize options deterministically (sorted keys, ``None`` values dropped)."""
    if options is None:
        data: dict[str, Any] = {}
    elif isinstance(options, BaseModel):
        cache_fields = getattr(options, "cache_fields", None)
        data = cache_fields() if callable(cache_fields) else options.model_dump(exclude_none=True)
    else:
        data = {key: value for key, value in options.items() if value is not None}
    return json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)


def normalize_key(query: str, options: Mapping[str, Any] | BaseModel | None = None) -> str:
    """Build the cache key for a query and its options.

    Args:
        query: Free text query
        options: Search options as a model or mapping

    Returns:
        ``"<normalized query>|<canonical options>"``
    """
    return f"{normalize_query_text(query)}|{canonical_serialize(options)}"


def is_time_sensitive(query: str) -> bool:
    return bool(_TIME_SENSITIVE_RE.search(query))


def get_cache_ttl(
    query: str,
    time_sensitive_ttl_ms: int = DEFAULT_TTL_TIME_SENSITIVE_MS,
    general_ttl_ms: int = DEFAULT_TTL_GENERAL_MS,
) -> int:
    """Pick the cache TTL in milliseconds for a query.

    Queries mentioning recency (latest, today, news, ...) expire quickly;
    everything else is kept for a day by default.
    """
    if is_time_sensitive(query):
        return time_sensitive_ttl_ms
    return general_ttl_ms
