"""Disk-backed response caching for provider calls."""

import json
import logging
import os
from datetime import datetime, timezone
from typing import Any

import diskcache

logger = logging.getLogger(__name__)

# Per-endpoint TTLs in seconds
QUOTE_TTL = 30
HISTORY_TTL = 60 * 60
FUNDAMENTALS_TTL = 6 * 60 * 60
TARGETS_TTL = 60 * 60
SEARCH_TTL = 60 * 60
NEWS_TTL = 10 * 60


def make_key(provider: str, params: dict[str, Any]) -> str:
    """
    Stable cache key: provider prefix plus params sorted by name.

    Credentials must not be part of ``params``.
    """
    ordered = {name: str(params[name]) for name in sorted(params)}
    return f"{provider}:{json.dumps(ordered, separators=(',', ':'))}"


class ResponseCache:
    """
    Cache of raw provider JSON responses.

    Entries are stored as ``{"value": ..., "stored_at": iso8601}``; expiry is
    handled by diskcache.
    """

    def __init__(self, cache_dir: str | None = None):
        if cache_dir is None:
            cache_dir = os.environ.get("CACHE_DIR", ".cache/responses")
        self.cache: diskcache.Cache = diskcache.Cache(cache_dir)
        self._default_ttl = int(os.environ.get("CACHE_TTL", "21600"))  # 6 hours

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Store a value.

        Args:
            key: Cache key (see ``make_key``)
            value: JSON-safe value
            ttl: Seconds until expiry (default: CACHE_TTL); 0 disables caching
        """
        expire = ttl if ttl is not None else self._default_ttl
        if expire <= 0:
            return
        entry = {
            "value": value,
            "stored_at": datetime.now(timezone.utc).isoformat(),
        }
        self.cache.set(key, entry, expire=expire)

    def get(self, key: str) -> Any | None:
        """Cached value, or None on miss/expiry."""
        entry = self.cache.get(key)
        if entry is None:
            return None
        logger.debug(f"Cache hit: {key}")
        return entry["value"]

    def get_entry(self, key: str) -> dict[str, Any] | None:
        """Full cache entry including ``stored_at``."""
        return self.cache.get(key)

    def exists(self, key: str) -> bool:
        """Check if key exists in cache."""
        return key in self.cache

    def clear(self) -> None:
        """Clear all cached data."""
        self.cache.clear()

    def close(self) -> None:
        self.cache.close()
