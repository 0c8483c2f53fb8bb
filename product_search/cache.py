"""Search response caching with Redis primary and in-memory fallback.

Payloads are the JSON-ready dicts produced by the search service. Keys come
from :func:`hash_query` and carry :data:`KEY_PREFIX`, so clearing only ever
touches this service's entries in a shared Redis.
"""
from __future__ import annotations

import copy
import hashlib
import json
import logging
import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import redis

from .config import settings

logger = logging.getLogger(__name__)

KEY_PREFIX = "product-search:"

Payload = Dict[str, Any]


class CacheBackend(Protocol):
    name: str

    def get(self, key: str) -> Optional[Payload]: ...

    def set(self, key: str, value: Payload, ttl: int) -> None: ...

    def clear(self) -> None: ...


def hash_query(*parts: object) -> str:
    """Stable cache key for a query and everything that shapes its result."""
    raw = json.dumps([str(part) for part in parts], ensure_ascii=False)
    return KEY_PREFIX + hashlib.sha1(raw.encode("utf-8")).hexdigest()


@dataclass
class RedisCache:
    client: redis.Redis
    name: str = "redis"

    def get(self, key: str) -> Optional[Payload]:
        try:
            raw = self.client.get(key)
        except redis.RedisError as exc:
            logger.warning("Redis read of %s failed: %s", key, exc)
            return None
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Dropping undecodable cache entry %s", key)
            return None
        return payload if isinstance(payload, dict) else None

    def set(self, key: str, value: Payload, ttl: int) -> None:
        try:
            self.client.set(key, json.dumps(value, ensure_ascii=False), ex=max(int(ttl), 1))
        except redis.RedisError as exc:
            logger.warning("Redis write of %s failed: %s", key, exc)

    def clear(self) -> None:
        try:
            stale = list(self.client.scan_iter(match=f"{KEY_PREFIX}*", count=500))
            if stale:
                self.client.delete(*stale)
        except redis.RedisError as exc:
            logger.warning("Redis clear failed: %s", exc)
            return
        logger.debug("Cleared %s cached responses from redis", len(stale))


class InMemoryCache:
    """Process-local LRU cache with per-entry expiry.

    ``max_entries`` bounds memory; the least recently read entry is evicted
    first. Payloads are copied in and out, like the JSON round trip of the
    Redis backend, so callers never share a dict with the cache. ``clock``
    is injectable so expiry can be driven in tests.
    """

    name = "memory"

    def __init__(
        self,
        max_entries: int = settings.cache_max_entries,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_entries = max(int(max_entries), 1)
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[float, Payload]]" = OrderedDict()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> Optional[Payload]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if expires_at <= self._clock():
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return copy.deepcopy(payload)

    def set(self, key: str, value: Payload, ttl: int) -> None:
        with self._lock:
            self._entries[key] = (self._clock() + ttl, copy.deepcopy(value))
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


_cache: CacheBackend | None = None


def get_cache() -> CacheBackend:
    """Return the process-wide cache, preferring Redis when it answers a ping."""

    global _cache
    if _cache is not None:
        return _cache
    client = redis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        socket_connect_timeout=settings.redis_timeout_seconds,
        socket_timeout=settings.redis_timeout_seconds,
    )
    try:
        client.ping()
    except redis.RedisError as exc:
        logger.warning("Redis unavailable at %s:%s (%s); using in-memory cache", settings.redis_host, settings.redis_port, exc)
        _cache = InMemoryCache()
    else:
        logger.info("Using Redis cache at %s:%s", settings.redis_host, settings.redis_port)
        _cache = RedisCache(client)
    return _cache
