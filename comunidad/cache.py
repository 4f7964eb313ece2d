"""
Entity cache adapters.

Services talk to the cache only through the three-method
:class:`CacheAdapter` contract (``get`` / ``set`` / ``invalidate``).
Every adapter treats the cache as disposable: failures degrade to a miss
(reads) or a no-op (writes) and are never raised to the caller, so the
service layer behaves exactly like it would with a permanently cold cache.
"""
from __future__ import annotations

import copy
import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol

import redis.asyncio as redis

from comunidad.config import Settings

logger = logging.getLogger(__name__)


def entity_cache_key(entity_type: str, entity_id: str) -> str:
    return f"{entity_type}:{entity_id}"


class CacheAdapter(Protocol):
    async def get(self, key: str) -> Any | None: ...

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...

    async def invalidate(self, key: str) -> None: ...


def _hit_rate(hits: int, misses: int) -> dict:
    total = hits + misses
    return {
        "hits": hits,
        "misses": misses,
        "hit_rate": round(hits / total * 100, 1) if total > 0 else 0.0,
    }


# ---------------------------------------------------------------------------
# Redis
# ---------------------------------------------------------------------------

class RedisCache:
    """
    Cache adapter backed by Redis.

    All public methods are safe to call even when Redis is unavailable:
    reads return None and writes are skipped, so the application degrades
    to uncached reads without raising.
    """

    def __init__(self, url: str, prefix: str = "cache:", default_ttl: int = 3600) -> None:
        self._url = url
        self._prefix = prefix
        self._default_ttl = default_ttl
        self._redis: redis.Redis | None = None
        self._hits: int = 0
        self._misses: int = 0

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def connect(self) -> None:
        """Open the connection pool.  Called once at application startup."""
        self._redis = redis.from_url(
            self._url,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        )
        try:
            await self._redis.ping()
            logger.info("Redis connected: %s", self._url)
        except Exception as exc:  # pragma: no cover
            logger.warning("Redis ping failed, entity cache degraded: %s", exc)

    async def disconnect(self) -> None:
        if self._redis:
            await self._redis.aclose()
            self._redis = None

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    # ------------------------------------------------------------------
    # CacheAdapter
    # ------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        if not self._redis:
            self._misses += 1
            return None
        try:
            data = await self._redis.get(self._key(key))
        except Exception as exc:
            logger.debug("Cache GET error for key=%r: %s", key, exc)
            self._misses += 1
            return None
        if data is None:
            self._misses += 1
            return None
        try:
            value = json.loads(data)
        except (TypeError, ValueError) as exc:
            logger.debug("Cache GET undecodable value for key=%r: %s", key, exc)
            self._misses += 1
            return None
        self._hits += 1
        return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """
        Store *value* as JSON under *key*; Redis expires it after *ttl*
        seconds (the adapter default when omitted).
        """
        if not self._redis:
            return
        try:
            serialised = json.dumps(value, default=str)
            await self._redis.set(self._key(key), serialised, ex=ttl or self._default_ttl)
        except Exception as exc:
            logger.debug("Cache SET error for key=%r: %s", key, exc)

    async def invalidate(self, key: str) -> None:
        if not self._redis:
            return
        try:
            await self._redis.delete(self._key(key))
        except Exception as exc:
            logger.debug("Cache DELETE error for key=%r: %s", key, exc)

    @property
    def stats(self) -> dict:
        return {"backend": "redis", **_hit_rate(self._hits, self._misses)}


# ---------------------------------------------------------------------------
# Process-local
# ---------------------------------------------------------------------------

@dataclass
class CacheEntry:
    key: str
    value: Any
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class InMemoryCache:
    """
    Process-local TTL cache.

    Values are deep-copied on the way in and out so callers can never
    mutate a cached entity through a returned reference.  ``clock`` is
    injectable so tests can move time forward deterministically.

    Expired entries are dropped when read, and writes sweep the whole
    table at most once every ``sweep_interval`` seconds, so keys that are
    never read again do not accumulate.
    """

    def __init__(
        self,
        default_ttl: int = 3600,
        clock: Callable[[], float] = time.monotonic,
        sweep_interval: float = 60.0,
    ) -> None:
        self._default_ttl = default_ttl
        self._clock = clock
        self._sweep_interval = sweep_interval
        self._next_sweep = clock() + sweep_interval
        self._entries: dict[str, CacheEntry] = {}
        self._hits = 0
        self._misses = 0

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        self._entries.clear()

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None
        if entry.is_expired(self._clock()):
            # Expired entries are indistinguishable from absent ones.
            del self._entries[key]
            self._misses += 1
            return None
        self._hits += 1
        return copy.deepcopy(entry.value)

    def _sweep(self, now: float) -> None:
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("Swept %d expired cache entries", len(expired))

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        now = self._clock()
        if now >= self._next_sweep:
            self._sweep(now)
        expires_at = now + (ttl or self._default_ttl)
        self._entries[key] = CacheEntry(key, copy.deepcopy(value), expires_at)

    async def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def __contains__(self, key: str) -> bool:
        entry = self._entries.get(key)
        return entry is not None and not entry.is_expired(self._clock())

    def clear(self) -> None:
        self._entries.clear()

    @property
    def stats(self) -> dict:
        return {
            "backend": "memory",
            "keys": len(self._entries),
            **_hit_rate(self._hits, self._misses),
        }


class NullCache:
    """A cache that never holds anything: every read is a miss."""

    async def connect(self) -> None:
        return None

    async def disconnect(self) -> None:
        return None

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        return None

    async def invalidate(self, key: str) -> None:
        return None

    @property
    def stats(self) -> dict:
        return {"backend": "none", "hits": 0, "misses": 0, "hit_rate": 0.0}


def build_cache(settings: Settings) -> RedisCache | InMemoryCache | NullCache:
    """Return the cache adapter selected by ``CACHE_BACKEND``."""
    if settings.CACHE_BACKEND == "memory":
        return InMemoryCache(default_ttl=settings.CACHE_TTL_DEFAULT)
    if settings.CACHE_BACKEND == "none":
        return NullCache()
    return RedisCache(
        settings.REDIS_URL,
        prefix=settings.CACHE_KEY_PREFIX,
        default_ttl=settings.CACHE_TTL_DEFAULT,
    )
