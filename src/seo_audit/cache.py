"""
In-Memory Result Cache.

Memoizes audit results (and collaborator payloads) per normalized URL for a
bounded time window. Concurrent requests for the same key are coalesced so
at most one computation runs per key at a time.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

from seo_audit.constants import DEFAULT_CACHE_TTL_MINUTES
from seo_audit.utils.urls import normalize_url

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CheckKind(str, Enum):
    """What a cached value is the result of."""

    AUDIT = "audit"
    PAGE = "page"
    PERFORMANCE = "performance"


@dataclass(frozen=True)
class CacheKey:
    url: str
    kind: CheckKind = CheckKind.AUDIT

    @classmethod
    def for_url(cls, url: str, kind: CheckKind = CheckKind.AUDIT) -> "CacheKey":
        """Key on the normalized form of `url`."""
        return cls(url=normalize_url(url), kind=CheckKind(kind))


@dataclass
class CacheEntry:
    """A single cache entry with metadata."""
    key: CacheKey
    value: Any
    created_at: datetime
    expires_at: datetime
    hit_count: int = 0
    last_hit: Optional[datetime] = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if this entry has expired."""
        return (now or _utcnow()) >= self.expires_at


class ResultCache:
    """TTL cache with get-or-compute and in-flight coalescing.

    Not thread-safe; meant to be shared by coroutines on one event loop.
    """

    def __init__(
        self,
        ttl_minutes: float = DEFAULT_CACHE_TTL_MINUTES,
        clock: Callable[[], datetime] = _utcnow,
        enabled: bool = True,
    ):
        """
        Initialize the cache.

        Args:
            ttl_minutes: Time-to-live for entries in minutes
            clock: Returns the current time (injectable for tests)
            enabled: Whether caching is enabled
        """
        self.ttl_minutes = ttl_minutes
        self.enabled = enabled
        self._clock = clock
        self._entries: Dict[CacheKey, CacheEntry] = {}
        self._inflight: Dict[CacheKey, asyncio.Future] = {}
        self.hits = 0
        self.misses = 0
        self.coalesced = 0

    def _lookup(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING

        now = self._clock()
        if entry.is_expired(now):
            del self._entries[key]
            return _MISSING

        entry.hit_count += 1
        entry.last_hit = now
        return entry.value

    def get(self, key: CacheKey) -> Optional[Any]:
        """Cached value for `key`, or None when absent or expired."""
        if not self.enabled:
            return None

        value = self._lookup(key)
        if value is _MISSING:
            self.misses += 1
            logger.debug(f"Cache miss: {key.kind.value} {key.url}")
            return None

        self.hits += 1
        logger.debug(f"Cache hit: {key.kind.value} {key.url}")
        return value

    def put(self, key: CacheKey, value: Any) -> None:
        """Store `value`, replacing any previous entry wholesale."""
        if not self.enabled:
            return

        now = self._clock()
        self._entries[key] = CacheEntry(
            key=key,
            value=value,
            created_at=now,
            expires_at=now + timedelta(minutes=self.ttl_minutes),
        )
        logger.info(f"Cached {key.kind.value} result for {key.url} ({self.ttl_minutes} min)")

    def invalidate(self, key: CacheKey) -> bool:
        """Drop one entry. Returns True if something was removed."""
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def purge_expired(self) -> int:
        """Remove expired entries and return how many were removed."""
        now = self._clock()
        expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    async def get_or_compute(self, key: CacheKey, compute: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for `key`, computing and storing it on a miss.

        Callers arriving while a computation for the same key is running wait
        for that computation instead of starting another. Failures are not
        cached; every waiter sees the exception.

        Args:
            key: Cache key
            compute: Coroutine factory producing the value

        Returns:
            The cached or freshly computed value
        """
        if not self.enabled:
            return await compute()

        value = self.get(key)
        if value is not None:
            return value

        inflight = self._inflight.get(key)
        if inflight is not None:
            self.coalesced += 1
            logger.debug(f"Waiting for in-flight {key.kind.value} of {key.url}")
            return await asyncio.shield(inflight)

        future = asyncio.get_running_loop().create_future()
        self._inflight[key] = future
        try:
            value = await compute()
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as e:
            future.set_exception(e)
            # Mark retrieved so a future nobody waited on is not reported
            future.exception()
            raise
        else:
            self.put(key, value)
            future.set_result(value)
            return value
        finally:
            self._inflight.pop(key, None)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        if not self.enabled:
            return {"enabled": False}

        return {
            "enabled": True,
            "size": len(self._entries),
            "in_flight": len(self._inflight),
            "ttl_minutes": self.ttl_minutes,
            "hits": self.hits,
            "misses": self.misses,
            "coalesced": self.coalesced,
        }
