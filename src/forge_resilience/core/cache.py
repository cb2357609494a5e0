"""
In-memory TTL cache for short-lived copies of request results.

Manifesto:
    Calls to model providers and backend APIs are slow and rate limited.
    Many of them (model lists, license checks, extension metadata) return
    the same answer for minutes at a time. A small time-bounded cache lets
    request glue reuse a previous answer instead of calling again.

    - **Time-based only:** No LRU or size eviction, entries simply expire
    - **Lazy + swept cleanup:** Expired entries vanish on read or on purge
    - **Injectable clock:** Tests advance time instead of sleeping

Architecture:
    ::

        TTLCache
          _store: dict[str, CacheEntry]
          _clock: () -> float       (time.monotonic by default)

          get(key) ──► live?  ── yes ──► value
                         │
                         └─ no ──► drop entry, return default

        CachePurger (purge.py) calls purge_expired() on a timer.

Examples:
    >>> from forge_resilience.core.cache import TTLCache, make_cache_key
    >>> cache = TTLCache()
    >>> key = make_cache_key("GET", "/api/models", {"provider": "ollama"})
    >>> cache.set(key, ["llama3", "mistral"])
    >>> cache.get(key)
    ['llama3', 'mistral']

Guardrails:
    ❌ DON'T: Cache ``None`` and expect ``get`` to tell it apart from a miss
    ✅ DO: Pass a sentinel ``default`` when ``None`` is a legal value

    ❌ DON'T: Share one cache across processes (no cross-process visibility)
    ✅ DO: Start a CachePurger when keys are written but rarely read

Tags:
    cache, caching, ttl, in-memory, forge-resilience
"""

from __future__ import annotations

import json
import threading
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from forge_resilience.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS: float = 5 * 60


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and the clock reading after which it is stale."""

    value: T
    expires_at: float

    def is_expired(self, now: float) -> bool:
        """An entry stays visible up to and including ``expires_at``."""
        return now > self.expires_at


class TTLCache:
    """Time-bounded key/value store.

    All operations are synchronous and hold an internal lock, so a purge
    sweep running on another thread never observes a half-updated mapping.

    Attributes:
        default_ttl_seconds: TTL applied when ``set`` gets no override.

    Example:
        cache = TTLCache(default_ttl_seconds=60)
        cache.set("license:abc", {"valid": True}, ttl_seconds=600)
        license = cache.get("license:abc")
    """

    def __init__(
        self,
        *,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize an empty cache.

        Args:
            default_ttl_seconds: TTL for writes without an explicit override.
            clock: Returns the current time in seconds.
        """
        if default_ttl_seconds < 0:
            raise ValueError("default_ttl_seconds must be >= 0")
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._store: dict[str, CacheEntry[Any]] = {}
        self._lock = threading.RLock()

    def get(self, key: str, default: Any = None) -> Any:
        """Return the live value stored under ``key``, else ``default``.

        An expired entry found here is removed immediately.
        """
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return default

            if entry.is_expired(self._clock()):
                del self._store[key]
                logger.debug("cache_entry_expired", key=key)
                return default

            return entry.value

    def set(self, key: str, value: Any, ttl_seconds: float | None = None) -> None:
        """Store ``value`` under ``key``, replacing any previous entry."""
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        if ttl < 0:
            raise ValueError("ttl_seconds must be >= 0")

        with self._lock:
            self._store[key] = CacheEntry(value=value, expires_at=self._clock() + ttl)

    def delete(self, key: str) -> None:
        """Remove a key; no-op if it is not present."""
        with self._lock:
            self._store.pop(key, None)

    def exists(self, key: str) -> bool:
        """Check if a live entry exists for ``key``."""
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return False
            if entry.is_expired(self._clock()):
                del self._store[key]
                return False
            return True

    def clear(self) -> None:
        """Remove all entries."""
        with self._lock:
            self._store.clear()

    def purge_expired(self) -> int:
        """Remove every expired entry, read or not.

        Returns:
            Number of entries removed.
        """
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._store.items() if entry.is_expired(now)]
            for key in expired:
                del self._store[key]
            remaining = len(self._store)

        if expired:
            logger.debug("cache_purged", removed=len(expired), remaining=remaining)
        return len(expired)

    def size(self) -> int:
        """Number of stored entries, including expired ones not yet purged."""
        with self._lock:
            return len(self._store)

    def __len__(self) -> int:
        return self.size()


def make_cache_key(method: str, url: str, params: Mapping[str, Any] | None = None) -> str:
    """Build a deterministic fingerprint for a request.

    >>> make_cache_key("get", "/api/models", {"b": 2, "a": 1})
    'GET:/api/models:{"a": 1, "b": 2}'
    """
    key = f"{method.upper()}:{url}"
    if params:
        key += ":" + json.dumps(params, sort_keys=True, default=str)
    return key


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "TTLCache",
    "make_cache_key",
]
