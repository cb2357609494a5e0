"""Cache, rate limit and retry composed into one call path.

``ResilientExecutor`` is the request-handling glue the provider clients
share::

    run(key, operation)
      │
      ├─ cache hit? ─────────────────────────────► cached value
      │
      ├─ rate_limiter.check_limit(rate_limit_key)
      ├─ engine.execute(operation)
      └─ cache.set(key, result)  (unless result is None)

Each collaborator is optional except the engine. When a ``CachePurger`` is
attached, the executor owns its lifecycle: ``start()``/``stop()`` or a
``with`` / ``async with`` block run the background sweep for the cache.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from forge_resilience.core.cache import TTLCache
from forge_resilience.core.logging import get_logger
from forge_resilience.core.purge import CachePurger
from forge_resilience.core.settings import ResilienceSettings
from forge_resilience.execution.rate_limit import RequestRateLimiter
from forge_resilience.execution.retry import RetryPolicyEngine

logger = get_logger(__name__)

T = TypeVar("T")

_MISS = object()


class ResilientExecutor:
    """Serves requests from cache, otherwise throttles and retries them.

    Example:
        >>> async with ResilientExecutor.from_settings() as executor:
        ...     key = make_cache_key("GET", "/api/models")
        ...     models = await executor.run(key, lambda: client.get("/api/models"))
    """

    def __init__(
        self,
        engine: RetryPolicyEngine,
        cache: TTLCache | None = None,
        rate_limiter: RequestRateLimiter | None = None,
        *,
        rate_limit_key: str = "default",
        purger: CachePurger | None = None,
    ):
        self.engine = engine
        self.cache = cache
        self.rate_limiter = rate_limiter
        self.rate_limit_key = rate_limit_key
        self.purger = purger

    @classmethod
    def from_settings(cls, settings: ResilienceSettings | None = None) -> ResilientExecutor:
        """Build an executor with engine, cache, limiter and purger from settings.

        The purger is not started; use ``start()`` or a ``with`` block.
        """
        settings = settings or ResilienceSettings()
        cache = TTLCache(default_ttl_seconds=settings.cache_default_ttl_seconds)
        return cls(
            RetryPolicyEngine(settings.retry_configuration()),
            cache,
            RequestRateLimiter(settings.rate_limits()),
            purger=CachePurger(cache, interval_seconds=settings.cache_purge_interval_seconds),
        )

    def start(self) -> None:
        """Start the cache purger, if one is attached."""
        if self.purger is not None:
            self.purger.start()

    def stop(self) -> None:
        """Stop the cache purger, if one is attached."""
        if self.purger is not None:
            self.purger.stop()

    def __enter__(self) -> ResilientExecutor:
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()

    async def __aenter__(self) -> ResilientExecutor:
        self.start()
        return self

    async def __aexit__(self, *args: Any) -> None:
        self.stop()

    async def run(
        self,
        key: str,
        operation: Callable[[], Awaitable[T]],
        *,
        ttl_seconds: float | None = None,
        use_cache: bool = True,
    ) -> T:
        """Return the cached value for ``key`` or execute ``operation``.

        Args:
            key: Request fingerprint (see ``make_cache_key``)
            operation: Zero-argument callable returning an awaitable
            ttl_seconds: Overrides the cache's default TTL for this result
            use_cache: False skips both the lookup and the store
        """
        caching = use_cache and self.cache is not None

        if caching:
            cached = self.cache.get(key, _MISS)
            if cached is not _MISS:
                logger.debug("cache_hit", key=key)
                return cached
            logger.debug("cache_miss", key=key)

        if self.rate_limiter is not None:
            await self.rate_limiter.check_limit(self.rate_limit_key)

        result = await self.engine.execute(operation)

        if caching and result is not None:
            self.cache.set(key, result, ttl_seconds)
        return result


__all__ = ["ResilientExecutor"]
