"""Background purge timer for TTLCache.

Write-only keys are never read again, so lazy expiry alone would let them
pile up. ``CachePurger`` owns one daemon thread that sweeps the cache on a
fixed interval for as long as it is started.

┌──────────────────────────────────────────────────────────────────────┐
│  CachePurger                                                          │
│                                                                       │
│   start()                                                             │
│      │                                                                │
│      ▼                                                                │
│   Daemon Thread (loop)                                                │
│      while not stop_event.wait(interval):                             │
│          tick()  ──► with sweep_lock: cache.purge_expired()           │
│                                                                       │
│   stop()                                                              │
│      stop_event.set(); thread.join(timeout)                           │
└──────────────────────────────────────────────────────────────────────┘

One thread drives every scheduled sweep, and ``tick()`` takes the sweep
lock, so a manual tick from a test never overlaps a scheduled one.
"""

from __future__ import annotations

import threading
from datetime import UTC, datetime
from typing import Any

from forge_resilience.core.cache import TTLCache
from forge_resilience.core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_PURGE_INTERVAL_SECONDS = 60.0


class CachePurger:
    """Periodically removes expired entries from a TTLCache.

    Example:
        >>> purger = CachePurger(cache, interval_seconds=60.0)
        >>> purger.start()
        >>> # ... later ...
        >>> purger.stop()

    Or scoped:
        >>> with CachePurger(cache):
        ...     serve_requests()
    """

    def __init__(self, cache: TTLCache, interval_seconds: float = DEFAULT_PURGE_INTERVAL_SECONDS) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        self._cache = cache
        self._interval = interval_seconds
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._sweep_lock = threading.Lock()
        self._sweep_count = 0
        self._removed_total = 0
        self._last_sweep: datetime | None = None
        self._started = False

    def start(self) -> None:
        """Start the sweep loop in a daemon thread."""
        if self._started:
            logger.warning("cache_purger_already_started")
            return

        # One event per run, so a thread that outlived stop() still exits.
        stop_event = threading.Event()
        self._stop_event = stop_event

        def _loop() -> None:
            logger.info("cache_purger_started", interval_seconds=self._interval)
            while not stop_event.wait(self._interval):
                try:
                    self.tick()
                except Exception:
                    logger.exception("cache_purge_failed")
            logger.info("cache_purger_stopped")

        self._thread = threading.Thread(target=_loop, daemon=True, name="forge-cache-purger")
        self._thread.start()
        self._started = True

    def stop(self, timeout: float = 5.0) -> None:
        """Stop the sweep loop, waiting up to ``timeout`` seconds for it to exit."""
        if not self._started:
            return

        self._stop_event.set()
        if self._thread:
            self._thread.join(timeout=timeout)
            if self._thread.is_alive():
                logger.warning("cache_purger_stop_timeout", timeout=timeout)

        self._thread = None
        self._started = False

    def tick(self) -> int:
        """Run one sweep now and return how many entries it removed."""
        with self._sweep_lock:
            removed = self._cache.purge_expired()
            self._sweep_count += 1
            self._removed_total += removed
            self._last_sweep = datetime.now(UTC)
        return removed

    def health(self) -> dict[str, Any]:
        """Return purger status for health endpoints."""
        return {
            "healthy": self.is_running,
            "sweep_count": self._sweep_count,
            "removed_total": self._removed_total,
            "last_sweep": self._last_sweep.isoformat() if self._last_sweep else None,
            "interval_seconds": self._interval,
            "cache_size": self._cache.size(),
        }

    @property
    def is_running(self) -> bool:
        return self._started and self._thread is not None and self._thread.is_alive()

    @property
    def sweep_count(self) -> int:
        return self._sweep_count

    @property
    def last_sweep(self) -> datetime | None:
        return self._last_sweep

    def __enter__(self) -> CachePurger:
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()


__all__ = ["CachePurger", "DEFAULT_PURGE_INTERVAL_SECONDS"]
