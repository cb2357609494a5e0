"""Rate Limiting — client-side request budgets per key.

Manifesto:
Model providers enforce per-minute, per-hour and per-day quotas.
Exceeding them turns into 429 storms that the retry engine would then
hammer. ``RequestRateLimiter`` throttles outgoing calls *before* they
leave the process.

ARCHITECTURE
────────────
::

    RequestRateLimiter
      _history: dict[key, list[timestamp]]   (sliding windows)

      check_limit(key)   ─ wait for minute/hour room, raise on daily cap
      try_acquire(key)   ─ non-blocking admit/deny
      get_wait_time(key) ─ seconds until the next request is admitted

BEST PRACTICES
──────────────
- Use one key per provider (``"openai"``, ``"anthropic"``) so quotas
  don't bleed into each other.
- Put the limiter in front of ``RetryPolicyEngine``, not inside the
  retried operation, so retries don't consume extra budget.

Related modules:
    retry.py      — backoff on transient failures
    resilient.py  — cache + limiter + retry composition

Example::

    limiter = RequestRateLimiter(RateLimits(requests_per_minute=60))
    await limiter.check_limit("openai")
    response = await client.post(...)
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from forge_resilience.core.errors import DailyRateLimitExceeded, InvalidConfigError
from forge_resilience.core.logging import get_logger

logger = get_logger(__name__)

MINUTE = 60.0
HOUR = 3600.0
DAY = 86400.0


@dataclass(frozen=True)
class RateLimits:
    """Request budgets; ``None`` disables a window."""

    requests_per_minute: int | None = None
    requests_per_hour: int | None = None
    requests_per_day: int | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        for name in ("requests_per_minute", "requests_per_hour", "requests_per_day"):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise InvalidConfigError(name, value, "must be >= 1")

    @property
    def waitable_windows(self) -> list[tuple[int, float]]:
        """(limit, window_seconds) pairs a caller may wait out."""
        windows = []
        if self.requests_per_minute:
            windows.append((self.requests_per_minute, MINUTE))
        if self.requests_per_hour:
            windows.append((self.requests_per_hour, HOUR))
        return windows

    @property
    def history_seconds(self) -> float:
        """How long request timestamps must be remembered."""
        if self.requests_per_day:
            return DAY
        if self.requests_per_hour:
            return HOUR
        if self.requests_per_minute:
            return MINUTE
        return 0.0


class RequestRateLimiter:
    """Sliding-window limiter with per-minute, per-hour and per-day budgets.

    Thread-safe (internal Lock); waiting happens outside the lock.
    """

    def __init__(
        self,
        limits: RateLimits | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.limits = limits or RateLimits()
        self._clock = clock
        self._sleep = sleep
        self._history: dict[str, list[float]] = {}
        self._lock = threading.Lock()

    def _recent(self, key: str, now: float) -> list[float]:
        """Drop timestamps older than the longest window and return the rest.

        Keys with no remaining history are removed from the map.
        """
        cutoff = now - self.limits.history_seconds
        history = [ts for ts in self._history.get(key, []) if ts > cutoff]
        if history:
            self._history[key] = history
        else:
            self._history.pop(key, None)
        return history

    def _daily_retry_after(self, history: list[float], now: float) -> float | None:
        """Seconds until the daily window frees up, or None if not exhausted."""
        per_day = self.limits.requests_per_day
        if not per_day:
            return None
        in_day = [ts for ts in history if ts > now - DAY]
        if len(in_day) < per_day:
            return None
        return in_day[len(in_day) - per_day] + DAY - now

    def _wait_time(self, history: list[float], now: float) -> float:
        wait = 0.0
        for limit, window in self.limits.waitable_windows:
            in_window = [ts for ts in history if ts > now - window]
            if len(in_window) >= limit:
                oldest = in_window[len(in_window) - limit]
                wait = max(wait, oldest + window - now)
        return wait

    async def check_limit(self, key: str = "default") -> None:
        """Wait until ``key`` may send a request, then record it.

        Raises:
            DailyRateLimitExceeded: If the per-day budget is spent
        """
        if not self.limits.history_seconds:
            return

        while True:
            with self._lock:
                now = self._clock()
                history = self._recent(key, now)
                retry_after = self._daily_retry_after(history, now)
                if retry_after is not None:
                    logger.warning("daily_rate_limit_exceeded", key=key, retry_after=retry_after)
                    raise DailyRateLimitExceeded(retry_after=retry_after).with_context(key=key)

                wait = self._wait_time(history, now)
                if wait <= 0:
                    self._history.setdefault(key, history).append(now)
                    return

            logger.info("rate_limit_wait", key=key, wait_seconds=wait)
            await self._sleep(wait)

    def try_acquire(self, key: str = "default") -> bool:
        """Record a request for ``key`` if every window admits it right now."""
        if not self.limits.history_seconds:
            return True

        with self._lock:
            now = self._clock()
            history = self._recent(key, now)
            if self._daily_retry_after(history, now) is not None:
                return False
            if self._wait_time(history, now) > 0:
                return False
            self._history.setdefault(key, history).append(now)
            return True

    def get_wait_time(self, key: str = "default") -> float:
        """Seconds until ``key`` may send its next request (0 if now)."""
        if not self.limits.history_seconds:
            return 0.0

        with self._lock:
            now = self._clock()
            history = self._recent(key, now)
            daily = self._daily_retry_after(history, now)
            wait = self._wait_time(history, now)
            return max(wait, daily or 0.0)

    def reset(self, key: str = "default") -> None:
        """Forget the request history of one key."""
        with self._lock:
            self._history.pop(key, None)

    def reset_all(self) -> None:
        """Forget every key's request history."""
        with self._lock:
            self._history.clear()


__all__ = [
    "RateLimits",
    "RequestRateLimiter",
]
