"""Retry with exponential backoff, classified by status code.

One shared implementation for every provider and API client: a failing
operation is re-invoked while its status code is retryable (or absent) and
attempts remain, waiting ``retry_delay_ms * 2**attempt`` between attempts.

Example:
    >>> from forge_resilience.execution.retry import RetryConfiguration, RetryPolicyEngine
    >>>
    >>> engine = RetryPolicyEngine(RetryConfiguration(max_retries=2, retry_delay_ms=100))
    >>> models = await engine.execute(lambda: client.list_models())

Decision per failed attempt::

    status = extract_status_code(error)
    status present and not retryable ──► raise error
    attempt == max_retries           ──► raise error
    otherwise                        ──► sleep(delay(attempt)), try again

Errors without a status code (timeouts, connection resets) are retried.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import time
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from forge_resilience.core.errors import InvalidConfigError, RetryExhaustedError
from forge_resilience.core.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

DEFAULT_RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


@dataclass(frozen=True)
class RetryConfiguration:
    """Immutable retry policy.

    Attributes:
        max_retries: Re-invocations allowed after the initial attempt
        retry_delay_ms: Base backoff delay in milliseconds
        retryable_status_codes: Status codes worth retrying; any other
            status aborts immediately
    """

    max_retries: int = 3
    retry_delay_ms: float = 1000.0
    retryable_status_codes: frozenset[int] = field(default=DEFAULT_RETRYABLE_STATUS_CODES)

    def __post_init__(self) -> None:
        """Validate configuration."""
        if isinstance(self.max_retries, bool) or not isinstance(self.max_retries, int) or self.max_retries < 0:
            raise InvalidConfigError("max_retries", self.max_retries, "must be a non-negative integer")
        if self.retry_delay_ms <= 0:
            raise InvalidConfigError("retry_delay_ms", self.retry_delay_ms, "must be > 0")
        if not isinstance(self.retryable_status_codes, frozenset):
            codes: Iterable[int] = self.retryable_status_codes
            object.__setattr__(self, "retryable_status_codes", frozenset(codes))

    @property
    def max_attempts(self) -> int:
        """Total invocations allowed, initial attempt included."""
        return self.max_retries + 1

    def delay_for(self, attempt: int) -> float:
        """Backoff in seconds after the zero-based ``attempt`` failed."""
        return self.retry_delay_ms * (2 ** attempt) / 1000.0

    def is_retryable_status(self, status_code: int) -> bool:
        return status_code in self.retryable_status_codes


def extract_status_code(error: BaseException) -> int | None:
    """Read a status code from an error of any shape.

    Looks at ``error.response.status``, then ``error.response.status_code``,
    then ``error.status_code``. The first integer found wins.
    """
    response = getattr(error, "response", None)
    candidates = (
        getattr(response, "status", None),
        getattr(response, "status_code", None),
        getattr(error, "status_code", None),
    )
    for value in candidates:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


class RetryPolicyEngine:
    """Executes an operation, retrying transient failures with backoff.

    The engine keeps no per-call state, so one instance can serve any number
    of concurrent ``execute`` calls.

    Example:
        >>> engine = RetryPolicyEngine(RetryConfiguration(max_retries=3))
        >>> result = await engine.execute(fetch_completion)
        >>> result = engine.execute_sync(read_license_file)
    """

    def __init__(
        self,
        config: RetryConfiguration | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        blocking_sleep: Callable[[float], Any] = time.sleep,
        on_retry: Callable[[int, Exception, float], None] | None = None,
    ):
        """Initialize the engine.

        Args:
            config: Retry policy (default: ``RetryConfiguration()``)
            sleep: Awaitable sleep used by ``execute``
            blocking_sleep: Sleep used by ``execute_sync``
            on_retry: Called with (attempt, error, delay_seconds) before each wait
        """
        self.config = config or RetryConfiguration()
        self._sleep = sleep
        self._blocking_sleep = blocking_sleep
        self._on_retry = on_retry

    def _backoff_after(self, attempt: int, error: Exception) -> float | None:
        """Return the wait before the next attempt, or None to give up."""
        status_code = extract_status_code(error)
        if status_code is not None and not self.config.is_retryable_status(status_code):
            logger.debug(
                "retry_aborted",
                attempt=attempt,
                status_code=status_code,
                error=repr(error),
            )
            return None

        if attempt >= self.config.max_retries:
            logger.warning(
                "retry_exhausted",
                attempts=attempt + 1,
                status_code=status_code,
                error=repr(error),
            )
            return None

        delay = self.config.delay_for(attempt)
        logger.info(
            "retry_scheduled",
            attempt=attempt,
            delay_ms=delay * 1000.0,
            status_code=status_code,
            error=repr(error),
        )
        if self._on_retry:
            self._on_retry(attempt, error, delay)
        return delay

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        """Run an async operation with retry logic.

        Args:
            operation: Zero-argument callable returning an awaitable

        Returns:
            Result of the first successful attempt

        Raises:
            The non-retryable error, or the last error once attempts run out
        """
        for attempt in range(self.config.max_attempts):
            try:
                return await operation()
            except Exception as e:
                delay = self._backoff_after(attempt, e)
                if delay is None:
                    raise
            await self._sleep(delay)

        raise RetryExhaustedError()  # pragma: no cover

    def execute_sync(self, operation: Callable[[], T]) -> T:
        """Run a blocking operation with the same retry policy as ``execute``."""
        for attempt in range(self.config.max_attempts):
            try:
                return operation()
            except Exception as e:
                delay = self._backoff_after(attempt, e)
                if delay is None:
                    raise
            self._blocking_sleep(delay)

        raise RetryExhaustedError()  # pragma: no cover


def with_retry(
    config: RetryConfiguration | None = None,
    on_retry: Callable[[int, Exception, float], None] | None = None,
    *,
    engine: RetryPolicyEngine | None = None,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Decorator factory adding retry logic to a function.

    Works for both plain and ``async def`` functions. Pass ``engine`` to reuse
    an existing engine (and its sleeps) instead of building one from
    ``config`` and ``on_retry``.

    Example:
        >>> @with_retry(RetryConfiguration(max_retries=3, retry_delay_ms=250))
        ... async def list_models():
        ...     return await client.get("/models")
    """
    if engine is None:
        engine = RetryPolicyEngine(config, on_retry=on_retry)

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
                return await engine.execute(lambda: func(*args, **kwargs))
            return async_wrapper

        @functools.wraps(func)
        def sync_wrapper(*args: Any, **kwargs: Any) -> T:
            return engine.execute_sync(lambda: func(*args, **kwargs))
        return sync_wrapper

    return decorator


__all__ = [
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "RetryConfiguration",
    "RetryPolicyEngine",
    "extract_status_code",
    "with_retry",
]
