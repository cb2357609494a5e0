"""Environment-driven settings for the resilience layer.

The retry engine and the cache never read the environment themselves; callers
load ``ResilienceSettings`` once at startup, call ``apply_logging()``, and hand
the derived ``RetryConfiguration`` / ``RateLimits`` to the components they
build (``ResilientExecutor.from_settings`` does the latter in one step).

Features:
    - **ResilienceSettings:** retry, cache, rate-limit and logging knobs
    - **env_prefix:** ``FORGE_`` (e.g. ``FORGE_RETRY_MAX_RETRIES=5``)
    - **.env file support:** Automatic loading via pydantic-settings
    - **Extra ignore:** Unknown env vars don't cause startup failures

Examples:
    >>> from forge_resilience.core.settings import ResilienceSettings
    >>> settings = ResilienceSettings()
    >>> settings.retry_configuration().max_retries
    3

Complex values are read as JSON, e.g.
``FORGE_RETRYABLE_STATUS_CODES='[429, 503]'``.

Tags:
    settings, configuration, pydantic, environment, forge-resilience
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from forge_resilience.core.logging import configure_logging

if TYPE_CHECKING:
    from forge_resilience.execution.rate_limit import RateLimits
    from forge_resilience.execution.retry import RetryConfiguration


class ResilienceSettings(BaseSettings):
    """Settings shared by every consumer of the resilience layer.

    Fields
    ──────
    log_level                     : Structlog log level
    debug                         : Console logs instead of JSON
    retry_max_retries             : Re-invocations after the first attempt
    retry_delay_ms                : Base backoff delay in milliseconds
    retryable_status_codes        : Status codes worth retrying
    cache_default_ttl_seconds     : TTL for writes without an override
    cache_purge_interval_seconds  : Period of the background purge sweep
    rate_limit_per_minute/hour/day: Client-side request budgets (unset = off)
    """

    model_config = SettingsConfigDict(
        env_prefix="FORGE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    debug: bool = False

    # ── Retry ────────────────────────────────────────────────────
    retry_max_retries: int = Field(default=3, ge=0)
    retry_delay_ms: float = Field(default=1000.0, gt=0)
    retryable_status_codes: list[int] = Field(
        default_factory=lambda: [429, 500, 502, 503, 504],
    )

    # ── Cache ────────────────────────────────────────────────────
    cache_default_ttl_seconds: float = Field(default=300.0, ge=0)
    cache_purge_interval_seconds: float = Field(default=60.0, gt=0)

    # ── Rate limiting ────────────────────────────────────────────
    rate_limit_per_minute: int | None = Field(default=None, gt=0)
    rate_limit_per_hour: int | None = Field(default=None, gt=0)
    rate_limit_per_day: int | None = Field(default=None, gt=0)

    def apply_logging(self, service: str = "forge-resilience") -> None:
        """Configure structlog from ``log_level`` and ``debug``.

        ``debug`` switches to console rendering; otherwise logs are JSON.
        """
        configure_logging(level=self.log_level, json_format=not self.debug, service=service)

    def retry_configuration(self) -> RetryConfiguration:
        """Build the immutable retry configuration these settings describe."""
        from forge_resilience.execution.retry import RetryConfiguration

        return RetryConfiguration(
            max_retries=self.retry_max_retries,
            retry_delay_ms=self.retry_delay_ms,
            retryable_status_codes=frozenset(self.retryable_status_codes),
        )

    def rate_limits(self) -> RateLimits:
        """Build the rate limits these settings describe."""
        from forge_resilience.execution.rate_limit import RateLimits

        return RateLimits(
            requests_per_minute=self.rate_limit_per_minute,
            requests_per_hour=self.rate_limit_per_hour,
            requests_per_day=self.rate_limit_per_day,
        )
