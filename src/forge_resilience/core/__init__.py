"""Forge Resilience Core — cache, purge timer, errors, logging, settings.

ARCHITECTURE
────────────
::

    TTLCache        ─ time-bounded key/value store (lazy expiry)
    CachePurger     ─ daemon-thread sweep with start/stop lifecycle
    ForgeError      ─ typed error hierarchy with structured context
    logging         ─ structlog configuration and helpers
    ResilienceSettings ─ FORGE_* environment settings
"""

from forge_resilience.core.cache import DEFAULT_TTL_SECONDS, CacheEntry, TTLCache, make_cache_key
from forge_resilience.core.errors import (
    ConfigError,
    DailyRateLimitExceeded,
    ErrorCategory,
    ErrorContext,
    ForgeError,
    HTTPStatusError,
    InvalidConfigError,
    RetryExhaustedError,
)
from forge_resilience.core.logging import (
    LogContext,
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    unbind_context,
)
from forge_resilience.core.purge import CachePurger
from forge_resilience.core.settings import ResilienceSettings

__all__ = [
    # cache
    "DEFAULT_TTL_SECONDS",
    "CacheEntry",
    "TTLCache",
    "make_cache_key",
    "CachePurger",
    # errors
    "ErrorCategory",
    "ErrorContext",
    "ForgeError",
    "HTTPStatusError",
    "DailyRateLimitExceeded",
    "RetryExhaustedError",
    "ConfigError",
    "InvalidConfigError",
    # logging
    "configure_logging",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
    # settings
    "ResilienceSettings",
]
