"""Forge Resilience Execution — retry, rate limiting, and their composition.

ARCHITECTURE
────────────
::

    ResilientExecutor (cache → rate limit → retry → store)
      ├── TTLCache            ─ forge_resilience.core.cache
      ├── RequestRateLimiter  ─ per-key minute / hour / day budgets
      └── RetryPolicyEngine   ─ exponential backoff by status code
"""

from forge_resilience.execution.rate_limit import RateLimits, RequestRateLimiter
from forge_resilience.execution.resilient import ResilientExecutor
from forge_resilience.execution.retry import (
    DEFAULT_RETRYABLE_STATUS_CODES,
    RetryConfiguration,
    RetryPolicyEngine,
    extract_status_code,
    with_retry,
)

__all__ = [
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "RetryConfiguration",
    "RetryPolicyEngine",
    "extract_status_code",
    "with_retry",
    "RateLimits",
    "RequestRateLimiter",
    "ResilientExecutor",
]
