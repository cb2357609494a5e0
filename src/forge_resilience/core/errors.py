"""
Structured error types for the resilience layer.

Provides a small hierarchy of typed errors carrying the metadata that logging
and callers need: a category, an optional retry-after hint, structured
context and a chained cause. Retry decisions are made from status codes
alone (see ``execution.retry``), so errors that should be classified carry a
``status_code``.

Manifesto:
    - **Typed Error Hierarchy:** Different error types for different failures
    - **Rich Context:** Errors carry metadata for logging
    - **Error Chaining:** Preserve original exceptions while adding context

Architecture:
    ::

        ┌───────────────────────────────────────────────────────────┐
        │                        ForgeError                          │
        │        (category, retry_after, context, cause)             │
        ├───────────────────────────────────────────────────────────┤
        │                                                            │
        │  HTTPStatusError        DailyRateLimitExceeded  ConfigError │
        │  (status_code)          (RATE_LIMIT)            (CONFIG)    │
        │                                                    │       │
        │  RetryExhaustedError                       InvalidConfigError
        └───────────────────────────────────────────────────────────┘

Examples:
    Surfacing a status code the retry engine can classify:

    >>> error = HTTPStatusError("Service unavailable", status_code=503)
    >>> error.status_code
    503

    Adding context to an error:

    >>> error = HTTPStatusError("gone", status_code=410).with_context(url="https://api.local")
    >>> error.context.url
    'https://api.local'

Tags:
    error-handling, exception-hierarchy, error-context, forge-resilience
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Standard error categories for classification and log routing."""

    NETWORK = "NETWORK"           # Connection resets, timeouts
    SOURCE = "SOURCE"             # Upstream answered with an error status
    RATE_LIMIT = "RATE_LIMIT"     # Client or server side throttling
    CONFIG = "CONFIG"             # Invalid settings
    INTERNAL = "INTERNAL"         # Bugs, unexpected state
    UNKNOWN = "UNKNOWN"


@dataclass
class ErrorContext:
    """Structured metadata attached to an error.

    Attributes:
        operation: Name of the operation being executed
        key: Cache or rate-limit key involved
        attempt: Zero-based attempt index when the error occurred
        url: URL that was being accessed
        http_status: HTTP status code if applicable
        metadata: Additional key-value pairs
    """

    operation: str | None = None
    key: str | None = None
    attempt: int | None = None
    url: str | None = None
    http_status: int | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for logging."""
        result = {}
        for key in ["operation", "key", "attempt", "url", "http_status"]:
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        if self.metadata:
            result.update(self.metadata)
        return result


class ForgeError(Exception):
    """
    Base exception for all resilience-layer errors.

    Subclasses set ``default_category`` to give their domain a sensible
    default; it can be overridden per instance.

    Examples:
        >>> error = ForgeError("Something went wrong")
        >>> error.category
        <ErrorCategory.INTERNAL: 'INTERNAL'>

        >>> try:
        ...     raise ConnectionError("DNS lookup failed")
        ... except ConnectionError as e:
        ...     error = ForgeError("Network error", cause=e)
        >>> error.cause
        ConnectionError('DNS lookup failed')
    """

    default_category: ErrorCategory = ErrorCategory.INTERNAL

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory | None = None,
        retry_after: float | None = None,
        context: ErrorContext | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category or self.default_category
        self.retry_after = retry_after
        self.context = context or ErrorContext()
        self.cause = cause

        if cause is not None:
            self.__cause__ = cause

    def with_context(self, **kwargs: Any) -> ForgeError:
        """
        Add context to this error (fluent API).

        Usage:
            raise HTTPStatusError("Failed", status_code=503).with_context(
                operation="list_models",
                url="https://api.local/models"
            )
        """
        for key, value in kwargs.items():
            if hasattr(self.context, key) and key != "metadata":
                setattr(self.context, key, value)
            else:
                self.context.metadata[key] = value
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize for structured logging."""
        result: dict[str, Any] = {
            "error_type": type(self).__name__,
            "message": self.message,
            "category": self.category.value,
        }
        if self.retry_after is not None:
            result["retry_after"] = self.retry_after
        context = self.context.to_dict()
        if context:
            result["context"] = context
        if self.cause is not None:
            result["cause"] = f"{type(self.cause).__name__}: {self.cause}"
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, category={self.category.value})"


# =============================================================================
# Concrete errors
# =============================================================================


class HTTPStatusError(ForgeError):
    """Operation failed with a status code.

    The retry engine reads ``status_code`` to decide whether the failure is
    worth retrying; callers wrap transport responses in this error when their
    client library does not expose a status on its own exceptions.
    """

    default_category = ErrorCategory.SOURCE

    def __init__(self, message: str, *, status_code: int, **kwargs: Any):
        super().__init__(message, **kwargs)
        self.status_code = status_code
        self.context.http_status = status_code


class DailyRateLimitExceeded(ForgeError):
    """The per-day request budget is spent; waiting will not help today."""

    default_category = ErrorCategory.RATE_LIMIT

    def __init__(self, message: str = "Daily rate limit exceeded", **kwargs: Any):
        super().__init__(message, **kwargs)


class RetryExhaustedError(ForgeError):
    """Retry loop ended without capturing any error."""

    def __init__(self, message: str = "Retry failed", **kwargs: Any):
        super().__init__(message, **kwargs)


class ConfigError(ForgeError):
    """Invalid or missing configuration."""

    default_category = ErrorCategory.CONFIG


class InvalidConfigError(ConfigError):
    """A configuration value is out of range."""

    def __init__(self, field_name: str, value: Any, reason: str, **kwargs: Any):
        super().__init__(f"Invalid {field_name}={value!r}: {reason}", **kwargs)
        self.field_name = field_name
        self.value = value
        self.context.metadata["field"] = field_name


__all__ = [
    "ErrorCategory",
    "ErrorContext",
    "ForgeError",
    "HTTPStatusError",
    "DailyRateLimitExceeded",
    "RetryExhaustedError",
    "ConfigError",
    "InvalidConfigError",
]
