"""Tests for the error hierarchy."""

import pytest

from forge_resilience.core import errors
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


class TestErrorContext:
    def test_to_dict_excludes_none(self):
        ctx = ErrorContext(operation="list_models", attempt=0)
        assert ctx.to_dict() == {"operation": "list_models", "attempt": 0}

    def test_metadata_merged(self):
        ctx = ErrorContext(url="https://api.local")
        ctx.metadata["provider"] = "ollama"
        assert ctx.to_dict() == {"url": "https://api.local", "provider": "ollama"}


class TestForgeError:
    def test_defaults(self):
        error = ForgeError("Something went wrong")
        assert error.category == ErrorCategory.INTERNAL
        assert error.retry_after is None
        assert str(error) == "Something went wrong"

    def test_cause_is_chained(self):
        cause = ConnectionError("DNS lookup failed")
        error = ForgeError("Network error", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_with_context_sets_known_fields_and_metadata(self):
        error = ForgeError("Fetch failed").with_context(url="https://api.local", provider="openai")
        assert error.context.url == "https://api.local"
        assert error.context.metadata == {"provider": "openai"}

    def test_to_dict(self):
        error = HTTPStatusError("timeout", status_code=504, cause=TimeoutError("slow"))
        error.with_context(operation="complete")
        d = error.to_dict()
        assert d["error_type"] == "HTTPStatusError"
        assert d["category"] == "SOURCE"
        assert "retry_after" not in d
        assert d["context"] == {"operation": "complete", "http_status": 504}
        assert d["cause"] == "TimeoutError: slow"

    def test_category_override(self):
        error = ForgeError("throttled", category=ErrorCategory.RATE_LIMIT)
        assert error.category == ErrorCategory.RATE_LIMIT


class TestSubclasses:
    def test_http_status_error_records_status(self):
        error = HTTPStatusError("Service unavailable", status_code=503)
        assert error.status_code == 503
        assert error.context.http_status == 503
        assert error.category == ErrorCategory.SOURCE

    def test_daily_limit_carries_retry_after(self):
        error = DailyRateLimitExceeded(retry_after=3600)
        assert error.category == ErrorCategory.RATE_LIMIT
        assert error.retry_after == 3600
        assert error.to_dict()["retry_after"] == 3600

    def test_retry_exhausted_message(self):
        assert str(RetryExhaustedError()) == "Retry failed"

    def test_invalid_config(self):
        error = InvalidConfigError("max_retries", -1, "must be >= 0")
        assert isinstance(error, ConfigError)
        assert error.category == ErrorCategory.CONFIG
        assert error.field_name == "max_retries"
        assert "max_retries=-1" in str(error)

    @pytest.mark.parametrize("name", ["TransientError", "RateLimitError", "is_retryable", "get_retry_after"])
    def test_status_code_only_surface(self, name):
        assert not hasattr(errors, name)
        assert name not in errors.__all__
