# tests/test_retry.py
"""Tests for the retry policy."""

import httpx
import pytest

from seo_audit.exceptions import FetchError
from seo_audit.retry import (
    RetryPolicy,
    exponential_backoff,
    fixed_delay,
    is_transient_error,
)


class TestBackoff:

    def test_exponential_backoff(self):
        delay = exponential_backoff(initial=1.0, base=2, maximum=30.0)

        assert [delay(n) for n in (1, 2, 3, 4)] == [1.0, 2.0, 4.0, 8.0]
        assert delay(10) == 30.0

    def test_fixed_delay(self):
        delay = fixed_delay(0.5)
        assert delay(1) == delay(7) == 0.5


class TestIsTransientError:

    def test_transport_failures_are_transient(self):
        request = httpx.Request("GET", "https://example.com/")

        assert is_transient_error(httpx.ConnectTimeout("slow", request=request))
        assert is_transient_error(httpx.ConnectError("refused", request=request))

    def test_fetch_error_flag(self):
        assert is_transient_error(FetchError("u", "Server error 503", status_code=503, retryable=True))
        assert not is_transient_error(FetchError("u", "HTTP 404", status_code=404))

    def test_other_errors_are_not_transient(self):
        assert not is_transient_error(ValueError("bad"))


class TestRetryPolicy:
    """Tests for RetryPolicy.run."""

    @pytest.mark.asyncio
    async def test_succeeds_after_transient_failures(self):
        attempts = []

        async def operation(attempt):
            attempts.append(attempt)
            if attempt < 3:
                raise FetchError("u", "Server error 502", retryable=True)
            return "ok"

        policy = RetryPolicy(max_attempts=3, backoff=fixed_delay(0))

        assert await policy.run(operation) == "ok"
        assert attempts == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        attempts = []

        async def operation(attempt):
            attempts.append(attempt)
            raise FetchError("u", "Server error 500", retryable=True)

        policy = RetryPolicy(max_attempts=2, backoff=fixed_delay(0))

        with pytest.raises(FetchError):
            await policy.run(operation)
        assert attempts == [1, 2]

    @pytest.mark.asyncio
    async def test_terminal_errors_are_not_retried(self):
        attempts = []

        async def operation(attempt):
            attempts.append(attempt)
            raise FetchError("u", "HTTP 404", status_code=404)

        with pytest.raises(FetchError):
            await RetryPolicy(max_attempts=5, backoff=fixed_delay(0)).run(operation)
        assert attempts == [1]

    @pytest.mark.asyncio
    async def test_single_attempt(self):
        attempts = []

        async def operation(attempt):
            attempts.append(attempt)
            raise FetchError("u", "Server error 503", retryable=True)

        with pytest.raises(FetchError):
            await RetryPolicy.single_attempt().run(operation)
        assert attempts == [1]
