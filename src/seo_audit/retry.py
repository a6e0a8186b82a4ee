"""Retry policy for network operations.

A RetryPolicy bundles the attempt budget, the delay between attempts and the
predicate deciding which failures are worth another attempt. Every network
operation in the engine receives one explicitly.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import httpx

from seo_audit.constants import (
    DEFAULT_MAX_RETRIES,
    EXPONENTIAL_BACKOFF_BASE,
    INITIAL_BACKOFF_DELAY_SECONDS,
    MAX_BACKOFF_DELAY_SECONDS,
)
from seo_audit.exceptions import FetchError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def exponential_backoff(
    initial: float = INITIAL_BACKOFF_DELAY_SECONDS,
    base: float = EXPONENTIAL_BACKOFF_BASE,
    maximum: float = MAX_BACKOFF_DELAY_SECONDS,
) -> Callable[[int], float]:
    """Delay of initial * base ** (attempt - 1), capped at maximum."""

    def delay(attempt: int) -> float:
        return min(initial * (base ** (attempt - 1)), maximum)

    return delay


def fixed_delay(seconds: float) -> Callable[[int], float]:
    """Same delay after every failed attempt."""

    def delay(attempt: int) -> float:
        return seconds

    return delay


def is_transient_error(exc: BaseException) -> bool:
    """Timeouts, connection resets and 5xx responses are worth retrying."""
    if isinstance(exc, FetchError):
        return exc.retryable
    return isinstance(
        exc,
        (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError),
    )


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a pluggable backoff and retryable-error predicate."""

    max_attempts: int = DEFAULT_MAX_RETRIES
    backoff: Callable[[int], float] = field(default_factory=exponential_backoff)
    is_retryable: Callable[[BaseException], bool] = is_transient_error

    @classmethod
    def single_attempt(cls) -> "RetryPolicy":
        return cls(max_attempts=1, backoff=fixed_delay(0))

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        description: str = "operation",
    ) -> T:
        """Run `operation(attempt)` until it succeeds or the policy gives up.

        Args:
            operation: Coroutine factory, called with the 1-based attempt number
            description: Label used in log messages

        Returns:
            The operation's result

        Raises:
            The last exception, when it is not retryable or attempts run out
        """
        attempt = 1
        while True:
            try:
                return await operation(attempt)
            except Exception as exc:
                if attempt >= self.max_attempts or not self.is_retryable(exc):
                    raise
                delay = self.backoff(attempt)
                logger.debug(
                    f"Retry attempt {attempt}/{self.max_attempts} for {description} "
                    f"after {delay:.2f}s: {exc}"
                )
                await asyncio.sleep(delay)
                attempt += 1
