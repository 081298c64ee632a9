"""
Bounded retry for a single Blink Debit request/response exchange.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, TypeVar

from .errors import (
    BlinkNotImplementedError,
    BlinkRateLimitExceededError,
    BlinkServerError,
    BlinkServiceError,
    BlinkTransportError,
    BlinkUnauthorisedError,
)

__all__ = [
    "MAX_RETRIES",
    "RetryPolicy",
    "is_retryable",
    "run_with_retry",
]

T = TypeVar("T")

logger = logging.getLogger(__name__)

# two retries after the original request, three attempts in total
MAX_RETRIES = 2


@dataclass(frozen=True)
class RetryPolicy:
    """
    Fixed-position backoff: ``backoff_seconds[n]`` is slept before retry ``n + 1``.

    The last entry is reused if ``max_attempts`` asks for more retries than
    there are delays.
    """

    max_attempts: int = MAX_RETRIES + 1
    backoff_seconds: Tuple[float, ...] = (1.0, 5.0)

    @classmethod
    def disabled(cls) -> "RetryPolicy":
        return cls(max_attempts=1, backoff_seconds=())

    @property
    def enabled(self) -> bool:
        return self.max_attempts > 1

    def delay_before_retry(self, retry_number: int) -> float:
        if not self.backoff_seconds:
            return 0.0
        index = min(retry_number, len(self.backoff_seconds)) - 1
        return self.backoff_seconds[max(index, 0)]


def is_retryable(error: BaseException) -> bool:
    """Transport failures, 429 and 5xx (except 501) are worth another attempt."""
    if isinstance(error, BlinkNotImplementedError):
        return False
    return isinstance(
        error, (BlinkTransportError, BlinkRateLimitExceededError, BlinkServerError)
    )


def run_with_retry(
    operation: Callable[[int], T],
    *,
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
    on_unauthorised: Optional[Callable[[], None]] = None,
    description: str = "request",
) -> T:
    """
    Run ``operation(attempt)`` until it succeeds or fails for good.

    A 401 on the very first attempt calls ``on_unauthorised`` once (normally a
    token refresh) and re-issues the request straight away; any later 401 is
    raised. Both kinds of retry advance the same attempt counter.
    """
    attempt = 0
    while True:
        try:
            return operation(attempt)
        except BlinkUnauthorisedError:
            if attempt > 0 or on_unauthorised is None:
                raise
            logger.warning(
                "Unauthorised response for %s, refreshing the access token and retrying",
                description,
            )
            on_unauthorised()
            attempt += 1
        except BlinkServiceError as exc:
            if not is_retryable(exc) or attempt + 1 >= policy.max_attempts:
                raise
            attempt += 1
            delay = policy.delay_before_retry(attempt)
            logger.warning(
                "Attempt %d/%d for %s failed: %s. Retrying in %.1fs",
                attempt,
                policy.max_attempts,
                description,
                exc,
                delay,
            )
            sleep(delay)
