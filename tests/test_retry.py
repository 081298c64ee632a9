"""Retry executor and token-refresh gate tests."""

from __future__ import annotations

import pytest

from blink_debit.core.errors import (
    BlinkClientError,
    BlinkForbiddenError,
    BlinkNotImplementedError,
    BlinkRateLimitExceededError,
    BlinkRequestTimeoutError,
    BlinkServerError,
    BlinkTransportError,
    BlinkUnauthorisedError,
)
from blink_debit.core.retry import RetryPolicy, is_retryable, run_with_retry


def _failing(errors, result="ok"):
    attempts = []

    def operation(attempt: int):
        attempts.append(attempt)
        if errors:
            raise errors.pop(0)
        return result

    return operation, attempts


def test_succeeds_first_try_without_sleeping() -> None:
    sleeps = []
    result = run_with_retry(lambda attempt: "done", policy=RetryPolicy(), sleep=sleeps.append)
    assert result == "done"
    assert sleeps == []


def test_transport_failure_retried_with_fixed_backoff() -> None:
    sleeps = []
    operation, attempts = _failing([BlinkTransportError("reset"), BlinkTransportError("reset")])

    assert run_with_retry(operation, policy=RetryPolicy(), sleep=sleeps.append) == "ok"
    assert attempts == [0, 1, 2]
    assert sleeps == [1.0, 5.0]


@pytest.mark.parametrize(
    "error",
    [BlinkRateLimitExceededError(429), BlinkServerError(500), BlinkServerError(503)],
)
def test_gives_up_after_three_attempts(error) -> None:
    sleeps = []
    operation, attempts = _failing([error] * 5)

    with pytest.raises(type(error)):
        run_with_retry(operation, policy=RetryPolicy(), sleep=sleeps.append)
    assert attempts == [0, 1, 2]
    assert sleeps == [1.0, 5.0]


def test_rate_limit_is_retried() -> None:
    operation, attempts = _failing([BlinkRateLimitExceededError(429)])
    assert run_with_retry(operation, policy=RetryPolicy(), sleep=lambda _: None) == "ok"
    assert attempts == [0, 1]


@pytest.mark.parametrize(
    "error",
    [
        BlinkRequestTimeoutError(408),
        BlinkNotImplementedError(501),
        BlinkForbiddenError(403),
        BlinkClientError(422),
    ],
)
def test_non_retryable_errors_raise_immediately(error) -> None:
    sleeps = []
    operation, attempts = _failing([error])

    with pytest.raises(type(error)):
        run_with_retry(operation, policy=RetryPolicy(), sleep=sleeps.append)
    assert attempts == [0]
    assert sleeps == []


def test_disabled_policy_makes_single_attempt() -> None:
    operation, attempts = _failing([BlinkServerError(500)])

    with pytest.raises(BlinkServerError):
        run_with_retry(operation, policy=RetryPolicy.disabled(), sleep=lambda _: None)
    assert attempts == [0]


def test_unauthorised_on_first_attempt_refreshes_once_without_delay() -> None:
    sleeps = []
    refreshes = []
    operation, attempts = _failing([BlinkUnauthorisedError(401)])

    result = run_with_retry(
        operation,
        policy=RetryPolicy(),
        sleep=sleeps.append,
        on_unauthorised=lambda: refreshes.append(True),
    )
    assert result == "ok"
    assert attempts == [0, 1]
    assert refreshes == [True]
    assert sleeps == []


def test_second_unauthorised_is_fatal() -> None:
    refreshes = []
    operation, attempts = _failing([BlinkUnauthorisedError(401), BlinkUnauthorisedError(401)])

    with pytest.raises(BlinkUnauthorisedError):
        run_with_retry(
            operation,
            policy=RetryPolicy(),
            sleep=lambda _: None,
            on_unauthorised=lambda: refreshes.append(True),
        )
    assert attempts == [0, 1]
    assert len(refreshes) == 1


def test_unauthorised_after_retryable_failure_is_not_refreshed() -> None:
    refreshes = []
    operation, attempts = _failing([BlinkServerError(502), BlinkUnauthorisedError(401)])

    with pytest.raises(BlinkUnauthorisedError):
        run_with_retry(
            operation,
            policy=RetryPolicy(),
            sleep=lambda _: None,
            on_unauthorised=lambda: refreshes.append(True),
        )
    assert attempts == [0, 1]
    assert refreshes == []


def test_unauthorised_without_refresher_raises() -> None:
    operation, attempts = _failing([BlinkUnauthorisedError(401)])
    with pytest.raises(BlinkUnauthorisedError):
        run_with_retry(operation, policy=RetryPolicy(), sleep=lambda _: None)
    assert attempts == [0]


def test_refresh_and_retry_share_one_attempt_counter() -> None:
    sleeps = []
    operation, attempts = _failing(
        [BlinkUnauthorisedError(401), BlinkServerError(500), BlinkServerError(500)]
    )

    with pytest.raises(BlinkServerError):
        run_with_retry(
            operation,
            policy=RetryPolicy(),
            sleep=sleeps.append,
            on_unauthorised=lambda: None,
        )
    assert attempts == [0, 1, 2]
    assert sleeps == [5.0]


def test_delay_reuses_last_entry() -> None:
    policy = RetryPolicy(max_attempts=5)
    assert [policy.delay_before_retry(n) for n in (1, 2, 3, 4)] == [1.0, 5.0, 5.0, 5.0]
    assert RetryPolicy.disabled().delay_before_retry(1) == 0.0
    assert not RetryPolicy.disabled().enabled


def test_is_retryable_classification() -> None:
    assert is_retryable(BlinkTransportError("x"))
    assert is_retryable(BlinkServerError(500))
    assert is_retryable(BlinkRateLimitExceededError(429))
    assert not is_retryable(BlinkNotImplementedError(501))
    assert not is_retryable(BlinkRequestTimeoutError(408))
    assert not is_retryable(ValueError("x"))
