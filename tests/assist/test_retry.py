from __future__ import annotations

import logging

import pytest

from bidboard.assist.config import RetryPolicy
from bidboard.assist.retry import CircuitBreaker, CircuitBreakerOpen, backoff_delay, execute_with_retry

LOGGER = logging.getLogger(__name__)


def test_retries_then_succeeds() -> None:
    attempts = {"count": 0}
    delays = []

    def flaky(timeout: float) -> str:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise OSError("temporary failure")
        return f"ok after {timeout}"

    result = execute_with_retry(
        flaky,
        policy=RetryPolicy(timeout_seconds=2.0, retries=2, backoff_factor=0.5),
        description="test call",
        logger=LOGGER,
        sleeper=delays.append,
    )
    assert result == "ok after 2.0"
    assert delays == [0.5, 1.0]


def test_gives_up_and_trips_breaker() -> None:
    breaker = CircuitBreaker(threshold=2)

    def broken(timeout: float) -> None:
        raise OSError("down")

    policy = RetryPolicy(retries=0)
    for _ in range(2):
        with pytest.raises(OSError):
            execute_with_retry(broken, policy=policy, description="x", logger=LOGGER, breaker=breaker)
    assert breaker.is_open
    with pytest.raises(CircuitBreakerOpen):
        execute_with_retry(lambda t: "never", policy=policy, description="x", logger=LOGGER, breaker=breaker)


def test_non_retryable_errors_fail_immediately() -> None:
    attempts = {"count": 0}
    breaker = CircuitBreaker(threshold=5)

    def invalid(timeout: float) -> None:
        attempts["count"] += 1
        raise ValueError("bad request")

    with pytest.raises(ValueError):
        execute_with_retry(
            invalid,
            policy=RetryPolicy(retries=3),
            description="x",
            logger=LOGGER,
            breaker=breaker,
            retry_on=(OSError,),
            sleeper=lambda _: None,
        )
    assert attempts["count"] == 1
    assert breaker.consecutive_failures == 1


def test_success_resets_breaker() -> None:
    breaker = CircuitBreaker(threshold=3, consecutive_failures=2)
    execute_with_retry(lambda t: None, policy=RetryPolicy(), description="x", logger=LOGGER, breaker=breaker)
    assert breaker.consecutive_failures == 0


def test_open_breaker_names_the_refused_call(caplog) -> None:
    breaker = CircuitBreaker(threshold=1, name="openai assistant")

    def broken(timeout: float) -> None:
        raise OSError("down")

    with pytest.raises(OSError):
        execute_with_retry(broken, policy=RetryPolicy(retries=0), description="estimate audit", logger=LOGGER, breaker=breaker)
    assert "openai assistant disabled after 1 consecutive failures" in caplog.text
    with pytest.raises(CircuitBreakerOpen, match="openai assistant unavailable for site report"):
        breaker.check("site report")


def test_zero_threshold_never_opens() -> None:
    breaker = CircuitBreaker(threshold=0)
    for _ in range(5):
        breaker.record_failure()
    assert not breaker.is_open


def test_backoff_doubles() -> None:
    policy = RetryPolicy(backoff_factor=0.25)
    assert [backoff_delay(policy, attempt) for attempt in (1, 2, 3)] == [0.25, 0.5, 1.0]
