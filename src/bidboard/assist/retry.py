"""Retry and circuit breaking around the assistant's OpenAI calls.

Transient transport errors (``retry_on``) are retried with exponential
backoff. Every call that finally fails, transient or not, counts toward the
assistant's breaker; once it opens, audits, scans, reports and chat are all
refused until a call succeeds again.
"""
from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, Optional, TypeVar

from .config import RetryPolicy

T = TypeVar("T")


class CircuitBreakerOpen(RuntimeError):
    """Raised instead of calling the model while the breaker is open."""


@dataclass
class CircuitBreaker:
    """Consecutive failed AI calls for one :class:`~bidboard.assist.BidAssistant`.

    A ``threshold`` of zero or less disables the breaker.
    """

    threshold: int
    name: str = "AI assistant"
    consecutive_failures: int = 0

    @property
    def is_open(self) -> bool:
        return self.threshold > 0 and self.consecutive_failures >= self.threshold

    def check(self, description: str) -> None:
        if self.is_open:
            raise CircuitBreakerOpen(
                f"{self.name} unavailable for {description} after {self.consecutive_failures} failed calls"
            )

    def record_success(self) -> None:
        self.consecutive_failures = 0

    def record_failure(self, logger=None) -> None:
        if self.threshold <= 0:
            return
        self.consecutive_failures += 1
        if logger is not None and self.consecutive_failures == self.threshold:
            logger.error("%s disabled after %d consecutive failures", self.name, self.threshold)


def backoff_delay(policy: RetryPolicy, attempt: int) -> float:
    """Seconds to wait before retry number ``attempt`` (1-based)."""
    return max(0.0, policy.backoff_factor * (2 ** (attempt - 1)))


def execute_with_retry(
    action: Callable[[float], T],
    *,
    policy: RetryPolicy,
    description: str,
    logger,
    breaker: Optional[CircuitBreaker] = None,
    retry_on: tuple = (Exception,),
    sleeper: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``action(timeout)``, retrying only exceptions listed in ``retry_on``."""
    if breaker:
        breaker.check(description)

    attempt = 0
    while True:
        try:
            result = action(policy.timeout_seconds)
        except retry_on as exc:
            attempt += 1
            if attempt <= policy.retries:
                delay = backoff_delay(policy, attempt)
                logger.warning(
                    "Retrying %s (%d/%d) in %.2fs after error: %s",
                    description,
                    attempt,
                    policy.retries,
                    delay,
                    exc,
                )
                if delay:
                    sleeper(delay)
                continue
            if breaker:
                breaker.record_failure(logger)
            raise
        except Exception:
            if breaker:
                breaker.record_failure(logger)
            raise
        if breaker:
            breaker.record_success()
        return result


__all__ = ["CircuitBreaker", "CircuitBreakerOpen", "backoff_delay", "execute_with_retry"]
