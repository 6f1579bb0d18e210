from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Callable, TypeVar

from loguru import logger

from passportsheet.normalize.errors import RateLimited

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Bounded exponential backoff for rate-limited calls.

    max_retries:
        Retries after the first attempt (3 -> up to 4 calls).
    initial_delay:
        Seconds before the first retry; doubles each time (2s, 4s, 8s).
    """
    max_retries: int = 3
    initial_delay: float = 2.0

    def delay_for(self, attempt: int) -> float:
        return self.initial_delay * (2 ** attempt)


def call_with_retry(
    fn: Callable[[], T],
    policy: RetryPolicy = RetryPolicy(),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call ``fn``; on RateLimited wait and try again up to ``policy.max_retries`` times.
    Any other error propagates immediately.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except RateLimited as e:
            if attempt >= policy.max_retries:
                raise RateLimited(
                    "Maximum rate limit reached. Please wait a few minutes before trying again."
                ) from e
            delay = policy.delay_for(attempt)
            logger.warning("Rate limited (attempt {}), retrying in {:.1f}s", attempt + 1, delay)
            sleep(delay)
            attempt += 1
