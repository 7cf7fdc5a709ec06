# Where: dockertests/core/retry.py
# What: Bounded exponential back-off loop shared by every readiness check.
# Why: Daemon listeners bind asynchronously after the container starts.
import logging
import random
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Type, TypeVar

from dockertests.core.exceptions import HarnessError

logger = logging.getLogger("dockertests.retry")

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry budget.

    max_wait is the total deadline in seconds. A retry is never scheduled if
    its delay would cross the deadline, so the loop always terminates.
    """

    max_wait: float = 60.0
    initial_interval: float = 0.5
    multiplier: float = 1.5
    max_interval: float = 5.0
    randomization: float = 0.5
    max_attempts: Optional[int] = None

    def __post_init__(self):
        if self.max_wait <= 0:
            raise ValueError("max_wait must be positive")
        if self.initial_interval <= 0 or self.max_interval < self.initial_interval:
            raise ValueError("intervals must satisfy 0 < initial_interval <= max_interval")
        if self.multiplier < 1.0:
            raise ValueError("multiplier must be >= 1.0")
        if not 0.0 <= self.randomization < 1.0:
            raise ValueError("randomization must be in [0, 1)")
        if self.max_attempts is not None and self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")


class RetryBudgetExceededError(HarnessError):
    """Raised once the budget is spent; carries the last operation error."""

    def __init__(self, attempts: int, elapsed: float, last_error: BaseException):
        self.attempts = attempts
        self.elapsed = elapsed
        self.last_error = last_error
        super().__init__(
            f"Gave up after {attempts} attempts in {elapsed:.1f}s, last error: {last_error}"
        )


def next_delay(interval: float, randomization: float, rng: Callable[[], float]) -> float:
    if randomization == 0:
        return interval
    delta = randomization * interval
    return interval - delta + rng() * 2 * delta


def retry(
    operation: Callable[[], T],
    policy: RetryPolicy,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
    rng: Callable[[], float] = random.random,
) -> T:
    """
    Call ``operation`` until it returns or the budget runs out.

    Errors outside ``retry_on`` propagate immediately.

    Raises:
        RetryBudgetExceededError: attempts or deadline exhausted
    """
    start = clock()
    interval = policy.initial_interval
    attempts = 0

    while True:
        attempts += 1
        try:
            return operation()
        except retry_on as e:
            last_error = e

        elapsed = clock() - start
        if policy.max_attempts is not None and attempts >= policy.max_attempts:
            raise RetryBudgetExceededError(attempts, elapsed, last_error) from last_error

        delay = next_delay(interval, policy.randomization, rng)
        if elapsed + delay > policy.max_wait:
            raise RetryBudgetExceededError(attempts, elapsed, last_error) from last_error

        logger.debug(f"Attempt {attempts} failed ({last_error}), retrying in {delay:.2f}s")
        sleep(delay)
        interval = min(interval * policy.multiplier, policy.max_interval)
