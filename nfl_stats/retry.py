# nfl_stats/retry.py
"""Retry policy with exponential backoff and full jitter for Result-returning calls."""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .result import Err, Result

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_retryable(error: Any) -> bool:
    """Only transport failures flagged retryable (network, 5xx, 429) are retried."""
    return bool(getattr(error, "retryable", False))


@dataclass(frozen=True)
class RetryPolicy:
    """
    How many times to call, how long to wait, and which errors are worth it.

    Delay before attempt n+1 is uniform(0, min(max_delay, base_delay * 2**n)).
    """

    max_attempts: int = 3
    base_delay: float = 0.3
    max_delay: float = 5.0
    retryable: Callable[[Any], bool] = is_retryable
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)
    rand: Callable[[float, float], float] = field(default=random.uniform, repr=False)

    def delay_for(self, attempt: int) -> float:
        cap = min(self.max_delay, self.base_delay * (2 ** attempt))
        return self.rand(0.0, cap)

    def run(self, call: Callable[[], Result[T, Any]]) -> Result[T, Any]:
        """Call until Ok, a non-retryable Err, or attempts run out; return the last outcome."""
        attempts = max(1, self.max_attempts)
        outcome = call()
        for attempt in range(1, attempts):
            if not isinstance(outcome, Err) or not self.retryable(outcome.error):
                return outcome
            delay = self.delay_for(attempt - 1)
            logger.warning(
                "Attempt %d/%d failed: %s. Retrying in %.2fs...",
                attempt,
                attempts,
                outcome.error,
                delay,
            )
            self.sleep(delay)
            outcome = call()
        return outcome


NO_RETRY = RetryPolicy(max_attempts=1)
