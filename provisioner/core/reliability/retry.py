"""
Retry policy — bounded retries with exponential backoff.

Network-bound install steps (package downloads, fetch-and-execute
scripts) can fail transiently.  The reconciler itself never retries;
adapters wrap their commands in an explicit ``RetryPolicy`` so the
attempt count and delays are visible in configuration rather than
left to the underlying tool's defaults.
"""

from __future__ import annotations

import logging
import random
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryPolicy:
    """How many times to try, and how long to wait in between.

    Args:
        max_attempts: Total attempts including the first (>= 1).
        base_delay: Delay before the first retry, in seconds.
        max_delay: Upper bound for any single delay.
        jitter: Fraction of the delay added as random jitter.
    """

    max_attempts: int = 1
    base_delay: float = 1.0
    max_delay: float = 60.0
    jitter: float = 0.3
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

    @classmethod
    def from_settings(cls, retries: int, delay: float, max_delay: float) -> RetryPolicy:
        return cls(max_attempts=retries + 1, base_delay=delay, max_delay=max_delay)

    def delays(self) -> Iterator[float]:
        """Backoff delays between attempts (``max_attempts - 1`` values)."""
        for attempt in range(1, self.max_attempts):
            delay = min(self.base_delay * (2 ** (attempt - 1)), self.max_delay)
            yield delay + random.uniform(0, delay * self.jitter)

    def run(
        self,
        fn: Callable[[], T],
        should_retry: Callable[[T], bool],
        description: str = "",
    ) -> T:
        """Call ``fn`` until ``should_retry`` returns False or attempts run out.

        Returns the last result either way; the caller decides what a
        failed result means.
        """
        result = fn()
        for attempt, delay in enumerate(self.delays(), start=2):
            if not should_retry(result):
                break
            logger.info(
                "Retrying %s in %.1fs (attempt %d/%d)",
                description or "command",
                delay,
                attempt,
                self.max_attempts,
            )
            self.sleep(delay)
            result = fn()
        return result
