"""
Retry policy shared by the browser session and the navigation engine.

Centralizes attempt limits, exponential backoff with jitter, and the
retryable-error predicate so recovery loops do not each carry their own
sleep schedule.
"""

import asyncio
import logging
import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, TypeVar

from portfolio_scraper.constants import (
    DEFAULT_MAX_RETRIES,
    EXPONENTIAL_BACKOFF_BASE,
    INITIAL_BACKOFF_DELAY_SECONDS,
    MAX_BACKOFF_DELAY_SECONDS,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _always_retryable(error: BaseException) -> bool:
    return True


@dataclass
class RetryPolicy:
    """Bounded retry with exponential backoff.

    Attributes:
        max_attempts: Total attempts including the first one
        initial_delay: Delay before the second attempt (seconds)
        backoff_base: Multiplier applied per additional attempt
        max_delay: Cap on any single delay (seconds)
        jitter: Fractional jitter applied to each delay (0.25 = +/-25%)
        retryable: Predicate deciding whether an error is worth another attempt
    """
    max_attempts: int = DEFAULT_MAX_RETRIES
    initial_delay: float = INITIAL_BACKOFF_DELAY_SECONDS
    backoff_base: float = EXPONENTIAL_BACKOFF_BASE
    max_delay: float = MAX_BACKOFF_DELAY_SECONDS
    jitter: float = 0.25
    retryable: Callable[[BaseException], bool] = field(default=_always_retryable)

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

    def delay_for(self, attempt: int) -> float:
        """Calculate exponential backoff delay with jitter.

        Args:
            attempt: Number of attempts already made (0-indexed retry count)

        Returns:
            Delay in seconds before next attempt
        """
        delay = self.initial_delay * (self.backoff_base ** attempt)
        delay = min(delay, self.max_delay)
        if self.jitter:
            delay += delay * random.uniform(-self.jitter, self.jitter)
        return max(0.0, delay)

    def should_retry(self, attempt: int, error: BaseException) -> bool:
        """Whether another attempt is allowed after ``attempt`` failed (1-indexed)."""
        return attempt < self.max_attempts and self.retryable(error)

    async def sleep(self, attempt: int) -> None:
        """Sleep for the backoff delay of the given retry count."""
        delay = self.delay_for(attempt)
        if delay > 0:
            await asyncio.sleep(delay)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        description: Optional[str] = None,
    ) -> T:
        """Run an async operation, retrying retryable failures.

        Raises:
            The last error once attempts are exhausted or the error is not retryable
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation()
            except Exception as e:
                if not self.should_retry(attempt, e):
                    raise
                logger.debug(
                    f"{description or 'operation'} failed "
                    f"(attempt {attempt}/{self.max_attempts}): {e}"
                )
                await self.sleep(attempt - 1)
