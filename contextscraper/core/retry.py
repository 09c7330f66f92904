"""Session-level retry policy."""

import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from .errors import ScrapeError, handle_error, is_retryable_error

T = TypeVar('T')


@dataclass
class RetryPolicy:
    """
    Bounded retry with per-category backoff.

    Attributes:
        max_attempts: Total attempts, including the first one
        base_delay: Seconds; doubled per attempt for exponential strategies
        max_delay: Upper bound for a single wait
        is_retryable: Predicate deciding whether a classified error may retry

    Example:
        >>> policy = RetryPolicy(max_attempts=2, base_delay=1.0)
        >>> result = await policy.run(lambda attempt: scrape_once(attempt))
    """
    max_attempts: int = 2
    base_delay: float = 1.0
    max_delay: float = 30.0
    is_retryable: Callable[[ScrapeError], bool] = is_retryable_error

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.base_delay < 0:
            raise ValueError("base_delay must not be negative")

    def delay_for(self, error: ScrapeError, attempt: int) -> float:
        """Wait before the attempt that follows `attempt` (1-based)."""
        if error.retry_strategy == 'exponential':
            delay = self.base_delay * (2 ** (attempt - 1))
        else:
            delay = self.base_delay
        return min(delay, self.max_delay)

    async def run(
        self,
        operation: Callable[[int], Awaitable[T]],
        on_retry: Optional[Callable[[ScrapeError, int, float], None]] = None
    ) -> T:
        """
        Run operation(attempt) until it succeeds or the policy gives up.

        Raises:
            ScrapeError: The last classified error, with context['attempts']
                set to the number of attempts made
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await operation(attempt)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                error = handle_error(e, context={'attempt': attempt})
                error.context['attempts'] = attempt

                if not self.is_retryable(error):
                    print(f"  ✗ Not retrying ({error.category.value})")
                    raise error

                if attempt >= self.max_attempts:
                    print(f"  ✗ Giving up after {attempt} attempt(s)")
                    raise error

                delay = self.delay_for(error, attempt)
                print(f"  ⚠ Attempt {attempt}/{self.max_attempts} failed, retrying in {delay:.1f}s...")
                if on_retry:
                    on_retry(error, attempt, delay)
                await asyncio.sleep(delay)
