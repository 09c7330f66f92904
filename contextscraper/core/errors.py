"""Error taxonomy for scraping sessions.

Any exception raised inside a session is classified into one category by
looking at its type and message. The category decides whether the session
is retried and how long to wait before the next attempt.
"""

import asyncio
import random
import time
from collections import Counter
from enum import Enum
from typing import Dict, Optional


class ErrorCategory(str, Enum):
    NETWORK = 'network'
    BROWSER = 'browser'
    AI = 'ai'
    FILESYSTEM = 'filesystem'
    TIMEOUT = 'timeout'
    RATE_LIMIT = 'rate_limit'
    UNKNOWN = 'unknown'


RETRYABLE_CATEGORIES = {
    ErrorCategory.NETWORK,
    ErrorCategory.TIMEOUT,
    ErrorCategory.BROWSER,
    ErrorCategory.UNKNOWN,
}

USER_MESSAGES = {
    ErrorCategory.NETWORK: "Could not reach the page. Check the URL and your connection.",
    ErrorCategory.BROWSER: "The browser failed while loading or driving the page.",
    ErrorCategory.AI: "The content analysis service failed. Interactive discovery was skipped.",
    ErrorCategory.FILESYSTEM: "Could not read or write a local file.",
    ErrorCategory.TIMEOUT: "The page took too long to respond.",
    ErrorCategory.RATE_LIMIT: "Rate limit reached. Wait a bit before trying again.",
    ErrorCategory.UNKNOWN: "An unexpected error occurred.",
}

# Message fragments per category, checked in this order
_PATTERNS = [
    (ErrorCategory.RATE_LIMIT, ('rate limit', '429', 'quota', 'resource exhausted',
                                'resource_exhausted', 'too many requests')),
    (ErrorCategory.TIMEOUT, ('timeout', 'timed out', 'etimedout')),
    (ErrorCategory.NETWORK, ('net::', 'network', 'connection', 'dns', 'enotfound',
                             'econnrefused', 'econnreset', 'fetch')),
    (ErrorCategory.BROWSER, ('browser', 'target closed', 'navigation', 'page',
                             'playwright', 'frame was detached')),
    (ErrorCategory.FILESYSTEM, ('no such file', 'permission denied', 'enoent',
                                'is a directory')),
    (ErrorCategory.AI, ('gemini', 'generative', 'model', 'api key', 'api_key',
                        'safety', 'candidate')),
]

_error_stats: Counter = Counter()


class ScrapeError(Exception):
    """
    Classified session error.

    Attributes:
        category: ErrorCategory of the underlying failure
        should_retry: Whether the session may try again
        retry_strategy: 'exponential', 'linear' or 'none'
        user_message: Short explanation suitable for end users
        context: Where the error happened (phase, url, ...)
        error_id: Unique id for correlating log lines
        original: The exception that was classified
    """

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        should_retry: Optional[bool] = None,
        context: Optional[Dict] = None,
        original: Optional[BaseException] = None
    ):
        super().__init__(message)
        self.category = category
        self.should_retry = (
            category in RETRYABLE_CATEGORIES if should_retry is None else should_retry
        )
        self.retry_strategy = retry_strategy_for(category) if self.should_retry else 'none'
        self.user_message = USER_MESSAGES[category]
        self.context = context or {}
        self.original = original
        self.error_id = f"{category.value}_{int(time.time() * 1000)}_{random.randint(0, 0xFFFFFF):06x}"

    def to_dict(self) -> Dict:
        return {
            'message': str(self),
            'category': self.category.value,
            'should_retry': self.should_retry,
            'retry_strategy': self.retry_strategy,
            'user_message': self.user_message,
            'error_id': self.error_id,
            'context': self.context,
        }


class ScrapeCancelled(ScrapeError):
    """Raised when the caller's cancel signal is observed between phases."""

    def __init__(self, phase: str):
        super().__init__(
            f"Scrape cancelled before phase '{phase}'",
            category=ErrorCategory.UNKNOWN,
            should_retry=False,
            context={'phase': phase}
        )


def retry_strategy_for(category: ErrorCategory) -> str:
    if category in (ErrorCategory.NETWORK, ErrorCategory.RATE_LIMIT):
        return 'exponential'
    return 'linear'


def classify_error(error: BaseException) -> ErrorCategory:
    """Map an exception onto an ErrorCategory."""
    if isinstance(error, ScrapeError):
        return error.category

    status = getattr(error, 'status', None) or getattr(error, 'code', None)
    if status == 429:
        return ErrorCategory.RATE_LIMIT

    message = f"{type(error).__name__}: {error}".lower()

    rate_limit_patterns = _PATTERNS[0][1]
    if any(p in message for p in rate_limit_patterns):
        return ErrorCategory.RATE_LIMIT

    if isinstance(error, asyncio.TimeoutError) or type(error).__name__ == 'TimeoutError':
        return ErrorCategory.TIMEOUT

    if isinstance(error, ConnectionError):
        return ErrorCategory.NETWORK

    for category, patterns in _PATTERNS[1:]:
        if any(p in message for p in patterns):
            return category

    if isinstance(error, OSError):
        return ErrorCategory.FILESYSTEM

    return ErrorCategory.UNKNOWN


def is_retryable_error(error: BaseException) -> bool:
    """Whether the session may retry after this error. Rate limits never retry."""
    if isinstance(error, ScrapeError):
        return error.should_retry and error.category != ErrorCategory.RATE_LIMIT
    return classify_error(error) in RETRYABLE_CATEGORIES


def handle_error(
    error: BaseException,
    context: Optional[Dict] = None,
    retryable: Optional[bool] = None
) -> ScrapeError:
    """
    Classify an exception, record it and wrap it in a ScrapeError.

    Args:
        error: The exception to classify
        context: Extra information (phase, url, attempt)
        retryable: Override the category's default retry decision

    Returns:
        ScrapeError carrying the classification
    """
    if isinstance(error, ScrapeError):
        if context:
            error.context.update(context)
        if retryable is not None:
            error.should_retry = retryable
            error.retry_strategy = retry_strategy_for(error.category) if retryable else 'none'
        scrape_error = error
    else:
        scrape_error = ScrapeError(
            str(error) or type(error).__name__,
            category=classify_error(error),
            should_retry=retryable,
            context=context,
            original=error
        )

    _error_stats[scrape_error.category.value] += 1

    where = scrape_error.context.get('phase', 'session')
    print(f"  ✗ [{scrape_error.category.value.upper()}] {where}: {scrape_error}")
    print(f"    → {scrape_error.user_message} (retry: {scrape_error.retry_strategy})")

    return scrape_error


def error_stats() -> Dict[str, int]:
    """Counts of handled errors per category since start (or last reset)."""
    return dict(_error_stats)


def reset_error_stats():
    _error_stats.clear()
