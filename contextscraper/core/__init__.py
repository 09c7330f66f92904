"""Core scraper components."""

from .config import ScraperConfig
from .errors import ErrorCategory, ScrapeError, classify_error, handle_error
from .retry import RetryPolicy

__all__ = [
    'ScraperConfig',
    'ErrorCategory',
    'ScrapeError',
    'classify_error',
    'handle_error',
    'RetryPolicy'
]
