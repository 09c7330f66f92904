"""Context scraper: LLM-ready Markdown from web pages, including content
hidden behind interactive UI."""

from .core.config import ScraperConfig
from .core.models import ScrapeMode, ScrapeResult
from .core.scraper import ScrapingSession, scrape

__version__ = "1.0.0"

__all__ = [
    'ScraperConfig',
    'ScrapeMode',
    'ScrapeResult',
    'ScrapingSession',
    'scrape'
]
