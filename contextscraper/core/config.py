"""Configuration management for the scraper."""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return int(value)
    except ValueError:
        print(f"⚠ Warning: {name}={value!r} is not an integer, using {default}")
        return default


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class ScraperConfig:
    """Configuration for a scraping session."""

    # Extraction
    mode: str = "normal"               # "normal" or "beast"
    query: Optional[str] = None        # Optional focus for AI steps

    # Browser
    headless: bool = True
    page_timeout: int = 10000          # ms, navigation
    network_idle_timeout: int = 10000  # ms, post-navigation settle

    # Retry (MAX_RETRY_COUNT / RETRY_DELAY env vars)
    max_retry_count: int = 2
    retry_delay: int = 1000            # ms

    # Beast mode guardrails
    max_snapshot_chars: int = 800000   # Larger DOM snapshots fall back to normal mode
    interaction_deadline: int = 120    # seconds for discovery + interaction
    settle_delay: int = 1000           # ms after each interaction
    max_interactions: int = 30

    # AI settings
    gemini_api_key: Optional[str] = None
    gemini_model: str = "gemini-2.5-flash"

    # Storage settings
    output_dir: str = "output"
    save_output: bool = True

    def __post_init__(self):
        """Initialize configuration from environment variables."""
        self.gemini_api_key = (
            self.gemini_api_key or
            os.getenv("GEMINI_API_KEY") or
            os.getenv("GOOGLE_GEMINI_KEY")
        )
        self.gemini_model = os.getenv("GEMINI_MODEL") or self.gemini_model
        self.max_retry_count = _env_int("MAX_RETRY_COUNT", self.max_retry_count)
        self.retry_delay = _env_int("RETRY_DELAY", self.retry_delay)
        self.page_timeout = _env_int("PAGE_TIMEOUT", self.page_timeout)
        self.headless = _env_bool("SCRAPER_HEADLESS", self.headless)
        self.mode = (self.mode or "normal").lower()

    @property
    def uses_ai(self) -> bool:
        """Beast mode and query-focused conversion both call Gemini."""
        return self.mode == "beast" or bool(self.query)

    def validate(self) -> bool:
        """Validate configuration."""
        valid = True
        if self.mode not in ("normal", "beast"):
            print(f"⚠ Warning: Unknown mode '{self.mode}' (expected normal or beast)")
            valid = False
        if self.max_retry_count < 1:
            print("⚠ Warning: MAX_RETRY_COUNT must be at least 1")
            valid = False
        if self.uses_ai and not self.gemini_api_key:
            print("⚠ Warning: AI features requested but no API key found")
            valid = False
        return valid
