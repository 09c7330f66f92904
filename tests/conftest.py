"""Pytest configuration and fixtures."""

import asyncio

import pytest
import pytest_asyncio
from playwright.async_api import async_playwright


_CONFIG_ENV_VARS = [
    "MAX_RETRY_COUNT",
    "RETRY_DELAY",
    "PAGE_TIMEOUT",
    "SCRAPER_HEADLESS",
    "GEMINI_MODEL",
]


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """Keep a developer's .env from changing config defaults under test."""
    for name in _CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def sleeps(monkeypatch):
    """Record asyncio.sleep delays instead of waiting them out."""
    recorded = []
    real_sleep = asyncio.sleep

    async def fast_sleep(delay, result=None):
        recorded.append(delay)
        await real_sleep(0)
        return result

    monkeypatch.setattr(asyncio, "sleep", fast_sleep)
    return recorded


class FakePage:
    """Just enough of a Playwright page for the session and reconciler."""

    def __init__(self, html="<html><body></body></html>", url="https://example.com/docs/page"):
        self.html = html
        self.url = url
        self.content_error = None
        self.content_calls = 0

    async def content(self):
        self.content_calls += 1
        if self.content_error:
            raise self.content_error
        return self.html


class FakeEngine:
    """Stands in for PlaywrightEngine; counts navigations and cleanups."""

    def __init__(self, page, goto_error=None):
        self.page = page
        self.goto_error = goto_error
        self.goto_calls = 0
        self.cleanups = 0
        self.browser_configs = []

    def __call__(self, browser_config):
        self.browser_configs.append(browser_config)
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.cleanups += 1
        return False

    async def create_page(self):
        return self.page

    async def goto(self, url, wait_until="networkidle"):
        self.goto_calls += 1
        if self.goto_error is not None:
            raise self.goto_error


@pytest.fixture
def fake_page():
    return FakePage(
        "<html><head><title>Docs</title><link rel='stylesheet' href='/a.css'></head>"
        "<body><h1>Getting started</h1>"
        "<p style='color:red'>Static paragraph text</p>"
        "<a href='/install'>Install guide</a>"
        "<script>track()</script></body></html>"
    )


@pytest_asyncio.fixture
async def live_page():
    """A real headless Chromium page. Skipped when no browser is installed."""
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=True)
        except Exception as e:
            pytest.skip(f"Chromium is not available: {e}")
        page = await browser.new_page(viewport={'width': 1280, 'height': 800})
        try:
            yield page
        finally:
            await browser.close()
