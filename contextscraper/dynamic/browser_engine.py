"""Browser automation engine: one Chromium instance per scraping session."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from playwright.async_api import async_playwright


DEFAULT_LAUNCH_ARGS = [
    '--no-sandbox',
    '--disable-setuid-sandbox',
    '--disable-dev-shm-usage',
    '--disable-gpu',
    '--disable-background-timer-throttling',
    '--disable-backgrounding-occluded-windows',
    '--disable-renderer-backgrounding',
    '--disable-features=TranslateUI',
    '--disable-extensions',
    '--disable-default-apps',
    '--disable-sync',
    '--no-first-run',
    '--disable-background-networking',
]


@dataclass
class BrowserConfig:
    """Configuration for browser execution."""
    headless: bool = True
    timeout: int = 30000  # ms, default for page actions
    navigation_timeout: int = 10000  # ms
    network_idle_timeout: int = 10000  # ms
    viewport: Dict = field(default_factory=lambda: {'width': 1920, 'height': 1080})
    user_agent: str = 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'
    launch_args: List[str] = field(default_factory=lambda: list(DEFAULT_LAUNCH_ARGS))
    blocked_resource_types: List[str] = field(default_factory=lambda: ['media', 'font'])


class PlaywrightEngine:
    """
    Browser automation using Playwright.

    Owns the browser, context and page of exactly one session attempt. Use
    it as an async context manager so the browser is closed whatever happens:

        async with PlaywrightEngine(config) as engine:
            page = await engine.create_page()
            await engine.goto(url)
    """

    def __init__(self, config: BrowserConfig = None):
        self.config = config or BrowserConfig()
        self.playwright = None
        self.browser = None
        self.context = None
        self.page = None

    async def __aenter__(self) -> 'PlaywrightEngine':
        # Browser starts lazily in create_page()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.cleanup()
        return False

    async def initialize(self):
        """Start Playwright and launch Chromium. Raises on failure."""
        try:
            self.playwright = await async_playwright().start()

            self.browser = await self.playwright.chromium.launch(
                headless=self.config.headless,
                args=self.config.launch_args
            )

            self.context = await self.browser.new_context(
                viewport=self.config.viewport,
                user_agent=self.config.user_agent,
                ignore_https_errors=True
            )

            print("✓ Browser initialized")

        except Exception as e:
            print(f"✗ Browser initialization failed: {e}")
            await self.cleanup()
            raise

    async def create_page(self) -> Any:
        """Create the session's page, with media and fonts blocked."""
        if not self.context:
            await self.initialize()

        self.page = await self.context.new_page()
        self.page.set_default_timeout(self.config.timeout)

        if self.config.blocked_resource_types:
            await self.page.route('**/*', self._route_request)

        return self.page

    async def _route_request(self, route):
        if route.request.resource_type in self.config.blocked_resource_types:
            await route.abort()
        else:
            await route.continue_()

    async def goto(self, url: str, wait_until: str = "networkidle"):
        """
        Navigate to URL and let the page settle.

        Raises on navigation failure; the follow-up load-state waits are
        best effort since busy pages may never go network-idle.
        """
        try:
            await self.page.goto(url, wait_until=wait_until, timeout=self.config.navigation_timeout)
        except Exception as e:
            print(f"  ✗ Failed to load {url}: {e}")
            raise

        try:
            await self.page.wait_for_load_state('networkidle', timeout=self.config.network_idle_timeout)
            await self.page.wait_for_load_state('domcontentloaded')
        except Exception as e:
            print(f"  ⚠ Page did not settle: {e}")

        print(f"  ✓ Loaded: {url}")

    async def cleanup(self):
        """Close browser and cleanup."""
        try:
            if self.page:
                await self.page.close()
            if self.context:
                await self.context.close()
            if self.browser:
                await self.browser.close()
            if self.playwright:
                await self.playwright.stop()
            print("✓ Browser cleanup complete")
        except Exception as e:
            print(f"⚠ Cleanup warning: {e}")
        finally:
            self.page = None
            self.context = None
            self.browser = None
            self.playwright = None
