"""Scraping session: the orchestration state machine.

One ScrapingSession turns one URL into Markdown. It owns a single browser
for the duration of each attempt and closes it whatever happens.

Modes:
    - normal: static extraction, no AI (sanitize + convert)
    - beast: AI element discovery + interaction loop before extraction

Phases:
    init → navigate → stabilize → iframe-inline
        → normal: extract
        → beast:  discover-elements → interact-loop → combine
    → convert → done
    (failed is reachable from every phase)

Error handling:
    - A failing candidate or overlay is logged and skipped
    - A non-retryable content model failure becomes the result's
      enhanced_error and the session carries on without interactions
    - Everything else escalates to the RetryPolicy wrapped around the
      whole attempt

Usage:
    config = ScraperConfig(mode="beast", query="pricing table")
    result = await ScrapingSession("https://example.com", config).run()
    if result.status != 'failed':
        print(result.markdown)
"""

import asyncio
import inspect
import time
from contextlib import asynccontextmanager
from dataclasses import replace
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..dynamic.browser_engine import BrowserConfig, PlaywrightEngine
from ..dynamic.iframes import inline_iframes
from ..dynamic.interaction_explorer import InteractionExplorer
from ..dynamic.overlays import dismiss_overlays, find_overlays, is_scrolling_blocked, release_overlays
from ..dynamic.page_scroller import scroll_until_stable
from ..extractors.content_reconciler import ContentReconciler
from ..extractors.element_discovery import ElementDiscovery
from ..extractors.gemini_client import GeminiClient
from ..extractors.markdown_converter import MarkdownImprover, convert_to_markdown, fix_and_format_html
from ..utils.html_sanitizer import snapshot_for_analysis
from .config import ScraperConfig
from .errors import ErrorCategory, ScrapeCancelled, ScrapeError, handle_error, is_retryable_error
from .models import CandidateElement, PhaseRecord, RevealedContentItem, ScrapeMode, ScrapeResult
from .retry import RetryPolicy


class Phase(str, Enum):
    INIT = 'init'
    NAVIGATE = 'navigate'
    STABILIZE = 'stabilize'
    IFRAMES = 'iframe-inline'
    EXTRACT = 'extract'
    DISCOVER = 'discover-elements'
    INTERACT = 'interact-loop'
    COMBINE = 'combine'
    CONVERT = 'convert'
    DONE = 'done'
    FAILED = 'failed'


ProgressCallback = Callable[[Dict[str, Any]], Any]


class ScrapingSession:
    """
    One scrape request.

    Attributes:
        url: Target page
        mode: ScrapeMode.NORMAL or ScrapeMode.BEAST
        query: Optional user focus for the AI steps
        retry_count: Retries used so far (attempts - 1)
        phase: Current Phase
        phase_log: PhaseRecord per phase run, across attempts
        enhanced_error: Caveat for a partial result, if any

    The browser engine, element discovery and markdown improver can be
    injected; by default they are built from the config.
    """

    def __init__(
        self,
        url: str,
        config: Optional[ScraperConfig] = None,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_event: Optional[asyncio.Event] = None,
        engine_factory: Optional[Callable[[BrowserConfig], PlaywrightEngine]] = None,
        discovery: Optional[ElementDiscovery] = None,
        improver: Optional[MarkdownImprover] = None
    ):
        self.url = url
        self.config = config or ScraperConfig()
        self.mode = ScrapeMode(self.config.mode)
        self.query = self.config.query
        self.progress_callback = progress_callback
        self.cancel_event = cancel_event
        self.engine_factory = engine_factory or PlaywrightEngine

        self._client: Optional[GeminiClient] = None
        self._discovery = discovery
        self._improver = improver
        self.reconciler = ContentReconciler()

        self.retry_count = 0
        self.phase = Phase.INIT
        self.phase_log: List[PhaseRecord] = []
        self.enhanced_error: Optional[ScrapeError] = None
        self.revealed: List[RevealedContentItem] = []
        self.base_url = url

    # ========================================
    # Collaborators
    # ========================================

    def _gemini(self) -> GeminiClient:
        if self._client is None:
            self._client = GeminiClient(
                model_name=self.config.gemini_model,
                api_key=self.config.gemini_api_key
            )
        return self._client

    @property
    def discovery(self) -> ElementDiscovery:
        if self._discovery is None:
            self._discovery = ElementDiscovery(self._gemini())
        return self._discovery

    @property
    def improver(self) -> MarkdownImprover:
        if self._improver is None:
            self._improver = MarkdownImprover(self._gemini())
        return self._improver

    def browser_config(self) -> BrowserConfig:
        return BrowserConfig(
            headless=self.config.headless,
            navigation_timeout=self.config.page_timeout,
            network_idle_timeout=self.config.network_idle_timeout
        )

    # ========================================
    # Progress events
    # ========================================

    def emit(self, event_type: str, message: str = '', **extra):
        """Send a progress event. The sink can never break the session."""
        if not self.progress_callback:
            return

        event = {'type': event_type, 'message': message, 'timestamp': time.time(), **extra}
        try:
            result = self.progress_callback(event)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                task.add_done_callback(self._sink_done)
        except Exception as e:
            print(f"  ⚠ Progress callback failed: {e}")

    @staticmethod
    def _sink_done(task: asyncio.Future):
        if not task.cancelled() and task.exception() is not None:
            print(f"  ⚠ Progress callback failed: {task.exception()}")

    @asynccontextmanager
    async def _phase(self, phase: Phase):
        """Run one phase: cancellation check, timing, events."""
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise ScrapeCancelled(phase.value)

        self.phase = phase
        record = PhaseRecord(name=phase.value, started_at=time.time())
        self.phase_log.append(record)
        self.emit('phase_start', f"Starting {phase.value}", phase=phase.value)
        started = time.monotonic()

        try:
            yield record
        except Exception as e:
            record.success = False
            record.detail = record.detail or str(e)
            raise
        finally:
            record.duration = time.monotonic() - started
            self.emit(
                'phase_end',
                f"Finished {phase.value} in {record.duration:.1f}s",
                phase=phase.value,
                success=record.success,
                duration=record.duration
            )

    # ========================================
    # Session
    # ========================================

    async def run(self) -> ScrapeResult:
        """
        Run the session with retries.

        Returns:
            ScrapeResult whose status is success, partial or failed
        """
        print(f"\n{'='*80}")
        print(f"SCRAPING: {self.url} ({self.mode.value} mode)")
        print(f"{'='*80}")

        started = time.monotonic()
        policy = RetryPolicy(
            max_attempts=self.config.max_retry_count,
            base_delay=self.config.retry_delay / 1000
        )

        try:
            html, markdown = await policy.run(self._attempt, on_retry=self._on_retry)
        except ScrapeError as e:
            self.phase = Phase.FAILED
            self.emit('error', e.user_message, error=e.to_dict())
            result = ScrapeResult(
                success=False,
                url=self.url,
                mode=self.mode,
                query=self.query,
                error=str(e),
                enhanced_error=None,
                attempts=e.context.get('attempts', self.retry_count + 1),
                processing_time=time.monotonic() - started,
                phase_log=self.phase_log
            )
            print(f"\n✗ Scrape failed after {result.attempts} attempt(s): {e.user_message}")
            self.emit('stream_complete', 'Scrape failed', status=result.status)
            return result

        self.phase = Phase.DONE
        result = ScrapeResult(
            success=True,
            url=self.url,
            mode=self.mode,
            query=self.query,
            markdown=markdown,
            html=html,
            enhanced_error=self.enhanced_error,
            attempts=self.retry_count + 1,
            processing_time=time.monotonic() - started,
            revealed_items=len(self.revealed),
            phase_log=self.phase_log
        )

        marker = "✓" if result.status == 'success' else "⚠"
        print(f"\n{marker} Scrape {result.status}: {len(markdown)} chars of markdown in {result.processing_time:.1f}s")
        self.emit('stream_complete', 'Scrape complete', status=result.status)
        return result

    def _on_retry(self, error: ScrapeError, attempt: int, delay: float):
        self.emit(
            'log',
            f"Attempt {attempt} failed ({error.category.value}), retrying in {delay:.1f}s",
            level='warn'
        )

    async def _attempt(self, attempt: int):
        """One full pass with a fresh browser. Returns (html, markdown)."""
        self.retry_count = attempt - 1
        self.enhanced_error = None
        self.revealed = []

        if attempt > 1:
            print(f"\n→ Attempt {attempt}/{self.config.max_retry_count}")

        async with self.engine_factory(self.browser_config()) as engine:
            async with self._phase(Phase.INIT):
                page = await engine.create_page()

            async with self._phase(Phase.NAVIGATE):
                await self._navigate(engine, page)

            async with self._phase(Phase.STABILIZE):
                await scroll_until_stable(page)

            async with self._phase(Phase.IFRAMES):
                await inline_iframes(page)

            if self.mode == ScrapeMode.BEAST:
                html = await self._beast_extract(page)
            else:
                html = await self._normal_extract(page)

            async with self._phase(Phase.CONVERT):
                markdown = await self._convert(html)

        return html, markdown

    async def _navigate(self, engine: PlaywrightEngine, page):
        print(f"  [NAVIGATE] {self.url}")
        await engine.goto(self.url)
        self.base_url = page.url or self.url

        if await is_scrolling_blocked(page):
            try:
                await release_overlays(page)
            except Exception as e:
                print(f"    ⚠ Could not release scroll lock: {e}")
        await asyncio.sleep(0.5)

        overlays = await find_overlays(page)
        if overlays and not await dismiss_overlays(page, overlays):
            print(f"    ⚠ Could not close {len(overlays)} overlay(s)")

    async def _normal_extract(self, page) -> str:
        async with self._phase(Phase.EXTRACT):
            return await self.reconciler.combine(page, [])

    async def _beast_extract(self, page) -> str:
        deadline = time.monotonic() + self.config.interaction_deadline
        candidates: List[CandidateElement] = []

        async with self._phase(Phase.DISCOVER) as record:
            snapshot = snapshot_for_analysis(await page.content())
            if len(snapshot) > self.config.max_snapshot_chars:
                print(f"  ⚠ Snapshot too large ({len(snapshot)} chars), using normal extraction")
                record.detail = 'snapshot over size limit, fell back to normal mode'
                oversized = True
            else:
                oversized = False
                candidates = await self._discover(snapshot, deadline)

        if oversized:
            return await self._normal_extract(page)

        if candidates:
            async with self._phase(Phase.INTERACT):
                self.revealed = await self._interact(page, candidates, deadline)

        async with self._phase(Phase.COMBINE):
            return await self.reconciler.combine(page, self.revealed)

    async def _discover(self, snapshot: str, deadline: float) -> List[CandidateElement]:
        """Candidates from the content model; [] when it failed non-retryably."""
        try:
            analysis = await asyncio.wait_for(
                self.discovery.find_interactive_elements(snapshot, self.query),
                timeout=max(deadline - time.monotonic(), 0.1)
            )
        except asyncio.TimeoutError as e:
            self.enhanced_error = handle_error(
                ScrapeError("Element discovery exceeded the interaction deadline",
                            category=ErrorCategory.TIMEOUT, original=e),
                context={'phase': Phase.DISCOVER.value},
                retryable=False
            )
            return []
        except Exception as e:
            if is_retryable_error(e):
                raise
            self.enhanced_error = handle_error(e, context={'phase': Phase.DISCOVER.value})
            self.emit('log', self.enhanced_error.user_message, level='warn')
            return []

        return analysis.elements if analysis.interaction_needed else []

    async def _interact(self, page, candidates: List[CandidateElement], deadline: float) -> List[RevealedContentItem]:
        explorer = InteractionExplorer(page, self.config)
        explorer.deadline = max(deadline - time.monotonic(), 0)
        try:
            return await explorer.explore(candidates[:self.config.max_interactions])
        except Exception as e:
            if is_retryable_error(e):
                raise
            self.enhanced_error = handle_error(e, context={'phase': Phase.INTERACT.value})
            return explorer.revealed

    async def _convert(self, html: str) -> str:
        markdown = convert_to_markdown(fix_and_format_html(html), base_url=self.base_url)
        print(f"  [CONVERT] {len(markdown)} chars of markdown")

        if self.query:
            improved = await self.improver.improve(markdown, self.query)
            if improved:
                return improved
            print("    → Keeping unimproved markdown")
        return markdown


async def scrape(
    url: str,
    mode: Optional[str] = None,
    query: Optional[str] = None,
    config: Optional[ScraperConfig] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_event: Optional[asyncio.Event] = None
) -> ScrapeResult:
    """
    Scrape one URL. Convenience wrapper around ScrapingSession.

    mode and query, when given, override the matching fields of config.
    The caller's config object is left untouched.
    """
    if config is None:
        config = ScraperConfig(mode=mode or "normal", query=query)
    else:
        overrides = {name: value for name, value in (('mode', mode), ('query', query))
                     if value is not None}
        if overrides:
            config = replace(config, **overrides)
    session = ScrapingSession(
        url,
        config,
        progress_callback=progress_callback,
        cancel_event=cancel_event
    )
    return await session.run()
