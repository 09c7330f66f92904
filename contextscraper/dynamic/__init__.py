"""Browser-side components.

Components:
    - browser_engine: Playwright browser automation
    - change_tracker: MutationObserver harness for one interaction
    - overlays: Modal/overlay detection and dismissal
    - interaction_executor: Single click/hover/focus/scroll
    - interaction_explorer: Interaction loop over discovered candidates
    - page_scroller: Scroll until lazy content stops loading
    - iframes: Inline iframe content into the page
"""

from .browser_engine import BrowserConfig, PlaywrightEngine
from .change_tracker import ChangeTracker, TrackerHandle
from .interaction_executor import InteractionExecutor
from .interaction_explorer import InteractionExplorer
from .overlays import Overlay, dismiss_overlays, find_overlays, is_scrolling_blocked

__all__ = [
    'BrowserConfig',
    'PlaywrightEngine',
    'ChangeTracker',
    'TrackerHandle',
    'InteractionExecutor',
    'InteractionExplorer',
    'Overlay',
    'dismiss_overlays',
    'find_overlays',
    'is_scrolling_blocked'
]
