"""Performs a single interaction on a candidate element."""

import asyncio

from ..core.models import InteractionType


SCROLL_INTO_VIEW_TIMEOUT = 3000  # ms
SCROLL_ONLY_TIMEOUT = 5000  # ms
ACTION_TIMEOUT = 5000  # ms

_FAILURE_REASONS = [
    ('element is not enabled', 'element is disabled'),
    ('not enabled', 'element is disabled'),
    ('element is not visible', 'element is not visible'),
    ('not attached', 'element was removed from the DOM'),
    ('detached', 'element was removed from the DOM'),
    ('intercepts pointer events', 'click intercepted by an overlay'),
    ('intercepted', 'click intercepted by an overlay'),
    ('timeout', 'timed out waiting for the element'),
]


def classify_interaction_failure(error: BaseException) -> str:
    """Human-readable reason for a failed interaction (diagnostics only)."""
    message = str(error)
    lowered = message.lower()
    for fragment, reason in _FAILURE_REASONS:
        if fragment in lowered:
            return reason
    return message.splitlines()[0] if message else type(error).__name__


class InteractionExecutor:
    """
    Click/hover/focus/scroll one element, never raising.

    A skipped or failed candidate is a normal outcome: perform() reports it
    by returning False.
    """

    def __init__(self, settle_delay: int = 1000):
        self.settle_delay = settle_delay  # ms

    async def perform(self, target, interaction_type: InteractionType = InteractionType.CLICK) -> bool:
        """
        Interact with target and wait for the page to settle.

        Args:
            target: Playwright Locator pointing at one element
            interaction_type: What to do with it

        Returns:
            True if the action ran, False if the element was skipped or the
            action failed
        """
        interaction_type = InteractionType.parse(interaction_type)

        try:
            if not await target.is_visible():
                print("      ⚠ Skipped: element is not visible")
                return False
            if not await target.is_enabled():
                print("      ⚠ Skipped: element is disabled")
                return False

            if interaction_type == InteractionType.HOVER:
                await target.scroll_into_view_if_needed(timeout=SCROLL_INTO_VIEW_TIMEOUT)
                await target.hover(timeout=ACTION_TIMEOUT)
            elif interaction_type == InteractionType.FOCUS:
                await target.scroll_into_view_if_needed(timeout=SCROLL_INTO_VIEW_TIMEOUT)
                await target.focus(timeout=ACTION_TIMEOUT)
            elif interaction_type == InteractionType.SCROLL:
                await target.scroll_into_view_if_needed(timeout=SCROLL_ONLY_TIMEOUT)
            else:
                await target.scroll_into_view_if_needed(timeout=SCROLL_INTO_VIEW_TIMEOUT)
                await target.click(timeout=ACTION_TIMEOUT)

            await asyncio.sleep(self.settle_delay / 1000)
            return True

        except Exception as e:
            print(f"      ✗ {interaction_type.value} failed: {classify_interaction_failure(e)}")
            return False
