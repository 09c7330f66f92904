"""Tests for single-element interactions."""

from unittest.mock import AsyncMock

import pytest

from contextscraper.core.models import InteractionType
from contextscraper.dynamic.interaction_executor import (
    InteractionExecutor,
    classify_interaction_failure,
)


def _target(visible=True, enabled=True):
    target = AsyncMock()
    target.is_visible.return_value = visible
    target.is_enabled.return_value = enabled
    return target


@pytest.mark.asyncio
async def test_click_scrolls_into_view_first():
    target = _target()

    assert await InteractionExecutor(settle_delay=0).perform(target, InteractionType.CLICK)
    target.scroll_into_view_if_needed.assert_awaited_once()
    target.click.assert_awaited_once()


@pytest.mark.asyncio
@pytest.mark.parametrize("interaction, method", [
    (InteractionType.HOVER, 'hover'),
    (InteractionType.FOCUS, 'focus'),
    ('hover', 'hover'),
])
async def test_other_interactions(interaction, method):
    target = _target()

    assert await InteractionExecutor(settle_delay=0).perform(target, interaction)
    getattr(target, method).assert_awaited_once()
    target.click.assert_not_awaited()


@pytest.mark.asyncio
async def test_scroll_only_scrolls():
    target = _target()

    assert await InteractionExecutor(settle_delay=0).perform(target, InteractionType.SCROLL)
    target.scroll_into_view_if_needed.assert_awaited_once_with(timeout=5000)
    target.click.assert_not_awaited()


@pytest.mark.asyncio
@pytest.mark.parametrize("visible, enabled", [(False, True), (True, False)])
async def test_hidden_or_disabled_is_skipped(visible, enabled):
    target = _target(visible, enabled)

    assert not await InteractionExecutor(settle_delay=0).perform(target)
    target.click.assert_not_awaited()


@pytest.mark.asyncio
async def test_failed_action_returns_false():
    target = _target()
    target.click.side_effect = Exception("Element is not attached to the DOM")

    assert not await InteractionExecutor(settle_delay=0).perform(target)


@pytest.mark.parametrize("message, reason", [
    ("Element is not enabled", "element is disabled"),
    ("element is not visible", "element is not visible"),
    ("Element is not attached to the DOM", "element was removed from the DOM"),
    ("<div class=overlay> intercepts pointer events", "click intercepted by an overlay"),
    ("Timeout 5000ms exceeded.", "timed out waiting for the element"),
    ("Something else\ncall log: ...", "Something else"),
])
def test_failure_reasons(message, reason):
    assert classify_interaction_failure(Exception(message)) == reason
