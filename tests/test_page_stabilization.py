"""Tests for scroll-until-stable and iframe inlining."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from contextscraper.dynamic.iframes import REPLACE_IFRAME_JS, inline_iframes
from contextscraper.dynamic.page_scroller import FINGERPRINT_JS, ScrollSettings, scroll_until_stable


def _scroll_page(fingerprints, offset=100):
    """Page whose fingerprint follows the given sequence, repeating the last one."""
    remaining = list(fingerprints)

    async def evaluate(script, *args):
        if script == FINGERPRINT_JS:
            return remaining.pop(0) if len(remaining) > 1 else remaining[0]
        return offset

    page = MagicMock()
    page.evaluate = AsyncMock(side_effect=evaluate)
    page.mouse.wheel = AsyncMock()
    page.wait_for_load_state = AsyncMock(side_effect=Exception("Timeout 2000ms exceeded"))
    page.keyboard.press = AsyncMock()
    return page


def _wheel_steps(page, step):
    return [c for c in page.mouse.wheel.await_args_list if c.args == (0, step)]


@pytest.mark.asyncio
async def test_static_page_stops_after_first_scroll(sleeps):
    page = _scroll_page(['1200:3:10:40'])

    assert await scroll_until_stable(page) is True
    assert len(_wheel_steps(page, 3000)) == 1
    page.keyboard.press.assert_awaited_once_with('End')


@pytest.mark.asyncio
async def test_growing_page_scrolls_up_to_the_limit(sleeps):
    page = _scroll_page([f'{n}:0:0:0' for n in range(20)])

    assert await scroll_until_stable(page, ScrollSettings(max_scroll_attempts=4)) is True
    assert len(_wheel_steps(page, 3000)) == 4


@pytest.mark.asyncio
async def test_content_that_stops_growing(sleeps):
    page = _scroll_page(['a', 'b', 'c', 'c'])

    await scroll_until_stable(page)

    assert len(_wheel_steps(page, 3000)) == 3


@pytest.mark.asyncio
async def test_scroll_failure_returns_false(sleeps):
    page = _scroll_page(['a'])
    page.mouse.wheel.side_effect = Exception("Target closed")

    assert await scroll_until_stable(page) is False


def _frame(content=None, element_error=None, src='https://widgets.example/embed'):
    frame = MagicMock()
    frame.url = src
    iframe = AsyncMock()
    iframe.evaluate.return_value = src
    if element_error:
        frame.frame_element = AsyncMock(side_effect=element_error)
    else:
        frame.frame_element = AsyncMock(return_value=iframe)
    frame.wait_for_load_state = AsyncMock()
    frame.evaluate = AsyncMock(return_value=content)
    return frame, iframe


@pytest.mark.asyncio
async def test_inline_iframes():
    main = MagicMock()
    readable, readable_iframe = _frame('<p>Embedded size chart</p>')
    blocked, _ = _frame(element_error=Exception("Blocked a frame with origin: cross-origin frame"))
    empty, empty_iframe = _frame('   ')

    page = MagicMock()
    page.main_frame = main
    page.frames = [main, readable, blocked, empty]

    assert await inline_iframes(page) == 1

    readable_iframe.evaluate.assert_awaited_with(
        REPLACE_IFRAME_JS,
        {'content': '<p>Embedded size chart</p>', 'src': 'https://widgets.example/embed'}
    )
    assert empty_iframe.evaluate.await_count == 1
    main.frame_element.assert_not_called()


@pytest.mark.asyncio
async def test_slow_frame_is_still_read():
    frame, iframe = _frame('<p>late</p>')
    frame.wait_for_load_state.side_effect = Exception("Timeout 5000ms exceeded")
    page = MagicMock()
    page.main_frame = MagicMock()
    page.frames = [page.main_frame, frame]

    assert await inline_iframes(page) == 1
