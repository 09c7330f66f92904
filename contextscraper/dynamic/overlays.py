"""Modal/overlay detection and dismissal.

Overlays are found two ways:
    - native <dialog open> elements
    - generic containers positioned fixed/absolute above the page (z-index > 1)

Both must be on screen, at least 50px in each dimension and cover at least
2% of the viewport.

Dismissal walks a fixed cascade and stops at the first step that changes
the visibility of any overlay:
    1. click outside (force click on <html>)
    2. Escape
    3. close/cancel controls inside the overlay
    4. style.display = 'none'
"""

import asyncio
import re
from dataclasses import dataclass
from typing import List

from ..utils.locators import LOCATOR_JS


MIN_SIZE_PX = 50
MIN_VIEWPORT_AREA_FRACTION = 0.02
DIALOG_Z_INDEX = 999999
STEP_DELAY = 0.1  # seconds


@dataclass(frozen=True)
class Overlay:
    """A visually blocking element."""
    xpath: str
    position: str
    z_index: int
    is_dialog: bool = False


FIND_OVERLAYS_JS = """
({minSize, minAreaFraction, dialogZIndex}) => {
""" + LOCATOR_JS + """
  const viewportArea = window.innerWidth * window.innerHeight;
  const found = [];

  for (const el of document.querySelectorAll('div, section, span, dialog, svg')) {
    const style = window.getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    const isDialog = el.tagName.toLowerCase() === 'dialog';
    let zIndex = parseInt(style.zIndex, 10);

    if (isDialog) {
      if (!el.hasAttribute('open')) continue;
      zIndex = dialogZIndex;
    } else {
      if (isNaN(zIndex) || zIndex <= 1) continue;
      if (style.position !== 'fixed' && style.position !== 'absolute') continue;
    }

    const onScreen = style.display !== 'none' &&
      style.visibility !== 'hidden' &&
      parseFloat(style.opacity) > 0 &&
      rect.width > 0 && rect.height > 0 &&
      rect.top < window.innerHeight && rect.bottom > 0 &&
      rect.left < window.innerWidth && rect.right > 0;
    if (!onScreen) continue;

    const bigEnough = rect.width >= minSize && rect.height >= minSize &&
      rect.width * rect.height >= viewportArea * minAreaFraction;
    if (!bigEnough) continue;

    let xpath;
    try {
      xpath = buildXPath(el);
    } catch (e) {
      continue;
    }
    found.push({
      xpath: xpath,
      position: style.position,
      zIndex: zIndex,
      isDialog: isDialog,
    });
  }
  return found;
}
"""

SCROLL_BLOCKED_JS = """
() => {
  const html = document.documentElement;
  const body = document.body;
  if (!body) return true;

  const docHeight = Math.max(body.scrollHeight, body.offsetHeight,
    html.clientHeight, html.scrollHeight, html.offsetHeight);
  const docWidth = Math.max(body.scrollWidth, body.offsetWidth,
    html.clientWidth, html.scrollWidth, html.offsetWidth);
  const viewportHeight = window.innerHeight;
  const viewportWidth = window.innerWidth;

  const hasVertical = docHeight > viewportHeight;
  const hasHorizontal = docWidth > viewportWidth;
  if (!hasVertical && !hasHorizontal) return true;

  // Does anything cancel wheel events?
  let wheelBlocked = false;
  const probe = (e) => { if (e.defaultPrevented) wheelBlocked = true; };
  document.addEventListener('wheel', probe, {passive: false});
  const target = document.elementFromPoint(viewportWidth / 2, viewportHeight / 2) || html;
  target.dispatchEvent(new WheelEvent('wheel', {
    deltaY: 100, deltaMode: 0, bubbles: true, cancelable: true,
  }));
  document.removeEventListener('wheel', probe);

  const htmlStyle = getComputedStyle(html);
  const bodyStyle = getComputedStyle(body);
  const hiddenOverflow = [htmlStyle.overflow, htmlStyle.overflowY,
    bodyStyle.overflow, bodyStyle.overflowY].includes('hidden');

  // Nudge the scroll position by one pixel and put it back
  let scrollProbeBlocked = false;
  if (hasVertical) {
    // body scrolls the viewport in quirks mode, html in standards mode
    const scroller = document.scrollingElement || html;
    const original = scroller.scrollTop;
    const testY = original + (original > 0 ? -1 : 1);
    if (testY >= 0 && testY <= docHeight - viewportHeight) {
      scroller.scrollTop = testY;
      const after = scroller.scrollTop;
      scroller.scrollTop = original;
      scrollProbeBlocked = after === original;
    }
  }

  const touchNone = htmlStyle.touchAction === 'none' || bodyStyle.touchAction === 'none';
  const fullHeight = (h) => h === '100%' || h === '100vh';
  const heightConstrained =
    (fullHeight(htmlStyle.height) && fullHeight(bodyStyle.height) && hiddenOverflow) ||
    htmlStyle.maxHeight === '100vh' || bodyStyle.maxHeight === '100vh';

  return wheelBlocked ||
    (hasVertical && hiddenOverflow) ||
    (hasVertical && scrollProbeBlocked) ||
    touchNone ||
    heightConstrained;
}
"""

_CLOSE_NAME = re.compile(r'^close$', re.IGNORECASE)
_CANCEL_NAME = re.compile(r'^cancel$', re.IGNORECASE)
_DISMISS_NAME = re.compile(r'^dismiss$', re.IGNORECASE)
_X_SYMBOL = re.compile(r'^[×✕x]$')


async def is_scrolling_blocked(page) -> bool:
    """True when the page refuses to scroll, usually because a modal is open."""
    try:
        return bool(await page.evaluate(SCROLL_BLOCKED_JS))
    except Exception as e:
        print(f"    ⚠ Scroll check failed: {e}")
        return False


async def find_overlays(page) -> List[Overlay]:
    """Scan the live page for blocking overlays."""
    try:
        raw = await page.evaluate(FIND_OVERLAYS_JS, {
            'minSize': MIN_SIZE_PX,
            'minAreaFraction': MIN_VIEWPORT_AREA_FRACTION,
            'dialogZIndex': DIALOG_Z_INDEX,
        })
    except Exception as e:
        print(f"    ⚠ Overlay search failed: {e}")
        return []

    overlays = []
    for item in raw or []:
        if not isinstance(item, dict) or not item.get('xpath'):
            continue
        overlays.append(Overlay(
            xpath=item['xpath'],
            position=str(item.get('position') or ''),
            z_index=int(item.get('zIndex') or 0),
            is_dialog=bool(item.get('isDialog'))
        ))
    return overlays


async def release_overlays(page):
    """Cheap dismissal: Escape plus a click outside."""
    await page.keyboard.press('Escape')
    await page.click('html', force=True, timeout=2000)


async def _visibility(page, overlays: List[Overlay]) -> List[bool]:
    states = []
    for overlay in overlays:
        try:
            states.append(await page.locator(f'xpath={overlay.xpath}').is_visible())
        except Exception:
            states.append(False)
    return states


def _close_controls(page, overlay: Overlay) -> list:
    base = page.locator(f'xpath={overlay.xpath}')
    return [
        base.get_by_role('button', name=_CLOSE_NAME),
        base.get_by_role('button', name=_CANCEL_NAME),
        base.get_by_label(_CLOSE_NAME),
        base.get_by_label(_CANCEL_NAME),
        base.get_by_label(_DISMISS_NAME),
        base.get_by_text(_X_SYMBOL),
        base.get_by_text(_CLOSE_NAME),
        base.get_by_text(_CANCEL_NAME),
    ]


async def dismiss_overlays(page, overlays: List[Overlay]) -> bool:
    """
    Try to close overlays, cheapest strategy first.

    Args:
        page: Playwright page
        overlays: Result of find_overlays()

    Returns:
        True as soon as any overlay's visibility changed (or there was
        nothing to close), False if all four strategies left them as they were
    """
    if not overlays:
        return True

    initial = await _visibility(page, overlays)

    async def changed() -> bool:
        await asyncio.sleep(STEP_DELAY)
        return await _visibility(page, overlays) != initial

    # 1. Click outside
    try:
        await page.click('html', force=True, delay=100, timeout=2000)
        if await changed():
            print("    ✓ Overlay closed by outside click")
            return True
    except Exception as e:
        print(f"    ⚠ Outside click failed: {e}")

    # 2. Escape
    try:
        await page.keyboard.press('Escape')
        if await changed():
            print("    ✓ Overlay closed with Escape")
            return True
    except Exception as e:
        print(f"    ⚠ Escape failed: {e}")

    # 3. Close buttons
    for overlay in overlays:
        for control in _close_controls(page, overlay):
            try:
                count = await control.count()
            except Exception:
                continue
            for i in range(count):
                button = control.nth(i)
                try:
                    if not await button.is_visible() or not await button.is_enabled():
                        continue
                    await button.click(force=True, delay=100, timeout=2000)
                    if await changed():
                        print("    ✓ Overlay closed with close button")
                        return True
                except Exception:
                    # Buttons often detach once clicked
                    continue

    # 4. Force-hide
    try:
        for overlay in overlays:
            element = page.locator(f'xpath={overlay.xpath}')
            if await element.is_visible():
                await element.evaluate("el => { el.style.display = 'none'; }")
        if await changed():
            print("    ✓ Overlay hidden")
            return True
    except Exception as e:
        print(f"    ⚠ Could not hide overlay: {e}")

    print(f"    ✗ Could not close {len(overlays)} overlay(s)")
    return False
