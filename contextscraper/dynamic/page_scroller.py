"""Scroll a page until lazy-loaded content stops appearing."""

import asyncio
from dataclasses import dataclass


FINGERPRINT_JS = """
() => {
  const text = document.body ? (document.body.textContent || '') : '';
  const images = document.querySelectorAll('img').length;
  const links = document.querySelectorAll('a').length;
  const divs = document.querySelectorAll('div').length;
  return `${text.length}-${images}-${links}-${divs}`;
}
"""


@dataclass
class ScrollSettings:
    max_scroll_attempts: int = 10
    scroll_delay: int = 500  # ms
    network_idle_timeout: int = 2000  # ms
    stable_checks: int = 2
    scroll_step: int = 3000  # px per wheel scroll


class PageScroller:
    """
    Wheel-scrolls a page until its content fingerprint stops changing.

    The fingerprint is text length plus img/a/div counts, cheap enough to
    take after every scroll.
    """

    def __init__(self, page, settings: ScrollSettings = None):
        self.page = page
        self.settings = settings or ScrollSettings()

    async def _fingerprint(self) -> str:
        try:
            return await self.page.evaluate(FINGERPRINT_JS)
        except Exception:
            # Unknown state counts as a change
            return f"unknown-{asyncio.get_running_loop().time()}"

    async def _at_bottom(self) -> bool:
        try:
            before = await self.page.evaluate("() => window.pageYOffset")
            await self.page.mouse.wheel(0, 50)
            await asyncio.sleep(0.1)
            after = await self.page.evaluate("() => window.pageYOffset")
            return abs(after - before) < 5
        except Exception:
            return False

    async def scroll_until_stable(self) -> bool:
        """
        Scroll until no new content shows up.

        Returns:
            True when scrolling finished, False if it failed part way
        """
        s = self.settings
        print(f"  [SCROLL] Up to {s.max_scroll_attempts} scrolls")

        try:
            last = await self._fingerprint()
            unchanged = 0
            attempts = 0

            while attempts < s.max_scroll_attempts:
                attempts += 1
                await self.page.mouse.wheel(0, s.scroll_step)

                try:
                    await self.page.wait_for_load_state('networkidle', timeout=s.network_idle_timeout)
                except Exception:
                    pass  # Busy pages never go idle; the fingerprint decides

                await asyncio.sleep(s.scroll_delay / 1000)

                current = await self._fingerprint()
                if current != last:
                    unchanged = 0
                    last = current
                    continue

                unchanged += 1
                if await self._at_bottom():
                    # Give late content one more chance
                    await asyncio.sleep(s.scroll_delay * 2 / 1000)
                    current = await self._fingerprint()
                    if current != last:
                        unchanged = 0
                        last = current
                        print("    → Late-loading content detected, continuing")
                        continue
                    unchanged += 1

                if unchanged >= s.stable_checks:
                    break

            try:
                await self.page.keyboard.press('End')
                await asyncio.sleep(0.5)
            except Exception:
                pass

            print(f"    ✓ Scrolling done after {attempts} scroll(s)")
            return True

        except Exception as e:
            print(f"    ✗ Scrolling failed: {e}")
            return False


async def scroll_until_stable(page, settings: ScrollSettings = None) -> bool:
    return await PageScroller(page, settings).scroll_until_stable()
