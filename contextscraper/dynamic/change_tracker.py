"""DOM change tracker.

Watches the live page while one interaction runs and reports which elements
appeared or became visible. The in-page harness is reachable only through
the JSHandle returned by attach(); nothing is stored on window.

Typical use, once per interaction:

    handle = await tracker.attach(page)
    await executor.perform(target, interaction_type)
    changes = await handle.drain_changes()
    await handle.detach()
"""

from typing import List, Optional

from ..core.models import ObservedChange
from ..utils.locators import LOCATOR_JS


MIN_TEXT_LENGTH = 5

TRACKER_JS = """
() => {
""" + LOCATOR_JS + """
  const changes = [];
  const seen = new Set();

  const isVisible = (el) => {
    const style = window.getComputedStyle(el);
    return style.display !== 'none' && style.visibility !== 'hidden' && style.opacity !== '0';
  };

  // Reapply the old attribute value and ask the browser whether the
  // element rendered with it. Covers class toggles as well as inline styles.
  const wasHidden = (el, attr, oldValue) => {
    const current = el.getAttribute(attr);
    const put = (value) => {
      if (value === null) el.removeAttribute(attr);
      else el.setAttribute(attr, value);
    };
    put(oldValue);
    const hidden = !isVisible(el);
    put(current);
    // Discard the mutations the two writes above just queued
    observer.takeRecords();
    return hidden;
  };

  const record = (el, changeType) => {
    try {
      const xpath = buildXPath(el);
      const key = changeType + '|' + xpath;
      if (seen.has(key)) return;
      seen.add(key);
      const rect = el.getBoundingClientRect();
      changes.push({
        changeType,
        xpath,
        cssPath: cssPath(el),
        boundingBox: {x: rect.x, y: rect.y, width: rect.width, height: rect.height},
        timestamp: Date.now(),
      });
    } catch (e) {
      // Node left the document before it could be located
    }
  };

  const observer = new MutationObserver((mutations) => {
    for (const m of mutations) {
      if (m.type === 'childList') {
        m.addedNodes.forEach((node) => {
          if (node.nodeType === Node.ELEMENT_NODE) record(node, 'elementAdded');
        });
      } else if (m.type === 'attributes' && m.target.nodeType === Node.ELEMENT_NODE) {
        if (!isVisible(m.target)) continue;
        record(m.target, wasHidden(m.target, m.attributeName, m.oldValue)
          ? 'newlyVisibleElement'
          : 'attributeChanged');
      }
    }
  });

  observer.observe(document.body, {
    childList: true,
    subtree: true,
    attributes: true,
    attributeOldValue: true,
    attributeFilter: ['style', 'class', 'hidden'],
  });

  return {
    drain(minTextLength) {
      const batch = changes.splice(0, changes.length);
      seen.clear();
      const drained = [];
      for (const change of batch) {
        const node = nodeAt(change.xpath);
        if (!node) continue;
        const text = (node.textContent || '').trim();
        if (text.length <= minTextLength) continue;
        drained.push({...change, textLength: text.length, outerHTML: node.outerHTML});
      }
      return drained;
    },
    disconnect() {
      observer.disconnect();
      changes.length = 0;
      seen.clear();
    },
  };
}
"""


class TrackerHandle:
    """Handle to one attached observation harness."""

    def __init__(self, js_handle):
        self._js_handle = js_handle
        self.attached = True

    async def drain_changes(self) -> List[ObservedChange]:
        """Return and clear everything observed since attach or the last drain."""
        if not self.attached:
            return []

        raw_changes = await self._js_handle.evaluate(
            "(harness, minTextLength) => harness.drain(minTextLength)",
            MIN_TEXT_LENGTH
        )

        changes = []
        for raw in raw_changes or []:
            try:
                changes.append(ObservedChange.from_dict(raw))
            except ValueError as e:
                print(f"      ⚠ Ignoring malformed change: {e}")
        return changes

    async def detach(self):
        """Disconnect the observer and release the harness."""
        if not self.attached:
            return
        self.attached = False
        try:
            await self._js_handle.evaluate("harness => harness.disconnect()")
            await self._js_handle.dispose()
        except Exception as e:
            # Navigation or page close already took the harness with it
            print(f"      ⚠ Tracker detach: {e}")


class ChangeTracker:
    """
    Installs mutation observers on a page.

    Attaching again replaces the previous harness, so at most one is live
    per tracker at any time.
    """

    def __init__(self):
        self._current: Optional[TrackerHandle] = None

    async def attach(self, page) -> TrackerHandle:
        if self._current is not None:
            await self._current.detach()
        js_handle = await page.evaluate_handle(TRACKER_JS)
        self._current = TrackerHandle(js_handle)
        return self._current

    async def detach(self):
        if self._current is not None:
            await self._current.detach()
            self._current = None
