"""Run the in-page scripts against a real Chromium page."""

import lxml.html
import pytest

from contextscraper.core.models import ChangeType
from contextscraper.dynamic.change_tracker import ChangeTracker
from contextscraper.dynamic.interaction_explorer import rank_changes
from contextscraper.dynamic.overlays import DIALOG_Z_INDEX, find_overlays, is_scrolling_blocked
from contextscraper.utils.locators import LOCATOR_JS, build_xpath

from .test_locators import SAMPLE


XPATHS_JS = """
() => {
""" + LOCATOR_JS + """
  return Array.from(document.querySelectorAll('*')).map((el) => {
    const xpath = buildXPath(el);
    return {xpath, unique: isUniqueXPath(xpath, el)};
  });
}
"""

TABS_PAGE = """<!DOCTYPE html>
<html>
<head><style>.hidden { display: none; }</style></head>
<body>
  <div id="tabs" class="tabs">
    <div id="panel" class="panel hidden">Battery lasts 20 hours</div>
    <div id="styled" style="display: none">Weighs 240 grams in total</div>
    <div id="folded" class="hidden">Still folded away here</div>
    <div id="reviews"></div>
  </div>
</body>
</html>"""

REVEAL_JS = """
() => {
  document.getElementById('panel').classList.remove('hidden');
  document.getElementById('styled').style.display = 'block';
  document.getElementById('folded').classList.add('muted');
  document.getElementById('tabs').classList.add('active');
  const review = document.createElement('p');
  review.id = 'review';
  review.textContent = 'Five stars from a marathon runner';
  document.getElementById('reviews').appendChild(review);
}
"""

OVERLAY_PAGE = """<!DOCTYPE html>
<html>
<body style="margin: 0">
  <div id="modal" style="position: fixed; top: 100px; left: 100px; width: 600px; height: 400px; z-index: 1000">Subscribe</div>
  <div id="flat" style="position: fixed; top: 0; left: 0; width: 600px; height: 400px; z-index: 1">Flat</div>
  <div id="inline" style="width: 600px; height: 400px; z-index: 50">Inline</div>
  <div id="badge" style="position: fixed; bottom: 0; right: 0; width: 40px; height: 40px; z-index: 1000">!</div>
  <div id="strip" style="position: fixed; bottom: 0; left: 0; width: 300px; height: 60px; z-index: 1000">Chat</div>
  <div id="gone" style="position: fixed; top: 0; left: 0; width: 600px; height: 400px; z-index: 1000; display: none">Gone</div>
  <dialog id="consent" open style="width: 400px; height: 300px">Cookies</dialog>
  <dialog id="closed" style="width: 400px; height: 300px">Closed</dialog>
</body>
</html>"""

TALL_PAGE = '<!DOCTYPE html><html><body><div style="height: 3000px">Long article</div></body></html>'


@pytest.mark.asyncio
async def test_live_xpaths_are_unique_and_match_lxml(live_page):
    html = '<!DOCTYPE html>' + SAMPLE
    await live_page.set_content(html)

    live = await live_page.evaluate(XPATHS_JS)

    assert all(entry['unique'] for entry in live), live
    root = lxml.html.document_fromstring(html)
    expected = [build_xpath(el) for el in root.iter() if isinstance(el.tag, str)]
    assert [entry['xpath'] for entry in live] == expected


@pytest.mark.asyncio
async def test_tracker_classifies_reveals(live_page):
    await live_page.set_content(TABS_PAGE)
    tracker = ChangeTracker()
    handle = await tracker.attach(live_page)

    await live_page.evaluate(REVEAL_JS)
    changes = await handle.drain_changes()

    assert {c.locator.xpath: c.change_type for c in changes} == {
        "//*[@id='panel']": ChangeType.NEWLY_VISIBLE,
        "//*[@id='styled']": ChangeType.NEWLY_VISIBLE,
        "//*[@id='tabs']": ChangeType.ATTRIBUTE_CHANGED,
        "//*[@id='review']": ChangeType.ELEMENT_ADDED,
    }
    assert await handle.drain_changes() == []
    await tracker.detach()


@pytest.mark.asyncio
async def test_class_toggled_panel_outranks_attribute_change(live_page):
    await live_page.set_content(TABS_PAGE)
    handle = await ChangeTracker().attach(live_page)

    await live_page.evaluate("""() => {
      document.getElementById('tabs').classList.add('active');
      document.getElementById('panel').classList.remove('hidden');
    }""")
    best = rank_changes(await handle.drain_changes())

    assert best.locator.xpath == "//*[@id='panel']"
    assert best.change_type == ChangeType.NEWLY_VISIBLE
    assert 'Battery lasts 20 hours' in best.outer_html
    await handle.detach()


@pytest.mark.asyncio
async def test_find_overlays_size_and_stacking_rules(live_page):
    await live_page.set_content(OVERLAY_PAGE)

    found = {o.xpath: o for o in await find_overlays(live_page)}

    assert set(found) == {"//*[@id='modal']", "//*[@id='consent']"}
    assert found["//*[@id='modal']"].position == 'fixed'
    assert found["//*[@id='modal']"].z_index == 1000
    assert found["//*[@id='consent']"].is_dialog
    assert found["//*[@id='consent']"].z_index == DIALOG_Z_INDEX


@pytest.mark.asyncio
async def test_scroll_lock_detection(live_page):
    await live_page.set_content(TALL_PAGE)
    assert await is_scrolling_blocked(live_page) is False

    await live_page.add_style_tag(content='html, body { overflow: hidden; }')
    assert await is_scrolling_blocked(live_page) is True
