"""Content reconciler.

Merges the fragments revealed by interactions back into the page HTML.

Placement cascade per fragment:
    1. stored XPath
    2. stored CSS path
    3. most similar element with the same tag (text +3, shared class +1 each,
       same id +5; ties go to the earliest element in the document)
    4. end of <body>

Whatever happens, combine() returns HTML: a failed fragment is skipped, a
failed merge falls back to the unmodified page content.
"""

from typing import List, Optional

import lxml.html
from lxml import etree

from ..core.models import RevealedContentItem
from ..utils.html_sanitizer import parse_document, sanitize_tree, serialize
from ..utils.locators import resolve_css, resolve_xpath


DYNAMIC_MARKER = 'data-dynamic-content'
WRAPPER_CLASS = 'dynamic-content-wrapper'

TEXT_MATCH_SCORE = 3
ID_MATCH_SCORE = 5


def _text(element) -> str:
    return (element.text_content() or '').strip()


def _classes(element) -> set:
    return set((element.get('class') or '').split())


def _element_children(element) -> list:
    return [child for child in element if isinstance(child.tag, str)]


def parse_fragment(html: str):
    """First element of an HTML fragment, or None."""
    if not html or not html.strip():
        return None
    try:
        nodes = lxml.html.fragments_fromstring(html)
    except (etree.ParserError, ValueError):
        return None
    for node in nodes:
        if isinstance(node, etree._Element) and isinstance(node.tag, str):
            return node
    return None


def similarity_score(candidate, revealed) -> int:
    score = 0
    revealed_text = _text(revealed)
    if revealed_text and _text(candidate) == revealed_text:
        score += TEXT_MATCH_SCORE
    score += len(_classes(candidate) & _classes(revealed))
    revealed_id = revealed.get('id')
    if revealed_id and candidate.get('id') == revealed_id:
        score += ID_MATCH_SCORE
    return score


def find_similar_element(root, revealed):
    """Best-scoring element with the revealed element's tag, or None."""
    best, best_score = None, 0
    for candidate in root.iter(revealed.tag):
        if candidate.get(DYNAMIC_MARKER) is not None:
            continue
        score = similarity_score(candidate, revealed)
        # Strictly greater: on a tie the element seen first (document order) stays
        if score > best_score:
            best, best_score = candidate, score
    return best


class ContentReconciler:
    """Places revealed fragments into the page and sanitizes the result."""

    def _body(self, root):
        body = root.find('.//body')
        if body is None:
            body = root.makeelement('body', {})
            root.append(body)
        return body

    def _find_target(self, root, item: RevealedContentItem, revealed):
        """Returns (target, strategy)."""
        tree = root.getroottree()

        target = resolve_xpath(tree, item.position.xpath)
        if target is not None:
            return target, 'xpath'

        target = resolve_css(root, item.position.css_path)
        if target is not None:
            return target, 'css'

        target = find_similar_element(root, revealed)
        if target is not None:
            return target, 'similarity'

        return self._body(root), 'body'

    def _tag(self, revealed, item: RevealedContentItem):
        revealed.set(DYNAMIC_MARKER, 'true')
        revealed.set('data-interaction-type', item.interaction_type.value)
        revealed.set('data-selector', item.selector)

    def _insert(self, root, target, revealed) -> str:
        body = self._body(root)

        if target is body or target is root or target.getparent() is None:
            body.append(revealed)
            return 'appended'

        if _text(target) == _text(revealed) or not _element_children(target):
            target.text = None
            for child in list(target):
                target.remove(child)
            target.append(revealed)
            return 'replaced'

        wrapper = root.makeelement('div', {'class': WRAPPER_CLASS})
        wrapper.append(revealed)
        target.addnext(wrapper)
        return 'inserted after'

    def place(self, root, item: RevealedContentItem) -> bool:
        """Place one item into the tree. False if the item had no element."""
        revealed = parse_fragment(item.revealed_html)
        if revealed is None:
            print(f"    ⚠ Nothing to place for {item.selector!r}")
            return False

        target, strategy = self._find_target(root, item, revealed)
        self._tag(revealed, item)
        action = self._insert(root, target, revealed)
        print(f"    ✓ {item.selector!r}: {action} <{target.tag}> (via {strategy})")
        return True

    def merge(self, html: str, items: List[RevealedContentItem]) -> str:
        """Merge items into html and sanitize. Raises only on unparseable input."""
        root = parse_document(html)

        for item in items:
            try:
                self.place(root, item)
            except Exception as e:
                print(f"    ✗ Could not place {item.selector!r}: {e}")

        sanitize_tree(root)
        return serialize(root)

    async def combine(self, page, items: Optional[List[RevealedContentItem]] = None) -> str:
        """
        Merge revealed items into the live page's HTML.

        Args:
            page: Playwright page
            items: Revealed content; empty means sanitize only

        Returns:
            Merged, sanitized HTML; the raw page content if merging failed;
            '' if even that could not be read
        """
        items = items or []
        if items:
            print(f"  [COMBINE] Placing {len(items)} revealed item(s)")

        try:
            html = await page.content()
            return self.merge(html, items)
        except Exception as e:
            print(f"  ✗ Combine failed, returning page as is: {e}")
            try:
                return await page.content()
            except Exception as inner:
                print(f"  ✗ Could not read page content: {inner}")
                return ''
