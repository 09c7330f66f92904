"""Element locator resolver.

Builds replay-safe addresses (XPath, CSS path) for DOM elements and resolves
them back against a document. Every XPath handed out is checked against the
document it came from: a locator is only trusted when it matches exactly one
node, the node it was built for.

Two renditions of the same fallback chain live here:
    - build_xpath(): works on lxml trees (page.content() snapshots)
    - LOCATOR_JS: the in-page version used against the live document by the
      change tracker and the overlay detector
"""

from typing import Optional

from cssselect import SelectorError
from lxml import etree

from ..core.models import Locator, Rect


# Attributes that usually carry meaning rather than styling
SEMANTIC_ATTRIBUTES = [
    'class', 'name', 'data-testid', 'data-id',
    'aria-label', 'title', 'role', 'type'
]

MAX_TEXT_LOCATOR_LENGTH = 50


def escape_xpath_literal(value: str) -> str:
    """
    Quote a string for use inside an XPath expression.

    XPath 1.0 has no escape character, so a value holding both quote kinds
    is spliced together with concat().

    Example:
        >>> escape_xpath_literal("it's")
        '"it\\'s"'
        >>> escape_xpath_literal('say "hi"')
        "'say \\"hi\\"'"
    """
    if "'" not in value:
        return f"'{value}'"
    if '"' not in value:
        return f'"{value}"'

    parts = []
    for i, chunk in enumerate(value.split("'")):
        if i > 0:
            parts.append('"\'"')
        if chunk:
            parts.append(f"'{chunk}'")
    return f"concat({', '.join(parts)})"


def _is_element(node) -> bool:
    return isinstance(node, etree._Element) and isinstance(node.tag, str)


def _element_children(node) -> list:
    return [child for child in node if _is_element(child)]


def _query(context, xpath: str) -> list:
    try:
        result = context.xpath(xpath)
    except (etree.XPathError, ValueError):
        return []
    if not isinstance(result, list):
        return []
    return result


def is_unique_match(element, xpath: str) -> bool:
    """True when xpath selects exactly one node and that node is element."""
    matches = _query(element.getroottree(), xpath)
    return len(matches) == 1 and matches[0] is element


def _direct_text(element) -> str:
    return ''.join(t for t in element.xpath('text()')).strip()


def build_xpath(element) -> str:
    """
    Build an XPath that currently resolves to exactly this element.

    Fallback chain, each step verified against the element's own tree:
        1. //*[@id="..."]
        2. //tag[@class="token"] for each class token
        3. semantic attributes alone, then combined with "and"
        4. short direct text: text()=, then contains(text(), ...)
        5. parent path + position among all element siblings
        6. parent path + position among same-tag siblings

    Raises ValueError for non-elements and when no step is unique.
    """
    if not _is_element(element):
        raise ValueError("build_xpath() needs an element node")

    tag = element.tag.lower()
    parent = element.getparent()

    if parent is None:
        return f'/{tag}'
    if tag == 'body' and parent.getparent() is None:
        xpath = f'/{parent.tag.lower()}/body'
        if is_unique_match(element, xpath):
            return xpath

    # 1. id
    element_id = (element.get('id') or '').strip()
    if element_id:
        xpath = f"//*[@id={escape_xpath_literal(element_id)}]"
        if is_unique_match(element, xpath):
            return xpath

    # 2. single class token
    class_value = (element.get('class') or '').strip()
    for token in class_value.split():
        xpath = f'//{tag}[@class={escape_xpath_literal(token)}]'
        if is_unique_match(element, xpath):
            return xpath

    # 3. semantic attributes, singly then together
    conditions = []
    for attr in SEMANTIC_ATTRIBUTES:
        value = element.get(attr)
        if not value:
            continue
        condition = f'@{attr}={escape_xpath_literal(value)}'
        conditions.append(condition)
        xpath = f'//{tag}[{condition}]'
        if is_unique_match(element, xpath):
            return xpath

    if len(conditions) > 1:
        xpath = f"//{tag}[{' and '.join(conditions)}]"
        if is_unique_match(element, xpath):
            return xpath

    # 4. short text
    text = _direct_text(element)
    if text and len(text) < MAX_TEXT_LOCATOR_LENGTH:
        literal = escape_xpath_literal(text)
        for xpath in (f'//{tag}[text()={literal}]',
                      f'//{tag}[contains(text(), {literal})]'):
            if is_unique_match(element, xpath):
                return xpath

    parent_path = build_xpath(parent)

    # 5. position among all siblings
    siblings = _element_children(parent)
    position = siblings.index(element) + 1
    xpath = f'{parent_path}/*[{position}]'
    if is_unique_match(element, xpath):
        return xpath

    # 6. position among same-tag siblings
    same_tag = [s for s in siblings if s.tag.lower() == tag]
    if len(same_tag) == 1:
        xpath = f'{parent_path}/{tag}'
    else:
        xpath = f'{parent_path}/{tag}[{same_tag.index(element) + 1}]'
    if is_unique_match(element, xpath):
        return xpath

    raise ValueError(f"No XPath resolves uniquely to <{tag}>")


def css_path(element) -> str:
    """Build an html > body > div:nth-child(n) style path."""
    parts = []
    node = element
    while _is_element(node):
        tag = node.tag.lower()
        parent = node.getparent()
        if parent is None or tag in ('html', 'body'):
            parts.append(tag)
        else:
            siblings = _element_children(parent)
            if len(siblings) == 1:
                parts.append(tag)
            else:
                parts.append(f'{tag}:nth-child({siblings.index(node) + 1})')
        node = parent
    return ' > '.join(reversed(parts))


def build_locator(element, bounding_box: Optional[Rect] = None) -> Locator:
    """Build a Locator for an lxml element."""
    return Locator(
        xpath=build_xpath(element),
        css_path=css_path(element),
        bounding_box=bounding_box
    )


def resolve_xpath(tree, xpath: str):
    """First element matching xpath, or None (never raises on bad input)."""
    if not xpath:
        return None
    for node in _query(tree, xpath):
        if _is_element(node):
            return node
    return None


def resolve_css(tree, selector: str):
    """First element matching a CSS selector, or None."""
    if not selector:
        return None
    root = tree.getroot() if hasattr(tree, 'getroot') else tree
    try:
        matches = root.cssselect(selector)
    except (SelectorError, etree.XPathError):
        return None
    return matches[0] if matches else None


# In-page rendition of build_xpath()/css_path(). Spliced into evaluate()
# scripts; defines xpathLiteral, isUniqueXPath, buildXPath and cssPath.
LOCATOR_JS = r"""
const SEMANTIC_ATTRIBUTES = ['class', 'name', 'data-testid', 'data-id',
                             'aria-label', 'title', 'role', 'type'];

const xpathLiteral = (value) => {
  if (!value.includes("'")) return `'${value}'`;
  if (!value.includes('"')) return `"${value}"`;
  const parts = [];
  value.split("'").forEach((chunk, i) => {
    if (i > 0) parts.push(`"'"`);
    if (chunk) parts.push(`'${chunk}'`);
  });
  return `concat(${parts.join(', ')})`;
};

const isUniqueXPath = (xpath, el) => {
  try {
    const result = document.evaluate(
      xpath, document, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null);
    return result.snapshotLength === 1 && result.snapshotItem(0) === el;
  } catch (e) {
    return false;
  }
};

const directText = (el) => Array.from(el.childNodes)
  .filter((n) => n.nodeType === Node.TEXT_NODE)
  .map((n) => n.textContent)
  .join('')
  .trim();

const buildXPath = (el) => {
  const tag = el.tagName.toLowerCase();
  const parent = el.parentElement;
  if (!parent) return `/${tag}`;
  if (el === document.body && isUniqueXPath('/html/body', el)) return '/html/body';

  const id = (el.getAttribute('id') || '').trim();
  if (id) {
    const xp = `//*[@id=${xpathLiteral(id)}]`;
    if (isUniqueXPath(xp, el)) return xp;
  }

  const classValue = (el.getAttribute('class') || '').trim();
  for (const token of classValue.split(/\s+/).filter(Boolean)) {
    const xp = `//${tag}[@class=${xpathLiteral(token)}]`;
    if (isUniqueXPath(xp, el)) return xp;
  }

  const conditions = [];
  for (const attr of SEMANTIC_ATTRIBUTES) {
    const value = el.getAttribute(attr);
    if (!value) continue;
    const condition = `@${attr}=${xpathLiteral(value)}`;
    conditions.push(condition);
    const xp = `//${tag}[${condition}]`;
    if (isUniqueXPath(xp, el)) return xp;
  }
  if (conditions.length > 1) {
    const xp = `//${tag}[${conditions.join(' and ')}]`;
    if (isUniqueXPath(xp, el)) return xp;
  }

  const text = directText(el);
  if (text && text.length < 50) {
    const literal = xpathLiteral(text);
    for (const xp of [`//${tag}[text()=${literal}]`,
                      `//${tag}[contains(text(), ${literal})]`]) {
      if (isUniqueXPath(xp, el)) return xp;
    }
  }

  const parentPath = buildXPath(parent);
  const siblings = Array.from(parent.children);
  const positional = `${parentPath}/*[${siblings.indexOf(el) + 1}]`;
  if (isUniqueXPath(positional, el)) return positional;

  const sameTag = siblings.filter((s) => s.tagName === el.tagName);
  const byTag = sameTag.length === 1
    ? `${parentPath}/${tag}`
    : `${parentPath}/${tag}[${sameTag.indexOf(el) + 1}]`;
  if (isUniqueXPath(byTag, el)) return byTag;
  throw new Error(`No XPath resolves uniquely to <${tag}>`);
};

const cssPath = (el) => {
  const parts = [];
  let node = el;
  while (node && node.nodeType === Node.ELEMENT_NODE) {
    const tag = node.tagName.toLowerCase();
    const parent = node.parentElement;
    if (!parent || tag === 'html' || tag === 'body') {
      parts.push(tag);
    } else {
      const siblings = Array.from(parent.children);
      parts.push(siblings.length === 1
        ? tag
        : `${tag}:nth-child(${siblings.indexOf(node) + 1})`);
    }
    node = parent;
  }
  return parts.reverse().join(' > ');
};

const nodeAt = (xpath) => {
  try {
    return document.evaluate(
      xpath, document, null, XPathResult.FIRST_ORDERED_NODE_TYPE, null
    ).singleNodeValue;
  } catch (e) {
    return null;
  }
};
"""
