"""HTML to Markdown conversion.

convert_to_markdown() is a pure function: HTML in, Markdown out. The
optional MarkdownImprover rewrites the result with Gemini when the user
asked a specific question about the page.
"""

import re
from typing import Optional
from urllib.parse import urljoin

from markdownify import markdownify

from ..core.errors import ScrapeError
from ..utils.html_sanitizer import parse_document, remove_elements, serialize
from .gemini_client import GeminiClient
from .prompts import build_markdown_improvement_prompt


# Vue ("[", "]") and React ("$?", "/$?") hydration markers, plus empty comments
_FRAMEWORK_MARKER = re.compile(r'^\s*(\[|\]|\$\?|/\$\?)?\s*$')
_SKIPPED_HREF_PREFIXES = ('http', '#', 'javascript:', 'mailto:', 'tel:', 'data:')
_SKIPPED_SRC_PREFIXES = ('http', 'data:', '//')
_BLANK_LINES = re.compile(r'\n{3,}')


def fix_and_format_html(html: str) -> str:
    """Drop framework hydration comments and re-serialize the document."""
    root = parse_document(html)
    for comment in root.xpath('//comment()'):
        if _FRAMEWORK_MARKER.match(comment.text or ''):
            parent = comment.getparent()
            if parent is None:
                continue
            # Keep the comment's tail text in the document
            if comment.tail:
                previous = comment.getprevious()
                if previous is not None:
                    previous.tail = (previous.tail or '') + comment.tail
                else:
                    parent.text = (parent.text or '') + comment.tail
            parent.remove(comment)
    return serialize(root)


def make_urls_absolute(html: str, base_url: str) -> str:
    """Rewrite relative href/src attributes against base_url."""
    root = parse_document(html)
    for element in root.iter():
        if not isinstance(element.tag, str):
            continue
        href = element.get('href')
        if href and not href.startswith(_SKIPPED_HREF_PREFIXES):
            element.set('href', urljoin(base_url, href))
        src = element.get('src')
        if src and not src.startswith(_SKIPPED_SRC_PREFIXES):
            element.set('src', urljoin(base_url, src))
    return serialize(root)


def convert_to_markdown(html: str, base_url: Optional[str] = None) -> str:
    """
    Convert HTML to Markdown.

    Args:
        html: Page or fragment HTML
        base_url: When given, relative links and images become absolute

    Returns:
        Markdown with ATX headings and "-" bullets
    """
    if not html or not html.strip():
        return ''

    if base_url:
        html = make_urls_absolute(html, base_url)

    root = parse_document(html)
    remove_elements(root, ('head', 'script', 'style', 'noscript', 'template'))

    markdown = markdownify(
        serialize(root),
        heading_style='ATX',
        bullets='-',
        escape_asterisks=False,
        escape_underscores=False,
    )

    lines = [line.rstrip() for line in markdown.splitlines()]
    markdown = _BLANK_LINES.sub('\n\n', '\n'.join(lines)).strip()
    return markdown + '\n' if markdown else ''


class MarkdownImprover:
    """Gemini pass that tidies converted Markdown and narrows it to a query."""

    def __init__(self, client: GeminiClient):
        self.client = client

    async def improve(self, markdown: str, query: Optional[str] = None) -> str:
        """
        Returns:
            Improved Markdown, or '' when the model failed or returned nothing
        """
        if not markdown.strip():
            return ''

        print(f"  [AI] Improving markdown ({len(markdown)} chars)" + (f" for: {query}" if query else ""))
        try:
            improved = await self.client.generate(
                build_markdown_improvement_prompt(markdown, query)
            )
        except ScrapeError as e:
            print(f"    ✗ Markdown improvement failed: {e}")
            return ''

        improved = re.sub(r'^```(?:markdown)?\s*\n|\n```\s*$', '', improved.strip())
        if not improved.strip():
            print("    ⚠ Model returned empty markdown")
            return ''

        print(f"    ✓ Improved markdown: {len(improved)} chars")
        return improved
