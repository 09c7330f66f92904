"""Content extraction: AI element discovery, reconciliation and Markdown."""

from .content_reconciler import ContentReconciler
from .element_discovery import ElementDiscovery
from .markdown_converter import MarkdownImprover, convert_to_markdown

__all__ = [
    'ContentReconciler',
    'ElementDiscovery',
    'MarkdownImprover',
    'convert_to_markdown'
]
