"""File storage for scrape results."""

import os
import re
from typing import Dict
from urllib.parse import urlparse

from ..core.models import ScrapeResult


class FileStorage:
    """Save scraped HTML and Markdown next to each other."""

    @staticmethod
    def basename_for(url: str) -> str:
        """Filesystem-safe name derived from a URL."""
        parsed = urlparse(url)
        name = f"{parsed.netloc}{parsed.path}".strip('/') or 'page'
        name = re.sub(r'[^A-Za-z0-9._-]+', '_', name)
        return name[:120].strip('_') or 'page'

    @staticmethod
    def save(result: ScrapeResult, output_dir: str, basename: str = None) -> Dict[str, str]:
        """
        Write result.html and result.markdown to output_dir.

        Markdown that was not narrowed by a query is saved as <name>.raw.md.

        Args:
            result: A successful (or partial) ScrapeResult
            output_dir: Directory, created if missing
            basename: File name without extension (default: from the URL)

        Returns:
            Mapping of 'html'/'markdown' to the written paths
        """
        os.makedirs(output_dir, exist_ok=True)
        basename = basename or FileStorage.basename_for(result.url)

        paths = {
            'html': os.path.join(output_dir, f"{basename}.html"),
            'markdown': os.path.join(
                output_dir,
                f"{basename}.md" if result.query else f"{basename}.raw.md"
            ),
        }

        with open(paths['html'], 'w', encoding='utf-8') as f:
            f.write(result.html)
        with open(paths['markdown'], 'w', encoding='utf-8') as f:
            f.write(result.markdown)

        print(f"\n{'='*80}")
        print(f"✓ Saved HTML to {paths['html']}")
        print(f"✓ Saved Markdown to {paths['markdown']}")
        print(f"{'='*80}\n")

        return paths
