"""Main entry point for the scraper."""

import argparse
import asyncio
import os
import sys

from .core.config import ScraperConfig
from .core.errors import error_stats
from .core.scraper import ScrapingSession
from .storage.file_storage import FileStorage


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='Extract LLM-ready Markdown from a web page, including content behind tabs, accordions and modals',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py https://example.com                         # Fast static extraction
  python run.py https://example.com --mode beast            # Click through interactive content
  python run.py https://example.com --query "pricing"       # Keep only pricing content (AI)
  python run.py https://example.com --output docs/page      # Custom output name
  python run.py https://example.com --no-save               # Print markdown instead of saving
        """
    )

    parser.add_argument('url', type=str, help='Page to scrape')

    parser.add_argument(
        '--mode',
        type=str,
        default='normal',
        choices=['normal', 'beast'],
        help='normal: static extraction, beast: AI-driven interaction (default: normal)'
    )

    parser.add_argument(
        '--query',
        type=str,
        default=None,
        help='Focus the output on this topic (uses Gemini)'
    )

    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output file name without extension (default: derived from URL)'
    )

    parser.add_argument(
        '--output-dir',
        type=str,
        default='output',
        help='Output directory (default: output)'
    )

    parser.add_argument(
        '--headful',
        action='store_true',
        help='Show the browser window'
    )

    parser.add_argument(
        '--no-save',
        action='store_true',
        help='Print markdown to stdout instead of writing files'
    )

    return parser


def main(argv=None) -> int:
    """Main function to run the scraper."""
    args = build_parser().parse_args(argv)

    config = ScraperConfig(
        mode=args.mode,
        query=args.query,
        output_dir=args.output_dir,
        save_output=not args.no_save
    )
    if args.headful:
        config.headless = False

    if not config.validate():
        print("⚠ Warning: Configuration validation failed, continuing anyway...")

    result = asyncio.run(ScrapingSession(args.url, config).run())

    if result.status == 'failed':
        print(f"\n❌ {result.error}")
        stats = error_stats()
        if stats:
            print(f"   Errors by category: {stats}")
        return 1

    if result.enhanced_error is not None:
        print(f"\n⚠ Partial result: {result.enhanced_error.user_message}")

    if config.save_output:
        output_dir, basename = os.path.split(args.output or '')
        FileStorage.save(result, output_dir or config.output_dir, basename or None)
    else:
        print(result.markdown)

    print(f"\n✅ Done in {result.processing_time:.1f}s ({result.attempts} attempt(s), "
          f"{result.revealed_items} revealed item(s)).\n")

    print("⏱ Phases:")
    for record in result.phase_log:
        mark = "✓" if record.success else "✗"
        print(f"   {mark} {record.name:<18} {record.duration:6.2f}s")
    print()

    return 0


if __name__ == "__main__":
    sys.exit(main())
