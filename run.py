"""Entry point for the context scraper - run with: python run.py <url>"""

import sys

from contextscraper.main import main


if __name__ == "__main__":
    sys.exit(main())
