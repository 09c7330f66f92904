"""Setup file for the package."""

from setuptools import setup, find_packages

setup(
    name="context-scraper",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "playwright>=1.40.0",
        "python-dotenv>=1.0.0",
        "google-generativeai>=0.3.0",
        "lxml>=4.9.0",
        "cssselect>=1.2.0",
        "markdownify>=0.11.0",
    ],
    extras_require={
        'test': [
            "pytest>=7.0.0",
            "pytest-asyncio>=0.21.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'context-scraper=contextscraper.main:main',
        ],
    },
    description="Web content extractor that reveals content hidden behind interactive UI and returns LLM-ready Markdown",
    python_requires='>=3.9',
)
