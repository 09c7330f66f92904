"""Tests for configuration and result storage."""

import os

from contextscraper.core.config import ScraperConfig
from contextscraper.core.models import ScrapeMode, ScrapeResult
from contextscraper.storage.file_storage import FileStorage


def test_defaults():
    config = ScraperConfig(gemini_api_key='k')

    assert config.mode == 'normal'
    assert config.max_retry_count == 2
    assert config.retry_delay == 1000
    assert config.page_timeout == 10000
    assert config.max_snapshot_chars == 800000
    assert not config.uses_ai
    assert config.validate()


def test_env_overrides(monkeypatch):
    monkeypatch.setenv('MAX_RETRY_COUNT', '4')
    monkeypatch.setenv('RETRY_DELAY', '250')
    monkeypatch.setenv('SCRAPER_HEADLESS', 'false')

    config = ScraperConfig()

    assert config.max_retry_count == 4
    assert config.retry_delay == 250
    assert config.headless is False


def test_bad_env_value_keeps_default(monkeypatch):
    monkeypatch.setenv('PAGE_TIMEOUT', 'soon')
    assert ScraperConfig().page_timeout == 10000


def test_validate_flags_problems(monkeypatch):
    monkeypatch.delenv('GEMINI_API_KEY', raising=False)
    monkeypatch.delenv('GOOGLE_GEMINI_KEY', raising=False)

    assert not ScraperConfig(mode='turbo').validate()
    assert not ScraperConfig(mode='beast').validate()
    assert ScraperConfig(mode='BEAST', gemini_api_key='k').uses_ai


def test_basename_for_url():
    assert FileStorage.basename_for('https://example.com/docs/page?x=1') == 'example.com_docs_page'
    assert FileStorage.basename_for('https://example.com/') == 'example.com'
    assert FileStorage.basename_for('') == 'page'


def test_save_writes_html_and_raw_markdown(tmp_path):
    result = ScrapeResult(True, 'https://example.com/a', ScrapeMode.NORMAL,
                          markdown='# A\n', html='<html></html>')

    paths = FileStorage.save(result, str(tmp_path / 'out'))

    assert paths['markdown'].endswith('example.com_a.raw.md')
    with open(paths['markdown'], encoding='utf-8') as f:
        assert f.read() == '# A\n'
    assert os.path.exists(paths['html'])


def test_save_with_query_uses_plain_md(tmp_path):
    result = ScrapeResult(True, 'https://example.com/a', ScrapeMode.BEAST,
                          markdown='# Pricing\n', query='pricing')

    paths = FileStorage.save(result, str(tmp_path), basename='custom')

    assert paths['markdown'] == os.path.join(str(tmp_path), 'custom.md')
