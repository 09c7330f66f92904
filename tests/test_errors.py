"""Tests for error classification and the session retry policy."""

import asyncio

import pytest

from contextscraper.core.errors import (
    ErrorCategory,
    ScrapeCancelled,
    ScrapeError,
    classify_error,
    error_stats,
    handle_error,
    is_retryable_error,
    reset_error_stats,
)
from contextscraper.core.retry import RetryPolicy


@pytest.fixture(autouse=True)
def fresh_stats():
    reset_error_stats()
    yield
    reset_error_stats()


@pytest.mark.parametrize("error, category", [
    (Exception("net::ERR_NAME_NOT_RESOLVED at https://nowhere.invalid"), ErrorCategory.NETWORK),
    (ConnectionResetError("peer went away"), ErrorCategory.NETWORK),
    (Exception("Page.goto: Timeout 10000ms exceeded."), ErrorCategory.TIMEOUT),
    (asyncio.TimeoutError(), ErrorCategory.TIMEOUT),
    (Exception("429 Resource has been exhausted (e.g. check quota)."), ErrorCategory.RATE_LIMIT),
    (Exception("Target closed"), ErrorCategory.BROWSER),
    (FileNotFoundError("No such file or directory: 'out/x.md'"), ErrorCategory.FILESYSTEM),
    (Exception("Gemini returned no candidates"), ErrorCategory.AI),
    (Exception("something odd"), ErrorCategory.UNKNOWN),
])
def test_classify_error(error, category):
    assert classify_error(error) == category


def test_rate_limit_wins_over_network_words():
    assert classify_error(Exception("network said: too many requests")) == ErrorCategory.RATE_LIMIT


def test_status_code_429():
    error = Exception("slow down")
    error.status = 429
    assert classify_error(error) == ErrorCategory.RATE_LIMIT


def test_scrape_error_defaults_follow_category():
    network = ScrapeError("down", category=ErrorCategory.NETWORK)
    assert network.should_retry is True
    assert network.retry_strategy == 'exponential'

    browser = ScrapeError("crashed", category=ErrorCategory.BROWSER)
    assert browser.retry_strategy == 'linear'

    ai = ScrapeError("bad json", category=ErrorCategory.AI)
    assert ai.should_retry is False
    assert ai.retry_strategy == 'none'
    assert ai.error_id.startswith('ai_')


def test_rate_limit_is_never_retryable():
    error = ScrapeError("quota", category=ErrorCategory.RATE_LIMIT, should_retry=True)
    assert not is_retryable_error(error)
    assert not is_retryable_error(Exception("429 Too Many Requests"))


def test_cancelled_is_not_retryable():
    error = ScrapeCancelled('navigate')
    assert not is_retryable_error(error)
    assert error.context['phase'] == 'navigate'


def test_handle_error_wraps_and_counts():
    error = handle_error(Exception("net::ERR_CONNECTION_RESET"), context={'phase': 'navigate'})

    assert isinstance(error, ScrapeError)
    assert error.category == ErrorCategory.NETWORK
    assert error.context['phase'] == 'navigate'
    assert isinstance(error.original, Exception)
    assert error_stats() == {'network': 1}


def test_handle_error_override_retryable():
    error = handle_error(Exception("net::ERR_CONNECTION_RESET"), retryable=False)
    assert error.should_retry is False
    assert error.retry_strategy == 'none'


def test_to_dict_is_serializable():
    data = ScrapeError("x", category=ErrorCategory.TIMEOUT, context={'phase': 'stabilize'}).to_dict()
    assert data['category'] == 'timeout'
    assert data['context'] == {'phase': 'stabilize'}


def test_policy_rejects_zero_attempts():
    with pytest.raises(ValueError):
        RetryPolicy(max_attempts=0)


def test_delay_strategies():
    policy = RetryPolicy(max_attempts=5, base_delay=1.0, max_delay=3.0)
    network = ScrapeError("down", category=ErrorCategory.NETWORK)
    browser = ScrapeError("crash", category=ErrorCategory.BROWSER)

    assert [policy.delay_for(network, n) for n in (1, 2, 3)] == [1.0, 2.0, 3.0]
    assert [policy.delay_for(browser, n) for n in (1, 2, 3)] == [1.0, 1.0, 1.0]


@pytest.mark.asyncio
async def test_permanent_retryable_error_uses_every_attempt(sleeps):
    calls = []

    async def operation(attempt):
        calls.append(attempt)
        raise Exception("net::ERR_CONNECTION_REFUSED")

    with pytest.raises(ScrapeError) as exc_info:
        await RetryPolicy(max_attempts=3, base_delay=0.5).run(operation)

    assert calls == [1, 2, 3]
    assert exc_info.value.context['attempts'] == 3
    assert sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_non_retryable_error_stops_at_once(sleeps):
    calls = []

    async def operation(attempt):
        calls.append(attempt)
        raise ScrapeError("bad answer", category=ErrorCategory.AI)

    with pytest.raises(ScrapeError):
        await RetryPolicy(max_attempts=3).run(operation)

    assert calls == [1]
    assert sleeps == []


@pytest.mark.asyncio
async def test_rate_limit_stops_at_once(sleeps):
    calls = []

    async def operation(attempt):
        calls.append(attempt)
        raise Exception("429 Too Many Requests")

    with pytest.raises(ScrapeError) as exc_info:
        await RetryPolicy(max_attempts=3).run(operation)

    assert calls == [1]
    assert exc_info.value.category == ErrorCategory.RATE_LIMIT


@pytest.mark.asyncio
async def test_recovers_on_second_attempt(sleeps):
    retries = []

    async def operation(attempt):
        if attempt == 1:
            raise Exception("Target closed")
        return "ok"

    result = await RetryPolicy(max_attempts=2, base_delay=0).run(
        operation, on_retry=lambda error, attempt, delay: retries.append((attempt, delay))
    )

    assert result == "ok"
    assert retries == [(1, 0)]
