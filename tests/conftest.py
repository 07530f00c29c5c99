"""Shared fixtures for the test suite."""

import pytest

from sources.quotes.pipeline import TickerEnricher
from sources.quotes.providers.base import QuoteDataProvider
from sources.quotes.retry import RetryPolicy


class FakeProvider(QuoteDataProvider):
    """
    Scripted provider.

    ``responses`` maps ticker -> stats dict, exception, or a list of those
    consumed one call at a time (the last entry repeats).
    """

    def __init__(self, responses=None):
        super().__init__()
        self.name = "fake"
        self.responses = responses or {}
        self.calls = []

    def fetch_statistics(self, ticker):
        self.calls.append(ticker)
        result = self.responses.get(ticker, {})
        if isinstance(result, list):
            result = result.pop(0) if len(result) > 1 else result[0]
        if isinstance(result, Exception):
            raise result
        return dict(result)


class SleepRecorder:
    """Stands in for time.sleep and remembers every requested pause."""

    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def make_provider():
    """Factory fixture: call with a responses dict."""
    def _make(responses=None):
        return FakeProvider(responses)
    return _make


@pytest.fixture
def make_enricher(sleeps):
    """TickerEnricher with recorded (never real) sleeps."""
    def _make(provider, max_attempts=3, row_delay=0.15):
        return TickerEnricher(
            provider,
            retry_policy=RetryPolicy(max_attempts=max_attempts, sleep=sleeps),
            row_delay=row_delay,
            sleep=sleeps,
        )
    return _make
