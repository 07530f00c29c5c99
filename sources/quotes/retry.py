"""
Retry policy around a single provider call.

Linear backoff: the wait before retry k+1 is (k+1) * backoff_base seconds.
Exhausted retries are absorbed into the outcome as "Error" sentinels so one
bad ticker never aborts a batch.
"""

import logging
import time
from typing import Callable, List, Optional

from models import FETCH_ERROR, FetchOutcome, OutcomeStatus
from sources.quotes.merge import select_fields, sentinel_data
from sources.quotes.providers.base import ProviderError, QuoteDataProvider


logger = logging.getLogger("quotes.retry")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 0.5


class RetryPolicy:
    """Bounded retry with linear backoff for one ticker lookup."""

    def __init__(
        self,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_base: float = DEFAULT_BACKOFF_SECONDS,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if backoff_base < 0:
            raise ValueError("backoff_base must be >= 0")
        self.max_attempts = int(max_attempts)
        self.backoff_base = float(backoff_base)
        self._sleep = sleep or time.sleep

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the failed 0-indexed ``attempt``."""
        return (attempt + 1) * self.backoff_base

    def run(self, provider: QuoteDataProvider, ticker: str, field_ids: List[str]) -> FetchOutcome:
        last_err: Optional[ProviderError] = None
        for attempt in range(self.max_attempts):
            try:
                stats = provider.fetch_statistics(ticker)
            except ProviderError as e:
                last_err = e
                logger.warning(f"{ticker}: attempt {attempt + 1}/{self.max_attempts} failed - {e}")
                if attempt + 1 < self.max_attempts:
                    self._sleep(self.delay_for(attempt))
                continue

            return FetchOutcome(
                ticker=ticker,
                status=OutcomeStatus.SUCCESS,
                data=select_fields(stats, field_ids),
                attempts=attempt + 1,
            )

        logger.error(f"{ticker}: giving up after {self.max_attempts} attempts - {last_err}")
        return FetchOutcome(
            ticker=ticker,
            status=OutcomeStatus.PROVIDER_ERROR,
            data=sentinel_data(field_ids, FETCH_ERROR),
            attempts=self.max_attempts,
        )
