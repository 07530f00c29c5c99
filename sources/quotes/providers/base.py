"""
Base provider interface for quote statistics sources.

All quote data providers must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class QuoteDataProvider(ABC):
    """Abstract base class for quote statistics providers."""

    def __init__(self):
        self.name = self.__class__.__name__

    @abstractmethod
    def fetch_statistics(self, ticker: str) -> Dict[str, Any]:
        """
        Fetch the statistics available for one ticker.

        Args:
            ticker: Trimmed ticker symbol (e.g. "AAPL")

        Returns:
            Flat dict of provider key -> value. Keys the provider knows about
            but has no value for map to None.

        Raises:
            ProviderError: network failure, unknown symbol or malformed response
        """
        pass


class ProviderError(Exception):
    """Base exception for provider-specific errors."""
    pass


class RateLimitError(ProviderError):
    """Raised when API rate limit is exceeded."""
    pass


class DataNotFoundError(ProviderError):
    """Raised when the provider has no data for a ticker."""
    pass
