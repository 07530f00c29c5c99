"""
Yahoo Finance quote statistics provider.

Reads the quoteSummary endpoint through yfinance's data layer, which takes
care of Yahoo's cookie/crumb handshake and user-agent headers.
https://query2.finance.yahoo.com/v10/finance/quoteSummary/{symbol}
"""

import logging
from typing import Any, Dict, Optional

from yfinance.data import YfData

from .base import QuoteDataProvider, ProviderError, RateLimitError, DataNotFoundError


logger = logging.getLogger("quotes.yahoo")

QUOTE_SUMMARY_URL = "https://query2.finance.yahoo.com/v10/finance/quoteSummary"

# Response groups merged into one flat mapping, lowest priority first.
# summaryDetail wins over defaultKeyStatistics for keys both report (beta, ...).
STATISTIC_GROUPS = ("defaultKeyStatistics", "summaryDetail")


def _unwrap(value: Any) -> Any:
    """
    Normalize one quoteSummary value.

    Formatted responses wrap numbers as {"raw": 1.2, "fmt": "1.20"}; Yahoo
    also sends {} for statistics it has no value for.
    """
    if isinstance(value, dict):
        if "raw" in value:
            return value["raw"]
        if not value:
            return None
    return value


def merge_groups(result: Dict[str, Any], groups=STATISTIC_GROUPS) -> Dict[str, Any]:
    """Flatten the requested groups of one quoteSummary result, later groups winning."""
    merged: Dict[str, Any] = {}
    for group in groups:
        section = result.get(group) or {}
        if not isinstance(section, dict):
            raise ProviderError(f"Malformed '{group}' section: {type(section).__name__}")
        for key, value in section.items():
            merged[key] = _unwrap(value)
    return merged


class YahooQuoteProvider(QuoteDataProvider):
    """
    Yahoo Finance statistics provider.

    No API key. Yahoo throttles per IP without publishing limits, so callers
    should keep requests sequential and paced.

    The default client is shared: yfinance's ``YfData`` is a process-wide
    singleton, so every provider built without an explicit ``client`` (one
    per API request) reuses the same HTTP session and cookie/crumb. Pass a
    client to isolate a provider.
    """

    def __init__(self, client: Optional[Any] = None, timeout: int = 30, groups=STATISTIC_GROUPS):
        """
        Args:
            client: Object exposing ``get_raw_json(url, params=..., timeout=...)``.
                    Defaults to yfinance's ``YfData``.
            timeout: Per-request network timeout in seconds
            groups: quoteSummary modules to request, lowest priority first
        """
        super().__init__()
        self.client = client if client is not None else YfData()
        self.timeout = timeout
        self.groups = tuple(groups)
        self.name = "yahoo"

    def _request(self, ticker: str) -> Dict:
        params = {
            "modules": ",".join(self.groups),
            "corsDomain": "finance.yahoo.com",
            "formatted": "false",
            "symbol": ticker,
        }
        try:
            return self.client.get_raw_json(f"{QUOTE_SUMMARY_URL}/{ticker}", params=params, timeout=self.timeout)
        except ProviderError:
            raise
        except Exception as e:
            status = getattr(getattr(e, "response", None), "status_code", None)
            if status == 429:
                raise RateLimitError(f"Yahoo rate limit exceeded for {ticker}") from e
            if status == 404:
                raise DataNotFoundError(f"Quote not found for symbol: {ticker}") from e
            raise ProviderError(f"Request failed for {ticker}: {e}") from e

    def fetch_statistics(self, ticker: str) -> Dict[str, Any]:
        logger.debug(f"Fetching statistics for {ticker}")
        payload = self._request(ticker)

        if not isinstance(payload, dict) or "quoteSummary" not in payload:
            raise ProviderError(f"{ticker}: unexpected response shape")

        summary = payload["quoteSummary"] or {}
        if not isinstance(summary, dict):
            raise ProviderError(f"{ticker}: unexpected response shape")
        error = summary.get("error")
        if error:
            description = error.get("description") if isinstance(error, dict) else str(error)
            raise DataNotFoundError(f"{ticker}: {description}")

        results = summary.get("result") or []
        if not isinstance(results, list):
            raise ProviderError(f"{ticker}: unexpected response shape")
        if not results or not isinstance(results[0], dict):
            raise DataNotFoundError(f"{ticker}: no quote summary returned")

        stats = merge_groups(results[0], self.groups)
        logger.debug(f"{ticker}: {len(stats)} statistics")
        return stats
