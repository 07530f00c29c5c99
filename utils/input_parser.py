"""
Ticker input helpers: text ticker lists and spreadsheet ticker columns.
"""

import re
from typing import Any, Optional, Sequence


TICKER_COLUMN_PATTERN = re.compile(r"symbol|ticker|stock|code", re.IGNORECASE)


def parse_input_file(path: str) -> list[str]:
    """
    Read tickers from a text file (one per line, # for comments, blank lines ignored).
    Returns list of uppercase ticker strings.
    """
    tickers = []
    with open(path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            # Take first token (in case of inline comments)
            ticker = line.split("#")[0].strip().upper()
            if ticker:
                tickers.append(ticker)
    return tickers


def detect_ticker_column(columns: Sequence[str]) -> Optional[str]:
    """
    Pick the column holding ticker symbols.

    First column whose name mentions symbol/ticker/stock/code, otherwise the
    first column. None when there are no columns at all.
    """
    for col in columns:
        if TICKER_COLUMN_PATTERN.search(str(col)):
            return col
    return columns[0] if columns else None


def clean_ticker(value: Any) -> Optional[str]:
    """Trimmed ticker text, or None when the cell can't be a ticker (blank, numeric, empty)."""
    if not isinstance(value, str):
        return None
    ticker = value.strip()
    return ticker or None
