"""Tests for ticker input helpers."""

import pytest

from utils.input_parser import clean_ticker, detect_ticker_column, parse_input_file


def test_parse_input_file(tmp_path):
    path = tmp_path / "tickers.txt"
    path.write_text("# header comment\naapl\n\n  msft  \nbrk-b # berkshire\n#skipped\n")
    assert parse_input_file(str(path)) == ["AAPL", "MSFT", "BRK-B"]


def test_parse_input_file_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        parse_input_file(str(tmp_path / "nope.txt"))


@pytest.mark.parametrize("columns, expected", [
    (["Name", "Symbol", "Qty"], "Symbol"),
    (["Name", "TICKER"], "TICKER"),
    (["Company", "Stock Code"], "Stock Code"),
    (["Name", "ISIN code", "Ticker"], "ISIN code"),
    (["Name", "Qty"], "Name"),
    ([], None),
])
def test_detect_ticker_column(columns, expected):
    assert detect_ticker_column(columns) == expected


@pytest.mark.parametrize("value, expected", [
    ("AAPL", "AAPL"),
    ("  msft\t", "msft"),
    ("", None),
    ("   ", None),
    (None, None),
    (123, None),
    (1.5, None),
])
def test_clean_ticker(value, expected):
    assert clean_ticker(value) == expected
