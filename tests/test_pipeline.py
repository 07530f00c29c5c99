"""Tests for TickerEnricher (sequential batch runner) and the CLI entry point."""

import pytest

from models import OutcomeStatus
from sources.quotes.pipeline import TickerEnricher, main, output_filename
from sources.quotes.providers.base import ProviderError
from utils.excel_formatter import encode_rows, read_rows


# ---------------------------------------------------------------------------
# TickerEnricher.run
# ---------------------------------------------------------------------------

class TestTickerEnricher:
    def test_mixed_batch_scenario(self, make_provider, make_enricher, sleeps):
        provider = make_provider({
            "AAPL": {"floatShares": 1.2e9},
            "ZZZZINVALID": ProviderError("Quote not found"),
        })
        rows = [{"Symbol": "AAPL"}, {"Symbol": ""}, {"Symbol": "ZZZZINVALID"}]

        output = make_enricher(provider).run(rows, "Symbol", ["floatShares"])

        assert output == [
            {"Symbol": "AAPL", "Float": 1.2e9},
            {"Symbol": "", "Float": "N/A", "Error": "Invalid Ticker"},
            {"Symbol": "ZZZZINVALID", "Float": "Error"},
        ]
        assert provider.calls == ["AAPL", "ZZZZINVALID", "ZZZZINVALID", "ZZZZINVALID"]
        # pacing after rows 1 and 2, backoff inside row 3, nothing after the last row
        assert sleeps.calls == [0.15, 0.15, 0.5, 1.0]

    @pytest.mark.parametrize("cell", ["", "   ", None, 42, 3.5])
    def test_invalid_ticker_cells_make_no_call(self, make_provider, make_enricher, cell):
        provider = make_provider()
        output = make_enricher(provider).run([{"Ticker": cell}], "Ticker", ["floatShares", "beta"])

        assert output == [{"Ticker": cell, "Float": "N/A", "Beta": "N/A", "Error": "Invalid Ticker"}]
        assert provider.calls == []

    def test_missing_ticker_column_is_invalid(self, make_provider, make_enricher):
        provider = make_provider()
        output = make_enricher(provider).run([{"Name": "Apple"}], "Symbol", ["floatShares"])
        assert output[0]["Error"] == "Invalid Ticker"
        assert provider.calls == []

    def test_ticker_is_trimmed(self, make_provider, make_enricher):
        provider = make_provider({"MSFT": {"beta": 0.9}})
        output = make_enricher(provider).run([{"Symbol": "  MSFT \n"}], "Symbol", ["beta"])
        assert provider.calls == ["MSFT"]
        assert output[0] == {"Symbol": "  MSFT \n", "Beta": 0.9}

    def test_every_row_gets_every_selected_label(self, make_provider, make_enricher):
        provider = make_provider({
            "AAPL": {"floatShares": 1, "sharesOutstanding": 2, "beta": 3},
            "MSFT": {"floatShares": 4, "sharesOutstanding": 5, "beta": 6},
        })
        fields = ["floatShares", "sharesOutstanding", "beta"]
        output = make_enricher(provider).run([{"Symbol": "AAPL"}, {"Symbol": "MSFT"}], "Symbol", fields)

        for row in output:
            assert {"Float", "Shares Outstanding", "Beta"} <= set(row)
            assert "N/A" not in row.values()
            assert "Error" not in row

    def test_order_and_length_preserved(self, make_provider, make_enricher):
        tickers = ["A", "", "B", "BAD", "C", None, "D"]
        provider = make_provider({t: {"beta": i} for i, t in enumerate(tickers) if t})
        provider.responses["BAD"] = ProviderError("down")
        rows = [{"Symbol": t, "Pos": i} for i, t in enumerate(tickers)]

        output = make_enricher(provider, max_attempts=2).run(rows, "Symbol", ["beta"])

        assert len(output) == len(rows)
        assert [r["Pos"] for r in output] == list(range(len(tickers)))
        assert [r["Symbol"] for r in output] == tickers

    def test_duplicate_fields_are_idempotent(self, make_provider, make_enricher):
        provider = make_provider({"AAPL": {"beta": 1.1}})
        once = make_enricher(provider).run([{"Symbol": "AAPL"}], "Symbol", ["beta"])
        twice = make_enricher(provider).run([{"Symbol": "AAPL"}], "Symbol", ["beta", "beta"])
        assert once == twice

    def test_no_fields_rejected_before_any_call(self, make_provider, make_enricher):
        provider = make_provider()
        with pytest.raises(ValueError, match="No fields selected"):
            make_enricher(provider).run([{"Symbol": "AAPL"}], "Symbol", [])
        assert provider.calls == []

    def test_single_row_has_no_pacing(self, make_provider, make_enricher, sleeps):
        provider = make_provider({"AAPL": {"beta": 1}})
        make_enricher(provider).run([{"Symbol": "AAPL"}], "Symbol", ["beta"])
        assert sleeps.calls == []

    def test_zero_delay_skips_pacing(self, make_provider, make_enricher, sleeps):
        provider = make_provider({"A": {}, "B": {}})
        make_enricher(provider, row_delay=0).run([{"Symbol": "A"}, {"Symbol": "B"}], "Symbol", ["beta"])
        assert sleeps.calls == []

    def test_negative_delay_rejected(self, make_provider):
        with pytest.raises(ValueError):
            TickerEnricher(make_provider(), row_delay=-1)


# ---------------------------------------------------------------------------
# fetch_outcomes / enrich_rows
# ---------------------------------------------------------------------------

def test_fetch_outcomes_tags_each_ticker(make_provider, make_enricher):
    provider = make_provider({"AAPL": {"beta": 1.2}, "BAD": ProviderError("x")})
    outcomes = make_enricher(provider, max_attempts=1).fetch_outcomes(["AAPL", " ", "BAD"], ["beta"])

    assert [o.status for o in outcomes] == [
        OutcomeStatus.SUCCESS,
        OutcomeStatus.INVALID_TICKER,
        OutcomeStatus.PROVIDER_ERROR,
    ]
    assert outcomes[1].attempts == 0
    assert outcomes[2].attempts == 1


def test_enrich_rows_detects_ticker_column(make_provider, make_enricher):
    provider = make_provider({"NVDA": {"floatShares": 24e9}})
    rows = [{"Company": "Nvidia", "Stock Code": "NVDA"}]
    column, output = make_enricher(provider).enrich_rows(rows, ["floatShares"])

    assert column == "Stock Code"
    assert output == [{"Company": "Nvidia", "Stock Code": "NVDA", "Float": 24e9}]


def test_enrich_rows_falls_back_to_first_column(make_provider, make_enricher):
    provider = make_provider({"JPM": {"beta": 1.1}})
    column, output = make_enricher(provider).enrich_rows([{"Name": "JPM", "Qty": 10}], ["beta"])
    assert column == "Name"
    assert output[0]["Beta"] == 1.1


def test_output_filename():
    assert output_filename("portfolio.xlsx") == "updated_portfolio.xlsx"
    assert output_filename("/tmp/watch list.csv") == "updated_watch list.xlsx"
    assert output_filename("") == "updated_tickers.xlsx"


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------

_FAST = ["--delay", "0", "--backoff", "0"]


class TestMain:
    def test_tickers_to_workbook(self, tmp_path, make_provider):
        provider = make_provider({"AAPL": {"floatShares": 1.5e10}, "MSFT": {"floatShares": 7.4e9}})
        main(["--tickers", "aapl", "msft", "--fields", "floatShares", "--output-dir", str(tmp_path)] + _FAST, provider=provider)

        sheet = read_rows((tmp_path / "updated_tickers.xlsx").read_bytes())
        assert sheet.sheet_name == "Tickers"
        assert sheet.rows == [{"Symbol": "AAPL", "Float": 1.5e10}, {"Symbol": "MSFT", "Float": 7.4e9}]
        assert provider.calls == ["AAPL", "MSFT"]

    def test_input_spreadsheet(self, tmp_path, make_provider):
        src = tmp_path / "book.xlsx"
        src.write_bytes(encode_rows([{"Ticker": "KO", "Shares": 100}], sheet_name="Holdings"))
        provider = make_provider({"KO": {"beta": 0.6, "floatShares": 4.3e9}})

        main(["--input", str(src), "--fields", "beta", "floatShares"] + _FAST, provider=provider)

        sheet = read_rows((tmp_path / "updated_book.xlsx").read_bytes())
        assert sheet.sheet_name == "Holdings"
        assert sheet.rows == [{"Ticker": "KO", "Shares": 100, "Beta": 0.6, "Float": 4.3e9}]

    def test_input_file(self, tmp_path, make_provider):
        listing = tmp_path / "tickers.txt"
        listing.write_text("# watchlist\nxom\n\ncvx  # energy\n")
        provider = make_provider()

        main(["--input-file", str(listing), "--output-dir", str(tmp_path)] + _FAST, provider=provider)

        assert provider.calls == ["XOM", "CVX"]
        sheet = read_rows((tmp_path / "updated_tickers.xlsx").read_bytes())
        assert sheet.columns == ["Symbol", "Float", "Shares Outstanding", "Implied Shares Outstanding"]

    def test_requires_a_source(self, make_provider):
        with pytest.raises(SystemExit) as e:
            main([], provider=make_provider())
        assert e.value.code == 2

    def test_list_fields_needs_no_provider(self, capsys):
        main(["--list-fields"])
        out = capsys.readouterr().out
        assert "floatShares" in out
        assert "52WeekChange" in out
