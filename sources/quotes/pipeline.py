"""
Ticker Enrichment Pipeline (Yahoo Finance)

Reads a spreadsheet (or a ticker list), looks up the selected statistics for
every ticker one at a time, and writes the enriched rows to
updated_<name>.xlsx with a preview in the terminal.

Usage:
    python -m sources.quotes.pipeline --input portfolio.xlsx                     # Default fields
    python -m sources.quotes.pipeline --input portfolio.xlsx --fields beta pegRatio
    python -m sources.quotes.pipeline --tickers AAPL MSFT JPM                    # Specific tickers
    python -m sources.quotes.pipeline --input-file tickers.txt                   # Ticker list file
    python -m sources.quotes.pipeline --list-fields                              # Show catalog
"""

import argparse
import datetime
import os
import time
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from dotenv import load_dotenv

from utils import log
from utils.excel_formatter import ExcelFormatter, SpreadsheetError, read_rows
from utils.input_parser import clean_ticker, detect_ticker_column, parse_input_file
from utils.preview import render_preview
from models import INVALID_TICKER, NOT_AVAILABLE, FetchOutcome, OutcomeStatus
from sources.quotes.catalog import all_fields, default_field_ids, label_for, normalize_selection
from sources.quotes.merge import merge_row, sentinel_data
from sources.quotes.providers.base import QuoteDataProvider
from sources.quotes.providers.yahoo import YahooQuoteProvider
from sources.quotes.retry import DEFAULT_BACKOFF_SECONDS, DEFAULT_MAX_ATTEMPTS, RetryPolicy

logger = log.setup_verbose_logging("quotes")

DEFAULT_ROW_DELAY_SECONDS = 0.15
TICKER_COLUMN = "Symbol"


class TickerEnricher:
    """
    Sequential, paced batch runner.

    One ticker is in flight at a time and consecutive rows are spaced by
    ``row_delay`` seconds, keeping us under Yahoo's per-IP throttling. Every
    input row yields exactly one output row, in input order; row failures
    are recorded as sentinels instead of raised.
    """

    def __init__(
        self,
        provider: QuoteDataProvider,
        retry_policy: Optional[RetryPolicy] = None,
        row_delay: float = DEFAULT_ROW_DELAY_SECONDS,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        if row_delay < 0:
            raise ValueError("row_delay must be >= 0")
        self.provider = provider
        self._sleep = sleep or time.sleep
        self.retry_policy = retry_policy or RetryPolicy(sleep=self._sleep)
        self.row_delay = float(row_delay)

    def _fetch_one(self, raw_ticker: Any, field_ids: List[str]) -> FetchOutcome:
        ticker = clean_ticker(raw_ticker)
        if ticker is None:
            return FetchOutcome(
                ticker=raw_ticker,
                status=OutcomeStatus.INVALID_TICKER,
                data=sentinel_data(field_ids, NOT_AVAILABLE),
                error=INVALID_TICKER,
            )
        return self.retry_policy.run(self.provider, ticker, field_ids)

    def fetch_outcomes(self, tickers: Sequence[Any], field_ids: Sequence[str]) -> List[FetchOutcome]:
        """
        Look up every ticker in order.

        :raises ValueError: if no fields are selected
        """
        field_ids = normalize_selection(field_ids)
        if not field_ids:
            raise ValueError("No fields selected")

        start = datetime.datetime.now()
        total = len(tickers)
        outcomes = []
        for i, raw_ticker in enumerate(tickers, 1):
            outcome = self._fetch_one(raw_ticker, field_ids)
            outcomes.append(outcome)
            self._report(i, total, raw_ticker, outcome)

            if i < total and self.row_delay > 0:
                self._sleep(self.row_delay)

        self._summarize(outcomes, datetime.datetime.now() - start)
        return outcomes

    def run(self, rows: Sequence[Dict[str, Any]], ticker_column: str, field_ids: Sequence[str]) -> List[Dict[str, Any]]:
        """Enrich rows whose ticker lives in ``ticker_column``."""
        outcomes = self.fetch_outcomes([row.get(ticker_column) for row in rows], field_ids)
        return [merge_row(row, outcome) for row, outcome in zip(rows, outcomes)]

    def enrich_rows(self, rows: Sequence[Dict[str, Any]], field_ids: Sequence[str]) -> Tuple[Optional[str], List[Dict[str, Any]]]:
        """Detect the ticker column, then enrich. Returns (ticker_column, output rows)."""
        ticker_column = detect_ticker_column(list(rows[0].keys())) if rows else None
        log.info(f"Using column '{ticker_column}' as ticker source")
        logger.info(f"Ticker column: {ticker_column}")
        return ticker_column, self.run(rows, ticker_column, field_ids)

    def _report(self, idx: int, total: int, raw_ticker: Any, outcome: FetchOutcome) -> None:
        shown = str(raw_ticker).strip() if raw_ticker is not None else ""
        if outcome.status == OutcomeStatus.INVALID_TICKER:
            log.ticker_invalid(idx, total, shown)
        elif outcome.status == OutcomeStatus.PROVIDER_ERROR:
            log.ticker_failed(idx, total, shown, outcome.attempts)
        else:
            missing = sum(1 for v in outcome.data.values() if v == NOT_AVAILABLE)
            log.ticker_fetched(idx, total, shown, len(outcome.data) - missing, missing, outcome.attempts)

    def _summarize(self, outcomes: List[FetchOutcome], elapsed: datetime.timedelta) -> None:
        counts = {status: 0 for status in OutcomeStatus}
        for outcome in outcomes:
            counts[outcome.status] += 1
        logger.info(
            f"Enriched {len(outcomes)} rows: {counts[OutcomeStatus.SUCCESS]} ok, "
            f"{counts[OutcomeStatus.INVALID_TICKER]} invalid, {counts[OutcomeStatus.PROVIDER_ERROR]} errors"
        )
        log.summary_table("Enrichment Summary", [
            ("Rows", str(len(outcomes))),
            ("Fetched", str(counts[OutcomeStatus.SUCCESS])),
            ("Invalid tickers", str(counts[OutcomeStatus.INVALID_TICKER])),
            ("Provider errors", str(counts[OutcomeStatus.PROVIDER_ERROR])),
            ("Elapsed", str(elapsed)),
        ])


def output_filename(input_name: str) -> str:
    """updated_<name>.xlsx for an uploaded/input file name."""
    stem = os.path.splitext(os.path.basename(input_name))[0] or "tickers"
    return f"updated_{stem}.xlsx"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Enrich a ticker spreadsheet with Yahoo Finance statistics")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--input", type=str, help="Spreadsheet to enrich (.xlsx or .csv)")
    source.add_argument("--tickers", nargs="+", help="Specific tickers to process")
    source.add_argument("--input-file", type=str, help="Text file with one ticker per line")
    parser.add_argument("--fields", nargs="+", help="Field ids to fetch (default: Float, Shares Outstanding, Implied Shares Outstanding)")
    parser.add_argument("--list-fields", action="store_true", help="List available field ids and exit")
    parser.add_argument("--output-dir", type=str, help="Where to write updated_<name>.xlsx (default: next to input, or ./data)")
    parser.add_argument("--max-attempts", type=int, default=int(os.getenv("ENRICH_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS)),
                        help="Provider attempts per ticker (default: 3)")
    parser.add_argument("--backoff", type=float, default=float(os.getenv("ENRICH_BACKOFF_SECONDS", DEFAULT_BACKOFF_SECONDS)),
                        help="Linear backoff base in seconds (default: 0.5)")
    parser.add_argument("--delay", type=float, default=float(os.getenv("ENRICH_ROW_DELAY_SECONDS", DEFAULT_ROW_DELAY_SECONDS)),
                        help="Pause between tickers in seconds (default: 0.15)")
    parser.add_argument("--preview", type=int, default=20, help="Rows to show in the terminal preview (default: 20)")
    return parser


def _load_rows(args, parser) -> Tuple[List[Dict[str, Any]], str, str]:
    """Returns (rows, sheet_name, input_name)."""
    if args.input:
        try:
            with open(args.input, "rb") as f:
                sheet = read_rows(f.read(), filename=args.input)
        except SpreadsheetError as e:
            parser.error(str(e))
        return sheet.rows, sheet.sheet_name, args.input

    if args.tickers:
        tickers = [t.upper() for t in args.tickers]
    elif args.input_file:
        tickers = parse_input_file(args.input_file)
    else:
        parser.error("one of --input, --tickers or --input-file is required")

    if not tickers:
        parser.error("No tickers provided")
    return [{TICKER_COLUMN: t} for t in tickers], "Tickers", args.input_file or "tickers"


def main(argv: Optional[List[str]] = None, provider: Optional[QuoteDataProvider] = None) -> None:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.list_fields:
        log.summary_table("Available Fields", [
            (f.id, f"{f.label}{' (default)' if f.default_selected else ''}") for f in all_fields()
        ])
        return

    field_ids = normalize_selection(args.fields) if args.fields else default_field_ids()
    if not field_ids:
        parser.error("No fields selected")

    rows, sheet_name, input_name = _load_rows(args, parser)

    log.header("TICKER ENRICHMENT: Yahoo Finance Statistics")
    log.step(f"Processing {len(rows)} rows")
    log.fields_line([label_for(f) for f in field_ids])

    if provider is None:
        provider = YahooQuoteProvider(timeout=int(os.getenv("PROVIDER_TIMEOUT", 30)))

    enricher = TickerEnricher(
        provider,
        retry_policy=RetryPolicy(max_attempts=args.max_attempts, backoff_base=args.backoff),
        row_delay=args.delay,
    )
    _, output = enricher.enrich_rows(rows, field_ids)

    log.step("Preview")
    print(render_preview(output, limit=args.preview))

    out_dir = args.output_dir or (os.path.dirname(os.path.abspath(args.input)) if args.input else os.path.join(os.getcwd(), "data"))
    os.makedirs(out_dir, exist_ok=True)
    ef = ExcelFormatter()
    ef.add_rows(output, sheet_name=sheet_name)
    ef.save(output_filename(input_name), out_dir)

    log.ok("Ticker enrichment complete")


if __name__ == "__main__":
    main()
