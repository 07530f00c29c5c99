"""
Color-coded console output for ticker enrichment runs.

The CLI prints one status line per ticker as the batch advances, framed by a
header and a closing summary. Detailed diagnostics (retry warnings, failures)
go through the standard logging module into logs/pipeline.log instead.
Uses colorama for cross-platform terminal color support.
"""

import datetime
import logging
import os
import sys

from colorama import Fore, Style, init

# Initialize colorama (auto-reset after each print)
init(autoreset=True)


class C:
    """Color shortcuts for enrichment output."""
    HEADER = Fore.CYAN + Style.BRIGHT
    STEP = Fore.BLUE + Style.BRIGHT
    OK = Fore.GREEN + Style.BRIGHT
    WARN = Fore.YELLOW + Style.BRIGHT
    ERR = Fore.RED + Style.BRIGHT
    DIM = Style.DIM
    TICKER = Fore.MAGENTA + Style.BRIGHT
    FIELD = Fore.CYAN
    VALUE = Fore.GREEN
    RESET = Style.RESET_ALL


def _ts() -> str:
    return datetime.datetime.now().strftime("%H:%M:%S")


def header(msg: str) -> None:
    """Print a bold run banner."""
    bar = "=" * 60
    print(f"\n{C.HEADER}{bar}\n  {msg}\n{bar}{C.RESET}\n")


def step(msg: str) -> None:
    print(f"{C.STEP}[{_ts()}] >> {msg}{C.RESET}")


def info(msg: str) -> None:
    print(f"{C.DIM}[{_ts()}]{C.RESET} {msg}")


def ok(msg: str) -> None:
    print(f"{C.OK}[{_ts()}] OK {msg}{C.RESET}")


def fields_line(labels: list[str]) -> None:
    """Print the selected field labels on one line."""
    joined = ", ".join(f"{C.FIELD}{label}{C.RESET}" for label in labels)
    print(f"{C.DIM}[{_ts()}]{C.RESET} Fields: {joined}")


# ---------------------------------------------------------------------------
# Per-ticker status lines: [3/21] AAPL: ...
# ---------------------------------------------------------------------------

def _ticker_line(current: int, total: int, ticker: str, msg: str) -> None:
    print(
        f"{C.DIM}[{_ts()}]{C.RESET} "
        f"{C.STEP}[{current}/{total}]{C.RESET} "
        f"{C.TICKER}{ticker or '<blank>'}{C.RESET}: {msg}"
    )


def ticker_fetched(current: int, total: int, ticker: str, found: int, missing: int, attempts: int) -> None:
    note = f" | {missing} N/A" if missing else ""
    tries = f"{attempts} attempt{'s' if attempts != 1 else ''}"
    _ticker_line(current, total, ticker, f"{C.OK}{found} fields{C.RESET}{note} {C.DIM}({tries}){C.RESET}")


def ticker_invalid(current: int, total: int, ticker: str) -> None:
    _ticker_line(current, total, ticker, f"{C.WARN}invalid ticker, skipped{C.RESET}")


def ticker_failed(current: int, total: int, ticker: str, attempts: int) -> None:
    _ticker_line(current, total, ticker, f"{C.ERR}failed after {attempts} attempts{C.RESET}")


def summary_table(title: str, rows: list[tuple[str, str]]) -> None:
    """Print a summary table with label-value pairs."""
    print(f"\n{C.HEADER}{title}{C.RESET}")
    width = max((len(label) for label, _ in rows), default=0)
    for label, value in rows:
        print(f"  {label:<{width}}  {C.VALUE}{value}{C.RESET}")
    print()


# ---------------------------------------------------------------------------
# File logging
# ---------------------------------------------------------------------------

def setup_verbose_logging(name: str = "quotes", level: int = logging.DEBUG) -> logging.Logger:
    """
    Logger writing everything to <LOG_DIR>/pipeline.log and WARNING+ to stderr.

    LOG_DIR defaults to logs/ at the project root. Child loggers
    (``quotes.retry``) share these handlers through propagation.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent duplicate handlers on re-import
    if logger.handlers:
        return logger

    fmt = logging.Formatter(
        "[%(asctime)s] %(levelname)-8s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(logging.WARNING)
    console.setFormatter(fmt)
    logger.addHandler(console)

    default_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs")
    log_dir = os.getenv("LOG_DIR", default_dir)
    os.makedirs(log_dir, exist_ok=True)
    file_handler = logging.FileHandler(os.path.join(log_dir, "pipeline.log"))
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    return logger
