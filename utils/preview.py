"""
Human-friendly preview of enriched rows for the terminal.
"""

from typing import Any, Dict, List

import pandas as pd

from models import NOT_AVAILABLE

EMPTY_MARK = "—"


def format_value(value: Any) -> str:
    """
    Compact display form of one cell.

    Large numbers are abbreviated (1.23B, 4.56M, 7.89K); missing values show
    as a dash.
    """
    if value is None or value == NOT_AVAILABLE:
        return EMPTY_MARK
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return str(value)
    if value != value:  # NaN
        return EMPTY_MARK
    if value >= 1e9:
        return f"{value / 1e9:.2f}B"
    if value >= 1e6:
        return f"{value / 1e6:.2f}M"
    if value >= 1e3:
        return f"{value / 1e3:.2f}K"
    if isinstance(value, int):
        return f"{value:,}"
    return f"{value:,.3f}".rstrip("0").rstrip(".")


def render_preview(rows: List[Dict[str, Any]], limit: int = 20) -> str:
    """Render the first ``limit`` rows as a plain-text table."""
    if not rows:
        return "(no rows)"
    df = pd.DataFrame(rows[:limit])
    df = df.astype(object).where(pd.notna(df), None)
    text = df.map(format_value).to_string(index=False)
    if len(rows) > limit:
        text += f"\n... {len(rows) - limit} more row(s)"
    return text
