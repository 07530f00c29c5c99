"""
Record merge: fold a fetch outcome back into its spreadsheet row.
"""

from typing import Any, Dict, Iterable

from models import ERROR_COLUMN, NOT_AVAILABLE, FetchOutcome
from sources.quotes.catalog import label_for, provider_key_for


def sentinel_data(field_ids: Iterable[str], value: str) -> Dict[str, str]:
    """Map every selected field label to the same sentinel."""
    return {label_for(f): value for f in field_ids}


def select_fields(stats: Dict[str, Any], field_ids: Iterable[str]) -> Dict[str, Any]:
    """
    Pick the selected statistics out of a provider response, keyed by label.

    Missing keys and nulls become "N/A".
    """
    out = {}
    for field_id in field_ids:
        value = stats.get(provider_key_for(field_id))
        out[label_for(field_id)] = NOT_AVAILABLE if value is None else value
    return out


def merge_row(row: Dict[str, Any], outcome: FetchOutcome) -> Dict[str, Any]:
    """
    Shallow union of the input row and the fetched labels.

    A label equal to an existing column name overwrites that column in place.
    """
    merged = dict(row)
    merged.update(outcome.data)
    if outcome.error:
        merged[ERROR_COLUMN] = outcome.error
    return merged
