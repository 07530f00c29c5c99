"""
Field catalog: the statistics a caller may ask for.

Each entry maps a field id to the key the provider uses in its response and
to the column label written into the output spreadsheet.
"""

from typing import Dict, Iterable, List, Optional

from models import FieldDescriptor


def _field(field_id: str, label: str, default: bool = False) -> FieldDescriptor:
    return FieldDescriptor(id=field_id, provider_key=field_id, label=label, default_selected=default)


FIELDS: tuple[FieldDescriptor, ...] = (
    # Share structure
    _field("floatShares", "Float", default=True),
    _field("sharesOutstanding", "Shares Outstanding", default=True),
    _field("impliedSharesOutstanding", "Implied Shares Outstanding", default=True),
    # Short interest
    _field("sharesShort", "Shares Short"),
    _field("sharesShortPriorMonth", "Shares Short (Prior Month)"),
    _field("shortRatio", "Short Ratio"),
    _field("shortPercentOfFloat", "Short % of Float"),
    _field("sharesPercentSharesOut", "Shares % of Shares Out"),
    # Ownership
    _field("heldPercentInsiders", "Held % by Insiders"),
    _field("heldPercentInstitutions", "Held % by Institutions"),
    # Valuation
    _field("bookValue", "Book Value"),
    _field("priceToBook", "Price to Book"),
    _field("earningsQuarterlyGrowth", "Earnings Quarterly Growth"),
    _field("trailingEps", "Trailing EPS"),
    _field("forwardEps", "Forward EPS"),
    _field("pegRatio", "PEG Ratio"),
    _field("enterpriseValue", "Enterprise Value"),
    _field("enterpriseToRevenue", "Enterprise to Revenue"),
    _field("enterpriseToEbitda", "Enterprise to EBITDA"),
    # Price behaviour
    _field("52WeekChange", "52 Week Change"),
    _field("beta", "Beta"),
)

_BY_ID: Dict[str, FieldDescriptor] = {f.id: f for f in FIELDS}

if len(_BY_ID) != len(FIELDS):
    raise RuntimeError("duplicate field id in catalog")


def get_field(field_id: str) -> Optional[FieldDescriptor]:
    return _BY_ID.get(field_id)


def all_fields() -> List[FieldDescriptor]:
    return list(FIELDS)


def label_for(field_id: str) -> str:
    """Display label for a field id; unknown ids are shown as-is."""
    field = _BY_ID.get(field_id)
    return field.label if field else field_id


def provider_key_for(field_id: str) -> str:
    """Key to read from the provider response; unknown ids are used as-is."""
    field = _BY_ID.get(field_id)
    return field.provider_key if field else field_id


def default_field_ids() -> List[str]:
    return [f.id for f in FIELDS if f.default_selected]


def normalize_selection(field_ids: Iterable[str]) -> List[str]:
    """
    Clean a caller's field selection.

    Strips whitespace, drops blanks and collapses duplicates to their first
    occurrence, so selecting a field twice behaves like selecting it once.
    """
    seen = set()
    out = []
    for raw in field_ids:
        field_id = str(raw).strip()
        if not field_id or field_id in seen:
            continue
        seen.add(field_id)
        out.append(field_id)
    return out
