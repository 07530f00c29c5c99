"""
Pydantic data models for the ticker enrichment pipeline.

These models describe the entities flowing through one enrichment request:
the catalog entries describing fetchable statistics, and the per-row outcome
produced by the batch runner before it is merged back into the row.
"""

from enum import Enum
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Sentinels
# ---------------------------------------------------------------------------

NOT_AVAILABLE = "N/A"          # provider answered but lacked the value
FETCH_ERROR = "Error"          # retries exhausted
INVALID_TICKER = "Invalid Ticker"
ERROR_COLUMN = "Error"


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class OutcomeStatus(str, Enum):
    SUCCESS = "success"
    INVALID_TICKER = "invalid_ticker"
    PROVIDER_ERROR = "provider_error"


# ---------------------------------------------------------------------------
# Core entities
# ---------------------------------------------------------------------------

class FieldDescriptor(BaseModel):
    """One fetchable statistic: its identity, provider key and display label."""
    model_config = ConfigDict(frozen=True)

    id: str
    provider_key: str
    label: str
    default_selected: bool = False


class FetchOutcome(BaseModel):
    """
    Result of enriching one row.

    ``data`` maps each selected field label to its value or sentinel.
    ``error`` is only set for rows whose ticker cell was unusable; it becomes
    the row's "Error" column.
    """
    ticker: Any = None
    status: OutcomeStatus
    data: Dict[str, Any] = Field(default_factory=dict)
    error: Optional[str] = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.status == OutcomeStatus.SUCCESS
