"""
Pydantic models for API request/response validation.
Auto-generates OpenAPI documentation.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class EnrichRequest(BaseModel):
    """Ticker list submission. Omitted fields fall back to the catalog defaults."""
    tickers: List[Any] = Field(default_factory=list)
    fields: Optional[List[str]] = None


class TickerResult(BaseModel):
    """One ticker's fetched statistics keyed by display label."""
    ticker: Any = None
    data: Dict[str, Any]
    error: Optional[str] = None


class EnrichResponse(BaseModel):
    fields: List[str]
    results: List[TickerResult]
    count: int


class PreviewResponse(BaseModel):
    """Enriched rows of an uploaded sheet, for on-screen display."""
    file_name: str
    sheet_name: str
    ticker_column: Optional[str] = None
    columns: List[str]
    rows: List[Dict[str, Any]]
    count: int


class FieldInfo(BaseModel):
    id: str
    label: str
    provider_key: str
    default_selected: bool


class FieldCatalogResponse(BaseModel):
    fields: List[FieldInfo]
    count: int


class HealthResponse(BaseModel):
    service: str
    version: str
    status: str


class ErrorResponse(BaseModel):
    detail: str
