"""
FastAPI application for the Ticker Enrichment API.

Exposes the enrichment pipeline over HTTP with auto-generated OpenAPI
documentation at /docs.
"""

import json
import logging
from typing import List, Optional
from urllib.parse import quote

from fastapi import Depends, FastAPI, File, Form, HTTPException, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from .config import settings
from .models import (
    EnrichRequest,
    EnrichResponse,
    ErrorResponse,
    FieldCatalogResponse,
    FieldInfo,
    HealthResponse,
    PreviewResponse,
    TickerResult,
)
from sources.quotes.catalog import all_fields, default_field_ids, label_for, normalize_selection
from sources.quotes.pipeline import TickerEnricher, output_filename
from sources.quotes.providers.base import QuoteDataProvider
from sources.quotes.providers.yahoo import YahooQuoteProvider
from sources.quotes.retry import RetryPolicy
from utils.excel_formatter import XLSX_MEDIA_TYPE, SpreadsheetError, column_union, encode_rows, read_rows

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

INTERNAL_ERROR = "Internal Server Error"

# Initialize FastAPI app
app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

# Enable CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)

_ERRORS = {400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}


# ----------------------------------------------------------------
# Dependencies
# ----------------------------------------------------------------

def get_provider() -> QuoteDataProvider:
    return YahooQuoteProvider(timeout=settings.PROVIDER_TIMEOUT)


def get_enricher(provider: QuoteDataProvider = Depends(get_provider)) -> TickerEnricher:
    return TickerEnricher(
        provider,
        retry_policy=RetryPolicy(
            max_attempts=settings.ENRICH_MAX_ATTEMPTS,
            backoff_base=settings.ENRICH_BACKOFF_SECONDS,
        ),
        row_delay=settings.ENRICH_ROW_DELAY_SECONDS,
    )


# ----------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------

def _parse_fields_form(raw: Optional[str]) -> List[str]:
    """
    Field selection sent as a JSON array string in a multipart form.

    Missing or unparseable input falls back to the default fields.
    """
    if not raw:
        return default_field_ids()
    try:
        parsed = json.loads(raw)
    except ValueError:
        logger.warning("Could not parse fields, using defaults")
        return default_field_ids()
    if not isinstance(parsed, list):
        logger.warning("Fields is not a JSON array, using defaults")
        return default_field_ids()
    return normalize_selection(parsed)


def _require_fields(field_ids: List[str]) -> List[str]:
    field_ids = normalize_selection(field_ids)
    if not field_ids:
        raise HTTPException(status_code=400, detail="No fields selected")
    return field_ids


def _read_upload(file: Optional[UploadFile]):
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    data = file.file.read()
    try:
        return read_rows(data, filename=file.filename)
    except SpreadsheetError as e:
        raise HTTPException(status_code=400, detail=str(e))


def _content_disposition(filename: str) -> str:
    ascii_name = filename.encode("ascii", "ignore").decode("ascii").replace('"', "") or "updated.xlsx"
    header = f'attachment; filename="{ascii_name}"'
    if ascii_name != filename:
        header += f"; filename*=UTF-8''{quote(filename)}"
    return header


# ----------------------------------------------------------------
# Health & Info
# ----------------------------------------------------------------

@app.get("/", response_model=HealthResponse, tags=["Health"])
def root():
    """API health check and information."""
    return {
        "service": settings.API_TITLE,
        "version": settings.API_VERSION,
        "status": "healthy",
    }


@app.get("/api/v1/fields", response_model=FieldCatalogResponse, tags=["Fields"])
def list_fields():
    """
    List the statistics that can be requested.

    Fields flagged ``default_selected`` are used when a request names none.
    """
    fields = [FieldInfo(**f.model_dump()) for f in all_fields()]
    return FieldCatalogResponse(fields=fields, count=len(fields))


# ----------------------------------------------------------------
# Enrichment
# ----------------------------------------------------------------

@app.post("/api/v1/enrich", response_model=EnrichResponse, responses=_ERRORS, tags=["Enrichment"])
def enrich_tickers(request: EnrichRequest, enricher: TickerEnricher = Depends(get_enricher)):
    """
    Fetch statistics for a list of tickers.

    Tickers are processed one at a time, in order. Blank or non-text entries
    come back with "N/A" values and error "Invalid Ticker"; tickers the
    provider keeps failing on come back with "Error" values.
    """
    if not request.tickers:
        raise HTTPException(status_code=400, detail="No tickers provided")
    field_ids = _require_fields(default_field_ids() if request.fields is None else request.fields)

    try:
        outcomes = enricher.fetch_outcomes(request.tickers, field_ids)
        results = [TickerResult(ticker=o.ticker, data=o.data, error=o.error) for o in outcomes]
        return EnrichResponse(
            fields=[label_for(f) for f in field_ids],
            results=results,
            count=len(results),
        )
    except Exception:
        logger.exception("Enrichment failed")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


@app.post("/api/process", responses=_ERRORS, tags=["Enrichment"])
def process_file(
    file: Optional[UploadFile] = File(None),
    fields: Optional[str] = Form(None),
    enricher: TickerEnricher = Depends(get_enricher),
):
    """
    Enrich an uploaded spreadsheet and return it as updated_<name>.xlsx.

    ``fields`` is a JSON array of field ids, e.g. ``["floatShares", "beta"]``.
    The ticker column is the first one named like symbol/ticker/stock/code,
    otherwise the first column.
    """
    try:
        sheet = _read_upload(file)
        field_ids = _require_fields(_parse_fields_form(fields))
        logger.info(f"Fetching fields for {len(sheet.rows)} rows: {', '.join(field_ids)}")
        _, output = enricher.enrich_rows(sheet.rows, field_ids)
        content = encode_rows(output, sheet_name=sheet.sheet_name)
    except HTTPException:
        raise
    except Exception:
        logger.exception("Processing error")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": _content_disposition(output_filename(file.filename))},
    )


@app.post("/api/v1/preview", response_model=PreviewResponse, responses=_ERRORS, tags=["Enrichment"])
def preview_file(
    file: Optional[UploadFile] = File(None),
    fields: Optional[str] = Form(None),
    enricher: TickerEnricher = Depends(get_enricher),
):
    """Same as /api/process, but returns the enriched rows as JSON for display."""
    try:
        sheet = _read_upload(file)
        field_ids = _require_fields(_parse_fields_form(fields))
        ticker_column, output = enricher.enrich_rows(sheet.rows, field_ids)
        return PreviewResponse(
            file_name=output_filename(file.filename),
            sheet_name=sheet.sheet_name,
            ticker_column=ticker_column,
            columns=[str(c) for c in column_union(output)],
            rows=output,
            count=len(output),
        )
    except HTTPException:
        raise
    except Exception:
        logger.exception("Preview error")
        raise HTTPException(status_code=500, detail=INTERNAL_ERROR)


def run():
    import uvicorn
    uvicorn.run(
        app,
        host=settings.HOST,
        port=settings.PORT,
        log_level="info"
    )


if __name__ == "__main__":
    run()
