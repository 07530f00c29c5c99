"""
Configuration management for the Ticker Enrichment API.

Values come from the environment (a local .env is loaded first).
"""

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


class Settings:
    """API server configuration."""

    # Server
    API_TITLE: str = "Ticker Enrichment API"
    API_DESCRIPTION: str = "Enrich ticker spreadsheets with Yahoo Finance statistics"
    API_VERSION: str = "1.0.0"
    HOST: str = os.getenv("API_HOST", "0.0.0.0")
    PORT: int = int(os.getenv("API_PORT", "8000"))

    # CORS
    CORS_ORIGINS: List[str] = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Enrichment pacing (sequential; see TickerEnricher)
    ENRICH_MAX_ATTEMPTS: int = int(os.getenv("ENRICH_MAX_ATTEMPTS", "3"))
    ENRICH_BACKOFF_SECONDS: float = float(os.getenv("ENRICH_BACKOFF_SECONDS", "0.5"))
    ENRICH_ROW_DELAY_SECONDS: float = float(os.getenv("ENRICH_ROW_DELAY_SECONDS", "0.15"))

    # Provider
    PROVIDER_TIMEOUT: int = int(os.getenv("PROVIDER_TIMEOUT", "30"))  # seconds per Yahoo request


settings = Settings()
