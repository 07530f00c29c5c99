"""
REST API for the ticker enrichment pipeline.

Accepts ticker lists or spreadsheets over HTTP and returns them enriched with
Yahoo Finance statistics.
"""

__version__ = "1.0.0"
