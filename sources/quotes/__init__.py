"""
Quote statistics enrichment (Yahoo Finance).

Looks up per-ticker share-structure and valuation statistics and merges the
selected ones back into spreadsheet rows.
"""
