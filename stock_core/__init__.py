"""Core (UI-agnostic) stock expiry dashboard logic.

This package contains:
- product records and the in-memory record store
- spreadsheet ingestion (XLSX -> pandas -> validated products)
- product table filters
- dashboard statistics (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
