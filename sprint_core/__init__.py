"""Core (UI-agnostic) sprint dashboard logic.

This package contains:
- record ingestion (CSV -> pandas, sample seed data)
- filter normalization, option lists and filter application
- summary and chart aggregations (pure functions of the filtered records)
- chart helpers (Altair -> Vega-Lite spec dict) and chart slot lifecycle
- the dashboard state that wires events to recomputation
"""
