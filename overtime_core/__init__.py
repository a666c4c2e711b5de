"""Overtime record aggregation and cascading-filter engine.

This package contains:
- record normalization (sheet rows -> pandas) and trend annotation
- filter selection, actor restriction and cascading filter options
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
