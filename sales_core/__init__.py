"""Core (UI-agnostic) sales dashboard logic.

This package contains:
- CSV parsing into typed sales records (data)
- filter state and the filter engine (filters)
- KPI and grouped aggregation (aggregation)
- the budget simulator (simulator)
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
