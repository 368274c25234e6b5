"""Core (UI-agnostic) spending dashboard logic.

This package contains:
- sheet loading (Google Sheet CSV export -> records)
- CSV tokenizing, header-row detection and record building
- aggregation (site summary, work-type/account drill-down, headline stats)
- chart helpers (Altair -> Vega-Lite spec dict)
- AI narrative generation and reload session state
"""
