"""Core (UI-agnostic) chocolate consumer dashboard logic.

This package contains:
- record loading (JSON/CSV -> immutable records -> pandas)
- aggregation primitives (group, share, rank)
- bucketing rules (age brackets, brand families)
- intensity tiers for heatmap views
- the header search index
- page compute functions (JSON-serializable payloads)
- chart helpers (Altair -> Vega-Lite spec dict)
"""
