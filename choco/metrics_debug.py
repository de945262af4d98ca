from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from choco.bucketing import UNCLASSIFIED, age_bracket_series, brand_to_family
from choco.filters import DashboardFilters
from choco.records import RECORD_FIELDS


def compute_debug(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    records: pd.DataFrame = ctx.get("records", pd.DataFrame())
    filtered: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "load_error": ctx.get("load_error"),
        "row_counts": {"records": int(len(records)), "filtered": int(len(filtered))},
        "missing_counts": {},
        "outside_age_brackets": 0,
        "unclassified_brands": [],
        "sample": [],
    }
    if records.empty:
        return payload

    payload["missing_counts"] = {
        col: int(records[col].isna().sum()) for col in RECORD_FIELDS if col in records.columns
    }
    payload["outside_age_brackets"] = int(age_bracket_series(records).isna().sum())
    brands = records["brand_preference"].dropna().unique().tolist()
    payload["unclassified_brands"] = sorted(str(b) for b in brands if brand_to_family(b) == UNCLASSIFIED)
    head = records.head(3)
    payload["sample"] = head.astype(object).where(head.notna(), None).to_dict(orient="records")
    return payload
