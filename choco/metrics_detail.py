from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from choco.aggregation import KeyFn, group_by, key_series, ranked_top_n, ratio_half_up
from choco.bucketing import age_bracket_series, age_bracket_table
from choco.charts import bar_chart, share_pie
from choco.filters import DashboardFilters

# Payload keys a search entry can carry, mapped to the key that selects records.
# Fact payloads carry none of these and cover every filtered record.
SUBJECT_KEYS: Dict[str, KeyFn] = {
    "brand": "brand_preference",
    "region": "region",
    "channel": "purchase_channel",
    "age_bracket": age_bracket_series,
}


def _subject(payload: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    for key, key_fn in SUBJECT_KEYS.items():
        value = (payload or {}).get(key)
        if value:
            return {"key": key, "key_fn": key_fn, "value": str(value)}
    return None


def _revenue_rows(table: pd.DataFrame, label: str) -> List[Dict[str, Any]]:
    return [{label: k, "revenue": v} for k, v in ranked_top_n(table, len(table), metric="sum")]


def compute_detail(filters: DashboardFilters, ctx: Dict[str, Any], payload: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Drill-down for a selected search result (brand, region, channel or age bracket)."""
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    subject = _subject(payload)
    if subject is not None and not df.empty:
        df = df[key_series(df, subject["key_fn"]) == subject["value"]]

    out: Dict[str, Any] = {
        "filters": asdict(filters),
        "load_error": ctx.get("load_error"),
        "subject": {subject["key"]: subject["value"]} if subject else None,
        "kpis": {"total_revenue": 0.0, "total_consumers": 0, "avg_spend": None},
        "regions": [],
        "age_groups": [],
        "genders": [],
        "channels": [],
        "brands": [],
        "charts": {},
    }
    if df.empty:
        return out

    total_revenue = float(df["average_spend_inr"].sum())
    total_consumers = int(len(df))
    out["kpis"] = {
        "total_revenue": total_revenue,
        "total_consumers": total_consumers,
        "avg_spend": int(ratio_half_up(total_revenue, total_consumers)),
    }
    out["regions"] = [{"region": k, "revenue": float(v)} for k, v in group_by(df, "region")["sum"].items()]
    out["age_groups"] = [{"age_bracket": k, "count": int(v)} for k, v in age_bracket_table(df)["count"].items()]
    out["genders"] = [{"gender": k, "count": int(v)} for k, v in group_by(df, "gender")["count"].items()]
    out["channels"] = _revenue_rows(group_by(df, "purchase_channel"), "channel")
    out["brands"] = _revenue_rows(group_by(df, "brand_preference"), "brand")

    if out["age_groups"]:
        out["charts"]["age"] = bar_chart(out["age_groups"], "age_bracket", "count", title="Consumers")
    if out["channels"]:
        out["charts"]["channel"] = share_pie(out["channels"], "channel", "revenue")
    if subject is not None and subject["key"] == "region" and out["brands"]:
        out["charts"]["brands"] = bar_chart(out["brands"], "brand", "revenue", title="Revenue (INR)")
    return out
