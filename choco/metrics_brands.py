from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from choco.aggregation import (
    average_per_key,
    group_by,
    percentage_share,
    ranked_top_n,
    stat_records,
    top_or_none,
)
from choco.bucketing import brand_to_family, family_totals
from choco.charts import bar_chart, share_pie
from choco.filters import DashboardFilters


def compute_brands(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if df.empty:
        return {
            "filters": asdict(filters),
            "load_error": ctx.get("load_error"),
            "kpis": {},
            "brands": [],
            "top": [],
            "families": [],
            "charts": {},
        }

    total = int(len(df))
    total_spend = float(df["average_spend_inr"].sum())
    brands = group_by(df, "brand_preference")
    consumer_share = percentage_share(brands, total)
    revenue_share = percentage_share(brands, total_spend, metric="sum")
    averages = average_per_key(brands, rounded=True)

    rows = [
        {
            "brand": brand,
            "family": brand_to_family(brand),
            "consumers": int(row["count"]),
            "sales": float(row["sum"]),
            "avg_spend": averages[brand],
            "consumer_share_pct": consumer_share.get(brand),
            "revenue_share_pct": revenue_share.get(brand),
        }
        for brand, row in brands.iterrows()
    ]
    top = [
        {"rank": i, "brand": brand, "sales": sales}
        for i, (brand, sales) in enumerate(ranked_top_n(brands, filters.top_n, metric="sum"), start=1)
    ]

    charts: Dict[str, Any] = {}
    if rows:
        charts["sales"] = bar_chart(top, "brand", "sales", title="Sales (INR)")
        charts["share"] = share_pie(rows, "brand", "consumers")

    return {
        "filters": asdict(filters),
        "load_error": ctx.get("load_error"),
        "kpis": {
            "brand_count": int(len(brands)),
            "most_preferred": top_or_none(brands),
            "top_by_sales": top_or_none(brands, "sum"),
        },
        "brands": rows,
        "top": top,
        "families": stat_records(family_totals(brands), "family", total_records=total),
        "charts": charts,
    }
