from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from choco.aggregation import (
    average_per_key,
    cross_share,
    group_by,
    percentage_share,
    pivot_sum,
    ranked_top_n,
    top_or_none,
)
from choco.charts import bar_chart, heatmap_chart
from choco.filters import DashboardFilters
from choco.intensity import compute_intensity, intensity_grid


def _heatmap(df: pd.DataFrame) -> Dict[str, Any]:
    grid = pivot_sum(df, "brand_preference", "region")
    if grid.empty:
        return {"brands": [], "regions": [], "cells": []}
    intensities = intensity_grid(grid)
    cells: List[Dict[str, Any]] = []
    for brand in grid.index:
        for region in grid.columns:
            cells.append(
                {
                    "brand": brand,
                    "region": region,
                    "sales": float(grid.at[brand, region]),
                    **intensities[(brand, region)].to_dict(),
                }
            )
    return {"brands": list(grid.index), "regions": list(grid.columns), "cells": cells}


def compute_regions(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if df.empty:
        return {
            "filters": asdict(filters),
            "load_error": ctx.get("load_error"),
            "kpis": {},
            "regions": [],
            "brand_mix": {},
            "heatmap": {"brands": [], "regions": [], "cells": []},
            "charts": {},
        }

    total = int(len(df))
    regions = group_by(df, "region")
    averages = average_per_key(regions, rounded=True)
    shares = percentage_share(regions, total)
    intensity = compute_intensity(regions["sum"].items())

    rows = []
    for region, total_spend in ranked_top_n(regions, len(regions), metric="sum"):
        rows.append(
            {
                "region": region,
                "consumers": int(regions.at[region, "count"]),
                "total_spend": total_spend,
                "avg_spend": averages[region],
                "consumer_share_pct": shares.get(region),
                "intensity": intensity[region].to_dict(),
            }
        )

    heatmap = _heatmap(df)
    charts: Dict[str, Any] = {}
    if rows:
        charts["avg_spend"] = bar_chart(rows, "region", "avg_spend", title="Avg Spend (INR)")
    if heatmap["cells"]:
        charts["heatmap"] = heatmap_chart(heatmap["cells"], "brand", "region", "sales")

    return {
        "filters": asdict(filters),
        "load_error": ctx.get("load_error"),
        "kpis": {
            "total_sales": float(regions["sum"].sum()),
            "top_region": top_or_none(regions, "sum"),
            "top_brand": top_or_none(group_by(df, "brand_preference"), "sum"),
        },
        "regions": rows,
        "top": rows[: filters.top_n],
        "brand_mix": cross_share(df, "region", "brand_preference"),
        "heatmap": heatmap,
        "charts": charts,
    }
