from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List, Optional

import pandas as pd

from choco.aggregation import group_by, ratio_half_up, stat_records, top_or_none
from choco.bucketing import family_totals
from choco.charts import bar_chart, share_pie
from choco.filters import DashboardFilters


def _avg_satisfaction(df: pd.DataFrame) -> Optional[float]:
    scores = pd.to_numeric(df["satisfaction_score"], errors="coerce")
    if scores.notna().sum() == 0:
        return None
    return ratio_half_up(float(scores.sum()), int(scores.notna().sum()), 1)


def _insights(popular_brand, top_region, top_mood, avg_spend: int) -> List[Dict[str, str]]:
    cards: List[Dict[str, str]] = []
    if popular_brand is not None:
        cards.append(
            {
                "type": "rising",
                "title": f"{popular_brand['name']} Leading",
                "description": f"{popular_brand['name']} is the most preferred brand with {popular_brand['count']} purchases",
            }
        )
    cards.append(
        {
            "type": "insight",
            "title": "Average Spending",
            "description": f"Consumers spend an average of ₹{avg_spend} per purchase",
        }
    )
    if top_region is not None:
        cards.append(
            {
                "type": "alert",
                "title": "Regional Leader",
                "description": f"{top_region['name']} has the highest purchase volume with {top_region['count']} transactions",
            }
        )
    if top_mood is not None:
        cards.append(
            {
                "type": "prediction",
                "title": "Consumer Mood",
                "description": f"Most purchases made when feeling {top_mood['name']} ({top_mood['count']} purchases)",
            }
        )
    return cards


def compute_overview(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    payload: Dict[str, Any] = {
        "filters": asdict(filters),
        "load_error": ctx.get("load_error"),
        "kpis": {},
        "insights": [],
        "families": [],
        "charts": {},
    }
    if df.empty:
        return payload

    total = int(len(df))
    total_spend = float(df["average_spend_inr"].sum())
    avg_spend = int(ratio_half_up(total_spend, total))

    brands = group_by(df, "brand_preference")
    popular_brand = top_or_none(brands)
    top_region = top_or_none(group_by(df, "region"))
    top_mood = top_or_none(group_by(df, "mood"))

    families = stat_records(family_totals(brands), "family")

    payload["kpis"] = {
        "total_consumers": total,
        "total_spend": total_spend,
        "avg_spend": avg_spend,
        "popular_brand": popular_brand,
        "top_region": top_region,
        "avg_satisfaction": _avg_satisfaction(df),
    }
    payload["insights"] = _insights(popular_brand, top_region, top_mood, avg_spend)
    payload["families"] = families

    brand_rows = stat_records(brands, "brand", total_records=total)
    if brand_rows:
        payload["charts"]["brand_share"] = share_pie(brand_rows, "brand", "count")
    if families:
        payload["charts"]["family_spend"] = bar_chart(families, "family", "sum", title="Spend (INR)")
    return payload
