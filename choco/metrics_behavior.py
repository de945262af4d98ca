from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict, List

import pandas as pd

from choco.aggregation import group_by, ranked_top_n, ratio_half_up, score_distribution, top_or_none
from choco.charts import bar_chart, share_pie
from choco.filters import DashboardFilters


def _ranked_rows(table: pd.DataFrame, label: str, metric: str) -> List[Dict[str, Any]]:
    value_key = "revenue" if metric == "sum" else "count"
    return [{label: key, value_key: value} for key, value in ranked_top_n(table, len(table), metric=metric)]


def compute_behavior(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if df.empty:
        return {
            "filters": asdict(filters),
            "load_error": ctx.get("load_error"),
            "kpis": {},
            "moods": [],
            "occasions": [],
            "channels": [],
            "satisfaction": [],
            "charts": {},
        }

    moods = group_by(df, "mood")
    occasions = group_by(df, "occasion")
    channels = group_by(df, "purchase_channel")
    satisfaction = score_distribution(df)

    mood_rows = [{"mood": k, "count": int(v)} for k, v in moods["count"].items()]
    occasion_rows = _ranked_rows(occasions, "occasion", "count")
    channel_rows = _ranked_rows(channels, "channel", "sum")
    satisfaction_rows = [{"score": str(int(k)), "count": int(v)} for k, v in satisfaction["count"].items()]

    scores = pd.to_numeric(df["satisfaction_score"], errors="coerce")
    avg_satisfaction = ratio_half_up(float(scores.sum()), int(scores.notna().sum()), 1) if scores.notna().any() else None

    charts: Dict[str, Any] = {}
    if mood_rows:
        charts["mood"] = share_pie(mood_rows, "mood", "count")
    if occasion_rows:
        charts["occasion"] = bar_chart(occasion_rows, "occasion", "count", title="Purchases")
    if channel_rows:
        charts["channel"] = bar_chart(channel_rows, "channel", "revenue", title="Revenue (INR)")
    if satisfaction_rows:
        charts["satisfaction"] = bar_chart(satisfaction_rows, "score", "count", title="Consumers")

    return {
        "filters": asdict(filters),
        "load_error": ctx.get("load_error"),
        "kpis": {
            "top_mood": top_or_none(moods),
            "top_occasion": top_or_none(occasions),
            "top_channel": top_or_none(channels, "sum"),
            "avg_satisfaction": avg_satisfaction,
        },
        "moods": mood_rows,
        "occasions": occasion_rows,
        "channels": channel_rows,
        "satisfaction": satisfaction_rows,
        "charts": charts,
    }
