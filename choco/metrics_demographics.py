from __future__ import annotations

from dataclasses import asdict
from typing import Any, Dict

import pandas as pd

from choco.aggregation import average_per_key, group_by, percentage_share, top_or_none
from choco.bucketing import age_bracket_series, age_bracket_table
from choco.charts import bar_chart, share_pie
from choco.filters import DashboardFilters


def compute_demographics(filters: DashboardFilters, ctx: Dict[str, Any]) -> Dict[str, Any]:
    df: pd.DataFrame = ctx.get("filtered", pd.DataFrame())
    if df.empty:
        return {
            "filters": asdict(filters),
            "load_error": ctx.get("load_error"),
            "kpis": {},
            "age_groups": [],
            "genders": [],
            "frequency": [],
            "charts": {},
        }

    total = int(len(df))
    ages = age_bracket_table(df)
    age_avg = average_per_key(ages, rounded=True)
    age_rows = [
        {"age_bracket": bracket, "consumers": int(row["count"]), "avg_spend": age_avg[bracket]}
        for bracket, row in ages.iterrows()
    ]

    genders = group_by(df, "gender")
    gender_share = percentage_share(genders, total)
    gender_rows = [
        {"gender": gender, "count": int(row["count"]), "share_pct": gender_share.get(gender)}
        for gender, row in genders.iterrows()
    ]

    frequency = group_by(df, "purchase_frequency")
    frequency_rows = [{"frequency": k, "count": int(v)} for k, v in frequency["count"].items()]

    charts: Dict[str, Any] = {}
    if age_rows:
        charts["age_spend"] = bar_chart(age_rows, "age_bracket", "avg_spend", title="Avg Spend (INR)")
    if gender_rows:
        charts["gender"] = share_pie(gender_rows, "gender", "count")
    if frequency_rows:
        charts["frequency"] = bar_chart(frequency_rows, "frequency", "count", title="Consumers")

    return {
        "filters": asdict(filters),
        "load_error": ctx.get("load_error"),
        "kpis": {
            "total_consumers": total,
            "top_age_group": top_or_none(ages),
            "outside_age_brackets": int(age_bracket_series(df).isna().sum()),
        },
        "age_groups": age_rows,
        "genders": gender_rows,
        "frequency": frequency_rows,
        "charts": charts,
    }
