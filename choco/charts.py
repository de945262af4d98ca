from __future__ import annotations

from typing import Any, Dict, Iterable, List

import altair as alt
import pandas as pd

alt.data_transformers.disable_max_rows()

CHOCOLATE_PALETTE = ["#8B4513", "#D2691E", "#CD853F", "#DEB887", "#F4A460", "#D2B48C"]


def to_vega_spec(chart: alt.Chart) -> Dict[str, Any]:
    """Convert an Altair chart into a Vega-Lite spec dict (JSON-serializable)."""
    return chart.to_dict()


def bar_chart(rows: List[Dict[str, Any]], category: str, value: str, *, title: str, value_format: str = "~s") -> Dict[str, Any]:
    """Hover-highlighted bar chart over payload rows."""
    df = pd.DataFrame(rows)
    hover = alt.selection_point(fields=[category], on="mouseover", empty="all")
    chart = (
        alt.Chart(df)
        .mark_bar(cornerRadiusTopLeft=6, cornerRadiusTopRight=6)
        .encode(
            x=alt.X(f"{category}:N", title=None, sort=None, axis=alt.Axis(grid=False, labelAngle=-30)),
            y=alt.Y(f"{value}:Q", title=title, axis=alt.Axis(format=value_format, gridDash=[4, 4], domain=False, ticks=False)),
            color=alt.Color(f"{category}:N", legend=None, scale=alt.Scale(range=CHOCOLATE_PALETTE)),
            opacity=alt.condition(hover, alt.value(1), alt.value(0.6)),
            tooltip=[alt.Tooltip(f"{category}:N"), alt.Tooltip(f"{value}:Q", title=title, format=",")],
        )
        .add_params(hover)
        .properties(height=260)
    )
    return to_vega_spec(chart)


def share_pie(rows: List[Dict[str, Any]], category: str, value: str) -> Dict[str, Any]:
    df = pd.DataFrame(rows)
    chart = (
        alt.Chart(df)
        .mark_arc(innerRadius=50)
        .encode(
            theta=alt.Theta(f"{value}:Q"),
            color=alt.Color(f"{category}:N", scale=alt.Scale(range=CHOCOLATE_PALETTE)),
            tooltip=[alt.Tooltip(f"{category}:N"), alt.Tooltip(f"{value}:Q", format=",")],
        )
        .properties(height=260)
    )
    return to_vega_spec(chart)


def heatmap_chart(cells: Iterable[Dict[str, Any]], row: str, col: str, value: str) -> Dict[str, Any]:
    """Cell colors come from each cell's precomputed ``color`` field."""
    df = pd.DataFrame(list(cells))
    base = alt.Chart(df).encode(
        x=alt.X(f"{col}:N", title=None, sort=None),
        y=alt.Y(f"{row}:N", title=None, sort=None),
    )
    rects = base.mark_rect().encode(
        color=alt.Color("color:N", scale=None, legend=None),
        tooltip=[
            alt.Tooltip(f"{row}:N"),
            alt.Tooltip(f"{col}:N"),
            alt.Tooltip(f"{value}:Q", format=",.0f"),
            alt.Tooltip("tier:N", title="Intensity"),
        ],
    )
    labels = base.mark_text(fontSize=11).encode(text=alt.Text(f"{value}:Q", format=",.0f"))
    return to_vega_spec(alt.layer(rects, labels).properties(height=320))
