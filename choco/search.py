from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Sequence, Tuple

import pandas as pd

from choco.aggregation import average_per_key, group_by, percentage_share, ratio_half_up
from choco.bucketing import age_bracket_table
from choco.records import RecordsLike, to_frame


@dataclass(frozen=True)
class SearchEntry:
    title: str
    description: str
    category: str
    target_view: str
    payload: Dict[str, Any] = field(default_factory=dict)
    keywords: Tuple[str, ...] = ()

    def matches(self, needle: str) -> bool:
        if needle in self.title.lower() or needle in self.category.lower():
            return True
        return any(needle in k.lower() for k in self.keywords)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "target_view": self.target_view,
            "payload": dict(self.payload),
        }


@dataclass(frozen=True)
class SearchAggregates:
    brands: pd.DataFrame
    regions: pd.DataFrame
    age_brackets: pd.DataFrame
    channels: pd.DataFrame
    total_records: int = 0
    total_spend: float = 0.0


def build_search_aggregates(records: RecordsLike) -> SearchAggregates:
    frame = to_frame(records)
    return SearchAggregates(
        brands=group_by(frame, "brand_preference"),
        regions=group_by(frame, "region"),
        age_brackets=age_bracket_table(frame),
        channels=group_by(frame, "purchase_channel"),
        total_records=int(len(frame)),
        total_spend=float(frame["average_spend_inr"].sum()) if not frame.empty else 0.0,
    )


def _brand_entries(agg: SearchAggregates) -> Iterable[SearchEntry]:
    shares = percentage_share(agg.brands, agg.total_records)
    for brand, row in agg.brands.iterrows():
        count = int(row["count"])
        share = shares.get(brand)
        yield SearchEntry(
            title=str(brand),
            description=f"{share}% of consumers prefer {brand} ({count} consumers)",
            category="Brand",
            target_view="brand-analysis",
            payload={"brand": brand, "consumers": count, "share_pct": share, "revenue": float(row["sum"])},
            keywords=("brand", "share"),
        )


def _region_entries(agg: SearchAggregates) -> Iterable[SearchEntry]:
    averages = average_per_key(agg.regions, rounded=True)
    for region, row in agg.regions.iterrows():
        count = int(row["count"])
        yield SearchEntry(
            title=str(region),
            description=f"Average spend ₹{averages[region]} across {count} consumers",
            category="Region",
            target_view="regional-spending",
            payload={"region": region, "consumers": count, "avg_spend": averages[region], "revenue": float(row["sum"])},
            keywords=("region", "average", "spend"),
        )


def _age_entries(agg: SearchAggregates) -> Iterable[SearchEntry]:
    for bracket, row in agg.age_brackets.iterrows():
        count = int(row["count"])
        yield SearchEntry(
            title=f"Age {bracket}",
            description=f"{count} consumers aged {bracket}",
            category="Age Group",
            target_view="consumer-insights",
            payload={"age_bracket": bracket, "consumers": count},
            keywords=("age", "demographics"),
        )


def _channel_entries(agg: SearchAggregates) -> Iterable[SearchEntry]:
    for channel, row in agg.channels.iterrows():
        revenue = float(row["sum"])
        yield SearchEntry(
            title=str(channel),
            description=f"₹{revenue:,.0f} revenue through {channel}",
            category="Channel",
            target_view="trends",
            payload={"channel": channel, "revenue": revenue, "consumers": int(row["count"])},
            keywords=("channel", "revenue"),
        )


def _fact_entries(agg: SearchAggregates) -> Iterable[SearchEntry]:
    if not agg.total_records:
        return
    revenue_k = ratio_half_up(agg.total_spend, 1000, 1)
    avg_spend = int(ratio_half_up(agg.total_spend, agg.total_records))
    yield SearchEntry(
        title="Total Revenue",
        description=f"₹{revenue_k}K total spend across {agg.total_records} consumers",
        category="Fact",
        target_view="reports",
        payload={"total_revenue": agg.total_spend},
        keywords=("revenue", "sales", "total"),
    )
    yield SearchEntry(
        title="Average Spend",
        description=f"Consumers spend an average of ₹{avg_spend} per purchase",
        category="Fact",
        target_view="reports",
        payload={"avg_spend": avg_spend},
        keywords=("average", "spend"),
    )
    yield SearchEntry(
        title="Total Consumers",
        description=f"{agg.total_records} survey responses",
        category="Fact",
        target_view="consumer-insights",
        payload={"total_consumers": agg.total_records},
        keywords=("consumers", "responses"),
    )


def build_index(aggregates: SearchAggregates) -> List[SearchEntry]:
    """Flatten the aggregates into search entries.

    Order is fixed: brands, regions, age brackets, channels, then the
    keyword facts. Query results keep this order.
    """
    entries: List[SearchEntry] = []
    for section in (_brand_entries, _region_entries, _age_entries, _channel_entries, _fact_entries):
        entries.extend(section(aggregates))
    return entries


def query(index: Sequence[SearchEntry], text: str) -> List[SearchEntry]:
    needle = (text or "").strip().lower()
    if not needle:
        return []
    return [entry for entry in index if entry.matches(needle)]
