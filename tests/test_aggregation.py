from __future__ import annotations

import pandas as pd
import pytest

from choco.aggregation import (
    average_per_key,
    cross_share,
    group_by,
    percentage_share,
    pivot_sum,
    ranked_top_n,
    ratio_half_up,
    round_half_up,
    score_distribution,
    stat_records,
    top_entity,
    top_or_none,
)
from choco.errors import NoDataError

REGION_SPEND = [
    {"region": "North", "average_spend_inr": 100},
    {"region": "North", "average_spend_inr": 300},
    {"region": "South", "average_spend_inr": 200},
]


def test_group_by_region_scenario():
    table = group_by(REGION_SPEND, "region")
    assert list(table.index) == ["North", "South"]
    assert table.loc["North", "count"] == 2
    assert table.loc["North", "sum"] == 400.0
    assert table.loc["South", "count"] == 1
    assert table.loc["South", "sum"] == 200.0
    assert top_entity(table) == ("North", 2)
    assert average_per_key(table) == {"North": 200.0, "South": 200.0}


def test_group_by_accepts_dataframe_and_key_function():
    def initial(frame):
        return frame["region"].str[0]

    table = group_by(pd.DataFrame(REGION_SPEND), initial)
    assert table.index.name == "initial"
    assert table["count"].to_dict() == {"N": 2, "S": 1}


def test_count_matches_records_with_a_key():
    records = REGION_SPEND + [
        {"region": None, "average_spend_inr": 50},
        {"region": "   ", "average_spend_inr": 70},
        {"average_spend_inr": 10},
    ]
    table = group_by(records, "region")
    assert int(table["count"].sum()) == 3


def test_missing_value_counts_but_adds_nothing():
    table = group_by([{"region": "West", "average_spend_inr": None}, {"region": "West", "average_spend_inr": 40}], "region")
    assert table.loc["West", "count"] == 2
    assert table.loc["West", "sum"] == 40.0


def test_empty_input_gives_empty_tables():
    assert group_by([], "region").empty
    assert group_by(pd.DataFrame(), "brand_preference").empty
    assert pivot_sum([], "region", "brand_preference").empty
    assert cross_share([], "region", "brand_preference") == {}
    assert score_distribution([]).empty


def test_top_entity_on_empty_table_raises():
    with pytest.raises(NoDataError):
        top_entity(group_by([], "region"))
    assert top_or_none(group_by([], "region")) is None


def test_top_entity_ties_go_to_first_seen(sample_records):
    regions = group_by(sample_records, "region")
    assert top_entity(regions) == ("North", 2)
    assert top_entity(regions, "sum") == ("East", 500.0)
    assert top_or_none(regions, "sum") == {"name": "East", "sum": 500.0}


def test_percentage_share_sums_to_hundred():
    table = group_by([{"region": r, "average_spend_inr": 1} for r in ("A", "B", "C")], "region")
    shares = percentage_share(table, 3)
    assert shares == {"A": 33.3, "B": 33.3, "C": 33.3}
    assert abs(sum(shares.values()) - 100.0) <= 0.1 * len(shares)


def test_percentage_share_rounds_exact_halves_up():
    records = [{"region": "North", "average_spend_inr": 23}] * 23 + [{"region": "South", "average_spend_inr": 1}] * 57
    table = group_by(records, "region")
    assert percentage_share(table, 80) == {"North": 28.8, "South": 71.3}


def test_revenue_share_rounds_exact_halves_up():
    table = group_by(
        [{"brand_preference": "KitKat", "average_spend_inr": 23}, {"brand_preference": "Toblerone", "average_spend_inr": 57}],
        "brand_preference",
    )
    assert percentage_share(table, 80, metric="sum") == {"KitKat": 28.8, "Toblerone": 71.3}


def test_percentage_share_with_zero_total():
    table = group_by(REGION_SPEND, "region")
    assert percentage_share(table, 0) == {}


def test_percentage_share_by_sum(sample_records):
    brands = group_by(sample_records, "brand_preference")
    shares = percentage_share(brands, 1250, metric="sum")
    assert shares["Ferrero Rocher"] == 40.0
    assert shares["Hershey's"] == 12.0


def test_average_per_key_rounds_half_up():
    table = group_by(
        [{"region": "North", "average_spend_inr": 1}, {"region": "North", "average_spend_inr": 2}],
        "region",
    )
    assert average_per_key(table, rounded=True) == {"North": 2}


def test_ranked_top_n_is_stable():
    records = [{"brand_preference": b, "average_spend_inr": 10} for b in ("A", "B", "C", "B", "C")]
    table = group_by(records, "brand_preference")
    assert ranked_top_n(table, 3) == [("B", 2), ("C", 2), ("A", 1)]
    assert ranked_top_n(table, 2) == [("B", 2), ("C", 2)]
    assert ranked_top_n(table, 0) == []


def test_ranked_top_n_by_sum(sample_records):
    brands = group_by(sample_records, "brand_preference")
    ranked = ranked_top_n(brands, 3, metric="sum")
    assert ranked == [("Ferrero Rocher", 500.0), ("Cadbury Dairy Milk", 300.0), ("Amul Dark", 300.0)]


def test_round_half_up():
    assert round_half_up(2.5) == 3.0
    assert round_half_up(0.125, 2) == 0.13
    assert round_half_up(-1.5) == -2.0
    assert round_half_up(None) is None
    assert round_half_up(float("nan")) is None


def test_ratio_half_up():
    assert ratio_half_up(23, 80, 1, scale=100) == 28.8
    assert ratio_half_up(1, 8, 2) == 0.13
    assert ratio_half_up(5, 2) == 3.0
    assert ratio_half_up(1, 0) is None
    assert ratio_half_up(None, 4) is None


def test_stat_records(sample_records):
    rows = stat_records(group_by(sample_records, "region"), "region", total_records=5)
    assert rows[0] == {"region": "North", "count": 2, "sum": 400.0, "avg": 200, "share_pct": 40.0}
    assert [r["region"] for r in rows] == ["North", "South", "East"]


def test_cross_share(sample_records):
    mix = cross_share(sample_records, "region", "brand_preference")
    assert mix["North"] == {"Cadbury Dairy Milk": 0.5, "Amul Dark": 0.5}
    assert mix["East"] == {"Ferrero Rocher": 1.0}


def test_cross_share_rounds_exact_halves_up():
    records = [{"region": "West", "brand_preference": "Toblerone"}] + [
        {"region": "West", "brand_preference": "KitKat"}
    ] * 7
    assert cross_share(records, "region", "brand_preference", ndigits=2) == {"West": {"Toblerone": 0.13, "KitKat": 0.88}}


def test_pivot_sum_fills_missing_pairs(sample_records):
    grid = pivot_sum(sample_records, "brand_preference", "region")
    assert list(grid.index) == ["Cadbury Dairy Milk", "Amul Dark", "Ferrero Rocher", "Hershey's"]
    assert list(grid.columns) == ["North", "South", "East"]
    assert grid.loc["Cadbury Dairy Milk", "South"] == 200.0
    assert grid.loc["Amul Dark", "South"] == 0.0
    assert float(grid.to_numpy().sum()) == 1250.0


def test_score_distribution(sample_records):
    table = score_distribution(sample_records)
    assert [int(k) for k in table.index] == [3, 4]
    assert table["count"].tolist() == [2, 3]
