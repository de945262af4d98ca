from __future__ import annotations

import pytest

from choco.aggregation import group_by
from choco.bucketing import (
    AGE_BRACKETS,
    UNCLASSIFIED,
    age_bracket_table,
    age_to_bracket,
    brand_to_family,
    family_totals,
)


def test_every_age_from_13_to_120_has_one_bracket():
    for age in range(13, 121):
        assert age_to_bracket(age) in AGE_BRACKETS


@pytest.mark.parametrize(
    "age,bracket",
    [
        (13, "13-20"),
        (20, "13-20"),
        (21, "21-30"),
        (30, "21-30"),
        (31, "31-40"),
        (40, "31-40"),
        (41, "41-50"),
        (50, "41-50"),
        (51, "51-60"),
        (60, "51-60"),
        (61, "60+"),
        (120, "60+"),
    ],
)
def test_bracket_boundaries(age, bracket):
    assert age_to_bracket(age) == bracket


def test_fractional_ages_use_whole_years():
    assert age_to_bracket(20.9) == "13-20"
    assert age_to_bracket("45") == "41-50"


@pytest.mark.parametrize("age", [12, 0, -3, None, float("nan"), "unknown", True])
def test_ages_outside_brackets(age):
    assert age_to_bracket(age) is None


def test_age_bracket_table_uses_bracket_order(sample_records):
    records = sample_records + [{"age": 8, "average_spend_inr": 999}]
    table = age_bracket_table(list(reversed(records)))
    assert list(table.index) == ["13-20", "21-30", "31-40", "41-50", "60+"]
    assert int(table["count"].sum()) == 5


@pytest.mark.parametrize(
    "brand,family",
    [
        ("Amul Dark", "Dark"),
        ("Amul", "Dark"),
        ("Cadbury Dark Milk", "Dark"),
        ("Cadbury Dairy Milk", "Milk"),
        ("Nestle KitKat", "Milk"),
        ("Cadbury 5 Star", "Milk"),
        ("Ferrero Rocher", "Premium"),
        ("Toblerone", "Premium"),
        ("Hershey's", UNCLASSIFIED),
        ("dark fantasy", UNCLASSIFIED),
        (None, UNCLASSIFIED),
        ("", UNCLASSIFIED),
    ],
)
def test_brand_to_family(brand, family):
    assert brand_to_family(brand) == family


def test_family_totals_leave_out_unclassified(sample_records):
    families = family_totals(group_by(sample_records, "brand_preference"))
    assert list(families.index) == ["Dark", "Milk", "Premium"]
    assert families.loc["Milk", "count"] == 2
    assert families.loc["Milk", "sum"] == 300.0
    assert int(families["count"].sum()) == 4


def test_family_totals_empty_when_nothing_classifies():
    table = group_by([{"brand_preference": "Hershey's", "average_spend_inr": 10}], "brand_preference")
    assert family_totals(table).empty
    assert family_totals(group_by([], "brand_preference")).empty
