from __future__ import annotations

import math
from typing import Optional, Tuple

import pandas as pd

from choco.aggregation import empty_table, group_by
from choco.records import RecordsLike, normalize_category

MIN_AGE = 13
AGE_BRACKETS: Tuple[str, ...] = ("13-20", "21-30", "31-40", "41-50", "51-60", "60+")
_BRACKET_BOUNDS = (
    (13, 20, "13-20"),
    (21, 30, "21-30"),
    (31, 40, "31-40"),
    (41, 50, "41-50"),
    (51, 60, "51-60"),
)
OPEN_BRACKET = "60+"

UNCLASSIFIED = "Unclassified"
# Checked in order; the first family with a matching keyword wins.
BRAND_FAMILIES: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Dark", ("Dark", "Amul")),
    ("Milk", ("Dairy", "KitKat", "5 Star")),
    ("Premium", ("Ferrero", "Toblerone")),
)
FAMILY_ORDER: Tuple[str, ...] = tuple(family for family, _ in BRAND_FAMILIES)


def age_to_bracket(age: object) -> Optional[str]:
    """Map an age to its bracket label, or None below 13 or when missing.

    Fractional ages use their whole-year part, so 20.9 is still "13-20".
    """
    if age is None or isinstance(age, bool):
        return None
    try:
        value = float(age)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(value):
        return None
    whole = math.floor(value)
    if whole < MIN_AGE:
        return None
    for low, high, label in _BRACKET_BOUNDS:
        if low <= whole <= high:
            return label
    return OPEN_BRACKET


def age_bracket_series(frame: pd.DataFrame) -> pd.Series:
    if "age" not in frame.columns:
        return pd.Series(None, index=frame.index, dtype=object)
    return frame["age"].map(age_to_bracket).astype(object)


age_bracket_series.table_name = "age_bracket"  # type: ignore[attr-defined]


def age_bracket_table(records: RecordsLike, value: str = "average_spend_inr") -> pd.DataFrame:
    """StatTable over age brackets, in bracket order, empty brackets left out."""
    table = group_by(records, age_bracket_series, value=value)
    order = [b for b in AGE_BRACKETS if b in table.index]
    return table.reindex(order)


def brand_to_family(brand_name: object) -> str:
    name = normalize_category(brand_name)
    if name is None:
        return UNCLASSIFIED
    for family, keywords in BRAND_FAMILIES:
        if any(k in name for k in keywords):
            return family
    return UNCLASSIFIED


def family_totals(brand_table: pd.DataFrame) -> pd.DataFrame:
    """Roll a brand StatTable up to families; Unclassified brands are left out."""
    if brand_table.empty:
        return empty_table("family")
    work = brand_table.assign(family=[brand_to_family(b) for b in brand_table.index])
    work = work[work["family"] != UNCLASSIFIED]
    if work.empty:
        return empty_table("family")
    table = work.groupby("family", sort=False)[["count", "sum"]].sum()
    table = table.reindex([f for f in FAMILY_ORDER if f in table.index])
    table["count"] = table["count"].astype("int64")
    table.index.name = "family"
    return table
