from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from choco.errors import NoDataError
from choco.records import RecordsLike, to_frame

KeyFn = Union[str, Callable[[pd.DataFrame], pd.Series]]

SPEND_FIELD = "average_spend_inr"


def round_half_up(value: object, ndigits: int = 0) -> Optional[float]:
    if value is None or pd.isna(value):
        return None
    q = Decimal(10) ** -ndigits
    return float(Decimal(str(value)).quantize(q, rounding=ROUND_HALF_UP))


def ratio_half_up(part: object, whole: object, ndigits: int = 0, scale: int = 1) -> Optional[float]:
    """``part / whole * scale`` worked out in Decimal, then rounded half-up.

    Exact halves stay exact: 23 of 80 is 28.75%, which rounds to 28.8.
    """
    if part is None or whole is None or pd.isna(part) or pd.isna(whole) or not whole:
        return None
    exact = Decimal(str(part)) * scale / Decimal(str(whole))
    q = Decimal(10) ** -ndigits
    return float(exact.quantize(q, rounding=ROUND_HALF_UP))


def empty_table(name: Optional[str] = None) -> pd.DataFrame:
    return pd.DataFrame(
        {"count": pd.Series(dtype="int64"), "sum": pd.Series(dtype="float64")},
        index=pd.Index([], dtype=object, name=name),
    )


def _key_name(key: KeyFn) -> Optional[str]:
    if isinstance(key, str):
        return key
    return getattr(key, "table_name", None) or getattr(key, "__name__", None)


def key_series(frame: pd.DataFrame, key: KeyFn) -> pd.Series:
    if callable(key):
        return key(frame)
    if key not in frame.columns:
        return pd.Series(None, index=frame.index, dtype=object)
    return frame[key]


def _value_series(frame: pd.DataFrame, value: str) -> pd.Series:
    if value not in frame.columns:
        return pd.Series(np.nan, index=frame.index, dtype="float64")
    return pd.to_numeric(frame[value], errors="coerce")


def _py(value: Any, metric: str) -> Union[int, float]:
    return int(value) if metric == "count" else float(value)


def group_by(records: RecordsLike, key: KeyFn, value: str = SPEND_FIELD) -> pd.DataFrame:
    """Partition records by ``key`` into a StatTable.

    The result is indexed by key value in first-appearance order and has an
    integer ``count`` and a float ``sum`` of ``value``. Rows with a null key
    are dropped; rows with a null value still count but add nothing to sum.
    """
    frame = to_frame(records)
    name = _key_name(key)
    if frame.empty:
        return empty_table(name)
    work = pd.DataFrame({"key": key_series(frame, key), "value": _value_series(frame, value)})
    work = work[work["key"].notna()]
    if work.empty:
        return empty_table(name)
    table = work.groupby("key", sort=False).agg(count=("value", "size"), sum=("value", "sum"))
    table["count"] = table["count"].astype("int64")
    table["sum"] = table["sum"].astype("float64")
    table.index.name = name
    return table


def top_entity(table: pd.DataFrame, metric: str = "count") -> Tuple[Hashable, Union[int, float]]:
    """Key with the largest ``metric``; ties go to the key seen first."""
    if table.empty:
        raise NoDataError(f"cannot pick a top entity by {metric} from an empty table")
    col = table[metric]
    key = col.idxmax()
    return key, _py(col.loc[key], metric)


def percentage_share(table: pd.DataFrame, total_records: float, metric: str = "count") -> Dict[Hashable, float]:
    if table.empty or not total_records:
        return {}
    return {key: ratio_half_up(v, total_records, 1, scale=100) for key, v in table[metric].items()}


def average_per_key(table: pd.DataFrame, rounded: bool = False) -> Dict[Hashable, Union[int, float]]:
    if table.empty:
        return {}
    if rounded:
        return {key: int(ratio_half_up(row["sum"], row["count"])) for key, row in table.iterrows()}
    averages = table["sum"] / table["count"]
    return {key: float(v) for key, v in averages.items()}


def ranked_top_n(table: pd.DataFrame, n: int, metric: str = "count") -> List[Tuple[Hashable, Union[int, float]]]:
    if n <= 0 or table.empty:
        return []
    ranked = table.sort_values(metric, ascending=False, kind="stable").head(n)
    return [(key, _py(v, metric)) for key, v in ranked[metric].items()]


def stat_records(table: pd.DataFrame, label: str, *, total_records: Optional[float] = None) -> List[Dict[str, Any]]:
    """Flatten a StatTable into row dicts for payloads and charts."""
    if table.empty:
        return []
    averages = average_per_key(table, rounded=True)
    shares = percentage_share(table, total_records) if total_records else {}
    rows = []
    for key, row in table.iterrows():
        rows.append(
            {
                label: key,
                "count": int(row["count"]),
                "sum": float(row["sum"]),
                "avg": averages[key],
                "share_pct": shares.get(key),
            }
        )
    return rows


def cross_share(records: RecordsLike, row_key: KeyFn, col_key: KeyFn, ndigits: int = 3) -> Dict[Hashable, Dict[Hashable, float]]:
    """Share of each ``col_key`` value within each ``row_key`` group."""
    frame = to_frame(records)
    if frame.empty:
        return {}
    work = pd.DataFrame({"row": key_series(frame, row_key), "col": key_series(frame, col_key)}).dropna()
    out: Dict[Hashable, Dict[Hashable, float]] = {}
    for row, part in work.groupby("row", sort=False):
        counts = part.groupby("col", sort=False).size()
        total = int(counts.sum())
        out[row] = {col: ratio_half_up(c, total, ndigits) for col, c in counts.items()}
    return out


def pivot_sum(records: RecordsLike, row_key: KeyFn, col_key: KeyFn, value: str = SPEND_FIELD) -> pd.DataFrame:
    """Row x column grid of summed ``value``, zero where a pair never occurs."""
    frame = to_frame(records)
    if frame.empty:
        return pd.DataFrame()
    work = pd.DataFrame(
        {
            "row": key_series(frame, row_key),
            "col": key_series(frame, col_key),
            "value": _value_series(frame, value),
        }
    ).dropna(subset=["row", "col"])
    if work.empty:
        return pd.DataFrame()
    row_order = list(pd.unique(work["row"]))
    col_order = list(pd.unique(work["col"]))
    grid = (
        work.groupby(["row", "col"], sort=False)["value"]
        .sum()
        .unstack(fill_value=0.0)
        .reindex(index=row_order, columns=col_order, fill_value=0.0)
        .astype("float64")
    )
    grid.index.name = _key_name(row_key)
    grid.columns.name = _key_name(col_key)
    return grid


def score_distribution(records: RecordsLike, field: str = "satisfaction_score") -> pd.DataFrame:
    """Count of records per floored integer score, ordered by score."""

    def floored(frame: pd.DataFrame) -> pd.Series:
        return np.floor(_value_series(frame, field)).astype("Int64")

    floored.table_name = field  # type: ignore[attr-defined]
    table = group_by(records, floored, value=field)
    return table.sort_index()


def top_or_none(table: pd.DataFrame, metric: str = "count") -> Optional[Dict[str, Any]]:
    """``top_entity`` for payloads: ``None`` instead of NoDataError."""
    try:
        key, value = top_entity(table, metric)
    except NoDataError:
        return None
    return {"name": key, metric: value}
