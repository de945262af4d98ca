from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import pandas as pd

DEFAULT_TOP_N = 10
MAX_TOP_N = 50


@dataclass(frozen=True)
class DashboardFilters:
    regions: List[str] = field(default_factory=list)
    brands: List[str] = field(default_factory=list)
    genders: List[str] = field(default_factory=list)
    channels: List[str] = field(default_factory=list)
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    top_n: int = DEFAULT_TOP_N


def _as_str_list(values: Optional[Iterable[object]]) -> List[str]:
    if not values:
        return []
    if isinstance(values, str):
        values = [values]
    out: List[str] = []
    for v in values:
        if v is None:
            continue
        s = str(v).strip()
        if s and s not in {"All", "Global"}:
            out.append(s)
    return out


def _as_optional_int(value: object) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None


def normalize_filters(raw: Optional[dict]) -> DashboardFilters:
    raw = raw or {}
    top_n = _as_optional_int(raw.get("top_n"))
    top_n = DEFAULT_TOP_N if top_n is None else max(1, min(MAX_TOP_N, top_n))

    min_age = _as_optional_int(raw.get("min_age"))
    max_age = _as_optional_int(raw.get("max_age"))
    if min_age is not None and max_age is not None and min_age > max_age:
        min_age, max_age = max_age, min_age

    return DashboardFilters(
        regions=_as_str_list(raw.get("regions")),
        brands=_as_str_list(raw.get("brands")),
        genders=_as_str_list(raw.get("genders")),
        channels=_as_str_list(raw.get("channels")),
        min_age=min_age,
        max_age=max_age,
        top_n=top_n,
    )


def apply_filters(frame: pd.DataFrame, filters: DashboardFilters) -> pd.DataFrame:
    if frame.empty:
        return frame
    out = frame
    for col, selected in [
        ("region", filters.regions),
        ("brand_preference", filters.brands),
        ("gender", filters.genders),
        ("purchase_channel", filters.channels),
    ]:
        if selected and col in out.columns:
            out = out[out[col].isin(set(selected))]
    if filters.min_age is not None and "age" in out.columns:
        out = out[out["age"] >= filters.min_age]
    if filters.max_age is not None and "age" in out.columns:
        out = out[out["age"] <= filters.max_age]
    return out.reset_index(drop=True)
