from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Hashable, Iterable, Mapping, Tuple, Union

import pandas as pd

from choco.aggregation import ratio_half_up


class IntensityTier(Enum):
    LOW = ("Low", 0, "#22c55e")
    MEDIUM = ("Medium", 1, "#eab308")
    HIGH = ("High", 2, "#ea580c")
    HIGHEST = ("Highest", 3, "#dc2626")

    def __init__(self, label: str, rank: int, color: str) -> None:
        self.label = label
        self.rank = rank
        self.color = color


# Decimal places a ratio is rounded to before it is tiered.
RATIO_DIGITS = 12

# Lower bound of each tier, highest first.
TIER_FLOORS: Tuple[Tuple[float, IntensityTier], ...] = (
    (0.75, IntensityTier.HIGHEST),
    (0.50, IntensityTier.HIGH),
    (0.25, IntensityTier.MEDIUM),
    (0.0, IntensityTier.LOW),
)


@dataclass(frozen=True)
class Intensity:
    ratio: float
    tier: IntensityTier
    color: str
    percent: int

    def to_dict(self) -> Dict[str, object]:
        return {"ratio": self.ratio, "tier": self.tier.label, "color": self.color, "percent": self.percent}


def tier_for_ratio(ratio: float) -> IntensityTier:
    for floor, tier in TIER_FLOORS:
        if ratio >= floor:
            return tier
    return IntensityTier.LOW


def _intensity(ratio: float) -> Intensity:
    tier = tier_for_ratio(ratio)
    return Intensity(ratio=ratio, tier=tier, color=tier.color, percent=int(ratio_half_up(ratio, 1, scale=100)))


def compute_intensity(
    values: Union[Mapping[Hashable, float], Iterable[Tuple[Hashable, float]]],
) -> Dict[Hashable, Intensity]:
    """Scale each value against the largest in the set and assign a tier.

    An empty set, or one whose maximum is not positive, gives every entity a
    ratio of 0. Negative and missing values are treated as 0.
    """
    pairs = list(values.items()) if isinstance(values, Mapping) else list(values)
    if not pairs:
        return {}
    cleaned = [(entity, 0.0 if v is None or pd.isna(v) else max(0.0, float(v))) for entity, v in pairs]
    peak = max(v for _, v in cleaned)
    out: Dict[Hashable, Intensity] = {}
    for entity, v in cleaned:
        ratio = min(1.0, round(v / peak, RATIO_DIGITS)) if peak > 0 else 0.0
        out[entity] = _intensity(ratio)
    return out


def intensity_grid(grid: pd.DataFrame) -> Dict[Tuple[Hashable, Hashable], Intensity]:
    """Intensity for every cell of a pivot grid, scaled by the grid-wide max."""
    if grid.empty:
        return {}
    return compute_intensity(
        ((row, col), grid.at[row, col]) for row in grid.index for col in grid.columns
    )
