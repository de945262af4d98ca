from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Tuple, Union

import pandas as pd

from choco.errors import DataLoadError, MalformedRecordError
from choco.filters import DashboardFilters, apply_filters, normalize_filters

logger = logging.getLogger(__name__)

DATA_DIR = Path(__file__).resolve().parents[1] / "data"
DATA_PATH = DATA_DIR / "chocolate-data.json"

NUMERIC_FIELDS = ("age", "average_spend_inr", "satisfaction_score")
CATEGORY_FIELDS = (
    "gender",
    "region",
    "brand_preference",
    "purchase_frequency",
    "purchase_channel",
    "occasion",
    "mood",
)
NULL_TOKENS = {"nan", "none", "null", "<na>", "na", "n/a"}


@dataclass(frozen=True)
class ConsumerRecord:
    age: Optional[float] = None
    gender: Optional[str] = None
    region: Optional[str] = None
    brand_preference: Optional[str] = None
    purchase_frequency: Optional[str] = None
    average_spend_inr: Optional[float] = None
    purchase_channel: Optional[str] = None
    occasion: Optional[str] = None
    mood: Optional[str] = None
    satisfaction_score: Optional[float] = None


RECORD_FIELDS: Tuple[str, ...] = tuple(f.name for f in fields(ConsumerRecord))

RecordsLike = Union[pd.DataFrame, Iterable[Union[ConsumerRecord, Mapping[str, Any]]]]


def normalize_category(value: object) -> Optional[str]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    s = str(value).strip()
    if not s or s.lower() in NULL_TOKENS:
        return None
    return s


def normalize_number(value: object) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        out = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return None
    if math.isnan(out) or math.isinf(out):
        return None
    return out


def record_from_mapping(raw: Mapping[str, Any], *, strict: bool = False) -> ConsumerRecord:
    """Build a ConsumerRecord from one raw JSON object.

    Fields that are missing or cannot be coerced become ``None``. With
    ``strict=True`` the first such field raises MalformedRecordError instead.
    """
    if not isinstance(raw, Mapping):
        raise MalformedRecordError(f"expected an object, got {type(raw).__name__}")
    values: Dict[str, Any] = {}
    for name in RECORD_FIELDS:
        raw_value = raw.get(name)
        value = normalize_number(raw_value) if name in NUMERIC_FIELDS else normalize_category(raw_value)
        if strict and value is None:
            raise MalformedRecordError(f"field {name!r} is missing or malformed: {raw_value!r}")
        values[name] = value
    return ConsumerRecord(**values)


def numericize(df: pd.DataFrame, cols: Iterable[str]) -> pd.DataFrame:
    for col in cols:
        if col in df.columns:
            df[col] = pd.to_numeric(df[col], errors="coerce")
    return df


def to_frame(records: RecordsLike) -> pd.DataFrame:
    """One row per record, one column per record field, input order kept."""
    if isinstance(records, pd.DataFrame):
        frame = records.copy()
        for col in RECORD_FIELDS:
            if col not in frame.columns:
                frame[col] = None
        for col in CATEGORY_FIELDS:
            frame[col] = frame[col].map(normalize_category).astype(object)
        return numericize(frame, NUMERIC_FIELDS)

    rows: List[Dict[str, Any]] = []
    for rec in records:
        if isinstance(rec, ConsumerRecord):
            rows.append(asdict(rec))
        elif isinstance(rec, Mapping):
            rows.append(asdict(record_from_mapping(rec)))
    frame = pd.DataFrame(rows, columns=list(RECORD_FIELDS))
    return numericize(frame, NUMERIC_FIELDS)


def parse_records(raw: Iterable[Any]) -> Tuple[ConsumerRecord, ...]:
    out: List[ConsumerRecord] = []
    skipped = 0
    for entry in raw:
        try:
            out.append(record_from_mapping(entry))
        except MalformedRecordError:
            skipped += 1
    if skipped:
        logger.warning("Skipped %d entries that are not record objects", skipped)
    return tuple(out)


def read_csv_rows(path: Path) -> List[Dict[str, Any]]:
    df = pd.read_csv(path, dtype=str, encoding="utf-8-sig")
    df.columns = [str(c).strip() for c in df.columns]
    df = numericize(df, NUMERIC_FIELDS)
    if "age" in df.columns:
        df = df[df["age"] > 0]
    return df.astype(object).where(df.notna(), None).to_dict(orient="records")


def read_source(path: Path) -> Any:
    if path.suffix.lower() == ".csv":
        return read_csv_rows(path)
    with path.open("r", encoding="utf-8") as fh:
        return json.load(fh)


class RecordStore:
    """Holds the one record snapshot for a session.

    The first access loads from ``path`` (or from ``loader`` when given);
    every later access returns the cached snapshot. A failed load leaves an
    empty snapshot and the error on ``load_error``; it is not retried.
    """

    def __init__(
        self,
        path: Union[str, Path, None] = None,
        *,
        loader: Optional[Callable[[], Any]] = None,
    ) -> None:
        self.path = Path(path) if path is not None else DATA_PATH
        self._loader = loader
        self._records: Optional[Tuple[ConsumerRecord, ...]] = None
        self._frame: Optional[pd.DataFrame] = None
        self._load_error: Optional[DataLoadError] = None

    @property
    def loaded(self) -> bool:
        return self._records is not None

    @property
    def load_error(self) -> Optional[DataLoadError]:
        return self._load_error

    def get_records(self) -> Tuple[ConsumerRecord, ...]:
        if self._records is None:
            self._records = self._load()
        return self._records

    def frame(self) -> pd.DataFrame:
        records = self.get_records()
        if self._frame is None:
            self._frame = to_frame(records)
        return self._frame.copy()

    def _load(self) -> Tuple[ConsumerRecord, ...]:
        source = "custom loader" if self._loader is not None else str(self.path)
        try:
            raw = self._loader() if self._loader is not None else read_source(self.path)
            if not isinstance(raw, (list, tuple)):
                raise DataLoadError(f"{source}: expected an array of records, got {type(raw).__name__}")
            records = parse_records(raw)
        except Exception as exc:
            if isinstance(exc, DataLoadError):
                error = exc
            else:
                error = DataLoadError(f"{source}: {exc}")
                error.__cause__ = exc
            self._load_error = error
            logger.exception("Loading chocolate data failed (%s)", source)
            return ()
        logger.info("Loaded %d consumer records from %s", len(records), source)
        return records


def prepare_context(filters: dict | DashboardFilters, store: RecordStore) -> Dict[str, object]:
    records = store.frame()
    filt = filters if isinstance(filters, DashboardFilters) else normalize_filters(filters)
    load_error = store.load_error
    return {
        "filters": filt,
        "records": records,
        "filtered": apply_filters(records, filt),
        "load_error": str(load_error) if load_error is not None else None,
    }
