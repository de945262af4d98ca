from __future__ import annotations

import logging
import math
from typing import Any, Callable, Dict, Optional

import numpy as np
import pandas as pd
from fastapi import FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from api.schemas import DashboardFiltersModel, DetailRequest, MetaOptionsResponse
from choco.filters import DashboardFilters, normalize_filters
from choco.metrics_behavior import compute_behavior
from choco.metrics_brands import compute_brands
from choco.metrics_debug import compute_debug
from choco.metrics_demographics import compute_demographics
from choco.metrics_detail import compute_detail
from choco.metrics_overview import compute_overview
from choco.metrics_regions import compute_regions
from choco.records import RecordStore, prepare_context
from choco.search import build_index, build_search_aggregates, query

logger = logging.getLogger(__name__)


def _filters_from_model(model: Optional[DashboardFiltersModel]) -> DashboardFilters:
    raw = model.model_dump() if model is not None else {}
    return normalize_filters(raw)


def _json(data: object) -> JSONResponse:
    """Return JSON with safe encoding for pandas/numpy objects."""

    def _safe_float(value: object) -> float | None:
        try:
            out = float(value)  # type: ignore[arg-type]
        except (TypeError, ValueError):
            return None
        if math.isnan(out) or math.isinf(out):
            return None
        return out

    return JSONResponse(
        content=jsonable_encoder(
            data,
            custom_encoder={
                type(pd.NA): lambda _: None,
                np.integer: int,
                float: _safe_float,
                np.floating: _safe_float,
                np.bool_: bool,
                np.ndarray: lambda arr: arr.tolist(),
            },
        )
    )


def _error(name: str, exc: Exception) -> JSONResponse:
    logger.exception("%s failed", name)
    return JSONResponse(status_code=500, content={"error": str(exc), "type": type(exc).__name__})


def _distinct(frame: pd.DataFrame, col: str) -> list[str]:
    if frame.empty or col not in frame.columns:
        return []
    return sorted(str(x) for x in frame[col].dropna().unique().tolist())


def create_app(store: Optional[RecordStore] = None) -> FastAPI:
    store = store or RecordStore()
    app = FastAPI(title="Chocolate Consumer Dashboard API", version="0.1.0")
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://127.0.0.1:3000", "http://localhost:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    def _page(name: str, compute: Callable[..., Dict[str, Any]], filters: DashboardFiltersModel, **kwargs: Any) -> JSONResponse:
        try:
            f = _filters_from_model(filters)
            ctx = prepare_context(f, store)
            return _json(compute(f, ctx, **kwargs))
        except Exception as exc:
            return _error(name, exc)

    @app.get("/meta/options", response_model=MetaOptionsResponse)
    def meta_options():
        try:
            frame = store.frame()
            load_error = store.load_error
            return _json(
                {
                    "regions": _distinct(frame, "region"),
                    "brands": _distinct(frame, "brand_preference"),
                    "genders": _distinct(frame, "gender"),
                    "channels": _distinct(frame, "purchase_channel"),
                    "load_error": str(load_error) if load_error is not None else None,
                }
            )
        except Exception as exc:
            return _error("meta_options", exc)

    @app.post("/overview")
    def overview(filters: DashboardFiltersModel):
        return _page("overview", compute_overview, filters)

    @app.post("/brands")
    def brands(filters: DashboardFiltersModel):
        return _page("brands", compute_brands, filters)

    @app.post("/regions")
    def regions(filters: DashboardFiltersModel):
        return _page("regions", compute_regions, filters)

    @app.post("/demographics")
    def demographics(filters: DashboardFiltersModel):
        return _page("demographics", compute_demographics, filters)

    @app.post("/behavior")
    def behavior(filters: DashboardFiltersModel):
        return _page("behavior", compute_behavior, filters)

    @app.post("/debug")
    def debug(filters: DashboardFiltersModel):
        return _page("debug", compute_debug, filters)

    @app.post("/detail")
    def detail(request: DetailRequest):
        return _page("detail", compute_detail, request.filters, payload=request.payload)

    @app.get("/search")
    def search(q: str = Query(default="")):
        try:
            index = build_index(build_search_aggregates(store.frame()))
            results = query(index, q)
            return _json({"q": q, "results": [entry.to_dict() for entry in results]})
        except Exception as exc:
            return _error("search", exc)

    return app


app = create_app()
