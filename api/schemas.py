from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DashboardFiltersModel(BaseModel):
    regions: List[str] = Field(default_factory=list)
    brands: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)
    channels: List[str] = Field(default_factory=list)
    min_age: Optional[int] = None
    max_age: Optional[int] = None
    top_n: int = 10


class DetailRequest(BaseModel):
    filters: DashboardFiltersModel = Field(default_factory=DashboardFiltersModel)
    payload: Dict[str, Any] = Field(default_factory=dict)


class MetaOptionsResponse(BaseModel):
    regions: List[str]
    brands: List[str]
    genders: List[str]
    channels: List[str]
    load_error: Optional[str] = None
