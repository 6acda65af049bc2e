from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field


class SalesFiltersModel(BaseModel):
    store: str = "all"
    category: str = "all"
    month: str = "all"
    day_of_week: str = "all"
    profit_range: Tuple[float, float] = (0.0, 100.0)


class SimulationSessionModel(BaseModel):
    best_roi: float = 0.0
    best_budget: Optional[float] = None


class SimulationRequest(BaseModel):
    filters: SalesFiltersModel = Field(default_factory=SalesFiltersModel)
    budget: float = 500_000
    session: SimulationSessionModel = Field(default_factory=SimulationSessionModel)


class MetaOptionsResponse(BaseModel):
    stores: List[str]
    categories: List[str]
    months: List[str]
    days_of_week: List[str]
