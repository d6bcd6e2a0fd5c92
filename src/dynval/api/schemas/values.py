from __future__ import annotations

from datetime import date
from typing import Dict, List

from pydantic import BaseModel, Field


class PlayerValueResponse(BaseModel):
    player_id: str
    name: str
    position: str
    team: str
    age: float | None
    as_of_date: date
    market_value: float | None
    projection_score: float | None
    age_score: float | None
    risk_score: float | None
    dynasty_value: float | None
    trend_7d: float | None
    trend_30d: float | None


class TrendValuesResponse(BaseModel):
    dynasty_value: float | None
    trend_7d: float | None
    trend_30d: float | None


class BatchValuesRequest(BaseModel):
    player_ids: List[str] = Field(default_factory=list)


class BatchValuesResponse(BaseModel):
    as_of_date: date
    values: Dict[str, TrendValuesResponse]


class RunResponse(BaseModel):
    ok: bool
    as_of_date: date | None = None
    valid_values: int | None = None
    error: str | None = None
