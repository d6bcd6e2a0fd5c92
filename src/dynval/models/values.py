"""ADP observations and daily valuation snapshots."""

from __future__ import annotations

import math
from datetime import date
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic.config import ConfigDict


class AdpRow(BaseModel):
    """One ADP entry already keyed by the roster's identifier scheme."""

    player_id: str = Field(..., min_length=1)
    adp: float
    position: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("adp")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("adp must be finite")
        return value


class AdpObservation(BaseModel):
    """A source's opinion of a player's draft position on a given date."""

    as_of: date
    source: str
    player_id: str = Field(..., min_length=1)
    raw_value: float
    position: Optional[str] = None
    metadata: Dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(frozen=True)

    @field_validator("raw_value")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("raw_value must be finite")
        return value


class DailyValueRecord(BaseModel):
    """Computed valuation snapshot for one player on one date."""

    as_of: date
    player_id: str = Field(..., min_length=1)
    market_value: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    projection_score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    age_score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    risk_score: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    dynasty_value: Optional[float] = Field(default=None, ge=0.0, le=100.0)
    trend_7d: Optional[float] = None
    trend_30d: Optional[float] = None

    model_config = ConfigDict(frozen=True)
