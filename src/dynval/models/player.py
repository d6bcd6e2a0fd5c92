"""Canonical player models shared across ingestion and valuation layers."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field
from pydantic.config import ConfigDict


class RosterEntry(BaseModel):
    """Raw roster payload for one player as reported by the roster source."""

    player_id: str = Field(..., min_length=1)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    full_name: Optional[str] = None
    position: Optional[str] = None
    team: Optional[str] = None
    age: Optional[float] = None
    active: Optional[bool] = None
    years_exp: Optional[int] = None
    injury_status: Optional[str] = None
    depth_chart_order: Optional[int] = None

    model_config = ConfigDict(frozen=True, extra="ignore")

    @property
    def display_name(self) -> str:
        if self.full_name:
            return self.full_name.strip()
        return f"{self.first_name or ''} {self.last_name or ''}".strip()


class PlayerRecord(BaseModel):
    """Player identity row persisted for every fantasy-relevant player."""

    player_id: str = Field(..., min_length=1)
    name: str
    position: str
    team: str = ""
    age: Optional[float] = None

    model_config = ConfigDict(frozen=True)
