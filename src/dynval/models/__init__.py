"""Pydantic models shared across ingestion, valuation and persistence."""

from .player import PlayerRecord, RosterEntry
from .values import AdpObservation, AdpRow, DailyValueRecord

__all__ = [
    "AdpObservation",
    "AdpRow",
    "DailyValueRecord",
    "PlayerRecord",
    "RosterEntry",
]
