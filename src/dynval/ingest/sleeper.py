"""Roster adapter for the Sleeper public player directory."""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import ValidationError

from dynval.errors import FetchError
from dynval.models import RosterEntry

from .http import get_json


logger = logging.getLogger(__name__)

SLEEPER_BASE_URL = "https://api.sleeper.app/v1"
ROSTER_SOURCE = "sleeper_players"


def _coerce_age(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def parse_roster(payload: Mapping[str, Any]) -> Dict[str, RosterEntry]:
    """Convert the raw ``{player_id: {...}}`` payload into roster entries.

    Malformed entries are skipped; missing age or position is kept as
    ``None`` so filtering can exclude the player later.
    """

    roster: Dict[str, RosterEntry] = {}
    skipped = 0
    for player_id, raw in payload.items():
        if not isinstance(raw, Mapping):
            skipped += 1
            continue
        data = dict(raw)
        data["player_id"] = str(player_id)
        data["age"] = _coerce_age(raw.get("age"))
        try:
            roster[str(player_id)] = RosterEntry.model_validate(data)
        except ValidationError as exc:
            skipped += 1
            logger.debug("Skipping roster entry %s: %s", player_id, exc)
    if skipped:
        logger.warning("Skipped %d malformed roster entries", skipped)
    return roster


class SleeperRosterSource:
    """Fetch the full NFL player universe keyed by Sleeper player id."""

    source_tag = ROSTER_SOURCE

    def __init__(self, client: httpx.AsyncClient, *, base_url: str = SLEEPER_BASE_URL):
        self._client = client
        self._base_url = base_url.rstrip("/")

    async def fetch(self) -> Dict[str, RosterEntry]:
        payload = await get_json(self._client, f"{self._base_url}/players/nfl", source=ROSTER_SOURCE)
        if not isinstance(payload, Mapping):
            raise FetchError(ROSTER_SOURCE, "payload is not a player mapping")
        roster = parse_roster(payload)
        logger.info("Fetched %d roster entries from Sleeper", len(roster))
        return roster


class StaticRosterSource:
    """Roster source over an in-memory mapping (tests, offline runs)."""

    source_tag = "static_roster"

    def __init__(self, payload: Mapping[str, Any]):
        self._roster = parse_roster(payload)

    async def fetch(self) -> Dict[str, RosterEntry]:
        return dict(self._roster)
