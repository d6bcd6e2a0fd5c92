"""Heuristic ADP derived from roster attributes when no market source exists.

Every row produced here is tagged ``source_kind="synthetic"`` so consumers
can tell heuristic filler apart from real market consensus.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional

from dynval.models import AdpRow, RosterEntry

from .adp import SOURCE_KIND_SYNTHETIC, AdpFetch


logger = logging.getLogger(__name__)

POSITION_BASE: Dict[str, float] = {
    "RB": 10.0,
    "WR": 15.0,
    "QB": 40.0,
    "TE": 60.0,
    "K": 150.0,
    "DEF": 160.0,
}

INJURY_PENALTY: Dict[str, float] = {
    "questionable": 5.0,
    "doubtful": 15.0,
    "out": 30.0,
    "sus": 40.0,
    "ir": 60.0,
    "pup": 60.0,
    "cov": 20.0,
    "na": 10.0,
}

FREE_AGENT_PENALTY = 30.0
DEPTH_CHART_STEP = 12.0


def _experience_adjustment(years_exp: Optional[int]) -> float:
    if years_exp is None:
        return 0.0
    if years_exp <= 0:
        return -2.0
    if years_exp <= 2:
        return -4.0
    if years_exp <= 7:
        return 0.0
    return 2.0 * (years_exp - 7)


def synthetic_score(entry: RosterEntry) -> Optional[float]:
    """Lower is better; ``None`` when the position has no tier base."""

    base = POSITION_BASE.get((entry.position or "").upper())
    if base is None:
        return None
    score = base + _experience_adjustment(entry.years_exp)
    status = (entry.injury_status or "").strip().lower()
    score += INJURY_PENALTY.get(status, 0.0)
    if not entry.team:
        score += FREE_AGENT_PENALTY
    if entry.depth_chart_order and entry.depth_chart_order > 1:
        score += DEPTH_CHART_STEP * (entry.depth_chart_order - 1)
    return score


def synthetic_adp(roster: Mapping[str, RosterEntry]) -> List[AdpRow]:
    """Rank active players by heuristic score; ADP is the 1-based rank."""

    scored = []
    for player_id, entry in roster.items():
        if entry.active is not True:
            continue
        score = synthetic_score(entry)
        if score is None:
            continue
        scored.append((score, player_id, entry))
    scored.sort(key=lambda item: (item[0], item[1]))

    return [
        AdpRow(
            player_id=player_id,
            adp=float(rank),
            position=(entry.position or "").upper(),
            metadata={
                "source_kind": SOURCE_KIND_SYNTHETIC,
                "heuristic_score": round(score, 2),
                "years_exp": entry.years_exp,
                "injury_status": entry.injury_status,
            },
        )
        for rank, (score, player_id, entry) in enumerate(scored, start=1)
    ]


class SyntheticAdpSource:
    source_tag = "synthetic_adp"
    source_kind = SOURCE_KIND_SYNTHETIC
    requires_roster = True

    async def fetch(self, roster: Mapping[str, RosterEntry] | None = None) -> AdpFetch:
        if roster is None:
            raise ValueError("SyntheticAdpSource needs the roster to derive ranks")
        rows = synthetic_adp(roster)
        logger.warning("Using synthetic ADP for %d players; values are heuristic, not market consensus", len(rows))
        return AdpFetch(rows=rows, source_tag=self.source_tag, source_kind=self.source_kind)
