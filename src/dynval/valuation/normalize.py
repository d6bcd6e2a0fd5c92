"""Convert raw ADP values into comparable 0-100 scores."""

from __future__ import annotations

import math
from collections import defaultdict
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

MIDPOINT = 50.0


def _round(value: float) -> float:
    return round(value, 2)


def _clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def minmax_score(value: float, low: float, high: float, *, invert: bool = True) -> float:
    """Linear min-max score; ``invert`` maps the lowest value to 100."""

    if high == low:
        return MIDPOINT
    fraction = (value - low) / (high - low)
    if invert:
        fraction = 1.0 - fraction
    return _round(_clamp(100.0 * fraction))


def logistic(value: float, low: float, high: float, *, steepness: float = 10.0) -> float:
    """Sigmoid score over the [low, high] range; lower values score higher."""

    if high == low:
        return MIDPOINT
    z = (value - low) / (high - low)
    score = 100.0 / (1.0 + math.exp(steepness * (z - 0.5)))
    return _round(_clamp(score))


def global_minmax(adp_by_id: Mapping[str, float]) -> Dict[str, float]:
    """Scale every ADP against the global min and max across positions."""

    if not adp_by_id:
        return {}
    low = min(adp_by_id.values())
    high = max(adp_by_id.values())
    return {player_id: minmax_score(adp, low, high) for player_id, adp in adp_by_id.items()}


def position_minmax(
    rows: Iterable[Tuple[str, str, float]],
    *,
    invert: bool = True,
) -> Dict[str, float]:
    """Scale ADP within each position bucket independently.

    ``rows`` are ``(player_id, position, adp)`` tuples.
    """

    buckets: Dict[str, list[Tuple[str, float]]] = defaultdict(list)
    for player_id, position, adp in rows:
        buckets[position].append((player_id, adp))

    scores: Dict[str, float] = {}
    for members in buckets.values():
        values = [adp for _, adp in members]
        low, high = min(values), max(values)
        for player_id, adp in members:
            scores[player_id] = minmax_score(adp, low, high, invert=invert)
    return scores


def global_logistic(adp_by_id: Mapping[str, float], *, steepness: float = 10.0) -> Dict[str, float]:
    if not adp_by_id:
        return {}
    low = min(adp_by_id.values())
    high = max(adp_by_id.values())
    return {
        player_id: logistic(adp, low, high, steepness=steepness)
        for player_id, adp in adp_by_id.items()
    }


def normalize_adp(
    rows: Sequence[Tuple[str, Optional[str], float]],
    *,
    mode: str = "global",
    steepness: float = 10.0,
) -> Dict[str, float]:
    """Dispatch ``(player_id, position, adp)`` rows to a normalization mode.

    Rows without a position are skipped in ``position`` mode only.
    """

    if mode == "global":
        return global_minmax({player_id: adp for player_id, _, adp in rows})
    if mode == "logistic":
        return global_logistic({player_id: adp for player_id, _, adp in rows}, steepness=steepness)
    if mode == "position":
        return position_minmax((player_id, pos, adp) for player_id, pos, adp in rows if pos)
    raise ValueError(f"Unknown normalization mode {mode!r}")
