"""Rolling-average trend deltas over historical dynasty values."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, Iterable, Mapping, Optional, Tuple


@dataclass(frozen=True)
class TrendWindow:
    days: int

    @property
    def field(self) -> str:
        return f"trend_{self.days}d"

    def bounds(self, as_of: date) -> Tuple[date, date]:
        """Half-open ``[start, end)`` range of history used for ``as_of``."""

        return as_of - timedelta(days=self.days), as_of


def rolling_deltas(
    latest: Mapping[str, Optional[float]],
    history: Iterable[Tuple[str, Optional[float]]],
) -> Dict[str, float]:
    """Return ``latest - mean(history)`` per player, rounded to 2 places.

    Players without a latest value or without any non-null history are
    omitted rather than reported as zero.
    """

    sums: Dict[str, float] = defaultdict(float)
    counts: Dict[str, int] = defaultdict(int)
    for player_id, value in history:
        if value is None:
            continue
        sums[player_id] += value
        counts[player_id] += 1

    deltas: Dict[str, float] = {}
    for player_id, current in latest.items():
        if current is None or counts.get(player_id, 0) == 0:
            continue
        average = sums[player_id] / counts[player_id]
        deltas[player_id] = round(current - average, 2)
    return deltas
