"""Position-specific career curves mapping age to a value multiplier."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

NEUTRAL_MULTIPLIER = 1.0


@dataclass(frozen=True)
class AgeCurve:
    """Piecewise-linear career arc for one position.

    Before ``peak_start`` the multiplier climbs above 1.0 by ``youth_rate``
    per year of remaining runway, capped at ``ceiling``. Inside the peak
    window it is 1.0. After ``peak_end`` it decays by ``decline_rate`` per
    year and never drops below ``floor``.
    """

    peak_start: float
    peak_end: float
    youth_rate: float
    decline_rate: float
    floor: float
    ceiling: float = 1.25

    def multiplier(self, age: float) -> float:
        if age < self.peak_start:
            return min(self.ceiling, NEUTRAL_MULTIPLIER + (self.peak_start - age) * self.youth_rate)
        if age <= self.peak_end:
            return NEUTRAL_MULTIPLIER
        return max(self.floor, NEUTRAL_MULTIPLIER - (age - self.peak_end) * self.decline_rate)


# RBs peak earliest and fall off fastest; QBs hold value longest.
AGE_CURVES: Dict[str, AgeCurve] = {
    "QB": AgeCurve(peak_start=26, peak_end=32, youth_rate=0.02, decline_rate=0.08, floor=0.30),
    "RB": AgeCurve(peak_start=22, peak_end=26, youth_rate=0.03, decline_rate=0.15, floor=0.20),
    "WR": AgeCurve(peak_start=24, peak_end=29, youth_rate=0.03, decline_rate=0.10, floor=0.40),
    "TE": AgeCurve(peak_start=25, peak_end=30, youth_rate=0.025, decline_rate=0.09, floor=0.35),
    "K": AgeCurve(peak_start=18, peak_end=38, youth_rate=0.0, decline_rate=0.01, floor=0.90),
    "DEF": AgeCurve(peak_start=0, peak_end=200, youth_rate=0.0, decline_rate=0.0, floor=1.0),
}


def age_multiplier(position: Optional[str], age: Optional[float]) -> float:
    """Return the career-curve multiplier for ``position`` at ``age``.

    Unknown (``None`` or zero) ages and positions without a curve are
    neutral.
    """

    if not age:
        return NEUTRAL_MULTIPLIER
    curve = AGE_CURVES.get((position or "").upper())
    if curve is None:
        return NEUTRAL_MULTIPLIER
    return curve.multiplier(float(age))
