"""Weight profiles for the dynasty value composite."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Tuple

COMPONENTS: Tuple[str, ...] = ("market", "projection", "age", "risk")


@dataclass(frozen=True)
class WeightProfile:
    name: str
    weights: Mapping[str, float]
    description: str = ""

    @property
    def components(self) -> Tuple[str, ...]:
        """Components with a positive weight, in canonical order."""

        return tuple(c for c in COMPONENTS if self.weights.get(c, 0.0) > 0.0)


_WEIGHT_PROFILES: Dict[str, WeightProfile] = {
    "market_age": WeightProfile(
        name="market_age",
        weights={"market": 0.75, "age": 0.25},
        description="Market consensus with an age-curve correction.",
    ),
    "projection": WeightProfile(
        name="projection",
        weights={"market": 0.55, "projection": 0.20, "age": 0.25},
        description="Adds the projection score as a separate signal.",
    ),
    "full": WeightProfile(
        name="full",
        weights={"market": 0.50, "projection": 0.15, "age": 0.25, "risk": 0.10},
        description="Market, projection, age and injury risk.",
    ),
}

DEFAULT_PROFILE = "market_age"


def iter_profiles() -> Iterable[WeightProfile]:
    """Return an iterator of all configured weight profiles."""

    return _WEIGHT_PROFILES.values()


def get_profile(name: str) -> WeightProfile:
    """Fetch a weight profile by name, raising KeyError if missing."""

    key = name.strip().lower()
    if key not in _WEIGHT_PROFILES:
        raise KeyError(f"No weight profile configured named {name!r}")
    return _WEIGHT_PROFILES[key]
