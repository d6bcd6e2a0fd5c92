"""Weighted composite that turns component scores into a dynasty value."""

from __future__ import annotations

from typing import Dict, Iterable, Mapping, Optional

from dynval.config.profiles import COMPONENTS, DEFAULT_PROFILE, WeightProfile, get_profile


def resolve_weights(profile: WeightProfile, available: Iterable[str]) -> Dict[str, float]:
    """Rebalance the profile's weights over the available components.

    The returned weights always sum to 1.0. Raises ``ValueError`` when none
    of the profile's components are available.
    """

    present = set(available)
    active = {c: profile.weights[c] for c in profile.components if c in present}
    total = sum(active.values())
    if total <= 0:
        raise ValueError(f"No weighted components available for profile {profile.name!r}")
    return {component: weight / total for component, weight in active.items()}


def composite(
    scores: Mapping[str, Optional[float]],
    profile: WeightProfile | str = DEFAULT_PROFILE,
) -> float:
    """Combine component scores (keys from ``COMPONENTS``) into 0-100."""

    if isinstance(profile, str):
        profile = get_profile(profile)
    unknown = set(scores) - set(COMPONENTS)
    if unknown:
        raise KeyError(f"Unknown score components: {sorted(unknown)}")
    available = [name for name, value in scores.items() if value is not None]
    weights = resolve_weights(profile, available)
    weighted = sum(float(scores[name]) * weight for name, weight in weights.items())  # type: ignore[arg-type]
    return round(max(0.0, min(100.0, weighted)), 2)
