"""Pure valuation math: age curves, normalization, composite and trends."""

from .age_curves import AGE_CURVES, AgeCurve, age_multiplier
from .display import format_dynasty_value, trend_indicator
from .formula import composite, resolve_weights
from .normalize import global_minmax, logistic, minmax_score, normalize_adp, position_minmax
from .trends import TrendWindow, rolling_deltas

__all__ = [
    "AGE_CURVES",
    "AgeCurve",
    "TrendWindow",
    "age_multiplier",
    "composite",
    "format_dynasty_value",
    "global_minmax",
    "logistic",
    "minmax_score",
    "normalize_adp",
    "position_minmax",
    "resolve_weights",
    "rolling_deltas",
    "trend_indicator",
]
