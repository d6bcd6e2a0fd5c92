"""Input adapters that fetch roster and ADP data."""

from .adp import (
    AdpFetch,
    FantasyCalculatorAdpSource,
    StaticAdpSource,
    UnmatchedAdp,
    load_adp_csv,
    match_by_roster_name,
    normalize_name,
    parse_id_table,
    reconcile_by_name,
)
from .http import gather_all, get_json, get_response
from .sleeper import SleeperRosterSource, StaticRosterSource, parse_roster
from .synthetic import SyntheticAdpSource, synthetic_adp, synthetic_score

__all__ = [
    "AdpFetch",
    "FantasyCalculatorAdpSource",
    "SleeperRosterSource",
    "StaticAdpSource",
    "StaticRosterSource",
    "SyntheticAdpSource",
    "UnmatchedAdp",
    "gather_all",
    "get_json",
    "get_response",
    "load_adp_csv",
    "match_by_roster_name",
    "normalize_name",
    "parse_id_table",
    "parse_roster",
    "reconcile_by_name",
    "synthetic_adp",
    "synthetic_score",
]
