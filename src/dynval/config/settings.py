"""Pipeline settings with environment overrides."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, FrozenSet, Mapping, Tuple

from .profiles import DEFAULT_PROFILE, get_profile, iter_profiles


logger = logging.getLogger(__name__)

NORMALIZATION_MODES = ("global", "position", "logistic")
RETENTION_MODES = ("rolling", "latest")
FANTASY_POSITIONS: FrozenSet[str] = frozenset({"QB", "RB", "WR", "TE", "K", "DEF"})

_BATCH_SIZE_ENV = "DYNVAL_BATCH_SIZE"
_TIMEOUT_ENV = "DYNVAL_TIMEOUT_SECONDS"
_NORMALIZATION_ENV = "DYNVAL_NORMALIZATION"
_PROFILE_ENV = "DYNVAL_WEIGHT_PROFILE"
_STEEPNESS_ENV = "DYNVAL_LOGISTIC_STEEPNESS"
_RETENTION_ENV = "DYNVAL_RETENTION"
_RETENTION_DAYS_ENV = "DYNVAL_RETENTION_DAYS"
_HTTP_TIMEOUT_ENV = "DYNVAL_HTTP_TIMEOUT"


def _env_float(name: str, default: float, *, clamp_min: float | None = None, clamp_max: float | None = None) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid float for %s: %s; using default %.2f", name, raw, default)
        return default
    if clamp_min is not None:
        value = max(clamp_min, value)
    if clamp_max is not None:
        value = min(clamp_max, value)
    return value


def _env_int(name: str, default: int, *, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid int for %s: %s; using default %d", name, raw, default)
        return default
    if min_value is not None:
        value = max(min_value, value)
    return value


def _env_choice(name: str, default: str, choices: Tuple[str, ...]) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value not in choices:
        logger.warning("Invalid value for %s: %s; using default %s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class PipelineSettings:
    batch_size: int = 50
    timeout_seconds: float = 25 * 60
    normalization: str = "global"
    weight_profile: str = DEFAULT_PROFILE
    logistic_steepness: float = 10.0
    trend_windows: Tuple[int, ...] = (7, 30)
    retention: str = "rolling"
    retention_days: int = 30
    min_age: float = 18
    max_age: float = 50
    allowed_positions: FrozenSet[str] = field(default=FANTASY_POSITIONS)
    http_timeout_seconds: float = 30.0

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")
        if self.normalization not in NORMALIZATION_MODES:
            raise ValueError(
                f"normalization must be one of {NORMALIZATION_MODES}, got {self.normalization!r}"
            )
        if self.retention not in RETENTION_MODES:
            raise ValueError(f"retention must be one of {RETENTION_MODES}, got {self.retention!r}")
        get_profile(self.weight_profile)
        if any(window < 1 for window in self.trend_windows):
            raise ValueError("trend windows must be positive day counts")
        if self.retention == "rolling" and self.trend_windows and self.retention_days < max(self.trend_windows):
            raise ValueError(
                f"retention_days={self.retention_days} is shorter than the "
                f"longest trend window ({max(self.trend_windows)} days)"
            )
        if self.min_age > self.max_age:
            raise ValueError("min_age must not exceed max_age")

    @classmethod
    def from_env(cls, **overrides: Any) -> "PipelineSettings":
        defaults = cls()
        values: dict[str, Any] = {
            "batch_size": _env_int(_BATCH_SIZE_ENV, defaults.batch_size, min_value=1),
            "timeout_seconds": _env_float(_TIMEOUT_ENV, defaults.timeout_seconds, clamp_min=1.0),
            "normalization": _env_choice(_NORMALIZATION_ENV, defaults.normalization, NORMALIZATION_MODES),
            "weight_profile": _env_choice(
                _PROFILE_ENV, defaults.weight_profile, tuple(p.name for p in iter_profiles())
            ),
            "logistic_steepness": _env_float(_STEEPNESS_ENV, defaults.logistic_steepness, clamp_min=0.1),
            "retention": _env_choice(_RETENTION_ENV, defaults.retention, RETENTION_MODES),
            "retention_days": _env_int(_RETENTION_DAYS_ENV, defaults.retention_days, min_value=1),
            "http_timeout_seconds": _env_float(_HTTP_TIMEOUT_ENV, defaults.http_timeout_seconds, clamp_min=1.0),
        }
        values.update(overrides)
        return cls(**values)

    def with_overrides(self, overrides: Mapping[str, Any]) -> "PipelineSettings":
        cleaned = {key: value for key, value in overrides.items() if value is not None}
        if "trend_windows" in cleaned:
            cleaned["trend_windows"] = tuple(int(w) for w in cleaned["trend_windows"])
        if "allowed_positions" in cleaned:
            cleaned["allowed_positions"] = frozenset(p.upper() for p in cleaned["allowed_positions"])
        return replace(self, **cleaned)
