"""Persist and load pipeline settings overrides."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

from dynval.config import PipelineSettings

_FILE_KEYS = (
    "batch_size",
    "timeout_seconds",
    "normalization",
    "weight_profile",
    "logistic_steepness",
    "trend_windows",
    "retention",
    "retention_days",
    "min_age",
    "max_age",
    "allowed_positions",
    "http_timeout_seconds",
)


@dataclass
class SettingsProfile:
    overrides: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def load(cls, path: Path) -> "SettingsProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        unknown = sorted(set(data) - set(_FILE_KEYS))
        if unknown:
            raise ValueError(f"Unknown settings keys in {path}: {', '.join(unknown)}")
        return cls(overrides=dict(data))

    @classmethod
    def from_settings(cls, settings: PipelineSettings) -> "SettingsProfile":
        payload: Dict[str, Any] = {}
        for key in _FILE_KEYS:
            value = getattr(settings, key)
            if isinstance(value, (tuple, frozenset)):
                value = sorted(value) if isinstance(value, frozenset) else list(value)
            payload[key] = value
        return cls(overrides=payload)

    def apply(self, settings: PipelineSettings) -> PipelineSettings:
        return settings.with_overrides(self.overrides)

    def save(self, path: Path) -> None:
        path.write_text(json.dumps(self.overrides, indent=2), encoding="utf-8")
