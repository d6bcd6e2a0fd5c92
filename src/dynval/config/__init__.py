"""Configuration helpers for weight profiles and pipeline settings."""

from .profiles import COMPONENTS, DEFAULT_PROFILE, WeightProfile, get_profile, iter_profiles
from .settings import FANTASY_POSITIONS, NORMALIZATION_MODES, RETENTION_MODES, PipelineSettings

__all__ = [
    "COMPONENTS",
    "DEFAULT_PROFILE",
    "FANTASY_POSITIONS",
    "NORMALIZATION_MODES",
    "PipelineSettings",
    "RETENTION_MODES",
    "WeightProfile",
    "get_profile",
    "iter_profiles",
]
