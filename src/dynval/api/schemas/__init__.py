"""Pydantic models for API I/O."""

from .values import (
    BatchValuesRequest,
    BatchValuesResponse,
    PlayerValueResponse,
    RunResponse,
    TrendValuesResponse,
)

__all__ = [
    "BatchValuesRequest",
    "BatchValuesResponse",
    "PlayerValueResponse",
    "RunResponse",
    "TrendValuesResponse",
]
