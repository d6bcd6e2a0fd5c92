"""Formatting helpers for showing dynasty values."""

from __future__ import annotations

from typing import Optional


def format_dynasty_value(value: Optional[float]) -> str:
    if value is None:
        return "N/A"
    return f"{value:.1f}"


def trend_indicator(trend: Optional[float]) -> str:
    if trend is None:
        return ""
    if trend > 0:
        return "↗"
    if trend < 0:
        return "↘"
    return "→"
