"""
Utility helpers for formatting currency values, percentages, and risk buckets.
"""

from __future__ import annotations

from typing import Optional

import pandas as pd

SCALE_FACTORS = [
    (1_000_000_000, "B"),
    (1_000_000, "M"),
    (1_000, "K"),
]

AT_RISK_LOW = 5.0
AT_RISK_HIGH = 25.0


def format_currency(value: Optional[float], prefix: str = "$") -> str:
    if value is None or pd.isna(value):
        return f"{prefix}0.00"
    try:
        numeric = float(value)
    except (TypeError, ValueError):
        return f"{prefix}0.00"
    for factor, suffix in SCALE_FACTORS:
        if numeric >= factor:
            return f"{prefix}{numeric / factor:.2f}{suffix}"
    return f"{prefix}{numeric:.2f}"


def format_percent(value: Optional[float], decimals: int = 1) -> str:
    if value is None or pd.isna(value):
        return "–"
    try:
        return f"{float(value):.{decimals}f}%"
    except (TypeError, ValueError):
        return "–"


def format_at_risk(pct: Optional[float]) -> str:
    if pct is None or pd.isna(pct):
        pct = 0.0
    if pct < AT_RISK_LOW:
        return "<5%"
    if pct > AT_RISK_HIGH:
        return ">25%"
    return format_percent(pct, 1)


def satisfaction_to_percent(score: Optional[float]) -> Optional[float]:
    # Satisfaction scores are on a 1-5 scale
    if score is None or pd.isna(score):
        return None
    return float(score) * 20
