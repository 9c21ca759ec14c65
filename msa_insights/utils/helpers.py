from __future__ import annotations

import math
import re
from typing import Any, Iterable, Optional

import numpy as np
import pandas as pd

_NUMERIC_JUNK = re.compile(r"[$,%\s]")


def to_float(value: Any, default: float = 0.0) -> float:
    """Coerce a scalar (number, currency/percent string, None, NaN) to float."""
    if value is None:
        return default
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float, np.integer, np.floating)):
        numeric = float(value)
        return default if math.isnan(numeric) or math.isinf(numeric) else numeric
    try:
        numeric = float(_NUMERIC_JUNK.sub("", str(value)))
    except (TypeError, ValueError):
        return default
    return default if math.isnan(numeric) or math.isinf(numeric) else numeric


def to_numeric(series: pd.Series, default: float = 0.0) -> pd.Series:
    if not pd.api.types.is_numeric_dtype(series):
        series = series.map(lambda v: _NUMERIC_JUNK.sub("", v) if isinstance(v, str) else v)
    cleaned = pd.to_numeric(series, errors="coerce")
    return cleaned.replace([np.inf, -np.inf], np.nan).fillna(default).astype("float64")


def numeric_column(df: pd.DataFrame, column: str, default: float = 0.0) -> pd.Series:
    if column not in df.columns:
        return pd.Series(default, index=df.index, dtype="float64")
    return to_numeric(df[column], default)


def safe_divide(numerator: float, denominator: float) -> float:
    if not denominator:
        return 0.0
    result = numerator / denominator
    return 0.0 if math.isnan(result) else result


def safe_mean(values: Iterable[float]) -> Optional[float]:
    cleaned = [float(v) for v in values if v is not None and not pd.isna(v)]
    if not cleaned:
        return None
    return sum(cleaned) / len(cleaned)


def round_half_up(value: float, decimals: int = 0) -> float:
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def normalize_label(value: Any) -> str:
    """Canonical form of a categorical label for comparisons.

    Case and spacing are ignored and a trailing "Avg" is dropped, so
    "Below National Avg", "below_national" and "Below National" compare equal.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    text = str(value).strip().lower()
    text = re.sub(r"[\s\-]+", "_", text)
    if text.endswith("_avg"):
        text = text[: -len("_avg")]
    return text
