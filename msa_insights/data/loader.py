"""
Ingestion of the attractiveness and opportunity extracts.

The I/O layer hands over raw CSV text or DataFrames; this module normalises
sentinels, coerces numerics, converts market share to percent exactly once
and splits deposit rows away from the credit/cash-management rows.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Union

import numpy as np
import pandas as pd

from msa_insights.config import get_settings
from msa_insights.data.filters import FilterBucketRanges, ValueRange
from msa_insights.utils.helpers import to_numeric

logger = logging.getLogger(__name__)

DEPOSITS_PRODUCT = "Deposits"
UNKNOWN_CATEGORY = "Unknown"

SENTINELS: Set[str] = {"", "None", "none", "N/A", "n/a", "NA", "na", "null", "Null", "undefined", "-", "—"}
BOOLEAN_TOKENS = {"TRUE": True, "FALSE": False, "True": True, "False": False, "true": True, "false": False}

ATTRACTIVENESS_NUMERIC_COLUMNS: List[str] = [
    "Market Size",
    "Number of Companies",
    "Revenue per Company",
    "Risk",
    "Price",
    "LAT",
    "LON",
    "Attractiveness_Score",
    "Lending Volume Annual Change",
    "Loan to Deposit Ratio",
]
OPPORTUNITY_NUMERIC_COLUMNS: List[str] = [
    "Market Size",
    "Market Share",
    "Defend $",
    "LAT",
    "LON",
]
OPPORTUNITY_FLAG_COLUMNS: List[str] = ["Included_In_Ranking", "Exclusion"]
DEPOSIT_COLUMNS: List[str] = ["MSA", "Provider", "Market Share"]


class ShareUnit(str, Enum):
    FRACTION = "fraction"
    PERCENT = "percent"
    AUTO = "auto"


def _coerce_unit(unit: Union[ShareUnit, str, None]) -> ShareUnit:
    if isinstance(unit, ShareUnit):
        return unit
    raw = unit or get_settings().share_unit
    try:
        return ShareUnit(str(raw).lower())
    except ValueError:
        logger.warning("Unknown share unit %r; falling back to auto-detection", raw)
        return ShareUnit.AUTO


def normalize_share(series: pd.Series, unit: Union[ShareUnit, str, None] = None) -> pd.Series:
    """Return market share in percent (0-100).

    AUTO treats values strictly between 0 and 1 as fractions. That is
    ambiguous for genuine sub-1% shares; pass an explicit unit when the
    source is known.
    """
    unit = _coerce_unit(unit)
    values = to_numeric(series)
    if unit is ShareUnit.FRACTION:
        return values * 100
    if unit is ShareUnit.PERCENT:
        return values
    fractional = (values > 0) & (values < 1)
    return values.where(~fractional, values * 100)


def _normalize_sentinels(df: pd.DataFrame) -> pd.DataFrame:
    """Replace sentinel string tokens with None and record counts in df.attrs."""
    replacements: Dict[str, int] = {}
    for col in df.columns:
        if not pd.api.types.is_numeric_dtype(df[col]):
            mask = df[col].apply(lambda v: isinstance(v, str) and v.strip() in SENTINELS)
            count = int(mask.sum())
            if count:
                replacements[col] = count
                df.loc[mask, col] = None
    if replacements:
        existing = df.attrs.get("sentinel_replacements", {})
        existing.update(replacements)
        df.attrs["sentinel_replacements"] = existing
    return df


def _parse_flag(value: Any) -> bool:
    if isinstance(value, str):
        return BOOLEAN_TOKENS.get(value.strip(), False)
    if value is None or (isinstance(value, float) and np.isnan(value)):
        return False
    return bool(value)


def read_csv(path: str) -> pd.DataFrame:
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df.columns = [str(c).strip() for c in df.columns]
    df = _normalize_sentinels(df)
    logger.info("Loaded %d rows from %s", len(df), path)
    return df


def without_deposits(df: pd.DataFrame) -> pd.DataFrame:
    if "Product" not in df.columns:
        return df
    return df[df["Product"] != DEPOSITS_PRODUCT]


def prepare_attractiveness(df: pd.DataFrame) -> pd.DataFrame:
    """Coerce numerics and drop the Deposits product from an attractiveness extract."""
    working = _normalize_sentinels(df.copy())
    working = without_deposits(working).copy()
    for col in ATTRACTIVENESS_NUMERIC_COLUMNS:
        if col in working.columns:
            working[col] = to_numeric(working[col])
    return working.reset_index(drop=True)


def prepare_opportunities(
    df: pd.DataFrame,
    share_unit: Union[ShareUnit, str, None] = None,
    attractiveness: Optional[pd.DataFrame] = None,
) -> Tuple[pd.DataFrame, pd.DataFrame]:
    """
    Split an opportunity extract into (market rows, deposit rows).

    Market Share is converted to percent here and nowhere else. When an
    attractiveness frame is given, each market row gets the category of its
    (MSA, Product) pair.
    """
    unit = _coerce_unit(share_unit)
    working = _normalize_sentinels(df.copy())
    for col in OPPORTUNITY_NUMERIC_COLUMNS:
        if col in working.columns:
            working[col] = to_numeric(working[col])
    if "Market Share" in working.columns:
        working["Market Share"] = normalize_share(working["Market Share"], unit)
    for col in OPPORTUNITY_FLAG_COLUMNS:
        if col in working.columns:
            working[col] = working[col].map(_parse_flag)
    if "Weighted_Average_Score" in working.columns:
        working["Weighted_Average_Score"] = pd.to_numeric(working["Weighted_Average_Score"], errors="coerce")

    if "Product" in working.columns:
        is_deposit = working["Product"] == DEPOSITS_PRODUCT
    else:
        is_deposit = pd.Series(False, index=working.index)

    deposits = working.loc[is_deposit, [c for c in DEPOSIT_COLUMNS if c in working.columns]].reset_index(drop=True)
    market = working.loc[~is_deposit].reset_index(drop=True)

    if (
        attractiveness is not None
        and {"MSA", "Product"}.issubset(market.columns)
        and {"MSA", "Product", "Attractiveness_Category"}.issubset(attractiveness.columns)
    ):
        lookup = (
            without_deposits(attractiveness)
            .drop_duplicates(subset=["MSA", "Product"], keep="last")
            .set_index(["MSA", "Product"])["Attractiveness_Category"]
            .to_dict()
        )
        market["Attractiveness_Category"] = [
            lookup.get((msa, product), UNKNOWN_CATEGORY)
            for msa, product in zip(market["MSA"], market["Product"])
        ]

    for frame in (market, deposits):
        frame.attrs["share_unit"] = unit.value
    logger.debug("Prepared %d market rows and %d deposit rows", len(market), len(deposits))
    return market, deposits


def _value_range(series: Optional[pd.Series]) -> ValueRange:
    if series is None:
        return ValueRange()
    values = pd.to_numeric(series, errors="coerce").dropna()
    if values.empty:
        return ValueRange()
    return ValueRange(min=float(values.min()), max=float(values.max()), count=int(len(values)))


def compute_filter_bucket_ranges(attractiveness: pd.DataFrame) -> FilterBucketRanges:
    """Known min/max of the range-filterable columns, for full-range detection."""
    working = without_deposits(attractiveness)
    return FilterBucketRanges(
        market_size=_value_range(working.get("Market Size")),
        revenue_per_company=_value_range(working.get("Revenue per Company")),
    )


def records_to_frame(records: List[Dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame.from_records(records)


def frame_to_records(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """JSON-serialisable rows (NaN becomes None, numpy scalars become Python)."""
    if df.empty:
        return []
    cleaned = df.astype(object).where(pd.notna(df), None)
    records = cleaned.to_dict(orient="records")
    for record in records:
        for key, value in record.items():
            if isinstance(value, np.generic):
                record[key] = value.item()
    return records
