from __future__ import annotations

import pandas as pd

from msa_insights.utils.helpers import numeric_column, safe_divide

DEFENSIVE_VALUE_COLUMN = "Defensive_Value"
OPPORTUNITY_CATEGORY_COLUMN = "Opportunity_Category"

# (upper percentile bound, category), ranked best first
PERCENTILE_CATEGORIES = [
    (20.0, "Excellent"),
    (50.0, "Good"),
    (80.0, "Fair"),
]
LOWEST_CATEGORY = "Poor"


def calculate_defensive_value(market_share: float, market_size: float, defend_dollars: float) -> float:
    """Share discounted by the cube of the fraction of share dollars at risk.

    ``market_share`` is in percent, as produced by ``data.loader``.
    """
    share_dollars = market_share / 100 * market_size
    at_risk = safe_divide(defend_dollars, share_dollars)
    return market_share * (1 - at_risk) ** 3


def add_defensive_value(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    shares = numeric_column(out, "Market Share")
    sizes = numeric_column(out, "Market Size")
    defend = numeric_column(out, "Defend $")
    out[DEFENSIVE_VALUE_COLUMN] = [
        calculate_defensive_value(s, m, d) for s, m, d in zip(shares, sizes, defend)
    ]
    return out


def _category_for_percentile(percentile: float) -> str:
    for bound, category in PERCENTILE_CATEGORIES:
        if percentile < bound:
            return category
    return LOWEST_CATEGORY


def categorize_opportunities_by_percentile(df: pd.DataFrame) -> pd.DataFrame:
    """Rank by defensive value (descending) and bucket by percentile rank."""
    out = df if DEFENSIVE_VALUE_COLUMN in df.columns else add_defensive_value(df)
    out = out.sort_values(DEFENSIVE_VALUE_COLUMN, ascending=False, kind="mergesort").reset_index(drop=True)
    total = len(out)
    out[OPPORTUNITY_CATEGORY_COLUMN] = [
        _category_for_percentile(idx / total * 100) for idx in range(total)
    ]
    return out
