"""
Provider-level rollups of opportunity records.

Market Share is expected in percent (see ``data.loader.normalize_share``).
"""

from __future__ import annotations

from typing import Iterable, Optional

import pandas as pd

from msa_insights.utils.formatting import format_at_risk, satisfaction_to_percent
from msa_insights.utils.helpers import numeric_column, safe_divide

PROVIDER_COLUMNS = [
    "provider",
    "market_share_dollars",
    "overall_share_size_pct",
    "top_msa",
    "top_msa_market_share",
    "msas_penetrated",
    "defend_dollars",
    "market_share_at_risk_pct",
    "at_risk_display",
    "customer_satisfaction_score",
    "satisfaction_pct",
]

SATISFACTION_COLUMNS = ("Weighted_Average_Score", "Weighted Average Score", "weighted_average_score")


def share_dollars(df: pd.DataFrame) -> pd.Series:
    return numeric_column(df, "Market Share") / 100 * numeric_column(df, "Market Size")


def national_market_size(df: pd.DataFrame) -> float:
    """Sum of each MSA's market size, counting every MSA once (its max)."""
    if df.empty or "MSA" not in df.columns:
        return 0.0
    sizes = numeric_column(df, "Market Size")
    return float(sizes.groupby(df["MSA"]).max().sum())


def _satisfaction_series(df: pd.DataFrame) -> pd.Series:
    for column in SATISFACTION_COLUMNS:
        if column in df.columns:
            return pd.to_numeric(df[column], errors="coerce")
    return pd.Series(float("nan"), index=df.index)


def filter_opportunities(
    opportunities: pd.DataFrame,
    visible_msas: Optional[Iterable[str]] = None,
    only_included_in_ranking: bool = False,
) -> pd.DataFrame:
    """Keep opportunities in MSAs that survived the global filters."""
    out = opportunities.copy()
    if out.empty:
        return out
    if visible_msas is not None:
        out = out[out["MSA"].isin(set(visible_msas))]
    if only_included_in_ranking and "Included_In_Ranking" in out.columns:
        out = out[out["Included_In_Ranking"].eq(True)]
    return out


def aggregate_providers(opportunities: pd.DataFrame) -> pd.DataFrame:
    """Per-provider national metrics, largest overall share first."""
    if opportunities.empty or "Provider" not in opportunities.columns:
        return pd.DataFrame(columns=PROVIDER_COLUMNS)

    working = opportunities[opportunities["Provider"].notna() & (opportunities["Provider"] != "")].reset_index(drop=True)
    if working.empty:
        return pd.DataFrame(columns=PROVIDER_COLUMNS)
    working["__share"] = numeric_column(working, "Market Share")
    working["__share_dollars"] = share_dollars(working)
    working["__defend"] = numeric_column(working, "Defend $")
    working["__satisfaction"] = _satisfaction_series(working)

    total_national = national_market_size(opportunities)

    records = []
    for provider, group in working.groupby("Provider", sort=False):
        # First row wins ties, matching a strict ">" scan
        top_idx = group["__share"].idxmax()
        provider_dollars = float(group["__share_dollars"].sum())
        defend = float(group["__defend"].sum())
        satisfaction = group["__satisfaction"].dropna()
        score = float(satisfaction.mean()) if not satisfaction.empty else None
        at_risk = safe_divide(defend, provider_dollars) * 100
        records.append(
            {
                "provider": provider,
                "market_share_dollars": provider_dollars,
                "overall_share_size_pct": safe_divide(provider_dollars, total_national) * 100,
                "top_msa": group.at[top_idx, "MSA"],
                "top_msa_market_share": float(group.at[top_idx, "__share"]),
                "msas_penetrated": int(group["MSA"].nunique()),
                "defend_dollars": defend,
                "market_share_at_risk_pct": at_risk,
                "at_risk_display": format_at_risk(at_risk),
                "customer_satisfaction_score": score,
                "satisfaction_pct": satisfaction_to_percent(score),
            }
        )
    out = pd.DataFrame.from_records(records, columns=PROVIDER_COLUMNS)
    return out.sort_values("overall_share_size_pct", ascending=False, kind="mergesort").reset_index(drop=True)
