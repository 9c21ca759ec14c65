"""
Landing-page summary cards computed from the attractiveness and
opportunity frames.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict

import pandas as pd

from msa_insights.data.loader import UNKNOWN_CATEGORY, without_deposits
from msa_insights.scoring.score import CATEGORY_COLUMN, HIGHLY_ATTRACTIVE
from msa_insights.utils.helpers import numeric_column


@dataclass
class MsaOverview:
    total_msas: int = 0
    total_banks: int = 0


@dataclass
class TargetedOpportunities:
    high_attractive_msas: int = 0
    excellent_opportunities: int = 0
    opportunity_distribution: Dict[str, int] = field(default_factory=dict)


@dataclass
class NationalMarket:
    total_market_size: float = 0.0
    avg_risk_score: float = 0.0
    avg_pricing: float = 0.0
    avg_lending_volume_change: float = 0.0
    avg_loan_to_deposit_ratio: float = 0.0


@dataclass
class RiskPricing:
    premium_markets: int = 0
    at_par_markets: int = 0
    discount_markets: int = 0
    rational_pricing: int = 0
    overpriced: int = 0
    underpriced: int = 0

    @property
    def irrational_pricing(self) -> int:
        return self.overpriced + self.underpriced


@dataclass
class MarketSummary:
    msa_overview: MsaOverview
    targeted_opportunities: TargetedOpportunities
    national_market: NationalMarket
    risk_pricing: RiskPricing

    def to_dict(self) -> Dict[str, Any]:
        out = asdict(self)
        out["risk_pricing"]["irrational_pricing"] = self.risk_pricing.irrational_pricing
        return out


def _mean(df: pd.DataFrame, column: str) -> float:
    if df.empty:
        return 0.0
    return float(numeric_column(df, column).mean())


def _count(df: pd.DataFrame, column: str, value: str) -> int:
    if column not in df.columns:
        return 0
    return int((df[column] == value).sum())


def _distinct(series: pd.Series) -> int:
    cleaned = series.dropna().astype(str).str.strip()
    return int(cleaned[cleaned != ""].nunique())


def build_market_summary(attractiveness: pd.DataFrame, opportunities: pd.DataFrame) -> MarketSummary:
    attr = without_deposits(attractiveness)
    all_opps = without_deposits(opportunities)
    if "Included_In_Ranking" in all_opps.columns:
        ranked = all_opps[all_opps["Included_In_Ranking"].eq(True)]
    else:
        ranked = all_opps.iloc[0:0]

    overview = MsaOverview(
        total_msas=_distinct(attr["MSA"]) if "MSA" in attr.columns else 0,
        total_banks=_distinct(all_opps["Provider"]) if "Provider" in all_opps.columns else 0,
    )

    if CATEGORY_COLUMN in attr.columns:
        high_msas = set(attr.loc[attr[CATEGORY_COLUMN] == HIGHLY_ATTRACTIVE, "MSA"])
    else:
        high_msas = set()

    key_columns = [c for c in ("MSA", "Provider", "Product") if c in ranked.columns]
    unique_ranked = ranked.drop_duplicates(subset=key_columns) if key_columns else ranked
    if "Opportunity_Category" in unique_ranked.columns:
        categories = unique_ranked["Opportunity_Category"].fillna(UNKNOWN_CATEGORY).replace("", UNKNOWN_CATEGORY)
        distribution = {str(k): int(v) for k, v in categories.value_counts(sort=False).items()}
        excellent = unique_ranked[
            (unique_ranked["Opportunity_Category"] == "Excellent") & unique_ranked["MSA"].isin(high_msas)
        ]
    else:
        distribution = {UNKNOWN_CATEGORY: len(unique_ranked)} if len(unique_ranked) else {}
        excellent = unique_ranked.iloc[0:0]

    targeted = TargetedOpportunities(
        high_attractive_msas=len(high_msas),
        excellent_opportunities=len(excellent),
        opportunity_distribution=distribution,
    )

    national = NationalMarket(
        total_market_size=float(numeric_column(attr, "Market Size").sum()),
        avg_risk_score=_mean(attr, "Risk"),
        avg_pricing=_mean(attr, "Price"),
        avg_lending_volume_change=_mean(attr, "Lending Volume Annual Change"),
        avg_loan_to_deposit_ratio=_mean(attr, "Loan to Deposit Ratio"),
    )

    risk_pricing = RiskPricing(
        premium_markets=_count(attr, "Premium_Discount", "Premium"),
        at_par_markets=_count(attr, "Premium_Discount", "Par"),
        discount_markets=_count(attr, "Premium_Discount", "Discount"),
        rational_pricing=_count(attr, "Pricing_Rationality", "Rational"),
        overpriced=_count(attr, "Pricing_Rationality", "Overpriced (Opportunity)"),
        underpriced=_count(attr, "Pricing_Rationality", "Underpriced (Risk)"),
    )

    return MarketSummary(overview, targeted, national, risk_pricing)
