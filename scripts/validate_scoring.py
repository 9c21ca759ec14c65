"""Quick validation script for the scoring and acquisition pipeline.

Run with `python scripts/validate_scoring.py` to ensure key columns
are produced end to end on a small in-memory sample.
"""

from __future__ import annotations

import pandas as pd

from msa_insights.analytics.acquisition import FOOTPRINT_COLUMNS, simulate_acquisition
from msa_insights.analytics.market import PROVIDER_COLUMNS, aggregate_providers, filter_opportunities
from msa_insights.data.filters import DEFAULT_FILTERS, apply_global_filters, visible_msas
from msa_insights.data.loader import prepare_attractiveness, prepare_opportunities
from msa_insights.logging_setup import setup_logging
from msa_insights.scoring.buckets import DEFAULT_BUCKET_ASSIGNMENTS, recalculate_with_buckets
from msa_insights.scoring.score import CATEGORY_COLUMN, SCORE_COLUMN


def main() -> None:
    setup_logging("DEBUG")
    attractiveness = prepare_attractiveness(
        pd.DataFrame(
            {
                "MSA": ["NC-SC-Charlotte-Concord-Gastonia", "WA-Seattle-Tacoma-Bellevue"],
                "Product": ["Credit_Cash_Management", "Credit_Cash_Management"],
                "Market Size": ["1,200,000,000", "900000000"],
                "Revenue per Company": ["45000", "38000"],
                "HHI_Score": ["Low", "High"],
                "Economic_Growth_Score": ["High", "Medium"],
                "Loan_Growth_Score": ["Medium", "Low"],
                "Risk_Score": ["Low", "High"],
                "Risk_Migration_Score": ["Low", "Medium"],
                "Relative_Risk_Migration_Score": ["Below National Avg", "Above National Avg"],
                "Premium_Discount_Score": ["Premium", "Discount"],
                "Pricing_Rationality_Score": ["Rational", "Irrational"],
                "International_CM_Score": ["High", "Low"],
            }
        )
    )
    market, deposits = prepare_opportunities(
        pd.DataFrame(
            {
                "MSA": ["NC-SC-Charlotte-Concord-Gastonia"] * 4 + ["WA-Seattle-Tacoma-Bellevue"] * 2,
                "Product": ["Credit_Cash_Management", "Credit_Cash_Management", "Deposits", "Deposits"]
                + ["Credit_Cash_Management", "Deposits"],
                "Provider": ["Alpha Bank", "Beta Bank", "Alpha Bank", "Beta Bank", "Beta Bank", "Beta Bank"],
                "Market Size": [1.2e9, 1.2e9, 0, 0, 9e8, 0],
                "Market Share": [20, 15, 30, 20, 10, 40],
                "Defend $": [1e7, 5e6, 0, 0, 2e6, 0],
                "Included_In_Ranking": ["TRUE", "TRUE", "FALSE", "FALSE", "TRUE", "FALSE"],
            }
        ),
        share_unit="percent",
        attractiveness=attractiveness,
    )

    filtered = apply_global_filters(attractiveness, DEFAULT_FILTERS, DEFAULT_BUCKET_ASSIGNMENTS)
    scored = recalculate_with_buckets(filtered, DEFAULT_BUCKET_ASSIGNMENTS)
    providers = aggregate_providers(filter_opportunities(market, visible_msas(scored)))
    footprint = simulate_acquisition(market, deposits, "Alpha Bank", "Beta Bank")

    missing = [col for col in (SCORE_COLUMN, CATEGORY_COLUMN) if col not in scored.columns]
    missing += [col for col in PROVIDER_COLUMNS if col not in providers.columns]
    missing += [col for col in FOOTPRINT_COLUMNS if col not in footprint.columns]
    if missing:
        raise SystemExit(f"Missing required columns: {missing}")

    assert len(footprint) == 2, "Footprint should cover the union of both providers' MSAs"
    assert footprint["regulatory_risk"].iloc[0], "Charlotte should breach the concentration thresholds"

    print("Scoring validation passed. MSAs:", len(scored), "Providers:", len(providers))


if __name__ == "__main__":
    main()
