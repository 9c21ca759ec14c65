"""
Pytest configuration and shared fixtures.
"""
import os

import pandas as pd
import pytest

from msa_insights.config import ENV_PREFIX, reset_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """
    Clean environment for testing.

    Removes every MSA_* variable so settings come from defaults.
    """
    for var in list(os.environ):
        if var.startswith(ENV_PREFIX):
            monkeypatch.delenv(var, raising=False)

    reset_settings()

    yield

    reset_settings()


def _attractiveness_row(msa, size, revenue, **scores):
    row = {
        "MSA": msa,
        "Product": "Credit_Cash_Management",
        "Market Size": size,
        "Revenue per Company": revenue,
        "HHI_Score": "Medium",
        "Economic_Growth_Score": "Medium",
        "Loan_Growth_Score": "Medium",
        "Risk_Score": "Medium",
        "Risk_Migration_Score": "Medium",
        "Relative_Risk_Migration_Score": "At National Avg",
        "Premium_Discount_Score": "Par",
        "Pricing_Rationality_Score": "Rational",
        "International_CM_Score": "Medium",
    }
    row.update({f"{key}_Score": value for key, value in scores.items()})
    return row


@pytest.fixture
def attractiveness_df():
    """Four MSAs spanning best to worst on every parameter."""
    return pd.DataFrame(
        [
            _attractiveness_row(
                "NC-SC-Charlotte-Concord-Gastonia",
                1_200_000_000,
                45_000,
                HHI="Low",
                Economic_Growth="High",
                Loan_Growth="High",
                Risk="Low",
                Risk_Migration="Low",
                Relative_Risk_Migration="Below National Avg",
                Premium_Discount="Premium",
                International_CM="High",
            ),
            _attractiveness_row("WA-Seattle-Tacoma-Bellevue", 900_000_000, 38_000),
            _attractiveness_row(
                "TX-Austin-Round Rock",
                600_000_000,
                30_000,
                HHI="High",
                Economic_Growth="Low",
                Premium_Discount="Discount",
                Pricing_Rationality="Irrational",
            ),
            _attractiveness_row(
                "NY-NJ-PA-New York-Newark-Jersey City",
                3_000_000_000,
                60_000,
                HHI="High",
                Economic_Growth="Low",
                Loan_Growth="Low",
                Risk="High",
                Risk_Migration="High",
                Relative_Risk_Migration="Above National Avg",
                Premium_Discount="Discount",
                Pricing_Rationality="Irrational",
                International_CM="Low",
            ),
        ]
    )


@pytest.fixture
def market_df():
    """Credit/cash-management opportunity rows, shares already in percent."""
    return pd.DataFrame(
        {
            "MSA": [
                "NC-SC-Charlotte-Concord-Gastonia",
                "NC-SC-Charlotte-Concord-Gastonia",
                "WA-Seattle-Tacoma-Bellevue",
                "WA-Seattle-Tacoma-Bellevue",
                "TX-Austin-Round Rock",
            ],
            "Product": ["Credit_Cash_Management"] * 5,
            "Provider": ["Alpha Bank", "Beta Bank", "Alpha Bank", "Gamma Bank", "Beta Bank"],
            "Market Size": [1000.0, 1000.0, 500.0, 500.0, 200.0],
            "Market Share": [20.0, 15.0, 10.0, 40.0, 30.0],
            "Defend $": [10.0, 30.0, 2.0, 50.0, 12.0],
            "Weighted_Average_Score": [4.0, 3.0, None, 4.5, 3.5],
            "Included_In_Ranking": [True, True, False, True, True],
        }
    )


@pytest.fixture
def deposit_df():
    return pd.DataFrame(
        {
            "MSA": [
                "NC-SC-Charlotte-Concord-Gastonia",
                "NC-SC-Charlotte-Concord-Gastonia",
                "TX-Austin-Round Rock",
                "TX-Austin-Round Rock",
            ],
            "Provider": ["Alpha Bank", "Beta Bank", "Beta Bank", "Gamma Bank"],
            "Market Share": [20.0, 15.0, 30.0, 25.0],
        }
    )
