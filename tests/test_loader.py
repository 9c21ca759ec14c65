"""
Tests for ingestion: sentinel handling, numeric coercion and share units.
"""
import pandas as pd
import pytest

from msa_insights.data.loader import (
    ShareUnit,
    compute_filter_bucket_ranges,
    frame_to_records,
    normalize_share,
    prepare_attractiveness,
    prepare_opportunities,
    read_csv,
    without_deposits,
)

CSV = """MSA,Product,Provider,Market Size,Market Share,Defend $,Included_In_Ranking
NC-SC-Charlotte-Concord-Gastonia,Credit_Cash_Management,Alpha Bank,"$1,000",0.2,N/A,TRUE
NC-SC-Charlotte-Concord-Gastonia,Deposits,Alpha Bank,0,0.3,,FALSE
TX-Austin-Round Rock,Credit_Cash_Management,Beta Bank,200,30,12,null
"""


@pytest.fixture
def csv_path(tmp_path):
    path = tmp_path / "opportunities.csv"
    path.write_text(CSV)
    return str(path)


class TestReadCsv:

    def test_sentinels_become_missing(self, csv_path):
        df = read_csv(csv_path)
        assert pd.isna(df.loc[0, "Defend $"])
        assert pd.isna(df.loc[2, "Included_In_Ranking"])
        assert df.attrs["sentinel_replacements"]["Defend $"] == 2


class TestNormalizeShare:

    def test_fraction(self):
        assert normalize_share(pd.Series([0.25, 1.0]), ShareUnit.FRACTION).tolist() == [25.0, 100.0]

    def test_percent(self):
        assert normalize_share(pd.Series([0.5, 30]), "percent").tolist() == [0.5, 30.0]

    def test_auto_heuristic(self):
        assert normalize_share(pd.Series([0.25, 30, 0, None]), ShareUnit.AUTO).tolist() == [25.0, 30.0, 0.0, 0.0]

    def test_unknown_unit_falls_back_to_auto(self, caplog):
        assert normalize_share(pd.Series([0.5]), "basis-points").tolist() == [50.0]
        assert "Unknown share unit" in caplog.text

    def test_unit_from_settings(self, monkeypatch):
        monkeypatch.setenv("MSA_SHARE_UNIT", "percent")
        assert normalize_share(pd.Series([0.5])).tolist() == [0.5]


class TestPrepareOpportunities:

    def test_splits_deposits_and_normalises_once(self, csv_path):
        market, deposits = prepare_opportunities(read_csv(csv_path), ShareUnit.AUTO)
        assert market["Market Share"].tolist() == [20.0, 30.0]
        assert market["Market Size"].tolist() == [1000.0, 200.0]
        assert market["Defend $"].tolist() == [0.0, 12.0]
        assert market["Included_In_Ranking"].tolist() == [True, False]
        assert list(deposits.columns) == ["MSA", "Provider", "Market Share"]
        assert deposits["Market Share"].tolist() == [30.0]
        assert market.attrs["share_unit"] == "auto"

    def test_attractiveness_category_join(self, csv_path):
        attractiveness = pd.DataFrame(
            {
                "MSA": ["NC-SC-Charlotte-Concord-Gastonia"],
                "Product": ["Credit_Cash_Management"],
                "Attractiveness_Category": ["Highly Attractive"],
            }
        )
        market, _ = prepare_opportunities(read_csv(csv_path), attractiveness=attractiveness)
        assert market["Attractiveness_Category"].tolist() == ["Highly Attractive", "Unknown"]

    def test_input_is_not_mutated(self, market_df):
        before = market_df.copy()
        prepare_opportunities(market_df, ShareUnit.PERCENT)
        pd.testing.assert_frame_equal(market_df, before)


class TestPrepareAttractiveness:

    def test_coerces_and_drops_deposits(self, attractiveness_df):
        df = pd.concat(
            [attractiveness_df, pd.DataFrame([{"MSA": "X", "Product": "Deposits", "Market Size": "5"}])],
            ignore_index=True,
        )
        df["Market Size"] = df["Market Size"].astype(str)
        df.loc[0, "Market Size"] = "$1,200,000,000"
        out = prepare_attractiveness(df)
        assert len(out) == 4
        assert out.loc[0, "Market Size"] == 1_200_000_000.0
        assert out["Market Size"].dtype == "float64"


def test_compute_filter_bucket_ranges(attractiveness_df):
    ranges = compute_filter_bucket_ranges(attractiveness_df)
    assert ranges.market_size.min == 600_000_000
    assert ranges.market_size.max == 3_000_000_000
    assert ranges.market_size.count == 4
    assert ranges.revenue_per_company.min == 30_000


def test_compute_filter_bucket_ranges_empty():
    ranges = compute_filter_bucket_ranges(pd.DataFrame(columns=["MSA", "Market Size"]))
    assert (ranges.market_size.min, ranges.market_size.max, ranges.market_size.count) == (0.0, 0.0, 0)


def test_frame_to_records_is_json_friendly(market_df):
    records = frame_to_records(market_df)
    assert records[2]["Weighted_Average_Score"] is None
    assert isinstance(records[0]["Market Size"], float)
    assert records[0]["Included_In_Ranking"] is True
    assert frame_to_records(pd.DataFrame()) == []


def test_without_deposits(market_df):
    mixed = pd.concat([market_df, pd.DataFrame([{"MSA": "X", "Product": "Deposits"}])], ignore_index=True)
    assert len(without_deposits(mixed)) == len(market_df)
    no_product = pd.DataFrame({"MSA": ["A"]})
    assert without_deposits(no_product) is no_product
