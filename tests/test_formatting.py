"""
Tests for display formatting and numeric helpers.
"""
import pandas as pd
import pytest

from msa_insights.utils.formatting import format_at_risk, format_currency, format_percent, satisfaction_to_percent
from msa_insights.utils.helpers import normalize_label, round_half_up, safe_divide, safe_mean, to_float, to_numeric


class TestFormatting:

    @pytest.mark.parametrize(
        "value, expected",
        [
            (1_234_000_000, "$1.23B"),
            (4_560_000, "$4.56M"),
            (7_890, "$7.89K"),
            (12, "$12.00"),
            (None, "$0.00"),
            (float("nan"), "$0.00"),
        ],
    )
    def test_currency(self, value, expected):
        assert format_currency(value) == expected

    def test_percent(self):
        assert format_percent(12.345) == "12.3%"
        assert format_percent(None) == "–"

    @pytest.mark.parametrize("pct, expected", [(4.9, "<5%"), (5.0, "5.0%"), (25.0, "25.0%"), (25.1, ">25%"), (None, "<5%")])
    def test_at_risk(self, pct, expected):
        assert format_at_risk(pct) == expected

    def test_satisfaction(self):
        assert satisfaction_to_percent(4.5) == 90.0
        assert satisfaction_to_percent(None) is None


class TestHelpers:

    def test_to_float_strips_symbols(self):
        assert to_float("$1,234.50") == 1234.5
        assert to_float("12.5%") == 12.5
        assert to_float("n/a") == 0.0
        assert to_float(float("inf")) == 0.0

    def test_to_numeric_fills_missing(self):
        assert to_numeric(pd.Series(["$1,000", None, "abc", "2"])).tolist() == [1000.0, 0.0, 0.0, 2.0]

    def test_safe_divide(self):
        assert safe_divide(1, 0) == 0.0
        assert safe_divide(1, 4) == 0.25

    def test_safe_mean(self):
        assert safe_mean([1, None, 3]) == 2
        assert safe_mean([]) is None

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(0.125, 2) == 0.13
        assert round_half_up(-2.5) == -2

    def test_normalize_label(self):
        assert normalize_label("Below National Avg") == normalize_label("below_national")
        assert normalize_label(" Above-National ") == "above_national"
        assert normalize_label(None) == ""
