"""
Tests for bucket-mode scoring, weight conversion and assignment editing.
"""
import pytest

from msa_insights.scoring.buckets import (
    DEFAULT_BUCKET_ASSIGNMENTS,
    Bucket,
    BucketAssignment,
    BucketWeights,
    assignments_from_dicts,
    bucket_items,
    calculate_bucket_mode_score,
    convert_buckets_to_weights,
    get_score_for_value,
    place_assignment,
    recalculate_with_buckets,
    remove_assignment,
    reorder_assignment,
    score_breakdown,
    validate_bucket_weights,
)
from msa_insights.scoring.parameters import DEFAULT_WEIGHTS, Parameter
from msa_insights.scoring.score import CATEGORY_COLUMN, SCORE_COLUMN, calculate_attractiveness_score


def _pairs(assignments, bucket):
    return [(a.parameter, a.target_value, a.position) for a in bucket_items(assignments, bucket)]


class TestGetScoreForValue:

    def test_exact_match(self):
        assert get_score_for_value("High", "High") == 3
        assert get_score_for_value("Below National Avg", "Below National Avg") == 3

    def test_medium_scores_two(self):
        assert get_score_for_value("Medium", "High") == 2
        assert get_score_for_value("Medium", "Low") == 2

    def test_wrong_extreme_scores_one(self):
        assert get_score_for_value("Low", "High") == 1
        assert get_score_for_value("High", "Low") == 1

    def test_relative_risk_migration(self):
        assert get_score_for_value("At National Avg", "Below National Avg") == 2
        assert get_score_for_value("Above National Avg", "Below National Avg") == 1

    def test_pricing_tables(self):
        assert get_score_for_value("Par", "Premium") == 2
        assert get_score_for_value("Discount", "Premium") == 1
        assert get_score_for_value("Irrational", "Rational") == 1

    def test_empty_actual_scores_zero(self):
        assert get_score_for_value(None, "High") == 0
        assert get_score_for_value("", "High") == 0


class TestCalculateBucketModeScore:

    def test_empty_assignments_match_flat_defaults(self, attractiveness_df):
        for _, row in attractiveness_df.iterrows():
            assert calculate_bucket_mode_score(row, []) == calculate_attractiveness_score(row, DEFAULT_WEIGHTS)

    def test_perfect_row_scores_three(self, attractiveness_df):
        row = attractiveness_df.iloc[0]
        assert calculate_bucket_mode_score(row, DEFAULT_BUCKET_ASSIGNMENTS, BucketWeights()) == 3.0

    def test_equal_weight_within_bucket(self):
        row = {"Economic_Growth_Score": "High", "Loan_Growth_Score": "Low", "Risk_Score": "Medium"}
        assignments = [
            BucketAssignment(Parameter.ECONOMIC_GROWTH, "High", Bucket.HIGH, 0),
            BucketAssignment(Parameter.LOAN_GROWTH, "High", Bucket.HIGH, 1),
            BucketAssignment(Parameter.RISK, "Low", Bucket.MEDIUM, 0),
        ]
        # high: (3 + 1) / 2 * 0.6 = 1.2, medium: 2 * 0.4 = 0.8
        assert calculate_bucket_mode_score(row, assignments, BucketWeights()) == 2.0
        swapped = [
            BucketAssignment(Parameter.ECONOMIC_GROWTH, "High", Bucket.HIGH, 1),
            BucketAssignment(Parameter.LOAN_GROWTH, "High", Bucket.HIGH, 0),
            assignments[2],
        ]
        assert calculate_bucket_mode_score(row, swapped, BucketWeights()) == 2.0

    def test_exclusions_never_contribute(self):
        row = {"Economic_Growth_Score": "High", "HHI_Score": "High"}
        assignments = [
            BucketAssignment(Parameter.ECONOMIC_GROWTH, "High", Bucket.HIGH, 0),
            BucketAssignment(Parameter.HHI, "High", Bucket.EXCLUSIONS, 0),
        ]
        assert calculate_bucket_mode_score(row, assignments, BucketWeights()) == 1.8

    def test_weights_from_settings(self, monkeypatch):
        monkeypatch.setenv("MSA_HIGH_BUCKET_WEIGHT", "100")
        monkeypatch.setenv("MSA_MEDIUM_BUCKET_WEIGHT", "0")
        row = {"Economic_Growth_Score": "High"}
        assignments = [BucketAssignment(Parameter.ECONOMIC_GROWTH, "High", Bucket.HIGH, 0)]
        assert calculate_bucket_mode_score(row, assignments) == 3.0


class TestRecalculateWithBuckets:

    def test_scores_and_categories(self, attractiveness_df):
        out = recalculate_with_buckets(attractiveness_df, DEFAULT_BUCKET_ASSIGNMENTS, BucketWeights())
        assert out[SCORE_COLUMN].iloc[0] == 3.0
        assert out[SCORE_COLUMN].iloc[3] == 1.0
        assert set(out[CATEGORY_COLUMN]) <= {"Highly Attractive", "Attractive", "Neutral", "Challenging"}
        assert SCORE_COLUMN not in attractiveness_df.columns

    def test_warns_on_unbalanced_weights(self, attractiveness_df, caplog):
        recalculate_with_buckets(attractiveness_df, DEFAULT_BUCKET_ASSIGNMENTS, BucketWeights(70, 40))
        assert "not 100" in caplog.text


class TestConvertBucketsToWeights:

    def test_defaults_sum_to_100(self):
        weights = convert_buckets_to_weights(DEFAULT_BUCKET_ASSIGNMENTS, BucketWeights())
        assert sum(weights.values()) == pytest.approx(100, abs=0.01)
        assert weights[Parameter.HHI] > weights[Parameter.INTERNATIONAL_CM]
        assert weights[Parameter.LOAN_GROWTH] > weights[Parameter.RISK]

    def test_single_item_takes_whole_bucket(self):
        assignments = [
            BucketAssignment(Parameter.RISK, "Low", Bucket.HIGH, 0),
            BucketAssignment(Parameter.HHI, "Low", Bucket.MEDIUM, 0),
        ]
        weights = convert_buckets_to_weights(assignments, BucketWeights())
        assert weights[Parameter.RISK] == 60
        assert weights[Parameter.HHI] == 40

    def test_drift_lands_on_first_non_excluded(self):
        assignments = [
            BucketAssignment(Parameter.PRICING_RATIONALITY, "Rational", Bucket.EXCLUSIONS, 0),
            BucketAssignment(Parameter.RISK, "Low", Bucket.HIGH, 0),
        ]
        weights = convert_buckets_to_weights(assignments, BucketWeights())
        assert weights[Parameter.RISK] == 100
        assert weights[Parameter.PRICING_RATIONALITY] == 0

    def test_empty_returns_defaults(self):
        assert convert_buckets_to_weights([]) == DEFAULT_WEIGHTS


class TestAssignmentEditing:

    def test_place_appends_and_moves(self):
        placed = place_assignment(DEFAULT_BUCKET_ASSIGNMENTS, "Risk", "Low", "high")
        assert _pairs(placed, Bucket.HIGH)[-1] == (Parameter.RISK, "Low", 6)
        assert [a.parameter for a in bucket_items(placed, Bucket.MEDIUM)] == [
            Parameter.LOAN_GROWTH,
            Parameter.RELATIVE_RISK_MIGRATION,
        ]
        assert [a.position for a in bucket_items(placed, Bucket.MEDIUM)] == [0, 1]

    def test_place_at_position(self):
        placed = place_assignment(DEFAULT_BUCKET_ASSIGNMENTS, Parameter.HHI, "High", Bucket.EXCLUSIONS, 0)
        assert _pairs(placed, Bucket.EXCLUSIONS) == [(Parameter.HHI, "High", 0)]
        placed = place_assignment(placed, Parameter.RISK, "Low", Bucket.MEDIUM, 0)
        assert bucket_items(placed, Bucket.MEDIUM)[0].parameter is Parameter.RISK

    def test_same_parameter_different_values_coexist(self):
        placed = place_assignment(DEFAULT_BUCKET_ASSIGNMENTS, Parameter.HHI, "High", Bucket.EXCLUSIONS)
        hhi_items = [a for a in placed if a.parameter is Parameter.HHI]
        assert len(hhi_items) == 2

    def test_remove(self):
        removed = remove_assignment(DEFAULT_BUCKET_ASSIGNMENTS, "HHI", "Low")
        assert len(removed) == len(DEFAULT_BUCKET_ASSIGNMENTS) - 1
        assert [a.position for a in bucket_items(removed, Bucket.HIGH)] == [0, 1, 2, 3, 4]

    def test_reorder_within_bucket(self):
        moved = reorder_assignment(DEFAULT_BUCKET_ASSIGNMENTS, Parameter.INTERNATIONAL_CM, "High", 0)
        high = bucket_items(moved, Bucket.HIGH)
        assert high[0].parameter is Parameter.INTERNATIONAL_CM
        assert high[1].parameter is Parameter.HHI
        assert [a.position for a in high] == list(range(6))

    def test_reorder_unknown_pair_is_noop(self):
        moved = reorder_assignment(DEFAULT_BUCKET_ASSIGNMENTS, Parameter.HHI, "High", 3)
        assert moved == DEFAULT_BUCKET_ASSIGNMENTS

    def test_editing_leaves_input_untouched(self):
        original = list(DEFAULT_BUCKET_ASSIGNMENTS)
        place_assignment(DEFAULT_BUCKET_ASSIGNMENTS, Parameter.RISK, "Low", Bucket.HIGH)
        assert DEFAULT_BUCKET_ASSIGNMENTS == original

    def test_dict_round_trip(self):
        raw = [a.to_dict() for a in DEFAULT_BUCKET_ASSIGNMENTS]
        assert raw[0] == {"parameterId": "HHI", "selectedValue": "Low", "bucket": "high", "position": 0}
        assert assignments_from_dicts(raw) == DEFAULT_BUCKET_ASSIGNMENTS

    def test_unknown_bucket_raises(self):
        with pytest.raises(ValueError):
            BucketAssignment.create("HHI", "Low", "urgent")


class TestScoreBreakdown:

    def test_total_matches_bucket_score(self, attractiveness_df):
        row = attractiveness_df.iloc[2]
        assignments = place_assignment(DEFAULT_BUCKET_ASSIGNMENTS, Parameter.HHI, "High", Bucket.EXCLUSIONS)
        breakdown = score_breakdown(row, assignments, BucketWeights())
        assert breakdown.mode == "bucket"
        assert breakdown.total_score == calculate_bucket_mode_score(row, assignments, BucketWeights())
        assert [b.bucket for b in breakdown.buckets] == ["high", "medium", "exclusions"]
        exclusions = breakdown.buckets[-1]
        assert exclusions.contribution == 0
        assert exclusions.parameters[0].position == 1

    def test_parameters_carry_actual_and_target(self, attractiveness_df):
        breakdown = score_breakdown(attractiveness_df.iloc[0], DEFAULT_BUCKET_ASSIGNMENTS, BucketWeights())
        first = breakdown.buckets[0].parameters[0]
        assert first.parameter == Parameter.HHI.label
        assert first.target_value == "Low"
        assert first.actual_value == "Low"
        assert first.match_score == 3

    def test_flat_fallback(self, attractiveness_df):
        row = attractiveness_df.iloc[1]
        breakdown = score_breakdown(row, [])
        assert breakdown.mode == "weights"
        assert breakdown.total_score == calculate_attractiveness_score(row, DEFAULT_WEIGHTS)
        assert len(breakdown.buckets[0].parameters) == 9


def test_validate_bucket_weights_returns_sum(caplog):
    assert validate_bucket_weights(BucketWeights()) == 100
    assert caplog.text == ""
    assert validate_bucket_weights(BucketWeights(50, 30)) == 80
    assert "not 100" in caplog.text
