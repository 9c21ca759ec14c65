"""
Priority-bucket scoring, the dashboard's default scoring mode.

Parameters are placed, each with a target value, into a High or Medium
bucket (or into Exclusions, which filters the population and never scores).
Within a bucket every parameter counts equally; position only orders the
display and feeds the flat-weight approximation in
:func:`convert_buckets_to_weights`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

import pandas as pd

from msa_insights.config import get_settings
from msa_insights.scoring.parameters import DEFAULT_WEIGHTS, Parameter, Weights, empty_weights
from msa_insights.scoring.score import (
    SCORE_COLUMN,
    assign_categories,
    calculate_attractiveness_score,
    score_to_value,
)
from msa_insights.utils.helpers import normalize_label, round_half_up

logger = logging.getLogger(__name__)

POSITION_DECAY = 0.02


class Bucket(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    EXCLUSIONS = "exclusions"


SCORED_BUCKETS = (Bucket.HIGH, Bucket.MEDIUM)


@dataclass(frozen=True)
class BucketAssignment:
    parameter: Parameter
    target_value: str
    bucket: Bucket
    position: int = 0

    @classmethod
    def create(cls, parameter: Any, target_value: str, bucket: Any, position: int = 0) -> "BucketAssignment":
        return cls(Parameter.from_id(parameter), str(target_value), Bucket(bucket), int(position))

    def same_pair(self, parameter: Parameter, target_value: str) -> bool:
        return self.parameter is parameter and self.target_value == target_value

    def to_dict(self) -> Dict[str, Any]:
        return {
            "parameterId": self.parameter.id,
            "selectedValue": self.target_value,
            "bucket": self.bucket.value,
            "position": self.position,
        }


@dataclass(frozen=True)
class BucketWeights:
    high: float = 60.0
    medium: float = 40.0

    @classmethod
    def from_settings(cls) -> "BucketWeights":
        settings = get_settings()
        return cls(high=settings.high_bucket_weight, medium=settings.medium_bucket_weight)

    def for_bucket(self, bucket: Bucket) -> float:
        if bucket is Bucket.HIGH:
            return self.high
        if bucket is Bucket.MEDIUM:
            return self.medium
        return 0.0

    def to_dict(self) -> Dict[str, float]:
        return {"high": self.high, "medium": self.medium}


DEFAULT_BUCKET_WEIGHTS = BucketWeights()

# Mirrors the flat DEFAULT_WEIGHTS: the 12% parameters are high priority,
# the 8-10% parameters medium.
DEFAULT_BUCKET_ASSIGNMENTS: List[BucketAssignment] = [
    BucketAssignment(Parameter.HHI, "Low", Bucket.HIGH, 0),
    BucketAssignment(Parameter.ECONOMIC_GROWTH, "High", Bucket.HIGH, 1),
    BucketAssignment(Parameter.RISK_MIGRATION, "Low", Bucket.HIGH, 2),
    BucketAssignment(Parameter.PREMIUM_DISCOUNT, "Premium", Bucket.HIGH, 3),
    BucketAssignment(Parameter.PRICING_RATIONALITY, "Rational", Bucket.HIGH, 4),
    BucketAssignment(Parameter.INTERNATIONAL_CM, "High", Bucket.HIGH, 5),
    BucketAssignment(Parameter.LOAN_GROWTH, "High", Bucket.MEDIUM, 0),
    BucketAssignment(Parameter.RELATIVE_RISK_MIGRATION, "Below National Avg", Bucket.MEDIUM, 1),
    BucketAssignment(Parameter.RISK, "Low", Bucket.MEDIUM, 2),
]


def validate_bucket_weights(bucket_weights: BucketWeights) -> float:
    total = bucket_weights.high + bucket_weights.medium
    if abs(total - 100) > 0.01:
        logger.warning(
            "Bucket weights sum to %.2f (high=%.2f, medium=%.2f), not 100",
            total,
            bucket_weights.high,
            bucket_weights.medium,
        )
    return total


def bucket_items(assignments: Sequence[BucketAssignment], bucket: Bucket) -> List[BucketAssignment]:
    return sorted((a for a in assignments if a.bucket is bucket), key=lambda a: a.position)


def get_score_for_value(actual_value: Any, target_value: Any, parameter: Optional[Parameter] = None) -> int:
    """How well an actual label matches the target label (3 best, 1 worst).

    An empty actual value scores 0, as does a target outside every known
    value domain.
    """
    actual = normalize_label(actual_value)
    target = normalize_label(target_value)
    if not actual:
        return 0
    if actual == target:
        return 3
    if target in ("high", "medium", "low"):
        if actual == "medium":
            return 2
        return 1
    if target in ("below_national", "at_national", "above_national"):
        if actual == "at_national":
            return 2
        return 1
    if target in ("premium", "par", "discount"):
        if actual == "par":
            return 2
        return 1
    if target in ("rational", "irrational"):
        return 1
    return 0


def calculate_bucket_mode_score(
    row: Mapping[str, Any],
    assignments: Sequence[BucketAssignment],
    bucket_weights: Optional[BucketWeights] = None,
) -> float:
    if not assignments:
        return calculate_attractiveness_score(row, DEFAULT_WEIGHTS)
    bucket_weights = bucket_weights or BucketWeights.from_settings()

    total = 0.0
    for bucket in SCORED_BUCKETS:
        items = bucket_items(assignments, bucket)
        if not items:
            continue
        match_scores = [
            get_score_for_value(a.parameter.value_of(row), a.target_value, a.parameter) for a in items
        ]
        average = sum(match_scores) / len(items)
        total += average * (bucket_weights.for_bucket(bucket) / 100)
    return round_half_up(total, 2)


def recalculate_with_buckets(
    df: pd.DataFrame,
    assignments: Sequence[BucketAssignment],
    bucket_weights: Optional[BucketWeights] = None,
) -> pd.DataFrame:
    """Replace score and category columns using bucket-mode scoring."""
    bucket_weights = bucket_weights or BucketWeights.from_settings()
    validate_bucket_weights(bucket_weights)
    out = df.copy()
    if out.empty:
        out[SCORE_COLUMN] = pd.Series(dtype="float64")
        return assign_categories(out)
    out[SCORE_COLUMN] = out.apply(
        lambda row: calculate_bucket_mode_score(row, assignments, bucket_weights), axis=1
    )
    out = assign_categories(out)
    logger.debug(
        "Recalculated %d scores from %d bucket assignments", len(out), len(assignments)
    )
    return out


def convert_buckets_to_weights(
    assignments: Sequence[BucketAssignment],
    bucket_weights: Optional[BucketWeights] = None,
) -> Weights:
    """Approximate a bucket configuration as flat weights for display.

    Items in a bucket share its percentage with a slight preference for
    earlier positions (weight 1 + (n - i - 1) * 0.02). The first
    non-excluded assignment absorbs any rounding drift so the total is 100.
    """
    if not assignments:
        return dict(DEFAULT_WEIGHTS)
    bucket_weights = bucket_weights or BucketWeights.from_settings()

    weights = empty_weights()
    for bucket in SCORED_BUCKETS:
        items = bucket_items(assignments, bucket)
        if not items:
            continue
        bucket_pct = bucket_weights.for_bucket(bucket)
        if len(items) == 1:
            weights[items[0].parameter] = bucket_pct
            continue
        n = len(items)
        position_weights = [1.0 + (n - idx - 1) * POSITION_DECAY for idx in range(n)]
        total_position_weight = sum(position_weights)
        for assignment, position_weight in zip(items, position_weights):
            item_weight = bucket_pct * position_weight / total_position_weight
            weights[assignment.parameter] = round_half_up(item_weight, 2)

    diff = 100 - sum(weights.values())
    if abs(diff) > 0.01:
        first = next((a for a in assignments if a.bucket is not Bucket.EXCLUSIONS), None)
        if first is not None:
            weights[first.parameter] = round_half_up(weights[first.parameter] + diff, 2)
    return weights


def _reindex(by_bucket: Dict[Bucket, List[BucketAssignment]]) -> List[BucketAssignment]:
    result: List[BucketAssignment] = []
    for bucket in Bucket:
        for idx, item in enumerate(by_bucket.get(bucket, [])):
            result.append(replace(item, bucket=bucket, position=idx))
    return result


def _group(assignments: Sequence[BucketAssignment]) -> Dict[Bucket, List[BucketAssignment]]:
    return {bucket: bucket_items(assignments, bucket) for bucket in Bucket}


def place_assignment(
    assignments: Sequence[BucketAssignment],
    parameter: Any,
    target_value: str,
    bucket: Any,
    position: Optional[int] = None,
) -> List[BucketAssignment]:
    """Put a (parameter, value) pair into ``bucket``, moving it if already placed.

    Positions are re-densified in every bucket so each runs 0..n-1.
    """
    parameter = Parameter.from_id(parameter)
    bucket = Bucket(bucket)
    remaining = [a for a in assignments if not a.same_pair(parameter, target_value)]
    grouped = _group(remaining)
    target_items = grouped[bucket]
    index = len(target_items) if position is None else max(0, min(int(position), len(target_items)))
    target_items.insert(index, BucketAssignment(parameter, target_value, bucket, 0))
    return _reindex(grouped)


def remove_assignment(
    assignments: Sequence[BucketAssignment],
    parameter: Any,
    target_value: str,
) -> List[BucketAssignment]:
    parameter = Parameter.from_id(parameter)
    remaining = [a for a in assignments if not a.same_pair(parameter, target_value)]
    return _reindex(_group(remaining))


def reorder_assignment(
    assignments: Sequence[BucketAssignment],
    parameter: Any,
    target_value: str,
    new_position: int,
) -> List[BucketAssignment]:
    """Move a placed pair to ``new_position`` inside its current bucket."""
    parameter = Parameter.from_id(parameter)
    current = next((a for a in assignments if a.same_pair(parameter, target_value)), None)
    if current is None:
        return _reindex(_group(assignments))
    grouped = _group(assignments)
    items = grouped[current.bucket]
    old_index = next(i for i, a in enumerate(items) if a.same_pair(parameter, target_value))
    moved = items.pop(old_index)
    new_index = max(0, min(int(new_position), len(items)))
    items.insert(new_index, moved)
    return _reindex(grouped)


def assignments_from_dicts(raw: Sequence[Mapping[str, Any]]) -> List[BucketAssignment]:
    """Parse the presentation layer's ``{parameterId, selectedValue, bucket, position}`` dicts."""
    return [
        BucketAssignment.create(
            item["parameterId"],
            item["selectedValue"],
            item["bucket"],
            item.get("position", 0),
        )
        for item in raw
    ]


@dataclass
class ParameterBreakdown:
    parameter: str
    target_value: str
    actual_value: str
    match_score: int
    position: int


@dataclass
class BucketBreakdown:
    bucket: str
    bucket_weight: float
    parameters: List[ParameterBreakdown] = field(default_factory=list)
    average_score: float = 0.0
    contribution: float = 0.0


@dataclass
class ScoreBreakdown:
    buckets: List[BucketBreakdown]
    total_score: float
    mode: str


def score_breakdown(
    row: Mapping[str, Any],
    assignments: Sequence[BucketAssignment],
    bucket_weights: Optional[BucketWeights] = None,
) -> ScoreBreakdown:
    """Explain a bucket-mode score bucket by bucket.

    Without assignments the row is scored with the default flat weights and
    the breakdown is a single pseudo-bucket per parameter.
    """
    bucket_weights = bucket_weights or BucketWeights.from_settings()
    if not assignments:
        return _flat_breakdown(row)

    buckets: List[BucketBreakdown] = []
    total = 0.0
    for bucket in Bucket:
        items = bucket_items(assignments, bucket)
        if not items:
            continue
        weight_fraction = bucket_weights.for_bucket(bucket) / 100
        entry = BucketBreakdown(bucket=bucket.value, bucket_weight=weight_fraction)
        for idx, assignment in enumerate(items):
            actual = assignment.parameter.value_of(row)
            entry.parameters.append(
                ParameterBreakdown(
                    parameter=assignment.parameter.label,
                    target_value=assignment.target_value,
                    actual_value="" if actual is None or pd.isna(actual) else str(actual),
                    match_score=get_score_for_value(actual, assignment.target_value, assignment.parameter),
                    position=idx + 1,
                )
            )
        entry.average_score = sum(p.match_score for p in entry.parameters) / len(entry.parameters)
        entry.contribution = entry.average_score * weight_fraction
        total += entry.contribution
        buckets.append(entry)
    return ScoreBreakdown(buckets=buckets, total_score=round_half_up(total, 2), mode="bucket")


def _flat_breakdown(row: Mapping[str, Any]) -> ScoreBreakdown:
    entry = BucketBreakdown(bucket="weights", bucket_weight=1.0)
    for idx, parameter in enumerate(Parameter):
        actual = parameter.value_of(row)
        entry.parameters.append(
            ParameterBreakdown(
                parameter=parameter.label,
                target_value="",
                actual_value="" if actual is None or pd.isna(actual) else str(actual),
                match_score=score_to_value(actual, parameter.inverse),
                position=idx + 1,
            )
        )
    total = calculate_attractiveness_score(row, DEFAULT_WEIGHTS)
    entry.contribution = total
    return ScoreBreakdown(buckets=[entry], total_score=total, mode="weights")
