"""
Weighted attractiveness score and quartile-based categories.

The score is a weighted *sum* of 0-3 ordinals, not a weighted average: with
weights summing to 100 it lies in [0, 3]; any drift is passed through.
Categories are relative to the population being scored and are rebuilt on
every recalculation.
"""

from __future__ import annotations

import logging
import math
from typing import Any, List, Mapping, Optional, Sequence

import pandas as pd

from msa_insights.scoring.parameters import DEFAULT_WEIGHTS, Parameter, Weights
from msa_insights.utils.helpers import normalize_label, round_half_up

logger = logging.getLogger(__name__)

SCORE_COLUMN = "Attractiveness_Score"
CATEGORY_COLUMN = "Attractiveness_Category"

HIGHLY_ATTRACTIVE = "Highly Attractive"
ATTRACTIVE = "Attractive"
NEUTRAL = "Neutral"
CHALLENGING = "Challenging"
CATEGORIES = [HIGHLY_ATTRACTIVE, ATTRACTIVE, NEUTRAL, CHALLENGING]

# Fixed tables, independent of scoring direction
_PREMIUM_DISCOUNT = {"premium": 3, "par": 2, "discount": 1}
_RATIONALITY = {"rational": 3, "irrational": 1}

_STANDARD = {"high": 3, "medium": 2, "low": 1}
_INVERSE = {
    "high": 1,
    "medium": 2,
    "low": 3,
    "above_national": 1,
    "at_national": 2,
    "below_national": 3,
}


def score_to_value(value: Any, inverse: bool = False) -> int:
    """Map a categorical label to its 1-3 ordinal, 0 when empty or unknown."""
    normalized = normalize_label(value)
    if not normalized:
        return 0
    if normalized in _PREMIUM_DISCOUNT:
        return _PREMIUM_DISCOUNT[normalized]
    if normalized in _RATIONALITY:
        return _RATIONALITY[normalized]
    table = _INVERSE if inverse else _STANDARD
    return table.get(normalized, 0)


def calculate_attractiveness_score(row: Mapping[str, Any], weights: Weights) -> float:
    total = 0.0
    for parameter in Parameter:
        weight = weights.get(parameter, 0) or 0
        total += score_to_value(parameter.value_of(row), parameter.inverse) * (weight / 100)
    return round_half_up(total, 2)


def get_categories_by_quartiles(scores: Sequence[float]) -> List[str]:
    """Nearest-rank quartile categories, returned in input order.

    Boundaries are the sorted values at floor(n*0.25), floor(n*0.5) and
    floor(n*0.75); a score equal to a boundary falls in the lower category.
    """
    cleaned = [_clean_score(s) for s in scores]
    n = len(cleaned)
    if n == 0:
        return []
    ordered = sorted(cleaned)
    q1 = ordered[int(math.floor(n * 0.25))]
    q2 = ordered[int(math.floor(n * 0.5))]
    q3 = ordered[int(math.floor(n * 0.75))]

    categories = []
    for score in cleaned:
        if score <= q1:
            categories.append(CHALLENGING)
        elif score <= q2:
            categories.append(NEUTRAL)
        elif score <= q3:
            categories.append(ATTRACTIVE)
        else:
            categories.append(HIGHLY_ATTRACTIVE)
    return categories


def _clean_score(score: Any) -> float:
    if score is None or pd.isna(score):
        return 0.0
    return float(score)


def assign_categories(df: pd.DataFrame) -> pd.DataFrame:
    out = df.copy()
    scores = out[SCORE_COLUMN].tolist() if SCORE_COLUMN in out.columns else []
    out[CATEGORY_COLUMN] = get_categories_by_quartiles(scores)
    return out


def recalculate_scores(
    df: pd.DataFrame,
    weights: Optional[Weights] = None,
    use_original: bool = False,
) -> pd.DataFrame:
    """Replace score and category columns for every row of ``df``."""
    if use_original:
        return df.copy()
    weights = weights or DEFAULT_WEIGHTS
    total = sum(weights.values())
    if abs(total - 100) > 0.01:
        logger.warning("Weights sum to %.2f, not 100; scores are a weighted sum and will drift", total)
    out = df.copy()
    if out.empty:
        out[SCORE_COLUMN] = pd.Series(dtype="float64")
        out[CATEGORY_COLUMN] = pd.Series(dtype="object")
        return out
    out[SCORE_COLUMN] = out.apply(lambda row: calculate_attractiveness_score(row, weights), axis=1)
    out = assign_categories(out)
    logger.debug("Recalculated %d attractiveness scores with flat weights", len(out))
    return out


def convert_categories_to_weights(preferences: Mapping[Parameter, str]) -> Weights:
    """Derive flat weights from one preferred category per parameter.

    "Any" (or a missing entry) earns no points. Each preference earns its
    ordinal under the parameter's scoring table; weights are the rounded
    point shares and the rounding remainder lands on HHI.
    """
    points = {}
    for parameter in Parameter:
        preference = preferences.get(parameter, "Any")
        if not preference or preference == "Any":
            points[parameter] = 0
        else:
            points[parameter] = score_to_value(preference, parameter.inverse)

    total_points = sum(points.values())
    if total_points == 0:
        return dict(DEFAULT_WEIGHTS)

    weights = {p: round_half_up(points[p] / total_points * 100) for p in Parameter}
    diff = 100 - sum(weights.values())
    if diff != 0:
        weights[Parameter.HHI] += diff
    return weights
