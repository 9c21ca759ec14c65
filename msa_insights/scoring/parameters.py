"""
The nine categorical market parameters and the flat weighting scheme.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from msa_insights.utils.helpers import to_float

logger = logging.getLogger(__name__)

HIGH_MEDIUM_LOW: Tuple[str, ...] = ("High", "Medium", "Low")
NATIONAL_AVG: Tuple[str, ...] = ("Below National Avg", "At National Avg", "Above National Avg")
PREMIUM_DISCOUNT: Tuple[str, ...] = ("Premium", "Par", "Discount")
RATIONALITY: Tuple[str, ...] = ("Rational", "Irrational")


class Parameter(Enum):
    """Scoring parameter: (label, value domain, inverse)."""

    HHI = ("Market Concentration", ("Low", "Medium", "High"), True)
    ECONOMIC_GROWTH = ("Economic Growth", HIGH_MEDIUM_LOW, False)
    LOAN_GROWTH = ("Loan Growth", HIGH_MEDIUM_LOW, False)
    RISK = ("Weighted Average Credit Risk", HIGH_MEDIUM_LOW, True)
    RISK_MIGRATION = ("1-Year Credit Risk Migration", ("Low", "Medium", "High"), True)
    RELATIVE_RISK_MIGRATION = ("Relative Risk Migration", NATIONAL_AVG, True)
    PREMIUM_DISCOUNT = ("Premium / Discount Loan Pricing", PREMIUM_DISCOUNT, False)
    PRICING_RATIONALITY = ("Loan Pricing Rationality", RATIONALITY, False)
    INTERNATIONAL_CM = ("International CM", HIGH_MEDIUM_LOW, False)

    def __init__(self, label: str, values: Tuple[str, ...], inverse: bool):
        self.label = label
        self.values = values
        self.inverse = inverse

    @property
    def id(self) -> str:
        return _PARAMETER_IDS[self.name]

    @property
    def column(self) -> str:
        return f"{self.id}_Score"

    def value_of(self, row: Mapping[str, Any]) -> Any:
        return row.get(self.column)

    @classmethod
    def from_id(cls, parameter_id: "str | Parameter") -> "Parameter":
        if isinstance(parameter_id, Parameter):
            return parameter_id
        key = str(parameter_id)
        if key.endswith("_Score"):
            key = key[: -len("_Score")]
        for member in cls:
            if member.id == key or member.name == key.upper():
                return member
        raise ValueError(f"Unknown scoring parameter: {parameter_id!r}")


_PARAMETER_IDS = {
    "HHI": "HHI",
    "ECONOMIC_GROWTH": "Economic_Growth",
    "LOAN_GROWTH": "Loan_Growth",
    "RISK": "Risk",
    "RISK_MIGRATION": "Risk_Migration",
    "RELATIVE_RISK_MIGRATION": "Relative_Risk_Migration",
    "PREMIUM_DISCOUNT": "Premium_Discount",
    "PRICING_RATIONALITY": "Pricing_Rationality",
    "INTERNATIONAL_CM": "International_CM",
}

SCORE_COLUMNS = [p.column for p in Parameter]

# Integer percentages per parameter; nominally sums to 100
Weights = Dict[Parameter, float]

DEFAULT_WEIGHTS: Weights = {
    Parameter.HHI: 12,
    Parameter.ECONOMIC_GROWTH: 12,
    Parameter.LOAN_GROWTH: 10,
    Parameter.RISK: 8,
    Parameter.RISK_MIGRATION: 12,
    Parameter.RELATIVE_RISK_MIGRATION: 10,
    Parameter.PREMIUM_DISCOUNT: 12,
    Parameter.PRICING_RATIONALITY: 12,
    Parameter.INTERNATIONAL_CM: 12,
}


def empty_weights() -> Weights:
    return {p: 0 for p in Parameter}


def make_weights(raw: Mapping[Any, Any]) -> Weights:
    """Build a complete Weights map from ids, enum members or `<id>_Score` keys.

    Missing parameters get 0; drift from 100 is tolerated but logged.
    """
    weights = empty_weights()
    for key, value in raw.items():
        weights[Parameter.from_id(key)] = to_float(value)
    total = sum(weights.values())
    if abs(total - 100) > 0.01:
        logger.warning("Weights sum to %.2f, not 100; scores will not be on the 0-3 scale", total)
    return weights


def serialize_weights(weights: Mapping[Parameter, float]) -> Dict[str, float]:
    return {p.id: weights.get(p, 0) for p in Parameter}
