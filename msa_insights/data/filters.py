"""
Filter utilities that apply global dashboard filters to the MSA datasets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Set, Tuple

import pandas as pd

from msa_insights.data.regions import region_for_row
from msa_insights.scoring.buckets import Bucket, BucketAssignment
from msa_insights.utils.helpers import normalize_label

logger = logging.getLogger(__name__)

MARKET_SIZE_COLUMN = "Market Size"
REVENUE_PER_COMPANY_COLUMN = "Revenue per Company"

Range = Tuple[float, float]


@dataclass
class GlobalFilters:
    market_size_range: Range = (0.0, 0.0)
    revenue_per_company_range: Range = (0.0, 0.0)
    selected_regions: Set[str] = field(default_factory=set)
    # Accepted and serialised; no industry attribute exists on the records yet
    selected_industries: Set[str] = field(default_factory=set)


@dataclass(frozen=True)
class ValueRange:
    min: float = 0.0
    max: float = 0.0
    count: int = 0

    def is_full(self, selected: Range) -> bool:
        return selected[0] == self.min and selected[1] == self.max


@dataclass(frozen=True)
class FilterBucketRanges:
    market_size: Optional[ValueRange] = None
    revenue_per_company: Optional[ValueRange] = None


DEFAULT_FILTERS = GlobalFilters()


def _is_unset(selected: Range) -> bool:
    return selected[0] == 0 and selected[1] == 0


def _range_mask(
    df: pd.DataFrame,
    column: str,
    selected: Range,
    known: Optional[ValueRange],
) -> Optional[pd.Series]:
    # Without a known range there is nothing to compare "full range" against
    if known is None or known.is_full(selected) or _is_unset(selected):
        return None
    if column not in df.columns:
        return pd.Series(False, index=df.index)
    values = pd.to_numeric(df[column], errors="coerce")
    low, high = selected
    return values.notna() & (values >= low) & (values <= high)


def _exclusion_mask(df: pd.DataFrame, assignments: Sequence[BucketAssignment]) -> Optional[pd.Series]:
    exclusions = [a for a in assignments if a.bucket is Bucket.EXCLUSIONS]
    if not exclusions:
        return None
    keep = pd.Series(True, index=df.index)
    for exclusion in exclusions:
        column = exclusion.parameter.column
        if column not in df.columns:
            continue
        excluded_value = normalize_label(exclusion.target_value)
        actual = df[column].map(normalize_label)
        keep &= actual != excluded_value
    return keep


def apply_global_filters(
    df: pd.DataFrame,
    filters: GlobalFilters,
    bucket_assignments: Sequence[BucketAssignment] = (),
    filter_bucket_ranges: Optional[FilterBucketRanges] = None,
) -> pd.DataFrame:
    """
    Return the rows of ``df`` that pass every active global filter.

    Size ranges equal to the known full range, or left at the [0, 0]
    sentinel, do not filter. An empty region selection keeps every region.
    Rows matching any exclusion-bucket value are dropped.
    """
    filtered = df.copy()
    filtered.attrs["applied_filters"] = serialize_filters(filters)
    if filtered.empty:
        return filtered
    ranges = filter_bucket_ranges or FilterBucketRanges()
    before = len(filtered)

    mask = pd.Series(True, index=filtered.index)

    size_mask = _range_mask(filtered, MARKET_SIZE_COLUMN, filters.market_size_range, ranges.market_size)
    if size_mask is not None:
        mask &= size_mask

    revenue_mask = _range_mask(
        filtered,
        REVENUE_PER_COMPANY_COLUMN,
        filters.revenue_per_company_range,
        ranges.revenue_per_company,
    )
    if revenue_mask is not None:
        mask &= revenue_mask

    if filters.selected_regions:
        regions = filtered.apply(region_for_row, axis=1)
        mask &= regions.isin(set(filters.selected_regions))

    exclusion_mask = _exclusion_mask(filtered, bucket_assignments)
    if exclusion_mask is not None:
        mask &= exclusion_mask

    filtered = filtered[mask].copy()
    filtered.attrs["applied_filters"] = serialize_filters(filters)
    logger.debug("Global filters kept %d of %d rows", len(filtered), before)
    return filtered


def visible_msas(df: pd.DataFrame) -> Set[str]:
    if "MSA" not in df.columns:
        return set()
    return set(df["MSA"].dropna().astype(str))


def serialize_filters(filters: GlobalFilters) -> Dict[str, Any]:
    """
    Convert the GlobalFilters dataclass to a JSON-serialisable dictionary.
    """
    return {
        "market_size_range": list(filters.market_size_range),
        "revenue_per_company_range": list(filters.revenue_per_company_range),
        "selected_regions": sorted(filters.selected_regions),
        "selected_industries": sorted(filters.selected_industries),
    }


def filters_from_dict(raw: Dict[str, Any]) -> GlobalFilters:
    def _range(value: Any) -> Range:
        if not value:
            return (0.0, 0.0)
        low, high = list(value)[:2]
        return (float(low or 0), float(high or 0))

    return GlobalFilters(
        market_size_range=_range(raw.get("market_size_range", raw.get("marketSizeRange"))),
        revenue_per_company_range=_range(
            raw.get("revenue_per_company_range", raw.get("revenuePerCompanyRange"))
        ),
        selected_regions=set(raw.get("selected_regions", raw.get("selectedRegions")) or []),
        selected_industries=set(raw.get("selected_industries", raw.get("selectedIndustries")) or []),
    )


def serialize_ranges(ranges: FilterBucketRanges) -> Dict[str, Any]:
    def _one(value: Optional[ValueRange]) -> Optional[Dict[str, Any]]:
        if value is None:
            return None
        return {"range": {"min": value.min, "max": value.max}, "totalCount": value.count}

    return {
        "marketSize": _one(ranges.market_size),
        "revenuePerCompany": _one(ranges.revenue_per_company),
    }

