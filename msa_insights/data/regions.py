"""
Region resolution for MSAs.

MSA names lead with their state codes ("NC-SC-Charlotte-Concord-Gastonia");
the first state decides the region. Names without a parseable state prefix
fall back to a coarse lat/lon bounding-box heuristic.
"""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional

import pandas as pd

OTHER = "Other"

STATE_TO_REGION: Dict[str, str] = {
    # New England
    "CT": "New England", "ME": "New England", "MA": "New England",
    "NH": "New England", "RI": "New England", "VT": "New England",
    # Mideast
    "DE": "Mideast", "DC": "Mideast", "MD": "Mideast",
    "NJ": "Mideast", "NY": "Mideast", "PA": "Mideast",
    # Great Lakes
    "IL": "Great Lakes", "IN": "Great Lakes", "MI": "Great Lakes",
    "OH": "Great Lakes", "WI": "Great Lakes",
    # Plains
    "IA": "Plains", "KS": "Plains", "MN": "Plains", "MO": "Plains",
    "NE": "Plains", "ND": "Plains", "SD": "Plains",
    # Southeast
    "AL": "Southeast", "AR": "Southeast", "FL": "Southeast", "GA": "Southeast",
    "KY": "Southeast", "LA": "Southeast", "MS": "Southeast", "NC": "Southeast",
    "SC": "Southeast", "TN": "Southeast", "VA": "Southeast", "WV": "Southeast",
    # Southwest
    "AZ": "Southwest", "NM": "Southwest", "OK": "Southwest", "TX": "Southwest",
    # Rocky Mountain
    "CO": "Rocky Mountain", "ID": "Rocky Mountain", "MT": "Rocky Mountain",
    "UT": "Rocky Mountain", "WY": "Rocky Mountain",
    # Far West
    "AK": "Far West", "CA": "Far West", "HI": "Far West",
    "NV": "Far West", "OR": "Far West", "WA": "Far West",
}

REGIONS: List[str] = [
    "New England",
    "Mideast",
    "Great Lakes",
    "Plains",
    "Southeast",
    "Southwest",
    "Rocky Mountain",
    "Far West",
]

STATE_PREFIX = re.compile(r"^([A-Z]{2}(?:-[A-Z]{2})*)-")

LAT_COLUMNS = ("LAT", "Latitude")
LON_COLUMNS = ("LON", "Longitude")


def extract_state_codes(msa_name: Optional[str]) -> List[str]:
    if not msa_name or not isinstance(msa_name, str):
        return []
    match = STATE_PREFIX.match(msa_name)
    if not match:
        return []
    return match.group(1).split("-")


def region_from_state_codes(msa_name: Optional[str]) -> str:
    codes = extract_state_codes(msa_name)
    if not codes:
        return OTHER
    return STATE_TO_REGION.get(codes[0], OTHER)


def regions_for_msa(msa_name: Optional[str]) -> List[str]:
    regions: List[str] = []
    for code in extract_state_codes(msa_name):
        region = STATE_TO_REGION.get(code)
        if region and region not in regions:
            regions.append(region)
    return regions


def is_cross_regional(msa_name: Optional[str]) -> bool:
    return len(regions_for_msa(msa_name)) > 1


def region_from_coordinates(lat: Any, lon: Any) -> str:
    if lat is None or lon is None or pd.isna(lat) or pd.isna(lon):
        return OTHER
    try:
        lat = float(lat)
        lon = float(lon)
    except (TypeError, ValueError):
        return OTHER

    # Alaska, Hawaii, then the Pacific coast
    if lat > 50 or (19 <= lat <= 22 and -160 <= lon <= -154):
        return "Far West"
    if lon < -114 and lat > 32:
        return "Far West"
    if -114 <= lon < -102 and lat > 31:
        return "Rocky Mountain"
    if -107 <= lon < -88 and 25.5 <= lat < 37:
        return "Southwest"
    if -104 <= lon < -89 and 37 <= lat < 49:
        return "Plains"
    if -92 <= lon < -80 and 37 <= lat <= 48:
        return "Great Lakes"
    if -92 <= lon < -81 and 30 <= lat < 37:
        return "Southeast"
    # South Atlantic
    if -83 <= lon <= -75 and 24 <= lat <= 40:
        return "Southeast"
    if -73.5 <= lon <= -66.5 and 41 <= lat <= 48:
        return "New England"
    if -80 <= lon <= -73.5 and 39 <= lat <= 45:
        return "Mideast"
    return OTHER


def region_for_msa(msa_name: Optional[str], lat: Any = None, lon: Any = None) -> str:
    if msa_name:
        region = region_from_state_codes(msa_name)
        if region != OTHER:
            return region
    return region_from_coordinates(lat, lon)


def _first_present(row: Any, columns) -> Any:
    for column in columns:
        value = row.get(column)
        if value is not None and not pd.isna(value):
            return value
    return None


def region_for_row(row: Any) -> str:
    return region_for_msa(row.get("MSA"), _first_present(row, LAT_COLUMNS), _first_present(row, LON_COLUMNS))


def add_region_column(df: pd.DataFrame, column: str = "Region") -> pd.DataFrame:
    out = df.copy()
    out[column] = [region_for_row(row) for _, row in out.iterrows()] if not out.empty else []
    return out
