"""
Full-footprint acquisition simulator.

An acquirer absorbs every MSA position of one target provider. Commercial
share comes from the credit/cash-management records; market concentration
(HHI) is measured on deposit share, the regulatory standard. The haircut
models customer attrition on the acquired book: it lowers the projected
commercial share only and never enters the HHI.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from msa_insights.analytics.market import national_market_size, share_dollars
from msa_insights.config import EngineSettings, get_settings
from msa_insights.utils.helpers import numeric_column, round_half_up, safe_divide

logger = logging.getLogger(__name__)

FOOTPRINT_COLUMNS = [
    "msa",
    "current_share",
    "acquired_share",
    "projected_share",
    "market_size",
    "defend_dollars",
    "current_hhi",
    "new_hhi",
    "hhi_delta",
    "regulatory_risk",
]


def hhi(shares: Iterable[float]) -> float:
    """Herfindahl-Hirschman Index of percentage shares."""
    return float(sum(share * share for share in shares))


def post_acquisition_hhi(shares: Mapping[str, float], acquirer: str, target: str) -> float:
    """HHI after the target's share is folded into the acquirer's."""
    combined = shares.get(acquirer, 0.0) + shares.get(target, 0.0)
    total = combined * combined if combined > 0 else 0.0
    for provider, share in shares.items():
        if provider in (acquirer, target):
            continue
        total += share * share
    return total


def is_regulatory_risk(
    current_hhi: float,
    new_hhi: float,
    settings: Optional[EngineSettings] = None,
) -> bool:
    settings = settings or get_settings()
    return (new_hhi - current_hhi) >= settings.hhi_delta_threshold and new_hhi >= settings.hhi_concentrated_threshold


def clamp_haircut(haircut_pct: Optional[float], settings: Optional[EngineSettings] = None) -> float:
    settings = settings or get_settings()
    if haircut_pct is None or (isinstance(haircut_pct, float) and math.isnan(haircut_pct)):
        return settings.default_haircut_pct
    clamped = min(max(float(haircut_pct), 0.0), settings.max_haircut_pct)
    if clamped != haircut_pct:
        logger.warning("Haircut %.2f%% clamped to %.2f%%", haircut_pct, clamped)
    return clamped


def projected_share(current_share: float, acquired_share: float, haircut_pct: float) -> float:
    return current_share + acquired_share * (1 - haircut_pct / 100)


def _deposit_shares(deposits: pd.DataFrame) -> Dict[str, Dict[str, float]]:
    """{msa: {provider: summed deposit share}}."""
    if deposits.empty or not {"MSA", "Provider"}.issubset(deposits.columns):
        return {}
    working = pd.DataFrame(
        {
            "MSA": deposits["MSA"],
            "Provider": deposits["Provider"],
            "share": numeric_column(deposits, "Market Share"),
        }
    )
    grouped = working.groupby(["MSA", "Provider"], sort=False)["share"].sum()
    result: Dict[str, Dict[str, float]] = {}
    for (msa, provider), share in grouped.items():
        result.setdefault(msa, {})[provider] = float(share)
    return result


def _per_msa(frame: pd.DataFrame) -> pd.DataFrame:
    working = pd.DataFrame(
        {
            "MSA": frame["MSA"],
            "share": numeric_column(frame, "Market Share"),
            "size": numeric_column(frame, "Market Size"),
            "defend": numeric_column(frame, "Defend $"),
        }
    )
    return working.groupby("MSA", sort=False).sum()


def simulate_acquisition(
    market: pd.DataFrame,
    deposits: pd.DataFrame,
    acquirer: str,
    target: str,
    haircut_pct: Optional[float] = None,
    top_n: Optional[int] = None,
    settings: Optional[EngineSettings] = None,
) -> pd.DataFrame:
    """
    Per-MSA footprint of ``acquirer`` after absorbing ``target``.

    Covers the union of both providers' MSAs, largest market first, capped
    at ``top_n`` rows. ``acquired_share`` is reported before the haircut.
    """
    settings = settings or get_settings()
    if not acquirer or not target or market.empty or "Provider" not in market.columns:
        return pd.DataFrame(columns=FOOTPRINT_COLUMNS)
    if acquirer == target:
        logger.warning("Acquirer and target are both %r; nothing to simulate", acquirer)
        return pd.DataFrame(columns=FOOTPRINT_COLUMNS)

    haircut = clamp_haircut(haircut_pct, settings)
    limit = settings.footprint_top_n if top_n is None else top_n

    own = _per_msa(market[market["Provider"] == acquirer])
    acquired = _per_msa(market[market["Provider"] == target])
    deposit_shares = _deposit_shares(deposits)

    msas: List[Any] = list(own.index) + [m for m in acquired.index if m not in own.index]
    rows = []
    for msa in msas:
        in_own = msa in own.index
        in_acquired = msa in acquired.index
        current_share = float(own.at[msa, "share"]) if in_own else 0.0
        acquired_share = float(acquired.at[msa, "share"]) if in_acquired else 0.0
        source = own if in_own else acquired
        shares = deposit_shares.get(msa, {})
        current_hhi = round_half_up(hhi(shares.values()))
        new_hhi = round_half_up(post_acquisition_hhi(shares, acquirer, target))
        rows.append(
            {
                "msa": msa,
                "current_share": current_share,
                "acquired_share": acquired_share,
                "projected_share": projected_share(current_share, acquired_share, haircut),
                "market_size": float(source.at[msa, "size"]),
                "defend_dollars": float(source.at[msa, "defend"]),
                "current_hhi": current_hhi,
                "new_hhi": new_hhi,
                "hhi_delta": new_hhi - current_hhi,
                "regulatory_risk": is_regulatory_risk(current_hhi, new_hhi, settings),
            }
        )

    footprint = pd.DataFrame.from_records(rows, columns=FOOTPRINT_COLUMNS)
    footprint = footprint.sort_values("market_size", ascending=False, kind="mergesort").head(limit)
    footprint = footprint.reset_index(drop=True)
    footprint.attrs["haircut_pct"] = haircut
    logger.debug(
        "Simulated %s acquiring %s: %d MSAs, %d flagged",
        acquirer,
        target,
        len(footprint),
        int(footprint["regulatory_risk"].sum()) if not footprint.empty else 0,
    )
    return footprint


def regulatory_risk_msas(footprint: pd.DataFrame) -> pd.DataFrame:
    if footprint.empty:
        return footprint.copy()
    return footprint[footprint["regulatory_risk"]].reset_index(drop=True)


@dataclass
class AcquisitionImpact:
    baseline_share_dollars: float
    baseline_market_share_pct: float
    baseline_msas: int
    baseline_total_addressable_market: float
    franchise_share_dollars: float
    franchise_market_share_pct: float
    franchise_msas: int
    franchise_percentage_at_risk: float
    msas_impacted: int
    new_markets_entered: int
    after_share_dollars: float
    after_market_share_pct: float
    after_msas: int
    total_addressable_market_after: float
    tam_from_new_markets: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _msa_sizes(frame: pd.DataFrame) -> Dict[str, float]:
    if frame.empty:
        return {}
    sizes = numeric_column(frame, "Market Size")
    return {msa: float(size) for msa, size in sizes.groupby(frame["MSA"], sort=False).max().items()}


def acquisition_impact(market: pd.DataFrame, acquirer: str, target: str) -> Optional[AcquisitionImpact]:
    """National before/after summary for the acquirer taking over the target."""
    if not acquirer or not target or market.empty or "Provider" not in market.columns:
        return None
    national = national_market_size(market)

    baseline = market[market["Provider"] == acquirer]
    franchise = market[market["Provider"] == target]
    baseline_msas = set(baseline["MSA"])
    franchise_msas = set(franchise["MSA"])

    baseline_dollars = float(share_dollars(baseline).sum())
    franchise_dollars = float(share_dollars(franchise).sum())
    at_risk_dollars = float(numeric_column(franchise, "Defend $").sum())

    new_markets = franchise_msas - baseline_msas
    baseline_sizes = _msa_sizes(baseline)
    franchise_sizes = _msa_sizes(franchise)
    tam_after = sum(
        baseline_sizes.get(msa) or franchise_sizes.get(msa) or 0.0
        for msa in baseline_msas | franchise_msas
    )
    after_dollars = baseline_dollars + franchise_dollars

    return AcquisitionImpact(
        baseline_share_dollars=baseline_dollars,
        baseline_market_share_pct=safe_divide(baseline_dollars, national) * 100,
        baseline_msas=len(baseline_msas),
        baseline_total_addressable_market=float(math.ceil(sum(baseline_sizes.values()))),
        franchise_share_dollars=franchise_dollars,
        franchise_market_share_pct=safe_divide(franchise_dollars, national) * 100,
        franchise_msas=len(franchise_msas),
        franchise_percentage_at_risk=safe_divide(at_risk_dollars, franchise_dollars) * 100,
        msas_impacted=len(franchise_msas & baseline_msas),
        new_markets_entered=len(new_markets),
        after_share_dollars=after_dollars,
        after_market_share_pct=safe_divide(after_dollars, national) * 100,
        after_msas=len(baseline_msas) + len(new_markets),
        total_addressable_market_after=float(math.ceil(tam_after)),
        tam_from_new_markets=float(math.ceil(sum(franchise_sizes.get(msa, 0.0) for msa in new_markets))),
    )


def default_haircut(impact: Optional[AcquisitionImpact], settings: Optional[EngineSettings] = None) -> float:
    """Start the haircut at the target's own share-at-risk, within the allowed range."""
    settings = settings or get_settings()
    if impact is None or impact.franchise_percentage_at_risk <= 0:
        return settings.default_haircut_pct
    at_risk = round_half_up(impact.franchise_percentage_at_risk, 2)
    return min(max(at_risk, 0.0), settings.max_haircut_pct)


def available_acquirers(all_providers: Iterable[str], acquired_providers: Iterable[str]) -> List[str]:
    acquired = set(acquired_providers)
    return sorted({p for p in all_providers if p and p not in acquired})
