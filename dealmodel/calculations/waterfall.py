"""
Waterfall Distribution Calculations

Parses LP/GP promote tiers and runs annual levered cash flows through a
return-of-capital / preferred-return / profit-split waterfall.

Structure:
1. Return of Capital - LP and GP get their equity back pro-rata
2. Preferred Return - simple annual pref on equity, paid pro-rata
3. Profit Split - remaining profits split per the promote tier earned
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from dealmodel.errors import WaterfallStructureError
from dealmodel.schemas import WaterfallStructure


DEFAULT_LP_SHARE = 0.90
DEFAULT_PREF_RETURN = 0.08


@dataclass
class WaterfallTier:
    """One promote tier: above ``hurdle`` IRR, profits split LP/GP."""

    hurdle: float  # IRR hurdle (e.g., 0.12 for 12%)
    lp_split: float  # LP's share above the hurdle
    gp_split: float  # GP's share above the hurdle


def _parse_tier(raw: Any, index: int) -> WaterfallTier:
    if isinstance(raw, WaterfallTier):
        return raw
    if not isinstance(raw, dict):
        raise WaterfallStructureError(f"Tier {index + 1} is not an object: {raw!r}")

    try:
        return WaterfallTier(
            hurdle=float(raw["hurdle"]),
            lp_split=float(raw.get("lpSplit", raw.get("lp_split"))),
            gp_split=float(raw.get("gpSplit", raw.get("gp_split"))),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise WaterfallStructureError(f"Tier {index + 1} is malformed: {e}") from e


def parse_promote_tiers(raw: Any) -> List[WaterfallTier]:
    """
    Parse promote tiers from a structured list or a JSON string.

    Raises:
        WaterfallStructureError: If the data cannot be interpreted as tiers
    """
    if raw is None or raw == "":
        return []

    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as e:
            raise WaterfallStructureError(f"Promote tiers are not valid JSON: {e}") from e

    if not isinstance(raw, list):
        raise WaterfallStructureError(
            f"Promote tiers must be a list, got {type(raw).__name__}"
        )

    return [_parse_tier(tier, i) for i, tier in enumerate(raw)]


def select_promote_tier(
    tiers: List[WaterfallTier], project_irr: Optional[float]
) -> Optional[WaterfallTier]:
    """Highest tier whose hurdle the project IRR clears."""
    if project_irr is None:
        return None
    earned = [tier for tier in tiers if project_irr >= tier.hurdle]
    if not earned:
        return None
    return max(earned, key=lambda tier: tier.hurdle)


def resolve_lp_share(structure: WaterfallStructure) -> float:
    """LP fraction of total equity, from the capital structure when given."""
    lp = structure.lp_equity or 0.0
    gp = structure.gp_equity or 0.0
    if lp + gp > 0:
        return lp / (lp + gp)
    return DEFAULT_LP_SHARE


def calculate_waterfall_distributions(
    levered_cash_flows: List[float],
    total_equity: float,
    lp_share: float = DEFAULT_LP_SHARE,
    pref_return: float = DEFAULT_PREF_RETURN,
    final_split: Optional[WaterfallTier] = None,
) -> List[Dict]:
    """
    Distribute annual levered cash flows between LP and GP.

    Args:
        levered_cash_flows: Year 0..N cash flows (year 0 is the investment)
        total_equity: Total equity invested
        lp_share: LP's share of equity (e.g., 0.90 for 90%)
        pref_return: Annual preferred return rate
        final_split: Tier governing the profit split; pro-rata when None

    Returns:
        List of distribution records, one per year
    """
    gp_share = 1 - lp_share
    if final_split is None:
        final_split = WaterfallTier(hurdle=0.0, lp_split=lp_share, gp_split=gp_share)

    lp_equity = total_equity * lp_share
    gp_equity = total_equity * gp_share

    lp_equity_unreturned = lp_equity
    gp_equity_unreturned = gp_equity
    lp_pref_accrued = 0.0
    gp_pref_accrued = 0.0

    distributions = []

    for year, cash_flow in enumerate(levered_cash_flows):
        # Pref accrues from year 1 as simple interest on original equity
        if year > 0:
            lp_pref_accrued += lp_equity * pref_return
            gp_pref_accrued += gp_equity * pref_return

        lp_equity_return = gp_equity_return = 0.0
        lp_pref_paid = gp_pref_paid = 0.0
        lp_profit_share = gp_profit_share = 0.0

        remaining = cash_flow if year > 0 else 0.0

        if remaining > 0:
            # === STEP 1: Return of Capital ===
            total_unreturned = lp_equity_unreturned + gp_equity_unreturned
            if total_unreturned > 0:
                equity_payment = min(remaining, total_unreturned)
                lp_pct = lp_equity_unreturned / total_unreturned

                lp_equity_return = equity_payment * lp_pct
                gp_equity_return = equity_payment * (1 - lp_pct)
                lp_equity_unreturned -= lp_equity_return
                gp_equity_unreturned -= gp_equity_return
                remaining -= equity_payment

            # === STEP 2: Preferred Return ===
            total_pref_owed = lp_pref_accrued + gp_pref_accrued
            if remaining > 0 and total_pref_owed > 0:
                pref_payment = min(remaining, total_pref_owed)
                lp_pct = lp_pref_accrued / total_pref_owed

                lp_pref_paid = pref_payment * lp_pct
                gp_pref_paid = pref_payment * (1 - lp_pct)
                lp_pref_accrued -= lp_pref_paid
                gp_pref_accrued -= gp_pref_paid
                remaining -= pref_payment

            # === STEP 3: Profit Split ===
            if remaining > 0:
                lp_profit_share = remaining * final_split.lp_split
                gp_profit_share = remaining * final_split.gp_split

        total_to_lp = lp_equity_return + lp_pref_paid + lp_profit_share
        total_to_gp = gp_equity_return + gp_pref_paid + gp_profit_share

        distributions.append({
            "year": year,
            "cash_flow": round(cash_flow, 2),
            "lp_equity_return": round(lp_equity_return, 2),
            "gp_equity_return": round(gp_equity_return, 2),
            "lp_preferred_return": round(lp_pref_paid, 2),
            "gp_preferred_return": round(gp_pref_paid, 2),
            "lp_profit_share": round(lp_profit_share, 2),
            "gp_profit_share": round(gp_profit_share, 2),
            "total_to_lp": round(total_to_lp, 2),
            "total_to_gp": round(total_to_gp, 2),
        })

    return distributions


def extract_partner_cash_flows(
    distributions: List[Dict], partner_equity: float, partner: str
) -> List[float]:
    """LP or GP cash flows for IRR: year 0 investment, then distributions."""
    key = f"total_to_{partner}"
    cash_flows = [d[key] for d in distributions]
    if cash_flows:
        cash_flows[0] -= partner_equity
    return cash_flows


def calculate_waterfall_summary(distributions: List[Dict]) -> Dict:
    """Calculate summary totals for the waterfall."""
    return {
        "total_to_lp": sum(d["total_to_lp"] for d in distributions),
        "total_to_gp": sum(d["total_to_gp"] for d in distributions),
        "total_lp_equity_return": sum(d["lp_equity_return"] for d in distributions),
        "total_gp_equity_return": sum(d["gp_equity_return"] for d in distributions),
        "total_lp_pref": sum(d["lp_preferred_return"] for d in distributions),
        "total_gp_pref": sum(d["gp_preferred_return"] for d in distributions),
        "total_lp_profit": sum(d["lp_profit_share"] for d in distributions),
        "total_gp_profit": sum(d["gp_profit_share"] for d in distributions),
    }
