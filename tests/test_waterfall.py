"""
Tests for waterfall distribution calculations.
"""

import pytest

from dealmodel.calculations.waterfall import (
    WaterfallTier,
    calculate_waterfall_distributions,
    calculate_waterfall_summary,
    extract_partner_cash_flows,
    parse_promote_tiers,
    resolve_lp_share,
    select_promote_tier,
)
from dealmodel.errors import WaterfallStructureError
from dealmodel.schemas import WaterfallStructure


class TestPromoteTiers:
    """Test promote tier parsing and selection."""

    def test_parse_structured_list(self):
        """camelCase tier dicts."""
        tiers = parse_promote_tiers([
            {"hurdle": 0.08, "lpSplit": 0.8, "gpSplit": 0.2},
            {"hurdle": 0.15, "lpSplit": 0.7, "gpSplit": 0.3},
        ])
        assert tiers == [WaterfallTier(0.08, 0.8, 0.2), WaterfallTier(0.15, 0.7, 0.3)]

    def test_parse_json_string(self):
        """Tiers may arrive serialized, with snake_case keys."""
        tiers = parse_promote_tiers('[{"hurdle": 0.1, "lp_split": 0.75, "gp_split": 0.25}]')
        assert tiers == [WaterfallTier(0.1, 0.75, 0.25)]

    def test_parse_empty(self):
        """Missing tiers parse to an empty list."""
        assert parse_promote_tiers(None) == []
        assert parse_promote_tiers("") == []
        assert parse_promote_tiers([]) == []

    def test_parse_invalid_json(self):
        """Unparseable text is a structure error."""
        with pytest.raises(WaterfallStructureError):
            parse_promote_tiers("{not json")

    def test_parse_non_list(self):
        """A single object is not a tier list."""
        with pytest.raises(WaterfallStructureError):
            parse_promote_tiers('{"hurdle": 0.1}')

    def test_parse_missing_fields(self):
        """Tiers without a hurdle or splits are rejected."""
        with pytest.raises(WaterfallStructureError):
            parse_promote_tiers([{"lpSplit": 0.8, "gpSplit": 0.2}])
        with pytest.raises(WaterfallStructureError):
            parse_promote_tiers([{"hurdle": 0.08}])
        with pytest.raises(WaterfallStructureError):
            parse_promote_tiers(["tier"])

    def test_select_highest_cleared_tier(self):
        """The highest hurdle at or below the IRR applies."""
        tiers = [WaterfallTier(0.15, 0.7, 0.3), WaterfallTier(0.08, 0.8, 0.2)]
        assert select_promote_tier(tiers, 0.12) == tiers[1]
        assert select_promote_tier(tiers, 0.15) == tiers[0]
        assert select_promote_tier(tiers, 0.05) is None
        assert select_promote_tier(tiers, None) is None

    def test_lp_share(self):
        """LP share from the capital structure, else the default."""
        assert resolve_lp_share(WaterfallStructure(lp_equity=800, gp_equity=200)) == 0.8
        assert resolve_lp_share(WaterfallStructure()) == 0.9


class TestWaterfallDistributions:
    """Test annual waterfall distributions."""

    def test_return_of_capital_pref_then_split(self):
        """Single exit year pays capital, three years of pref, then splits."""
        distributions = calculate_waterfall_distributions(
            [-1000, 0, 0, 1500],
            total_equity=1000,
            lp_share=0.9,
            pref_return=0.08,
        )
        final = distributions[-1]

        assert final["lp_equity_return"] == 900
        assert final["gp_equity_return"] == 100
        assert final["lp_preferred_return"] == 216
        assert final["gp_preferred_return"] == 24
        assert final["lp_profit_share"] == 234
        assert final["gp_profit_share"] == 26
        assert final["total_to_lp"] == 1350
        assert final["total_to_gp"] == 150

    def test_year_zero_distributes_nothing(self):
        """The investment year pays nobody."""
        distributions = calculate_waterfall_distributions([-1000, 200], total_equity=1000)
        assert distributions[0]["total_to_lp"] == 0
        assert distributions[0]["total_to_gp"] == 0

    def test_promote_split(self):
        """Profits above pref follow the supplied tier."""
        distributions = calculate_waterfall_distributions(
            [-1000, 1580],
            total_equity=1000,
            lp_share=0.9,
            pref_return=0.08,
            final_split=WaterfallTier(0.08, 0.7, 0.3),
        )
        final = distributions[-1]
        assert final["lp_profit_share"] == 350
        assert final["gp_profit_share"] == 150

    def test_distributions_sum_to_cash_flow(self):
        """Every positive year is fully distributed."""
        cash_flows = [-3_500_000, 87_000, 107_000, 127_000, 148_000, 5_480_000]
        distributions = calculate_waterfall_distributions(
            cash_flows,
            total_equity=3_500_000,
            final_split=WaterfallTier(0.08, 0.8, 0.2),
        )
        for record, cash_flow in zip(distributions[1:], cash_flows[1:]):
            assert record["total_to_lp"] + record["total_to_gp"] == pytest.approx(
                cash_flow, abs=0.02
            )

        totals = calculate_waterfall_summary(distributions)
        assert totals["total_to_lp"] + totals["total_to_gp"] == pytest.approx(
            sum(cash_flows[1:]), abs=0.1
        )
        assert totals["total_lp_equity_return"] == pytest.approx(3_150_000, abs=0.1)

    def test_negative_years_distribute_nothing(self):
        """Shortfall years pay nobody."""
        distributions = calculate_waterfall_distributions(
            [-1000, -50, 1200], total_equity=1000
        )
        assert distributions[1]["total_to_lp"] == 0
        assert distributions[1]["total_to_gp"] == 0

    def test_partner_cash_flows(self):
        """Partner vectors start with the partner's investment."""
        distributions = calculate_waterfall_distributions(
            [-1000, 0, 0, 1500], total_equity=1000, lp_share=0.9
        )
        lp_flows = extract_partner_cash_flows(distributions, 900, "lp")
        gp_flows = extract_partner_cash_flows(distributions, 100, "gp")
        assert lp_flows == [-900, 0, 0, 1350]
        assert gp_flows == [-100, 0, 0, 150]
