"""
Export a demo underwriting workbook for a 120-unit multifamily acquisition.

Usage: python scripts/export_demo_model.py [output.xlsx]
"""
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from dealmodel.calculations.underwriting import run_underwriting
from dealmodel.reports.excel import export_to_excel
from dealmodel.schemas import ExportOptions, UnderwritingModel, WaterfallStructure


def build_demo_model() -> UnderwritingModel:
    return UnderwritingModel(
        deal_name="Maple Court Apartments",
        property_type="Multifamily",
        purchase_price=10_000_000,
        units=120,
        gross_potential_rent=1_500_000,
        vacancy_rate=0.05,
        other_income=60_000,
        taxes=180_000,
        insurance=45_000,
        management=60_000,
        reserves=30_000,
        loan_amount=6_500_000,
        interest_rate=0.065,
        amortization=30,
        loan_term=10,
        hold_period=5,
        exit_cap_rate=0.055,
        waterfall=WaterfallStructure(
            lp_equity=3_150_000,
            gp_equity=350_000,
            preferred_return=0.08,
            promote_tiers=[
                {"hurdle": 0.12, "lpSplit": 0.80, "gpSplit": 0.20},
                {"hurdle": 0.18, "lpSplit": 0.70, "gpSplit": 0.30},
            ],
        ),
    )


def main():
    output = sys.argv[1] if len(sys.argv) > 1 else "demo-underwriting.xlsx"
    model = build_demo_model()

    result = run_underwriting(model)
    irr = result.returns.irr
    print(f"Equity multiple: {result.returns.equity_multiple:.2f}x")
    print(f"Levered IRR: {'n/a' if irr is None else f'{irr:.2%}'}")

    content = export_to_excel(model, ExportOptions(include_waterfall=True))
    with open(output, "wb") as f:
        f.write(content)
    print(f"Wrote {output} ({len(content):,} bytes)")


if __name__ == "__main__":
    main()
