"""
Underwriting report builder.

Assembles the Summary, Assumptions, Cash Flows, Waterfall and Sensitivity
sheets from a model and its computed results. Waterfall and Sensitivity are
optional and built in isolation: if either fails, it is logged and left out
while the rest of the report is still produced.
"""

import logging
from dataclasses import asdict
from typing import Callable, List, Optional

from dealmodel.calculations.cashflow import resolve_total_expenses
from dealmodel.calculations.irr import calculate_multiple, solve_irr
from dealmodel.calculations.reversion import SELLING_COST_RATE
from dealmodel.calculations.sensitivity import SensitivityEstimator, make_estimator
from dealmodel.calculations.underwriting import UnderwritingResult, run_underwriting
from dealmodel.calculations.waterfall import (
    DEFAULT_PREF_RETURN,
    calculate_waterfall_distributions,
    calculate_waterfall_summary,
    extract_partner_cash_flows,
    parse_promote_tiers,
    resolve_lp_share,
    select_promote_tier,
)
from dealmodel.config import get_settings
from dealmodel.errors import WaterfallStructureError
from dealmodel.reports.layout import (
    FieldSpec,
    FrozenPane,
    ReportDocument,
    Sheet,
    add_column_headers,
    add_section_header,
    add_title,
    render_section,
)
from dealmodel.schemas import ExportOptions, UnderwritingModel

logger = logging.getLogger(__name__)

NAVY = "FF1F4E79"

# Sensitivity colour bands
HIGH_IRR_BAND = 0.15
MID_IRR_BAND = 0.10

# === Summary sheet ===

PROPERTY_FIELDS = (
    FieldSpec("Purchase Price", "purchase_price"),
    FieldSpec("Property Type", "property_type", format="text"),
    FieldSpec("Units", "units", format="integer"),
    FieldSpec("Price Per Unit", "price_per_unit"),
)

FINANCING_FIELDS = (
    FieldSpec("Loan Amount", "loan_amount"),
    FieldSpec("LTV", "ltv", format="percentage"),
    FieldSpec("Interest Rate", "interest_rate", format="percentage"),
    FieldSpec("Amortization", "amortization", format="years"),
    FieldSpec("Debt Service", "annual_debt_service"),
    FieldSpec("Loan Constant", "loan_constant", format="percentage"),
)

INCOME_FIELDS = (
    FieldSpec("Gross Potential Rent", "gross_potential_rent"),
    FieldSpec("Vacancy", "vacancy_rate", format="percentage"),
    FieldSpec("Effective Gross Income", "effective_gross_income"),
    FieldSpec("Operating Expenses", "year_one_expenses"),
    FieldSpec("Net Operating Income", "net_operating_income", is_total=True),
)

RETURN_METRIC_FIELDS = (
    FieldSpec("Levered IRR", "irr", format="percentage", placeholder="n/a"),
    FieldSpec("Equity Multiple", "equity_multiple", format="ratio"),
    FieldSpec("Cash-on-Cash", "cash_on_cash", format="percentage"),
    FieldSpec("Going-In Cap", "going_in_cap_rate", format="percentage"),
)

COMPUTED_IRR_FIELDS = (
    FieldSpec("Computed IRR", "computed_irr", format="percentage", placeholder="n/a"),
)

RISK_FIELDS = (
    FieldSpec("DSCR", "dscr", format="ratio", placeholder="n/a"),
    FieldSpec("Break-Even Occ", "break_even_occupancy", format="percentage"),
    FieldSpec("Debt Yield", "debt_yield", format="percentage"),
)

# === Assumptions sheet ===

REVENUE_ASSUMPTIONS = (
    FieldSpec("Gross Potential Rent", "gross_potential_rent"),
    FieldSpec("Vacancy Rate", "vacancy_rate", format="percentage"),
    FieldSpec("Other Income", "other_income"),
    FieldSpec("Rent Growth (Annual)", "rent_growth", format="percentage"),
)

EXPENSE_ASSUMPTIONS = (
    FieldSpec("Operating Expenses", "operating_expenses"),
    FieldSpec("Taxes", "taxes"),
    FieldSpec("Insurance", "insurance"),
    FieldSpec("Management", "management"),
    FieldSpec("Reserves", "reserves"),
    FieldSpec("Expense Growth (Annual)", "expense_growth", format="percentage"),
)

DEBT_ASSUMPTIONS = (
    FieldSpec("Loan Amount", "loan_amount"),
    FieldSpec("Interest Rate", "interest_rate", format="percentage"),
    FieldSpec("Amortization", "amortization", format="years"),
    FieldSpec("Loan Term", "loan_term", format="years"),
    FieldSpec("IO Period", "io_period", format="years"),
    FieldSpec("Debt Service Override", "annual_debt_service"),
)

EXIT_ASSUMPTIONS = (
    FieldSpec("Hold Period", "hold_period", format="years"),
    FieldSpec("Exit Cap Rate", "exit_cap_rate", format="percentage"),
    FieldSpec("Selling Costs", "selling_cost_rate", format="percentage"),
)

# === Cash Flows sheet ===

REVENUE_FIELDS = (
    FieldSpec("Gross Potential Rent", "gross_potential_rent"),
    FieldSpec("Less: Vacancy", "vacancy_loss", is_negative=True),
    FieldSpec("Other Income", "other_income"),
    FieldSpec("Effective Gross Income", "effective_gross_income", is_total=True),
)

EXPENSE_FIELDS = (
    FieldSpec("Operating Expenses", "operating_expenses"),
    FieldSpec("Taxes", "taxes"),
    FieldSpec("Insurance", "insurance"),
    FieldSpec("Management", "management"),
    FieldSpec("Reserves", "reserves"),
    FieldSpec("Total Expenses", "total_expenses", is_total=True),
)

NOI_FIELDS = (
    FieldSpec("Net Operating Income", "noi", is_total=True),
)

DEBT_SERVICE_FIELDS = (
    FieldSpec("Interest Payment", "interest_payment"),
    FieldSpec("Principal Payment", "principal_payment"),
    FieldSpec("Total Debt Service", "total_debt_service", is_total=True),
    FieldSpec("Ending Loan Balance", "ending_loan_balance"),
)

CASH_FLOW_FIELDS = (
    FieldSpec("Before-Tax Cash Flow", "before_tax_cash_flow", is_total=True, signed=True),
)

EXIT_FIELDS = (
    FieldSpec("Exit NOI", "exit_noi"),
    FieldSpec("Exit Cap Rate", "exit_cap_rate", format="percentage"),
    FieldSpec("Gross Sale Price", "gross_sale_price"),
    FieldSpec("Less: Selling Costs", "selling_costs", is_negative=True),
    FieldSpec("Less: Loan Payoff", "loan_payoff", is_negative=True),
    FieldSpec("Net Sale Proceeds", "net_sale_proceeds", is_total=True, signed=True),
)

RETURNS_FIELDS = (
    FieldSpec("Total Equity Invested", "equity_invested"),
    FieldSpec("Total Cash Distributions", "total_cash_distributed", signed=True),
    FieldSpec("Equity Multiple", "equity_multiple", format="ratio", is_total=True),
    FieldSpec("IRR", "irr", format="percentage", is_total=True, placeholder="n/a"),
)

# === Waterfall sheet ===

CAPITAL_STRUCTURE_FIELDS = (
    FieldSpec("LP Equity", "lp_equity"),
    FieldSpec("GP Equity", "gp_equity"),
    FieldSpec("Preferred Return", "preferred_return", format="percentage"),
)

DISTRIBUTION_FIELDS = (
    FieldSpec("Levered Cash Flow", "cash_flow", signed=True),
    FieldSpec("LP Return of Capital", "lp_equity_return"),
    FieldSpec("LP Preferred Return", "lp_preferred_return"),
    FieldSpec("LP Profit Share", "lp_profit_share"),
    FieldSpec("Total to LP", "total_to_lp", is_total=True),
    FieldSpec("GP Return of Capital", "gp_equity_return"),
    FieldSpec("GP Preferred Return", "gp_preferred_return"),
    FieldSpec("GP Profit Share", "gp_profit_share"),
    FieldSpec("Total to GP", "total_to_gp", is_total=True),
)

PARTNER_RETURN_FIELDS = (
    FieldSpec("LP IRR", "lp_irr", format="percentage", placeholder="n/a"),
    FieldSpec("LP Equity Multiple", "lp_multiple", format="ratio", placeholder="n/a"),
    FieldSpec("GP IRR", "gp_irr", format="percentage", placeholder="n/a"),
    FieldSpec("GP Equity Multiple", "gp_multiple", format="ratio", placeholder="n/a"),
)


def sensitivity_band(irr: float) -> str:
    """Colour band for a sensitivity cell."""
    if irr >= HIGH_IRR_BAND:
        return "band_high"
    if irr >= MID_IRR_BAND:
        return "band_mid"
    return "band_low"


def _year_headers(hold_period: int) -> List[str]:
    return [f"Year {year}" for year in range(hold_period + 1)]


def build_summary_sheet(model: UnderwritingModel, result: UnderwritingResult) -> Sheet:
    sheet = Sheet(
        name="Summary",
        tab_color=NAVY,
        column_widths=[25, 18, 5, 25, 18],
        frozen=FrozenPane(rows=3),
    )
    settings = get_settings()

    add_title(sheet, 1, "INVESTMENT SUMMARY", style="title", span=5)
    add_title(sheet, 2, model.deal_name or settings.default_deal_name, style="subtitle", span=5)

    projection = result.projection
    if projection.hold_period >= 1:
        year_one_expenses = projection.years[1].total_expenses
    else:
        year_one_expenses = resolve_total_expenses(
            model.operating_expenses, model.taxes, model.insurance,
            model.management, model.reserves,
        )

    source = {
        **model.model_dump(),
        **asdict(result.metrics),
        "property_type": model.property_type or "Multifamily",
        "year_one_expenses": year_one_expenses,
    }

    row = render_section(sheet, 4, "PROPERTY INFORMATION", PROPERTY_FIELDS, [source])
    row = render_section(sheet, row + 1, "FINANCING", FINANCING_FIELDS, [source])
    row = render_section(sheet, row + 1, "INCOME & EXPENSES", INCOME_FIELDS, [source])

    right_row = render_section(sheet, 4, "RETURNS", RETURN_METRIC_FIELDS, [source], start_col=4)
    if model.irr is not None:
        # Supplied IRR is shown as-is; the computed one drives sensitivity
        right_row = render_section(
            sheet, right_row, None, COMPUTED_IRR_FIELDS,
            [{"computed_irr": result.returns.irr}], start_col=4,
        )
    right_row = render_section(sheet, right_row + 1, "RISK METRICS", RISK_FIELDS, [source], start_col=4)

    if result.metrics.warnings:
        right_row = add_section_header(sheet, right_row + 1, "NOTES", start_col=4)
        for warning in result.metrics.warnings:
            sheet.write(right_row, 4, warning, styles=("note",))
            right_row += 1

    return sheet


def build_assumptions_sheet(model: UnderwritingModel) -> Sheet:
    sheet = Sheet(
        name="Assumptions",
        tab_color="FF4472C4",
        column_widths=[30, 15, 5, 30, 15],
    )
    add_title(sheet, 1, "MODEL ASSUMPTIONS")

    source = {**model.model_dump(), "selling_cost_rate": SELLING_COST_RATE}

    row = render_section(sheet, 3, "REVENUE", REVENUE_ASSUMPTIONS, [source])
    render_section(sheet, row + 1, "EXPENSES", EXPENSE_ASSUMPTIONS, [source])

    right_row = render_section(sheet, 3, "DEBT", DEBT_ASSUMPTIONS, [source], start_col=4)
    render_section(sheet, right_row + 1, "EXIT", EXIT_ASSUMPTIONS, [source], start_col=4)

    return sheet


def build_cash_flow_sheet(model: UnderwritingModel, result: UnderwritingResult) -> Sheet:
    years = result.projection.years
    hold_period = result.projection.hold_period

    sheet = Sheet(
        name="Cash Flows",
        tab_color="FF70AD47",
        column_widths=[25] + [14] * (hold_period + 1),
        frozen=FrozenPane(rows=3, columns=1),
    )
    add_title(sheet, 1, "PROJECTED CASH FLOWS")
    row = add_column_headers(sheet, 3, _year_headers(hold_period))

    row = render_section(sheet, row, "REVENUE", REVENUE_FIELDS, years)
    row = render_section(sheet, row + 1, "EXPENSES", EXPENSE_FIELDS, years)
    row = render_section(sheet, row + 1, None, NOI_FIELDS, years)
    row = render_section(sheet, row + 1, "DEBT SERVICE", DEBT_SERVICE_FIELDS, years)
    row = render_section(sheet, row + 1, None, CASH_FLOW_FIELDS, years)

    row = render_section(sheet, row + 1, "EXIT ANALYSIS", EXIT_FIELDS, [result.exit])
    render_section(sheet, row + 1, "RETURNS SUMMARY", RETURNS_FIELDS, [result.returns])

    return sheet


def build_waterfall_sheet(model: UnderwritingModel, result: UnderwritingResult) -> Sheet:
    structure = model.waterfall
    returns = result.returns
    hold_period = result.projection.hold_period

    sheet = Sheet(
        name="Waterfall",
        tab_color="FF7030A0",
        column_widths=[25] + [15] * max(5, hold_period + 1),
    )
    add_title(sheet, 1, "EQUITY WATERFALL")

    row = render_section(sheet, 3, "CAPITAL STRUCTURE", CAPITAL_STRUCTURE_FIELDS, [structure])
    row += 1

    try:
        tiers = parse_promote_tiers(structure.promote_tiers)
    except WaterfallStructureError as e:
        logger.warning(f"Skipping promote tiers for {model.deal_name or 'deal'}: {e}")
        tiers = []
    else:
        if tiers:
            row = add_section_header(sheet, row, "PROMOTE TIERS")
            for i, tier in enumerate(tiers, start=1):
                sheet.write(row, 1, f"Tier {i}", styles=("label",))
                sheet.write(row, 2, f"Above {tier.hurdle * 100:.1f}% IRR")
                sheet.write(
                    row, 3,
                    f"{tier.lp_split * 100:.0f}% LP / {tier.gp_split * 100:.0f}% GP",
                )
                row += 1
            row += 1

    lp_share = resolve_lp_share(structure)
    pref_return = (
        structure.preferred_return
        if structure.preferred_return is not None
        else DEFAULT_PREF_RETURN
    )
    distributions = calculate_waterfall_distributions(
        returns.cash_flows,
        total_equity=returns.equity_invested,
        lp_share=lp_share,
        pref_return=pref_return,
        final_split=select_promote_tier(tiers, returns.irr),
    )

    row = add_section_header(sheet, row, "DISTRIBUTIONS")
    row = add_column_headers(sheet, row, _year_headers(len(distributions) - 1))
    row = render_section(sheet, row, None, DISTRIBUTION_FIELDS, distributions)

    lp_equity = returns.equity_invested * lp_share
    gp_equity = returns.equity_invested - lp_equity
    lp_flows = extract_partner_cash_flows(distributions, lp_equity, "lp")
    gp_flows = extract_partner_cash_flows(distributions, gp_equity, "gp")
    totals = calculate_waterfall_summary(distributions)

    partner_returns = {
        "lp_irr": solve_irr(lp_flows),
        "gp_irr": solve_irr(gp_flows),
        "lp_multiple": calculate_multiple(lp_flows) if lp_equity > 0 else None,
        "gp_multiple": calculate_multiple(gp_flows) if gp_equity > 0 else None,
    }
    logger.debug(
        f"Waterfall totals: LP {totals['total_to_lp']:,.2f}, GP {totals['total_to_gp']:,.2f}"
    )

    render_section(sheet, row + 1, "PARTNER RETURNS", PARTNER_RETURN_FIELDS, [partner_returns])

    return sheet


def build_sensitivity_sheet(
    model: UnderwritingModel,
    result: UnderwritingResult,
    estimator: SensitivityEstimator,
) -> Sheet:
    matrix = estimator.estimate(model, result.returns)

    sheet = Sheet(
        name="Sensitivity",
        tab_color="FFED7D31",
        column_widths=[18] + [12] * len(matrix.column_values),
    )
    add_title(sheet, 1, "SENSITIVITY ANALYSIS")
    sheet.write(3, 1, "IRR Sensitivity: Exit Cap Rate vs Vacancy Rate", styles=("total",))

    row = 4
    sheet.write(row, 1, f"{matrix.row_label} \\ {matrix.column_label}", styles=("header",))
    row = add_column_headers(sheet, row, matrix.column_values, format="percentage_short")

    for vacancy, irrs in zip(matrix.row_values, matrix.cells):
        sheet.write(row, 1, vacancy, format="percentage_short", styles=("label",))
        for column, irr in enumerate(irrs, start=2):
            if irr is None:
                sheet.write(row, column, "n/a", styles=("placeholder",))
            else:
                sheet.write(row, column, irr, format="percentage_short", styles=(sensitivity_band(irr),))
        row += 1

    row += 1
    sheet.write(row, 1, "Baseline IRR", styles=("label",))
    if matrix.baseline_irr is None:
        sheet.write(row, 2, "n/a", styles=("placeholder",))
    else:
        sheet.write(row, 2, matrix.baseline_irr, format="percentage")

    if matrix.approximate:
        sheet.write(
            row + 1, 1,
            "Estimated with a linear approximation around the baseline IRR",
            styles=("note",),
        )

    return sheet


def _append_optional(sheets: List[Sheet], name: str, build: Callable[..., Sheet], *args):
    """Build an optional sheet; a failure drops only that sheet."""
    try:
        sheets.append(build(*args))
    except (ValueError, KeyError, TypeError, ArithmeticError) as e:
        logger.exception(f"Omitting {name} sheet: {e}")


def build_report(
    model: UnderwritingModel,
    options: Optional[ExportOptions] = None,
    result: Optional[UnderwritingResult] = None,
    estimator: Optional[SensitivityEstimator] = None,
) -> ReportDocument:
    """
    Build the report document for a model.

    Raises:
        DomainError: If the model cannot be underwritten
    """
    options = options or ExportOptions()
    result = result or run_underwriting(model)
    settings = get_settings()

    sheets = [
        build_summary_sheet(model, result),
        build_assumptions_sheet(model),
        build_cash_flow_sheet(model, result),
    ]

    if options.wants_waterfall(model):
        _append_optional(sheets, "Waterfall", build_waterfall_sheet, model, result)

    if options.include_sensitivity:
        _append_optional(
            sheets, "Sensitivity", build_sensitivity_sheet,
            model, result, estimator or make_estimator(settings.exact_sensitivity),
        )

    return ReportDocument(
        sheets=sheets,
        title=model.deal_name or settings.default_deal_name,
        creator=settings.workbook_creator,
        template=options.template,
    )
