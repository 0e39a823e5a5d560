"""
Summary Metrics

Headline underwriting ratios for the summary page. Values supplied on the
model (precomputed by the caller) take precedence over derived ones.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from dealmodel.calculations.amortization import calculate_dscr, calculate_loan_constant
from dealmodel.calculations.cashflow import CashFlowProjection
from dealmodel.calculations.irr import ReturnsSummary
from dealmodel.schemas import UnderwritingModel

MIN_LENDER_DSCR = 1.25
MAX_STANDARD_LTV = 0.80


@dataclass
class SummaryMetrics:
    price_per_unit: Optional[float] = None
    ltv: Optional[float] = None
    loan_constant: Optional[float] = None
    annual_debt_service: Optional[float] = None
    effective_gross_income: Optional[float] = None
    net_operating_income: Optional[float] = None
    going_in_cap_rate: Optional[float] = None
    dscr: Optional[float] = None
    debt_yield: Optional[float] = None
    cash_on_cash: Optional[float] = None
    break_even_occupancy: Optional[float] = None
    irr: Optional[float] = None
    equity_multiple: Optional[float] = None
    warnings: List[str] = field(default_factory=list)


def _ratio(numerator: Optional[float], denominator: Optional[float]) -> Optional[float]:
    if numerator is None or not denominator:
        return None
    return numerator / denominator


def _prefer(supplied: Optional[float], derived: Optional[float]) -> Optional[float]:
    return supplied if supplied is not None else derived


def calculate_summary_metrics(
    model: UnderwritingModel,
    projection: CashFlowProjection,
    returns: ReturnsSummary,
) -> SummaryMetrics:
    """Year-one ratios plus hold-period returns."""
    metrics = SummaryMetrics(
        price_per_unit=_ratio(model.purchase_price, model.units),
        ltv=_ratio(model.loan_amount, model.purchase_price),
        loan_constant=calculate_loan_constant(
            model.loan_amount, model.interest_rate, model.amortization
        ) if model.loan_amount else None,
        irr=_prefer(model.irr, returns.irr),
        equity_multiple=_prefer(model.equity_multiple, returns.equity_multiple),
    )

    if projection.hold_period >= 1:
        year1 = projection.years[1]
        metrics.annual_debt_service = year1.total_debt_service
        metrics.effective_gross_income = year1.effective_gross_income
        metrics.net_operating_income = year1.noi
        metrics.going_in_cap_rate = _ratio(year1.noi, model.purchase_price)
        metrics.dscr = calculate_dscr(year1.noi, year1.total_debt_service)
        metrics.debt_yield = _ratio(year1.noi, model.loan_amount)
        metrics.cash_on_cash = _ratio(
            year1.before_tax_cash_flow, returns.equity_invested
        )
        metrics.break_even_occupancy = _ratio(
            year1.total_expenses + year1.total_debt_service,
            year1.gross_potential_rent + year1.other_income,
        )

    metrics.effective_gross_income = _prefer(
        model.effective_gross_income, metrics.effective_gross_income
    )
    metrics.net_operating_income = _prefer(
        model.net_operating_income, metrics.net_operating_income
    )
    metrics.going_in_cap_rate = _prefer(model.going_in_cap_rate, metrics.going_in_cap_rate)
    metrics.dscr = _prefer(model.dscr, metrics.dscr)
    metrics.debt_yield = _prefer(model.debt_yield, metrics.debt_yield)
    metrics.cash_on_cash = _prefer(model.cash_on_cash, metrics.cash_on_cash)
    metrics.break_even_occupancy = _prefer(
        model.break_even_occupancy, metrics.break_even_occupancy
    )

    if metrics.dscr is not None:
        if metrics.dscr < 1.0:
            metrics.warnings.append("DSCR below 1.0 - negative cash flow")
        elif metrics.dscr < MIN_LENDER_DSCR:
            metrics.warnings.append("DSCR below typical lender minimum of 1.25")

    if metrics.ltv is not None and metrics.ltv > MAX_STANDARD_LTV:
        metrics.warnings.append("LTV above 80% - may require additional guarantees")

    if metrics.irr is None:
        metrics.warnings.append("Levered IRR could not be determined")

    return metrics
