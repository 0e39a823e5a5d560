"""
Cash Flow Calculations

Generates the annual cash flow projection for an acquisition: year 0 is the
equity outlay, years 1..hold_period are operating years.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from dealmodel.calculations.amortization import build_annual_schedule
from dealmodel.schemas import UnderwritingModel

logger = logging.getLogger(__name__)


@dataclass
class YearProjection:
    """One projected year. Year 0 carries only the acquisition outflow."""

    year: int

    # Revenue
    gross_potential_rent: float = 0.0
    vacancy_loss: float = 0.0
    other_income: float = 0.0
    effective_gross_income: float = 0.0

    # Expenses
    operating_expenses: float = 0.0
    taxes: float = 0.0
    insurance: float = 0.0
    management: float = 0.0
    reserves: float = 0.0
    total_expenses: float = 0.0

    noi: float = 0.0

    # Debt service
    interest_payment: float = 0.0
    principal_payment: float = 0.0
    total_debt_service: float = 0.0

    before_tax_cash_flow: float = 0.0
    ending_loan_balance: float = 0.0
    is_interest_only: bool = False


@dataclass
class CashFlowProjection:
    """Ordered annual projections plus loan state at the end of the hold."""

    years: List[YearProjection] = field(default_factory=list)
    ending_loan_balance: float = 0.0
    monthly_payment: float = 0.0

    @property
    def hold_period(self) -> int:
        return len(self.years) - 1

    @property
    def final_year(self) -> YearProjection:
        return self.years[-1]

    def operating_years(self) -> List[YearProjection]:
        return self.years[1:]


def calculate_growth_factor(annual_rate: float, year: int) -> float:
    """Growth factor for operating year ``year`` (year 1 is un-grown)."""
    return (1 + annual_rate) ** (year - 1)


def resolve_total_expenses(
    operating_expenses: float,
    taxes: float,
    insurance: float,
    management: float,
    reserves: float,
) -> float:
    """
    Total expenses for a year.

    A non-zero aggregate operating-expense figure is the total on its own;
    otherwise the granular lines are summed. The two are never combined.
    """
    if operating_expenses:
        return operating_expenses
    return taxes + insurance + management + reserves


def project_cash_flows(model: UnderwritingModel) -> CashFlowProjection:
    """
    Project annual cash flows for years 0..hold_period.

    Debt service uses ``model.annual_debt_service`` when supplied; the loan
    balance always follows the derived amortization schedule.
    """
    hold_period = model.hold_period
    loan_amount = model.loan_amount or 0.0

    schedule, monthly_payment = build_annual_schedule(
        loan_amount,
        model.interest_rate,
        model.amortization,
        years=hold_period,
        io_years=model.io_period,
    )

    years = [
        YearProjection(
            year=0,
            before_tax_cash_flow=-(model.purchase_price - loan_amount),
            ending_loan_balance=loan_amount,
        )
    ]

    for debt in schedule:
        year = debt.year
        revenue_factor = calculate_growth_factor(model.rent_growth, year)
        expense_factor = calculate_growth_factor(model.expense_growth, year)

        gpr = model.gross_potential_rent * revenue_factor
        vacancy_loss = gpr * model.vacancy_rate
        other_income = model.other_income * revenue_factor
        egi = gpr - vacancy_loss + other_income

        opex = model.operating_expenses * expense_factor
        taxes = model.taxes * expense_factor
        insurance = model.insurance * expense_factor
        management = model.management * expense_factor
        reserves = model.reserves * expense_factor
        total_expenses = resolve_total_expenses(
            opex, taxes, insurance, management, reserves
        )

        noi = egi - total_expenses

        if model.annual_debt_service is not None:
            total_debt_service = model.annual_debt_service
        else:
            total_debt_service = debt.total

        years.append(
            YearProjection(
                year=year,
                gross_potential_rent=gpr,
                vacancy_loss=vacancy_loss,
                other_income=other_income,
                effective_gross_income=egi,
                operating_expenses=opex,
                taxes=taxes,
                insurance=insurance,
                management=management,
                reserves=reserves,
                total_expenses=total_expenses,
                noi=noi,
                interest_payment=debt.interest,
                principal_payment=debt.principal,
                total_debt_service=total_debt_service,
                before_tax_cash_flow=noi - total_debt_service,
                ending_loan_balance=debt.ending_balance,
                is_interest_only=debt.is_interest_only,
            )
        )

    ending_balance = years[-1].ending_loan_balance
    logger.debug(
        f"Projected {hold_period} years for {model.deal_name or 'deal'}; "
        f"ending loan balance {ending_balance:,.2f}"
    )

    return CashFlowProjection(
        years=years,
        ending_loan_balance=ending_balance,
        monthly_payment=monthly_payment,
    )
