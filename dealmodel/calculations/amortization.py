"""
Loan Amortization Calculations

Implements the loan payment (Excel PMT) and the month-by-month bookkeeping
that splits a year of payments into interest and principal.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Tuple

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12


@dataclass
class AnnualDebtService:
    """Interest/principal totals for one loan year."""

    year: int
    beginning_balance: float
    interest: float
    principal: float
    ending_balance: float
    is_interest_only: bool = False

    @property
    def total(self) -> float:
        return self.interest + self.principal


def calculate_payment(
    principal: float, annual_rate: float, amortization_months: int
) -> float:
    """
    Calculate monthly loan payment.

    Matches Excel's PMT() function.

    Args:
        principal: Loan principal amount
        annual_rate: Annual interest rate as decimal (e.g., 0.05 for 5%)
        amortization_months: Total amortization period in months

    Returns:
        Monthly payment amount (positive number)
    """
    if principal <= 0 or amortization_months <= 0:
        return 0.0

    monthly_rate = annual_rate / MONTHS_PER_YEAR

    if monthly_rate == 0:
        return principal / amortization_months

    growth = (1 + monthly_rate) ** amortization_months
    return principal * monthly_rate * growth / (growth - 1)


def amortize_year(
    balance: float,
    annual_rate: float,
    monthly_payment: Optional[float] = None,
    amortization_months: int = 360,
    interest_only: bool = False,
    year: int = 0,
) -> AnnualDebtService:
    """
    Run twelve monthly payments against an opening balance.

    When ``monthly_payment`` is omitted it is derived from ``balance`` and
    ``amortization_months``, i.e. ``balance`` is treated as a fresh loan.

    The balance is not clamped at zero: a supplied payment larger than the
    schedule needs drives it negative.
    """
    monthly_rate = annual_rate / MONTHS_PER_YEAR
    if monthly_payment is None:
        monthly_payment = calculate_payment(balance, annual_rate, amortization_months)

    opening = balance
    year_interest = 0.0
    year_principal = 0.0

    for _ in range(MONTHS_PER_YEAR):
        interest = balance * monthly_rate
        year_interest += interest
        if interest_only:
            continue
        principal = monthly_payment - interest
        year_principal += principal
        balance -= principal

    return AnnualDebtService(
        year=year,
        beginning_balance=opening,
        interest=year_interest,
        principal=year_principal,
        ending_balance=balance,
        is_interest_only=interest_only,
    )


def build_annual_schedule(
    loan_amount: float,
    annual_rate: float,
    amortization_years: int,
    years: int,
    io_years: int = 0,
) -> Tuple[List[AnnualDebtService], float]:
    """
    Build a year-by-year debt schedule.

    The amortizing payment is fixed from the original loan amount and full
    amortization term; years up to ``io_years`` pay interest only.

    Returns:
        (schedule rows for years 1..years, monthly amortizing payment)
    """
    monthly_payment = calculate_payment(
        loan_amount, annual_rate, amortization_years * MONTHS_PER_YEAR
    )
    schedule = []
    balance = loan_amount

    for year in range(1, years + 1):
        row = amortize_year(
            balance,
            annual_rate,
            monthly_payment=monthly_payment,
            interest_only=year <= io_years,
            year=year,
        )
        schedule.append(row)
        balance = row.ending_balance

    if schedule and schedule[-1].ending_balance < 0:
        logger.warning(
            f"Loan balance went negative ({schedule[-1].ending_balance:,.2f}) "
            f"after {years} years"
        )

    return schedule, monthly_payment


def calculate_dscr(noi: float, debt_service: float) -> Optional[float]:
    """
    Calculate Debt Service Coverage Ratio (DSCR).

    Returns None when there is no debt service to cover.
    """
    if debt_service == 0:
        return None
    return noi / debt_service


def calculate_loan_constant(
    principal: float, annual_rate: float, amortization_years: int
) -> float:
    """Calculate loan constant (annual debt service / loan amount)."""
    monthly_payment = calculate_payment(
        principal, annual_rate, amortization_years * MONTHS_PER_YEAR
    )
    return monthly_payment * MONTHS_PER_YEAR / principal if principal > 0 else 0.0
