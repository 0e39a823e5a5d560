"""
Exit Valuation

Capitalizes final-year NOI into a sale price and nets out selling costs and
the loan payoff.
"""

from dataclasses import dataclass

from dealmodel.calculations.cashflow import CashFlowProjection
from dealmodel.errors import DomainError

SELLING_COST_RATE = 0.02


@dataclass
class ExitSummary:
    """Sale economics at the end of the hold period."""

    exit_noi: float
    exit_cap_rate: float
    gross_sale_price: float
    selling_costs: float
    loan_payoff: float
    net_sale_proceeds: float


def calculate_exit(
    exit_noi: float, exit_cap_rate: float, loan_payoff: float
) -> ExitSummary:
    """
    Value the asset at exit.

    Net sale proceeds may be negative (loan payoff above net sale value) and
    are reported as such.

    Raises:
        DomainError: If the exit cap rate is not positive
    """
    if exit_cap_rate <= 0:
        raise DomainError(f"Exit cap rate must be positive, got {exit_cap_rate}")

    gross_sale_price = exit_noi / exit_cap_rate
    selling_costs = gross_sale_price * SELLING_COST_RATE

    return ExitSummary(
        exit_noi=exit_noi,
        exit_cap_rate=exit_cap_rate,
        gross_sale_price=gross_sale_price,
        selling_costs=selling_costs,
        loan_payoff=loan_payoff,
        net_sale_proceeds=gross_sale_price - selling_costs - loan_payoff,
    )


def value_exit(projection: CashFlowProjection, exit_cap_rate: float) -> ExitSummary:
    """Value the exit from the last projected year."""
    return calculate_exit(
        exit_noi=projection.final_year.noi,
        exit_cap_rate=exit_cap_rate,
        loan_payoff=projection.ending_loan_balance,
    )
