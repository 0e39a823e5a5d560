"""
IRR and Returns Calculations

Implements IRR using Newton-Raphson and assembles the levered investor
returns (equity multiple, IRR) from a projection and its exit.
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from dealmodel.calculations.cashflow import CashFlowProjection
from dealmodel.calculations.reversion import ExitSummary
from dealmodel.errors import ConvergenceFailure, DomainError

logger = logging.getLogger(__name__)

MAX_ITERATIONS = 100
TOLERANCE = 1e-4
DEFAULT_GUESS = 0.1
MIN_RATE = -0.99
MAX_RATE = 10.0


@dataclass
class ReturnsSummary:
    """Levered returns to equity. ``irr`` is None when undetermined."""

    equity_invested: float
    total_cash_distributed: float
    equity_multiple: float
    irr: Optional[float]
    cash_flows: List[float] = field(default_factory=list)

    @property
    def irr_determined(self) -> bool:
        return self.irr is not None


def calculate_npv(cash_flows: List[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of periodic cash flows.

    Args:
        cash_flows: Array of cash flows (negative = outflow, positive = inflow)
        discount_rate: Periodic discount rate (e.g., 0.10 for 10%)
    """
    flows = np.asarray(cash_flows, dtype=float)
    periods = np.arange(flows.size)
    return float(np.sum(flows / (1.0 + discount_rate) ** periods))


def _npv_derivative(cash_flows: List[float], rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    flows = np.asarray(cash_flows, dtype=float)
    periods = np.arange(flows.size)
    return float(-np.sum(periods * flows / (1.0 + rate) ** (periods + 1)))


def calculate_irr(cash_flows: List[float], guess: float = DEFAULT_GUESS) -> float:
    """
    Calculate IRR (Internal Rate of Return) using Newton-Raphson method.

    Args:
        cash_flows: Array of periodic cash flows
        guess: Initial guess for rate (default 0.1 = 10%)

    Returns:
        Periodic IRR as decimal (e.g., 0.15 for 15%)

    Raises:
        ConvergenceFailure: If the rate leaves (-0.99, 10), the derivative
            vanishes, or no convergence within MAX_ITERATIONS
    """
    if len(cash_flows) < 2:
        raise ConvergenceFailure("At least 2 cash flows required")

    has_positive = any(cf > 0 for cf in cash_flows)
    has_negative = any(cf < 0 for cf in cash_flows)

    if not has_positive or not has_negative:
        raise ConvergenceFailure(
            "Cash flows must contain both positive and negative values"
        )

    rate = guess

    for _ in range(MAX_ITERATIONS):
        npv = calculate_npv(cash_flows, rate)
        dnpv = _npv_derivative(cash_flows, rate)

        if dnpv == 0:
            raise ConvergenceFailure("IRR calculation failed: derivative vanished")

        new_rate = rate - npv / dnpv

        if not MIN_RATE < new_rate < MAX_RATE:
            raise ConvergenceFailure(
                f"IRR estimate {new_rate:.4f} left the range ({MIN_RATE}, {MAX_RATE})"
            )

        if abs(new_rate - rate) < TOLERANCE:
            return new_rate

        rate = new_rate

    raise ConvergenceFailure("IRR calculation did not converge")


def solve_irr(cash_flows: List[float], guess: float = DEFAULT_GUESS) -> Optional[float]:
    """IRR, or None when the solver cannot determine one."""
    try:
        return calculate_irr(cash_flows, guess)
    except ConvergenceFailure as e:
        logger.info(f"IRR undetermined: {e}")
        return None


def calculate_multiple(cash_flows: List[float]) -> float:
    """
    Calculate equity multiple (total inflows / total outflows).

    Raises:
        DomainError: If there are no outflows
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        raise DomainError("No investment (outflows) found")

    return total_inflows / total_outflows


def calculate_profit(cash_flows: List[float]) -> float:
    """Calculate profit (total inflows minus total outflows)."""
    return sum(cash_flows)


def calculate_equity_invested(purchase_price: float, loan_amount: float) -> float:
    """
    Equity required at acquisition.

    Raises:
        DomainError: If the loan covers the whole purchase price
    """
    equity = purchase_price - loan_amount
    if equity <= 0:
        raise DomainError(
            f"Equity invested must be positive (price {purchase_price:,.2f}, "
            f"loan {loan_amount:,.2f})"
        )
    return equity


def build_equity_cash_flows(
    equity_invested: float,
    projection: CashFlowProjection,
    net_sale_proceeds: float,
) -> List[float]:
    """
    Investor cash flow vector for IRR.

    [-equity, year 1 .. year N-1 cash flow, year N cash flow + net proceeds]
    """
    cash_flows = [-equity_invested]
    cash_flows.extend(y.before_tax_cash_flow for y in projection.operating_years())
    cash_flows[-1] += net_sale_proceeds
    return cash_flows


def calculate_returns(
    purchase_price: float,
    loan_amount: float,
    projection: CashFlowProjection,
    exit_summary: ExitSummary,
) -> ReturnsSummary:
    """
    Calculate levered returns.

    Raises:
        DomainError: If equity invested is not positive
    """
    equity_invested = calculate_equity_invested(purchase_price, loan_amount)

    total_cash_distributed = sum(
        y.before_tax_cash_flow for y in projection.operating_years()
    )
    total_cash_distributed += exit_summary.net_sale_proceeds

    equity_multiple = (total_cash_distributed + equity_invested) / equity_invested

    cash_flows = build_equity_cash_flows(
        equity_invested, projection, exit_summary.net_sale_proceeds
    )

    return ReturnsSummary(
        equity_invested=equity_invested,
        total_cash_distributed=total_cash_distributed,
        equity_multiple=equity_multiple,
        irr=solve_irr(cash_flows),
        cash_flows=cash_flows,
    )
