"""
Underwriting pipeline: projection -> exit -> returns -> summary metrics.
"""

import logging
from dataclasses import dataclass

from dealmodel.calculations.cashflow import CashFlowProjection, project_cash_flows
from dealmodel.calculations.reversion import ExitSummary, value_exit
from dealmodel.calculations.irr import ReturnsSummary, calculate_returns
from dealmodel.calculations.metrics import SummaryMetrics, calculate_summary_metrics
from dealmodel.schemas import UnderwritingModel

logger = logging.getLogger(__name__)


@dataclass
class UnderwritingResult:
    """Everything derived from one model, created per call."""

    projection: CashFlowProjection
    exit: ExitSummary
    returns: ReturnsSummary
    metrics: SummaryMetrics


def run_underwriting(model: UnderwritingModel) -> UnderwritingResult:
    """
    Run the full calculation for a model.

    Raises:
        DomainError: For non-positive equity or exit cap rate
    """
    projection = project_cash_flows(model)
    exit_summary = value_exit(projection, model.exit_cap_rate)
    returns = calculate_returns(
        model.purchase_price, model.loan_amount, projection, exit_summary
    )
    metrics = calculate_summary_metrics(model, projection, returns)

    logger.info(
        f"Underwrote {model.deal_name or 'deal'}: "
        f"multiple {returns.equity_multiple:.2f}x, "
        f"IRR {'n/a' if returns.irr is None else f'{returns.irr:.2%}'}"
    )

    return UnderwritingResult(
        projection=projection,
        exit=exit_summary,
        returns=returns,
        metrics=metrics,
    )
