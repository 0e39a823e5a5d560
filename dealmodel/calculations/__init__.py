"""
Financial Calculation Engine

Core calculation modules for acquisition underwriting: amortization,
annual cash flow projection, exit valuation, returns, waterfall and
sensitivity.
"""

from dealmodel.calculations import (
    amortization,
    cashflow,
    reversion,
    irr,
    metrics,
    sensitivity,
    underwriting,
    waterfall,
)

__all__ = [
    "amortization",
    "cashflow",
    "reversion",
    "irr",
    "metrics",
    "sensitivity",
    "underwriting",
    "waterfall",
]
