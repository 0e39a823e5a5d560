"""
Error types raised by the calculation and report engine.
"""


class DealModelError(Exception):
    """Base class for all engine errors."""


class DomainError(DealModelError, ValueError):
    """Input describes an impossible deal (e.g. no equity, zero exit cap)."""


class ConvergenceFailure(DealModelError, ValueError):
    """IRR solver did not converge or left its bounded rate range."""


class WaterfallStructureError(DealModelError, ValueError):
    """Waterfall tier data could not be parsed."""
