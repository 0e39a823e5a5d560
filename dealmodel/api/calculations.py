"""
Standalone financial calculation endpoints.

These endpoints accept raw inputs (a cash flow vector, loan terms) and
return calculated results.
"""

from dataclasses import asdict
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from dealmodel.calculations import amortization, irr
from dealmodel.errors import DomainError

router = APIRouter()


class IRRInput(BaseModel):
    """Input for IRR calculation."""

    cash_flows: List[float]
    guess: float = irr.DEFAULT_GUESS


class IRRResponse(BaseModel):
    """Response with IRR calculation. ``irr`` is null when undetermined."""

    irr: Optional[float] = None
    multiple: float
    profit: float
    npv_at_10_percent: float


@router.post("/irr", response_model=IRRResponse)
async def calculate_irr_endpoint(inputs: IRRInput):
    """Calculate IRR for given cash flows."""
    try:
        multiple = irr.calculate_multiple(inputs.cash_flows)
    except DomainError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return IRRResponse(
        irr=irr.solve_irr(inputs.cash_flows, inputs.guess),
        multiple=multiple,
        profit=irr.calculate_profit(inputs.cash_flows),
        npv_at_10_percent=irr.calculate_npv(inputs.cash_flows, 0.10),
    )


class AmortizationInput(BaseModel):
    """Input for amortization calculation."""

    principal: float
    annual_rate: float
    amortization_years: int = 30
    io_years: int = 0
    years: int = Field(default=10, ge=1)


@router.post("/amortization")
async def calculate_amortization(inputs: AmortizationInput):
    """Generate an annual loan amortization schedule."""
    schedule, monthly_payment = amortization.build_annual_schedule(
        loan_amount=inputs.principal,
        annual_rate=inputs.annual_rate,
        amortization_years=inputs.amortization_years,
        years=inputs.years,
        io_years=inputs.io_years,
    )

    return {
        "monthly_payment": monthly_payment,
        "schedule": [asdict(row) for row in schedule],
        "total_interest": sum(row.interest for row in schedule),
        "total_principal": sum(row.principal for row in schedule),
    }
