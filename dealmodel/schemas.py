"""
Input schemas for the underwriting engine.

The deal-management side hands us camelCase JSON; both camelCase and
snake_case keys are accepted. Models are frozen: scenario variations are
built with ``model_copy(update=...)``.
"""

import enum
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_RENT_GROWTH = 0.03
DEFAULT_EXPENSE_GROWTH = 0.02
DEFAULT_VACANCY_RATE = 0.05
DEFAULT_EXIT_CAP_RATE = 0.055
DEFAULT_HOLD_PERIOD = 5


class ReportTemplate(str, enum.Enum):
    """Export template identifiers."""

    standard = "standard"
    acre_all_in_one = "acre_all_in_one"
    lp_report = "lp_report"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class WaterfallStructure(_CamelModel):
    """
    LP/GP equity structure.

    ``promote_tiers`` is kept raw: it may arrive as a list of tier dicts or
    as a JSON string, and is parsed when the waterfall is rendered.
    """

    lp_equity: Optional[float] = None
    gp_equity: Optional[float] = None
    preferred_return: Optional[float] = None
    promote_tiers: Optional[Union[str, List[Any]]] = None


class UnderwritingModel(_CamelModel):
    """Immutable snapshot of underwriting assumptions for one deal."""

    # Property
    deal_name: Optional[str] = None
    property_type: Optional[str] = None
    purchase_price: float = 0.0
    units: Optional[int] = None

    # Revenue
    gross_potential_rent: float = 0.0
    vacancy_rate: float = DEFAULT_VACANCY_RATE
    other_income: float = 0.0
    rent_growth: float = DEFAULT_RENT_GROWTH

    # Expenses
    operating_expenses: float = 0.0
    taxes: float = 0.0
    insurance: float = 0.0
    management: float = 0.0
    reserves: float = 0.0
    expense_growth: float = DEFAULT_EXPENSE_GROWTH

    # Debt
    loan_amount: float = 0.0
    interest_rate: float = 0.06
    amortization: int = 30  # years
    loan_term: Optional[int] = None  # years
    io_period: int = 0  # years
    annual_debt_service: Optional[float] = None  # override

    # Exit
    hold_period: int = Field(default=DEFAULT_HOLD_PERIOD, ge=0)
    exit_cap_rate: float = DEFAULT_EXIT_CAP_RATE

    waterfall: Optional[WaterfallStructure] = None

    # Precomputed summary metrics (optional, supplied by the caller)
    irr: Optional[float] = None
    equity_multiple: Optional[float] = None
    cash_on_cash: Optional[float] = None
    going_in_cap_rate: Optional[float] = None
    dscr: Optional[float] = None
    break_even_occupancy: Optional[float] = None
    debt_yield: Optional[float] = None
    net_operating_income: Optional[float] = None
    effective_gross_income: Optional[float] = None

    @field_validator(
        "purchase_price",
        "gross_potential_rent",
        "vacancy_rate",
        "other_income",
        "rent_growth",
        "operating_expenses",
        "taxes",
        "insurance",
        "management",
        "reserves",
        "expense_growth",
        "loan_amount",
        "interest_rate",
        "amortization",
        "io_period",
        "hold_period",
        "exit_cap_rate",
        mode="before",
    )
    @classmethod
    def _null_to_default(cls, value, info):
        """Explicit nulls fall back to the documented default."""
        if value is None:
            return cls.model_fields[info.field_name].default
        return value


class ExportOptions(_CamelModel):
    """Controls which sheets the exported workbook contains."""

    # Accepted for compatibility; has no effect on the output.
    include_formulas: bool = True
    include_sensitivity: bool = True
    # None means "include when the model carries a waterfall".
    include_waterfall: Optional[bool] = None
    template: ReportTemplate = ReportTemplate.standard

    def wants_waterfall(self, model: UnderwritingModel) -> bool:
        if self.include_waterfall is None:
            return model.waterfall is not None
        return self.include_waterfall and model.waterfall is not None
