"""
IRR Sensitivity

Estimates levered IRR over a grid of exit cap rates (columns) and vacancy
rates (rows).

``LinearSensitivityEstimator`` is a first-order approximation around the
baseline: it never re-runs the projection. ``ExactSensitivityEstimator``
re-underwrites every cell and shares the same interface.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from dealmodel.calculations.irr import ReturnsSummary
from dealmodel.calculations.underwriting import run_underwriting
from dealmodel.errors import DomainError
from dealmodel.schemas import UnderwritingModel

EXIT_CAP_AXIS = (0.045, 0.05, 0.055, 0.06, 0.065)
VACANCY_AXIS = (0.03, 0.05, 0.07, 0.10)

# IRR change per unit change in the axis value
EXIT_CAP_WEIGHT = -8.0
VACANCY_WEIGHT = -3.0


@dataclass
class SensitivityMatrix:
    """IRR grid; ``cells[row][column]`` is None where IRR is undetermined."""

    row_values: List[float]
    column_values: List[float]
    cells: List[List[Optional[float]]] = field(default_factory=list)
    baseline_irr: Optional[float] = None
    row_label: str = "Vacancy"
    column_label: str = "Exit Cap"
    approximate: bool = True

    def cell(self, row_value: float, column_value: float) -> Optional[float]:
        row = self.row_values.index(row_value)
        column = self.column_values.index(column_value)
        return self.cells[row][column]


class SensitivityEstimator:
    """Base interface: build an IRR matrix for a model and its baseline."""

    approximate = True

    def estimate(
        self,
        model: UnderwritingModel,
        baseline: ReturnsSummary,
        exit_caps: Sequence[float] = EXIT_CAP_AXIS,
        vacancies: Sequence[float] = VACANCY_AXIS,
    ) -> SensitivityMatrix:
        cells = [
            [self.estimate_cell(model, baseline, exit_cap, vacancy) for exit_cap in exit_caps]
            for vacancy in vacancies
        ]
        return SensitivityMatrix(
            row_values=list(vacancies),
            column_values=list(exit_caps),
            cells=cells,
            baseline_irr=baseline.irr,
            approximate=self.approximate,
        )

    def estimate_cell(
        self,
        model: UnderwritingModel,
        baseline: ReturnsSummary,
        exit_cap: float,
        vacancy: float,
    ) -> Optional[float]:
        raise NotImplementedError


class LinearSensitivityEstimator(SensitivityEstimator):
    """
    Linear delta model around the baseline IRR.

    irr = baseline + (cap - base cap) * -8 + (vacancy - base vacancy) * -3
    """

    approximate = True

    def __init__(
        self,
        exit_cap_weight: float = EXIT_CAP_WEIGHT,
        vacancy_weight: float = VACANCY_WEIGHT,
    ):
        self.exit_cap_weight = exit_cap_weight
        self.vacancy_weight = vacancy_weight

    def estimate_cell(self, model, baseline, exit_cap, vacancy):
        if baseline.irr is None:
            return None
        exit_cap_delta = (exit_cap - model.exit_cap_rate) * self.exit_cap_weight
        vacancy_delta = (vacancy - model.vacancy_rate) * self.vacancy_weight
        return baseline.irr + exit_cap_delta + vacancy_delta


class ExactSensitivityEstimator(SensitivityEstimator):
    """Re-underwrites the deal for every cell."""

    approximate = False

    def estimate_cell(self, model, baseline, exit_cap, vacancy):
        if exit_cap == model.exit_cap_rate and vacancy == model.vacancy_rate:
            return baseline.irr

        variant = model.model_copy(
            update={"exit_cap_rate": exit_cap, "vacancy_rate": vacancy}
        )
        try:
            return run_underwriting(variant).returns.irr
        except DomainError:
            return None


def make_estimator(exact: bool = False) -> SensitivityEstimator:
    return ExactSensitivityEstimator() if exact else LinearSensitivityEstimator()
