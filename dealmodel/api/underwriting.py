"""
Underwriting endpoints: projection, sensitivity and Excel export.
"""

from dataclasses import asdict
from datetime import date
from typing import Optional
from urllib.parse import quote

from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from dealmodel.calculations.sensitivity import make_estimator
from dealmodel.calculations.underwriting import run_underwriting
from dealmodel.config import get_settings
from dealmodel.errors import DomainError
from dealmodel.reports.excel import XLSX_MEDIA_TYPE, export_to_excel
from dealmodel.schemas import ExportOptions, ReportTemplate, UnderwritingModel

router = APIRouter()

TEMPLATES = [
    {
        "id": ReportTemplate.standard.value,
        "name": "Standard CRE Model",
        "description": "Clean, professional layout suitable for any deal type",
        "sheets": ["Summary", "Assumptions", "Cash Flows", "Sensitivity"],
    },
    {
        "id": ReportTemplate.acre_all_in_one.value,
        "name": "A.CRE All-in-One Style",
        "description": "Full model including the equity waterfall",
        "sheets": ["Summary", "Assumptions", "Cash Flows", "Waterfall", "Sensitivity"],
    },
    {
        "id": ReportTemplate.lp_report.value,
        "name": "LP Report Format",
        "description": "Simplified view optimized for LP distribution",
        "sheets": ["Summary", "Assumptions", "Cash Flows", "Waterfall"],
    },
]


class ExportRequest(BaseModel):
    """Body for the export endpoint."""

    underwriting: UnderwritingModel
    options: ExportOptions = ExportOptions()


@router.post("/projection")
async def calculate_projection(model: UnderwritingModel):
    """Project cash flows, exit and returns for a model."""
    try:
        result = run_underwriting(model)
    except DomainError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return {
        "years": [asdict(year) for year in result.projection.years],
        "exit": asdict(result.exit),
        "returns": asdict(result.returns),
        "metrics": asdict(result.metrics),
    }


@router.post("/sensitivity")
async def calculate_sensitivity(model: UnderwritingModel, exact: Optional[bool] = None):
    """
    IRR matrix over exit cap rate and vacancy.

    ``exact`` defaults to the configured sensitivity mode.
    """
    try:
        result = run_underwriting(model)
    except DomainError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if exact is None:
        exact = get_settings().exact_sensitivity
    estimator = make_estimator(exact)
    return asdict(estimator.estimate(model, result.returns))


@router.post("/export")
async def export_workbook(request: ExportRequest):
    """Export the model as an .xlsx attachment."""
    try:
        content = export_to_excel(request.underwriting, request.options)
    except DomainError as e:
        raise HTTPException(status_code=400, detail=str(e))

    name = request.underwriting.deal_name or "Underwriting"
    filename = f"{name}-Model-{date.today().isoformat()}.xlsx"

    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{quote(filename)}"'},
    )


@router.get("/templates")
async def list_templates():
    """List available export templates."""
    return {"templates": TEMPLATES}
