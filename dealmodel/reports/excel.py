"""
Excel Exporter

Writes a ``ReportDocument`` to an .xlsx workbook in memory.
"""

import io
import logging
from typing import Dict, Iterable, Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from dealmodel.reports.builder import build_report
from dealmodel.reports.layout import CellEntry, ReportDocument
from dealmodel.schemas import ExportOptions, UnderwritingModel

logger = logging.getLogger(__name__)

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

NAVY = "FF1F4E79"
WHITE = "FFFFFFFF"

STYLE_SPECS: Dict[str, Dict] = {
    "title": {"font": {"bold": True, "size": 16, "color": NAVY}},
    "subtitle": {"font": {"size": 14}},
    "sheet_title": {"font": {"bold": True, "size": 14, "color": NAVY}},
    "section_header": {
        "font": {"bold": True, "size": 11, "color": NAVY},
        "fill": "FFD6DCE4",
    },
    "header": {
        "font": {"bold": True, "size": 12, "color": WHITE},
        "fill": NAVY,
        "alignment": {"horizontal": "center", "vertical": "center"},
    },
    "label": {"font": {"size": 10}, "alignment": {"horizontal": "left"}},
    "total": {"font": {"bold": True}},
    "positive": {"font": {"color": "FF006400"}},
    "negative": {"font": {"color": "FFDC143C"}},
    "placeholder": {
        "font": {"italic": True, "color": "FF808080"},
        "alignment": {"horizontal": "right"},
    },
    "note": {"font": {"italic": True, "size": 9}},
    "band_high": {"fill": "FFC6EFCE"},
    "band_mid": {"fill": "FFFFEB9C"},
    "band_low": {"fill": "FFFFC7CE"},
}


def _compose_styles(names: Iterable[str]):
    """Merge named styles left to right into font/alignment/fill kwargs."""
    font: Dict = {}
    alignment: Dict = {}
    fill: Optional[str] = None
    for name in names:
        spec = STYLE_SPECS[name]
        font.update(spec.get("font", {}))
        alignment.update(spec.get("alignment", {}))
        fill = spec.get("fill", fill)
    return font, alignment, fill


def _apply_entry(cell, entry: CellEntry):
    cell.value = entry.value

    number_format = entry.number_format
    if number_format:
        cell.number_format = number_format

    font, alignment, fill = _compose_styles(entry.styles)
    if number_format and number_format != "General":
        alignment.setdefault("horizontal", "right")

    if font:
        cell.font = Font(**font)
    if alignment:
        cell.alignment = Alignment(**alignment)
    if fill:
        cell.fill = PatternFill(start_color=fill, end_color=fill, fill_type="solid")


def write_workbook(document: ReportDocument) -> bytes:
    """Render a report document to .xlsx bytes."""
    workbook = Workbook()
    workbook.remove(workbook.active)

    workbook.properties.creator = document.creator
    workbook.properties.title = document.title
    workbook.properties.keywords = document.template.value

    for sheet in document.sheets:
        ws = workbook.create_sheet(title=sheet.name)
        if sheet.tab_color:
            ws.sheet_properties.tabColor = sheet.tab_color

        for index, width in enumerate(sheet.column_widths, start=1):
            ws.column_dimensions[get_column_letter(index)].width = width

        for (row, column), entry in sorted(sheet.cells.items()):
            _apply_entry(ws.cell(row=row, column=column), entry)

        for start_row, start_col, end_row, end_col in sheet.merged_ranges:
            ws.merge_cells(
                start_row=start_row,
                start_column=start_col,
                end_row=end_row,
                end_column=end_col,
            )

        # Coordinate string: the anchor may sit inside a merged range
        if sheet.frozen:
            ws.freeze_panes = (
                f"{get_column_letter(sheet.frozen.columns + 1)}{sheet.frozen.rows + 1}"
            )

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


def export_to_excel(
    model: UnderwritingModel, options: Optional[ExportOptions] = None
) -> bytes:
    """
    Export an underwriting model to an Excel workbook.

    Returns:
        .xlsx file contents

    Raises:
        DomainError: If the model cannot be underwritten
    """
    document = build_report(model, options)
    content = write_workbook(document)
    logger.info(
        f"Exported {document.title}: {', '.join(document.sheet_names)} "
        f"({len(content):,} bytes)"
    )
    return content
