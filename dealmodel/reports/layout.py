"""
Report document model and section renderers.

A ``ReportDocument`` is a plain in-memory description of a workbook: sheets,
cells (value + number format + named styles), merged ranges and frozen
panes. ``dealmodel.reports.excel`` turns it into .xlsx bytes.

Every repeated block (revenue, expenses, debt service, exit analysis,
returns, summary/assumption panels) goes through ``render_section``, driven
by a table of ``FieldSpec`` rows.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from dealmodel.schemas import ReportTemplate

# Excel number formats by name
FORMATS = {
    "currency": "$#,##0",
    "currency_detailed": "$#,##0.00",
    "percentage": "0.00%",
    "percentage_short": "0.0%",
    "ratio": '0.00"x"',
    "years": '0 "yrs"',
    "number": "#,##0.00",
    "integer": "#,##0",
    "text": "General",
}


@dataclass(frozen=True)
class CellEntry:
    value: Any
    format: Optional[str] = None
    styles: Tuple[str, ...] = ()

    @property
    def number_format(self) -> Optional[str]:
        return FORMATS.get(self.format) if self.format else None


@dataclass(frozen=True)
class FrozenPane:
    rows: int = 0
    columns: int = 0


@dataclass(frozen=True)
class FieldSpec:
    """
    One row of a rendered section.

    ``is_negative`` flips the displayed sign of positive values; the source
    value is left alone. ``signed`` colours the value by sign.
    """

    label: str
    key: str
    is_total: bool = False
    is_negative: bool = False
    format: str = "currency"
    signed: bool = False
    placeholder: Optional[str] = None


@dataclass
class Sheet:
    name: str
    tab_color: Optional[str] = None
    column_widths: List[float] = field(default_factory=list)
    cells: Dict[Tuple[int, int], CellEntry] = field(default_factory=dict)
    merged_ranges: List[Tuple[int, int, int, int]] = field(default_factory=list)
    frozen: Optional[FrozenPane] = None

    def write(
        self,
        row: int,
        column: int,
        value: Any,
        format: Optional[str] = None,
        styles: Sequence[str] = (),
    ) -> CellEntry:
        entry = CellEntry(value=value, format=format, styles=tuple(styles))
        self.cells[(row, column)] = entry
        return entry

    def merge(self, start_row: int, start_column: int, end_row: int, end_column: int):
        self.merged_ranges.append((start_row, start_column, end_row, end_column))

    def entry(self, row: int, column: int) -> Optional[CellEntry]:
        return self.cells.get((row, column))

    def value(self, row: int, column: int) -> Any:
        entry = self.cells.get((row, column))
        return entry.value if entry else None

    def find(self, value: Any, column: Optional[int] = None) -> Optional[Tuple[int, int]]:
        """First (row, column) holding ``value``, scanning row by row."""
        for (row, col) in sorted(self.cells):
            if column is not None and col != column:
                continue
            if self.cells[(row, col)].value == value:
                return row, col
        return None

    def row_values(self, row: int) -> List[Any]:
        return [
            self.cells[key].value
            for key in sorted(self.cells)
            if key[0] == row
        ]


@dataclass
class ReportDocument:
    sheets: List[Sheet]
    title: str
    creator: str
    template: ReportTemplate = ReportTemplate.standard

    @property
    def sheet_names(self) -> List[str]:
        return [sheet.name for sheet in self.sheets]

    def sheet(self, name: str) -> Sheet:
        for sheet in self.sheets:
            if sheet.name == name:
                return sheet
        raise KeyError(name)

    def __contains__(self, name: str) -> bool:
        return name in self.sheet_names


def resolve_value(source: Any, key: str) -> Any:
    """Look ``key`` up on a mapping or an object."""
    if source is None:
        return None
    if isinstance(source, Mapping):
        return source.get(key)
    return getattr(source, key, None)


def display_value(spec: FieldSpec, value: Any) -> Any:
    if spec.is_negative and isinstance(value, (int, float)) and value > 0:
        return -value
    return value


def add_title(sheet: Sheet, row: int, text: str, style: str = "sheet_title", span: int = 0) -> int:
    sheet.write(row, 1, text, styles=(style,))
    if span > 1:
        sheet.merge(row, 1, row, span)
    return row + 1


def add_section_header(sheet: Sheet, row: int, title: str, start_col: int = 1) -> int:
    sheet.write(row, start_col, title, styles=("section_header",))
    sheet.merge(row, start_col, row, start_col + 1)
    return row + 1


def add_column_headers(
    sheet: Sheet,
    row: int,
    headers: Sequence[Any],
    start_col: int = 2,
    format: Optional[str] = None,
) -> int:
    for offset, header in enumerate(headers):
        sheet.write(row, start_col + offset, header, format=format, styles=("header",))
    return row + 1


def _value_styles(spec: FieldSpec, value: Any) -> List[str]:
    styles = []
    if spec.is_total:
        styles.append("total")
    if spec.signed and isinstance(value, (int, float)):
        styles.append("positive" if value >= 0 else "negative")
    return styles


def render_section(
    sheet: Sheet,
    row: int,
    title: Optional[str],
    fields: Sequence[FieldSpec],
    sources: Sequence[Any],
    start_col: int = 1,
) -> int:
    """
    Render a field-list section.

    Each field becomes one row: its label in ``start_col`` followed by one
    value per source (a single source gives a label/value pair, a list of
    yearly projections gives a row across the years).

    Returns:
        The next free row
    """
    if title:
        row = add_section_header(sheet, row, title, start_col)

    for spec in fields:
        label_styles = ["label"]
        if spec.is_total:
            label_styles.append("total")
        sheet.write(row, start_col, spec.label, styles=label_styles)

        for offset, source in enumerate(sources, start=1):
            column = start_col + offset
            value = display_value(spec, resolve_value(source, spec.key))

            if value is None:
                if spec.placeholder is not None:
                    sheet.write(row, column, spec.placeholder, styles=("placeholder",))
                continue

            fmt = spec.format if isinstance(value, (int, float)) else "text"
            sheet.write(row, column, value, format=fmt, styles=_value_styles(spec, value))

        row += 1

    return row
