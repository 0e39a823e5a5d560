"""
Report generation: document model, sheet builders and the Excel writer.
"""

from dealmodel.reports.builder import build_report
from dealmodel.reports.excel import export_to_excel, write_workbook

__all__ = ["build_report", "export_to_excel", "write_workbook"]
