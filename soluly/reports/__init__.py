"""Report templates, view-model builder and CSV/PDF export."""

from soluly.reports.engine import (
    REPORT_TEMPLATES,
    TEMPLATES_BY_ID,
    DateRange,
    ProjectReportOptions,
    ReportCollections,
    ReportTemplate,
    ReportView,
    Stat,
    build_report,
)
from soluly.reports.export import export_csv, export_pdf

__all__ = [
    "REPORT_TEMPLATES",
    "TEMPLATES_BY_ID",
    "DateRange",
    "ProjectReportOptions",
    "ReportCollections",
    "ReportTemplate",
    "ReportView",
    "Stat",
    "build_report",
    "export_csv",
    "export_pdf",
]
