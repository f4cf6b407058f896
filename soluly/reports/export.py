"""
CSV and PDF export of report views.

The PDF is a single A4 page: header, stats boxes, then either the first
50 table rows or a name/value summary of chart data. Longer tables get a
"Showing 50 of N records" notice instead of further pages.
"""

import enum
import io
from datetime import date, datetime
from typing import Any, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import KeepInFrame, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from soluly.reports.engine import DateRange, ReportView

PDF_ROW_LIMIT = 50
PAGE_MARGIN = 40

MONEY_COLUMNS = ("budget", "value", "amount")


# --- CSV ---

def csv_cell(value: Any) -> str:
    """Render one CSV field.

    Objects become their ``name`` (or empty). Strings containing a comma,
    quote or line break (LF or CR) are quoted with inner quotes doubled.
    """
    if value is None:
        return ""
    if isinstance(value, enum.Enum):
        value = value.value
    elif isinstance(value, dict):
        value = value.get("name") or ""
    elif isinstance(value, bool):
        return "true" if value else "false"
    elif isinstance(value, (datetime, date)):
        return value.isoformat()
    elif isinstance(value, float) and value.is_integer():
        return str(int(value))
    elif not isinstance(value, (str, int, float)):
        value = getattr(value, "name", None) or ""

    text = str(value)
    if any(ch in text for ch in (",", '"', "\n", "\r")):
        text = '"' + text.replace('"', '""') + '"'
    return text


def export_csv(view: ReportView) -> str:
    """Serialize the rows of a report view; empty string when there are none."""
    if not view.data:
        return ""
    headers: List[str] = view.columns or list(view.data[0].keys())
    lines = [",".join(headers)]
    for row in view.data:
        lines.append(",".join(csv_cell(row.get(h)) for h in headers))
    return "\n".join(lines)


# --- PDF ---

def format_cell(value: Any, column: str) -> str:
    """Human formatting for PDF table cells."""
    if value is None:
        return "-"
    if isinstance(value, enum.Enum):
        value = value.value
    if "date" in column or column in ("created_at", "updated_at"):
        if isinstance(value, (datetime, date)):
            return value.strftime("%b %d, %Y").replace(" 0", " ")
        return str(value)
    if "revenue" in column or column in MONEY_COLUMNS:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return str(value)
        return f"${number:,.0f}" if number.is_integer() else f"${number:,.2f}"
    if isinstance(value, dict):
        return str(value.get("name") or "-")
    return str(value)


def _clip(text: str, limit: int) -> str:
    # Cells never wrap, so every row stays one line tall
    return text if len(text) <= limit else text[: max(limit - 3, 1)] + "..."


def _styles():
    styles = getSampleStyleSheet()
    return {
        "org": ParagraphStyle(
            "OrgName",
            parent=styles["Normal"],
            fontName="Helvetica-Bold",
            fontSize=14,
            spaceAfter=4,
        ),
        "title": ParagraphStyle(
            "ReportTitle",
            parent=styles["Heading1"],
            fontSize=18,
            spaceAfter=6,
            textColor=colors.HexColor("#111827"),
        ),
        "meta": ParagraphStyle(
            "ReportMeta",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#6b7280"),
        ),
        "section": ParagraphStyle(
            "SectionTitle",
            parent=styles["Heading2"],
            fontSize=12,
            spaceBefore=8,
            spaceAfter=6,
            textColor=colors.HexColor("#374151"),
        ),
        "notice": ParagraphStyle(
            "Notice",
            parent=styles["Normal"],
            fontSize=8,
            textColor=colors.HexColor("#6b7280"),
            spaceBefore=6,
        ),
    }


def _stats_table(view: ReportView, width: float) -> Table:
    cells = [[f"{stat.label}\n{stat.value}" for stat in view.stats]]
    table = Table(cells, colWidths=[width / len(view.stats)] * len(view.stats))
    table.setStyle(TableStyle([
        ("ALIGN", (0, 0), (-1, -1), "CENTER"),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor("#f9fafb")),
        ("BOX", (0, 0), (-1, -1), 1, colors.HexColor("#e5e7eb")),
        ("INNERGRID", (0, 0), (-1, -1), 1, colors.HexColor("#e5e7eb")),
        ("TOPPADDING", (0, 0), (-1, -1), 8),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 8),
    ]))
    return table


def _rows_table(view: ReportView, width: float) -> Table:
    columns = view.columns or list(view.data[0].keys())
    col_width = width / len(columns)
    limit = max(int(col_width / 4), 4)  # ~4pt per character at 7pt Helvetica

    header = [col.replace("_", " ").upper() for col in columns]
    body = [
        [_clip(format_cell(row.get(col), col), limit) for col in columns]
        for row in view.data[:PDF_ROW_LIMIT]
    ]
    table = Table([header] + body, colWidths=[col_width] * len(columns), repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f3f4f6")),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 7),
        ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#e5e7eb")),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
    ]))
    return table


def _chart_summary(view: ReportView, width: float) -> Table:
    rows = []
    for item in view.data:
        value = item.get("value")
        if isinstance(value, (int, float)) and value >= 1000:
            value = f"${value:,.0f}"
        rows.append([str(item.get("name")), str(value)])
    table = Table(rows, colWidths=[width * 0.7, width * 0.3])
    table.setStyle(TableStyle([
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("FONTNAME", (1, 0), (1, -1), "Helvetica-Bold"),
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("TOPPADDING", (0, 0), (-1, -1), 2),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
    ]))
    return table


def _project_summary(project: dict, styles: dict) -> list:
    lines = []
    if "start_date" in project:
        start = format_cell(project.get("start_date"), "start_date")
        end = format_cell(project.get("end_date"), "end_date")
        lines.append(Paragraph(f"Timeline: {start} to {end}", styles["meta"]))
    if project.get("client_name"):
        lines.append(Paragraph(f"Client: {escape(project['client_name'])}", styles["meta"]))
    if project.get("description"):
        lines.append(Paragraph(escape(project["description"]), styles["meta"]))
    if lines:
        lines.append(Spacer(1, 8))
    return lines


def export_pdf(
    view: ReportView,
    title: str,
    organization: str,
    date_range: DateRange,
    generated: Optional[date] = None,
) -> bytes:
    """Render a report view to a one-page A4 PDF and return its bytes."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=PAGE_MARGIN,
        rightMargin=PAGE_MARGIN,
        topMargin=PAGE_MARGIN,
        bottomMargin=PAGE_MARGIN + 20,
        title=title,
    )
    width = doc.width
    styles = _styles()
    generated = generated or date.today()

    elements = [
        Paragraph(escape(organization or "Organization"), styles["org"]),
        Paragraph(escape(title), styles["title"]),
        Paragraph(f"Generated: {generated.strftime('%B %d, %Y')}", styles["meta"]),
        Paragraph(
            f"Date Range: {date_range.start.isoformat()} to {date_range.end.isoformat()}",
            styles["meta"],
        ),
        Spacer(1, 12),
    ]

    if view.stats:
        elements.append(_stats_table(view, width))
        elements.append(Spacer(1, 12))

    if view.project:
        elements.extend(_project_summary(view.project, styles))

    if view.data:
        if view.is_chart:
            elements.append(Paragraph("Summary", styles["section"]))
            elements.append(_chart_summary(view, width))
        elif view.type in ("table", "project-detail"):
            if view.section_title:
                elements.append(Paragraph(escape(view.section_title), styles["section"]))
            elements.append(_rows_table(view, width))
            if len(view.data) > PDF_ROW_LIMIT:
                elements.append(Paragraph(
                    f"Showing {PDF_ROW_LIMIT} of {len(view.data)} records",
                    styles["notice"],
                ))

    footer = f"{organization} - Confidential Report - Page 1"

    def draw_footer(canvas, document):
        canvas.saveState()
        canvas.setFont("Helvetica", 8)
        canvas.setFillColor(colors.HexColor("#9ca3af"))
        canvas.drawCentredString(A4[0] / 2, PAGE_MARGIN, footer)
        canvas.restoreState()

    # Scale the body down rather than let it flow onto a second page
    body = KeepInFrame(doc.width, doc.height, elements, mode="shrink")
    doc.build([body], onFirstPage=draw_footer)
    return buffer.getvalue()
