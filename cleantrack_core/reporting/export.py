# =============================================================================
# cleantrack_core/reporting/export.py
# CSV and PDF Report Export
# =============================================================================
"""
Turns a filtered task selection into downloadable files.

- CSV: UTF-8 with BOM so spreadsheet apps pick up the encoding
- PDF: A4 portrait, title, generation time, and a grid table
"""

from __future__ import annotations
import io
from datetime import date, datetime
from typing import List, Optional, Sequence, Tuple, Union

import pandas as pd
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from cleantrack_core.errors import ExportError
from cleantrack_core.models import FilterPeriod, Task
from cleantrack_core.reporting.periods import as_period, format_date

CSV_HEADERS = [
    "ID", "Date", "Category", "Area", "Job Description",
    "Assignee", "Status", "Remarks", "Has Photo",
]

# (header, width in mm); widths add up to the printable A4 width
PDF_COLUMNS: List[Tuple[str, float]] = [
    ("Date", 25),
    ("Category", 20),
    ("Area", 25),
    ("Job Description", 45),
    ("Assignee", 20),
    ("Status", 20),
    ("Remarks", 27),
]

HEADER_FILL = colors.HexColor("#3B82F6")
ZEBRA_FILL = colors.HexColor("#F3F4F6")
GRID_COLOR = colors.HexColor("#D1D5DB")


def report_filename(prefix: str, period: Union[FilterPeriod, str], ref: Union[date, str]) -> str:
    """``Housekeeping_Report`` + weekly + 2024-03-12 -> ``Housekeeping_Report_weekly_2024-03-12``."""
    ref_text = ref.isoformat() if isinstance(ref, date) else ref
    return f"{prefix}_{as_period(period).value}_{ref_text}"


def report_title(period: Union[FilterPeriod, str]) -> str:
    return f"CleanTrack Report - {as_period(period).value.capitalize()}"


def _require_tasks(tasks: Sequence[Task], export_format: str) -> None:
    if not tasks:
        raise ExportError("No data to export.", export_format=export_format)


# =============================================================================
# CSV
# =============================================================================

def tasks_to_export_frame(tasks: Sequence[Task]) -> pd.DataFrame:
    rows = [
        [
            task.id,
            task.date,
            task.category or "",
            task.area,
            task.job_description,
            task.assignee,
            task.status.value,
            task.remarks,
            "Yes" if task.has_photo else "No",
        ]
        for task in tasks
    ]
    return pd.DataFrame(rows, columns=CSV_HEADERS)


def export_tasks_csv(tasks: Sequence[Task]) -> bytes:
    """
    CSV export of ``tasks``.

    Raises:
        ExportError: if there is nothing to export
    """
    _require_tasks(tasks, "csv")
    return tasks_to_export_frame(tasks).to_csv(index=False).encode("utf-8-sig")


# =============================================================================
# PDF
# =============================================================================

def _fit(text: str, width: float, font: str, size: float) -> str:
    """Cut ``text`` with an ellipsis so it fits ``width`` points."""
    if stringWidth(text, font, size) <= width:
        return text
    while text and stringWidth(text + "...", font, size) > width:
        text = text[:-1]
    return text + "..."


def _pdf_row(task: Task) -> List[str]:
    return [
        format_date(task.date),
        task.category or "-",
        task.area,
        task.job_description,
        task.assignee,
        task.status.value,
        task.remarks or "-",
    ]


def export_tasks_pdf(
    tasks: Sequence[Task],
    title: str,
    generated_at: Optional[datetime] = None,
) -> bytes:
    """
    PDF export of ``tasks`` as a single grid table, paginated.

    Raises:
        ExportError: if there is nothing to export
    """
    _require_tasks(tasks, "pdf")
    generated_at = generated_at or datetime.now()

    buffer = io.BytesIO()
    c = canvas.Canvas(buffer, pagesize=A4)
    c.setTitle(title)
    _, page_height = A4

    left = 14 * mm
    bottom = 15 * mm
    line_h = 6 * mm
    font_size = 8
    widths = [w * mm for _, w in PDF_COLUMNS]
    table_width = sum(widths)

    def draw_header(y: float) -> float:
        c.setFillColor(HEADER_FILL)
        c.rect(left, y - line_h, table_width, line_h, stroke=0, fill=1)
        c.setFillColor(colors.white)
        c.setFont("Helvetica-Bold", font_size)
        x = left
        for (name, _), width in zip(PDF_COLUMNS, widths):
            c.drawString(x + 2, y - line_h + 2 * mm, _fit(name, width - 4, "Helvetica-Bold", font_size))
            x += width
        return y - line_h

    # Title block (first page only)
    c.setFillColor(colors.black)
    c.setFont("Helvetica-Bold", 18)
    c.drawString(left, page_height - 22 * mm, title)
    c.setFont("Helvetica", 10)
    c.setFillColor(colors.HexColor("#646464"))
    c.drawString(left, page_height - 28 * mm, f"Generated on: {generated_at:%Y-%m-%d %H:%M:%S}")

    y = draw_header(page_height - 35 * mm)
    c.setFont("Helvetica", font_size)

    for index, task in enumerate(tasks):
        if y - line_h < bottom:
            c.showPage()
            y = draw_header(page_height - 15 * mm)
            c.setFont("Helvetica", font_size)

        if index % 2 == 0:
            c.setFillColor(ZEBRA_FILL)
            c.rect(left, y - line_h, table_width, line_h, stroke=0, fill=1)

        c.setStrokeColor(GRID_COLOR)
        c.rect(left, y - line_h, table_width, line_h, stroke=1, fill=0)
        c.setFillColor(colors.black)
        x = left
        for value, width in zip(_pdf_row(task), widths):
            c.drawString(x + 2, y - line_h + 2 * mm, _fit(str(value), width - 4, "Helvetica", font_size))
            x += width
        y -= line_h

    c.showPage()
    c.save()
    return buffer.getvalue()
