"""
PDF rendering for Schedule E reports, plus ZIP bundling for batch downloads.
Uses reportlab so no system libraries are needed.
"""
import io
import logging
import zipfile
from collections.abc import Sequence
from decimal import Decimal
from typing import Protocol
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from taxreports.core.exceptions import RenderError
from taxreports.schemas.report import ScheduleEReport
from taxreports.services.categories import SCHEDULE_E_CATEGORIES

logger = logging.getLogger(__name__)

_GREEN = colors.HexColor("#1b5e20")
_RED = colors.HexColor("#c62828")
_GREY = colors.HexColor("#64748b")


class ReportRenderer(Protocol):
    def render(self, report: ScheduleEReport) -> bytes: ...


def format_currency(amount: Decimal) -> str:
    if amount < 0:
        return f"-${-amount:,.2f}"
    return f"${amount:,.2f}"


def schedule_e_lines(report: ScheduleEReport) -> list[tuple[int | None, str, Decimal]]:
    """All 15 Schedule E lines, zero-filled, with reported amounts summed per line number."""
    by_line: dict[int | None, Decimal] = {}
    for item in report.expenses_by_category:
        by_line[item.line_number] = by_line.get(item.line_number, Decimal("0.00")) + item.amount
    return [
        (c.line_number, c.name, by_line.get(c.line_number, Decimal("0.00")))
        for c in SCHEDULE_E_CATEGORIES
    ]


class ScheduleEPdfRenderer:
    """Letter-size Schedule E worksheet: property header, income, 15 expense lines, net."""

    def render(self, report: ScheduleEReport) -> bytes:
        try:
            return self._build(report)
        except Exception as exc:
            logger.error("Schedule E PDF rendering failed for property %s: %s", report.property_id, exc)
            raise RenderError(f"Failed to render Schedule E report: {exc}") from exc

    def _build(self, report: ScheduleEReport) -> bytes:
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=letter,
            topMargin=0.7 * inch,
            bottomMargin=0.7 * inch,
            title=f"Schedule E {report.tax_year} - {report.property_name}",
        )
        styles = getSampleStyleSheet()
        title_style = ParagraphStyle("Title", parent=styles["Heading1"], fontSize=18, textColor=_GREEN)
        subtitle_style = ParagraphStyle("Subtitle", parent=styles["Italic"], fontSize=12)
        section_style = ParagraphStyle("Section", parent=styles["Heading3"], fontSize=12)
        value_style = ParagraphStyle("Value", parent=styles["Normal"], fontSize=10)
        footer_style = ParagraphStyle("Footer", parent=styles["Normal"], fontSize=8, textColor=_GREY)

        elements = [
            Paragraph("Schedule E Worksheet", title_style),
            Paragraph("Supplemental Income and Loss", subtitle_style),
            Spacer(1, 14),
            Paragraph(f"<b>Property:</b> {escape(report.property_name)}", value_style),
            Paragraph(f"<b>Address:</b> {escape(report.property_address or '-')}", value_style),
            Paragraph(f"<b>Tax Year:</b> {report.tax_year}", value_style),
            Spacer(1, 14),
        ]

        # Income
        elements.append(Paragraph("INCOME", section_style))
        income_table = Table(
            [["3.", "Rents received", format_currency(report.total_income)]],
            colWidths=[0.5 * inch, 4.5 * inch, 1.5 * inch],
        )
        income_table.setStyle(TableStyle([
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("ALIGN", (2, 0), (2, -1), "RIGHT"),
        ]))
        elements.append(income_table)
        elements.append(Spacer(1, 14))

        # Expenses
        elements.append(Paragraph("EXPENSES", section_style))
        rows = [
            [f"{line}." if line is not None else "", name, format_currency(amount)]
            for line, name, amount in schedule_e_lines(report)
        ]
        rows.append(["20.", "Total Expenses", format_currency(report.total_expenses)])
        expense_table = Table(rows, colWidths=[0.5 * inch, 4.5 * inch, 1.5 * inch])
        expense_table.setStyle(TableStyle([
            ("FONTSIZE", (0, 0), (-1, -1), 10),
            ("ALIGN", (2, 0), (2, -1), "RIGHT"),
            ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
            ("LINEABOVE", (0, -1), (-1, -1), 0.5, colors.black),
            ("TOPPADDING", (0, -1), (-1, -1), 6),
        ]))
        elements.append(expense_table)
        elements.append(Spacer(1, 14))

        # Net income (loss)
        net_table = Table(
            [["", "NET INCOME (LOSS)", format_currency(report.net_income)]],
            colWidths=[0.5 * inch, 4.5 * inch, 1.5 * inch],
        )
        net_table.setStyle(TableStyle([
            ("FONTNAME", (0, 0), (-1, -1), "Helvetica-Bold"),
            ("FONTSIZE", (0, 0), (-1, -1), 12),
            ("ALIGN", (2, 0), (2, -1), "RIGHT"),
            ("TEXTCOLOR", (2, 0), (2, 0), _GREEN if report.net_income >= 0 else _RED),
            ("LINEABOVE", (0, 0), (-1, 0), 1, colors.black),
            ("TOPPADDING", (0, 0), (-1, -1), 8),
        ]))
        elements.append(net_table)

        elements.append(Spacer(1, 30))
        elements.append(Paragraph(
            f"Generated: {report.generated_at:%b %d, %Y}", footer_style
        ))

        doc.build(elements)
        return buffer.getvalue()


def bundle_reports(files: Sequence[tuple[str, bytes]]) -> bytes:
    """ZIP the (file_name, content) pairs. Repeated names get a -2, -3 ... suffix."""
    buffer = io.BytesIO()
    seen: dict[str, int] = {}
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        for file_name, content in files:
            count = seen.get(file_name, 0) + 1
            seen[file_name] = count
            entry_name = file_name
            if count > 1:
                stem, dot, ext = file_name.rpartition(".")
                entry_name = f"{stem}-{count}.{ext}" if dot else f"{file_name}-{count}"
            archive.writestr(entry_name, content)
    return buffer.getvalue()
