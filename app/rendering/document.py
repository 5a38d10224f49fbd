"""
app/rendering/document.py

Paginated PDF export of an enriched target list (landscape letter).
"""

from __future__ import annotations

import io
import logging
from collections.abc import Sequence
from datetime import date
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import landscape, letter
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas
from reportlab.platypus import Image, PageBreak, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.domain.target_list import EnrichedCompany, ReportConfig
from app.logging_utils import log_event
from app.rendering.common import (
    REVENUE_NOTE,
    SUBTITLE,
    RenderError,
    executive_single_line,
    raster_logo_bytes,
)

logger = logging.getLogger(__name__)

PAGE_SIZE = landscape(letter)
MARGIN = 12 * mm
LOGO_SIZE = 8 * mm

HEADER_BACKGROUND = colors.HexColor("#1e3a5f")
ALTERNATE_ROW_BACKGROUND = colors.HexColor("#f8f9fa")
GRID_COLOR = colors.HexColor("#c8c8c8")
FOOTER_COLOR = colors.HexColor("#555555")

DETAILED_HEADERS = ("", "#", "Company", "Location", "Description", "Employees", "Est. Rev ($M)", "Executive")
DETAILED_WIDTHS_MM = (12, 8, 40, 25, 95, 15, 15, 35)

MINIMAL_HEADERS = (
    "",
    "#",
    "Company",
    "Location",
    "Description",
    "6Mo %",
    "9Mo %",
    "24Mo %",
    "Est. Rev ($M)",
    "Executive",
)
MINIMAL_WIDTHS_MM = (10, 7, 35, 23, 85, 12, 12, 12, 15, 30)


def create_document_styles():
    """Paragraph styles for the title page and table cells."""
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name="ReportTitle",
        fontName="Times-Bold",
        fontSize=24,
        leading=30,
        alignment=TA_CENTER,
        spaceAfter=12,
    ))
    styles.add(ParagraphStyle(
        name="ReportSubtitle",
        fontName="Times-Roman",
        fontSize=14,
        leading=18,
        alignment=TA_CENTER,
        spaceAfter=10,
    ))
    styles.add(ParagraphStyle(
        name="ReportNote",
        fontName="Times-Italic",
        fontSize=10,
        leading=12,
        alignment=TA_CENTER,
    ))
    styles.add(ParagraphStyle(
        name="Cell",
        fontName="Times-Roman",
        fontSize=8,
        leading=10,
    ))
    styles.add(ParagraphStyle(
        name="CellRight",
        parent=styles["Cell"],
        alignment=TA_RIGHT,
    ))
    styles.add(ParagraphStyle(
        name="HeaderCell",
        fontName="Times-Bold",
        fontSize=10,
        leading=12,
        textColor=colors.white,
        alignment=TA_CENTER,
    ))
    return styles


class NumberedCanvas(canvas.Canvas):
    """Canvas that stamps the generation date and "Page X of Y" on every page."""

    def __init__(self, *args, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_footer(page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def draw_footer(self, page_count):
        width, _ = PAGE_SIZE
        self.setFont("Times-Roman", 9)
        self.setFillColor(FOOTER_COLOR)
        self.drawString(MARGIN, 8 * mm, date.today().strftime("%b %d, %Y"))
        self.drawRightString(width - MARGIN, 8 * mm, f"Page {self._pageNumber} of {page_count}")


class DocumentRenderer:
    """
    Builds the PDF export in memory.
    """

    def __init__(self) -> None:
        self._styles = create_document_styles()

    def render(self, *, config: ReportConfig, companies: Sequence[EnrichedCompany]) -> bytes:
        """
        Render the title page and company table and return the PDF bytes.

        Raises:
            RenderError: If reportlab fails to lay out or write the document.
        """

        buffer = io.BytesIO()
        try:
            doc = SimpleDocTemplate(
                buffer,
                pagesize=PAGE_SIZE,
                leftMargin=MARGIN,
                rightMargin=MARGIN,
                topMargin=15 * mm,
                bottomMargin=15 * mm,
                title=config.report_title,
                author="Target List Generator",
            )
            story = self._title_page(config, len(companies))
            story.append(PageBreak())
            story.append(self._company_table(config, companies))
            doc.build(story, canvasmaker=NumberedCanvas)
        except Exception as exc:
            logger.exception("Document rendering failed")
            raise RenderError(f"Failed to generate PDF: {exc}") from exc

        content = buffer.getvalue()
        log_event(
            logger,
            logging.INFO,
            "document_rendered",
            companies=len(companies),
            output_format=config.output_format,
            size_bytes=len(content),
        )
        return content

    def _title_page(self, config: ReportConfig, company_count: int) -> list:
        styles = self._styles
        story = [
            Spacer(1, 50 * mm),
            Paragraph(escape(config.report_title), styles["ReportTitle"]),
        ]
        if config.company_name:
            story.append(Paragraph(escape(config.company_name), styles["ReportSubtitle"]))
        story.extend(
            [
                Paragraph(SUBTITLE, styles["ReportSubtitle"]),
                Paragraph(f"{company_count} Companies", styles["ReportSubtitle"]),
                Paragraph(escape(REVENUE_NOTE), styles["ReportNote"]),
                Spacer(1, 20 * mm),
                Paragraph(
                    f"Generated: {date.today().strftime('%B %d, %Y')}",
                    styles["ReportNote"],
                ),
            ]
        )
        return story

    def _company_table(self, config: ReportConfig, companies: Sequence[EnrichedCompany]) -> Table:
        minimal = config.output_format == "minimal"
        headers = MINIMAL_HEADERS if minimal else DETAILED_HEADERS
        widths = [width * mm for width in (MINIMAL_WIDTHS_MM if minimal else DETAILED_WIDTHS_MM)]

        header_style = self._styles["HeaderCell"]
        data = [[Paragraph(escape(header), header_style) for header in headers]]
        for index, company in enumerate(companies, start=1):
            data.append(self._company_row(index, company, minimal))

        table = Table(data, colWidths=widths, repeatRows=1)
        table.setStyle(
            TableStyle(
                [
                    ("BACKGROUND", (0, 0), (-1, 0), HEADER_BACKGROUND),
                    ("VALIGN", (0, 0), (-1, 0), "MIDDLE"),
                    ("VALIGN", (0, 1), (-1, -1), "TOP"),
                    ("ALIGN", (0, 1), (1, -1), "CENTER"),
                    ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ALTERNATE_ROW_BACKGROUND]),
                    ("GRID", (0, 0), (-1, -1), 0.25, GRID_COLOR),
                    ("TOPPADDING", (0, 0), (-1, -1), 4),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
                    ("LEFTPADDING", (0, 0), (-1, -1), 5),
                    ("RIGHTPADDING", (0, 0), (-1, -1), 5),
                ]
            )
        )
        return table

    def _company_row(self, index: int, company: EnrichedCompany, minimal: bool) -> list:
        cell = self._styles["Cell"]
        right = self._styles["CellRight"]
        revenue = f"{company.est_rev_millions:.1f}"

        row = [
            self._logo_flowable(company),
            Paragraph(str(index), cell),
            Paragraph(escape(company.company_name), cell),
            Paragraph(escape(company.city_state), cell),
            Paragraph(escape(company.summary), cell),
        ]
        if minimal:
            row.extend(
                Paragraph(escape(value or "-"), right)
                for value in (company.growth_rate_6mo, company.growth_rate_9mo, company.growth_rate_24mo)
            )
        else:
            row.append(Paragraph(escape(company.employee_count), right))
        row.append(Paragraph(revenue, right))
        row.append(Paragraph(escape(executive_single_line(company)), cell))
        return row

    @staticmethod
    def _logo_flowable(company: EnrichedCompany):
        raw = raster_logo_bytes(company)
        if raw is None:
            return ""
        try:
            ImageReader(io.BytesIO(raw)).getSize()
        except Exception as exc:
            log_event(
                logger,
                logging.WARNING,
                "document_logo_skipped",
                company=company.company_name,
                error=str(exc),
            )
            return ""
        return Image(io.BytesIO(raw), width=LOGO_SIZE, height=LOGO_SIZE)


def render_document(*, config: ReportConfig, companies: Sequence[EnrichedCompany]) -> bytes:
    return DocumentRenderer().render(config=config, companies=companies)
