"""
app/rendering/workbook.py

Two-sheet XLSX export of an enriched target list.

Sheet "Source Data" repeats the uploaded rows verbatim. Sheet "Target List"
holds a title block (rows 1-5), a header row (row 6) and one company per
row from row 7, in either the detailed or the minimal column layout.
"""

from __future__ import annotations

import io
import logging
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

from openpyxl import Workbook
from openpyxl.drawing.image import Image as XLImage
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.worksheet.page import PageMargins
from openpyxl.worksheet.worksheet import Worksheet

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

SOURCE_SHEET_TITLE = "Source Data"
TARGET_SHEET_TITLE = "Target List"

HEADER_ROW = 6
FIRST_DATA_ROW = 7
LOGO_COLUMN = "D"
REVENUE_NUMBER_FORMAT = "0.0"

_SOURCE_HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFE0E0E0")
_TARGET_HEADER_FILL = PatternFill(fill_type="solid", fgColor="FFD0D0D0")


@dataclass(frozen=True)
class ColumnSpec:
    """
    One Target List column: letter, header, width and cell value.
    """

    letter: str
    header: str
    width: float
    value: Callable[[int, EnrichedCompany], object]
    number_format: str | None = None


DETAILED_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("E", "#", 5, lambda index, company: index),
    ColumnSpec("F", "Company", 30, lambda index, company: company.company_name),
    ColumnSpec("G", "City", 15, lambda index, company: company.city),
    ColumnSpec("H", "State", 6, lambda index, company: company.state),
    ColumnSpec("I", "City, State", 20, lambda index, company: company.city_state),
    ColumnSpec("J", "Website", 25, lambda index, company: company.website),
    ColumnSpec("K", "Domain", 20, lambda index, company: company.domain),
    ColumnSpec("L", "Description", 60, lambda index, company: company.summary),
    ColumnSpec("M", "Count", 8, lambda index, company: company.employee_count),
    ColumnSpec(
        "N",
        "Est. Rev",
        12,
        lambda index, company: company.est_rev_millions,
        REVENUE_NUMBER_FORMAT,
    ),
    ColumnSpec("O", "Executive Title", 20, lambda index, company: company.executive_title),
    ColumnSpec("P", "Executive Name", 20, lambda index, company: company.executive_name),
    ColumnSpec("Q", "Executive First Name", 15, lambda index, company: company.executive_first_name),
    ColumnSpec("R", "Executive Last Name", 15, lambda index, company: company.executive_last_name),
    ColumnSpec("S", "Executive", 25, lambda index, company: executive_single_line(company)),
    ColumnSpec(
        "T",
        "Latest Estimated Revenue ($)",
        15,
        lambda index, company: company.latest_estimated_revenue,
    ),
)

MINIMAL_COLUMNS: tuple[ColumnSpec, ...] = (
    ColumnSpec("E", "#", 5, lambda index, company: index),
    ColumnSpec("G", "Company", 30, lambda index, company: company.company_name),
    ColumnSpec("M", "City, State", 20, lambda index, company: company.city_state),
    ColumnSpec("U", "Description", 60, lambda index, company: company.summary),
    ColumnSpec("AB", "6 Months Growth Rate %", 12, lambda index, company: company.growth_rate_6mo),
    ColumnSpec("AC", "9 Months Growth Rate %", 12, lambda index, company: company.growth_rate_9mo),
    ColumnSpec("AE", "24 Months Growth Rate %", 12, lambda index, company: company.growth_rate_24mo),
    ColumnSpec(
        "AI",
        "Est. Rev",
        12,
        lambda index, company: company.est_rev_millions,
        REVENUE_NUMBER_FORMAT,
    ),
    ColumnSpec("AS", "Executive", 25, lambda index, company: executive_single_line(company)),
)


def columns_for(output_format: str) -> tuple[ColumnSpec, ...]:
    return MINIMAL_COLUMNS if output_format == "minimal" else DETAILED_COLUMNS


class WorkbookRenderer:
    """
    Builds the XLSX export in memory.
    """

    def __init__(self, *, logo_size_px: int = 40, logo_row_height: float = 32) -> None:
        self._logo_size_px = logo_size_px
        self._logo_row_height = logo_row_height

    def render(
        self,
        *,
        config: ReportConfig,
        source_headers: Sequence[str],
        source_rows: Sequence[Mapping[str, str]],
        companies: Sequence[EnrichedCompany],
    ) -> bytes:
        """
        Render the workbook and return the XLSX bytes.

        Raises:
            RenderError: If openpyxl fails to build or serialize the workbook.
        """

        try:
            workbook = Workbook()
            workbook.properties.creator = "Target List Generator"

            source_sheet = workbook.active
            source_sheet.title = SOURCE_SHEET_TITLE
            self._write_source_sheet(source_sheet, source_headers, source_rows)

            target_sheet = workbook.create_sheet(TARGET_SHEET_TITLE)
            self._write_target_sheet(target_sheet, config, companies)

            buffer = io.BytesIO()
            workbook.save(buffer)
        except RenderError:
            raise
        except Exception as exc:
            logger.exception("Workbook rendering failed")
            raise RenderError(f"Failed to generate workbook: {exc}") from exc

        log_event(
            logger,
            logging.INFO,
            "workbook_rendered",
            companies=len(companies),
            output_format=config.output_format,
            size_bytes=buffer.tell(),
        )
        return buffer.getvalue()

    def _write_source_sheet(
        self,
        worksheet: Worksheet,
        headers: Sequence[str],
        rows: Sequence[Mapping[str, str]],
    ) -> None:
        if not headers:
            return

        worksheet.append(list(headers))
        for cell in worksheet[1]:
            cell.font = Font(bold=True)
            cell.fill = _SOURCE_HEADER_FILL

        for row in rows:
            worksheet.append([row.get(header, "") for header in headers])

        for column_cells in worksheet.iter_cols(min_row=1, max_row=1):
            worksheet.column_dimensions[column_cells[0].column_letter].width = 15

    def _write_target_sheet(
        self,
        worksheet: Worksheet,
        config: ReportConfig,
        companies: Sequence[EnrichedCompany],
    ) -> None:
        columns = columns_for(config.output_format)
        description_letter = next(spec.letter for spec in columns if spec.header == "Description")
        self._write_title_block(worksheet, config, description_letter)

        header_font = Font(bold=True, size=11)
        header_alignment = Alignment(vertical="center", horizontal="center")
        worksheet.row_dimensions[HEADER_ROW].height = 20
        for spec in columns:
            cell = worksheet[f"{spec.letter}{HEADER_ROW}"]
            cell.value = spec.header
            cell.font = header_font
            cell.fill = _TARGET_HEADER_FILL
            cell.alignment = header_alignment

        for offset, company in enumerate(companies):
            row_index = FIRST_DATA_ROW + offset
            for spec in columns:
                cell = worksheet[f"{spec.letter}{row_index}"]
                cell.value = spec.value(offset + 1, company)
                if spec.number_format:
                    cell.number_format = spec.number_format
            self._add_logo(worksheet, company, row_index)

        worksheet.column_dimensions[LOGO_COLUMN].width = 7
        for spec in columns:
            worksheet.column_dimensions[spec.letter].width = spec.width

        self._apply_page_setup(worksheet)

    @staticmethod
    def _write_title_block(
        worksheet: Worksheet,
        config: ReportConfig,
        description_letter: str,
    ) -> None:
        worksheet["C2"] = config.report_title
        worksheet["C2"].font = Font(bold=True, size=14)
        worksheet["C2"].alignment = Alignment(horizontal="center")
        worksheet.merge_cells("C2:K2")
        worksheet.row_dimensions[2].height = 25
        if config.company_name:
            worksheet["L2"] = config.company_name
            worksheet["L2"].font = Font(size=12)

        worksheet["C3"] = SUBTITLE
        worksheet["C3"].font = Font(bold=True, size=12)
        worksheet[f"{description_letter}3"] = REVENUE_NOTE
        worksheet[f"{description_letter}3"].font = Font(italic=True, size=10)

        worksheet["M5"] = "Est. Employee"
        worksheet["M5"].font = Font(size=10)

    def _add_logo(self, worksheet: Worksheet, company: EnrichedCompany, row_index: int) -> None:
        raw = raster_logo_bytes(company)
        if raw is None:
            return
        try:
            image = XLImage(io.BytesIO(raw))
        except (OSError, ValueError) as exc:
            log_event(
                logger,
                logging.WARNING,
                "workbook_logo_skipped",
                company=company.company_name,
                error=str(exc),
            )
            return

        image.width = self._logo_size_px
        image.height = self._logo_size_px
        worksheet.add_image(image, f"{LOGO_COLUMN}{row_index}")
        worksheet.row_dimensions[row_index].height = self._logo_row_height

    @staticmethod
    def _apply_page_setup(worksheet: Worksheet) -> None:
        worksheet.page_setup.orientation = "landscape"
        worksheet.page_setup.paperSize = worksheet.PAPERSIZE_LETTER
        worksheet.page_setup.fitToWidth = 1
        worksheet.page_setup.fitToHeight = 0
        worksheet.sheet_properties.pageSetUpPr.fitToPage = True
        worksheet.page_margins = PageMargins(
            left=0.25,
            right=0.25,
            top=0.5,
            bottom=0.5,
            header=0.3,
            footer=0.3,
        )
        worksheet.print_title_rows = f"{HEADER_ROW}:{HEADER_ROW}"


def render_workbook(
    *,
    config: ReportConfig,
    source_headers: Sequence[str],
    source_rows: Sequence[Mapping[str, str]],
    companies: Sequence[EnrichedCompany],
) -> bytes:
    return WorkbookRenderer().render(
        config=config,
        source_headers=source_headers,
        source_rows=source_rows,
        companies=companies,
    )
