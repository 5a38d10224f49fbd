"""
app/ingestion/table_parser.py

Parsing for Sourcescrub company exports (CSV or XLSX).

Export layout:
    row 1   search URL (ignored)
    row 2   blank (ignored)
    row 3   column headers
    row 4+  one company per row
"""

from __future__ import annotations

import csv
import io
import logging
import zipfile
from collections.abc import Iterable, Sequence
from datetime import date, datetime
from pathlib import PurePath
from typing import Any

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from app.config import UploadSettings, get_upload_settings
from app.domain.target_list import ParsedTable
from app.logging_utils import log_event
from app.validators.upload_validator import UploadValidator

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS: tuple[str, ...] = (".csv", ".xlsx")


class TableParseError(ValueError):
    """
    Raised when an uploaded export cannot be read as a company table.
    """


def file_extension(filename: str) -> str:
    return PurePath(filename or "").suffix.lower()


def cell_to_text(value: Any) -> str:
    """
    Coerce one spreadsheet cell to the string form used by the pipeline.

    Whole floats lose their trailing `.0` so revenue and employee counts
    read the same whether they came from CSV or XLSX.
    """

    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        return value.date().isoformat() if value.time() == datetime.min.time() else value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


class TableParser:
    """
    Turns uploaded bytes into normalized rows plus a validation result.
    """

    def __init__(
        self,
        *,
        settings: UploadSettings | None = None,
        validator: UploadValidator | None = None,
    ) -> None:
        self._settings = settings or get_upload_settings()
        self._validator = validator or UploadValidator(self._settings)

    def parse(self, content: bytes, filename: str) -> ParsedTable:
        """
        Parse one uploaded file.

        Raises:
            TableParseError: On unsupported extension, unreadable content or
                fewer rows than the export layout requires.
        """

        extension = file_extension(filename)
        if extension == ".csv":
            raw_rows = self._read_csv(content)
        elif extension == ".xlsx":
            raw_rows = self._read_xlsx(content)
        else:
            raise TableParseError("Unsupported file format. Please upload CSV or XLSX files.")

        headers, rows = self._rows_to_records(raw_rows)
        validation = self._validator.validate(headers=headers, rows=rows)
        log_event(
            logger,
            logging.INFO,
            "table_parsed",
            filename=filename,
            rows=len(rows),
            is_valid=validation.is_valid,
            missing_columns=validation.missing_columns,
        )
        return ParsedTable(headers=headers, rows=rows, validation=validation)

    def _read_csv(self, content: bytes) -> list[list[str]]:
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as exc:
            raise TableParseError("CSV file must be UTF-8 encoded.") from exc

        try:
            reader = csv.reader(io.StringIO(text, newline=""))
            return list(reader)
        except csv.Error as exc:
            raise TableParseError(f"CSV parsing error: {exc}") from exc

    def _read_xlsx(self, content: bytes) -> list[list[str]]:
        try:
            workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
        except (InvalidFileException, zipfile.BadZipFile, OSError, KeyError, ValueError) as exc:
            raise TableParseError(f"Failed to parse Excel file: {exc}") from exc

        try:
            worksheet = workbook.worksheets[0]
            return [
                [cell_to_text(value) for value in row]
                for row in worksheet.iter_rows(values_only=True)
            ]
        finally:
            workbook.close()

    def _rows_to_records(
        self,
        raw_rows: Sequence[Sequence[str]],
    ) -> tuple[list[str], list[dict[str, str]]]:
        header_index = self._settings.header_row_index
        if len(raw_rows) < header_index + 2:
            raise TableParseError(
                "File has insufficient rows. Expected at least 4 rows (URL, blank, headers, data)."
            )

        headers = [cell_to_text(value) for value in raw_rows[header_index]]
        while headers and not headers[-1]:
            headers.pop()

        records: list[dict[str, str]] = []
        for raw_row in raw_rows[header_index + 1 :]:
            values = [cell_to_text(value) for value in raw_row]
            if _is_blank(values):
                continue
            records.append(
                {
                    header: values[index] if index < len(values) else ""
                    for index, header in enumerate(headers)
                    if header
                }
            )
        return headers, records


def _is_blank(values: Iterable[str]) -> bool:
    return all(not value for value in values)


def parse_uploaded_file(content: bytes, filename: str) -> ParsedTable:
    """
    Parse an uploaded export with environment settings.
    """

    return TableParser().parse(content, filename)
